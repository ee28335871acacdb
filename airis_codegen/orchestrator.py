"""
Generation Orchestrator — one session per generate() call

analyze → plan → synthesize → adapt → assess → optimize → assemble.
Finished artifacts are memoized by a fingerprint of (document, config).
"""

from __future__ import annotations

import logging
import time
import uuid
from datetime import datetime
from typing import Callable, Dict, List, Optional

from .assembler import Assembler, component_extension, style_extension
from .cache import MemoryStore, fingerprint
from .config import GenerationConfig
from .design_extractor import DesignExtractor
from .errors import AdaptationError, InvalidInputError
from .framework_adapter import FrameworkAdapter
from .models import (
    TERMINAL_STATES,
    DesignPattern,
    GeneratedArtifact,
    GenerationSession,
    NormalizedScene,
    ProjectStructure,
    SessionState,
    build_status,
)
from .optimizer import Optimizer
from .pattern_analyzer import PatternAnalyzer, code_suggestions
from .quality import QualityAssessor
from .synthesizer import ComponentSynthesizer

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int, str], None]

COMPONENT_NAME = "GeneratedComponent"


def new_session_id() -> str:
    return f"gen_{int(time.time() * 1000)}_{uuid.uuid4().hex[:9]}"


def _sanitize_name(name: str) -> str:
    safe = "".join(ch if ch.isalnum() else " " for ch in name).strip()
    if not safe:
        return "Unnamed"
    parts = [p for p in safe.split() if p]
    return "".join(p[:1].upper() + p[1:] for p in parts)


def root_node(document) -> Optional[dict]:
    if not isinstance(document, dict):
        return None
    node = document.get("document") if "document" in document else document
    return node if isinstance(node, dict) else None


def plan_structure(scene: NormalizedScene, patterns: List[DesignPattern], config: GenerationConfig) -> ProjectStructure:
    """Expected project layout, before any file is emitted."""
    root = "src"
    ext = component_extension(config.framework, config.typescript)
    script_ext = ".ts" if config.typescript else ".js"

    components = [f"{root}/components/{COMPONENT_NAME}{ext}"]
    for pattern in patterns:
        if not pattern.node_name:
            continue
        path = f"{root}/components/{_sanitize_name(pattern.node_name)}{ext}"
        if path not in components:
            components.append(path)

    hooks = []
    if config.framework == "react" and any(p.interactive for p in patterns):
        hooks.append(f"{root}/hooks/useComponentState{script_ext}")

    style_ext = style_extension(config.styling)
    assets = []
    for shape in scene.shapes:
        if shape.image_ref:
            path = f"{root}/assets/{shape.image_ref}.png"
            if path not in assets:
                assets.append(path)

    return ProjectStructure(
        root=root,
        components=components,
        hooks=hooks,
        utils=[f"{root}/utils/index{script_ext}"],
        types=[f"{root}/types/{COMPONENT_NAME}.types.ts"] if config.typescript else [],
        styles=[f"{root}/styles/main{style_ext}", f"{root}/styles/{COMPONENT_NAME}{style_ext}"],
        tests=[f"{root}/__tests__/{COMPONENT_NAME}.test{script_ext}"] if config.testing.unit_tests else [],
        assets=assets,
    )


class _Progress:
    """Forwards monotonic progress to an optional callback; callback errors are logged."""

    def __init__(self, callback: Optional[ProgressCallback], session_id: str):
        self.callback = callback
        self.session_id = session_id
        self.last = -1

    def __call__(self, percent: int, message: str) -> None:
        if self.callback is None or percent <= self.last:
            return
        self.last = percent
        try:
            self.callback(percent, message)
        except Exception as exc:  # 進度回報只是提示
            logger.warning("[%s] progress callback failed: %s", self.session_id, exc)


class GenerationOrchestrator:
    """Runs the full pipeline; collaborators are injected, defaults provided."""

    def __init__(
        self,
        dispatcher=None,
        cache=None,
        analyzer=None,
        adapter=None,
        assessor: Optional[QualityAssessor] = None,
        optimizer: Optional[Optimizer] = None,
        extractor: Optional[DesignExtractor] = None,
    ):
        self.dispatcher = dispatcher
        self.cache = cache if cache is not None else MemoryStore()
        self.analyzer = analyzer or PatternAnalyzer()
        self.adapter = adapter or FrameworkAdapter()
        self.assessor = assessor or QualityAssessor()
        self.optimizer = optimizer or Optimizer()
        self.extractor = extractor or DesignExtractor()
        self.synthesizer = ComponentSynthesizer(dispatcher)
        self.assembler = Assembler(dispatcher, self.assessor)
        self.active_sessions: Dict[str, GenerationSession] = {}

    async def start(self) -> None:
        if self.dispatcher is not None:
            await self.dispatcher.start()

    async def close(self) -> None:
        if self.dispatcher is not None:
            await self.dispatcher.close()

    async def __aenter__(self) -> "GenerationOrchestrator":
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    async def generate(
        self,
        document,
        config: Optional[GenerationConfig] = None,
        progress: Optional[ProgressCallback] = None,
        use_cache: bool = True,
    ) -> GeneratedArtifact:
        if document is None:
            raise InvalidInputError("design document is required")
        config = config or GenerationConfig()

        key = None
        if use_cache:
            key = fingerprint(document, config)
            cached = await self.cache.get(key)
            if cached is not None:
                logger.info("cache hit for %s (artifact %s)", key[:12], cached.id)
                if progress is not None:
                    _Progress(progress, cached.id)(100, "Loaded from cache")
                return cached

        session = GenerationSession(id=new_session_id(), config=config, document=document)
        self.active_sessions[session.id] = session
        try:
            artifact = await self._run(session, _Progress(progress, session.id))
        except Exception:
            if session.state not in TERMINAL_STATES:
                session.advance(SessionState.FAILED)
            logger.exception("[%s] generation failed", session.id)
            raise
        finally:
            self.active_sessions.pop(session.id, None)

        if key is not None:
            await self.cache.set(key, artifact)
        return artifact

    def _plan_structure(self, scene: NormalizedScene, patterns: List[DesignPattern], config: GenerationConfig) -> ProjectStructure:
        return plan_structure(scene, patterns, config)

    async def _run(self, session: GenerationSession, progress: _Progress) -> GeneratedArtifact:
        sid = session.id
        config = session.config

        session.advance(SessionState.ANALYZING)
        progress(5, "Analyzing design...")
        logger.info("[%s] Analyzing design structure...", sid)
        scene, tokens = self.extractor.extract(session.document)
        node = root_node(session.document)
        patterns = list(await self.analyzer.analyze(node)) if node is not None else []
        progress(20, f"Detected {len(patterns)} design patterns")

        session.advance(SessionState.PLANNING)
        logger.info("[%s] Planning component structure...", sid)
        structure = self._plan_structure(scene, patterns, config)
        progress(30, "Planned project structure")

        session.advance(SessionState.SYNTHESIZING)
        logger.info("[%s] Generating base code...", sid)
        ir = await self.synthesizer.synthesize(scene, tokens, patterns, config)
        progress(45, "Synthesized component")

        session.advance(SessionState.ADAPTING)
        logger.info("[%s] Adapting to %s...", sid, config.framework)
        try:
            output = await self.adapter.adapt(ir.markup, ir.stylesheet, config)
        except Exception as exc:
            raise AdaptationError(f"framework adapter failed for '{config.framework}': {exc}") from exc
        progress(60, f"Adapted to {config.framework}")

        session.advance(SessionState.ASSESSING)
        logger.info("[%s] Assessing code quality...", sid)
        quality = self.assessor.assess(output, config)
        hints = [s for p in patterns for s in p.suggestions] + code_suggestions(patterns)
        for suggestion in hints:
            if suggestion not in quality.recommendations:
                quality.recommendations.append(suggestion)
        progress(75, f"Quality score {quality.overall:.1f}")

        session.advance(SessionState.OPTIMIZING)
        logger.info("[%s] Optimizing code...", sid)
        output, applied = self.optimizer.optimize(output, config, quality)
        progress(85, f"{len(applied)} optimizations applied")

        session.advance(SessionState.ASSEMBLING)
        logger.info("[%s] Assembling final code...", sid)
        assembled = await self.assembler.assemble(output, structure, config, scene, session.started_at)
        status = build_status(assembled.build_logs)
        session.advance(SessionState(status))
        progress(100, "Generation complete")
        logger.info("[%s] Generation finished (%s) in %.0fms", sid, status, session.elapsed_ms())

        return GeneratedArtifact(
            id=sid,
            timestamp=datetime.now(),
            config=config,
            files=assembled.files,
            structure=assembled.structure,
            metrics=assembled.metrics,
            quality=quality,
            preview=assembled.preview,
            build_status=status,
            build_logs=assembled.build_logs,
            optimizations=applied,
        )
