"""
Assembler — optimized framework output → file set, metrics, build logs, preview

Files are kept in memory; persisting them is the caller's job.
"""

from __future__ import annotations

import html
import logging
import time
from dataclasses import dataclass, replace
from datetime import datetime
from typing import Dict, List, Optional, Sequence

from . import code_patterns
from .config import GenerationConfig
from .design_extractor import scene_to_svg
from .errors import DispatchError
from .models import (
    LOG_ERROR,
    LOG_INFO,
    LOG_WARN,
    BuildLog,
    CodeFile,
    CodeMetrics,
    FrameworkOutput,
    NormalizedScene,
    ProjectStructure,
)
from .quality import QualityAssessor
from .worker_tasks import TASK_ANALYZE_COMPLEXITY, TASK_OPTIMIZE, TASK_VALIDATE, run_task

logger = logging.getLogger(__name__)

COMPONENT_NAME = "GeneratedComponent"
BYTES_PER_SECOND = 1_500_000

_CODE_LANGUAGES = {"typescript", "javascript"}
_STYLE_LANGUAGES = {"css", "scss"}


@dataclass
class AssembledCode:
    files: List[CodeFile]
    structure: ProjectStructure
    metrics: CodeMetrics
    preview: str
    build_logs: List[BuildLog]


def component_extension(framework: str, typescript: bool) -> str:
    if framework == "vue":
        return ".vue"
    if framework == "svelte":
        return ".svelte"
    if framework == "html":
        return ".html"
    if framework == "angular":
        return ".ts" if typescript else ".js"
    return ".tsx" if typescript else ".jsx"


def style_extension(styling: str) -> str:
    return ".scss" if styling == "scss" else ".css"


def make_file(path: str, content: str, dependencies: Optional[List[str]] = None) -> CodeFile:
    name = path.rsplit("/", 1)[-1]
    dot = name.rfind(".")
    return CodeFile(
        path=path,
        name=name,
        extension=name[dot:] if dot >= 0 else "",
        content=content,
        size=len(content.encode("utf-8")),
        language=code_patterns.detect_language(name),
        imports=code_patterns.extract_imports(content),
        exports=code_patterns.extract_exports(content),
        dependencies=list(dependencies or []),
    )


# ════════════════════════════════════════════════════════════
# Generated companion files
# ════════════════════════════════════════════════════════════

def types_file() -> str:
    return (
        f"export interface {COMPONENT_NAME}Props {{\n"
        "  className?: string;\n"
        "  [key: string]: unknown;\n"
        "}\n"
    )


def test_file(framework: str, component_ext: str) -> str:
    if framework == "react":
        return (
            "import React from 'react';\n"
            "import { render } from '@testing-library/react';\n"
            f"import {COMPONENT_NAME} from '../components/{COMPONENT_NAME}';\n\n"
            f"describe('{COMPONENT_NAME}', () => {{\n"
            "  it('renders the root container', () => {\n"
            f"    const {{ container }} = render(<{COMPONENT_NAME} />);\n"
            "    expect(container.querySelector('.generated-component')).toBeTruthy();\n"
            "  });\n"
            "});\n"
        )
    if framework == "vue":
        return (
            "import { mount } from '@vue/test-utils';\n"
            f"import {COMPONENT_NAME} from '../components/{COMPONENT_NAME}.vue';\n\n"
            f"describe('{COMPONENT_NAME}', () => {{\n"
            "  it('renders the root container', () => {\n"
            f"    const wrapper = mount({COMPONENT_NAME});\n"
            "    expect(wrapper.find('.generated-component').exists()).toBe(true);\n"
            "  });\n"
            "});\n"
        )
    if framework == "angular":
        return (
            "import { TestBed } from '@angular/core/testing';\n"
            f"import {{ {COMPONENT_NAME} }} from '../components/{COMPONENT_NAME}';\n\n"
            f"describe('{COMPONENT_NAME}', () => {{\n"
            "  it('creates the component', () => {\n"
            f"    const fixture = TestBed.createComponent({COMPONENT_NAME});\n"
            "    expect(fixture.componentInstance).toBeTruthy();\n"
            "  });\n"
            "});\n"
        )
    return (
        "import { describe, it, expect } from 'vitest';\n"
        f"import source from '../components/{COMPONENT_NAME}{component_ext}?raw';\n\n"
        f"describe('{COMPONENT_NAME}', () => {{\n"
        "  it('declares the root container', () => {\n"
        "    expect(source).toContain('generated-component');\n"
        "  });\n"
        "});\n"
    )


def readme_file(output: FrameworkOutput, config: GenerationConfig, scene: NormalizedScene) -> str:
    language = "TypeScript" if config.typescript else "JavaScript"
    lines = [
        f"# {COMPONENT_NAME}",
        "",
        f"Generated from the \"{scene.name}\" design for {output.framework} ({language}, {config.styling}).",
        "",
        "## Scripts",
        "",
    ]
    lines += [f"- `npm run {name}`: `{cmd}`" for name, cmd in output.template.scripts.items()]
    lines += ["", "## Dependencies", ""]
    deps = {**output.template.dependencies, **output.template.dev_dependencies}
    lines += [f"- {name} {version}" for name, version in deps.items()] or ["- (none)"]
    return "\n".join(lines) + "\n"


def render_preview(scene: NormalizedScene, component_code: str) -> str:
    return (
        "<!DOCTYPE html>\n"
        "<html>\n<head>\n"
        "  <meta charset=\"utf-8\">\n"
        "  <title>Generated Component Preview</title>\n"
        "  <style>\n"
        "    body { font-family: Arial, sans-serif; padding: 20px; }\n"
        "    .preview { border: 1px solid #ddd; padding: 20px; border-radius: 8px; }\n"
        "    pre { background: #f6f8fa; padding: 12px; overflow: auto; }\n"
        "  </style>\n"
        "</head>\n<body>\n"
        "  <div class=\"preview\">\n"
        "    <h2>Component Preview</h2>\n"
        f"{scene_to_svg(scene)}\n"
        f"    <pre><code>{html.escape(component_code)}</code></pre>\n"
        "  </div>\n"
        "</body>\n</html>\n"
    )


# ════════════════════════════════════════════════════════════
# Assembler
# ════════════════════════════════════════════════════════════

class Assembler:
    def __init__(self, dispatcher=None, assessor: Optional[QualityAssessor] = None):
        self.dispatcher = dispatcher
        self.assessor = assessor or QualityAssessor()

    async def _run(self, task_type: str, payload: dict) -> dict:
        if self.dispatcher is not None:
            try:
                return await self.dispatcher.submit(task_type, payload)
            except DispatchError as exc:
                logger.warning("%s dispatch failed (%s); running locally", task_type, exc)
        return run_task(task_type, payload)

    async def assemble(
        self,
        output: FrameworkOutput,
        structure: ProjectStructure,
        config: GenerationConfig,
        scene: NormalizedScene,
        started_at: float,
    ) -> AssembledCode:
        files = self.build_files(output, structure, config, scene)
        structure = self._merge_structure(structure, files)
        component = files[0]

        bundle = "\n".join(f.content for f in files if f.language in _CODE_LANGUAGES | {"vue", "svelte", "html"})
        css = "\n".join(f.content for f in files if f.language in _STYLE_LANGUAGES)
        optimized = await self._run(TASK_OPTIMIZE, {"code": bundle, "css": css})
        validation = await self._run(TASK_VALIDATE, {"code": component.content, "framework": output.framework})
        analysis = await self._run(TASK_ANALYZE_COMPLEXITY, {"code": component.content})

        metrics = self.compute_metrics(files, config, started_at, optimized.get("optimizedSize", 0))
        build_logs = self.validate_build(
            files, config, output.framework, validation.get("issues", []), analysis.get("issues", []),
        )
        return AssembledCode(
            files=files,
            structure=structure,
            metrics=metrics,
            preview=render_preview(scene, component.content),
            build_logs=build_logs,
        )

    def build_files(
        self,
        output: FrameworkOutput,
        structure: ProjectStructure,
        config: GenerationConfig,
        scene: NormalizedScene,
    ) -> List[CodeFile]:
        root = structure.root
        ext = component_extension(output.framework, config.typescript)
        files = [make_file(
            f"{root}/components/{COMPONENT_NAME}{ext}",
            output.component_code or "",
            dependencies=list(output.template.dependencies),
        )]

        if output.style_code:
            files.append(make_file(f"{root}/styles/{COMPONENT_NAME}{style_extension(config.styling)}", output.style_code))

        for filename, content in output.additional_files.items():
            if isinstance(content, str):
                files.append(make_file(f"{root}/{filename}", content))

        if config.typescript:
            files.append(make_file(f"{root}/types/{COMPONENT_NAME}.types.ts", types_file()))
        if config.testing.unit_tests:
            test_ext = {"react": ".test.tsx" if config.typescript else ".test.jsx"}.get(
                output.framework, ".test.ts" if config.typescript else ".test.js"
            )
            files.append(make_file(f"{root}/__tests__/{COMPONENT_NAME}{test_ext}", test_file(output.framework, ext)))
        if config.documentation:
            files.append(make_file("README.md", readme_file(output, config, scene)))
        return files

    @staticmethod
    def _merge_structure(structure: ProjectStructure, files: List[CodeFile]) -> ProjectStructure:
        buckets: Dict[str, List[str]] = {
            "components": list(structure.components),
            "types": list(structure.types),
            "styles": list(structure.styles),
            "tests": list(structure.tests),
        }
        for f in files:
            for bucket, marker in (("components", "/components/"), ("types", "/types/"),
                                   ("styles", "/styles/"), ("tests", "/__tests__/")):
                if marker in f.path and f.path not in buckets[bucket]:
                    buckets[bucket].append(f.path)
        return replace(structure, **buckets)

    def compute_metrics(
        self,
        files: List[CodeFile],
        config: GenerationConfig,
        started_at: float,
        optimized_size: int,
    ) -> CodeMetrics:
        content = "\n".join(f.content for f in files)
        bundle_size = sum(f.size for f in files)
        complexity = code_patterns.complexity(content)
        return CodeMetrics(
            lines_of_code=len(content.split("\n")),
            complexity=complexity,
            maintainability_index=code_patterns.maintainability_index(content),
            duplicate_lines=code_patterns.duplicate_lines(content),
            bundle_size=bundle_size,
            optimized_bundle_size=optimized_size,
            load_time=(time.monotonic() - started_at) * 1000,
            estimated_load_time=bundle_size / BYTES_PER_SECOND * 1000,
            performance_score=self.assessor.performance_score(config),
            test_coverage=0.0,
        )

    def validate_build(
        self,
        files: List[CodeFile],
        config: GenerationConfig,
        framework: str,
        issues: List[dict],
        complexity_issues: Sequence[str] = (),
    ) -> List[BuildLog]:
        timestamp = datetime.now()
        logs: List[BuildLog] = []

        for f in files:
            if f.language not in _CODE_LANGUAGES:
                continue
            if framework == "react":
                for missing in code_patterns.missing_imports(f.content, f.imports):
                    logs.append(BuildLog(timestamp, LOG_WARN, f"Potentially missing import: {missing}", f.name))
            if config.typescript and f.extension == ".tsx":
                for issue in code_patterns.typed_issues(f.content):
                    logs.append(BuildLog(timestamp, LOG_ERROR, issue, f.name))

        component = files[0].name if files else None
        for issue in issues:
            level = LOG_ERROR if issue.get("type") == "error" else LOG_WARN
            logs.append(BuildLog(timestamp, level, issue.get("message", "Validation issue"), component))
        for message in complexity_issues:
            logs.append(BuildLog(timestamp, LOG_WARN, message, component))

        if not logs:
            logs.append(BuildLog(timestamp, LOG_INFO, "Build validation completed successfully"))
        return logs
