"""Core data models shared across pipeline phases."""

from __future__ import annotations

import enum
import time
from dataclasses import asdict, dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple

from .config import GenerationConfig


# ════════════════════════════════════════════════════════════
# Scene
# ════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class BoundingBox:
    x: float
    y: float
    width: float
    height: float

    @property
    def right(self) -> float:
        return self.x + self.width

    @property
    def bottom(self) -> float:
        return self.y + self.height

    def union(self, other: "BoundingBox") -> "BoundingBox":
        left = min(self.x, other.x)
        top = min(self.y, other.y)
        right = max(self.right, other.right)
        bottom = max(self.bottom, other.bottom)
        return BoundingBox(left, top, right - left, bottom - top)

    def contains(self, other: "BoundingBox") -> bool:
        return (
            self.x <= other.x
            and self.y <= other.y
            and other.right <= self.right
            and other.bottom <= self.bottom
        )

    def to_dict(self) -> dict:
        return {"x": self.x, "y": self.y, "width": self.width, "height": self.height}

    @classmethod
    def from_dict(cls, data: dict) -> "BoundingBox":
        return cls(
            float(data.get("x", 0)),
            float(data.get("y", 0)),
            float(data.get("width", 0)),
            float(data.get("height", 0)),
        )


DEFAULT_BOUNDS = BoundingBox(0, 0, 400, 300)


@dataclass(frozen=True)
class Shape:
    """One leaf of the normalized scene.

    ``geometry`` depends on ``kind``: rect → x/y/width/height, ellipse →
    cx/cy/rx/ry, text → x/y anchor (baseline approximation).
    """

    kind: str
    name: str
    geometry: Dict[str, float]
    color: str
    box: BoundingBox
    text: Optional[str] = None
    font_family: Optional[str] = None
    font_size: Optional[float] = None
    radius: Optional[float] = None
    image_ref: Optional[str] = None

    def to_dict(self) -> dict:
        data = asdict(self)
        data["box"] = self.box.to_dict()
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "Shape":
        return cls(
            kind=data["kind"],
            name=data.get("name", ""),
            geometry=dict(data.get("geometry", {})),
            color=data.get("color", "rgb(0, 0, 0)"),
            box=BoundingBox.from_dict(data.get("box", {})),
            text=data.get("text"),
            font_family=data.get("font_family"),
            font_size=data.get("font_size"),
            radius=data.get("radius"),
            image_ref=data.get("image_ref"),
        )


@dataclass(frozen=True)
class NormalizedScene:
    shapes: Tuple[Shape, ...]
    bounds: BoundingBox
    name: str = "scene"
    placeholder: bool = False

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "placeholder": self.placeholder,
            "bounds": self.bounds.to_dict(),
            "shapes": [s.to_dict() for s in self.shapes],
        }

    @classmethod
    def from_dict(cls, data: dict) -> "NormalizedScene":
        return cls(
            shapes=tuple(Shape.from_dict(s) for s in data.get("shapes", [])),
            bounds=BoundingBox.from_dict(data.get("bounds", DEFAULT_BOUNDS.to_dict())),
            name=data.get("name", "scene"),
            placeholder=bool(data.get("placeholder", False)),
        )


@dataclass(frozen=True)
class DesignTokenSet:
    """Deduplicated design primitives, all as unit-bearing strings."""

    colors: Tuple[str, ...] = ()
    fonts: Tuple[str, ...] = ()
    spacing: Tuple[str, ...] = ()
    radii: Tuple[str, ...] = ()

    def to_dict(self) -> dict:
        return {
            "colors": list(self.colors),
            "fonts": list(self.fonts),
            "spacing": list(self.spacing),
            "radii": list(self.radii),
        }


# ════════════════════════════════════════════════════════════
# Synthesis
# ════════════════════════════════════════════════════════════

ELEMENT_TEXT = "TEXT"
ELEMENT_BUTTON = "BUTTON"
ELEMENT_IMAGE = "IMAGE"
ELEMENT_BLOCK = "BLOCK"


@dataclass(frozen=True)
class ComponentElement:
    """A scene shape recognized as a renderable component element."""

    kind: str
    content: str = ""
    tag: str = "p"
    src: Optional[str] = None
    alt: Optional[str] = None
    color: Optional[str] = None
    background_color: Optional[str] = None
    font_size: Optional[str] = None

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict) -> "ComponentElement":
        return cls(**{k: data.get(k) for k in cls.__dataclass_fields__ if k in data})


@dataclass(frozen=True)
class ComponentIR:
    markup: str
    stylesheet: str


@dataclass(frozen=True)
class AccessibilityInsight:
    type: str
    message: str
    fix: str


@dataclass(frozen=True)
class DesignPattern:
    type: str
    confidence: float
    suggestions: Tuple[str, ...] = ()
    accessibility: Tuple[AccessibilityInsight, ...] = ()
    node_name: str = ""
    bounds: Optional[BoundingBox] = None

    @property
    def interactive(self) -> bool:
        return self.type in ("button", "form", "navigation", "modal")


# ════════════════════════════════════════════════════════════
# Framework output / quality
# ════════════════════════════════════════════════════════════

@dataclass
class FrameworkTemplate:
    dependencies: Dict[str, str] = field(default_factory=dict)
    dev_dependencies: Dict[str, str] = field(default_factory=dict)
    scripts: Dict[str, str] = field(default_factory=dict)


@dataclass
class FrameworkOutput:
    framework: str
    component_code: str
    style_code: str
    template: FrameworkTemplate = field(default_factory=FrameworkTemplate)
    additional_files: Dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class QualityIssue:
    level: str
    message: str
    category: str


QUALITY_CATEGORIES = ("visual", "code", "performance", "accessibility", "maintainability", "security")


@dataclass
class QualityAssessment:
    categories: Dict[str, float]
    issues: List[QualityIssue] = field(default_factory=list)
    recommendations: List[str] = field(default_factory=list)

    @property
    def overall(self) -> float:
        if not self.categories:
            return 0.0
        return sum(self.categories.values()) / len(self.categories)

    def to_dict(self) -> dict:
        return {
            "overall": self.overall,
            "categories": dict(self.categories),
            "issues": [asdict(i) for i in self.issues],
            "recommendations": list(self.recommendations),
        }


# ════════════════════════════════════════════════════════════
# Assembly
# ════════════════════════════════════════════════════════════

@dataclass
class CodeFile:
    path: str
    name: str
    extension: str
    content: str
    size: int
    language: str
    imports: List[str] = field(default_factory=list)
    exports: List[str] = field(default_factory=list)
    dependencies: List[str] = field(default_factory=list)


@dataclass
class ProjectStructure:
    root: str = "src"
    components: List[str] = field(default_factory=list)
    hooks: List[str] = field(default_factory=list)
    utils: List[str] = field(default_factory=list)
    types: List[str] = field(default_factory=list)
    styles: List[str] = field(default_factory=list)
    tests: List[str] = field(default_factory=list)
    assets: List[str] = field(default_factory=list)


@dataclass
class CodeMetrics:
    lines_of_code: int
    complexity: int
    maintainability_index: float
    duplicate_lines: int
    bundle_size: int
    optimized_bundle_size: int
    load_time: float
    estimated_load_time: float
    performance_score: float
    test_coverage: float = 0.0


LOG_INFO = "info"
LOG_WARN = "warn"
LOG_ERROR = "error"


@dataclass
class BuildLog:
    timestamp: datetime
    level: str
    message: str
    file: Optional[str] = None

    def to_dict(self) -> dict:
        data = {"timestamp": self.timestamp.isoformat(), "level": self.level, "message": self.message}
        if self.file:
            data["file"] = self.file
        return data


def build_status(logs: List[BuildLog]) -> str:
    if any(log.level == LOG_ERROR for log in logs):
        return "error"
    if any(log.level == LOG_WARN for log in logs):
        return "warning"
    return "success"


@dataclass
class GeneratedArtifact:
    id: str
    timestamp: datetime
    config: GenerationConfig
    files: List[CodeFile]
    structure: ProjectStructure
    metrics: CodeMetrics
    quality: QualityAssessment
    preview: str
    build_status: str
    build_logs: List[BuildLog]
    optimizations: List[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "timestamp": self.timestamp.isoformat(),
            "config": self.config.to_dict(),
            "files": [asdict(f) for f in self.files],
            "structure": asdict(self.structure),
            "metrics": asdict(self.metrics),
            "quality": self.quality.to_dict(),
            "preview": self.preview,
            "buildStatus": self.build_status,
            "buildLogs": [log.to_dict() for log in self.build_logs],
            "optimizations": list(self.optimizations),
        }


# ════════════════════════════════════════════════════════════
# Session
# ════════════════════════════════════════════════════════════

class SessionState(str, enum.Enum):
    CREATED = "created"
    ANALYZING = "analyzing"
    PLANNING = "planning"
    SYNTHESIZING = "synthesizing"
    ADAPTING = "adapting"
    ASSESSING = "assessing"
    OPTIMIZING = "optimizing"
    ASSEMBLING = "assembling"
    SUCCESS = "success"
    WARNING = "warning"
    ERROR = "error"
    FAILED = "failed"


_STATE_ORDER = list(SessionState)
TERMINAL_STATES = {SessionState.SUCCESS, SessionState.WARNING, SessionState.ERROR, SessionState.FAILED}


@dataclass
class GenerationSession:
    id: str
    config: GenerationConfig
    document: Any
    started_at: float = field(default_factory=time.monotonic)
    created_at: datetime = field(default_factory=datetime.now)
    state: SessionState = SessionState.CREATED

    def advance(self, state: SessionState) -> None:
        """Move forward in the state machine; transitions never go back."""
        if self.state in TERMINAL_STATES:
            raise RuntimeError(f"session {self.id} already finished ({self.state.value})")
        if state != SessionState.FAILED and _STATE_ORDER.index(state) <= _STATE_ORDER.index(self.state):
            raise RuntimeError(f"invalid transition {self.state.value} -> {state.value}")
        self.state = state

    def elapsed_ms(self) -> float:
        return (time.monotonic() - self.started_at) * 1000
