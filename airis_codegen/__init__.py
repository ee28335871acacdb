"""
AiIRIS-codegen — Figma 設計 → 元件程式碼（Python 管線）

萃取 design tokens、偵測 UI 模式、合成元件，並轉成 React / Vue / Svelte /
Angular / HTML，附品質評分、最佳化與組裝報告。
"""

__version__ = "0.1.0"

from .errors import (
    AdaptationError,
    CodegenError,
    ConfigError,
    DispatchError,
    DispatcherUnavailableError,
    InvalidInputError,
    TaskFailedError,
    TaskTimeoutError,
)
from .config import GenerationConfig, load_config, validate_config
from .models import GeneratedArtifact, GenerationSession, SessionState
from .design_extractor import DesignExtractor, extract_design
from .pattern_analyzer import PatternAnalyzer
from .synthesizer import ComponentSynthesizer
from .framework_adapter import FrameworkAdapter
from .quality import QualityAssessor, ScoringWeights
from .optimizer import Optimizer
from .assembler import Assembler
from .cache import MemoryStore, fingerprint
from .task_dispatcher import TaskDispatcher
from .orchestrator import GenerationOrchestrator
from .figma_reader import FigmaAPIClient, load_design

__all__ = [
    "__version__",
    "AdaptationError",
    "CodegenError",
    "ConfigError",
    "DispatchError",
    "DispatcherUnavailableError",
    "InvalidInputError",
    "TaskFailedError",
    "TaskTimeoutError",
    "GenerationConfig",
    "load_config",
    "validate_config",
    "GeneratedArtifact",
    "GenerationSession",
    "SessionState",
    "DesignExtractor",
    "extract_design",
    "PatternAnalyzer",
    "ComponentSynthesizer",
    "FrameworkAdapter",
    "QualityAssessor",
    "ScoringWeights",
    "Optimizer",
    "Assembler",
    "MemoryStore",
    "fingerprint",
    "TaskDispatcher",
    "GenerationOrchestrator",
    "FigmaAPIClient",
    "load_design",
]
