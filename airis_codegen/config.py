"""設定檔載入、基本驗證與生成設定（GenerationConfig）."""

import json
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any

from .errors import ConfigError

# 已知有效的頂層欄位
_KNOWN_TOP_KEYS = {"figma", "generation", "output"}

# 各區塊已知欄位（用於拼字提示）
_KNOWN_SECTION_KEYS = {
    "figma": {"personalAccessToken", "fileKey", "nodeId"},
    "generation": {"framework", "typescript", "styling", "optimization", "accessibility", "testing", "documentation"},
    "output": {"dir", "cache"},
}

_KNOWN_OPTIMIZATION_KEYS = {"treeshaking", "codesplitting", "lazyLoading", "bundleAnalysis"}
_KNOWN_ACCESSIBILITY_KEYS = {"screenReader", "keyboardNavigation", "colorContrast", "wcagLevel"}

VALID_FRAMEWORKS = {"react", "vue", "svelte", "angular", "html"}
VALID_STYLING = {"css", "scss", "tailwind"}
VALID_WCAG_LEVELS = {"A", "AA", "AAA"}


def config_section(data: dict, key: str) -> dict:
    value = data.get(key)
    return value if isinstance(value, dict) else {}


@dataclass
class OptimizationConfig:
    treeshaking: bool = False
    codesplitting: bool = False
    lazy_loading: bool = False
    bundle_analysis: bool = False


@dataclass
class AccessibilityConfig:
    screen_reader: bool = False
    keyboard_navigation: bool = False
    color_contrast: bool = False
    wcag_level: str = "AA"


@dataclass
class TestingConfig:
    unit_tests: bool = False


@dataclass
class GenerationConfig:
    """目標框架、語言模式、樣式策略與各項開關."""

    framework: str = "react"
    typescript: bool = True
    styling: str = "css"
    optimization: OptimizationConfig = field(default_factory=OptimizationConfig)
    accessibility: AccessibilityConfig = field(default_factory=AccessibilityConfig)
    testing: TestingConfig = field(default_factory=TestingConfig)
    documentation: bool = False

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict) -> "GenerationConfig":
        """由設定檔的 generation 區塊（camelCase）建立設定."""
        if not isinstance(data, dict):
            data = {}
        opt = config_section(data, "optimization")
        a11y = config_section(data, "accessibility")
        testing = config_section(data, "testing")
        return cls(
            framework=str(data.get("framework", "react")).lower(),
            typescript=bool(data.get("typescript", True)),
            styling=str(data.get("styling", "css")).lower(),
            optimization=OptimizationConfig(
                treeshaking=bool(opt.get("treeshaking", False)),
                codesplitting=bool(opt.get("codesplitting", False)),
                lazy_loading=bool(opt.get("lazyLoading", False)),
                bundle_analysis=bool(opt.get("bundleAnalysis", False)),
            ),
            accessibility=AccessibilityConfig(
                screen_reader=bool(a11y.get("screenReader", False)),
                keyboard_navigation=bool(a11y.get("keyboardNavigation", False)),
                color_contrast=bool(a11y.get("colorContrast", False)),
                wcag_level=str(a11y.get("wcagLevel", "AA")).upper(),
            ),
            testing=TestingConfig(unit_tests=bool(testing.get("unitTests", False))),
            documentation=bool(data.get("documentation", False)),
        )


def _warn(msg: str) -> None:
    print(f"   ⚠️  [config] {msg}")


def validate_config(cfg: dict) -> None:
    """對 config 做基本欄位驗證，印出警告但不拋例外。"""
    if not cfg:
        return

    # 頂層未知欄位
    for key in cfg:
        if key not in _KNOWN_TOP_KEYS:
            known = ", ".join(sorted(_KNOWN_TOP_KEYS))
            _warn(f"未知頂層欄位 '{key}'（已知欄位：{known}）")

    # 各區塊欄位
    for section, known_keys in _KNOWN_SECTION_KEYS.items():
        section_cfg = cfg.get(section, {})
        if not isinstance(section_cfg, dict):
            _warn(f"'{section}' 應為物件，目前是 {type(section_cfg).__name__}")
            continue
        for key in section_cfg:
            if key not in known_keys:
                known = ", ".join(sorted(known_keys))
                _warn(f"[{section}] 未知欄位 '{key}'（已知欄位：{known}）")

    generation = cfg.get("generation", {})
    if not isinstance(generation, dict):
        return

    framework = generation.get("framework")
    if framework and str(framework).lower() not in VALID_FRAMEWORKS:
        valid = ", ".join(sorted(VALID_FRAMEWORKS))
        _warn(f"generation.framework '{framework}' 不在已知值中（{valid}）")

    styling = generation.get("styling")
    if styling and str(styling).lower() not in VALID_STYLING:
        valid = ", ".join(sorted(VALID_STYLING))
        _warn(f"generation.styling '{styling}' 不在已知值中（{valid}）")

    for sub, known_keys in (("optimization", _KNOWN_OPTIMIZATION_KEYS), ("accessibility", _KNOWN_ACCESSIBILITY_KEYS)):
        sub_cfg = generation.get(sub)
        if sub_cfg is None:
            continue
        if not isinstance(sub_cfg, dict):
            _warn(f"generation.{sub} 應為物件，目前是 {type(sub_cfg).__name__}，將忽略")
            continue
        for key in sub_cfg:
            if key not in known_keys:
                known = ", ".join(sorted(known_keys))
                _warn(f"[generation.{sub}] 未知欄位 '{key}'（已知欄位：{known}）")

    level = config_section(generation, "accessibility").get("wcagLevel")
    if level and str(level).upper() not in VALID_WCAG_LEVELS:
        _warn(f"generation.accessibility.wcagLevel '{level}' 應為 A / AA / AAA")


def load_config(config_path: str = "figma-codegen.config.json") -> dict:
    """載入 JSON 設定檔，不存在則回傳空 dict；存在則做基本驗證。"""
    path = Path(config_path)
    if not path.exists():
        return {}
    try:
        with open(path, "r", encoding="utf-8") as f:
            cfg: Any = json.load(f)
    except json.JSONDecodeError as exc:
        raise ConfigError(f"'{config_path}' 不是合法的 JSON：{exc}") from exc
    if not isinstance(cfg, dict):
        print(f"   ⚠️  [config] '{config_path}' 格式錯誤，應為 JSON 物件，回傳空設定。")
        return {}
    validate_config(cfg)
    return cfg
