"""
Optimizer — conditional textual patches on the adapted component

Order is fixed: tree shaking → code splitting → accessibility → performance.
Each step only touches its own concern and returns a new FrameworkOutput.
"""

from __future__ import annotations

import logging
import re
from dataclasses import replace
from typing import List, Tuple

from .code_patterns import EXPORT_DEFAULT_NAME_RE, NAMED_IMPORT_RE
from .config import GenerationConfig
from .models import FrameworkOutput, QualityAssessment

logger = logging.getLogger(__name__)

TREE_SHAKING = "Tree shaking applied"
CODE_SPLITTING = "Code splitting applied"
ACCESSIBILITY = "Accessibility enhancements added"
PERFORMANCE = "Performance optimizations applied"

ENHANCEMENT_THRESHOLD = 80

_FIRST_DIV = re.compile(r"<div\b(?![^>]*\brole=)")
_BUTTON_WITHOUT_LABEL = re.compile(r"<button\b(?![^>]*aria-label)")
_IMG_WITHOUT_ALT = re.compile(r"<img\b(?![^>]*\balt=)")

_MARKUP_FRAMEWORKS = ("vue", "svelte", "html")


def _comment(framework: str, text: str) -> str:
    if framework in _MARKUP_FRAMEWORKS:
        return f"<!-- {text} -->"
    return f"// {text}"


def _is_react(output: FrameworkOutput) -> bool:
    return output.framework == "react"


# ════════════════════════════════════════════════════════════
# Individual patches
# ════════════════════════════════════════════════════════════

def prune_unused_imports(code: str) -> str:
    """Drop named imports that are never referenced outside their import line."""

    def prune(match: "re.Match") -> str:
        rest = code[:match.start()] + code[match.end():]
        names = [n.strip() for n in match.group("names").split(",") if n.strip()]
        kept = [n for n in names if re.search(rf"\b{re.escape(n.split(' as ')[-1].strip())}\b", rest)]
        default = match.group("default")
        source = match.group("source")
        if not kept and not default:
            return ""
        if not kept:
            return f"import {default} from {source};"
        head = f"{default}, " if default else ""
        return f"import {head}{{ {', '.join(kept)} }} from {source};"

    pruned = NAMED_IMPORT_RE.sub(prune, code)
    return re.sub(r"\A\n+", "", pruned)


def tree_shake(output: FrameworkOutput) -> FrameworkOutput:
    code = prune_unused_imports(output.component_code)
    m = EXPORT_DEFAULT_NAME_RE.search(code)
    if m and not re.search(rf"export\s*\{{[^}}]*\b{m.group(1)}\b", code):
        code = code.rstrip("\n") + f"\nexport {{ {m.group(1)} }};\n"
    return replace(output, component_code=code)


def split_code(output: FrameworkOutput) -> FrameworkOutput:
    code = output.component_code.rstrip("\n")
    if _is_react(output):
        m = EXPORT_DEFAULT_NAME_RE.search(code)
        name = m.group(1) if m else "GeneratedComponent"
        if f"Lazy{name}" not in code:
            code += f"\nexport const Lazy{name} = React.lazy(() => import('./{name}'));"
    else:
        code += "\n" + _comment(output.framework, "code-splitting: load this component through a dynamic import()")
    return replace(output, component_code=code + "\n")


def enhance_accessibility(output: FrameworkOutput) -> FrameworkOutput:
    code = output.component_code
    code = _FIRST_DIV.sub('<div role="main"', code, count=1)
    code = _BUTTON_WITHOUT_LABEL.sub('<button aria-label="Generated button"', code)
    code = _IMG_WITHOUT_ALT.sub('<img alt="Generated image"', code)
    return replace(output, component_code=code)


def memoize(output: FrameworkOutput) -> FrameworkOutput:
    code = output.component_code
    if _is_react(output):
        code = EXPORT_DEFAULT_NAME_RE.sub(lambda m: f"export default React.memo({m.group(1)});", code, count=1)
    else:
        code = code.rstrip("\n") + "\n" + _comment(output.framework, "performance: component output is memoizable") + "\n"
    return replace(output, component_code=code)


# ════════════════════════════════════════════════════════════
# Optimizer
# ════════════════════════════════════════════════════════════

class Optimizer:
    def __init__(self, threshold: float = ENHANCEMENT_THRESHOLD):
        self.threshold = threshold

    def optimize(
        self,
        output: FrameworkOutput,
        config: GenerationConfig,
        quality: QualityAssessment,
    ) -> Tuple[FrameworkOutput, List[str]]:
        applied: List[str] = []

        if config.optimization.treeshaking:
            output = tree_shake(output)
            applied.append(TREE_SHAKING)
        if config.optimization.codesplitting:
            output = split_code(output)
            applied.append(CODE_SPLITTING)
        if quality.categories.get("accessibility", 100) < self.threshold:
            output = enhance_accessibility(output)
            applied.append(ACCESSIBILITY)
        if quality.categories.get("performance", 100) < self.threshold:
            output = memoize(output)
            applied.append(PERFORMANCE)

        logger.debug("optimizations applied: %s", ", ".join(applied) or "none")
        return output, applied
