"""
Background task handlers — pure functions run by the dispatcher's worker

Every handler takes a JSON-shaped payload and returns a JSON-shaped result,
so the same functions can be called locally when the pool is unavailable.
"""

import re
from typing import Callable, Dict, List

from .models import BoundingBox, ComponentElement, NormalizedScene
from .synthesizer import classify_elements, render_component

TASK_PARSE_SCENE = "parse-scene"
TASK_TRANSFORM = "transform"
TASK_OPTIMIZE = "optimize"
TASK_VALIDATE = "validate"
TASK_ANALYZE_COMPLEXITY = "analyze-complexity"

MAX_NESTING_DEPTH = 4
MAX_FUNCTION_LINES = 50

_ROOT_OPEN = re.compile(
    r"<div className=\{`generated-component \$\{className\}`\}(?P<active> data-active=\{isActive\})? \{\.\.\.props\}>"
)
_ON_CLICK = re.compile(r"onClick=\{\(\) => (?P<body>.*?)\}>")
_TOGGLE = "setIsActive(!isActive)"

# 各框架的根節點寫法：(無狀態, 有狀態)
_ROOT_BY_FRAMEWORK = {
    "vue": (
        "<div :class=\"['generated-component', className]\">",
        "<div :class=\"['generated-component', className]\" :data-active=\"isActive\">",
    ),
    "svelte": (
        '<div class="generated-component {className}" {...$$restProps}>',
        '<div class="generated-component {className}" data-active={isActive} {...$$restProps}>',
    ),
    "angular": (
        '<div class="generated-component {{ className }}">',
        '<div class="generated-component {{ className }}" [attr.data-active]="isActive">',
    ),
    "html": (
        '<div class="generated-component">',
        '<div class="generated-component" data-active="false">',
    ),
}

_ATTRIBUTE_NAMES = (
    (re.compile(r"\bclassName="), "class="),
    (re.compile(r"\bhtmlFor="), "for="),
)

_REACT_IMPORT = re.compile(r"^import React(?:, \{[^}]*\})? from 'react';\n?", re.MULTILINE)

_BLOCK_COMMENT = re.compile(r"/\*.*?\*/", re.DOTALL)
_LINE_COMMENT = re.compile(r"(?<![:'\"])//.*$", re.MULTILINE)
_EXPORT = re.compile(r"\bexport\b")
_BRANCHES = re.compile(r"\bif\s*\(|\belse\b|\bswitch\b|\bcase\b")
_LOOPS = re.compile(r"\bfor\s*\(|\bwhile\s*\(|\.forEach\b|\.map\s*\(")


def _statements(body: str) -> str:
    body = body.strip()
    if body.startswith("{") and body.endswith("}"):
        body = body[1:-1].strip()
    return body.rstrip(";")


def _rewrite_handler(framework: str, match: "re.Match") -> str:
    body = _statements(match.group("body"))
    if framework == "vue":
        return f'@click="{body.replace(_TOGGLE, "isActive = !isActive")}">'
    if framework == "svelte":
        return f"on:click={{() => {{ {body.replace(_TOGGLE, 'isActive = !isActive')}; }}}}>"
    if framework == "angular":
        return '(click)="handleClick()">'
    return 'type="button">'


def rewrite_syntax(code: str, framework: str) -> str:
    """Rewrite React-flavoured markup into another framework's template syntax.

    Covers the root container, click handlers, attribute names and the React
    import; anything else passes through untouched. ``react`` is a no-op.
    """
    if framework == "react" or framework not in _ROOT_BY_FRAMEWORK:
        return code
    plain, stateful = _ROOT_BY_FRAMEWORK[framework]
    code = _ROOT_OPEN.sub(lambda m: stateful if m.group("active") else plain, code)
    code = _ON_CLICK.sub(lambda m: _rewrite_handler(framework, m), code)
    for pattern, repl in _ATTRIBUTE_NAMES:
        code = pattern.sub(repl, code)
    return _REACT_IMPORT.sub("", code)


def strip_code(code: str) -> str:
    """Drop comments and blank lines, collapse runs of whitespace."""
    code = _BLOCK_COMMENT.sub("", code)
    code = _LINE_COMMENT.sub("", code)
    lines = []
    for line in code.splitlines():
        stripped = re.sub(r"[ \t]+", " ", line).strip()
        if stripped:
            lines.append(stripped)
    return "\n".join(lines)


def minify_css(css: str) -> str:
    """Drop comments and all optional whitespace; the last ``;`` of a block goes too."""
    css = _BLOCK_COMMENT.sub("", css)
    css = re.sub(r"\s+", " ", css)
    css = re.sub(r";\s*}", "}", css)
    css = re.sub(r"\s*([{},:;])\s*", r"\1", css)
    return css.strip()


def nesting_depth(code: str) -> int:
    """Deepest ``{`` nesting reached anywhere in ``code``."""
    depth = deepest = 0
    for ch in code:
        if ch == "{":
            depth += 1
            deepest = max(deepest, depth)
        elif ch == "}":
            depth -= 1
    return deepest


# ════════════════════════════════════════════════════════════
# Handlers
# ════════════════════════════════════════════════════════════

def parse_scene(payload: dict) -> dict:
    scene = NormalizedScene.from_dict(payload["scene"])
    boxes = [BoundingBox.from_dict(b) for b in payload.get("buttonBoxes") or []]
    elements = classify_elements(scene, boxes)
    return {"elements": [e.to_dict() for e in elements], "nodeCount": len(scene.shapes)}


def transform(payload: dict) -> dict:
    elements = [ComponentElement.from_dict(e) for e in payload.get("elements") or []]
    ir = render_component(elements, payload.get("options") or {})
    return {"markup": ir.markup, "stylesheet": ir.stylesheet}


def optimize(payload: dict) -> dict:
    code = payload.get("code") or ""
    css = payload.get("css") or ""
    optimized = strip_code(code)
    optimized_css = minify_css(css)
    original_size = len(code.encode("utf-8")) + len(css.encode("utf-8"))
    optimized_size = len(optimized.encode("utf-8")) + len(optimized_css.encode("utf-8"))
    return {
        "optimizedCode": optimized,
        "optimizedCss": optimized_css,
        "originalSize": original_size,
        "optimizedSize": optimized_size,
        "savings": original_size - optimized_size,
    }


def analyze_complexity(payload: dict) -> dict:
    code = payload.get("code")
    if not isinstance(code, str):
        return {"complexity": 1, "issues": [], "depth": 0}

    complexity = 1 + len(_BRANCHES.findall(code)) + len(_LOOPS.findall(code))
    issues: List[str] = []
    depth = nesting_depth(code)
    if depth > MAX_NESTING_DEPTH:
        issues.append(f"High nesting depth: {depth} levels")
        complexity += depth
    length = len(code.split("\n"))
    if length > MAX_FUNCTION_LINES:
        issues.append(f"Long function: {length} lines")
    return {"complexity": complexity, "issues": issues, "depth": depth}


def validate(payload: dict) -> dict:
    code = payload.get("code") or ""
    framework = payload.get("framework", "react")
    issues: List[dict] = []

    if framework in ("react", "angular") and not _EXPORT.search(code):
        issues.append({"type": "warning", "message": "No exports found"})

    bare = _BLOCK_COMMENT.sub("", _LINE_COMMENT.sub("", code))
    if bare.count("{") != bare.count("}"):
        issues.append({"type": "error", "message": "Unbalanced braces"})

    return {"valid": not any(i["type"] == "error" for i in issues), "issues": issues}


TASK_HANDLERS: Dict[str, Callable[[dict], dict]] = {
    TASK_PARSE_SCENE: parse_scene,
    TASK_TRANSFORM: transform,
    TASK_OPTIMIZE: optimize,
    TASK_VALIDATE: validate,
    TASK_ANALYZE_COMPLEXITY: analyze_complexity,
}


def run_task(task_type: str, payload: dict) -> dict:
    handler = TASK_HANDLERS.get(task_type)
    if handler is None:
        raise ValueError(f"Unknown task type: {task_type}")
    return handler(payload)
