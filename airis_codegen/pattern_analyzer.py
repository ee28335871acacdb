"""
Pattern Analyzer — heuristic UI pattern detection over a design subtree

Each node is tested against button / card / form / navigation heuristics,
first match wins. The whole subtree is visited; nothing here is meant to be
clever, it only feeds interactivity hints and suggestions downstream.
"""

from __future__ import annotations

import logging
from typing import List, Optional

from .models import AccessibilityInsight, BoundingBox, DesignPattern

logger = logging.getLogger(__name__)

MAX_DEPTH = 256
MIN_TOUCH_TARGET = 44

_PATTERN_SUGGESTIONS = {
    "card": (
        "Consider adding subtle shadow for depth",
        "Ensure proper spacing between elements",
        "Add hover states for interactivity",
    ),
    "button": (
        "Add focus states for keyboard navigation",
        "Ensure minimum 44px touch target",
        "Consider loading states",
    ),
    "form": (
        "Add proper form validation",
        "Include error states",
        "Group related fields with fieldsets",
    ),
    "navigation": (
        "Implement keyboard navigation",
        "Add ARIA landmarks",
        "Consider mobile hamburger menu",
    ),
}

_CODE_SUGGESTIONS = {
    "card": (
        "Consider using a Card component with proper semantic HTML",
        "Add transition effects for hover states",
    ),
    "button": (
        "Implement button variants (primary, secondary, outline)",
        "Add loading and disabled states",
    ),
    "form": (
        "Use form validation library like react-hook-form",
        "Implement proper error handling and display",
    ),
    "navigation": (
        "Consider using React Router for navigation",
        "Implement responsive navigation with mobile menu",
    ),
}

_PATTERN_CONFIDENCE = {"card": 0.85, "button": 0.9, "form": 0.8, "navigation": 0.75}


def _name(node: dict) -> str:
    return str(node.get("name") or "").lower()


def _children(node: dict) -> list:
    children = node.get("children")
    return [c for c in children if isinstance(c, dict)] if isinstance(children, list) else []


def _box(node: dict) -> Optional[BoundingBox]:
    bbox = node.get("absoluteBoundingBox")
    if not isinstance(bbox, dict):
        return None
    try:
        return BoundingBox.from_dict(bbox)
    except (TypeError, ValueError):
        return None


def _has_fill(node: dict) -> bool:
    fills = node.get("fills")
    return isinstance(fills, list) and len(fills) > 0


# ════════════════════════════════════════════════════════════
# Heuristics
# ════════════════════════════════════════════════════════════

def is_card(node: dict) -> bool:
    return _has_fill(node) and bool(_children(node)) and node.get("type") in ("FRAME", "RECTANGLE")


def _button_dimensions(box: Optional[BoundingBox]) -> bool:
    return box is not None and 60 < box.width < 300 and 30 < box.height < 80


def is_button(node: dict) -> bool:
    has_text = any(c.get("type") == "TEXT" for c in _children(node))
    named = "button" in _name(node) or "btn" in _name(node)
    return has_text and _has_fill(node) and (named or _button_dimensions(_box(node)))


def is_form(node: dict) -> bool:
    for child in _children(node):
        name = _name(child)
        if "input" in name or "field" in name:
            return True
        if child.get("type") == "TEXT" and "label" in name:
            return True
    return False


def _linear_layout(children: list) -> bool:
    if len(children) < 2:
        return False
    first, second = _box(children[0]), _box(children[1])
    if first is None or second is None:
        return False
    return abs(first.y - second.y) < 10 or abs(first.x - second.x) < 10


def is_navigation(node: dict) -> bool:
    children = _children(node)
    if len(children) < 3:
        return False
    keywords = "nav" in _name(node) or "menu" in _name(node)
    return keywords or _linear_layout(children)


def _insights(kind: str, node: dict) -> List[AccessibilityInsight]:
    if kind == "card":
        return [AccessibilityInsight(
            "suggestion", "Add semantic HTML structure",
            "Use <article> or <section> elements for card containers",
        )]
    if kind == "button":
        insights = [AccessibilityInsight(
            "suggestion", "Add proper ARIA labels",
            "Include aria-label or aria-describedby attributes",
        )]
        box = _box(node)
        if box is None or box.width < MIN_TOUCH_TARGET or box.height < MIN_TOUCH_TARGET:
            insights.append(AccessibilityInsight(
                "error", "Touch target too small",
                f"Ensure buttons are at least {MIN_TOUCH_TARGET}px × {MIN_TOUCH_TARGET}px",
            ))
        return insights
    if kind == "form":
        return [
            AccessibilityInsight("error", "Associate labels with form controls",
                                 "Use proper <label> elements or aria-labelledby"),
            AccessibilityInsight("suggestion", "Add form validation feedback",
                                 "Implement aria-invalid and aria-describedby for errors"),
        ]
    return [
        AccessibilityInsight("error", "Add navigation landmarks",
                             "Use <nav> element with proper aria-label"),
        AccessibilityInsight("suggestion", "Implement keyboard navigation",
                             "Ensure all items are focusable and support arrow key navigation"),
    ]


# 按鈕先於卡片：帶底色與文字的 FRAME 兩者皆符合
_DETECTORS = (("button", is_button), ("card", is_card), ("form", is_form), ("navigation", is_navigation))


def identify(node: dict) -> Optional[DesignPattern]:
    for kind, detector in _DETECTORS:
        if detector(node):
            return DesignPattern(
                type=kind,
                confidence=_PATTERN_CONFIDENCE[kind],
                suggestions=_PATTERN_SUGGESTIONS[kind],
                accessibility=tuple(_insights(kind, node)),
                node_name=str(node.get("name") or ""),
                bounds=_box(node),
            )
    return None


def code_suggestions(patterns) -> List[str]:
    """Implementation hints per detected pattern type, duplicates dropped."""
    suggestions: List[str] = []
    for pattern in patterns:
        for text in _CODE_SUGGESTIONS.get(pattern.type, ()):
            if text not in suggestions:
                suggestions.append(text)
    return suggestions


# ════════════════════════════════════════════════════════════
# Analyzer
# ════════════════════════════════════════════════════════════

class PatternAnalyzer:
    """Default pattern analyzer; walks the given node and all descendants."""

    code_suggestions = staticmethod(code_suggestions)

    def __init__(self, max_depth: int = MAX_DEPTH):
        self.max_depth = max_depth

    async def analyze(self, node) -> List[DesignPattern]:
        patterns: List[DesignPattern] = []
        if isinstance(node, dict):
            self._visit(node, 0, set(), patterns)
        logger.debug("detected %d design patterns", len(patterns))
        return patterns

    def _visit(self, node: dict, depth: int, ancestors: set, out: List[DesignPattern]) -> None:
        if depth > self.max_depth or id(node) in ancestors or node.get("visible", True) is False:
            return
        pattern = identify(node)
        if pattern is not None:
            out.append(pattern)
        ancestors.add(id(node))
        for child in _children(node):
            self._visit(child, depth + 1, ancestors, out)
        ancestors.discard(id(node))

