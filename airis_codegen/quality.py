"""
Quality Assessor — six-category scoring of a framework-adapted component

All weights live in ScoringWeights so a different scoring policy can be
pinned without touching the checks themselves.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Dict, List, Tuple

from .config import GenerationConfig
from .models import FrameworkOutput, QualityAssessment, QualityIssue

ARIA_PATTERN = re.compile(r"aria-|role=|alt=")
MEDIA_QUERY = re.compile(r"@media")
CSS_VARIABLE = re.compile(r"var\(--")
MODERN_LAYOUT = re.compile(r"display:\s*(?:grid|flex)|\bgrid-template|\bflex-direction")
TYPE_DECLARATION = re.compile(r"\b(?:interface|type)\s+\w+")
FUNCTION_COMPONENT = re.compile(r"React\.FC|\bfunction\b|=\s*\([^)]*\)\s*=>|=\s*\(\{")
COMMENT = re.compile(r"/\*|//|<!--")
RESPONSIVE = re.compile(r"@media|\d(?:rem|em)\b|\d%")

RAW_HTML = re.compile(r"dangerouslySetInnerHTML|v-html|innerHTML\s*=")
DYNAMIC_EVAL = re.compile(r"\beval\(|new Function\(")
DOCUMENT_WRITE = re.compile(r"document\.write")


@dataclass(frozen=True)
class ScoringWeights:
    """Baselines, bonuses and penalties for every category."""

    visual_base: float = 80
    visual_media_query: float = 10
    visual_variables: float = 5
    visual_layout: float = 5

    code_base: float = 70
    code_typed: float = 15
    code_function_component: float = 10
    code_comments: float = 5

    performance_base: float = 75
    performance_treeshaking: float = 8
    performance_codesplitting: float = 8
    performance_lazy_loading: float = 9
    performance_bundle_analysis: float = 5

    accessibility_pass: float = 95
    accessibility_fail: float = 60

    maintainability_comments: Tuple[float, float] = (40, 20)
    maintainability_typed: Tuple[float, float] = (30, 10)
    maintainability_tests: Tuple[float, float] = (30, 0)

    security_base: float = 90
    security_raw_html: float = 20
    security_dynamic_eval: float = 30
    security_document_write: float = 25

    performance_threshold: float = 90
    maintainability_threshold: float = 90
    accessibility_threshold: float = 95


DEFAULT_WEIGHTS = ScoringWeights()


def _clamp(score: float) -> float:
    return max(0.0, min(100.0, float(score)))


class QualityAssessor:
    def __init__(self, weights: ScoringWeights = DEFAULT_WEIGHTS):
        self.weights = weights

    # ── categories ────────────────────────────────────────────

    def visual_score(self, styles: str) -> float:
        w = self.weights
        score = w.visual_base
        if MEDIA_QUERY.search(styles):
            score += w.visual_media_query
        if CSS_VARIABLE.search(styles):
            score += w.visual_variables
        if MODERN_LAYOUT.search(styles):
            score += w.visual_layout
        return _clamp(score)

    def code_score(self, code: str, config: GenerationConfig) -> float:
        w = self.weights
        score = w.code_base
        if config.typescript and TYPE_DECLARATION.search(code):
            score += w.code_typed
        if FUNCTION_COMPONENT.search(code):
            score += w.code_function_component
        if COMMENT.search(code):
            score += w.code_comments
        return _clamp(score)

    def performance_score(self, config: GenerationConfig) -> float:
        w = self.weights
        opt = config.optimization
        score = w.performance_base
        if opt.treeshaking:
            score += w.performance_treeshaking
        if opt.codesplitting:
            score += w.performance_codesplitting
        if opt.lazy_loading:
            score += w.performance_lazy_loading
        if opt.bundle_analysis:
            score += w.performance_bundle_analysis
        return _clamp(score)

    def accessibility_score(self, code: str) -> float:
        w = self.weights
        return _clamp(w.accessibility_pass if ARIA_PATTERN.search(code) else w.accessibility_fail)

    def maintainability_score(self, code: str, config: GenerationConfig) -> float:
        w = self.weights
        typed = config.typescript and bool(TYPE_DECLARATION.search(code))
        score = (
            w.maintainability_comments[0 if COMMENT.search(code) else 1]
            + w.maintainability_typed[0 if typed else 1]
            + w.maintainability_tests[0 if config.testing.unit_tests else 1]
        )
        return _clamp(score)

    def security_score(self, code: str) -> float:
        w = self.weights
        score = w.security_base
        if RAW_HTML.search(code):
            score -= w.security_raw_html
        if DYNAMIC_EVAL.search(code):
            score -= w.security_dynamic_eval
        if DOCUMENT_WRITE.search(code):
            score -= w.security_document_write
        return _clamp(score)

    # ── assessment ────────────────────────────────────────────

    def assess(self, output: FrameworkOutput, config: GenerationConfig) -> QualityAssessment:
        code = output.component_code or ""
        styles = output.style_code or ""
        w = self.weights

        categories: Dict[str, float] = {
            "visual": self.visual_score(styles),
            "code": self.code_score(code, config),
            "performance": self.performance_score(config),
            "accessibility": self.accessibility_score(code),
            "maintainability": self.maintainability_score(code, config),
            "security": self.security_score(code),
        }

        issues: List[QualityIssue] = []
        if not ARIA_PATTERN.search(code):
            a11y = config.accessibility
            strict = a11y.screen_reader and a11y.wcag_level in ("AA", "AAA")
            issues.append(QualityIssue(
                level="error" if strict else "warning",
                message="Missing accessibility attributes",
                category="accessibility",
            ))
        if not config.testing.unit_tests:
            issues.append(QualityIssue(
                level="warning",
                message="Unit tests are disabled",
                category="maintainability",
            ))

        recommendations: List[str] = []
        if config.typescript and not TYPE_DECLARATION.search(code):
            recommendations.append("Enable TypeScript for better type safety")
        if not RESPONSIVE.search(styles):
            recommendations.append("Add responsive design patterns")
        if categories["performance"] < w.performance_threshold:
            recommendations.append("Enable additional build optimizations (tree shaking, code splitting, lazy loading)")
        if categories["maintainability"] < w.maintainability_threshold:
            recommendations.append("Add comments, type declarations and unit tests to improve maintainability")
        if categories["accessibility"] < w.accessibility_threshold:
            recommendations.append("Add ARIA labels, roles and alt text for assistive technologies")

        return QualityAssessment(categories=categories, issues=issues, recommendations=recommendations)
