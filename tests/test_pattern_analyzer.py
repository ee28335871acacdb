"""
PatternAnalyzer 測試：按鈕 / 卡片 / 表單 / 導覽列啟發式與子樹走訪。
"""
import asyncio

from airis_codegen.models import DesignPattern
from airis_codegen.pattern_analyzer import PatternAnalyzer, code_suggestions, identify, is_button, is_form, is_navigation

FILL = [{"type": "SOLID", "color": {"r": 0, "g": 0, "b": 1}}]


def _text(name="Label", x=0, y=0):
    return {"type": "TEXT", "name": name, "absoluteBoundingBox": {"x": x, "y": y, "width": 50, "height": 20}}


def _button(name="Primary", width=120, height=48):
    return {
        "type": "FRAME",
        "name": name,
        "fills": FILL,
        "absoluteBoundingBox": {"x": 0, "y": 0, "width": width, "height": height},
        "children": [_text("Text")],
    }


class TestHeuristics:

    def test_button_by_dimensions(self):
        assert is_button(_button())

    def test_button_by_name(self):
        assert is_button(_button(name="Submit btn", width=400, height=200))

    def test_button_wins_over_card(self):
        pattern = identify(_button())
        assert pattern.type == "button"
        assert pattern.confidence == 0.9
        assert pattern.interactive

    def test_large_filled_frame_is_card(self):
        pattern = identify(_button(name="Panel", width=400, height=300))
        assert pattern.type == "card"
        assert not pattern.interactive

    def test_small_button_flags_touch_target(self):
        pattern = identify(_button(name="Icon button", width=30, height=30))
        assert any(i.message == "Touch target too small" for i in pattern.accessibility)

    def test_form_by_child_names(self):
        assert is_form({"children": [{"type": "RECTANGLE", "name": "Email input"}]})
        assert is_form({"children": [_text("Password label")]})

    def test_navigation_by_layout(self):
        node = {"name": "Row", "children": [_text("A", 0, 0), _text("B", 60, 2), _text("C", 120, 0)]}
        assert is_navigation(node)

    def test_navigation_needs_three_children(self):
        assert not is_navigation({"name": "main nav", "children": [_text(), _text()]})

    def test_unrecognized_node(self):
        assert identify({"type": "TEXT", "name": "Hello"}) is None


class TestAnalyzer:

    def test_walks_whole_subtree(self):
        tree = {"type": "FRAME", "name": "Page", "children": [
            {"type": "FRAME", "name": "Sidebar", "children": [_button()]},
        ]}
        patterns = asyncio.run(PatternAnalyzer().analyze(tree))
        assert [p.type for p in patterns] == ["button"]
        assert patterns[0].node_name == "Primary"
        assert patterns[0].bounds.width == 120

    def test_hidden_nodes_skipped(self):
        hidden = _button()
        hidden["visible"] = False
        assert asyncio.run(PatternAnalyzer().analyze({"type": "FRAME", "children": [hidden]})) == []

    def test_cycle_terminates(self):
        node = _button()
        node["children"].append(node)
        patterns = asyncio.run(PatternAnalyzer().analyze(node))
        assert len(patterns) == 1

    def test_non_dict_input(self):
        assert asyncio.run(PatternAnalyzer().analyze(None)) == []


class TestCodeSuggestions:

    def test_per_pattern_and_deduplicated(self):
        patterns = [DesignPattern(type="button", confidence=0.9), DesignPattern(type="button", confidence=0.9),
                    DesignPattern(type="form", confidence=0.8)]
        assert code_suggestions(patterns) == [
            "Implement button variants (primary, secondary, outline)",
            "Add loading and disabled states",
            "Use form validation library like react-hook-form",
            "Implement proper error handling and display",
        ]

    def test_available_on_analyzer(self):
        patterns = [DesignPattern(type="navigation", confidence=0.75)]
        assert PatternAnalyzer().code_suggestions(patterns)[0] == "Consider using React Router for navigation"

    def test_no_patterns(self):
        assert code_suggestions([]) == []
