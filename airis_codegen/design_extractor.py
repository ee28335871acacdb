"""
Design Extractor — design document tree → normalized scene + design tokens

Walks a Figma-style node tree depth-first. Containers recurse, leaves
(rectangle / ellipse / text) emit one shape each with absolute geometry.
Tokens (colors, fonts, spacing, radii) are collected during the same walk.
"""

from __future__ import annotations

import html
import logging
from typing import Iterable, List, Optional, Tuple

from .errors import InvalidInputError
from .models import DEFAULT_BOUNDS, BoundingBox, DesignTokenSet, NormalizedScene, Shape

logger = logging.getLogger(__name__)

CONTAINER_TYPES = {
    "DOCUMENT", "CANVAS", "FRAME", "GROUP", "COMPONENT", "COMPONENT_SET", "INSTANCE", "SECTION",
}
# Vector-ish leaves are approximated by their bounding rectangle
RECT_TYPES = {"RECTANGLE", "VECTOR", "LINE", "STAR", "POLYGON", "BOOLEAN_OPERATION", "REGULAR_POLYGON"}
ELLIPSE_TYPES = {"ELLIPSE"}
TEXT_TYPES = {"TEXT"}

SPACING_KEYS = ("itemSpacing", "counterAxisSpacing", "paddingTop", "paddingRight", "paddingBottom", "paddingLeft")

TEXT_BASELINE_OFFSET = 20
MAX_SPACING_TOKENS = 10
MAX_DEPTH = 256
BLACK = "rgb(0, 0, 0)"


class _Untraversable(Exception):
    pass


# ════════════════════════════════════════════════════════════
# Fill / token helpers
# ════════════════════════════════════════════════════════════

def _channel(value) -> int:
    try:
        v = float(value)
    except (TypeError, ValueError):
        return 0
    return int(round(max(0.0, min(1.0, v)) * 255))


def _px(num: float) -> str:
    if float(num).is_integer():
        return f"{int(num)}px"
    return f"{num:g}px"


def resolve_fill(fills) -> str:
    """Color string for the first fill entry; black when absent or unsupported."""
    if not isinstance(fills, list) or not fills:
        return BLACK
    fill = fills[0]
    if not isinstance(fill, dict) or fill.get("type") != "SOLID":
        return BLACK
    c = fill.get("color")
    if not isinstance(c, dict):
        c = {}
    r, g, b = _channel(c.get("r", 0)), _channel(c.get("g", 0)), _channel(c.get("b", 0))
    try:
        alpha = float(c.get("a", 1)) * float(fill.get("opacity", 1))
    except (TypeError, ValueError):
        alpha = 1.0
    alpha = max(0.0, min(1.0, alpha))
    if alpha < 1:
        return f"rgba({r}, {g}, {b}, {round(alpha, 3):g})"
    return f"rgb({r}, {g}, {b})"


def _image_ref(fills) -> Optional[str]:
    if isinstance(fills, list) and fills and isinstance(fills[0], dict):
        if fills[0].get("type") == "IMAGE":
            return str(fills[0].get("imageRef") or fills[0].get("src") or "")
    return None


def quantize_spacing(candidates: Iterable, limit: int = MAX_SPACING_TOKENS) -> List[str]:
    """Keep values in (0, 100] that sit on the 4px grid, first-seen order, capped."""
    tokens: List[str] = []
    for value in candidates:
        if isinstance(value, bool):
            continue
        try:
            num = float(value)
        except (TypeError, ValueError):
            continue
        if not 0 < num <= 100 or num % 4:
            continue
        token = _px(num)
        if token in tokens:
            continue
        tokens.append(token)
        if len(tokens) >= limit:
            break
    return tokens


def _number(value) -> Optional[float]:
    """Plain int/float only; bools and numeric strings are rejected."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    return value


def _dedupe(values: Iterable[str]) -> Tuple[str, ...]:
    return tuple(dict.fromkeys(v for v in values if isinstance(v, str) and v))


def _read_box(node: dict) -> Optional[BoundingBox]:
    bbox = node.get("absoluteBoundingBox")
    if not isinstance(bbox, dict):
        return None
    try:
        return BoundingBox.from_dict(bbox)
    except (TypeError, ValueError):
        return None


# ════════════════════════════════════════════════════════════
# Placeholder
# ════════════════════════════════════════════════════════════

def placeholder_scene() -> NormalizedScene:
    """Bordered card with heading, body and button, inside the default box."""

    def text(name: str, chars: str, x: float, y: float, w: float, h: float, size: float, color: str) -> Shape:
        return Shape(
            kind="text", name=name, geometry={"x": x, "y": y + TEXT_BASELINE_OFFSET},
            color=color, box=BoundingBox(x, y, w, h), text=chars,
            font_family="Inter", font_size=size,
        )

    shapes = (
        Shape(kind="rect", name="Card", geometry=DEFAULT_BOUNDS.to_dict(), color="rgb(255, 255, 255)",
              box=DEFAULT_BOUNDS, radius=8),
        text("Heading", "Generated Component", 24, 24, 352, 32, 24, "rgb(26, 26, 26)"),
        text("Body", "This component was generated from your design.", 24, 72, 352, 48, 16, "rgb(102, 102, 102)"),
        Shape(kind="rect", name="Button", geometry={"x": 24, "y": 220, "width": 140, "height": 44},
              color="rgb(0, 123, 255)", box=BoundingBox(24, 220, 140, 44), radius=6),
        text("Button Label", "Get Started", 48, 232, 92, 20, 14, "rgb(255, 255, 255)"),
    )
    return NormalizedScene(shapes=shapes, bounds=DEFAULT_BOUNDS, name="placeholder-card", placeholder=True)


def _placeholder_tokens(scene: NormalizedScene) -> DesignTokenSet:
    return DesignTokenSet(
        colors=_dedupe(s.color for s in scene.shapes),
        fonts=("Inter",),
        spacing=tuple(quantize_spacing([24, 16, 12])),
        radii=("8px", "6px"),
    )


# ════════════════════════════════════════════════════════════
# Extractor
# ════════════════════════════════════════════════════════════

class DesignExtractor:
    """Turns one design document into a NormalizedScene and a DesignTokenSet."""

    def __init__(self, max_depth: int = MAX_DEPTH):
        self.max_depth = max_depth
        self._reset()

    def _reset(self) -> None:
        self._shapes: List[Shape] = []
        self._bounds: Optional[BoundingBox] = None
        self._spacing: List = []
        self._radii: List[str] = []
        self._ancestors: set = set()

    def extract(self, document) -> Tuple[NormalizedScene, DesignTokenSet]:
        if document is None:
            raise InvalidInputError("design document is required")

        self._reset()
        root = self._resolve_root(document)
        name = "scene"
        if root is not None:
            name = str(root.get("name") or "scene") if isinstance(root, dict) else name
            try:
                self._walk(root, 0)
            except (_Untraversable, RecursionError) as exc:
                logger.warning("design tree could not be traversed (%s); using placeholder scene", exc)
                self._reset()

        if not self._shapes:
            scene = placeholder_scene()
            return scene, _placeholder_tokens(scene)

        scene = NormalizedScene(
            shapes=tuple(self._shapes),
            bounds=self._bounds or DEFAULT_BOUNDS,
            name=name,
        )
        tokens = DesignTokenSet(
            colors=_dedupe(s.color for s in self._shapes),
            fonts=_dedupe(s.font_family for s in self._shapes if s.font_family),
            spacing=tuple(quantize_spacing(self._spacing)),
            radii=_dedupe(self._radii),
        )
        logger.debug("extracted %d shapes, %d colors from '%s'", len(scene.shapes), len(tokens.colors), name)
        return scene, tokens

    def _resolve_root(self, document):
        if not isinstance(document, dict):
            logger.warning("design document is %s, not an object; using placeholder scene", type(document).__name__)
            return None
        if "document" in document:
            return document.get("document")
        if "type" in document or "children" in document:
            return document
        return None

    def _walk(self, node, depth: int) -> None:
        if not isinstance(node, dict):
            raise _Untraversable(f"node is {type(node).__name__}")
        if depth > self.max_depth:
            raise _Untraversable(f"tree deeper than {self.max_depth}")
        if id(node) in self._ancestors:
            raise _Untraversable("cycle detected")
        if node.get("visible", True) is False:
            return

        box = _read_box(node)
        if box is not None:
            self._bounds = box if self._bounds is None else self._bounds.union(box)

        for key in SPACING_KEYS:
            if key in node:
                self._spacing.append(node[key])
        self._collect_radii(node)

        node_type = str(node.get("type", "FRAME")).upper()
        children = node.get("children")

        if node_type in RECT_TYPES | ELLIPSE_TYPES | TEXT_TYPES:
            self._shapes.append(self._leaf(node, node_type, box))
            return

        if children is None:
            return
        if not isinstance(children, list):
            raise _Untraversable(f"children of '{node.get('name', '?')}' is not a list")
        self._ancestors.add(id(node))
        try:
            for child in children:
                self._walk(child, depth + 1)
        finally:
            self._ancestors.discard(id(node))

    def _collect_radii(self, node: dict) -> None:
        radius = _number(node.get("cornerRadius"))
        if radius is not None and radius > 0:
            self._radii.append(_px(radius))
        corners = node.get("rectangleCornerRadii")
        if not isinstance(corners, list):
            return
        for corner in map(_number, corners):
            if corner is not None and corner > 0:
                self._radii.append(_px(corner))

    def _leaf(self, node: dict, node_type: str, box: Optional[BoundingBox]) -> Shape:
        box = box or BoundingBox(0, 0, 0, 0)
        name = str(node.get("name", node_type.title()))
        fills = node.get("fills")
        color = resolve_fill(fills)
        radius = _number(node.get("cornerRadius"))

        if node_type in TEXT_TYPES:
            style = node.get("style")
            if not isinstance(style, dict):
                style = {}
            family = style.get("fontFamily")
            return Shape(
                kind="text",
                name=name,
                geometry={"x": box.x, "y": box.y + TEXT_BASELINE_OFFSET},
                color=color,
                box=box,
                text=str(node.get("characters", "")),
                font_family=family if isinstance(family, str) else None,
                font_size=_number(style.get("fontSize")),
            )
        if node_type in ELLIPSE_TYPES:
            rx, ry = box.width / 2, box.height / 2
            return Shape(
                kind="ellipse",
                name=name,
                geometry={"cx": box.x + rx, "cy": box.y + ry, "rx": rx, "ry": ry},
                color=color,
                box=box,
                image_ref=_image_ref(fills),
            )
        return Shape(
            kind="rect",
            name=name,
            geometry=box.to_dict(),
            color=color,
            box=box,
            radius=radius,
            image_ref=_image_ref(fills),
        )


def extract_design(document) -> Tuple[NormalizedScene, DesignTokenSet]:
    """Module-level shortcut for ``DesignExtractor().extract``."""
    return DesignExtractor().extract(document)


# ════════════════════════════════════════════════════════════
# SVG rendering (preview)
# ════════════════════════════════════════════════════════════

def _num(v: float) -> str:
    return f"{v:g}"


def scene_to_svg(scene: NormalizedScene) -> str:
    b = scene.bounds
    lines = [
        f'<svg xmlns="http://www.w3.org/2000/svg" viewBox="{_num(b.x)} {_num(b.y)} '
        f'{_num(b.width)} {_num(b.height)}" width="{_num(b.width)}" height="{_num(b.height)}">'
    ]
    for shape in scene.shapes:
        g = shape.geometry
        label = html.escape(shape.name, quote=True)
        if shape.kind == "ellipse":
            lines.append(
                f'  <ellipse data-name="{label}" cx="{_num(g["cx"])}" cy="{_num(g["cy"])}" '
                f'rx="{_num(g["rx"])}" ry="{_num(g["ry"])}" fill="{shape.color}" />'
            )
        elif shape.kind == "text":
            size = f' font-size="{_num(shape.font_size)}"' if shape.font_size else ""
            lines.append(
                f'  <text data-name="{label}" x="{_num(g["x"])}" y="{_num(g["y"])}"{size} '
                f'fill="{shape.color}">{html.escape(shape.text or "")}</text>'
            )
        else:
            rx = f' rx="{_num(shape.radius)}"' if shape.radius else ""
            lines.append(
                f'  <rect data-name="{label}" x="{_num(g["x"])}" y="{_num(g["y"])}" '
                f'width="{_num(g["width"])}" height="{_num(g["height"])}"{rx} fill="{shape.color}" />'
            )
    lines.append("</svg>")
    return "\n".join(lines)
