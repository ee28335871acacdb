"""
Component Synthesizer — normalized scene → framework-neutral component (markup + stylesheet)

The markup is a React-flavoured function component; the framework adapter
rewrites it for other targets. Rendering is pure and runs in the background
pool when a dispatcher is available, locally otherwise.
"""

from __future__ import annotations

import html
import logging
import re
from typing import Iterable, List, Optional, Sequence

from .config import GenerationConfig
from .errors import DispatchError
from .models import (
    ELEMENT_BLOCK,
    ELEMENT_BUTTON,
    ELEMENT_IMAGE,
    ELEMENT_TEXT,
    BoundingBox,
    ComponentElement,
    ComponentIR,
    DesignPattern,
    DesignTokenSet,
    NormalizedScene,
)

logger = logging.getLogger(__name__)

COMPONENT_NAME = "GeneratedComponent"
BREAKPOINT = 768

_BUTTON_NAME = re.compile(r"\b(button|btn|cta)\b", re.IGNORECASE)
_HEADING_NAME = re.compile(r"\bh([1-6])\b", re.IGNORECASE)
_TITLE_NAME = re.compile(r"title|heading|headline", re.IGNORECASE)


# ════════════════════════════════════════════════════════════
# Element recognition
# ════════════════════════════════════════════════════════════

def _semantic_tag(name: str) -> str:
    m = _HEADING_NAME.search(name)
    if m:
        return f"h{m.group(1)}"
    if _TITLE_NAME.search(name):
        return "h2"
    lowered = name.lower()
    if "label" in lowered:
        return "label"
    if "caption" in lowered:
        return "small"
    return "p"


def _size(value) -> Optional[str]:
    if isinstance(value, (int, float)) and value > 0:
        return f"{value:g}px"
    return None


def classify_elements(scene: NormalizedScene, button_boxes: Sequence[BoundingBox] = ()) -> List[ComponentElement]:
    """Map scene shapes to component elements in document order.

    Shapes inside a button area (a pattern-detected button, or a rectangle
    named like one) collapse into a single BUTTON labelled by their text.
    """
    if scene.placeholder:
        return []

    shapes = list(scene.shapes)
    boxes = list(button_boxes) + [s.box for s in shapes if s.kind == "rect" and _BUTTON_NAME.search(s.name)]
    consumed = set()
    elements: List[ComponentElement] = []

    for index, shape in enumerate(shapes):
        if index in consumed:
            continue
        area = next((b for b in boxes if b.width > 0 and b.contains(shape.box)), None)
        if area is not None:
            members = [j for j, s in enumerate(shapes) if j not in consumed and area.contains(s.box)]
            consumed.update(members)
            texts = [shapes[j] for j in members if shapes[j].kind == "text" and shapes[j].text]
            fills = [shapes[j] for j in members if shapes[j].kind != "text"]
            elements.append(ComponentElement(
                kind=ELEMENT_BUTTON,
                content=texts[0].text if texts else "Button",
                background_color=fills[0].color if fills else None,
                color=texts[0].color if texts else None,
            ))
            continue

        if shape.image_ref is not None:
            elements.append(ComponentElement(
                kind=ELEMENT_IMAGE,
                src=f"/assets/{shape.image_ref}.png" if shape.image_ref else None,
                alt=shape.name,
            ))
        elif shape.kind == "text":
            elements.append(ComponentElement(
                kind=ELEMENT_TEXT,
                content=shape.text or "",
                tag=_semantic_tag(shape.name),
                color=shape.color,
                font_size=_size(shape.font_size),
            ))
        else:
            elements.append(ComponentElement(
                kind=ELEMENT_BLOCK,
                content=shape.name,
                background_color=shape.color,
            ))
    return elements


# ════════════════════════════════════════════════════════════
# Rendering
# ════════════════════════════════════════════════════════════

def _jsx_text(value: str) -> str:
    return html.escape(value, quote=False).replace("{", "&#123;").replace("}", "&#125;")


def _attr(value: str) -> str:
    return html.escape(value, quote=True)


def _render_element(index: int, element: ComponentElement, interactive: bool) -> str:
    if element.kind == ELEMENT_TEXT:
        tag = element.tag or "p"
        return f'<{tag} className="text-element-{index}">{_jsx_text(element.content or "Text Content")}</{tag}>'
    if element.kind == ELEMENT_BUTTON:
        handler = "() => console.log('Button clicked')"
        if interactive:
            handler = "() => { console.log('Button clicked'); setIsActive(!isActive); }"
        return (
            f'<button className="button-element-{index}" onClick={{{handler}}}>'
            f'{_jsx_text(element.content or "Button")}</button>'
        )
    if element.kind == ELEMENT_IMAGE:
        src = _attr(element.src or "/placeholder.jpg")
        alt = _attr(element.alt or "Generated image")
        return f'<img src="{src}" alt="{alt}" className="image-element-{index}" />'
    return f'<div className="element-{index}">{_jsx_text(element.content or "Content")}</div>'


FALLBACK_CONTENT = (
    "<h1>Generated Component</h1>",
    "<p>This component was generated from your design.</p>",
    '<button className="cta-button">Get Started</button>',
)


def render_markup(elements: Sequence[ComponentElement], options: dict) -> str:
    name = options.get("componentName", COMPONENT_NAME)
    interactive = bool(options.get("interactive"))
    scene_name = str(options.get("sceneName") or "design").replace("*/", "* /")

    lines = [f"import React{', { useState }' if interactive else ''} from 'react';", ""]
    lines.append(f'/** {name}: generated from the "{scene_name}" design. */')
    if options.get("typescript"):
        lines += [
            f"interface {name}Props {{",
            "  className?: string;",
            "  [key: string]: unknown;",
            "}",
            "",
            f"const {name}: React.FC<{name}Props> = ({{ className = '', ...props }}) => {{",
        ]
    else:
        lines.append(f"const {name} = ({{ className = '', ...props }}) => {{")

    if interactive:
        lines += ["  const [isActive, setIsActive] = useState(false);", ""]

    active_attr = " data-active={isActive}" if interactive else ""
    lines += [
        "  return (",
        f"    <div className={{`generated-component ${{className}}`}}{active_attr} {{...props}}>",
        '      <div className="component-content">',
    ]
    if elements:
        lines += [f"        {_render_element(i, el, interactive)}" for i, el in enumerate(elements)]
    else:
        lines += [f"        {line}" for line in FALLBACK_CONTENT]
    lines += [
        "      </div>",
        "    </div>",
        "  );",
        "};",
        "",
        f"export default {name};",
        "",
    ]
    return "\n".join(lines)


def _rule(selector: str, props: Iterable[tuple]) -> str:
    body = "\n".join(f"  {prop}: {val};" for prop, val in props if val is not None)
    return f"{selector} {{\n{body}\n}}"


def _token_block(tokens: dict) -> Optional[str]:
    props = []
    for key, prefix in (("colors", "color"), ("fonts", "font"), ("spacing", "spacing"), ("radii", "radius")):
        for i, value in enumerate(tokens.get(key) or []):
            props.append((f"--{prefix}-{i}", f"'{value}'" if key == "fonts" else value))
    if not props:
        return None
    return _rule(":root", props)


def _element_rule(index: int, element: ComponentElement) -> str:
    if element.kind == ELEMENT_TEXT:
        return _rule(f".text-element-{index}", [
            ("font-size", element.font_size or "16px"),
            ("color", element.color or "#333333"),
            ("margin-bottom", "8px"),
        ])
    if element.kind == ELEMENT_BUTTON:
        return "\n\n".join([
            _rule(f".button-element-{index}", [
                ("padding", "8px 16px"),
                ("background", element.background_color or "#007bff"),
                ("color", element.color or "#ffffff"),
                ("border", "none"),
                ("border-radius", "4px"),
                ("cursor", "pointer"),
                ("font-size", "14px"),
            ]),
            _rule(f".button-element-{index}:hover", [("opacity", "0.9")]),
        ])
    if element.kind == ELEMENT_IMAGE:
        return _rule(f".image-element-{index}", [
            ("max-width", "100%"),
            ("height", "auto"),
            ("border-radius", "4px"),
        ])
    return _rule(f".element-{index}", [
        ("margin-bottom", "12px"),
        ("background", element.background_color),
    ])


def render_stylesheet(elements: Sequence[ComponentElement], options: dict) -> str:
    tokens = options.get("tokens") or {}
    fonts = tokens.get("fonts") or []
    radii = tokens.get("radii") or []
    font_stack = "-apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, sans-serif"

    blocks = []
    token_block = _token_block(tokens)
    if token_block:
        blocks.append(token_block)
    blocks += [
        _rule(".generated-component", [
            ("display", "flex"),
            ("flex-direction", "column"),
            ("padding", "20px"),
            ("border-radius", "var(--radius-0, 8px)" if radii else "8px"),
            ("background", "#ffffff"),
            ("box-shadow", "0 2px 8px rgba(0, 0, 0, 0.1)"),
            ("font-family", f"var(--font-0), {font_stack}" if fonts else font_stack),
        ]),
        _rule(".component-content", [("flex", "1")]),
        _rule(".generated-component h1", [
            ("margin", "0 0 16px 0"),
            ("font-size", "24px"),
            ("font-weight", "600"),
            ("color", "#1a1a1a"),
        ]),
        _rule(".generated-component p", [
            ("margin", "0 0 16px 0"),
            ("color", "#666666"),
            ("line-height", "1.5"),
        ]),
        _rule(".cta-button", [
            ("padding", "12px 24px"),
            ("background", "#007bff"),
            ("color", "white"),
            ("border", "none"),
            ("border-radius", "6px"),
            ("font-weight", "500"),
            ("cursor", "pointer"),
            ("transition", "background-color 0.2s"),
        ]),
        _rule(".cta-button:hover", [("background", "#0056b3")]),
    ]
    blocks += [_element_rule(i, el) for i, el in enumerate(elements)]
    blocks.append(
        f"@media (max-width: {BREAKPOINT}px) {{\n"
        "  .generated-component {\n    padding: 16px;\n  }\n\n"
        "  .generated-component h1 {\n    font-size: 20px;\n  }\n"
        "}"
    )
    return "\n\n".join(blocks) + "\n"


def render_component(elements: Sequence[ComponentElement], options: dict) -> ComponentIR:
    return ComponentIR(markup=render_markup(elements, options), stylesheet=render_stylesheet(elements, options))


# ════════════════════════════════════════════════════════════
# Synthesizer
# ════════════════════════════════════════════════════════════

class ComponentSynthesizer:
    """Builds the ComponentIR, offloading work to the background pool when possible."""

    def __init__(self, dispatcher=None, component_name: str = COMPONENT_NAME):
        self.dispatcher = dispatcher
        self.component_name = component_name

    async def synthesize(
        self,
        scene: NormalizedScene,
        tokens: DesignTokenSet,
        patterns: Sequence[DesignPattern],
        config: GenerationConfig,
    ) -> ComponentIR:
        button_boxes = [p.bounds for p in patterns if p.type == "button" and p.bounds is not None]
        options = {
            "componentName": self.component_name,
            "typescript": config.typescript,
            "interactive": any(p.interactive for p in patterns),
            "tokens": tokens.to_dict(),
            "sceneName": scene.name,
        }

        elements = await self._elements(scene, button_boxes)
        return await self._render(elements, options)

    async def _elements(self, scene: NormalizedScene, button_boxes: List[BoundingBox]) -> List[ComponentElement]:
        if self.dispatcher is not None:
            try:
                result = await self.dispatcher.submit("parse-scene", {
                    "scene": scene.to_dict(),
                    "buttonBoxes": [b.to_dict() for b in button_boxes],
                })
                return [ComponentElement.from_dict(e) for e in result["elements"]]
            except DispatchError as exc:
                logger.warning("parse-scene dispatch failed (%s); classifying locally", exc)
        return classify_elements(scene, button_boxes)

    async def _render(self, elements: List[ComponentElement], options: dict) -> ComponentIR:
        if self.dispatcher is not None:
            try:
                result = await self.dispatcher.submit("transform", {
                    "elements": [e.to_dict() for e in elements],
                    "options": options,
                })
                if result.get("markup") and result.get("stylesheet"):
                    return ComponentIR(markup=result["markup"], stylesheet=result["stylesheet"])
                logger.warning("transform dispatch returned an empty component; rendering locally")
            except DispatchError as exc:
                logger.warning("transform dispatch failed (%s); rendering locally", exc)
        return render_component(elements, options)
