"""
Framework Adapter — React-flavoured ComponentIR → target framework source

react passes the markup through; vue / svelte / angular / html re-host the
JSX body in their own component shell after syntax rewriting. Each target
also declares the package.json dependencies and scripts it needs.
"""

from __future__ import annotations

import logging
import textwrap
from typing import Dict, List, Tuple

from .config import GenerationConfig
from .models import FrameworkOutput, FrameworkTemplate
from .worker_tasks import rewrite_syntax

logger = logging.getLogger(__name__)

COMPONENT_NAME = "GeneratedComponent"

SUPPORTED_FRAMEWORKS = ("react", "vue", "svelte", "angular", "html")


def _kebab(name: str) -> str:
    out = []
    for i, ch in enumerate(name):
        if ch.isupper() and i:
            out.append("-")
        out.append(ch.lower() if ch.isalnum() else "-")
    slug = "".join(out).strip("-")
    while "--" in slug:
        slug = slug.replace("--", "-")
    return slug or "unnamed"


def jsx_body(markup: str) -> str:
    """The JSX returned by the component, dedented to column 0."""
    lines = markup.splitlines()
    try:
        start = next(i for i, line in enumerate(lines) if line.strip() == "return (")
        end = next(i for i in range(start + 1, len(lines)) if lines[i].strip() == ");")
    except StopIteration:
        return markup
    return textwrap.dedent("\n".join(lines[start + 1:end]))


def _indent(text: str, spaces: int) -> str:
    return textwrap.indent(text, " " * spaces)


def _is_interactive(markup: str) -> bool:
    return "useState(" in markup


def _style_ext(config: GenerationConfig) -> str:
    return "scss" if config.styling == "scss" else "css"


# ════════════════════════════════════════════════════════════
# Templates (package.json descriptors)
# ════════════════════════════════════════════════════════════

def _template(framework: str, config: GenerationConfig) -> FrameworkTemplate:
    deps: Dict[str, str] = {}
    dev: Dict[str, str] = {"vite": "^5.0.0"}
    scripts = {"dev": "vite", "build": "vite build", "preview": "vite preview"}

    if framework == "react":
        deps.update({"react": "^18.2.0", "react-dom": "^18.2.0"})
        dev["@vitejs/plugin-react"] = "^4.2.0"
        if config.typescript:
            dev.update({"@types/react": "^18.2.0", "@types/react-dom": "^18.2.0"})
        if config.testing.unit_tests:
            dev.update({"@testing-library/react": "^14.1.0", "@testing-library/jest-dom": "^6.1.0", "jsdom": "^23.0.0"})
    elif framework == "vue":
        deps["vue"] = "^3.4.0"
        dev["@vitejs/plugin-vue"] = "^5.0.0"
        if config.typescript:
            dev["vue-tsc"] = "^1.8.0"
        if config.testing.unit_tests:
            dev["@vue/test-utils"] = "^2.4.0"
    elif framework == "svelte":
        dev.update({"svelte": "^4.2.0", "@sveltejs/vite-plugin-svelte": "^3.0.0"})
        if config.typescript:
            dev["svelte-check"] = "^3.6.0"
    elif framework == "angular":
        deps.update({"@angular/core": "^17.0.0", "@angular/common": "^17.0.0", "rxjs": "^7.8.0"})
        dev = {"@angular/cli": "^17.0.0", "@angular/compiler-cli": "^17.0.0"}
        scripts = {"start": "ng serve", "build": "ng build"}
        if config.testing.unit_tests:
            scripts["test"] = "ng test"
    # html: 只需 vite 做開發伺服器

    if config.typescript and framework in ("react", "vue", "svelte", "angular"):
        dev["typescript"] = "^5.3.0"
    if config.styling == "scss":
        dev["sass"] = "^1.69.0"
    elif config.styling == "tailwind":
        dev.update({"tailwindcss": "^3.4.0", "postcss": "^8.4.0", "autoprefixer": "^10.4.0"})
    if config.testing.unit_tests and framework != "angular":
        dev["vitest"] = "^1.0.0"
        scripts["test"] = "vitest"
    if config.optimization.bundle_analysis:
        dev["rollup-plugin-visualizer"] = "^5.9.0"
    return FrameworkTemplate(dependencies=deps, dev_dependencies=dev, scripts=scripts)


# ════════════════════════════════════════════════════════════
# Per-framework shells
# ════════════════════════════════════════════════════════════

def _react(markup: str, styles: str, config: GenerationConfig) -> Tuple[str, str, Dict[str, str]]:
    ext = "ts" if config.typescript else "js"
    index = f"export {{ default }} from './components/{COMPONENT_NAME}';\n"
    return markup, styles, {f"index.{ext}": index}


def _vue(markup: str, styles: str, config: GenerationConfig) -> Tuple[str, str, Dict[str, str]]:
    body = rewrite_syntax(jsx_body(markup), "vue")
    lang = ' lang="ts"' if config.typescript else ""
    script = ["const props = defineProps({ className: { type: String, default: '' } });"]
    if _is_interactive(markup):
        script = ["import { ref } from 'vue';", ""] + script + ["const isActive = ref(false);"]
    lang_style = ' lang="scss"' if config.styling == "scss" else ""
    code = (
        "<template>\n"
        + _indent(body, 2)
        + "\n</template>\n\n"
        f"<script setup{lang}>\n"
        + "\n".join(script)
        + "\n</script>\n\n"
        f"<style scoped{lang_style} src=\"../styles/{COMPONENT_NAME}.{_style_ext(config)}\"></style>\n"
    )
    return code, styles, {}


def _svelte(markup: str, styles: str, config: GenerationConfig) -> Tuple[str, str, Dict[str, str]]:
    body = rewrite_syntax(jsx_body(markup), "svelte")
    lang = ' lang="ts"' if config.typescript else ""
    script = ["export let className = '';"]
    if _is_interactive(markup):
        script.append("let isActive = false;")
    code = (
        f"<script{lang}>\n"
        + _indent("\n".join(script), 2)
        + "\n</script>\n\n"
        + body
        + "\n\n<style>\n"
        + styles
        + "</style>\n"
    )
    return code, styles, {}


def _angular(markup: str, styles: str, config: GenerationConfig) -> Tuple[str, str, Dict[str, str]]:
    body = rewrite_syntax(jsx_body(markup), "angular")
    selector = f"app-{_kebab(COMPONENT_NAME)}"
    members: List[str] = ["@Input() className = '';"]
    if _is_interactive(markup):
        members.append("isActive = false;")
    handler_body = "console.log('Button clicked');"
    if _is_interactive(markup):
        handler_body += "\n    this.isActive = !this.isActive;"
    void = ": void" if config.typescript else ""
    members += ["", f"handleClick(){void} {{", f"    {handler_body}", "}"]
    code = (
        "import { Component, Input } from '@angular/core';\n\n"
        "@Component({\n"
        f"  selector: '{selector}',\n"
        "  standalone: true,\n"
        "  template: `\n"
        + _indent(body, 4)
        + "\n  `,\n"
        f"  styleUrls: ['../styles/{COMPONENT_NAME}.{_style_ext(config)}'],\n"
        "})\n"
        f"export class {COMPONENT_NAME} {{\n"
        + _indent("\n".join(members), 2)
        + "\n}\n"
    )
    return code, styles, {}


def _html(markup: str, styles: str, config: GenerationConfig) -> Tuple[str, str, Dict[str, str]]:
    body = rewrite_syntax(jsx_body(markup), "html")
    script = (
        "document.querySelectorAll('.generated-component button').forEach((button) => {\n"
        "  button.addEventListener('click', () => console.log('Button clicked'));\n"
        "});\n"
    )
    page = (
        "<!doctype html>\n"
        "<html>\n<head>\n  <meta charset=\"utf-8\">\n"
        "  <meta name=\"viewport\" content=\"width=device-width, initial-scale=1\">\n"
        f"  <title>{COMPONENT_NAME}</title>\n"
        f"  <link rel=\"stylesheet\" href=\"../styles/{COMPONENT_NAME}.{_style_ext(config)}\">\n"
        "</head>\n<body>\n"
        + _indent(body, 2)
        + "\n  <script>\n"
        + _indent(script, 4)
        + "  </script>\n</body>\n</html>\n"
    )
    return page, styles, {}


_BUILDERS = {
    "react": _react,
    "vue": _vue,
    "svelte": _svelte,
    "angular": _angular,
    "html": _html,
}


class FrameworkAdapter:
    """Default adapter; raises ValueError for frameworks it does not know."""

    async def adapt(self, markup: str, styles: str, config: GenerationConfig) -> FrameworkOutput:
        framework = (config.framework or "react").lower()
        builder = _BUILDERS.get(framework)
        if builder is None:
            raise ValueError(f"Unsupported target: {framework}")
        component_code, style_code, extra = builder(markup, styles, config)
        logger.debug("adapted component to %s (%d bytes)", framework, len(component_code))
        return FrameworkOutput(
            framework=framework,
            component_code=component_code,
            style_code=style_code,
            template=_template(framework, config),
            additional_files=extra,
        )
