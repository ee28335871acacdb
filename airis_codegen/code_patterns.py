"""Regex scanning of generated source: imports, exports, complexity, duplicates."""

import re
from collections import Counter
from typing import List

IMPORT_RE = re.compile(r"""import\s+(?:.*?\s+from\s+)?['"]([^'"]+)['"]""")
EXPORT_RE = re.compile(r"export\s+(?:default\s+)?(?:class|function|const|let|var)\s+(\w+)")
EXPORT_DEFAULT_NAME_RE = re.compile(r"export\s+default\s+(\w+)\s*;")
EXPORT_LIST_RE = re.compile(r"export\s*\{([^}]*)\}")
NAMED_IMPORT_RE = re.compile(r"^import\s+(?P<default>\w+)?\s*,?\s*\{(?P<names>[^}]*)\}\s*from\s*(?P<source>['\"][^'\"]+['\"]);?\s*$", re.MULTILINE)

COMPLEXITY_TOKENS = (
    re.compile(r"\bif\s*\("),
    re.compile(r"\belse\b"),
    re.compile(r"\bfor\s*\("),
    re.compile(r"\bwhile\s*\("),
    re.compile(r"\bswitch\s*\("),
    re.compile(r"\bcase\s+"),
    re.compile(r"\bcatch\s*\("),
    re.compile(r"&&"),
    re.compile(r"\|\|"),
)

REACT_USAGE = re.compile(r"React\.|\buseState\b|\buseEffect\b|\bComponent\b")

LANGUAGES = {
    ".ts": "typescript",
    ".tsx": "typescript",
    ".js": "javascript",
    ".jsx": "javascript",
    ".css": "css",
    ".scss": "scss",
    ".html": "html",
    ".vue": "vue",
    ".svelte": "svelte",
    ".json": "json",
    ".md": "markdown",
}


def extract_imports(content: str) -> List[str]:
    return IMPORT_RE.findall(content)


def extract_exports(content: str) -> List[str]:
    names = EXPORT_RE.findall(content) + EXPORT_DEFAULT_NAME_RE.findall(content)
    for group in EXPORT_LIST_RE.findall(content):
        names += [n.split(" as ")[-1].strip() for n in group.split(",") if n.strip()]
    names = [n for n in names if n != "default"]
    return list(dict.fromkeys(names))


def detect_language(filename: str) -> str:
    dot = filename.rfind(".")
    return LANGUAGES.get(filename[dot:] if dot >= 0 else "", "text")


def complexity(content: str) -> int:
    return 1 + sum(len(p.findall(content)) for p in COMPLEXITY_TOKENS)


def duplicate_lines(content: str) -> int:
    counts = Counter(line.strip() for line in content.split("\n") if line.strip())
    return sum(n - 1 for n in counts.values() if n > 1)


def maintainability_index(content: str) -> float:
    loc = len(content.split("\n"))
    return max(0.0, min(100.0, 100 - complexity(content) * 2 - loc / 10))


def missing_imports(content: str, imports: List[str]) -> List[str]:
    """Framework modules used in ``content`` but never imported."""
    missing = []
    if REACT_USAGE.search(content) and "react" not in imports:
        missing.append("react")
    return missing


def typed_issues(content: str) -> List[str]:
    issues = []
    if ": React.FC" in content and "import React" not in content:
        issues.append("React import missing for React.FC type")
    if re.search(r"interface\s+\w+", content) and "export" not in content:
        issues.append("Interface defined but not exported")
    return issues
