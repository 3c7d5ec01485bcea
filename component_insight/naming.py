"""Naming heuristics that separate runtime components from utilities and types."""

from __future__ import annotations

import re
from typing import List, Pattern

_PASCAL_CASE = re.compile(r"^[A-Z][a-zA-Z0-9]*$")

_UTIL_PATTERNS: List[Pattern[str]] = [
    re.compile(r"^(create|make|build|generate|get|set|is|has|can|should|will|use)[A-Z]"),
    re.compile(r"^(format|parse|validate|transform|convert)[A-Z]"),
    re.compile(r"^[a-z]+Utils?$", re.IGNORECASE),
    re.compile(r"^[a-z]+Helper$", re.IGNORECASE),
    re.compile(r"^[a-z]+Manager$", re.IGNORECASE),
    re.compile(r"^[a-z]+Service$", re.IGNORECASE),
    re.compile(r"Config$"),
    re.compile(r"Constants?$", re.IGNORECASE),
    re.compile(r"Types?$", re.IGNORECASE),
    re.compile(r"Enum$", re.IGNORECASE),
]

# ``*Provider`` names are components (ThemeProvider, ConfigProvider...) unless
# they look like data plumbing.
_UTIL_PROVIDERS: List[Pattern[str]] = [
    re.compile(r"^Api.*Provider$"),
    re.compile(r"^Http.*Provider$"),
    re.compile(r"^Data.*Provider$"),
    re.compile(r"^Service.*Provider$"),
]


def is_pascal_case(name: str) -> bool:
    return bool(_PASCAL_CASE.match(name))


def is_type_only_export(name: str, content: str) -> bool:
    """True when *content* exports *name* only as a type alias or interface."""
    escaped = re.escape(name)
    declared_as_type = (
        re.search(rf"export\s+type\s+{escaped}\b[^=]*=", content)
        or re.search(rf"export\s+interface\s+{escaped}\b", content)
    )
    if not declared_as_type:
        return False
    exported_as_value = (
        re.search(rf"export\s*\{{[^}}]*\b{escaped}\b[^}}]*\}}", content)
        or re.search(rf"export\s+default\s+{escaped}\b", content)
    )
    return not exported_as_value


def is_likely_component(name: str, content: str = "") -> bool:
    """Decide whether an exported *name* denotes a UI component.

    *content* is the text of the module that exports the name; it is used to
    reject names that the module only exports as types.
    """
    if not is_pascal_case(name):
        return False
    if content and is_type_only_export(name, content):
        return False
    if any(p.search(name) for p in _UTIL_PATTERNS):
        return False
    if name.endswith("Provider") and any(p.match(name) for p in _UTIL_PROVIDERS):
        return False
    return True


# Fallback identification, used when no entry module lists the components.

_REACT_IMPORT = re.compile(r"""import\s+.*React.*from\s+['"]react['"]|import\s+React""")
_JSX_RETURN = re.compile(r"return\s*\(\s*<|return\s+<")
_EXPORTS_VALUE = re.compile(r"export\s+(default\s+)?(function|const|class)|export\s+\{.*\}")
_COMPONENT_FILENAME = re.compile(r"^[A-Z][a-zA-Z0-9]*\.(tsx?|jsx?)$")

_NAME_FROM_EXPORT: List[Pattern[str]] = [
    re.compile(r"export\s+default\s+function\s+([A-Z][a-zA-Z0-9]*)"),
    re.compile(r"export\s+default\s+([A-Z][a-zA-Z0-9]*)"),
    re.compile(r"const\s+([A-Z][a-zA-Z0-9]*)\s*=.*export\s+default\s+\1", re.DOTALL),
    re.compile(r"export\s*\{\s*([A-Z][a-zA-Z0-9]*)\s*\}"),
]


def looks_like_component_file(filename: str, content: str) -> bool:
    """A React import, a JSX return and an export; or a PascalCase file name and a JSX return."""
    if not _JSX_RETURN.search(content):
        return False
    if _REACT_IMPORT.search(content) and _EXPORTS_VALUE.search(content):
        return True
    return bool(_COMPONENT_FILENAME.match(filename))


def component_name_from_file(filename: str, content: str) -> str:
    """Name a component file from its export statements, else from the file name."""
    for pattern in _NAME_FROM_EXPORT:
        match = pattern.search(content)
        if match:
            return match.group(1)
    stem = filename.rsplit(".", 1)[0]
    return stem[:1].upper() + stem[1:]
