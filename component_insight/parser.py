"""Module export extraction for JavaScript / TypeScript sources.

Built on Tree-sitter:
- Error-tolerant concrete syntax trees for ``.js``, ``.jsx``, ``.ts`` and ``.tsx``
- Export statements classified into local definitions, named re-exports,
  ``default as`` re-exports and wildcard re-exports
- Declaration lookup (functions, classes, component-producing variables)

Falls back to a regex extractor when a file does not parse cleanly.
"""

from __future__ import annotations

import logging
import re
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, FrozenSet, List, NamedTuple, Optional, Set, Tuple

import tree_sitter_javascript
import tree_sitter_typescript
from tree_sitter import Language, Parser as TSParser

from .models import ExportBinding, ExportKind, SourceFile

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Language <-> file-extension mapping
# ---------------------------------------------------------------------------
LANGUAGE_MAP: Dict[str, str] = {
    ".js": "javascript",
    ".jsx": "javascript",
    ".mjs": "javascript",
    ".cjs": "javascript",
    ".ts": "typescript",
    ".mts": "typescript",
    ".tsx": "tsx",
}

# Higher-order calls whose result is itself a component
WRAPPER_CALLS: FrozenSet[str] = frozenset({"forwardRef", "memo", "lazy"})

_FUNCTION_VALUES = {"arrow_function", "function", "function_expression", "class"}
_TRANSPARENT_WRAPPERS = {
    "parenthesized_expression",
    "as_expression",
    "satisfies_expression",
    "non_null_expression",
}
_CLASS_DECLARATIONS = {"class_declaration", "abstract_class_declaration"}
_FUNCTION_DECLARATIONS = {"function_declaration", "generator_function_declaration"}
_VARIABLE_DECLARATIONS = {"lexical_declaration", "variable_declaration"}


class ImportedName(NamedTuple):
    source_module: str
    imported_name: str  # "default" for default imports


@dataclass
class ParsedModule:
    """Exports, imports and declarations of one source file."""

    path: str
    bindings: List[ExportBinding] = field(default_factory=list)
    declarations: Set[str] = field(default_factory=set)
    imports: Dict[str, ImportedName] = field(default_factory=dict)
    parsed: bool = True

    def declares(self, name: str) -> bool:
        return name in self.declarations

    def bindings_named(self, name: str) -> List[ExportBinding]:
        return [b for b in self.bindings if b.exported_name == name]

    @property
    def wildcards(self) -> List[ExportBinding]:
        return [b for b in self.bindings if b.kind is ExportKind.WILDCARD_RE_EXPORT]


# ===================================================================
# Abstract Extractor Interface
# ===================================================================

class ExportExtractor(ABC):
    """Abstract base class for export extractors."""

    @abstractmethod
    def extract(self, file: SourceFile) -> Optional[ParsedModule]:
        """Return the module's exports, or ``None`` if the file cannot be parsed."""
        ...


# ===================================================================
# Tree-sitter Extractor (Primary)
# ===================================================================

class TreeSitterExtractor(ExportExtractor):
    """Export extractor built on the Tree-sitter JavaScript/TypeScript grammars.

    A tree that contains ``ERROR`` or ``MISSING`` nodes counts as a parse
    failure so the caller can switch to the regex extractor.
    """

    # Map language name -> (grammar module, factory returning the Language capsule)
    _GRAMMARS: Dict[str, Any] = {
        "javascript": tree_sitter_javascript.language,
        "typescript": tree_sitter_typescript.language_typescript,
        "tsx": tree_sitter_typescript.language_tsx,
    }

    def __init__(self) -> None:
        self._parsers: Dict[str, TSParser] = {}
        for lang, factory in self._GRAMMARS.items():
            self._parsers[lang] = TSParser(Language(factory()))
            logger.debug("Loaded tree-sitter parser for %s", lang)

    def supports_language(self, language: str) -> bool:
        return language in self._parsers

    def extract(self, file: SourceFile) -> Optional[ParsedModule]:
        lang = LANGUAGE_MAP.get(file.extension, "tsx")
        tree = self._parsers[lang].parse(file.content.encode("utf-8"))
        root = tree.root_node
        if root.has_error:
            return None

        module = ParsedModule(path=file.path)
        for child in root.children:
            if child.type == "export_statement":
                module.bindings.extend(self._export_bindings(child))
            elif child.type == "import_statement":
                module.imports.update(self._imported_names(child))
        module.declarations = self._collect_declarations(root)
        return module

    # ------------------------------------------------------------------
    # Import statements
    # ------------------------------------------------------------------

    @staticmethod
    def _imported_names(node: Any) -> Dict[str, ImportedName]:
        """Local names bound by ``import Default, { A as B } from './m'``."""
        source_node = node.child_by_field_name("source")
        if source_node is None or any(c.type == "type" for c in node.children):
            return {}
        source = _string_value(source_node)

        names: Dict[str, ImportedName] = {}
        for clause in node.named_children:
            if clause.type != "import_clause":
                continue
            for part in clause.named_children:
                if part.type == "identifier":
                    names[_text(part)] = ImportedName(source, "default")
                elif part.type == "named_imports":
                    for spec in part.named_children:
                        if spec.type != "import_specifier":
                            continue
                        if any(c.type in ("type", "typeof") for c in spec.children):
                            continue
                        name_node = spec.child_by_field_name("name")
                        if name_node is None:
                            continue
                        alias_node = spec.child_by_field_name("alias")
                        imported = _export_name(name_node)
                        local = _text(alias_node) if alias_node is not None else imported
                        names[local] = ImportedName(source, imported)
        return names

    # ------------------------------------------------------------------
    # Export statements
    # ------------------------------------------------------------------

    def _export_bindings(self, node: Any) -> List[ExportBinding]:
        tokens = [c.type for c in node.children]
        # export type { A } from './a'
        if "type" in tokens:
            return []

        source_node = node.child_by_field_name("source")
        source = _string_value(source_node) if source_node is not None else None

        if "*" in tokens:
            if source is None:
                return []
            return [ExportBinding("*", ExportKind.WILDCARD_RE_EXPORT, source, "*")]

        for child in node.children:
            if child.type == "export_clause":
                return self._clause_bindings(child, source)
            if child.type == "namespace_export":
                # export * as ns from './m' exposes a namespace object, not a component
                logger.debug("Ignoring namespace export: %s", _text(child))
                return []

        if "default" in tokens:
            target = node.child_by_field_name("declaration") or node.child_by_field_name("value")
            name = _declared_name(target) if target is not None else None
            if name:
                return [ExportBinding(name, ExportKind.LOCAL_DEFINITION, None, name)]
            return []

        declaration = node.child_by_field_name("declaration")
        if declaration is None:
            return []
        return [
            ExportBinding(name, ExportKind.LOCAL_DEFINITION, None, name)
            for name in _declaration_names(declaration)
        ]

    @staticmethod
    def _clause_bindings(clause: Any, source: Optional[str]) -> List[ExportBinding]:
        bindings: List[ExportBinding] = []
        for spec in clause.named_children:
            if spec.type != "export_specifier":
                continue
            # export { type A } from './a'
            if any(c.type in ("type", "typeof") for c in spec.children):
                continue
            name_node = spec.child_by_field_name("name")
            if name_node is None:
                continue
            alias_node = spec.child_by_field_name("alias")
            local = _export_name(name_node)
            exported = _export_name(alias_node) if alias_node is not None else local

            if source is None:
                bindings.append(ExportBinding(exported, ExportKind.LOCAL_DEFINITION, None, local))
            elif local == "default":
                bindings.append(ExportBinding(exported, ExportKind.DEFAULT_RE_EXPORT_AS, source, "default"))
            else:
                bindings.append(ExportBinding(exported, ExportKind.NAMED_RE_EXPORT, source, local))
        return bindings

    # ------------------------------------------------------------------
    # Declarations
    # ------------------------------------------------------------------

    @staticmethod
    def _collect_declarations(root: Any) -> Set[str]:
        """Names that carry a runtime implementation anywhere in the file."""
        names: Set[str] = set()
        stack = [root]
        while stack:
            node = stack.pop()
            kind = node.type
            if kind in _FUNCTION_DECLARATIONS or kind in _CLASS_DECLARATIONS:
                name_node = node.child_by_field_name("name")
                if name_node is not None:
                    names.add(_text(name_node))
            elif kind == "variable_declarator":
                name_node = node.child_by_field_name("name")
                value = node.child_by_field_name("value")
                if (
                    name_node is not None
                    and name_node.type == "identifier"
                    and value is not None
                    and _is_component_value(value)
                ):
                    names.add(_text(name_node))
            elif kind == "export_statement" and any(c.type == "default" for c in node.children):
                target = node.child_by_field_name("declaration") or node.child_by_field_name("value")
                name = _declared_name(target) if target is not None else None
                if name:
                    names.add(name)
            stack.extend(node.children)
        return names


# ===================================================================
# Regex Fallback Extractor
# ===================================================================

_TYPE_EXPORT_RE = re.compile(r"export\s+type\s*\{[^}]*\}(?:\s*from\s*['\"][^'\"]+['\"])?")
_NAMED_FROM_RE = re.compile(r"export\s*\{([^}]*)\}\s*from\s*['\"]([^'\"]+)['\"]")
_LOCAL_CLAUSE_RE = re.compile(r"export\s*\{([^}]*)\}(?!\s*from)")
_WILDCARD_RE = re.compile(r"export\s+\*\s+from\s*['\"]([^'\"]+)['\"]")
_DEFAULT_RE = re.compile(
    r"export\s+default\s+(?:async\s+)?(?:function\s*\*?\s*|class\s+)?([A-Za-z_$][\w$]*)"
)
_DECLARATION_RE = re.compile(
    r"export\s+(?:declare\s+)?(?:async\s+)?(?:abstract\s+)?"
    r"(?:function\s*\*?|class|const|let|var)\s+([A-Za-z_$][\w$]*)"
)
_IMPORT_RE = re.compile(
    r"import\s+(?!type\s)(?:([A-Za-z_$][\w$]*)\s*,?\s*)?(?:\{([^}]*)\})?\s*from\s*['\"]([^'\"]+)['\"]"
)
_KEYWORDS = {"function", "class", "async", "new", "await"}


class RegexExportExtractor(ExportExtractor):
    """Best-effort extractor for files Tree-sitter cannot parse.

    Covers the same export shapes with lower recall.  It never raises and
    reports no declarations, so a tracer hop over such a file only follows
    re-exports.
    """

    def extract(self, file: SourceFile) -> ParsedModule:
        content = _TYPE_EXPORT_RE.sub("", file.content)
        bindings: List[ExportBinding] = []

        for match in _NAMED_FROM_RE.finditer(content):
            for local, exported in _split_specifiers(match.group(1)):
                if local == "default":
                    bindings.append(ExportBinding(
                        exported, ExportKind.DEFAULT_RE_EXPORT_AS, match.group(2), "default",
                    ))
                else:
                    bindings.append(ExportBinding(
                        exported, ExportKind.NAMED_RE_EXPORT, match.group(2), local,
                    ))

        for match in _LOCAL_CLAUSE_RE.finditer(content):
            for local, exported in _split_specifiers(match.group(1)):
                bindings.append(ExportBinding(exported, ExportKind.LOCAL_DEFINITION, None, local))

        for match in _WILDCARD_RE.finditer(content):
            bindings.append(ExportBinding("*", ExportKind.WILDCARD_RE_EXPORT, match.group(1), "*"))

        for match in _DEFAULT_RE.finditer(content):
            name = match.group(1)
            if name not in _KEYWORDS:
                bindings.append(ExportBinding(name, ExportKind.LOCAL_DEFINITION, None, name))

        for match in _DECLARATION_RE.finditer(content):
            name = match.group(1)
            bindings.append(ExportBinding(name, ExportKind.LOCAL_DEFINITION, None, name))

        imports: Dict[str, ImportedName] = {}
        for match in _IMPORT_RE.finditer(content):
            default_name, clause, source = match.groups()
            if default_name:
                imports[default_name] = ImportedName(source, "default")
            for imported, local in _split_specifiers(clause or ""):
                imports[local] = ImportedName(source, imported)

        return ParsedModule(path=file.path, bindings=bindings, imports=imports, parsed=False)


def _split_specifiers(clause: str) -> List[Tuple[str, str]]:
    """Split ``A, B as C, default as D, type E`` into ``(local, exported)`` pairs."""
    pairs = []
    for raw in clause.split(","):
        item = " ".join(raw.split())
        if not item or item.startswith("type ") or item.startswith("typeof "):
            continue
        parts = item.split(" as ")
        local = parts[0].strip().strip("'\"")
        exported = parts[1].strip().strip("'\"") if len(parts) > 1 else local
        if local and exported:
            pairs.append((local, exported))
    return pairs


# ===================================================================
# Facade
# ===================================================================

class ModuleParser:
    """Parse modules with Tree-sitter, degrading to regex extraction.

    Bindings are produced fresh on every call; nothing is cached.
    """

    def __init__(self) -> None:
        self._primary = TreeSitterExtractor()
        self._fallback = RegexExportExtractor()

    def parse(self, file: SourceFile) -> ParsedModule:
        try:
            module = self._primary.extract(file)
        except ValueError as exc:
            logger.warning("Tree-sitter failed on %s: %s", file.path, exc)
            module = None
        if module is not None:
            return module
        logger.info("Syntax parse failed for %s, using regex export extraction", file.path)
        return self._fallback.extract(file)


# ===================================================================
# Shared Helpers
# ===================================================================

def _text(node: Any) -> str:
    return node.text.decode("utf-8")


def _string_value(node: Any) -> str:
    raw = _text(node)
    if len(raw) >= 2 and raw[0] in "'\"`" and raw[-1] == raw[0]:
        return raw[1:-1]
    return raw


def _export_name(node: Any) -> str:
    if node.type == "string":
        return _string_value(node)
    return _text(node)


def _declared_name(node: Any) -> Optional[str]:
    """Name introduced by an ``export default`` target, if any."""
    if node.type == "identifier":
        return _text(node)
    if node.type in _FUNCTION_DECLARATIONS or node.type in _CLASS_DECLARATIONS or node.type in _FUNCTION_VALUES:
        name_node = node.child_by_field_name("name")
        if name_node is not None:
            return _text(name_node)
    return None


def _declaration_names(node: Any) -> List[str]:
    """Names exported by ``export <declaration>``; type-level declarations yield nothing."""
    if node.type in _FUNCTION_DECLARATIONS or node.type in _CLASS_DECLARATIONS:
        name_node = node.child_by_field_name("name")
        return [_text(name_node)] if name_node is not None else []
    if node.type in _VARIABLE_DECLARATIONS:
        names = []
        for child in node.named_children:
            if child.type != "variable_declarator":
                continue
            name_node = child.child_by_field_name("name")
            if name_node is not None and name_node.type == "identifier":
                names.append(_text(name_node))
        return names
    return []


def _unwrap(node: Any) -> Any:
    while node is not None and node.type in _TRANSPARENT_WRAPPERS:
        inner = node.child_by_field_name("expression")
        if inner is None:
            named = node.named_children
            inner = named[0] if named else None
        node = inner
    return node


def _is_component_value(value: Any) -> bool:
    value = _unwrap(value)
    if value is None:
        return False
    if value.type in _FUNCTION_VALUES:
        return True
    return value.type == "call_expression" and is_component_call(value)


def is_component_call(node: Any) -> bool:
    """Recognize ``React.forwardRef(...)``, ``memo(...)``, ``styled.div`...```, ``styled(Base)(...)``."""
    callee = node.child_by_field_name("function")
    while callee is not None and callee.type == "call_expression":
        callee = callee.child_by_field_name("function")
    if callee is None:
        return False

    if callee.type == "identifier":
        name = _text(callee)
        return name in WRAPPER_CALLS or name == "styled"

    if callee.type == "member_expression":
        obj = callee.child_by_field_name("object")
        prop = callee.child_by_field_name("property")
        if (
            obj is not None and prop is not None
            and obj.type == "identifier" and _text(obj) == "React"
            and _text(prop) in WRAPPER_CALLS
        ):
            return True
        # styled.div`...`, styled.button.attrs(...)`...`
        base = obj
        while base is not None and base.type in ("member_expression", "call_expression"):
            base = base.child_by_field_name("object" if base.type == "member_expression" else "function")
        return base is not None and base.type == "identifier" and _text(base) == "styled"

    return False
