"""Core data models shared by the scanner, resolver, tracer and orchestrator."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple


@dataclass(frozen=True)
class SourceFile:
    path: str
    content: str
    size: int
    extension: str
    modified_at: datetime


class ExportKind(str, Enum):
    LOCAL_DEFINITION = "local_definition"
    NAMED_RE_EXPORT = "named_re_export"
    DEFAULT_RE_EXPORT_AS = "default_re_export_as"
    WILDCARD_RE_EXPORT = "wildcard_re_export"


@dataclass(frozen=True)
class ExportBinding:
    """One exported name of a module.

    ``local_name`` is the identifier inside ``source_module`` (or inside the
    current file for local definitions); ``"default"`` for ``default as X``
    re-exports and ``"*"`` for wildcards.
    """

    exported_name: str
    kind: ExportKind
    source_module: Optional[str] = None
    local_name: str = ""

    @property
    def is_re_export(self) -> bool:
        return self.source_module is not None


class TraceStatus(str, Enum):
    RESOLVED = "resolved"
    APPROXIMATE = "approximate"
    UNRESOLVED = "unresolved"


@dataclass(frozen=True)
class TraceResult:
    status: TraceStatus
    file: Optional[SourceFile]
    visited: Tuple[str, ...] = ()


@dataclass
class DependencyNode:
    name: str
    path: str
    depth: int
    children: List["DependencyNode"] = field(default_factory=list)


@dataclass(frozen=True)
class DependencyContext:
    snippets: Tuple[str, ...]
    dependency_paths: Tuple[str, ...]
    dependency_depths: Tuple[int, ...]
    tree: DependencyNode


@dataclass(frozen=True)
class ComponentCandidate:
    name: str
    implementation_file: SourceFile
    dependencies: Tuple[SourceFile, ...] = ()
    trace_status: TraceStatus = TraceStatus.RESOLVED

    @property
    def path(self) -> str:
        return self.implementation_file.path


@dataclass
class AnalyzedComponent:
    """A candidate together with the analyzer's opaque payload."""

    candidate: ComponentCandidate
    payload: Optional[Dict[str, Any]]


@dataclass
class LibraryInfo:
    name: str = ""
    version: str = ""
    description: str = ""
    author: str = ""
    display_name: str = ""
    use_cases: List[str] = field(default_factory=list)
