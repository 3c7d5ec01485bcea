"""Source discovery and the in-memory source index.

The scanner walks a component library checkout and loads every eligible
source file into a :class:`SourceIndex`.  The index is built once per run
and then shared read-only by the resolver, the tracer and the dependency
context builder.
"""

from __future__ import annotations

import fnmatch
import logging
import os
import re
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Dict, Iterable, Iterator, List, Optional

from . import config
from .models import SourceFile

logger = logging.getLogger(__name__)

# Suffixes tried, in order, when an import specifier has no extension
RESOLVE_SUFFIXES = (
    "",
    ".ts",
    ".tsx",
    ".js",
    ".jsx",
    "/index.ts",
    "/index.tsx",
    "/index.js",
    "/index.jsx",
)

_IMPORT_RE = re.compile(r"""(?:import|export)\s+[^'";]*?\bfrom\s*['"]([^'"]+)['"]""")
_SIDE_EFFECT_IMPORT_RE = re.compile(r"""^\s*import\s*['"]([^'"]+)['"]""", re.MULTILINE)


@dataclass
class ScanStrategy:
    include_extensions: List[str] = field(default_factory=lambda: list(config.SUPPORTED_EXTENSIONS))
    exclude_dirs: List[str] = field(default_factory=lambda: list(config.EXCLUDE_DIRS))
    exclude_patterns: List[str] = field(default_factory=lambda: list(config.EXCLUDE_PATTERNS))
    max_file_size_kb: int = config.MAX_FILE_SIZE_KB


def normalize_path(path: str | Path) -> str:
    return os.path.normpath(os.path.abspath(str(path)))


class SourceIndex:
    """Read-only table of scanned files keyed by absolute path."""

    def __init__(self, files: Iterable[SourceFile] = ()) -> None:
        self._files: Dict[str, SourceFile] = {}
        for f in files:
            self._files[f.path] = f

    def __contains__(self, path: object) -> bool:
        return path in self._files

    def __len__(self) -> int:
        return len(self._files)

    def __iter__(self) -> Iterator[SourceFile]:
        return iter(self._files.values())

    def get(self, path: str) -> Optional[SourceFile]:
        return self._files.get(path)

    def files(self) -> List[SourceFile]:
        return list(self._files.values())

    @property
    def total_size(self) -> int:
        return sum(f.size for f in self._files.values())

    def resolve_import(self, specifier: str, importer: str) -> Optional[str]:
        """Resolve a relative import *specifier* written in *importer*.

        Returns the indexed path, or ``None`` for package imports and for
        targets outside the scanned tree.
        """
        if not specifier.startswith("."):
            return None
        base = os.path.normpath(os.path.join(os.path.dirname(importer), specifier))
        for suffix in RESOLVE_SUFFIXES:
            candidate = base + suffix
            if candidate in self._files:
                return candidate
        return None

    def analyze_dependencies(self, file: SourceFile) -> List[str]:
        """Return indexed paths imported by *file*, in source order."""
        specifiers = [m.group(1) for m in _IMPORT_RE.finditer(file.content)]
        specifiers += [m.group(1) for m in _SIDE_EFFECT_IMPORT_RE.finditer(file.content)]

        deps: List[str] = []
        for spec in specifiers:
            resolved = self.resolve_import(spec, file.path)
            if resolved and resolved != file.path and resolved not in deps:
                deps.append(resolved)
        return deps

    @classmethod
    def from_sources(cls, sources: Dict[str, str]) -> "SourceIndex":
        """Build an index straight from ``{path: content}``, without touching disk."""
        now = datetime.now()
        files = []
        for path, content in sources.items():
            norm = normalize_path(path)
            files.append(SourceFile(
                path=norm,
                content=content,
                size=len(content.encode("utf-8")),
                extension=os.path.splitext(norm)[1],
                modified_at=now,
            ))
        return cls(files)


class FileScanner:
    """Collect the library's source files according to a :class:`ScanStrategy`."""

    def __init__(self, strategy: Optional[ScanStrategy] = None) -> None:
        self.strategy = strategy or ScanStrategy()

    def scan(self, root: Path, entry_path: str = "") -> SourceIndex:
        target = (root / entry_path) if entry_path else root
        if not target.is_dir():
            raise FileNotFoundError(f"Path does not exist: {target}")

        files: List[SourceFile] = []
        skipped = 0
        for file_path in sorted(target.rglob("*")):
            if not file_path.is_file() or not self._is_included(file_path, target):
                continue
            try:
                stat = file_path.stat()
                if stat.st_size / 1024 > self.strategy.max_file_size_kb:
                    logger.info(
                        "Skipping large file %s (%.1fKB)",
                        file_path.relative_to(target), stat.st_size / 1024,
                    )
                    skipped += 1
                    continue
                content = file_path.read_text(encoding="utf-8", errors="ignore")
            except OSError as exc:
                logger.warning("Failed to read %s: %s", file_path, exc)
                continue

            files.append(SourceFile(
                path=normalize_path(file_path),
                content=content,
                size=stat.st_size,
                extension=file_path.suffix,
                modified_at=datetime.fromtimestamp(stat.st_mtime),
            ))

        logger.info("Scanned %d source files under %s (%d skipped)", len(files), target, skipped)
        return SourceIndex(files)

    def _is_included(self, file_path: Path, target: Path) -> bool:
        if file_path.suffix not in self.strategy.include_extensions:
            return False
        rel_parts = file_path.relative_to(target).parts
        if any(part in self.strategy.exclude_dirs for part in rel_parts[:-1]):
            return False
        return not any(fnmatch.fnmatch(file_path.name, pat) for pat in self.strategy.exclude_patterns)
