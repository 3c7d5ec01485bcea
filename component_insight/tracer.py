"""Implementation tracing through re-export chains.

Starting from the file that an entry module points at, follow re-exports hop
by hop until a file that actually declares the component is reached::

    src/index.ts          export { Button } from './components'
    components/index.ts   export * from './button'
    components/button.tsx export const Button = forwardRef(...)   <- resolved

The walk is an explicit loop with a per-call visited set, so re-export
cycles and pathological chains end at the depth cap instead of recursing.
When tracing is inconclusive the last visited file is returned as an
approximate answer.
"""

from __future__ import annotations

import logging
from typing import List, Optional, Set, Tuple

from . import config
from .models import ExportKind, SourceFile, TraceResult, TraceStatus
from .parser import ModuleParser, ParsedModule
from .scanner import SourceIndex

logger = logging.getLogger(__name__)


class ImplementationTracer:
    def __init__(
        self,
        index: SourceIndex,
        parser: Optional[ModuleParser] = None,
        max_depth: int = config.MAX_TRACE_DEPTH,
    ) -> None:
        self.index = index
        self.parser = parser or ModuleParser()
        self.max_depth = max_depth

    def trace(self, name: str, start_path: str) -> TraceResult:
        visited: List[str] = []
        last_file: Optional[SourceFile] = None
        current_name, path, depth = name, start_path, 0

        while True:
            indent = "  " * depth
            if depth >= self.max_depth:
                logger.warning("Trace depth limit reached for %s, possible re-export cycle", name)
                break
            if path in visited:
                logger.debug("%sAlready visited %s, stopping", indent, path)
                break
            current = self.index.get(path)
            if current is None:
                logger.debug("%sFile not in source index: %s", indent, path)
                break

            visited.append(path)
            last_file = current
            logger.debug("%sChecking %s for %s", indent, path, current_name)

            module = self.parser.parse(current)
            if not module.parsed:
                logger.info("%sNo syntax tree for %s, following re-exports only", indent, path)
            local_name = self._local_name(module, current_name)
            if module.declares(current_name) or module.declares(local_name):
                logger.debug("%sFound implementation of %s in %s", indent, current_name, path)
                return TraceResult(TraceStatus.RESOLVED, current, tuple(visited))

            default_target = self._default_as_target(module, current_name, path)
            if default_target is not None:
                if default_target.path not in visited:
                    visited.append(default_target.path)
                logger.debug("%s%s is a renamed default export of %s", indent, current_name, default_target.path)
                return TraceResult(TraceStatus.RESOLVED, default_target, tuple(visited))

            hop = self._next_hop(module, current_name, local_name, path)
            if hop is None:
                logger.debug("%sNo implementation or re-export of %s in %s", indent, current_name, path)
                break
            current_name, path = hop
            depth += 1

        if last_file is None:
            logger.warning("Could not trace %s: %s is not in the source index", name, start_path)
            return TraceResult(TraceStatus.UNRESOLVED, None, tuple(visited))
        logger.info("Using %s as best-effort implementation of %s", last_file.path, name)
        return TraceResult(TraceStatus.APPROXIMATE, last_file, tuple(visited))

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    def _default_as_target(self, module: ParsedModule, name: str, path: str) -> Optional[SourceFile]:
        for binding in module.bindings_named(name):
            if binding.kind is not ExportKind.DEFAULT_RE_EXPORT_AS:
                continue
            target = self.index.resolve_import(binding.source_module or "", path)
            if target is not None:
                return self.index.get(target)
        return None

    @staticmethod
    def _local_name(module: ParsedModule, name: str) -> str:
        """Identifier behind ``export { Base as Name }``, else *name* itself."""
        for binding in module.bindings_named(name):
            if binding.kind is ExportKind.LOCAL_DEFINITION and binding.local_name:
                return binding.local_name
        return name

    def _next_hop(
        self, module: ParsedModule, name: str, local_name: str, path: str,
    ) -> Optional[Tuple[str, str]]:
        for binding in module.bindings_named(name):
            if binding.kind is ExportKind.NAMED_RE_EXPORT:
                target = self.index.resolve_import(binding.source_module or "", path)
                if target is not None:
                    return binding.local_name, target

        # import { X } from './x'; export { X }
        imported = module.imports.get(local_name)
        if imported is not None:
            target = self.index.resolve_import(imported.source_module, path)
            if target is not None:
                return imported.imported_name, target

        wildcard_targets = [
            t for t in (self.index.resolve_import(b.source_module or "", path) for b in module.wildcards)
            if t is not None
        ]
        if not wildcard_targets:
            return None
        for target in wildcard_targets:
            if self._exports_name(target, name, set()):
                return name, target
        return name, wildcard_targets[-1]

    def _exports_name(self, path: str, name: str, seen: Set[str]) -> bool:
        """True when *path* exports *name*, directly or through its own wildcards."""
        if path in seen:
            return False
        seen.add(path)
        file = self.index.get(path)
        if file is None:
            return False
        module = self.parser.parse(file)
        if module.bindings_named(name):
            return True
        for binding in module.wildcards:
            target = self.index.resolve_import(binding.source_module or "", path)
            if target is not None and self._exports_name(target, name, seen):
                return True
        return False
