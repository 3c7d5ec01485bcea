"""Export graph resolution: which file re-exports each component name of an entry module."""

from __future__ import annotations

import logging
from typing import Dict, Optional, Set

from .models import ExportKind
from .naming import is_likely_component
from .parser import ModuleParser
from .scanner import SourceIndex

logger = logging.getLogger(__name__)

ComponentNameMap = Dict[str, str]


class ExportGraphResolver:
    """Build a :data:`ComponentNameMap` for an entry file.

    Each name maps to the single file that textually exports it, one hop
    away from the module that exposes it; implementation tracing happens
    later.  When several bindings supply the same name the last write wins:
    direct bindings are applied in source order, then wildcard expansions are
    merged in source order on top of them.
    """

    def __init__(self, index: SourceIndex, parser: Optional[ModuleParser] = None) -> None:
        self.index = index
        self.parser = parser or ModuleParser()

    def resolve(self, entry_path: str) -> ComponentNameMap:
        return self._resolve(entry_path, set())

    def _resolve(self, path: str, active: Set[str]) -> ComponentNameMap:
        entry = self.index.get(path)
        if entry is None:
            logger.warning("Entry file not in source index: %s", path)
            return {}
        if path in active:
            logger.debug("Wildcard cycle through %s, stopping", path)
            return {}
        active = active | {path}

        module = self.parser.parse(entry)
        names: ComponentNameMap = {}
        wildcard_targets = []

        for binding in module.bindings:
            if binding.kind is ExportKind.WILDCARD_RE_EXPORT:
                target = self.index.resolve_import(binding.source_module or "", path)
                if target is None:
                    logger.debug("Unresolved wildcard re-export %r in %s", binding.source_module, path)
                    continue
                wildcard_targets.append(target)
            elif binding.kind is ExportKind.LOCAL_DEFINITION:
                names[binding.exported_name] = path
            else:
                target = self.index.resolve_import(binding.source_module or "", path)
                if target is None:
                    logger.debug(
                        "Dropping %s: %r not found in source index", binding.exported_name, binding.source_module,
                    )
                    continue
                names[binding.exported_name] = target

        for target in wildcard_targets:
            sub = self._resolve(target, active)
            logger.debug("Wildcard %s contributes: %s", target, ", ".join(sub) or "-")
            names.update(sub)

        return {
            name: target
            for name, target in names.items()
            if is_likely_component(name, entry.content)
        }
