"""Bounded dependency context for the component analyzer.

Walks a component's import graph breadth-first and turns the files it finds
into source snippets.  Two caps keep the prompt size predictable no matter
how deep the library's imports go:

- per file: files above ``max_include_chars`` are listed but not quoted,
  the rest are cut to ``max_snippet_chars``;
- globally: at most ``max_snippets`` entries, the last one being an omission
  marker when files had to be dropped.
"""

from __future__ import annotations

import logging
import os
from collections import deque
from typing import Deque, Dict, List, Mapping, Optional, Sequence, Set, Tuple

from . import config
from .models import ComponentCandidate, DependencyContext, DependencyNode, SourceFile
from .scanner import SourceIndex

logger = logging.getLogger(__name__)

TRUNCATION_MARKER = "\n// ... (file truncated)"


def snippet_header(path: str, depth: int) -> str:
    return f"// Dependency: {os.path.basename(path)} (depth: {depth})\n"


def omission_marker(count: int) -> str:
    return f"// ... {count} more dependency files not shown"


class DependencyContextBuilder:
    def __init__(
        self,
        index: SourceIndex,
        max_depth: int = config.MAX_CONTEXT_DEPTH,
        max_deps_per_node: int = config.MAX_DEPS_PER_NODE,
        max_snippets: int = config.MAX_SNIPPETS,
        max_include_chars: int = config.MAX_INCLUDE_CHARS,
        max_snippet_chars: int = config.MAX_SNIPPET_CHARS,
    ) -> None:
        self.index = index
        self.max_depth = max_depth
        self.max_deps_per_node = max_deps_per_node
        self.max_snippets = max_snippets
        self.max_include_chars = max_include_chars
        self.max_snippet_chars = max_snippet_chars

    def build(
        self,
        candidate: ComponentCandidate,
        known_dependencies: Optional[Mapping[str, Sequence[str]]] = None,
    ) -> DependencyContext:
        """Collect the context for *candidate*.

        Args:
            candidate: Traced component; its ``dependencies`` (the files
                visited while tracing) are used as the root's neighbours.
            known_dependencies: Optional precomputed ``path -> dependency
                paths`` for other files; anything missing is derived from
                import statements.
        """
        root_file = candidate.implementation_file
        tree = DependencyNode(name=candidate.name, path=root_file.path, depth=0)
        known: Dict[str, Sequence[str]] = dict(known_dependencies or {})
        if candidate.dependencies:
            known[root_file.path] = [d.path for d in candidate.dependencies]

        snippets: List[str] = []
        paths: List[str] = []
        depths: List[int] = []
        seen: Set[str] = {root_file.path}
        queue: Deque[Tuple[SourceFile, DependencyNode]] = deque([(root_file, tree)])

        while queue:
            current, node = queue.popleft()
            if node.depth >= self.max_depth:
                continue

            dep_paths = known.get(current.path)
            if dep_paths is None:
                dep_paths = self.index.analyze_dependencies(current)

            for dep_path in list(dep_paths)[: self.max_deps_per_node]:
                if dep_path in seen:
                    continue
                dep = self.index.get(dep_path)
                if dep is None:
                    continue
                seen.add(dep_path)

                depth = node.depth + 1
                paths.append(dep_path)
                depths.append(depth)
                child = DependencyNode(
                    name=os.path.splitext(os.path.basename(dep_path))[0],
                    path=dep_path,
                    depth=depth,
                )
                node.children.append(child)

                snippet = self._snippet(dep, depth)
                if snippet is not None:
                    snippets.append(snippet)
                queue.append((dep, child))

        logger.debug("Context for %s: %d dependency files, %d snippets", candidate.name, len(paths), len(snippets))
        return DependencyContext(
            snippets=tuple(self._cap(snippets)),
            dependency_paths=tuple(paths),
            dependency_depths=tuple(depths),
            tree=tree,
        )

    def _snippet(self, file: SourceFile, depth: int) -> Optional[str]:
        code = file.content
        if len(code) > self.max_include_chars:
            logger.debug("Omitting oversized dependency %s (%d chars)", file.path, len(code))
            return None
        if len(code) > self.max_snippet_chars:
            code = code[: self.max_snippet_chars] + TRUNCATION_MARKER
        return snippet_header(file.path, depth) + code

    def _cap(self, snippets: List[str]) -> List[str]:
        if len(snippets) <= self.max_snippets:
            return snippets
        kept = snippets[: self.max_snippets - 1]
        return kept + [omission_marker(len(snippets) - len(kept))]
