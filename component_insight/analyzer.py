"""End-to-end component library analysis.

Pipeline: scan sources -> resolve the entry module's exports -> trace each
name to its implementation -> build a dependency context -> batch the LLM
calls.  Libraries without a usable entry module fall back to rule-based
identification of component files.
"""

from __future__ import annotations

import json
import logging
import os
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

from . import config
from .context_builder import DependencyContextBuilder
from .llm import ComponentLLM, LLMError
from .models import AnalyzedComponent, ComponentCandidate, ExportKind, LibraryInfo, TraceStatus
from .naming import component_name_from_file, looks_like_component_file
from .orchestrator import BatchOrchestrator, TerminationReason
from .parser import ModuleParser
from .resolver import ExportGraphResolver
from .scanner import FileScanner, ScanStrategy, SourceIndex, normalize_path
from .tracer import ImplementationTracer

logger = logging.getLogger(__name__)


@dataclass
class AnalysisSettings:
    root: Path
    entry_path: str = ""
    entry_file: str = config.ENTRY_FILE
    max_components: int = config.MAX_COMPONENTS
    batch_delay: float = config.BATCH_DELAY_SECONDS
    prompt: str = config.COMPONENT_PROMPT
    strategy: ScanStrategy = field(default_factory=ScanStrategy)

    @property
    def target(self) -> Path:
        return self.root / self.entry_path if self.entry_path else self.root


@dataclass
class AnalysisReport:
    library: LibraryInfo
    components: List[AnalyzedComponent]
    candidate_count: int
    reason: TerminationReason
    failed: int = 0
    dropped: int = 0
    duration: float = 0.0
    llm_stats: Dict[str, int] = field(default_factory=dict)

    @property
    def cancelled(self) -> bool:
        return self.reason is TerminationReason.CANCELLED


README_NAMES = ["README.md", "README.zh.md", "README.zh-CN.md", "readme.md"]


def _library_dirs(root: Path, entry_path: str) -> List[Path]:
    return [root / entry_path, root] if entry_path else [root]


def read_package_json(root: Path, entry_path: str = "") -> Dict[str, Any]:
    """Load ``package.json`` from the entry directory, else the repository root."""
    for place in _library_dirs(root, entry_path):
        package_json = place / "package.json"
        if not package_json.is_file():
            continue
        try:
            data = json.loads(package_json.read_text(encoding="utf-8"))
        except (OSError, ValueError) as exc:
            logger.warning("Could not read %s: %s", package_json, exc)
            continue
        if isinstance(data, dict):
            return data
    return {}


def read_readme(root: Path, entry_path: str = "") -> Optional[str]:
    for place in _library_dirs(root, entry_path):
        for name in README_NAMES:
            readme = place / name
            if readme.is_file():
                try:
                    return readme.read_text(encoding="utf-8", errors="replace")
                except OSError as exc:
                    logger.warning("Could not read %s: %s", readme, exc)
    return None


def read_library_info(root: Path, entry_path: str = "") -> LibraryInfo:
    """Read name, version, description and author from ``package.json``.

    The entry directory is tried first, then the repository root.
    """
    data = read_package_json(root, entry_path)
    if not data:
        return LibraryInfo(name=root.name)
    author = data.get("author", "")
    if isinstance(author, dict):
        author = author.get("name", "")
    return LibraryInfo(
        name=str(data.get("name", "")),
        version=str(data.get("version", "")),
        description=str(data.get("description", "")),
        author=str(author),
    )


class ComponentAnalyzer:
    def __init__(self, settings: AnalysisSettings, llm: Optional[ComponentLLM] = None):
        self.settings = settings
        self._llm = llm
        self.parser = ModuleParser()
        self.orchestrator = BatchOrchestrator(
            max_components=settings.max_components,
            batch_delay=settings.batch_delay,
        )
        self.index: Optional[SourceIndex] = None
        self.known_dependencies: Dict[str, List[str]] = {}

    @property
    def llm(self) -> ComponentLLM:
        if self._llm is None:
            self._llm = ComponentLLM(system_prompt=self.settings.prompt or None)
        return self._llm

    def scan(self) -> SourceIndex:
        self.index = FileScanner(self.settings.strategy).scan(self.settings.root, self.settings.entry_path)
        return self.index

    def find_entry(self) -> Optional[str]:
        index = self.index if self.index is not None else self.scan()
        target = self.settings.target
        names = [self.settings.entry_file] if self.settings.entry_file else config.ENTRY_CANDIDATES
        for rel in names:
            path = normalize_path(target / rel)
            if path in index:
                return path
        return None

    def identify_components(self) -> List[ComponentCandidate]:
        """Return the library's component candidates sorted by name."""
        index = self.index if self.index is not None else self.scan()
        entry = self.find_entry()
        if entry is None:
            logger.warning("No entry file found under %s, falling back to file heuristics", self.settings.target)
            return self._identify_by_rules(index)

        name_map = ExportGraphResolver(index, self.parser).resolve(entry)
        if not name_map:
            logger.warning("Entry %s exports no components, falling back to file heuristics", entry)
            return self._identify_by_rules(index)
        logger.info("Entry %s exports %d component names", entry, len(name_map))

        tracer = ImplementationTracer(index, self.parser)
        direct = self._direct_targets(index, entry)
        candidates = []
        for name in sorted(name_map):
            # names won through a wildcard are traced from the file that exports them
            start = entry if direct.get(name) == name_map[name] else name_map[name]
            result = tracer.trace(name, start)
            if result.file is None:
                logger.warning("Skipping %s: no implementation file", name)
                continue
            deps = tuple(f for f in (index.get(p) for p in result.visited) if f is not None)
            candidates.append(ComponentCandidate(
                name=name,
                implementation_file=result.file,
                dependencies=deps,
                trace_status=result.status,
            ))
        self.known_dependencies = {
            c.implementation_file.path: [d.path for d in c.dependencies] for c in candidates if c.dependencies
        }
        return candidates

    def _direct_targets(self, index: SourceIndex, entry: str) -> Dict[str, Optional[str]]:
        """Where each non-wildcard binding of *entry* points, as the resolver sees it."""
        targets: Dict[str, Optional[str]] = {}
        for binding in self.parser.parse(index.get(entry)).bindings:
            if binding.kind is ExportKind.WILDCARD_RE_EXPORT:
                continue
            if binding.is_re_export:
                targets[binding.exported_name] = index.resolve_import(binding.source_module or "", entry)
            else:
                targets[binding.exported_name] = entry
        return targets

    def _identify_by_rules(self, index: SourceIndex) -> List[ComponentCandidate]:
        candidates = []
        seen = set()
        for file in index.files():
            filename = os.path.basename(file.path)
            if not looks_like_component_file(filename, file.content):
                continue
            name = component_name_from_file(filename, file.content)
            if name in seen:
                continue
            seen.add(name)
            candidates.append(ComponentCandidate(
                name=name,
                implementation_file=file,
                trace_status=TraceStatus.APPROXIMATE,
            ))
        logger.info("Identified %d component files by heuristics", len(candidates))
        return sorted(candidates, key=lambda c: c.name)

    async def analyze_candidate(self, candidate: ComponentCandidate) -> Dict[str, Any]:
        index = self.index if self.index is not None else self.scan()
        context = DependencyContextBuilder(index).build(candidate, self.known_dependencies)
        return await self.llm.analyze_component_async(
            candidate.implementation_file.content,
            candidate.name,
            list(context.snippets),
        )

    async def describe_library(self) -> LibraryInfo:
        """Library metadata from package.json, summarized by the LLM when possible."""
        info = read_library_info(self.settings.root, self.settings.entry_path)
        package_json = read_package_json(self.settings.root, self.settings.entry_path)
        readme = read_readme(self.settings.root, self.settings.entry_path)
        try:
            summary = await self.llm.analyze_library_async(package_json or {"name": info.name}, readme)
        except LLMError as exc:
            logger.warning("Library summary unavailable, using package.json fields: %s", exc)
            return info

        use_cases = summary.get("useCases")
        info.display_name = str(summary.get("displayName") or "")
        info.description = str(summary.get("description") or info.description)
        info.use_cases = [str(u) for u in use_cases] if isinstance(use_cases, list) else []
        return info

    async def analyze(self) -> AnalysisReport:
        started = time.monotonic()
        if self.index is None:
            self.scan()
        if self.orchestrator.token.cancelled:
            library = read_library_info(self.settings.root, self.settings.entry_path)
        else:
            library = await self.describe_library()
        candidates = self.identify_components()
        logger.info("Analyzing %d components of %s", len(candidates), library.name or self.settings.root.name)

        outcome = await self.orchestrator.run(candidates, self.analyze_candidate)
        return AnalysisReport(
            library=library,
            components=outcome.results,
            candidate_count=len(candidates),
            reason=outcome.reason,
            failed=outcome.failed,
            dropped=outcome.dropped,
            duration=time.monotonic() - started,
            llm_stats=self.stats(),
        )

    def cancel(self) -> None:
        self.orchestrator.cancel()

    def stats(self) -> Dict[str, int]:
        return self._llm.stats() if self._llm is not None else {"request_count": 0, "total_tokens": 0}
