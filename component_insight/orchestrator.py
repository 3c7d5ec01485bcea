"""Batch orchestration of per-component analysis calls.

Candidates are analyzed in sequential batches; the calls inside one batch run
concurrently.  A shared :class:`CancellationToken` is checked at every
suspension point the orchestrator owns (batch start, the wait on the batch,
the inter-batch delay).  Cancellation is cooperative: tasks of the current
batch are cancelled and abandoned, but a blocking call already running in a
worker thread may still finish in the background.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, List, Optional, Sequence

from . import config
from .models import AnalyzedComponent, ComponentCandidate

logger = logging.getLogger(__name__)

AnalyzeFn = Callable[[ComponentCandidate], Awaitable[Optional[Dict[str, Any]]]]


class CancellationToken:
    """Run-wide cooperative cancellation flag."""

    def __init__(self) -> None:
        self._event = asyncio.Event()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def cancel(self) -> None:
        self._event.set()

    async def wait(self) -> None:
        await self._event.wait()

    async def sleep(self, seconds: float) -> bool:
        """Sleep for *seconds* unless cancelled first; return True if cancelled."""
        if self.cancelled:
            return True
        try:
            await asyncio.wait_for(self._event.wait(), timeout=seconds)
        except asyncio.TimeoutError:
            return False
        return True


class TerminationReason(str, Enum):
    COMPLETED = "completed"
    CANCELLED = "cancelled"


@dataclass
class BatchRunResult:
    results: List[AnalyzedComponent] = field(default_factory=list)
    reason: TerminationReason = TerminationReason.COMPLETED
    analyzed: int = 0
    failed: int = 0
    dropped: int = 0
    batch_size: int = 0
    batches_run: int = 0

    @property
    def cancelled(self) -> bool:
        return self.reason is TerminationReason.CANCELLED


def calculate_batch_size(total: int) -> int:
    """Larger libraries get larger batches; small ones stay gentle on the API."""
    if total <= 10:
        return 2
    if total <= 30:
        return 3
    if total <= 60:
        return 4
    return 5


class BatchOrchestrator:
    def __init__(
        self,
        max_components: int = config.MAX_COMPONENTS,
        batch_delay: float = config.BATCH_DELAY_SECONDS,
        token: Optional[CancellationToken] = None,
    ) -> None:
        self.max_components = max_components
        self.batch_delay = batch_delay
        self._token = token

    @property
    def token(self) -> CancellationToken:
        if self._token is None:
            self._token = CancellationToken()
        return self._token

    def cancel(self) -> None:
        """Stop after the current batch; wired to SIGINT/SIGTERM by the host."""
        if not self.token.cancelled:
            logger.warning("Interrupt received, cancelling the current batch")
        self.token.cancel()

    async def run(self, candidates: Sequence[ComponentCandidate], analyze: AnalyzeFn) -> BatchRunResult:
        token = self.token
        outcome = BatchRunResult()
        if not candidates:
            logger.warning("No components to analyze")
            return outcome

        to_analyze = list(candidates[: self.max_components])
        if len(candidates) > self.max_components:
            outcome.dropped = len(candidates) - self.max_components
            logger.warning(
                "Too many components (%d); analyzing only the first %d",
                len(candidates), self.max_components,
            )

        batch_size = calculate_batch_size(len(to_analyze))
        total_batches = (len(to_analyze) + batch_size - 1) // batch_size
        outcome.batch_size = batch_size
        logger.info("Using batch size %d across %d batches", batch_size, total_batches)

        for start in range(0, len(to_analyze), batch_size):
            if token.cancelled:
                break
            batch = to_analyze[start: start + batch_size]
            number = start // batch_size + 1
            logger.info(
                "Analyzing batch %d/%d (%d%% done)",
                number, total_batches, round(start * 100 / len(to_analyze)),
            )

            completed, finished = await self._run_batch(batch, analyze, token)
            outcome.batches_run += 1
            valid = [item for item in completed if item.payload is not None]
            outcome.results.extend(valid)
            outcome.analyzed += len(valid)
            outcome.failed += len(completed) - len(valid)

            if not finished:
                logger.warning("Batch %d cancelled", number)
                break
            logger.info("Batch %d/%d done (%d/%d succeeded)", number, total_batches, len(valid), len(batch))

            if start + batch_size < len(to_analyze):
                if await token.sleep(self.batch_delay):
                    break

        if token.cancelled:
            outcome.reason = TerminationReason.CANCELLED
            logger.warning("Analysis cancelled, %d components completed", outcome.analyzed)
        else:
            logger.info("Analysis finished, %d components analyzed", outcome.analyzed)
        return outcome

    async def _run_batch(
        self,
        batch: List[ComponentCandidate],
        analyze: AnalyzeFn,
        token: CancellationToken,
    ) -> "tuple[List[AnalyzedComponent], bool]":
        """Run one batch; return the completed items and whether the batch ran to the end."""
        tasks = [asyncio.ensure_future(self._analyze_one(c, analyze, token)) for c in batch]
        gathered = asyncio.gather(*tasks, return_exceptions=True)
        stop = asyncio.ensure_future(token.wait())
        try:
            await asyncio.wait({gathered, stop}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            stop.cancel()

        finished = gathered.done() and not token.cancelled
        if not gathered.done():
            for task in tasks:
                task.cancel()
            await gathered

        completed = [
            t.result() for t in tasks
            if t.done() and not t.cancelled() and isinstance(t.result(), AnalyzedComponent)
        ]
        return completed, finished

    @staticmethod
    async def _analyze_one(
        candidate: ComponentCandidate,
        analyze: AnalyzeFn,
        token: CancellationToken,
    ) -> Optional[AnalyzedComponent]:
        if token.cancelled:
            return None
        try:
            payload = await analyze(candidate)
        except asyncio.CancelledError:
            raise
        except Exception as exc:
            logger.warning("Analysis of %s failed: %s", candidate.name, exc)
            return AnalyzedComponent(candidate=candidate, payload=None)
        if payload is None:
            logger.warning("Analysis of %s returned no result", candidate.name)
        return AnalyzedComponent(candidate=candidate, payload=payload)
