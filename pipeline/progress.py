"""
ProgressSimulator: paces perceived latency with a fixed sequence of status
labels.  It knows nothing about the real scorers; the analyzer simply joins
it with the scoring task before surfacing a result.

The sequence itself is a plain generator (:meth:`ProgressSimulator.iter_steps`);
:meth:`ProgressSimulator.run` is the timer that advances it, one step per
interval.  The sleep function is injectable so tests run instantly.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, Iterator, Optional, Sequence

from heuristics.utils import round_half_up

logger = logging.getLogger(__name__)

DEFAULT_INTERVAL_MS = 400

STEPS = (
    "Initializing detection engine...",
    "Extracting facial landmarks...",
    "Analyzing texture patterns...",
    "Checking lighting consistency...",
    "Evaluating color distribution...",
    "Running deepfake classifier...",
    "Generating confidence score...",
    "Compiling analysis report...",
)

ProgressCallback = Callable[[str, int], None]


@dataclass(frozen=True)
class ProgressStep:
    index: int
    label: str
    percentage: int           # round((index + 1) / n * 100)


class ProgressSimulator:
    def __init__(
        self,
        interval_ms: int = DEFAULT_INTERVAL_MS,
        steps: Sequence[str] = STEPS,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.interval_ms = interval_ms
        self.steps = tuple(steps)
        self._sleep = sleep

    @property
    def total_duration(self) -> float:
        """Minimum wall time of :meth:`run`, in seconds."""
        return len(self.steps) * self.interval_ms / 1000.0

    def iter_steps(self) -> Iterator[ProgressStep]:
        n = len(self.steps)
        for i, label in enumerate(self.steps):
            yield ProgressStep(index=i, label=label, percentage=round_half_up((i + 1) / n * 100))

    async def run(self, on_progress: Optional[ProgressCallback] = None) -> int:
        """Emit every step, one interval apart.  Returns the number emitted."""
        emitted = 0
        for step in self.iter_steps():
            await self._sleep(self.interval_ms / 1000.0)
            logger.debug("Progress %d%%: %s", step.percentage, step.label)
            if on_progress is not None:
                on_progress(step.label, step.percentage)
            emitted += 1
        return emitted
