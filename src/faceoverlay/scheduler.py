from __future__ import annotations

import asyncio
import logging
from typing import Optional, Set

from faceoverlay.pipeline import OverlayPipeline
from faceoverlay.utils.instance import TickResult


logger = logging.getLogger(__name__)

OVERLAP_POLICIES = ("skip", "allow")


class Scheduler:
    """
    Fires pipeline ticks at a fixed period.

    Ticks are started by the clock, not by the previous tick finishing. With
    ``overlap="skip"`` a tick is dropped while an earlier one is in flight;
    with ``overlap="allow"`` ticks overlap and whichever inference finishes
    last is what remains drawn. Missed periods are never queued.
    """

    def __init__(self, pipeline: OverlayPipeline, period_ms: float = 100, overlap: str = "skip"):
        assert overlap in OVERLAP_POLICIES, f"Invalid overlap policy: {overlap}, must be one of {OVERLAP_POLICIES}"
        assert period_ms > 0, f"Invalid period: {period_ms} ms"
        self.pipeline = pipeline
        self.period = period_ms / 1000.0
        self.overlap = overlap
        self.fired = 0
        self.skipped_overlap = 0
        self.last_result: Optional[TickResult] = None
        self._inflight: Set[asyncio.Task] = set()
        self._running = False
        self._stop_requested = False

    @property
    def inflight(self) -> int:
        return len(self._inflight)

    def stop(self) -> None:
        # also honoured when called before run() starts
        self._stop_requested = True
        self._running = False

    async def run(self, max_ticks: Optional[int] = None) -> None:
        loop = asyncio.get_running_loop()
        self._running = not self._stop_requested
        self._stop_requested = False
        next_t = loop.time()
        logger.info(f"[Scheduler] Started: period {self.period * 1000:.0f} ms, overlap={self.overlap}")

        try:
            while self._running and (max_ticks is None or self.fired < max_ticks):
                now = loop.time()
                if now - next_t >= self.period:
                    # fell a whole period behind, re-anchor instead of bursting through missed ticks
                    logger.debug(f"[Scheduler] Loop {(now - next_t) * 1000:.0f} ms behind, re-anchoring")
                    next_t = now
                self._fire()
                next_t += self.period
                await asyncio.sleep(max(0.0, next_t - loop.time()))
        finally:
            self._running = False
            self._stop_requested = False
            if self._inflight:
                await asyncio.gather(*list(self._inflight), return_exceptions=True)
            logger.info(f"[Scheduler] Stopped after {self.fired} ticks ({self.skipped_overlap} skipped for overlap)")

    def _fire(self) -> None:
        self.fired += 1
        if self.overlap == "skip" and self._inflight:
            self.skipped_overlap += 1
            logger.debug("[Scheduler] Previous tick still in flight, skipping")
            return
        task = asyncio.create_task(self.pipeline.tick())
        self._inflight.add(task)
        task.add_done_callback(self._on_done)

    def _on_done(self, task: asyncio.Task) -> None:
        self._inflight.discard(task)
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            logger.error("[Scheduler] Tick raised", exc_info=error)
            return
        self.last_result = task.result()
