"""
Clocks - Own the only suspension point of a run: the edge delay.

RealClock waits on the event loop's wall-clock timers.
SimulatedClock advances virtual time instantly and fires wake-ups in
(due time, registration order), so a run's event order is fully
deterministic and takes no real time.
"""

from __future__ import annotations

import asyncio
import heapq
import itertools
import logging
from typing import Any, Awaitable, List, Optional, Protocol, Tuple, TypeVar


logger = logging.getLogger(__name__)

T = TypeVar("T")


class Clock(Protocol):
    """Protocol for run clocks."""

    def start(self) -> None:
        """Reset elapsed time to zero. Called once per run."""
        ...

    def now(self) -> float:
        """Seconds elapsed since start()."""
        ...

    def schedule(self, delay: float) -> "asyncio.Future[None]":
        """
        Register a wake-up `delay` seconds from now.

        Must be called synchronously; registration order breaks ties
        between equal due times.
        """
        ...

    async def drive(self, main: Awaitable[T]) -> T:
        """Run the traversal to completion."""
        ...


class RealClock:
    """
    Wall-clock timers on the running asyncio loop.

    Delays are multiplied by `time_scale`; reported times are
    divided back so they stay in workflow seconds.
    """

    def __init__(self, time_scale: float = 1.0):
        if time_scale <= 0:
            raise ValueError("time_scale must be positive")
        self.time_scale = time_scale
        self._started_at: Optional[float] = None

    def _loop(self) -> asyncio.AbstractEventLoop:
        return asyncio.get_running_loop()

    def start(self) -> None:
        self._started_at = self._loop().time()

    def now(self) -> float:
        if self._started_at is None:
            return 0.0
        return (self._loop().time() - self._started_at) / self.time_scale

    def schedule(self, delay: float) -> "asyncio.Future[None]":
        loop = self._loop()
        future: asyncio.Future[None] = loop.create_future()
        loop.call_later(delay * self.time_scale, _resolve, future)
        return future

    async def drive(self, main: Awaitable[T]) -> T:
        return await main


class SimulatedClock:
    """
    Discrete-event clock.

    Pending wake-ups live in a heap keyed by (due, sequence). The
    driver yields to the loop once after each firing: the woken branch
    runs its synchronous step (visit, register child wake-ups) before
    the driver looks at the heap again.
    """

    def __init__(self) -> None:
        self._now = 0.0
        self._sequence = itertools.count()
        self._pending: List[Tuple[float, int, "asyncio.Future[None]"]] = []

    def start(self) -> None:
        self._now = 0.0
        self._pending.clear()

    def now(self) -> float:
        return self._now

    @property
    def pending(self) -> int:
        """Number of registered wake-ups not yet fired."""
        return len(self._pending)

    def schedule(self, delay: float) -> "asyncio.Future[None]":
        future: asyncio.Future[None] = asyncio.get_running_loop().create_future()
        heapq.heappush(self._pending, (self._now + delay, next(self._sequence), future))
        return future

    def advance(self) -> bool:
        """
        Fire the earliest pending wake-up.

        Returns:
            False when nothing is pending
        """
        if not self._pending:
            return False
        due, _, future = heapq.heappop(self._pending)
        self._now = due
        _resolve(future)
        return True

    async def drive(self, main: Awaitable[T]) -> T:
        task = asyncio.ensure_future(main)
        while True:
            # Let every runnable branch reach its next wait.
            await asyncio.sleep(0)
            if task.done() or not self.advance():
                break
        return await task


def _resolve(future: "asyncio.Future[Any]") -> None:
    if not future.done():
        future.set_result(None)


def create_clock(kind: str = "real", time_scale: float = 1.0) -> Clock:
    """
    Build a clock by name.

    Args:
        kind: "real" or "simulated"
        time_scale: Multiplier for real-clock delays
    """
    if kind == "simulated":
        return SimulatedClock()
    if kind == "real":
        return RealClock(time_scale=time_scale)
    raise ValueError(f"Unknown clock: {kind}")


__all__ = [
    "Clock",
    "RealClock",
    "SimulatedClock",
    "create_clock",
]
