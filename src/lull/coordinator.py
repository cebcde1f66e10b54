"""Keyed debounce coordinator with at most one in-flight save per key."""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable, Hashable
from dataclasses import dataclass
from typing import Any

from loguru import logger

from lull.config import CoordinatorConfig

Producer = Callable[[], Awaitable[Any]]
StartCallback = Callable[[], None]
CompleteCallback = Callable[[bool], None]


@dataclass(slots=True)
class _PendingEntry:
    producer: Producer
    generation: int
    # None once the timer has fired and the entry waits for the running save.
    handle: asyncio.Handle | None
    on_start: StartCallback | None = None
    on_complete: CompleteCallback | None = None


@dataclass(slots=True)
class _InFlightEntry:
    generation: int
    task: asyncio.Task[bool]


def _call_observer(observer: Callable[..., None] | None, key: Hashable, *args: Any) -> None:
    if observer is None:
        return
    try:
        observer(*args)
    except Exception:
        logger.exception("Observer {!r} failed for key {!r}", observer, key)


class SaveCoordinator:
    """Turns bursts of edits into a controlled stream of asynchronous saves.

    How it works:
        - ``schedule`` arms a timer per key. Each new call for the same key
          cancels the previous timer, so only the latest producer survives
          the quiet period.
        - When the timer fires, the producer runs. At most one producer per
          key is in flight; a request that fires while an older save is
          still running is parked and starts as soon as that save settles.
        - Every ``schedule`` bumps the key's generation. A save that settles
          after a newer generation exists is still reported through its own
          ``on_complete`` but never holds back the newer work.
        - Producer failures are logged and reported as ``on_complete(False)``;
          they never propagate out of the coordinator.

    Example::

        delay=0.5s

        t=0.0s schedule("title", save("A"))  -> arm timer (0.5s)
        t=0.2s schedule("title", save("B"))  -> re-arm timer, "A" dropped
        t=0.7s timer fires                   -> save("B") runs once

    Teardown::

        await coordinator.wait_for_pending_saves()
        coordinator.cancel_all()

    A coordinator holds timer handles and tasks of the loop it is used on,
    so it serves one running event loop at a time. Drain waiters are created
    per call, which lets a coordinator built at import time be used under
    a later ``asyncio.run``.

    Args:
        config: Coordinator configuration. Defaults to ``CoordinatorConfig()``.

    Complexity:
        Time:   O(1) per schedule
        Memory: O(k) for k keys with outstanding work
    """

    __slots__ = ("_config", "_generations", "_in_flight", "_pending", "_waiters")

    def __init__(self, *, config: CoordinatorConfig | None = None) -> None:
        self._config = config or CoordinatorConfig()
        self._pending: dict[Hashable, _PendingEntry] = {}
        self._in_flight: dict[Hashable, _InFlightEntry] = {}
        self._generations: dict[Hashable, int] = {}
        self._waiters: list[asyncio.Future[None]] = []

    @property
    def config(self) -> CoordinatorConfig:
        return self._config

    @property
    def delay(self) -> float:
        return self._config.delay

    @property
    def pending_count(self) -> int:
        """Number of keys with a debounce window open or a parked request."""
        return len(self._pending)

    @property
    def in_flight_count(self) -> int:
        """Number of keys whose producer is currently running."""
        return len(self._in_flight)

    @property
    def idle(self) -> bool:
        return not self._pending and not self._in_flight

    def is_pending(self, key: Hashable) -> bool:
        return key in self._pending

    def is_saving(self, key: Hashable) -> bool:
        return key in self._in_flight

    def generation(self, key: Hashable) -> int:
        """Latest generation scheduled for *key*, or 0 when the key is idle.

        Generations increase monotonically while the key has outstanding work.
        The counter is discarded once the key is idle, so numbering restarts
        at 1 with the next ``schedule``.
        """
        return self._generations.get(key, 0)

    def schedule(
        self,
        key: Hashable,
        producer: Producer,
        delay: float | None = None,
        on_start: StartCallback | None = None,
        on_complete: CompleteCallback | None = None,
    ) -> None:
        """Schedule *producer* to run once *key* has been quiet for *delay* seconds.

        Replaces any request still waiting for the same key. The producer is
        never invoked synchronously, even with ``delay=0``.

        Args:
            key: Hashable identifier of the debounce stream.
            producer: Zero-argument callable returning an awaitable that
                performs exactly one write.
            delay: Quiet period in seconds. ``None`` uses the configured
                default; negative values are treated as ``0``.
            on_start: Called right before the producer starts.
            on_complete: Called exactly once with ``True`` or ``False`` when
                the producer settles.
        """
        loop = asyncio.get_running_loop()

        if delay is None:
            delay = self._config.delay
        elif delay < 0:
            logger.warning("Negative delay {} for key {!r} treated as 0", delay, key)
            delay = 0.0

        previous = self._pending.pop(key, None)
        if previous is not None and previous.handle is not None:
            previous.handle.cancel()

        generation = self._generations.get(key, 0) + 1
        self._generations[key] = generation

        handle = loop.call_later(delay, self._fire, key)
        self._pending[key] = _PendingEntry(producer, generation, handle, on_start, on_complete)
        logger.debug("Scheduled {!r} generation {} in {}s", key, generation, delay)

    def cancel(self, key: Hashable) -> bool:
        """Discard the request waiting for *key*. Returns whether one existed.

        A save already in flight for the key is not interrupted.
        """
        entry = self._pending.pop(key, None)
        if entry is None:
            return False
        if entry.handle is not None:
            entry.handle.cancel()
        if key not in self._in_flight:
            self._generations.pop(key, None)
        logger.debug("Cancelled {!r} generation {}", key, entry.generation)
        self._wake()
        return True

    def cancel_all(self) -> None:
        """Discard every request that has not started. In-flight saves run to completion."""
        for entry in self._pending.values():
            if entry.handle is not None:
                entry.handle.cancel()
        if self._pending:
            logger.debug("Cancelled {} pending save(s)", len(self._pending))
        self._pending.clear()
        self._generations = {
            key: generation for key, generation in self._generations.items() if key in self._in_flight
        }
        self._wake()

    def flush(self) -> int:
        """Make every armed timer fire on the next loop iteration.

        Returns the number of requests whose quiet period was cut short.
        Parked requests are unaffected; they already start as soon as the
        running save for their key settles.
        """
        loop = asyncio.get_running_loop()
        flushed = 0
        for key, entry in self._pending.items():
            if entry.handle is None:
                continue
            entry.handle.cancel()
            entry.handle = loop.call_soon(self._fire, key)
            flushed += 1
        return flushed

    async def wait_for_pending_saves(self) -> None:
        """Wait until no request is pending and no save is in flight.

        Loops until a quiescent pass is observed, so requests parked or
        scheduled while draining are waited for too. Resolves whether the
        individual saves succeeded or failed.
        """
        await self._wait_while(lambda: bool(self._pending or self._in_flight))

    async def wait_for(self, key: Hashable) -> None:
        """Wait until *key* has no pending request and no save in flight.

        Other keys on the coordinator are not waited for.
        """
        await self._wait_while(lambda: key in self._pending or key in self._in_flight)

    async def aclose(self) -> None:
        """Write pending edits now, wait for them, then drop anything left."""
        self.flush()
        await self.wait_for_pending_saves()
        self.cancel_all()

    async def __aenter__(self) -> SaveCoordinator:
        return self

    async def __aexit__(self, *_: Any) -> None:
        await self.aclose()

    async def _wait_while(self, busy: Callable[[], bool]) -> None:
        loop = asyncio.get_running_loop()
        while busy():
            waiter: asyncio.Future[None] = loop.create_future()
            self._waiters.append(waiter)
            await waiter

    def _wake(self) -> None:
        waiters, self._waiters = self._waiters, []
        for waiter in waiters:
            if not waiter.done():
                waiter.set_result(None)

    def _fire(self, key: Hashable) -> None:
        entry = self._pending.get(key)
        if entry is None:
            return
        entry.handle = None

        running = self._in_flight.get(key)
        if running is not None:
            logger.debug(
                "Parked {!r} generation {} behind generation {}",
                key,
                entry.generation,
                running.generation,
            )
            return

        del self._pending[key]
        self._start(key, entry)

    def _start(self, key: Hashable, entry: _PendingEntry) -> None:
        task = asyncio.get_running_loop().create_task(self._execute(key, entry))
        self._in_flight[key] = _InFlightEntry(entry.generation, task)
        # Settles even when the task is cancelled before its first step.
        task.add_done_callback(lambda done: self._settle(key, entry, done))
        _call_observer(entry.on_start, key)

    async def _execute(self, key: Hashable, entry: _PendingEntry) -> bool:
        try:
            await entry.producer()
        except Exception:
            logger.exception("Save failed for {!r} generation {}", key, entry.generation)
            return False
        return True

    def _settle(self, key: Hashable, entry: _PendingEntry, task: asyncio.Task[bool]) -> None:
        del self._in_flight[key]

        if task.cancelled():
            logger.debug("Save for {!r} generation {} was cancelled", key, entry.generation)
            success = False
        elif task.exception() is not None:
            logger.opt(exception=task.exception()).error(
                "Save task for {!r} generation {} aborted", key, entry.generation
            )
            success = False
        else:
            success = task.result()

        latest = self._generations.get(key, 0)
        if entry.generation < latest:
            logger.debug("Generation {} of {!r} superseded by {}", entry.generation, key, latest)

        _call_observer(entry.on_complete, key, success)

        queued = self._pending.get(key)
        if queued is None:
            self._generations.pop(key, None)
        elif queued.handle is None:
            del self._pending[key]
            self._start(key, queued)

        self._wake()

    def __repr__(self) -> str:
        return (
            f"SaveCoordinator(delay={self._config.delay}, "
            f"pending={len(self._pending)}, "
            f"in_flight={len(self._in_flight)})"
        )
