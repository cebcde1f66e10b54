"""Coalescing trigger that collapses notification bursts into one refresh."""

from __future__ import annotations

from collections.abc import Hashable
from typing import Any

from loguru import logger

from lull.config import TriggerConfig
from lull.coordinator import Producer, SaveCoordinator


class CoalescingTrigger:
    """Runs *refresh* once per quiet period, however many notifications arrive.

    Every :meth:`notify` re-arms the same timer on the underlying
    :class:`SaveCoordinator`, so a burst of realtime change events turns
    into a single refetch. A notification that arrives while a refresh is
    running queues exactly one more refresh after it.

    Args:
        refresh: Zero-argument async callable performing the refetch.
        delay: Quiet period in seconds. Defaults to ``config.delay``.
        coordinator: Coordinator to schedule on. A private one is created
            when omitted; pass a shared one to keep one registry per view.
        key: Key used on the coordinator. Defaults to the trigger itself,
            which is unique per trigger.
        config: Trigger configuration. Defaults to ``TriggerConfig()``.

    Example::

        trigger = CoalescingTrigger(load_templates, delay=0.3)

        for _ in range(50):
            trigger.notify()    # one load_templates() ~0.3s later

        trigger.dispose()
    """

    __slots__ = ("_config", "_coordinator", "_delay", "_key", "_refresh")

    def __init__(
        self,
        refresh: Producer,
        delay: float | None = None,
        *,
        coordinator: SaveCoordinator | None = None,
        key: Hashable | None = None,
        config: TriggerConfig | None = None,
    ) -> None:
        self._config = config or TriggerConfig()
        if delay is None:
            delay = self._config.delay
        elif delay < 0:
            raise ValueError(f"delay must be non-negative, got {delay}")
        self._refresh = refresh
        self._delay = delay
        self._coordinator = coordinator or SaveCoordinator()
        self._key: Hashable = self if key is None else key

    @property
    def delay(self) -> float:
        return self._delay

    @property
    def coordinator(self) -> SaveCoordinator:
        return self._coordinator

    @property
    def pending(self) -> bool:
        """True while a refresh is waiting for the quiet period to end."""
        return self._coordinator.is_pending(self._key)

    @property
    def refreshing(self) -> bool:
        return self._coordinator.is_saving(self._key)

    def notify(self) -> None:
        """Record a change notification and (re)arm the refresh timer."""
        self._coordinator.schedule(self._key, self._refresh, self._delay, on_complete=self._on_complete)

    def dispose(self) -> None:
        """Drop the pending refresh. A refresh already running is not interrupted."""
        self._coordinator.cancel(self._key)

    async def wait(self) -> None:
        """Wait until this trigger has no refresh pending or running.

        Work scheduled under other keys of a shared coordinator is not waited for.
        """
        await self._coordinator.wait_for(self._key)

    def _on_complete(self, success: bool) -> None:
        if not success:
            logger.warning("Refresh {!r} failed", self._refresh)

    async def __aenter__(self) -> CoalescingTrigger:
        return self

    async def __aexit__(self, *_: Any) -> None:
        self.dispose()

    def __repr__(self) -> str:
        return f"CoalescingTrigger(refresh={self._refresh!r}, delay={self._delay})"
