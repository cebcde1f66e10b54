"""Supabase realtime integration for the lull library.

Provides :class:`RealtimeRefresher`, which binds a Supabase realtime
``postgres_changes`` subscription to a :class:`CoalescingTrigger`, so a
burst of row changes results in a single refetch.

Example::

    from supabase import acreate_client
    from lull.integrations.supabase import RealtimeRefresher

    client = await acreate_client(url, key)

    async with RealtimeRefresher(
        client,
        "templates-changes",
        load_templates,
        table="scripts",
        filter="is_template=eq.true",
    ):
        ...
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Literal

from loguru import logger

from lull.trigger import CoalescingTrigger

if TYPE_CHECKING:
    from realtime import AsyncRealtimeChannel
    from supabase import AsyncClient

    from lull.coordinator import Producer, SaveCoordinator

ChangeEvent = Literal["*", "INSERT", "UPDATE", "DELETE"]


class RealtimeRefresher:
    """Coalesces Supabase realtime change events into one refresh per quiet period.

    Args:
        client: An async Supabase client.
        channel_name: Name of the realtime channel to open.
        refresh: Zero-argument async callable that refetches the data.
        table: Table whose changes should trigger a refresh.
        schema: Database schema of *table*.
        event: Which change events to listen for. ``"*"`` listens to all.
        filter: Optional PostgREST-style row filter, e.g. ``"is_template=eq.true"``.
        delay: Quiet period in seconds; defaults to ``TriggerConfig().delay``.
        coordinator: Optional shared coordinator for the trigger.
    """

    def __init__(
        self,
        client: AsyncClient,
        channel_name: str,
        refresh: Producer,
        *,
        table: str,
        schema: str = "public",
        event: ChangeEvent = "*",
        filter: str | None = None,  # noqa: A002
        delay: float | None = None,
        coordinator: SaveCoordinator | None = None,
    ) -> None:
        self._client = client
        self._channel_name = channel_name
        self._table = table
        self._schema = schema
        self._event = event
        self._filter = filter
        self._trigger = CoalescingTrigger(refresh, delay, coordinator=coordinator)
        self._channel: AsyncRealtimeChannel | None = None

    @property
    def trigger(self) -> CoalescingTrigger:
        """Access the underlying :class:`CoalescingTrigger` instance."""
        return self._trigger

    @property
    def subscribed(self) -> bool:
        return self._channel is not None

    async def start(self) -> None:
        """Open the channel and subscribe to changes (idempotent)."""
        if self._channel is not None:
            return
        channel = self._client.channel(self._channel_name)
        channel.on_postgres_changes(
            self._event,
            callback=self._on_change,
            table=self._table,
            schema=self._schema,
            filter=self._filter,
        )
        await channel.subscribe()
        self._channel = channel
        logger.debug("Subscribed {} to {}.{}", self._channel_name, self._schema, self._table)

    async def close(self) -> None:
        """Remove the channel and drop any pending refresh (idempotent)."""
        self._trigger.dispose()
        if self._channel is None:
            return
        channel, self._channel = self._channel, None
        await self._client.remove_channel(channel)
        logger.debug("Removed channel {}", self._channel_name)

    def _on_change(self, _payload: Any) -> None:
        logger.debug("Change received on {}", self._channel_name)
        self._trigger.notify()

    async def __aenter__(self) -> RealtimeRefresher:
        await self.start()
        return self

    async def __aexit__(self, *_: Any) -> None:
        await self.close()
