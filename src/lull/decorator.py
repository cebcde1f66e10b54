"""Decorator API for debounced saves and coalesced refreshes."""

import inspect
from collections.abc import Awaitable, Callable, Hashable
from functools import partial, wraps
from typing import Any, TypeVar, overload

from lull.coordinator import CompleteCallback, SaveCoordinator, StartCallback
from lull.trigger import CoalescingTrigger

F = TypeVar("F", bound=Callable[..., Awaitable[Any]])

KeyFunc = Callable[..., Hashable]


def _resolve_key(key: KeyFunc | Hashable, args: tuple[Any, ...], kwargs: dict[str, Any]) -> Hashable:
    if callable(key):
        return key(*args, **kwargs)
    return key


def debounced(
    coordinator: SaveCoordinator,
    *,
    key: KeyFunc | Hashable,
    delay: float | None = None,
    on_start: StartCallback | None = None,
    on_complete: CompleteCallback | None = None,
) -> Callable[[F], Callable[..., None]]:
    """Decorator that routes calls to an async save function through *coordinator*.

    Calling the decorated function no longer awaits the save: it schedules
    ``fn(*args, **kwargs)`` under the key derived from the same arguments
    and returns ``None`` immediately. Only the last call per key within the
    quiet period is written.

    Args:
        coordinator: The coordinator owning the debounce state.
        key: Either a fixed key or a callable mapping the call's arguments to
            a key (e.g. ``lambda record_id, value: ("title", record_id)``).
        delay: Quiet-period delay in seconds; defaults to the coordinator's.
        on_start: Forwarded to :meth:`SaveCoordinator.schedule`.
        on_complete: Forwarded to :meth:`SaveCoordinator.schedule`.

    Examples:
    ```python
        coordinator = SaveCoordinator()

        @debounced(coordinator, key=lambda script_id, _: ("script", script_id))
        async def save_script(script_id: int, content: str) -> None:
            await client.table("scripts").update({"content": content}).eq("id", script_id).execute()

        save_script(7, "Hel")
        save_script(7, "Hello")  # only this one is written
    ```
    """

    def decorator(fn: F) -> Callable[..., None]:
        if not inspect.iscoroutinefunction(fn):
            raise TypeError("@debounced only supports async functions.")

        @wraps(fn)
        def wrapper(*args: Any, **kwargs: Any) -> None:
            coordinator.schedule(
                _resolve_key(key, args, kwargs),
                partial(fn, *args, **kwargs),
                delay,
                on_start,
                on_complete,
            )

        wrapper.coordinator = coordinator  # type: ignore[attr-defined]
        return wrapper

    return decorator


@overload
def coalesce(
    func: F,
    /,
) -> Callable[..., None]: ...


@overload
def coalesce(
    *,
    delay: float | None = None,
    coordinator: SaveCoordinator | None = None,
) -> Callable[[F], Callable[..., None]]: ...


def coalesce(
    func: F | None = None,
    /,
    *,
    delay: float | None = None,
    coordinator: SaveCoordinator | None = None,
) -> Callable[..., None] | Callable[[F], Callable[..., None]]:
    """Decorator that turns an async refresh function into a coalesced notifier.

    Each call to the decorated function notifies a :class:`CoalescingTrigger`
    instead of refreshing. Any arguments (such as a realtime payload) are
    ignored, so the wrapper can be registered directly as an event callback.

    Args:
        func: The function to decorate (when used without parentheses).
        delay: Quiet period in seconds; defaults to ``TriggerConfig().delay``.
        coordinator: Optional shared coordinator for the trigger.

    Examples:
    ```python
        @coalesce(delay=0.3)
        async def reload_templates() -> None:
            ...

        channel.on_postgres_changes("*", callback=reload_templates, table="scripts")
        reload_templates.dispose()
    ```
    """

    def decorator(fn: F) -> Callable[..., None]:
        if not inspect.iscoroutinefunction(fn):
            raise TypeError("@coalesce only supports async functions.")

        trigger = CoalescingTrigger(fn, delay, coordinator=coordinator)

        @wraps(fn)
        def wrapper(*_: Any, **__: Any) -> None:
            trigger.notify()

        wrapper.trigger = trigger  # type: ignore[attr-defined]
        wrapper.dispose = trigger.dispose  # type: ignore[attr-defined]
        return wrapper

    if func is not None:
        return decorator(func)

    return decorator
