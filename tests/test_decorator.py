"""Tests for the @debounced and @coalesce decorators."""

import asyncio

import pytest

from lull.coordinator import SaveCoordinator
from lull.decorator import _resolve_key, coalesce, debounced
from lull.trigger import CoalescingTrigger


class TestResolveKey:
    def test_callable_key(self):
        key = _resolve_key(lambda record_id, value: ("title", record_id), (7, "x"), {})
        assert key == ("title", 7)

    def test_callable_key_with_kwargs(self):
        key = _resolve_key(lambda *, record_id: record_id, (), {"record_id": 3})
        assert key == 3

    def test_fixed_key(self):
        assert _resolve_key("profile", (1, 2), {"a": 3}) == "profile"


class TestDebouncedDecorator:
    async def test_only_last_call_per_key_is_saved(self):
        coordinator = SaveCoordinator()
        saved: list[tuple[int, str]] = []

        @debounced(coordinator, key=lambda record_id, _: ("title", record_id), delay=0.02)
        async def save_title(record_id: int, title: str) -> None:
            saved.append((record_id, title))

        save_title(1, "H")
        save_title(1, "He")
        save_title(2, "Other")
        save_title(1, "Hello")

        await asyncio.wait_for(coordinator.wait_for_pending_saves(), timeout=1.0)
        assert sorted(saved) == [(1, "Hello"), (2, "Other")]

    async def test_wrapper_returns_none_immediately(self):
        coordinator = SaveCoordinator()
        saved = []

        @debounced(coordinator, key="profile", delay=0.01)
        async def save(value: str) -> None:
            saved.append(value)

        assert save(value="x") is None
        assert saved == []
        await asyncio.wait_for(coordinator.wait_for_pending_saves(), timeout=1.0)
        assert saved == ["x"]

    async def test_observers_forwarded(self):
        coordinator = SaveCoordinator()
        events = []

        @debounced(
            coordinator,
            key="k",
            delay=0,
            on_start=lambda: events.append("start"),
            on_complete=lambda ok: events.append(ok),
        )
        async def save() -> None:
            raise RuntimeError("backend down")

        save()
        await asyncio.wait_for(coordinator.wait_for_pending_saves(), timeout=1.0)
        assert events == ["start", False]

    def test_sync_function_raises(self):
        with pytest.raises(TypeError, match="only supports async functions"):

            @debounced(SaveCoordinator(), key="k")
            def save(value: str) -> None:
                pass

    def test_wrapper_attributes(self):
        coordinator = SaveCoordinator()

        @debounced(coordinator, key="k")
        async def save_notes(value: str) -> None:
            pass

        assert save_notes.coordinator is coordinator  # type: ignore[attr-defined]
        assert save_notes.__name__ == "save_notes"


class TestCoalesceDecorator:
    async def test_without_parentheses(self):
        @coalesce
        async def reload() -> None:
            pass

        assert isinstance(reload.trigger, CoalescingTrigger)  # type: ignore[attr-defined]
        assert reload.trigger.delay == 0.3  # type: ignore[attr-defined]
        assert callable(reload.dispose)  # type: ignore[attr-defined]

    async def test_with_parentheses(self):
        @coalesce(delay=0.05)
        async def reload() -> None:
            pass

        assert reload.trigger.delay == 0.05  # type: ignore[attr-defined]

    async def test_calls_collapse_and_ignore_payload(self):
        calls = []

        @coalesce(delay=0.02)
        async def reload() -> None:
            calls.append(1)

        for n in range(10):
            reload({"eventType": "UPDATE", "n": n})

        await asyncio.wait_for(reload.trigger.wait(), timeout=1.0)  # type: ignore[attr-defined]
        assert calls == [1]

    async def test_dispose_drops_pending_refresh(self):
        calls = []

        @coalesce(delay=0.02)
        async def reload() -> None:
            calls.append(1)

        reload()
        reload.dispose()  # type: ignore[attr-defined]
        await asyncio.sleep(0.05)
        assert calls == []

    async def test_shared_coordinator(self):
        coordinator = SaveCoordinator()

        @coalesce(delay=0.05, coordinator=coordinator)
        async def reload() -> None:
            pass

        reload()
        assert coordinator.pending_count == 1
        coordinator.cancel_all()

    def test_sync_function_raises(self):
        with pytest.raises(TypeError, match="only supports async functions"):

            @coalesce
            def reload() -> None:
                pass

    def test_preserves_function_name(self):
        @coalesce(delay=1.0)
        async def reload_templates() -> None:
            pass

        assert reload_templates.__name__ == "reload_templates"
