"""lull: debounced save coordination for asyncio applications.

Turns bursty, keystroke-level edits into a controlled stream of
asynchronous writes, and collapses bursts of realtime change
notifications into a single refresh.

Basic usage:

    from lull import SaveCoordinator

    coordinator = SaveCoordinator()

    coordinator.schedule(("script", 7, "title"), partial(save_title, 7, "Hel"))
    coordinator.schedule(("script", 7, "title"), partial(save_title, 7, "Hello"))
    # only save_title(7, "Hello") runs, 0.5s after the last call

    await coordinator.wait_for_pending_saves()
    coordinator.cancel_all()

Coalescing usage:

    from lull import CoalescingTrigger

    trigger = CoalescingTrigger(load_templates, delay=0.3)
    trigger.notify()
    trigger.notify()  # one load_templates() call

Logging goes through loguru and is disabled by default; enable it with
``logger.enable("lull")``.
"""

from loguru import logger

from lull.config import CoordinatorConfig, TriggerConfig
from lull.coordinator import SaveCoordinator
from lull.decorator import coalesce, debounced
from lull.saving import SaveResult, safe_save
from lull.trigger import CoalescingTrigger

logger.disable("lull")

__all__ = [
    "CoalescingTrigger",
    "CoordinatorConfig",
    "SaveCoordinator",
    "SaveResult",
    "TriggerConfig",
    "coalesce",
    "debounced",
    "safe_save",
]

__version__ = "0.1.0"
