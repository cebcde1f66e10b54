"""Configuration types for the lull library."""

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class CoordinatorConfig:
    """Configuration for a SaveCoordinator instance.

    Attributes:
        delay: Default quiet-period delay in seconds, used when ``schedule``
               is called without an explicit delay. ``0`` still defers the
               save to the next event loop iteration.
    """

    delay: float = 0.5

    def __post_init__(self) -> None:
        if self.delay < 0:
            raise ValueError(f"delay must be non-negative, got {self.delay}")


@dataclass(frozen=True, slots=True)
class TriggerConfig:
    """Configuration for a CoalescingTrigger.

    Attributes:
        delay: Quiet period in seconds after the last notification before the
               refresh callback runs.
    """

    delay: float = 0.3

    def __post_init__(self) -> None:
        if self.delay < 0:
            raise ValueError(f"delay must be non-negative, got {self.delay}")
