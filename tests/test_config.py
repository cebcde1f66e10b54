"""Tests for CoordinatorConfig and TriggerConfig."""

import pytest

from lull.config import CoordinatorConfig, TriggerConfig


class TestCoordinatorConfig:
    def test_defaults(self):
        cfg = CoordinatorConfig()
        assert cfg.delay == 0.5

    def test_custom_delay(self):
        cfg = CoordinatorConfig(delay=1.5)
        assert cfg.delay == 1.5

    def test_zero_delay_allowed(self):
        cfg = CoordinatorConfig(delay=0)
        assert cfg.delay == 0

    def test_negative_delay_raises(self):
        with pytest.raises(ValueError, match="delay must be non-negative"):
            CoordinatorConfig(delay=-0.1)

    def test_frozen(self):
        cfg = CoordinatorConfig()
        with pytest.raises(AttributeError):
            cfg.delay = 5.0  # type: ignore[misc]


class TestTriggerConfig:
    def test_defaults(self):
        cfg = TriggerConfig()
        assert cfg.delay == 0.3

    def test_negative_delay_raises(self):
        with pytest.raises(ValueError, match="delay must be non-negative"):
            TriggerConfig(delay=-1.0)

    def test_frozen(self):
        cfg = TriggerConfig()
        with pytest.raises(AttributeError):
            cfg.delay = 1.0  # type: ignore[misc]
