"""Shared fixtures for lull tests."""

import pytest
from loguru import logger

from lull.config import CoordinatorConfig
from lull.coordinator import SaveCoordinator


@pytest.fixture
def fast_config():
    return CoordinatorConfig(delay=0.05)


@pytest.fixture
async def coordinator(fast_config):
    c = SaveCoordinator(config=fast_config)
    yield c
    c.cancel_all()
    await c.wait_for_pending_saves()


@pytest.fixture
def log_records():
    """Capture loguru records emitted by the lull package."""
    records = []
    logger.enable("lull")
    handler_id = logger.add(lambda message: records.append(message.record), level="DEBUG")
    yield records
    logger.remove(handler_id)
    logger.disable("lull")
