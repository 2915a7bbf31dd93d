import json
import logging

import pytest

from domainanalyzer.api.sse import DEFAULT_EVENT, ServerSentEvent
from domainanalyzer.progress.config import ProgressConfig, get_config, set_config


@pytest.fixture(autouse=True)
def fast_config():
    """Zero-delay progress config so drivers and gates run instantly."""
    original = get_config()
    config = ProgressConfig(
        step=50,
        step_delay=0,
        settle_delay=0,
        back_delay=0,
        stream_timeout=1.0,
        enable_update_debouncing=False,
    )
    set_config(config)
    yield config
    set_config(original)


@pytest.fixture(autouse=True)
def quiet_urllib3():
    logging.getLogger('urllib3').setLevel(logging.WARNING)


@pytest.fixture
def make_event():
    """Factory for ServerSentEvent objects with JSON data."""
    def factory(event=DEFAULT_EVENT, **data):
        return ServerSentEvent(event=event, data=json.dumps(data))
    return factory


@pytest.fixture
def typed_event():
    """Factory for data-only events carrying their type in the JSON body."""
    def factory(event_type, **data):
        return ServerSentEvent(data=json.dumps(dict(type=event_type, **data)))
    return factory
