"""Shared fixtures for the monitor tests."""

import pytest

from core.ip_matcher import AttributionTable
from core.models import AccountConfig, EditEvent


@pytest.fixture
def make_edit():
    """Build an EditEvent with sensible defaults."""
    def _make_edit(**overrides):
        fields = {
            "wiki": "enwiki",
            "page": "Test Page",
            "editor": "10.0.0.42",
            "anonymous": True,
            "url": "https://en.wikipedia.org/w/index.php?diff=2&oldid=1",
        }
        fields.update(overrides)
        return EditEvent(**fields)
    return _make_edit


@pytest.fixture
def ranges_account():
    """Account attributing 10.0.0.0 - 10.0.0.255 to ExampleOrg."""
    return AccountConfig(
        template="{name} edited {page} {url}",
        ranges=AttributionTable.from_config({"ExampleOrg": ["10.0.0.0", "10.0.0.255"]}),
        name="example",
    )


class RecordingPublisher:
    """Publisher stand-in that records every hand-off."""

    def __init__(self, result=True):
        self.calls = []
        self.result = result

    def __call__(self, account, status, edit):
        self.calls.append((account, status, edit))
        return self.result


@pytest.fixture
def publisher():
    return RecordingPublisher()


@pytest.fixture
def failing_publisher():
    return RecordingPublisher(result=False)
