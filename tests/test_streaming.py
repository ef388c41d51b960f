"""Tests for modes/streaming.py event conversion and the stream loop."""

import json
from types import SimpleNamespace
from unittest.mock import MagicMock, patch

import requests

from config.loader import MonitorConfig
from core.ip_matcher import AttributionTable
from core.models import AccountConfig
from modes.streaming import diff_url_for, event_to_edit, iter_edits, run_streaming_monitor


def edit_event(**overrides):
    data = {
        "type": "edit",
        "wiki": "enwiki",
        "title": "Test Page",
        "user": "10.0.0.42",
        "bot": False,
        "comment": "fix typo",
        "server_url": "https://en.wikipedia.org",
        "revision": {"old": 100, "new": 101},
        "meta": {"dt": "2024-01-02T03:04:05Z"},
    }
    data.update(overrides)
    return data


def sse(data):
    return SimpleNamespace(data=json.dumps(data) if not isinstance(data, str) else data)


class TestDiffUrl:
    """Tests for diff_url_for."""

    def test_edit(self):
        assert diff_url_for(edit_event()) == "https://en.wikipedia.org/w/index.php?diff=101&oldid=100"

    def test_new_page(self):
        data = edit_event(type="new", revision={"old": None, "new": 55})
        assert diff_url_for(data) == "https://en.wikipedia.org/w/index.php?oldid=55"

    def test_log_event_has_no_url(self):
        assert diff_url_for(edit_event(type="log", revision=None)) == ""

    def test_categorize_event_has_no_url(self):
        assert diff_url_for(edit_event(type="categorize")) == ""

    def test_missing_server(self):
        assert diff_url_for(edit_event(server_url=None)) == ""


class TestEventToEdit:
    """Tests for event_to_edit."""

    def test_anonymous_edit(self):
        edit = event_to_edit(edit_event())
        assert edit.wiki == "enwiki"
        assert edit.page == "Test Page"
        assert edit.editor == "10.0.0.42"
        assert edit.anonymous is True
        assert edit.url.endswith("diff=101&oldid=100")
        assert edit.timestamp == "2024-01-02T03:04:05Z"
        assert edit.comment == "fix typo"

    def test_ipv6_editor_is_anonymous(self):
        assert event_to_edit(edit_event(user="2001:db8::1")).anonymous is True

    def test_registered_editor(self):
        assert event_to_edit(edit_event(user="Alice")).anonymous is False

    def test_incomplete_event(self):
        assert event_to_edit({"wiki": "enwiki", "title": "T"}) is None
        assert event_to_edit(edit_event(title="")) is None

    def test_wiki_filter(self):
        assert event_to_edit(edit_event(wiki="dewiki"), wikis={"enwiki"}) is None
        assert event_to_edit(edit_event(wiki="enwiki"), wikis={"enwiki"}) is not None

    def test_no_filter_keeps_every_wiki(self):
        assert event_to_edit(edit_event(wiki="frwiki")) is not None


class TestIterEdits:

    def test_skips_empty_and_malformed_events(self):
        events = [
            SimpleNamespace(data=""),
            sse("{broken"),
            sse("[1, 2]"),
            sse({"wiki": "enwiki"}),
            sse(edit_event(title="Kept")),
        ]
        assert [edit.page for edit in iter_edits(events)] == ["Kept"]


class TestRunStreamingMonitor:
    """Tests for run_streaming_monitor with the network mocked out."""

    def make_config(self):
        account = AccountConfig(
            template="{name} edited {page}",
            ranges=AttributionTable.from_config({"ExampleOrg": ["10.0.0.0", "10.0.0.255"]}),
            name="example",
        )
        return MonitorConfig(accounts=[account], wikis=["enwiki"])

    @patch("modes.streaming.time.sleep")
    @patch("modes.streaming.sseclient.SSEClient")
    @patch("modes.streaming.requests.get")
    def test_dispatches_edits_until_interrupted(self, mock_get, mock_sse, mock_sleep, capsys):
        events = [
            sse(edit_event()),
            sse(edit_event(user="10.0.1.1")),
            sse(edit_event(wiki="dewiki")),
        ]

        def stream():
            yield from events
            raise KeyboardInterrupt

        mock_sse.return_value.events.return_value = stream()
        publisher = MagicMock(return_value=True)

        total = run_streaming_monitor(self.make_config(), publisher)

        assert total == 1
        publisher.assert_called_once()
        _, status, edit = publisher.call_args[0]
        assert status == "ExampleOrg edited Test Page"
        assert edit.editor == "10.0.0.42"
        assert "ExampleOrg edited Test Page" in capsys.readouterr().out

    @patch("modes.streaming.time.sleep")
    @patch("modes.streaming.sseclient.SSEClient")
    @patch("modes.streaming.requests.get")
    def test_reconnects_after_connection_error(self, mock_get, mock_sse, mock_sleep):
        def interrupted():
            raise KeyboardInterrupt
            yield

        mock_get.side_effect = [requests.exceptions.ConnectionError("reset"), MagicMock()]
        mock_sse.return_value.events.return_value = interrupted()

        run_streaming_monitor(self.make_config(), MagicMock(return_value=True))

        assert mock_get.call_count == 2
        mock_sleep.assert_called_once()
