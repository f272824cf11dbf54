"""Tests for the watch client command."""

import io

import httpx
import pytest
from click.testing import CliRunner

from syncstream.cli import main
from syncstream.cli import watch_cmd
from syncstream.core.errors import ErrorCode, SyncStreamError
from syncstream.core.events import Event, EventKind
from syncstream.cli.watch_cmd import follow, parse_event_stream

URL = "http://mirror.test/v1/sync"

SUCCESS_BODY = (
    "event:stdout\ndata:total 64K\n\n"
    "event:stderr\ndata:skipping non-regular file\n\n"
    "event:error\ndata:\n\n"
)
FAILURE_BODY = (
    "event:stdout\ndata:hi there\n\n"
    "event:stderr\ndata:error\n\n"
    "event:error\ndata:exit status 1\n\n"
)


def _client(body: str, status_code: int = 200) -> httpx.Client:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(
            status_code,
            content=body.encode(),
            headers={"Content-Type": "text/event-stream"},
        )

    return httpx.Client(transport=httpx.MockTransport(handler))


class TestParseEventStream:
    """Tests for parse_event_stream."""

    def test_parses_frames(self) -> None:
        events = list(parse_event_stream(FAILURE_BODY.split("\n")))

        assert events == [
            Event(EventKind.STDOUT, "hi there"),
            Event(EventKind.STDERR, "error"),
            Event(EventKind.ERROR, "exit status 1"),
        ]

    def test_multiline_data_is_joined(self) -> None:
        lines = ["event:error", "data:first", "data:second", ""]

        assert list(parse_event_stream(lines)) == [Event.completion("first\nsecond")]

    def test_leading_whitespace_is_kept(self) -> None:
        lines = ["event:stdout", "data:  1,024 100%", ""]

        assert list(parse_event_stream(lines)) == [Event(EventKind.STDOUT, "  1,024 100%")]

    def test_comments_and_unknown_events_are_skipped(self) -> None:
        lines = [": keepalive", "", "event:progress", "data:50", "", "event:error", "data:"]

        assert list(parse_event_stream(lines)) == [Event.completion()]


class TestFollow:
    """Tests for follow()."""

    def test_success_routes_channels(self) -> None:
        out, err = io.StringIO(), io.StringIO()

        code = follow(URL, client=_client(SUCCESS_BODY), out=out, err=err)

        assert code == 0
        assert out.getvalue() == "total 64K\n"
        assert err.getvalue() == "skipping non-regular file\n"

    def test_failure_prints_reason_and_returns_one(self) -> None:
        out, err = io.StringIO(), io.StringIO()

        code = follow(URL, client=_client(FAILURE_BODY), out=out, err=err)

        assert code == 1
        assert out.getvalue() == "hi there\n"
        assert err.getvalue() == "error\nexit status 1\n"

    def test_stream_without_terminal_event(self) -> None:
        with pytest.raises(SyncStreamError) as exc_info:
            follow(URL, client=_client("event:stdout\ndata:partial\n\n"), out=io.StringIO(), err=io.StringIO())

        assert exc_info.value.code is ErrorCode.STREAM_INCOMPLETE

    def test_http_error_status(self) -> None:
        with pytest.raises(SyncStreamError) as exc_info:
            follow(URL, client=_client("not here", status_code=404), out=io.StringIO(), err=io.StringIO())

        assert exc_info.value.code is ErrorCode.NETWORK_UNREACHABLE


class TestWatchCommand:
    """Tests for `syncstream watch`."""

    def test_exit_code_zero_on_success(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr(watch_cmd, "make_client", lambda timeout: _client(SUCCESS_BODY))

        result = CliRunner().invoke(main, ["watch", URL])

        assert result.exit_code == 0
        assert "total 64K" in result.output

    def test_exit_code_one_on_failure(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr(watch_cmd, "make_client", lambda timeout: _client(FAILURE_BODY))

        result = CliRunner().invoke(main, ["watch", URL])

        assert result.exit_code == 1
        assert "hi there" in result.output

    def test_timeout_option_reaches_client(self, monkeypatch: pytest.MonkeyPatch) -> None:
        seen = []

        def make_client(timeout: float) -> httpx.Client:
            seen.append(timeout)
            return _client(SUCCESS_BODY)

        monkeypatch.setattr(watch_cmd, "make_client", make_client)

        CliRunner().invoke(main, ["watch", "--timeout", "5", URL])

        assert seen == [5.0]
