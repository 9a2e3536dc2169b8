"""Tests for livedown.observability — structured pipeline events."""

from livedown.observability.collector import StackCollector
from livedown.observability.events import (
    ContentBroadcast,
    DocumentReadFailed,
    DocumentRendered,
    SessionStateChanged,
    StaleResultDiscarded,
    ViewerConnected,
    ViewerDisconnected,
    now_ns,
)
from livedown.observability.log import EventLog


def _rendered(path: str = "/a.md", seq: int = 1) -> DocumentRendered:
    return DocumentRendered(
        path=path, seq=seq, html_bytes=10, render_ms=0.5, timestamp_ns=now_ns(),
    )


# ---------------------------------------------------------------------------
# EventLog
# ---------------------------------------------------------------------------


class TestEventLog:
    """Tests for the event log store."""

    def test_append_and_len(self) -> None:
        log = EventLog()
        assert len(log) == 0
        log.append(_rendered())
        assert len(log) == 1

    def test_oldest_events_dropped(self) -> None:
        log = EventLog(max_events=5)
        for i in range(10):
            log.append(_rendered(seq=i))
        assert len(log) == 5
        assert [e.seq for e in log.query()] == [9, 8, 7, 6, 5]

    def test_query_by_type(self) -> None:
        log = EventLog()
        log.append(_rendered())
        log.append(ViewerConnected(client_id="c1", timestamp_ns=now_ns()))
        results = log.query(event_type=ViewerConnected)
        assert len(results) == 1
        assert results[0].client_id == "c1"

    def test_query_by_path(self) -> None:
        log = EventLog()
        log.append(_rendered("/docs/a.md"))
        log.append(_rendered("/docs/b.md"))
        log.append(ViewerConnected(client_id="c1", timestamp_ns=now_ns()))
        assert len(log.query(path="a.md")) == 1

    def test_query_most_recent_first_and_limit(self) -> None:
        log = EventLog()
        for i in range(5):
            log.append(_rendered(seq=i))
        assert [e.seq for e in log.query(limit=2)] == [4, 3]


class TestEventLogStats:
    """stats() — the summary behind /__livedown/stats."""

    def test_empty(self) -> None:
        stats = EventLog(max_events=100).stats()
        assert stats["total"] == 0
        assert stats["max_events"] == 100
        assert stats["by_type"] == {}
        assert stats["last_render"] is None
        assert stats["last_read_error"] is None

    def test_counts(self) -> None:
        log = EventLog()
        log.append(_rendered())
        log.append(_rendered())
        log.append(ViewerConnected(client_id="c", timestamp_ns=now_ns()))
        stats = log.stats()
        assert stats["total"] == 3
        assert stats["by_type"] == {"DocumentRendered": 2, "ViewerConnected": 1}
        assert stats["viewer_sessions"] == 1

    def test_latest_render_and_failure(self) -> None:
        log = EventLog()
        log.append(_rendered(seq=1))
        log.append(DocumentReadFailed(path="/a.md", seq=2, error="gone", timestamp_ns=now_ns()))
        log.append(_rendered(seq=3))
        stats = log.stats()
        assert stats["last_render"] == {"seq": 3, "html_bytes": 10, "render_ms": 0.5}
        assert stats["last_read_error"] == {"seq": 2, "error": "gone"}


# ---------------------------------------------------------------------------
# StackCollector
# ---------------------------------------------------------------------------


class TestStackCollector:
    """record_* helpers build the right events."""

    def test_default_log(self) -> None:
        assert isinstance(StackCollector().log, EventLog)

    def test_record_render(self) -> None:
        collector = StackCollector()
        collector.record_render("/a.md", seq=3, html_bytes=42, render_ms=1.5)
        (event,) = collector.log.query(event_type=DocumentRendered)
        assert (event.path, event.seq, event.html_bytes, event.render_ms) == ("/a.md", 3, 42, 1.5)

    def test_record_read_failure(self) -> None:
        collector = StackCollector()
        collector.record_read_failure("/a.md", seq=2, error="boom")
        (event,) = collector.log.query(event_type=DocumentReadFailed)
        assert event.error == "boom"

    def test_record_stale(self) -> None:
        collector = StackCollector()
        collector.record_stale("/a.md", seq=2, applied_seq=3)
        (event,) = collector.log.query(event_type=StaleResultDiscarded)
        assert (event.seq, event.applied_seq) == (2, 3)

    def test_record_viewers(self) -> None:
        collector = StackCollector()
        collector.record_connect("c1")
        collector.record_broadcast("content", clients_notified=1)
        collector.record_disconnect("c1")
        assert len(collector.log.query(event_type=ViewerConnected)) == 1
        assert len(collector.log.query(event_type=ViewerDisconnected)) == 1
        (broadcast,) = collector.log.query(event_type=ContentBroadcast)
        assert broadcast.event == "content"

    def test_record_state(self) -> None:
        collector = StackCollector()
        collector.record_state("server", "running", "/a.md")
        (event,) = collector.log.query(event_type=SessionStateChanged)
        assert (event.source, event.state, event.path) == ("server", "running", "/a.md")
