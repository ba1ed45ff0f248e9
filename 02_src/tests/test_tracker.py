"""Tests for DeliveryTracker."""

import logging
from datetime import datetime, timezone

from conftest import make_event
from teams_sink.errors import DeliveryError, DeliveryErrorKind
from teams_sink.models import DeliveryOutcome, DeliveryResult
from teams_sink.tracker import DeliveryTracker


def failed_result(kind=DeliveryErrorKind.STATUS, status=500) -> DeliveryResult:
    return DeliveryResult(
        status_code=status,
        error=DeliveryError(kind, f"webhook returned HTTP {status}", status_code=status),
    )


class TestTrackerRecord:
    """Tests for recording outcomes."""

    def test_delivered_creates_report(self, tracker):
        """Test that delivered() records a report."""
        tracker.delivered(make_event(), 1, DeliveryResult(status_code=204), attempts=1)

        [report] = tracker.get_reports()
        assert report.outcome == DeliveryOutcome.DELIVERED
        assert report.counter == 1
        assert report.level == "Warning"
        assert report.summary == "User 42 failed"
        assert report.attempts == 1
        assert report.id is not None

    def test_failed_records_error(self, tracker):
        """Test that failed() keeps the error kind and message."""
        tracker.failed(make_event(), 3, failed_result(), attempts=2)

        [report] = tracker.get_reports()
        assert report.outcome == DeliveryOutcome.FAILED
        assert report.error_kind == "status"
        assert report.detail == "webhook returned HTTP 500"
        assert report.attempts == 2

    def test_lost_records_reason(self, tracker):
        """Test that lost() keeps the reason."""
        tracker.lost(make_event(), "queue limit reached")

        [report] = tracker.get_reports()
        assert report.outcome == DeliveryOutcome.LOST
        assert report.counter is None
        assert report.detail == "queue limit reached"

    def test_report_timestamp(self, tracker):
        """Test that reports are timestamped."""
        before = datetime.now(timezone.utc)
        tracker.lost(make_event(), "x")
        after = datetime.now(timezone.utc)

        assert before <= tracker.get_reports()[0].timestamp <= after

    def test_summary_truncated(self, tracker):
        """Test that the summary keeps only the first 100 chars."""
        tracker.lost(make_event(rendered="x" * 500), "x")
        assert len(tracker.get_reports()[0].summary) == 100

    def test_non_string_summary(self, tracker):
        """Test that a non-string rendered message is stringified."""
        tracker.lost(make_event(rendered=42), "x")
        assert tracker.get_reports()[0].summary == "42"


class TestTrackerQueries:
    """Tests for stats and report queries."""

    def test_stats(self, tracker):
        """Test outcome counters."""
        tracker.delivered(make_event(), 1, DeliveryResult(status_code=204), attempts=1)
        tracker.delivered(make_event(), 2, DeliveryResult(status_code=204), attempts=1)
        tracker.failed(make_event(), 3, failed_result(), attempts=1)
        tracker.lost(make_event(), "x")

        assert tracker.stats == {"delivered": 2, "failed": 1, "lost": 1}

    def test_filter_by_outcome(self, tracker):
        """Test get_reports outcome filter."""
        tracker.delivered(make_event(), 1, DeliveryResult(status_code=204), attempts=1)
        tracker.lost(make_event(), "x")

        lost = tracker.get_reports(outcome=DeliveryOutcome.LOST)
        assert [r.outcome for r in lost] == [DeliveryOutcome.LOST]

    def test_limit_keeps_latest(self, tracker):
        """Test that limit returns the most recent reports."""
        for i in range(5):
            tracker.lost(make_event(rendered=str(i)), "x")

        assert [r.summary for r in tracker.get_reports(limit=2)] == ["3", "4"]

    def test_history_is_bounded(self):
        """Test that old reports are evicted, counters are not."""
        tracker = DeliveryTracker(history=3)
        for i in range(5):
            tracker.lost(make_event(rendered=str(i)), "x")

        assert len(tracker.get_reports()) == 3
        assert tracker.stats["lost"] == 5


class TestTrackerCallback:
    """Tests for the diagnostics callback."""

    def test_callback_on_failure_and_loss(self):
        """Test that failures and losses reach the callback, deliveries do not."""
        reports = []
        tracker = DeliveryTracker(on_error=reports.append)

        tracker.delivered(make_event(), 1, DeliveryResult(status_code=204), attempts=1)
        tracker.failed(make_event(), 2, failed_result(DeliveryErrorKind.TIMEOUT), attempts=1)
        tracker.lost(make_event(), "x")

        assert [r.outcome for r in reports] == [DeliveryOutcome.FAILED, DeliveryOutcome.LOST]

    def test_callback_error_is_swallowed(self):
        """Test that a failing callback doesn't propagate."""

        def broken(report):
            raise RuntimeError("callback broke")

        tracker = DeliveryTracker(on_error=broken)
        tracker.lost(make_event(), "x")

        assert tracker.stats["lost"] == 1


class TestTrackerLogging:
    """Tests for the structured log records."""

    def test_failure_log_carries_context(self, tracker, caplog):
        """Test that failure logs expose the report fields as context."""
        with caplog.at_level(logging.WARNING, logger="teams_sink.tracker"):
            tracker.failed(make_event(), 5, failed_result(), attempts=3)

        [record] = caplog.records
        assert record.context["outcome"] == "failed"
        assert record.context["counter"] == 5
        assert record.context["attempts"] == 3
        assert record.context["error_kind"] == "status"

    def test_loss_log_carries_context(self, tracker, caplog):
        """Test that loss logs expose the report id."""
        with caplog.at_level(logging.WARNING, logger="teams_sink.tracker"):
            tracker.lost(make_event(), "queue limit reached")

        [record] = caplog.records
        assert record.context["outcome"] == "lost"
        assert record.context["report_id"] == tracker.get_reports()[0].id
