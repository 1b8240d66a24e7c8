"""Tests for aumai_apichaos.observer — DecisionRecorder and log_event."""

from __future__ import annotations

import logging
import threading
from datetime import UTC, datetime

import pytest

from aumai_apichaos.models import ChaosEvent, DecisionEvent
from aumai_apichaos.observer import DecisionRecorder, log_event


def _event(kind: ChaosEvent, **details: object) -> DecisionEvent:
    return DecisionEvent(
        timestamp=datetime.now(tz=UTC),
        event=kind,
        correlation_id="abc123",
        details=dict(details),
    )


# ---------------------------------------------------------------------------
# DecisionRecorder
# ---------------------------------------------------------------------------


class TestDecisionRecorder:
    def test_records_in_order(self, recorder: DecisionRecorder) -> None:
        recorder(_event(ChaosEvent.decision_started))
        recorder(_event(ChaosEvent.delay_chosen, milliseconds=5))
        events = recorder.get_events()
        assert [e.event for e in events] == [
            ChaosEvent.decision_started,
            ChaosEvent.delay_chosen,
        ]

    def test_filter_by_kind(self, recorder: DecisionRecorder) -> None:
        recorder(_event(ChaosEvent.decision_started))
        recorder(_event(ChaosEvent.error_chosen))
        recorder(_event(ChaosEvent.error_chosen))
        assert len(recorder.get_events(ChaosEvent.error_chosen)) == 2

    def test_returns_copy(self, recorder: DecisionRecorder) -> None:
        recorder(_event(ChaosEvent.decision_started))
        copy = recorder.get_events()
        copy.clear()
        assert len(recorder.get_events()) == 1

    def test_empty_by_default(self, recorder: DecisionRecorder) -> None:
        assert recorder.get_events() == []

    def test_clear(self, recorder: DecisionRecorder) -> None:
        recorder(_event(ChaosEvent.decision_started))
        recorder.clear()
        assert recorder.get_events() == []

    def test_concurrent_appends(self, recorder: DecisionRecorder) -> None:
        def worker() -> None:
            for _ in range(500):
                recorder(_event(ChaosEvent.decision_completed))

        threads = [threading.Thread(target=worker) for _ in range(4)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()
        assert len(recorder.get_events()) == 2000

    def test_maxlen_keeps_most_recent(self) -> None:
        recorder = DecisionRecorder(maxlen=3)
        for milliseconds in range(5):
            recorder(_event(ChaosEvent.delay_chosen, milliseconds=milliseconds))
        kept = [e.details["milliseconds"] for e in recorder.get_events()]
        assert kept == [2, 3, 4]

    def test_maxlen_must_be_positive(self) -> None:
        with pytest.raises(ValueError):
            DecisionRecorder(maxlen=0)


# ---------------------------------------------------------------------------
# log_event
# ---------------------------------------------------------------------------


class TestLogEvent:
    def test_error_logged_as_warning(self, caplog: pytest.LogCaptureFixture) -> None:
        with caplog.at_level(logging.DEBUG, logger="aumai_apichaos"):
            log_event(_event(ChaosEvent.error_chosen, status_code=503))
        record = caplog.records[0]
        assert record.levelno == logging.WARNING
        assert "error_chosen" in record.getMessage()
        assert "abc123" in record.getMessage()
        assert "status_code=503" in record.getMessage()

    def test_delay_logged_as_info(self, caplog: pytest.LogCaptureFixture) -> None:
        with caplog.at_level(logging.DEBUG, logger="aumai_apichaos"):
            log_event(_event(ChaosEvent.delay_chosen, milliseconds=250))
        assert caplog.records[0].levelno == logging.INFO

    def test_start_suppressed_above_debug(self, caplog: pytest.LogCaptureFixture) -> None:
        with caplog.at_level(logging.INFO, logger="aumai_apichaos"):
            log_event(_event(ChaosEvent.decision_started))
        assert caplog.records == []

    def test_missing_correlation_id_rendered_as_dash(
        self, caplog: pytest.LogCaptureFixture
    ) -> None:
        event = DecisionEvent(
            timestamp=datetime.now(tz=UTC), event=ChaosEvent.decision_skipped
        )
        with caplog.at_level(logging.DEBUG, logger="aumai_apichaos"):
            log_event(event)
        assert "[-]" in caplog.records[0].getMessage()
