"""Tests for telemetry providers."""

from __future__ import annotations

import logging

import pytest

from pairchat.telemetry.base import Metric, SpanKind
from pairchat.telemetry.console import ConsoleTelemetryProvider
from pairchat.telemetry.mock import MockTelemetryProvider
from pairchat.telemetry.noop import NoopTelemetryProvider


class TestMockTelemetry:
    def test_span_context_manager_records_ok(self) -> None:
        telemetry = MockTelemetryProvider()
        with telemetry.span(SpanKind.CUSTOM, "work", conversation_key="a_b") as span_id:
            telemetry.set_attribute(span_id, "answer", 42)

        (span,) = telemetry.get_spans(SpanKind.CUSTOM)
        assert span.status == "ok"
        assert span.conversation_key == "a_b"
        assert span.attributes == {"answer": 42}
        assert span.duration_ms is not None

    def test_span_records_error_and_reraises(self) -> None:
        telemetry = MockTelemetryProvider()
        with pytest.raises(RuntimeError), telemetry.span(SpanKind.CUSTOM, "boom"):
            raise RuntimeError("bad")

        (span,) = telemetry.spans
        assert span.status == "error"
        assert span.error_message == "bad"

    def test_metrics_and_reset(self) -> None:
        telemetry = MockTelemetryProvider()
        telemetry.record_metric(Metric.UNREAD_COUNT, 3, attributes={"k": "v"})
        assert telemetry.get_metrics(Metric.UNREAD_COUNT)[0]["value"] == 3
        telemetry.reset()
        assert telemetry.metrics == []


class TestConsoleTelemetry:
    def test_logs_span_summary(self, caplog: pytest.LogCaptureFixture) -> None:
        telemetry = ConsoleTelemetryProvider()
        with caplog.at_level(logging.INFO, logger="pairchat.telemetry"):
            span_id = telemetry.start_span(
                SpanKind.MESSAGE_SEND, "message.send", conversation_key="alice_bob"
            )
            telemetry.end_span(span_id, attributes={"message.length": 5})
            telemetry.record_metric(Metric.STATUS_TRANSITION, 1)

        assert "[SPAN] message.send message.send" in caplog.text
        assert "conversation=alice_bob" in caplog.text
        assert "message.length=5" in caplog.text
        assert "[METRIC] pairchat.status.transition" in caplog.text


class TestNoopTelemetry:
    def test_accepts_everything(self) -> None:
        telemetry = NoopTelemetryProvider()
        with telemetry.span(SpanKind.SIGN_IN, "sign_in") as span_id:
            telemetry.set_attribute(span_id, "x", 1)
        telemetry.record_metric(Metric.SOFT_WRITE_FAILURE, 1)
        telemetry.close()
