"""Telemetry provider system for pairchat."""

from pairchat.telemetry.base import Attr, Metric, Span, SpanKind, TelemetryProvider
from pairchat.telemetry.console import ConsoleTelemetryProvider
from pairchat.telemetry.mock import MockTelemetryProvider
from pairchat.telemetry.noop import NoopTelemetryProvider

__all__ = [
    "Attr",
    "ConsoleTelemetryProvider",
    "Metric",
    "MockTelemetryProvider",
    "NoopTelemetryProvider",
    "Span",
    "SpanKind",
    "TelemetryProvider",
]
