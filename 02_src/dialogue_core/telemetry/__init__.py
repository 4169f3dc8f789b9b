"""Telemetry module."""

from .log import ITelemetryLog, TelemetryLog
from .sink import JsonlTelemetrySink, read_records

__all__ = ["ITelemetryLog", "JsonlTelemetrySink", "TelemetryLog", "read_records"]
