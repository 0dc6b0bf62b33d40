"""
Telemetry module for structured logging and tracing.

This module provides:
- JSONFormatter for structured JSON log output
- TelemetryService for centralized logging and tracing setup
- store_span for wrapping store operations in OpenTelemetry spans
"""

from sessionstore.telemetry.service import (
    JSONFormatter,
    TelemetryService,
    get_request_id,
    get_telemetry_service,
    initialize_telemetry,
    reset_telemetry,
    set_request_id,
    short_id,
    store_span,
)

__all__ = [
    "JSONFormatter",
    "TelemetryService",
    "get_request_id",
    "get_telemetry_service",
    "initialize_telemetry",
    "reset_telemetry",
    "set_request_id",
    "short_id",
    "store_span",
]
