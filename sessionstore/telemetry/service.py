"""
Telemetry service for structured logging and tracing.

Log records from the ``sessionstore`` package are written as JSON lines
whose top-level keys name the store, the operation and the (truncated)
session id, so one backend's traffic can be filtered out of a shared
log stream. Session store operations are optionally traced with
OpenTelemetry.
"""

import json
import logging
import sys
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Any, Dict, Optional

# Set by the session middleware of the host application
request_id_var: ContextVar[str] = ContextVar("request_id", default="")

#: Logger every store module logs under.
PACKAGE_LOGGER = "sessionstore"

#: Keys from a record's ``extra_data`` lifted to the top of the entry.
STORE_FIELDS = ("backend", "operation", "table", "session_id", "count", "error")


class JSONFormatter(logging.Formatter):
    """
    Formats session store log records as single-line JSON.

    Each entry carries timestamp, level, logger and message, then the
    STORE_FIELDS present in the record's ``extra_data``. Remaining
    ``extra_data`` keys are nested under "context" so they can never
    shadow the fixed keys. The request id is included when one is set.
    """

    def format(self, record: logging.LogRecord) -> str:
        created = datetime.fromtimestamp(record.created, tz=timezone.utc)
        entry: Dict[str, Any] = {
            "timestamp": created.isoformat(timespec="milliseconds").replace("+00:00", "Z"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        request_id = request_id_var.get("")
        if request_id:
            entry["request_id"] = request_id

        context = dict(getattr(record, "extra_data", None) or {})
        for name in STORE_FIELDS:
            if name in context:
                entry[name] = context.pop(name)
        if context:
            entry["context"] = context

        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)

        entry["source"] = f"{record.module}:{record.lineno}"
        return json.dumps(entry, default=str)


class _JSONStreamHandler(logging.StreamHandler):
    """Stdout handler installed on the package logger by TelemetryService."""


class TelemetryService:
    """
    Logging and tracing setup for the session store package.

    Only the ``sessionstore`` logger is configured; the host
    application's root logger and handlers are left alone.
    """

    def __init__(self, settings: Optional[Any] = None):
        """
        Initialize the telemetry service.

        Args:
            settings: Settings object providing log_level, otel_endpoint
                     and otel_service_name
        """
        self.settings = settings
        self.tracer = None
        self._logger = None
        self._setup_logging()
        self._setup_tracing()

    def _setup_logging(self) -> None:
        """
        Send ``sessionstore`` records to stdout as JSON at the configured level.

        Records stop propagating to the root logger so they are not
        written twice. Calling this again replaces the earlier handler.
        """
        log_level_str = getattr(self.settings, "log_level", None) or "INFO"
        log_level = getattr(logging, log_level_str.upper(), logging.INFO)

        package_logger = logging.getLogger(PACKAGE_LOGGER)
        package_logger.setLevel(log_level)
        for handler in package_logger.handlers[:]:
            if isinstance(handler, _JSONStreamHandler):
                package_logger.removeHandler(handler)

        handler = _JSONStreamHandler(sys.stdout)
        handler.setFormatter(JSONFormatter())
        package_logger.addHandler(handler)
        package_logger.propagate = False

        self._logger = logging.getLogger(f"{PACKAGE_LOGGER}.telemetry")
        self._logger.info("Telemetry service initialized", extra={
            "extra_data": {"log_level": log_level_str}
        })

    def _setup_tracing(self) -> None:
        """
        Configure OpenTelemetry tracing.

        Sets up the TracerProvider and OTLP span exporter if an endpoint
        is configured in settings.
        """
        if not self.settings:
            return

        otel_endpoint = getattr(self.settings, "otel_endpoint", None)
        if not otel_endpoint:
            self._logger.debug("OpenTelemetry endpoint not configured, tracing disabled")
            return

        from opentelemetry import trace
        from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
        from opentelemetry.sdk.resources import SERVICE_NAME, Resource
        from opentelemetry.sdk.trace import TracerProvider
        from opentelemetry.sdk.trace.export import BatchSpanProcessor

        service_name = getattr(self.settings, "otel_service_name", "sessionstore")

        provider = TracerProvider(resource=Resource(attributes={
            SERVICE_NAME: service_name
        }))
        provider.add_span_processor(
            BatchSpanProcessor(OTLPSpanExporter(endpoint=otel_endpoint))
        )
        trace.set_tracer_provider(provider)

        self.tracer = trace.get_tracer(service_name)

        self._logger.info("OpenTelemetry tracing configured", extra={
            "extra_data": {
                "otel_endpoint": otel_endpoint,
                "service_name": service_name
            }
        })

    def create_span(self, name: str, attributes: Optional[Dict[str, Any]] = None):
        """
        Create an OpenTelemetry span.

        Args:
            name: Name of the span
            attributes: Optional attributes to add to the span

        Returns:
            Span context manager, or a no-op context manager if tracing
            is not configured
        """
        if self.tracer:
            return self.tracer.start_as_current_span(name, attributes=attributes)
        return _NoOpSpanContextManager()

    def create_store_span(
        self,
        backend: str,
        operation: str,
        attributes: Optional[Dict[str, Any]] = None
    ):
        """
        Create a span for one session store operation.

        Args:
            backend: Store backend name (e.g., "sqlite", "postgres")
            operation: The operation being performed (e.g., "save", "load")
            attributes: Optional additional attributes for the span

        Returns:
            Span context manager
        """
        span_attributes = {
            "db.system": backend,
            "db.operation": operation,
            "span.kind": "client",
        }

        if attributes:
            span_attributes.update(attributes)

        return self.create_span(f"session_store.{operation}", span_attributes)


class _NoOpSpanContextManager:
    """
    No-op context manager for when tracing is not configured.

    This allows code to use span context managers without checking
    if tracing is enabled.
    """

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        return False

    def set_attribute(self, key: str, value: Any) -> None:
        pass


# Global telemetry service instance
_telemetry_service: Optional[TelemetryService] = None


def get_telemetry_service() -> Optional[TelemetryService]:
    """
    Get the global telemetry service instance.

    Returns:
        The telemetry service instance, or None if not initialized
    """
    return _telemetry_service


def initialize_telemetry(settings: Optional[Any] = None) -> TelemetryService:
    """
    Initialize the global telemetry service.

    Args:
        settings: Settings for configuration

    Returns:
        The initialized telemetry service
    """
    global _telemetry_service
    _telemetry_service = TelemetryService(settings)
    return _telemetry_service


def reset_telemetry() -> None:
    """Forget the global telemetry service. Used by tests."""
    global _telemetry_service
    _telemetry_service = None


def store_span(backend: str, operation: str, attributes: Optional[Dict[str, Any]] = None):
    """
    Span for a store operation, or a no-op if telemetry is not initialized.
    """
    if _telemetry_service is None:
        return _NoOpSpanContextManager()
    return _telemetry_service.create_store_span(backend, operation, attributes)


def short_id(session_id: Any) -> str:
    """Truncate a session id for logging."""
    return str(session_id)[:8] + "..."


def set_request_id(request_id: str) -> None:
    """
    Set the request ID for the current context.

    Args:
        request_id: The request ID to set
    """
    request_id_var.set(request_id)


def get_request_id() -> str:
    """
    Get the current request ID from context.

    Returns:
        The current request ID, or empty string if not set
    """
    return request_id_var.get("")
