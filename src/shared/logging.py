"""Logging and tracing for the deal finder client.

Log records and spans carry the id of the search that produced them
(``search-<n>``), read from a context variable the controller sets when a
request starts. Logs go to stderr so the screen on stdout stays clean.
"""

from __future__ import annotations

import contextvars
import logging
import sys

from opentelemetry import trace
from opentelemetry.sdk.trace import SpanProcessor, TracerProvider

from src.shared.config import settings

_search_id_var: contextvars.ContextVar[str] = contextvars.ContextVar(
    "search_id", default=""
)


def set_search_id(search_id: str) -> None:
    _search_id_var.set(search_id)


def get_search_id() -> str:
    return _search_id_var.get()


class SearchIdFilter(logging.Filter):
    """Copy the current search id onto each record as ``record.search_id``."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.search_id = _search_id_var.get()  # type: ignore[attr-defined]
        return True


class ConsoleFormatter(logging.Formatter):
    """``HH:MM:SS LEVEL [search-N] logger: message``.

    The level name is coloured only when writing to a terminal.
    """

    _COLORS = {"WARNING": "\033[33m", "ERROR": "\033[31m", "CRITICAL": "\033[35m"}

    def __init__(self, color: bool = False) -> None:
        super().__init__(datefmt="%H:%M:%S")
        self.color = color

    def format(self, record: logging.LogRecord) -> str:
        level = record.levelname
        if self.color and level in self._COLORS:
            level = f"{self._COLORS[level]}{level}\033[0m"
        search_id = getattr(record, "search_id", "")
        tag = f" [{search_id}]" if search_id else ""
        line = f"{self.formatTime(record, self.datefmt)} {level}{tag} {record.name}: {record.getMessage()}"
        if record.exc_info:
            line += "\n" + self.formatException(record.exc_info)
        return line


_initialized = False


def setup_logging() -> None:
    """Install the stderr handler on the root logger once."""
    global _initialized  # noqa: PLW0603
    if _initialized:
        return
    _initialized = True

    handler = logging.StreamHandler(sys.stderr)
    handler.addFilter(SearchIdFilter())
    handler.setFormatter(ConsoleFormatter(color=sys.stderr.isatty()))

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(getattr(logging, settings.log_level.upper(), logging.INFO))

    # httpx logs every request at INFO.
    for lib in ("httpx", "httpcore"):
        logging.getLogger(lib).setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    setup_logging()
    return logging.getLogger(name)


class SearchIdSpanProcessor(SpanProcessor):
    """Set ``search.id`` on spans started while a search is running."""

    def on_start(self, span: trace.Span, parent_context: object = None) -> None:  # type: ignore[override]
        search_id = _search_id_var.get()
        if search_id:
            span.set_attribute("search.id", search_id)


def build_tracer_provider() -> TracerProvider:
    """Provider with the search id processor and the configured exporter, if any."""
    from opentelemetry.sdk.resources import Resource

    provider = TracerProvider(
        resource=Resource.create({"service.name": "deal-finder-client"})
    )
    provider.add_span_processor(SearchIdSpanProcessor())

    if settings.otel_exporter_endpoint:
        from opentelemetry.exporter.otlp.proto.http.trace_exporter import (
            OTLPSpanExporter,
        )
        from opentelemetry.sdk.trace.export import BatchSpanProcessor

        exporter = OTLPSpanExporter(endpoint=settings.otel_exporter_endpoint)
        provider.add_span_processor(BatchSpanProcessor(exporter))
    elif settings.trace_console:
        from opentelemetry.sdk.trace.export import (
            ConsoleSpanExporter,
            SimpleSpanProcessor,
        )

        provider.add_span_processor(
            SimpleSpanProcessor(ConsoleSpanExporter(out=sys.stderr))
        )
    return provider


_tracer_initialized = False


def get_tracer(name: str) -> trace.Tracer:
    global _tracer_initialized  # noqa: PLW0603
    if not _tracer_initialized:
        _tracer_initialized = True
        trace.set_tracer_provider(build_tracer_provider())
    return trace.get_tracer(name)


def shutdown_tracing() -> None:
    """Flush pending spans before the process exits."""
    provider = trace.get_tracer_provider()
    if hasattr(provider, "shutdown"):
        provider.shutdown()
