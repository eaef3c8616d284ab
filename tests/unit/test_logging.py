"""Tests for search-id propagation into logs and spans."""

from __future__ import annotations

import logging
from unittest.mock import AsyncMock, patch

import httpx
import pytest
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import SimpleSpanProcessor
from opentelemetry.sdk.trace.export.in_memory_span_exporter import InMemorySpanExporter

import src.client.api as api
import src.shared.logging as log_mod
from src.client.api import DealSearchClient
from src.client.controller import SearchController
from src.shared import config
from src.shared.logging import ConsoleFormatter, SearchIdFilter, SearchIdSpanProcessor


class RecordingHandler(logging.Handler):
    def __init__(self) -> None:
        super().__init__()
        self.records: list[logging.LogRecord] = []
        self.addFilter(SearchIdFilter())

    def emit(self, record: logging.LogRecord) -> None:
        self.records.append(record)


@pytest.fixture
def controller_records():
    logger = logging.getLogger("src.client.controller")
    handler = RecordingHandler()
    previous = logger.level
    logger.addHandler(handler)
    logger.setLevel(logging.DEBUG)
    yield handler.records
    logger.removeHandler(handler)
    logger.setLevel(previous)


@pytest.fixture
def captured_spans(monkeypatch):
    exporter = InMemorySpanExporter()
    provider = TracerProvider()
    provider.add_span_processor(SearchIdSpanProcessor())
    provider.add_span_processor(SimpleSpanProcessor(exporter))
    monkeypatch.setattr(api, "_tracer", provider.get_tracer("test"))
    yield exporter
    provider.shutdown()


@pytest.fixture
def fresh_logging_setup():
    root = logging.getLogger()
    saved_handlers, saved_level = list(root.handlers), root.level
    log_mod._initialized = False
    yield
    log_mod._initialized = False
    root.handlers[:] = saved_handlers
    root.setLevel(saved_level)


def _settled(records: list[logging.LogRecord]) -> list[str]:
    return [r.search_id for r in records if "settled" in r.getMessage()]


async def test_each_search_logs_under_its_own_id(deals, controller_records):
    source = AsyncMock()
    source.search_deals.return_value = deals
    controller = SearchController(source)

    await controller.search("headphones")
    await controller.search("tv")

    assert _settled(controller_records) == ["search-1", "search-2"]


async def test_search_id_does_not_leak_to_caller(deals):
    source = AsyncMock()
    source.search_deals.return_value = deals

    await SearchController(source).search("headphones")

    assert log_mod.get_search_id() == ""


async def test_failed_search_logs_under_its_id(controller_records):
    source = AsyncMock()
    source.search_deals.side_effect = RuntimeError("bug")

    await SearchController(source).search("tv")

    errors = [r for r in controller_records if r.levelno == logging.ERROR]
    assert [r.search_id for r in errors] == ["search-1"]
    assert errors[0].exc_info is not None


async def test_search_deals_span_carries_search_id(deal_payloads, captured_spans):
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"success": True, "deals": deal_payloads})

    controller = SearchController(DealSearchClient(transport=httpx.MockTransport(handler)))
    await controller.search("headphones")
    await controller.search("headphones")

    spans = captured_spans.get_finished_spans()
    assert [s.name for s in spans] == ["search_deals", "search_deals"]
    assert [s.attributes["search.id"] for s in spans] == ["search-1", "search-2"]
    assert spans[0].attributes["requirement"] == "headphones"
    assert spans[0].attributes["http_status"] == 200
    assert spans[0].attributes["deal_count"] == 2


async def test_failed_request_span_records_exit_reason(captured_spans):
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(502)

    controller = SearchController(DealSearchClient(transport=httpx.MockTransport(handler)))
    await controller.search("tv")

    (span,) = captured_spans.get_finished_spans()
    assert span.attributes["exit_reason"] == "http_502"
    assert span.attributes["search.id"] == "search-1"


def test_span_outside_a_search_has_no_search_id():
    exporter = InMemorySpanExporter()
    provider = TracerProvider()
    provider.add_span_processor(SearchIdSpanProcessor())
    provider.add_span_processor(SimpleSpanProcessor(exporter))

    with provider.get_tracer("test").start_as_current_span("idle"):
        pass

    (span,) = exporter.get_finished_spans()
    assert "search.id" not in (span.attributes or {})
    provider.shutdown()


def test_console_line_shows_search_tag():
    record = logging.LogRecord(
        name="src.client.api", level=logging.WARNING, pathname="", lineno=0,
        msg="Search returned HTTP %d", args=(502,), exc_info=None,
    )
    record.search_id = "search-4"

    line = ConsoleFormatter().format(record)

    assert line.endswith("WARNING [search-4] src.client.api: Search returned HTTP 502")
    assert "\033[" not in line


def test_console_colour_only_when_asked():
    record = logging.LogRecord(
        name="x", level=logging.ERROR, pathname="", lineno=0,
        msg="boom", args=(), exc_info=None,
    )
    assert "\033[31mERROR\033[0m" in ConsoleFormatter(color=True).format(record)
    assert " [" not in ConsoleFormatter().format(record)


def test_setup_logging_installs_one_handler(fresh_logging_setup, monkeypatch):
    monkeypatch.setattr(config.settings, "log_level", "warning")

    log_mod.setup_logging()
    log_mod.setup_logging()

    root = logging.getLogger()
    ours = [h for h in root.handlers if isinstance(h.formatter, ConsoleFormatter)]
    assert len(ours) == 1
    assert root.level == logging.WARNING
    assert logging.getLogger("httpx").level == logging.WARNING


def test_tracer_provider_without_exporters(monkeypatch):
    monkeypatch.setattr(config.settings, "otel_exporter_endpoint", "")
    monkeypatch.setattr(config.settings, "trace_console", False)

    provider = log_mod.build_tracer_provider()

    processors = provider._active_span_processor._span_processors
    assert [type(p) for p in processors] == [SearchIdSpanProcessor]
    provider.shutdown()


def test_tracer_provider_console_exporter(monkeypatch):
    monkeypatch.setattr(config.settings, "otel_exporter_endpoint", "")
    monkeypatch.setattr(config.settings, "trace_console", True)

    provider = log_mod.build_tracer_provider()

    processors = provider._active_span_processor._span_processors
    assert any(isinstance(p, SimpleSpanProcessor) for p in processors)
    provider.shutdown()


def test_shutdown_tracing_flushes_global_provider():
    with patch("src.shared.logging.trace.get_tracer_provider") as mock_get:
        log_mod.shutdown_tracing()
    mock_get.return_value.shutdown.assert_called_once()
