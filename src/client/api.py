"""HTTP client for the remote deal search service."""

from __future__ import annotations

import httpx
import pydantic

from src.shared.config import settings
from src.shared.errors import ApplicationError, ConnectivityError
from src.shared.logging import get_logger, get_tracer
from src.shared.models import Deal, SearchRequest, SearchResponse

logger = get_logger(__name__)
_tracer = get_tracer(__name__)

_SEARCH_PATH = "/search-deals"

_REQUEST_HEADERS = {"Content-Type": "application/json"}


def build_search_url(base_url: str) -> str:
    """Join the configured base URL and the search endpoint path."""
    return base_url.rstrip("/") + _SEARCH_PATH


class DealSearchClient:
    """Posts a shopping requirement to the backend and returns its deals.

    Every transport-level problem (unreachable host, timeout, non-2xx status,
    undecodable or schema-violating body) is reported as
    :class:`ConnectivityError`. A well-formed ``success: false`` reply is
    reported as :class:`ApplicationError`. Nothing is retried.
    """

    def __init__(
        self,
        base_url: str | None = None,
        *,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.base_url = base_url or settings.api_base_url
        self.timeout = timeout if timeout is not None else settings.request_timeout
        self._transport = transport

    @property
    def search_url(self) -> str:
        return build_search_url(self.base_url)

    async def search_deals(self, requirement: str) -> list[Deal]:
        url = self.search_url
        payload = SearchRequest(requirement=requirement).model_dump()

        with _tracer.start_as_current_span(
            "search_deals",
            attributes={"requirement": requirement, "search_url": url},
        ) as span:
            logger.info("Searching deals for '%s'", requirement)
            try:
                async with httpx.AsyncClient(
                    timeout=self.timeout,
                    headers=_REQUEST_HEADERS,
                    transport=self._transport,
                ) as client:
                    response = await client.post(url, json=payload)
            except httpx.HTTPError as exc:
                logger.warning("Request to %s failed: %s", url, exc)
                span.set_attribute("exit_reason", "request_failed")
                span.record_exception(exc)
                raise ConnectivityError() from exc

            span.set_attribute("http_status", response.status_code)

            if not response.is_success:
                logger.warning(
                    "Search returned HTTP %d for '%s'",
                    response.status_code, requirement,
                )
                span.set_attribute("exit_reason", f"http_{response.status_code}")
                raise ConnectivityError()

            try:
                body = SearchResponse.model_validate_json(response.content)
            except pydantic.ValidationError as exc:
                logger.warning("Malformed search response: %s", exc)
                span.set_attribute("exit_reason", "malformed_body")
                span.record_exception(exc)
                raise ConnectivityError() from exc

            if not body.success:
                logger.warning("Backend reported failure: %s", body.error)
                span.set_attribute("exit_reason", "backend_error")
                raise ApplicationError(body.error)

            span.set_attribute("deal_count", len(body.deals))
            logger.info("Found %d deals for '%s'", len(body.deals), requirement)
            return body.deals
