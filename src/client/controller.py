"""Search screen controller.

Owns the query text, the search lifecycle state and the result set, and
applies request completions in submission order: each request is tagged
with a sequence number and only the latest one may update the state.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable, Coroutine, Sequence
from dataclasses import dataclass
from typing import Any, Protocol

from src.client.links import LinkOpener, open_link
from src.shared.errors import (
    ConnectivityError,
    DealFinderError,
    LinkOpenError,
    ValidationError,
)
from src.shared.logging import get_logger, set_search_id
from src.shared.models import Deal, SearchPhase

logger = get_logger(__name__)

Notifier = Callable[[str, str], Awaitable[None]]

_ERROR_TITLE = "Error"


class DealSource(Protocol):
    async def search_deals(self, requirement: str) -> Sequence[Deal]: ...


def validate_requirement(raw_query: str) -> str:
    """Return the trimmed query, or raise :class:`ValidationError` if blank."""
    requirement = raw_query.strip()
    if not requirement:
        raise ValidationError()
    return requirement


@dataclass
class SearchState:
    """Mutable state of one search screen.

    ``phase`` is derived from the other fields; use the transition methods
    rather than assigning them one by one.
    """

    query: str = ""
    requirement: str = ""
    deals: tuple[Deal, ...] = ()
    error_message: str | None = None
    has_searched: bool = False
    loading: bool = False

    @property
    def phase(self) -> SearchPhase:
        if self.loading:
            return SearchPhase.LOADING
        if self.error_message is not None:
            return SearchPhase.ERROR
        if self.deals:
            return SearchPhase.SUCCESS
        if self.has_searched:
            return SearchPhase.EMPTY
        return SearchPhase.IDLE

    def begin_loading(self, requirement: str) -> None:
        self.requirement = requirement
        self.deals = ()
        self.error_message = None
        self.has_searched = True
        self.loading = True

    def apply_results(self, deals: Sequence[Deal]) -> None:
        self.deals = tuple(deals)
        self.error_message = None
        self.loading = False

    def apply_error(self, message: str) -> None:
        self.deals = ()
        self.error_message = message
        self.loading = False


class SearchController:
    """Drives a :class:`SearchState` through the search lifecycle."""

    def __init__(
        self,
        client: DealSource,
        notifier: Notifier | None = None,
        link_opener: LinkOpener | None = None,
    ) -> None:
        self.state = SearchState()
        self._client = client
        self._notifier = notifier
        self._link_opener = link_opener
        self._sequence = 0
        self._tasks: set[asyncio.Task[SearchState]] = set()

    @property
    def sequence(self) -> int:
        return self._sequence

    def set_query(self, text: str) -> None:
        self.state.query = text

    def submit_search(self, raw_query: str | None = None) -> asyncio.Task[SearchState]:
        """Start a search without waiting for it.

        Validation and the transition to LOADING happen before this returns;
        the network round trip runs in the returned task. Must be called from
        within a running event loop.
        """
        if raw_query is not None:
            self.state.query = raw_query
        try:
            requirement = validate_requirement(self.state.query)
        except ValidationError as exc:
            logger.info("Rejected blank search query")
            return self._spawn(self._surface(exc))

        self._sequence += 1
        sequence = self._sequence
        self.state.begin_loading(requirement)
        return self._spawn(self._perform(sequence, requirement))

    async def search(self, raw_query: str | None = None) -> SearchState:
        return await self.submit_search(raw_query)

    async def open_deal(self, url: str) -> bool:
        """Open a deal link; failures are surfaced and leave the state alone."""
        try:
            open_link(url, self._link_opener)
        except LinkOpenError as exc:
            await self._notify(exc.message)
            return False
        return True

    async def open_rank(self, rank: int) -> bool:
        """Open the deal shown at 1-based *rank* in the current results."""
        deals = self.state.deals
        if not 1 <= rank <= len(deals):
            logger.info("No deal at rank %d (have %d)", rank, len(deals))
            await self._notify(LinkOpenError.default_message)
            return False
        return await self.open_deal(deals[rank - 1].url)

    def _is_current(self, sequence: int) -> bool:
        return sequence == self._sequence

    async def _perform(self, sequence: int, requirement: str) -> SearchState:
        set_search_id(f"search-{sequence}")
        try:
            deals = await self._client.search_deals(requirement)
        except asyncio.CancelledError:
            # A cancelled latest search must not stay in LOADING.
            if self._is_current(sequence):
                self.state.apply_error(ConnectivityError.default_message)
            raise
        except DealFinderError as exc:
            return await self._settle_error(sequence, exc.message)
        except Exception:
            logger.error("Unexpected error searching for '%s'", requirement, exc_info=True)
            return await self._settle_error(sequence, ConnectivityError.default_message)

        if not self._is_current(sequence):
            logger.debug("Discarding stale results of search %d", sequence)
            return self.state

        self.state.apply_results(deals)
        logger.info("Search %d settled as %s", sequence, self.state.phase.value)
        return self.state

    async def _settle_error(self, sequence: int, message: str) -> SearchState:
        if not self._is_current(sequence):
            logger.debug("Discarding stale failure of search %d", sequence)
            return self.state
        self.state.apply_error(message)
        logger.info("Search %d settled as error: %s", sequence, message)
        await self._notify(message)
        return self.state

    async def _surface(self, exc: DealFinderError) -> SearchState:
        await self._notify(exc.message)
        return self.state

    async def _notify(self, message: str) -> None:
        if self._notifier:
            await self._notifier(_ERROR_TITLE, message)

    def _spawn(
        self, coro: Coroutine[Any, Any, SearchState]
    ) -> asyncio.Task[SearchState]:
        task = asyncio.get_running_loop().create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task
