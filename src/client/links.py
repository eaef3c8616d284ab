"""Opening deal links with the platform browser."""

from __future__ import annotations

import webbrowser
from collections.abc import Callable

from src.shared.errors import LinkOpenError
from src.shared.logging import get_logger

logger = get_logger(__name__)

LinkOpener = Callable[[str], bool]


def open_link(url: str, opener: LinkOpener | None = None) -> None:
    """Ask the platform to open *url* externally.

    Uses :func:`webbrowser.open` unless another *opener* is given. Raises
    :class:`LinkOpenError` when the opener fails or reports that nothing
    handled the request.
    """
    opener = opener or webbrowser.open
    try:
        opened = opener(url)
    except Exception as exc:
        logger.warning("Opener raised for %s", url, exc_info=True)
        raise LinkOpenError() from exc
    if not opened:
        logger.warning("No handler opened %s", url)
        raise LinkOpenError()
