"""Error taxonomy surfaced to the user by the search screen."""

from __future__ import annotations


class DealFinderError(Exception):
    """Base error carrying a user-facing message."""

    default_message = "Something went wrong"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(DealFinderError):
    default_message = "Please enter what you're looking for"


class ApplicationError(DealFinderError):
    default_message = "Failed to fetch deals"


class ConnectivityError(DealFinderError):
    default_message = "Failed to connect to server. Make sure the backend is running."


class LinkOpenError(DealFinderError):
    default_message = "Failed to open link"
