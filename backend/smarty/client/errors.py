"""
The single error type raised by the gateway, and its user-facing wording.

Messages embed the HTTP status (``"404: Note not found"``) or the word
``Network`` so that callers can pick user-facing text by substring.
"""
import logging
from typing import List, Optional, Tuple

import httpx

logger = logging.getLogger(__name__)

UNAVAILABLE_STATUSES = (404, 405)


class ApiError(Exception):
    """Any failure talking to the backend."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code

    def __str__(self) -> str:
        return self.message

    @property
    def is_unavailable(self) -> bool:
        """Not found or method not allowed: the endpoint or entity isn't there."""
        return self.status_code in UNAVAILABLE_STATUSES

    @classmethod
    def from_response(cls, response: httpx.Response) -> "ApiError":
        detail = None
        try:
            body = response.json()
        except ValueError:
            body = None
        if isinstance(body, dict):
            detail = body.get("error") or body.get("message") or body.get("detail")
        detail = detail or response.reason_phrase or "An error occurred"
        logger.error("API response error: %s %s", response.status_code, detail)
        return cls(f"{response.status_code}: {detail}", status_code=response.status_code)

    @classmethod
    def network(cls, reason: str) -> "ApiError":
        logger.error("API request error: %s", reason)
        return cls(f"Network request failed: {reason}")


# Checked in order; the first substring found in the message wins
USER_MESSAGES: List[Tuple[str, str]] = [
    ("Network request failed", "Network error. Please check your internet connection."),
    ("401", "Authentication error. Please sign in again."),
    ("403", "You don't have permission to perform this action."),
    ("404", "The requested resource was not found."),
    ("405", "Method not allowed. The API endpoint may have changed."),
    ("500", "Server error. Please try again later."),
]


def describe_error(error: BaseException) -> str:
    """User-facing text for an error raised by the gateway or a store."""
    if not isinstance(error, Exception):
        return "An unexpected error occurred."

    message = str(error)
    for needle, text in USER_MESSAGES:
        if needle in message:
            return text
    return message or "An unexpected error occurred."
