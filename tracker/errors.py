"""
errors.py
Exception types raised by the channel tracker.

Every error carries a human-readable ``message`` that the API layer returns
verbatim, plus optional ``details`` for the underlying cause.
"""

from typing import Any, Optional


class TrackerError(Exception):
    """Base class for all tracker failures."""

    message = "Channel tracker error"

    def __init__(self, message: Optional[str] = None, details: Any = None):
        self.message = message or self.message
        self.details = details
        super().__init__(self.message)

    def to_payload(self) -> dict:
        out = {"error": self.message}
        if self.details is not None:
            out["details"] = self.details
        return out


class ProviderError(TrackerError):
    """YouTube answered with an error, garbage, or an unexpected payload shape."""

    message = "YouTube API error"

    def __init__(self, message=None, details=None, code: Optional[int] = None, reason: Optional[str] = None):
        super().__init__(message, details)
        self.code = code
        self.reason = reason


class QuotaExceeded(ProviderError):
    """403 / quotaExceeded for the key that issued the request."""

    message = "Youtube API quota exceeded"


class DurationParseError(ProviderError):
    message = "Malformed ISO-8601 duration"


class NoKeyAvailable(TrackerError):
    message = "No Youtube API keys with enough quota available right now"


class MalformedInput(TrackerError):
    message = "Malformed input"


class DuplicateChannel(TrackerError):
    message = "This channel already exists in the system"


class ChannelNotFound(TrackerError):
    message = "Channel not found"
