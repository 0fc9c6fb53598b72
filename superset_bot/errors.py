"""
ERRORS MODULE
=============

The small exception taxonomy shared by the chat service and the API layer.
Every failure a request can hit is turned into one of these at the service
boundary; main.py maps them to JSON responses with the matching status code.

  BadRequest          - message or sessionId missing (400). Nothing was changed.
  ServiceUnavailable  - provider rate limit or overload (429 / 503). Safe to retry later.
  InternalError       - anything else from the provider (auth, timeout, bad response) (500).
  StartupConfigError  - required configuration missing at startup. Fatal, never an HTTP error.
"""

from typing import Optional


class ChatError(Exception):
    """Base class for errors that end up as an HTTP error body ({error, details?})."""

    status_code = 500

    def __init__(self, message: str, details: Optional[str] = None, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.details = details
        if status_code is not None:
            self.status_code = status_code


class BadRequest(ChatError):
    status_code = 400


class ServiceUnavailable(ChatError):
    """Rate limit (429) or temporary overload (503) reported by the provider."""

    status_code = 503


class InternalError(ChatError):
    status_code = 500


class StartupConfigError(Exception):
    """Raised by config validation when the server must not start (e.g. no API key)."""
