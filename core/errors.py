#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
Upstream error taxonomy for AI calls.

Transient errors (HTTP 429 rate limited, HTTP 503 overloaded) are worth
retrying after a delay; everything else is terminal. Classification reads
structured status fields first and only falls back to scanning the message
text for "429"/"503" when the error carries no status at all.
"""

import re
from typing import Optional

import httpx

from config.constants import TRANSIENT_STATUS_CODES, BUSY_MESSAGE


class UpstreamError(Exception):
    """Base class for failures of the upstream AI service"""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class TransientUpstreamError(UpstreamError):
    """Rate limited or overloaded upstream - retry later"""


class TerminalUpstreamError(UpstreamError):
    """Upstream failure that a retry will not fix (auth, bad request, parse error)"""


class RetriesExhaustedError(UpstreamError):
    """Transient failures persisted through the whole attempt budget"""

    def __init__(self, attempts: int, last_error: BaseException):
        super().__init__(
            f"Gave up after {attempts} attempt(s): {last_error}",
            status_code=extract_status_code(last_error),
        )
        self.attempts = attempts
        self.last_error = last_error


class QueueLogicError(RuntimeError):
    """Admission queue invariant violated (programming error)"""


_STATUS_IN_MESSAGE = re.compile(r"\b(429|503)\b")


def extract_status_code(error: BaseException) -> Optional[int]:
    """
    Best-effort HTTP status code of an upstream error.

    Order: our own ``status_code``, httpx response status, integer ``code``
    (google-api-core exceptions), integer ``status``, then a "429"/"503"
    token in the message.
    """
    status = getattr(error, "status_code", None)
    if isinstance(status, int):
        return status

    if isinstance(error, httpx.HTTPStatusError):
        return error.response.status_code

    for attr in ("code", "status"):
        value = getattr(error, attr, None)
        if isinstance(value, int) and not isinstance(value, bool):
            return value

    match = _STATUS_IN_MESSAGE.search(str(error))
    if match:
        return int(match.group(1))
    return None


def is_transient_error(error: BaseException) -> bool:
    """True if the error should be retried with backoff."""
    if isinstance(error, RetriesExhaustedError):
        return False
    if isinstance(error, TransientUpstreamError):
        return True
    if isinstance(error, TerminalUpstreamError):
        return False
    return extract_status_code(error) in TRANSIENT_STATUS_CODES


def wrap_upstream_error(error: BaseException) -> UpstreamError:
    """
    Convert a client-library exception into Transient/TerminalUpstreamError.

    Errors that are already UpstreamError instances are returned unchanged.
    """
    if isinstance(error, UpstreamError):
        return error
    status = extract_status_code(error)
    message = str(error) or error.__class__.__name__
    if status in TRANSIENT_STATUS_CODES:
        return TransientUpstreamError(message, status_code=status)
    return TerminalUpstreamError(message, status_code=status)


def is_busy_error(error: BaseException) -> bool:
    """Busy = transient, or transient until the retry budget ran out."""
    return isinstance(error, RetriesExhaustedError) or is_transient_error(error)


def user_message(error: BaseException) -> str:
    """Text shown to staff: generic busy notice or the underlying message."""
    if is_busy_error(error):
        return BUSY_MESSAGE
    return str(error) or "Internal Server Error"
