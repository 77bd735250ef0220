"""Exception taxonomy for engine calls.

Cancellation is plain ``asyncio.CancelledError`` and is never wrapped.
"""


class ExtSearchError(Exception):
    """Base class for extsearch errors."""


class EngineError(ExtSearchError):
    """An engine call failed for an ordinary reason (HTTP error, bad payload)."""

    def __init__(self, engine_id: str, message: str):
        super().__init__(message)
        self.engine_id = engine_id


class EngineNotConfiguredError(EngineError):
    """Raised when an engine is called without its credentials or base URL."""


class RateLimitedError(EngineError):
    """Raised when an engine answers HTTP 429."""
