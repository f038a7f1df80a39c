"""Cooperative cancellation shared between the pipeline, router, and adapters."""

import logging
from typing import Callable, Optional, Union

from config.exceptions import GenerationCancelledError

logger = logging.getLogger(__name__)

CancelCheck = Callable[[], bool]


class CancellationToken:
    """A mutable cancel flag polled before and after each provider call.

    The token may also wrap a caller-supplied ``() -> bool`` check (e.g. a
    UI "stop" button state); it reports cancelled if either fires. In-flight
    network calls are never interrupted, only the next poll observes it.
    """

    def __init__(self, check: Optional[CancelCheck] = None):
        self._cancelled = False
        self._check = check

    @classmethod
    def coerce(cls, value: Union["CancellationToken", CancelCheck, None]) -> "CancellationToken":
        """Accept a token, a bare check function, or None."""
        if isinstance(value, CancellationToken):
            return value
        if value is None:
            return cls()
        if callable(value):
            return cls(value)
        raise TypeError(f"Cannot build a CancellationToken from {type(value).__name__}")

    def cancel(self) -> None:
        if not self._cancelled:
            logger.info("Cancellation requested")
        self._cancelled = True

    def reset(self) -> None:
        """Clear the flag so a stopped run can be resumed with the same token."""
        self._cancelled = False

    @property
    def is_cancelled(self) -> bool:
        if self._cancelled:
            return True
        return bool(self._check and self._check())

    def raise_if_cancelled(self) -> None:
        if self.is_cancelled:
            raise GenerationCancelledError()
