"""Custom exception hierarchy for the book generation core."""

from typing import Optional


class BookGenError(Exception):
    """Base exception for all book generation errors."""

    def __init__(self, message: str, details: Optional[dict] = None):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)

    def __str__(self) -> str:
        if self.details:
            detail_str = ", ".join(f"{k}={v}" for k, v in self.details.items())
            return f"{self.message} ({detail_str})"
        return self.message


# ---- Provider Errors ----

class ProviderError(BookGenError):
    """A backend failed to service a request."""

    def __init__(self, message: str, provider: Optional[str] = None, details: Optional[dict] = None):
        details = dict(details or {})
        if provider:
            details.setdefault("provider", provider)
        super().__init__(message, details)
        self.provider = provider


class ProviderRateLimitError(ProviderError):
    """Backend signalled throttling; the only provider error that is retried."""

    def __init__(
        self,
        message: str = "Provider rate limit exceeded",
        provider: Optional[str] = None,
        retry_after: Optional[float] = None,
    ):
        details = {}
        if retry_after is not None:
            details["retry_after"] = retry_after
        super().__init__(message, provider, details)
        self.retry_after = retry_after


class ProviderTimeoutError(ProviderError):
    """A local provider process exceeded its wall-clock bound."""


class EmptyResponseError(ProviderError):
    """Backend returned no usable text."""


class MalformedResponseError(ProviderError):
    """No parseable JSON in the response, or required fields are missing."""

    def __init__(
        self,
        message: str = "Failed to parse provider response",
        raw_response: str = "",
        provider: Optional[str] = None,
    ):
        details = {"raw_response": raw_response[:200]} if raw_response else {}
        super().__init__(message, provider, details)
        self.raw_response = raw_response


class ImageResponseMissingError(ProviderError):
    """Image backend returned no response body."""


class ImageGenerationFailedError(ProviderError):
    """Image backend payload carried an error field."""


class NoImagesGeneratedError(ProviderError):
    """Image backend succeeded but returned zero images."""


class ProviderNotInstalledError(ProviderError):
    """A local command-line tool is not installed."""


class UnsupportedOperationError(ProviderError):
    """The adapter does not implement the requested operation."""


class AllProvidersFailedError(ProviderError):
    """Every viable provider failed; wraps the attempts in order."""

    def __init__(self, attempts: list[tuple[str, Exception]]):
        self.attempts = attempts
        tried = ", ".join(name for name, _ in attempts)
        last = attempts[-1][1] if attempts else None
        super().__init__(
            f"All providers failed (tried: {tried}): {last}",
            details={"tried": tried},
        )


# ---- Control Flow ----

class GenerationCancelledError(BookGenError):
    """The caller's cancellation check fired at a poll point."""

    def __init__(self, message: str = "Generation cancelled"):
        super().__init__(message)


# ---- Routing Errors ----

class RoutingError(BookGenError):
    """Base exception for provider selection errors."""


class NoProviderAvailableError(RoutingError):
    """No adapter had usable credentials or capability for the operation."""

    def __init__(self, operation: str):
        super().__init__(
            f"No provider available for {operation}",
            {"operation": operation},
        )
        self.operation = operation


# ---- Workflow Errors ----

class WorkflowError(BookGenError):
    """Base exception for generation pipeline errors."""


# ---- Validation Errors ----

class ValidationError(BookGenError):
    """Input validation failed."""


class InvalidConfigError(ValidationError):
    """Configuration value is invalid."""
