"""Configuration package: settings, credentials, logging, and exceptions."""

from config.exceptions import (
    BookGenError,
    ProviderError,
    ProviderRateLimitError,
    ProviderTimeoutError,
    EmptyResponseError,
    MalformedResponseError,
    ImageResponseMissingError,
    ImageGenerationFailedError,
    NoImagesGeneratedError,
    ProviderNotInstalledError,
    UnsupportedOperationError,
    AllProvidersFailedError,
    GenerationCancelledError,
    RoutingError,
    NoProviderAvailableError,
    WorkflowError,
    ValidationError,
    InvalidConfigError,
)
from config.logging_config import setup_logging
from config.settings import Settings, get_settings
from config.credentials import AICredentials, BedrockCredentials, RuntimeEnvironment

__all__ = [
    "Settings",
    "get_settings",
    "setup_logging",
    "AICredentials",
    "BedrockCredentials",
    "RuntimeEnvironment",
    "BookGenError",
    "ProviderError",
    "ProviderRateLimitError",
    "ProviderTimeoutError",
    "EmptyResponseError",
    "MalformedResponseError",
    "ImageResponseMissingError",
    "ImageGenerationFailedError",
    "NoImagesGeneratedError",
    "ProviderNotInstalledError",
    "UnsupportedOperationError",
    "AllProvidersFailedError",
    "GenerationCancelledError",
    "RoutingError",
    "NoProviderAvailableError",
    "WorkflowError",
    "ValidationError",
    "InvalidConfigError",
]
