"""Generation backends sharing one operation interface."""

from providers.base import BaseProvider, IMAGE_OPERATIONS, TEXT_OPERATIONS
from providers.bedrock import BedrockProvider
from providers.cloud import CloudProvider
from providers.gemini import GeminiProvider
from providers.local import ClaudeCodeProvider, CodexProvider, LocalProvider

__all__ = [
    "BaseProvider",
    "CloudProvider",
    "BedrockProvider",
    "GeminiProvider",
    "LocalProvider",
    "ClaudeCodeProvider",
    "CodexProvider",
    "TEXT_OPERATIONS",
    "IMAGE_OPERATIONS",
]
