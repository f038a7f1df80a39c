"""Per-run credential and environment values handed to the router."""

from dataclasses import dataclass, field
from typing import Optional

from config.settings import Settings


@dataclass(frozen=True)
class BedrockCredentials:
    access_key_id: str = field(default="", repr=False)
    secret_access_key: str = field(default="", repr=False)
    session_token: Optional[str] = field(default=None, repr=False)
    region: str = "us-east-1"
    model_id: Optional[str] = None

    @property
    def is_complete(self) -> bool:
        return bool(self.access_key_id and self.secret_access_key)


@dataclass(frozen=True)
class AICredentials:
    """Which providers are usable for one call, with their secrets.

    Treated as immutable input for the duration of a call. Secrets are
    excluded from ``repr`` so the value is safe to log.
    """

    bedrock: Optional[BedrockCredentials] = None
    gemini_api_key: str = field(default="", repr=False)
    perplexity_api_key: str = field(default="", repr=False)

    @property
    def has_primary(self) -> bool:
        return self.bedrock is not None and self.bedrock.is_complete

    @property
    def has_secondary(self) -> bool:
        return bool(self.gemini_api_key)

    @property
    def has_research(self) -> bool:
        return bool(self.perplexity_api_key)

    @classmethod
    def from_settings(cls, settings: Settings) -> "AICredentials":
        bedrock = None
        if settings.aws_access_key_id or settings.aws_secret_access_key:
            bedrock = BedrockCredentials(
                access_key_id=settings.aws_access_key_id,
                secret_access_key=settings.aws_secret_access_key,
                session_token=settings.aws_session_token,
                region=settings.aws_region,
                model_id=settings.bedrock_model_id,
            )
        return cls(
            bedrock=bedrock,
            gemini_api_key=settings.gemini_api_key,
            perplexity_api_key=settings.perplexity_api_key,
        )


@dataclass(frozen=True)
class RuntimeEnvironment:
    """Whether local CLI providers may be used in this process."""

    supports_local_cli: bool = True
    local_mode_enabled: bool = False

    @property
    def local_allowed(self) -> bool:
        return self.supports_local_cli and self.local_mode_enabled

    @classmethod
    def from_settings(cls, settings: Settings) -> "RuntimeEnvironment":
        return cls(
            supports_local_cli=settings.allow_local_cli,
            local_mode_enabled=settings.use_local_ai,
        )
