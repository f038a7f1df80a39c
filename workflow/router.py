"""Service router: picks a provider per operation and falls back on failure."""

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Optional

from config.credentials import AICredentials, RuntimeEnvironment
from config.exceptions import (
    AllProvidersFailedError,
    GenerationCancelledError,
    NoProviderAvailableError,
    ValidationError,
)
from config.settings import Settings, get_settings
from models.enums import HeatLevel, LocalTool, OperationKind, Perspective, ProviderName
from models.requests import ImageRequest, OutlineRequest
from providers.bedrock import BedrockProvider
from providers.gemini import GeminiProvider
from providers.local import ClaudeCodeProvider, CodexProvider
from tools.cancellation import CancellationToken
from tools.local_cli import LocalCapabilityProbe
from tools.research_client import ResearchClient

logger = logging.getLogger(__name__)

RESEARCH_PROVIDER = "perplexity"

_LOCAL_TOOL_CLASSES = {
    LocalTool.CLAUDE_CODE: ClaudeCodeProvider,
    LocalTool.CODEX: CodexProvider,
}

# Outlines and research read better from Claude Code; prose comes from Codex first.
_LOCAL_PREFERENCE = {
    OperationKind.BOOK_OUTLINE: (LocalTool.CLAUDE_CODE, LocalTool.CODEX),
    OperationKind.CHAPTER_OUTLINE: (LocalTool.CLAUDE_CODE, LocalTool.CODEX),
    OperationKind.CONTENT: (LocalTool.CODEX, LocalTool.CLAUDE_CODE),
    OperationKind.CONTENT_WITH_HEAT: (LocalTool.CODEX, LocalTool.CLAUDE_CODE),
    OperationKind.RESEARCH: (LocalTool.CLAUDE_CODE,),
}

_OPERATION_METHODS = {
    OperationKind.BOOK_OUTLINE: "generate_book_outline",
    OperationKind.CHAPTER_OUTLINE: "generate_chapter_outline",
    OperationKind.CONTENT: "generate_content",
    OperationKind.CONTENT_WITH_HEAT: "generate_content_with_heat",
    OperationKind.COVER_IMAGE: "generate_image",
    OperationKind.CHAPTER_IMAGE: "generate_image",
    OperationKind.RESEARCH: "research",
}


@dataclass(frozen=True)
class Candidate:
    """One entry in the ordered provider list for a call."""

    provider: str
    tool: Optional[LocalTool] = None

    @property
    def label(self) -> str:
        return self.tool.value if self.tool else self.provider


@dataclass
class RouteResult:
    result: Any
    used_provider: str
    tool: Optional[LocalTool] = None
    attempts: list[str] = field(default_factory=list)


AdapterFactory = Callable[[Candidate, AICredentials, Settings], Any]


def default_adapter_factory(candidate: Candidate, credentials: AICredentials, settings: Settings):
    """Build a fresh adapter for ``candidate`` from the per-call credentials."""
    if candidate.tool is not None:
        return _LOCAL_TOOL_CLASSES[candidate.tool](settings)
    if candidate.provider == ProviderName.BEDROCK:
        return BedrockProvider(credentials.bedrock, settings)
    if candidate.provider == ProviderName.GEMINI:
        return GeminiProvider(credentials.gemini_api_key, settings)
    if candidate.provider == RESEARCH_PROVIDER:
        return ResearchClient(credentials.perplexity_api_key, settings)
    raise ValueError(f"Unknown provider candidate: {candidate.label}")


class ServiceRouter:
    """Routes each operation through local, primary, then secondary providers.

    Credentials and environment are passed into every call; the only state
    kept between calls is the local capability probe cache.
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        probe: Optional[LocalCapabilityProbe] = None,
        adapter_factory: Optional[AdapterFactory] = None,
    ):
        self.settings = settings or get_settings()
        self.probe = probe or LocalCapabilityProbe(self.settings)
        self.adapter_factory = adapter_factory or default_adapter_factory

    async def _local_candidate(
        self, operation: OperationKind, environment: RuntimeEnvironment
    ) -> Optional[Candidate]:
        if not environment.local_allowed:
            return None
        preferred = _LOCAL_PREFERENCE.get(operation, ())
        if not preferred:
            return None
        capabilities = await self.probe.probe()
        for tool in preferred:
            if capabilities.has(tool) and operation in _LOCAL_TOOL_CLASSES[tool].supported_operations:
                return Candidate(ProviderName.LOCAL.value, tool)
        return None

    async def candidates(
        self,
        operation: OperationKind,
        credentials: AICredentials,
        environment: Optional[RuntimeEnvironment] = None,
    ) -> list[Candidate]:
        """Ordered provider list for one call."""
        operation = OperationKind(operation)
        environment = environment or RuntimeEnvironment(local_mode_enabled=False)

        result = []
        local = await self._local_candidate(operation, environment)
        if local is not None:
            result.append(local)

        if operation == OperationKind.RESEARCH:
            if credentials.has_research:
                result.append(Candidate(RESEARCH_PROVIDER))
            return result

        if credentials.has_primary:
            result.append(Candidate(ProviderName.BEDROCK.value))
        if credentials.has_secondary:
            result.append(Candidate(ProviderName.GEMINI.value))
        return result

    async def _invoke(
        self, candidate: Candidate, adapter, operation: OperationKind, args: dict, cancel: CancellationToken
    ):
        if candidate.provider == RESEARCH_PROVIDER:
            cancel.raise_if_cancelled()
            result = await adapter.research(args["topic"], args.get("context", ""))
            cancel.raise_if_cancelled()
            return result
        method = getattr(adapter, _OPERATION_METHODS[operation])
        return await method(**args, cancel=cancel)

    async def route(
        self,
        operation: OperationKind,
        args: dict,
        credentials: AICredentials,
        environment: Optional[RuntimeEnvironment] = None,
        cancel=None,
    ) -> RouteResult:
        """Run ``operation`` on the first provider that succeeds.

        Raises:
            NoProviderAvailableError: Nothing is configured for the operation.
            AllProvidersFailedError: Every candidate failed; chained to the last error.
            GenerationCancelledError: Cancellation was observed; never falls back.
        """
        operation = OperationKind(operation)
        cancel = CancellationToken.coerce(cancel)
        candidates = await self.candidates(operation, credentials, environment)
        if not candidates:
            raise NoProviderAvailableError(operation.value)

        failures: list[tuple[str, Exception]] = []
        tried: list[str] = []
        for candidate in candidates:
            cancel.raise_if_cancelled()
            tried.append(candidate.label)
            adapter = self.adapter_factory(candidate, credentials, self.settings)
            try:
                result = await self._invoke(candidate, adapter, operation, args, cancel)
            except (GenerationCancelledError, ValidationError):
                raise
            except Exception as e:
                failures.append((candidate.label, e))
                logger.warning(
                    "%s failed on %s: %s", operation.value, candidate.label, e
                )
                continue

            if failures:
                logger.info("%s succeeded on fallback provider %s", operation.value, candidate.label)
            else:
                logger.debug("%s succeeded on %s", operation.value, candidate.label)
            return RouteResult(
                result=result,
                used_provider=candidate.provider,
                tool=candidate.tool,
                attempts=tried,
            )

        raise AllProvidersFailedError(failures) from failures[-1][1]

    # ---- Convenience wrappers ----

    async def generate_book_outline(
        self, request: OutlineRequest, credentials: AICredentials, environment=None, cancel=None
    ) -> RouteResult:
        return await self.route(
            OperationKind.BOOK_OUTLINE, {"request": request}, credentials, environment, cancel
        )

    async def generate_chapter_outline(
        self, title: str, description: str, credentials: AICredentials, environment=None, cancel=None
    ) -> RouteResult:
        return await self.route(
            OperationKind.CHAPTER_OUTLINE,
            {"title": title, "description": description},
            credentials, environment, cancel,
        )

    async def generate_content(
        self, title: str, description: str, credentials: AICredentials, environment=None, cancel=None
    ) -> RouteResult:
        return await self.route(
            OperationKind.CONTENT,
            {"title": title, "description": description},
            credentials, environment, cancel,
        )

    async def generate_content_with_heat(
        self,
        title: str,
        description: str,
        heat_level: HeatLevel | str,
        perspective: Optional[Perspective | str],
        credentials: AICredentials,
        environment=None,
        cancel=None,
    ) -> RouteResult:
        return await self.route(
            OperationKind.CONTENT_WITH_HEAT,
            {
                "title": title,
                "description": description,
                "heat_level": heat_level,
                "perspective": perspective,
            },
            credentials, environment, cancel,
        )

    async def generate_image(
        self, request: ImageRequest, credentials: AICredentials, environment=None, cancel=None
    ) -> RouteResult:
        return await self.route(request.kind, {"request": request}, credentials, environment, cancel)

    async def research(
        self, topic: str, context: str, credentials: AICredentials, environment=None, cancel=None
    ) -> RouteResult:
        return await self.route(
            OperationKind.RESEARCH,
            {"topic": topic, "context": context},
            credentials, environment, cancel,
        )
