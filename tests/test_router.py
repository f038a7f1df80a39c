"""Tests for ServiceRouter provider ordering and fallback."""

import pytest

from config.exceptions import (
    AllProvidersFailedError,
    GenerationCancelledError,
    NoProviderAvailableError,
    ProviderError,
    ValidationError,
)
from models.enums import OperationKind

from tests.fakes import FakeProvider


class TestCandidateOrder:
    @pytest.mark.asyncio
    async def test_cloud_order(self, make_router, both_credentials, cloud_environment):
        router = make_router({})
        candidates = await router.candidates(OperationKind.CONTENT, both_credentials, cloud_environment)
        assert [c.label for c in candidates] == ["bedrock", "gemini"]

    @pytest.mark.asyncio
    async def test_local_first_when_enabled(self, make_router, both_credentials):
        from config.credentials import RuntimeEnvironment
        from tools.local_cli import LocalCapabilities
        router = make_router({}, LocalCapabilities(claude_code=True, codex=True))
        env = RuntimeEnvironment(supports_local_cli=True, local_mode_enabled=True)

        content = await router.candidates(OperationKind.CONTENT, both_credentials, env)
        outline = await router.candidates(OperationKind.CHAPTER_OUTLINE, both_credentials, env)

        assert [c.label for c in content] == ["codex", "bedrock", "gemini"]
        assert [c.label for c in outline] == ["claude_code", "bedrock", "gemini"]
        assert content[0].provider == "local"

    @pytest.mark.asyncio
    async def test_falls_back_to_other_local_tool(self, make_router, secondary_only_credentials):
        from config.credentials import RuntimeEnvironment
        from tools.local_cli import LocalCapabilities
        router = make_router({}, LocalCapabilities(claude_code=True, codex=False))
        env = RuntimeEnvironment(supports_local_cli=True, local_mode_enabled=True)

        candidates = await router.candidates(OperationKind.CONTENT, secondary_only_credentials, env)
        assert [c.label for c in candidates] == ["claude_code", "gemini"]

    @pytest.mark.asyncio
    async def test_local_skipped_when_environment_forbids(self, make_router, both_credentials):
        from config.credentials import RuntimeEnvironment
        from tools.local_cli import LocalCapabilities
        router = make_router({}, LocalCapabilities(claude_code=True, codex=True))
        env = RuntimeEnvironment(supports_local_cli=False, local_mode_enabled=True)

        candidates = await router.candidates(OperationKind.CONTENT, both_credentials, env)
        assert [c.label for c in candidates] == ["bedrock", "gemini"]
        router.probe.probe.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_images_never_local(self, make_router, both_credentials):
        from config.credentials import RuntimeEnvironment
        from tools.local_cli import LocalCapabilities
        router = make_router({}, LocalCapabilities(claude_code=True, codex=True))
        env = RuntimeEnvironment(supports_local_cli=True, local_mode_enabled=True)

        candidates = await router.candidates(OperationKind.COVER_IMAGE, both_credentials, env)
        assert [c.label for c in candidates] == ["bedrock", "gemini"]


class TestRouting:
    @pytest.mark.asyncio
    async def test_secondary_used_when_primary_absent(self, make_router, secondary_only_credentials):
        gemini = FakeProvider("gemini")
        router = make_router({"gemini": gemini})

        routed = await router.generate_content("Storm", "The storm", secondary_only_credentials)

        assert routed.used_provider == "gemini"
        assert routed.result == "[gemini] content for Storm"
        assert routed.attempts == ["gemini"]

    @pytest.mark.asyncio
    @pytest.mark.parametrize("operation", [
        OperationKind.BOOK_OUTLINE, OperationKind.CHAPTER_OUTLINE, OperationKind.CONTENT,
        OperationKind.CONTENT_WITH_HEAT, OperationKind.COVER_IMAGE,
    ])
    async def test_secondary_used_for_every_operation(self, make_router, secondary_only_credentials, operation):
        from models.requests import ImageRequest, OutlineRequest
        args = {
            OperationKind.BOOK_OUTLINE: {"request": OutlineRequest(prompt="p")},
            OperationKind.CHAPTER_OUTLINE: {"title": "t", "description": "d"},
            OperationKind.CONTENT: {"title": "t", "description": "d"},
            OperationKind.CONTENT_WITH_HEAT: {"title": "t", "description": "d", "heat_level": "sweet", "perspective": None},
            OperationKind.COVER_IMAGE: {"request": ImageRequest(OperationKind.COVER_IMAGE, "t")},
        }[operation]
        router = make_router({"gemini": FakeProvider("gemini")})

        routed = await router.route(operation, args, secondary_only_credentials)
        assert routed.used_provider == "gemini"

    @pytest.mark.asyncio
    async def test_primary_failure_falls_back_once(self, make_router, both_credentials):
        bedrock = FakeProvider("bedrock", fail_with={"generate_content": ProviderError("boom")})
        gemini = FakeProvider("gemini")
        router = make_router({"bedrock": bedrock, "gemini": gemini})

        routed = await router.generate_content("Storm", "The storm", both_credentials)

        assert routed.used_provider == "gemini"
        assert routed.attempts == ["bedrock", "gemini"]
        assert bedrock.count("generate_content") == 1
        assert gemini.count("generate_content") == 1

    @pytest.mark.asyncio
    async def test_both_fail_names_both(self, make_router, both_credentials):
        bedrock = FakeProvider("bedrock", fail_with={"generate_content": ProviderError("throttled")})
        last = ProviderError("quota exceeded")
        gemini = FakeProvider("gemini", fail_with={"generate_content": last})
        router = make_router({"bedrock": bedrock, "gemini": gemini})

        with pytest.raises(AllProvidersFailedError) as exc_info:
            await router.generate_content("Storm", "The storm", both_credentials)

        message = str(exc_info.value)
        assert "bedrock" in message and "gemini" in message
        assert exc_info.value.__cause__ is last
        assert isinstance(exc_info.value, ProviderError)

    @pytest.mark.asyncio
    async def test_no_provider(self, make_router):
        from config.credentials import AICredentials
        router = make_router({})
        with pytest.raises(NoProviderAvailableError):
            await router.generate_content("t", "d", AICredentials())

    @pytest.mark.asyncio
    async def test_cancellation_does_not_fall_back(self, make_router, both_credentials):
        bedrock = FakeProvider("bedrock", fail_with={"generate_content": GenerationCancelledError()})
        gemini = FakeProvider("gemini")
        router = make_router({"bedrock": bedrock, "gemini": gemini})

        with pytest.raises(GenerationCancelledError):
            await router.generate_content("t", "d", both_credentials)
        assert gemini.calls == []

    @pytest.mark.asyncio
    async def test_validation_error_does_not_fall_back(self, make_router, both_credentials):
        bedrock = FakeProvider("bedrock", fail_with={"generate_content": ValidationError("title must be non-empty")})
        gemini = FakeProvider("gemini")
        router = make_router({"bedrock": bedrock, "gemini": gemini})

        with pytest.raises(ValidationError):
            await router.generate_content("", "d", both_credentials)
        assert gemini.calls == []

    @pytest.mark.asyncio
    async def test_local_failure_falls_back_to_cloud(self, make_router, both_credentials):
        from config.credentials import RuntimeEnvironment
        from tools.local_cli import LocalCapabilities
        codex = FakeProvider("codex", fail_with={"generate_content": ProviderError("exit 1")})
        bedrock = FakeProvider("bedrock")
        router = make_router({"codex": codex, "bedrock": bedrock}, LocalCapabilities(codex=True))
        env = RuntimeEnvironment(supports_local_cli=True, local_mode_enabled=True)

        routed = await router.generate_content("t", "d", both_credentials, env)
        assert routed.used_provider == "bedrock"
        assert routed.attempts == ["codex", "bedrock"]

    @pytest.mark.asyncio
    async def test_local_success_reports_local(self, make_router, both_credentials):
        from config.credentials import RuntimeEnvironment
        from models.enums import LocalTool
        from tools.local_cli import LocalCapabilities
        router = make_router({"claude_code": FakeProvider("claude")}, LocalCapabilities(claude_code=True))
        env = RuntimeEnvironment(supports_local_cli=True, local_mode_enabled=True)

        routed = await router.generate_chapter_outline("t", "d", both_credentials, env)
        assert routed.used_provider == "local"
        assert routed.tool is LocalTool.CLAUDE_CODE


class TestResearchRouting:
    @pytest.mark.asyncio
    async def test_perplexity_when_key_present(self, make_router):
        from config.credentials import AICredentials
        perplexity = FakeProvider("perplexity")
        router = make_router({"perplexity": perplexity})

        routed = await router.research("Lighthouses", "history", AICredentials(perplexity_api_key="pk"))
        assert routed.used_provider == "perplexity"
        assert routed.result == "notes on Lighthouses"

    @pytest.mark.asyncio
    async def test_local_claude_first(self, make_router):
        from config.credentials import AICredentials, RuntimeEnvironment
        from tools.local_cli import LocalCapabilities
        router = make_router(
            {"claude_code": FakeProvider("claude"), "perplexity": FakeProvider("perplexity")},
            LocalCapabilities(claude_code=True, codex=True),
        )
        env = RuntimeEnvironment(supports_local_cli=True, local_mode_enabled=True)

        routed = await router.research("t", "c", AICredentials(perplexity_api_key="pk"), env)
        assert routed.used_provider == "local"

    @pytest.mark.asyncio
    async def test_cloud_text_providers_do_not_research(self, make_router, both_credentials):
        router = make_router({})
        with pytest.raises(NoProviderAvailableError):
            await router.research("t", "c", both_credentials)


class TestDefaultAdapterFactory:
    def test_builds_each_provider(self, settings, both_credentials):
        from config.credentials import AICredentials
        from models.enums import LocalTool
        from providers.bedrock import BedrockProvider
        from providers.gemini import GeminiProvider
        from providers.local import ClaudeCodeProvider, CodexProvider
        from tools.research_client import ResearchClient
        from workflow.router import Candidate, default_adapter_factory

        creds = AICredentials(bedrock=both_credentials.bedrock, gemini_api_key="g", perplexity_api_key="p")
        assert isinstance(default_adapter_factory(Candidate("bedrock"), creds, settings), BedrockProvider)
        assert isinstance(default_adapter_factory(Candidate("gemini"), creds, settings), GeminiProvider)
        assert isinstance(default_adapter_factory(Candidate("perplexity"), creds, settings), ResearchClient)
        assert isinstance(
            default_adapter_factory(Candidate("local", LocalTool.CODEX), creds, settings), CodexProvider
        )
        assert isinstance(
            default_adapter_factory(Candidate("local", LocalTool.CLAUDE_CODE), creds, settings), ClaudeCodeProvider
        )
