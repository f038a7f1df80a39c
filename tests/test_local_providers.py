"""Tests for local CLI providers, the subprocess runner, and the capability probe."""

import asyncio

import pytest
from unittest.mock import patch, MagicMock, AsyncMock

from claude_agent_sdk import ResultMessage, AssistantMessage, TextBlock, CLINotFoundError

from config.exceptions import (
    EmptyResponseError,
    GenerationCancelledError,
    MalformedResponseError,
    ProviderError,
    ProviderNotInstalledError,
    ProviderTimeoutError,
    UnsupportedOperationError,
)
from models.enums import LocalTool, OperationKind


def _make_result_message(result_text: str) -> ResultMessage:
    """Helper to create a ResultMessage with required fields."""
    return ResultMessage(
        subtype="result",
        duration_ms=100,
        duration_api_ms=80,
        is_error=False,
        num_turns=1,
        session_id="test-session",
        total_cost_usd=0.001,
        usage={"input_tokens": 10, "output_tokens": 20},
        result=result_text,
        structured_output=None,
    )


def _make_assistant_message(text: str) -> AssistantMessage:
    """Helper to create an AssistantMessage with a text block."""
    return AssistantMessage(
        content=[TextBlock(text=text)],
        model="claude-sonnet-4-6",
        parent_tool_use_id=None,
        error=None,
    )


def _fake_process(stdout=b"", stderr=b"", returncode=0):
    proc = MagicMock()
    proc.communicate = AsyncMock(return_value=(stdout, stderr))
    proc.returncode = returncode
    proc.wait = AsyncMock(return_value=returncode)
    return proc


class TestRunCli:
    @pytest.mark.asyncio
    async def test_returns_trimmed_stdout(self):
        from tools.local_cli import run_cli
        proc = _fake_process(stdout=b"  hello world \n")
        with patch("tools.local_cli.asyncio.create_subprocess_exec", AsyncMock(return_value=proc)) as spawn:
            assert await run_cli(["codex", "exec", "hi"], timeout=5) == "hello world"
        assert spawn.call_args.args == ("codex", "exec", "hi")

    @pytest.mark.asyncio
    async def test_missing_binary(self):
        from tools.local_cli import run_cli
        with patch("tools.local_cli.asyncio.create_subprocess_exec", AsyncMock(side_effect=FileNotFoundError)):
            with pytest.raises(ProviderNotInstalledError):
                await run_cli(["codex", "--version"], timeout=5)

    @pytest.mark.asyncio
    async def test_nonzero_exit(self):
        from tools.local_cli import run_cli
        proc = _fake_process(stderr=b"not logged in", returncode=2)
        with patch("tools.local_cli.asyncio.create_subprocess_exec", AsyncMock(return_value=proc)):
            with pytest.raises(ProviderError, match="not logged in"):
                await run_cli(["codex", "exec", "hi"], timeout=5)

    @pytest.mark.asyncio
    async def test_empty_output(self):
        from tools.local_cli import run_cli
        proc = _fake_process(stdout=b"   ")
        with patch("tools.local_cli.asyncio.create_subprocess_exec", AsyncMock(return_value=proc)):
            with pytest.raises(EmptyResponseError):
                await run_cli(["codex", "exec", "hi"], timeout=5)

    @pytest.mark.asyncio
    async def test_timeout_kills_process(self):
        from tools.local_cli import run_cli

        async def hang():
            await asyncio.sleep(10)

        proc = _fake_process()
        proc.communicate = hang
        with patch("tools.local_cli.asyncio.create_subprocess_exec", AsyncMock(return_value=proc)):
            with pytest.raises(ProviderTimeoutError):
                await run_cli(["codex", "exec", "hi"], timeout=0.01)
        proc.kill.assert_called_once()


class TestCapabilityProbe:
    @pytest.mark.asyncio
    async def test_probe_is_cached(self, settings):
        from tools.local_cli import LocalCapabilityProbe

        async def fake_run(args, timeout, provider="local"):
            if args[0] == "codex":
                raise ProviderNotInstalledError("codex CLI not found")
            return "1.0.0"

        probe = LocalCapabilityProbe(settings)
        with patch("tools.local_cli.run_cli", side_effect=fake_run) as run:
            first = await probe.probe()
            second = await probe.probe()

        assert first.claude_code is True
        assert first.codex is False
        assert first.has(LocalTool.CLAUDE_CODE)
        assert second is first
        assert probe.probe_count == 1
        assert run.call_count == 2

    @pytest.mark.asyncio
    async def test_concurrent_callers_share_one_probe(self, settings):
        from tools.local_cli import LocalCapabilityProbe
        probe = LocalCapabilityProbe(settings)
        with patch("tools.local_cli.run_cli", AsyncMock(return_value="1.0")):
            results = await asyncio.gather(*(probe.probe() for _ in range(5)))
        assert probe.probe_count == 1
        assert all(r.any for r in results)

    @pytest.mark.asyncio
    async def test_invalidate_reprobes(self, settings):
        from tools.local_cli import LocalCapabilityProbe
        probe = LocalCapabilityProbe(settings)
        with patch("tools.local_cli.run_cli", AsyncMock(return_value="1.0")):
            await probe.probe()
            probe.invalidate()
            await probe.probe()
        assert probe.probe_count == 2


class TestCodexProvider:
    @pytest.mark.asyncio
    async def test_content_via_codex_exec(self, settings):
        from providers.local import CodexProvider
        with patch("providers.local.run_cli", AsyncMock(return_value="Generated prose")) as run:
            result = await CodexProvider(settings).generate_content("Storm", "The storm hits")

        assert result == "Generated prose"
        args = run.call_args.args[0]
        assert args[:2] == ["codex", "exec"]
        assert "Storm" in args[2]
        assert run.call_args.kwargs["timeout"] == settings.codex_timeout_seconds

    @pytest.mark.asyncio
    async def test_chapter_outline_parsed(self, settings):
        from providers.local import CodexProvider
        raw = 'Here is the outline:\n{"sections": [{"title": "S1", "description": "d"}]}'
        with patch("providers.local.run_cli", AsyncMock(return_value=raw)):
            sections = await CodexProvider(settings).generate_chapter_outline("Storm", "d")
        assert sections[0].title == "S1"

    @pytest.mark.asyncio
    async def test_unparseable_outline_raises(self, settings):
        from providers.local import CodexProvider
        with patch("providers.local.run_cli", AsyncMock(return_value="no json at all")):
            with pytest.raises(MalformedResponseError):
                await CodexProvider(settings).generate_chapter_outline("Storm", "d")

    @pytest.mark.asyncio
    async def test_no_retry_on_failure(self, settings):
        from providers.local import CodexProvider
        with patch("providers.local.run_cli", AsyncMock(side_effect=ProviderTimeoutError("slow"))) as run:
            with pytest.raises(ProviderTimeoutError):
                await CodexProvider(settings).generate_content("t", "d")
        assert run.await_count == 1

    @pytest.mark.asyncio
    async def test_cancelled_after_process_returns(self, settings):
        from providers.local import CodexProvider
        from tools.cancellation import CancellationToken
        token = CancellationToken()

        async def run_then_cancel(*args, **kwargs):
            token.cancel()
            return "text"

        with patch("providers.local.run_cli", side_effect=run_then_cancel):
            with pytest.raises(GenerationCancelledError):
                await CodexProvider(settings).generate_content("t", "d", cancel=token)

    @pytest.mark.asyncio
    async def test_no_images_or_research(self, settings):
        from providers.local import CodexProvider
        from models.requests import ImageRequest
        provider = CodexProvider(settings)
        assert not provider.supports(OperationKind.RESEARCH)
        with pytest.raises(UnsupportedOperationError):
            await provider.generate_image(ImageRequest(OperationKind.COVER_IMAGE, "t"))
        with pytest.raises(UnsupportedOperationError):
            await provider.research("topic")


class TestClaudeCodeProvider:
    @pytest.mark.asyncio
    async def test_content(self, settings):
        from providers.local import ClaudeCodeProvider
        client = MagicMock()
        client.chat = AsyncMock(return_value="  Prose  ")
        provider = ClaudeCodeProvider(settings, client=client)

        assert await provider.generate_content("Storm", "The storm hits") == "Prose"
        system_prompt, user_prompt = client.chat.call_args.args
        assert system_prompt
        assert "Storm" in user_prompt

    @pytest.mark.asyncio
    async def test_supports_research(self, settings):
        from providers.local import ClaudeCodeProvider
        client = MagicMock()
        client.chat = AsyncMock(return_value="notes")
        provider = ClaudeCodeProvider(settings, client=client)
        assert provider.supports(OperationKind.RESEARCH)
        assert await provider.research("Lighthouses", "history") == "notes"

    @pytest.mark.asyncio
    async def test_empty_response(self, settings):
        from providers.local import ClaudeCodeProvider
        client = MagicMock()
        client.chat = AsyncMock(return_value="")
        with pytest.raises(EmptyResponseError):
            await ClaudeCodeProvider(settings, client=client).generate_content("t", "d")

    @pytest.mark.asyncio
    async def test_timeout(self, settings):
        from providers.local import ClaudeCodeProvider
        settings.claude_timeout_seconds = 0.01

        async def slow_chat(*args, **kwargs):
            await asyncio.sleep(10)
            return "late"

        client = MagicMock()
        client.chat = slow_chat
        with pytest.raises(ProviderTimeoutError):
            await ClaudeCodeProvider(settings, client=client).generate_content("t", "d")


class TestAgentSDKClient:
    @pytest.mark.asyncio
    async def test_chat_returns_result(self, settings):
        from tools.agent_sdk_client import AgentSDKClient

        async def mock_query(**kwargs):
            yield _make_assistant_message("partial")
            yield _make_result_message("final answer")

        with patch("tools.agent_sdk_client.query", mock_query):
            client = AgentSDKClient(settings)
            result = await client.chat("system", "user")

        assert result == "final answer"

    @pytest.mark.asyncio
    async def test_model_override_passed(self, settings):
        from tools.agent_sdk_client import AgentSDKClient
        seen = {}

        async def mock_query(prompt, options):
            seen["options"] = options
            yield _make_result_message("ok")

        with patch("tools.agent_sdk_client.query", mock_query):
            await AgentSDKClient(settings).chat("system", "user", model="claude-test")
        assert seen["options"].model == "claude-test"
        assert seen["options"].system_prompt == "system"
        assert seen["options"].max_turns == 1

    @pytest.mark.asyncio
    async def test_cli_not_found(self, settings):
        from tools.agent_sdk_client import AgentSDKClient

        async def mock_query(**kwargs):
            raise CLINotFoundError("Claude Code not found")
            yield  # pragma: no cover

        with patch("tools.agent_sdk_client.query", mock_query):
            with pytest.raises(ProviderNotInstalledError):
                await AgentSDKClient(settings).chat("system", "user")

    @pytest.mark.asyncio
    async def test_other_failures_wrapped(self, settings):
        from tools.agent_sdk_client import AgentSDKClient

        async def mock_query(**kwargs):
            raise RuntimeError("socket closed")
            yield  # pragma: no cover

        with patch("tools.agent_sdk_client.query", mock_query):
            with pytest.raises(ProviderError, match="socket closed"):
                await AgentSDKClient(settings).chat("system", "user")
