"""Local CLI providers: Claude Code (via the Agent SDK) and the Codex CLI.

Neither retries and neither generates images. Cancellation is polled
immediately before and after the process call.
"""

import asyncio
import logging
from typing import Optional

from config.exceptions import EmptyResponseError, ProviderTimeoutError
from config.settings import Settings
from models.enums import LocalTool, OperationKind, ProviderName
from providers.base import BaseProvider, TEXT_OPERATIONS
from tools.agent_sdk_client import AgentSDKClient
from tools.cancellation import CancellationToken
from tools.local_cli import run_cli

logger = logging.getLogger(__name__)


class LocalProvider(BaseProvider):
    name = ProviderName.LOCAL
    tool: LocalTool

    async def _run(self, system_prompt: str, user_prompt: str) -> str:
        raise NotImplementedError

    async def _complete(
        self, system_prompt: str, user_prompt: str, cancel: CancellationToken
    ) -> str:
        cancel.raise_if_cancelled()
        text = await self._run(system_prompt, user_prompt)
        cancel.raise_if_cancelled()
        logger.debug("%s response: %d chars", self.tool.value, len(text))
        return text


class ClaudeCodeProvider(LocalProvider):
    tool = LocalTool.CLAUDE_CODE
    supported_operations = TEXT_OPERATIONS | {OperationKind.RESEARCH}

    def __init__(self, settings: Optional[Settings] = None, client: Optional[AgentSDKClient] = None):
        super().__init__(settings)
        self.client = client or AgentSDKClient(self.settings)

    async def _run(self, system_prompt: str, user_prompt: str) -> str:
        timeout = self.settings.claude_timeout_seconds
        try:
            text = await asyncio.wait_for(
                self.client.chat(system_prompt, user_prompt), timeout=timeout
            )
        except asyncio.TimeoutError as e:
            raise ProviderTimeoutError(
                f"Claude Code timed out after {timeout:.0f}s", provider=self.name.value
            ) from e
        if not text.strip():
            raise EmptyResponseError("Empty response from Claude Code", provider=self.name.value)
        return text.strip()


class CodexProvider(LocalProvider):
    tool = LocalTool.CODEX
    supported_operations = TEXT_OPERATIONS

    async def _run(self, system_prompt: str, user_prompt: str) -> str:
        # codex exec takes a single prompt argument
        prompt = f"{system_prompt}\n\n{user_prompt}" if system_prompt else user_prompt
        return await run_cli(
            [self.settings.codex_command, "exec", prompt],
            timeout=self.settings.codex_timeout_seconds,
            provider=self.name.value,
        )
