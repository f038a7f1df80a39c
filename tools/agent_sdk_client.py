"""Claude Agent SDK wrapper used by the local Claude Code provider."""

import logging
import os
from typing import Optional

from claude_agent_sdk import (
    query,
    ClaudeAgentOptions,
    CLINotFoundError,
    ResultMessage,
    AssistantMessage,
)

from config.settings import Settings
from config.exceptions import ProviderError, ProviderNotInstalledError

logger = logging.getLogger(__name__)

# Allow launching the Agent SDK even when running inside a Claude Code session.
# The SDK checks for this env var and refuses to start if set.
os.environ.pop("CLAUDECODE", None)


class AgentSDKClient:
    """Single-turn text completions through the locally installed Claude Code CLI.

    Authentication is handled by the CLI itself; no API key is needed.
    """

    def __init__(self, settings: Optional[Settings] = None):
        self.settings = settings or Settings()

    async def chat(self, system_prompt: str, user_prompt: str, model: Optional[str] = None) -> str:
        """Send one request and return the text result.

        Args:
            system_prompt: System message guiding the model's behavior.
            user_prompt: User message content.
            model: Model name override. Defaults to the configured local model.

        Returns:
            The model's text response (may be empty).

        Raises:
            ProviderNotInstalledError: If the Claude Code CLI is missing.
            ProviderError: If the query fails.
        """
        model = model or self.settings.claude_code_model
        logger.debug("AgentSDK call: model=%s", model)

        options_kwargs = {"system_prompt": system_prompt, "max_turns": 1}
        if model:
            options_kwargs["model"] = model

        try:
            result_text = ""
            # Do NOT return/break early from inside the async for loop: query()
            # uses anyio cancel scopes and must be exhausted fully.
            async for message in query(
                prompt=user_prompt,
                options=ClaudeAgentOptions(**options_kwargs),
            ):
                if isinstance(message, ResultMessage):
                    result_text = message.result or ""
                    logger.debug(
                        "AgentSDK result: %d chars, cost=$%s",
                        len(result_text),
                        message.total_cost_usd,
                    )
                elif isinstance(message, AssistantMessage):
                    for block in message.content:
                        text = getattr(block, "text", None)
                        if text and not result_text:
                            result_text = text
        except CLINotFoundError as e:
            raise ProviderNotInstalledError(
                "Claude Code CLI not found. Install it from https://claude.ai/code",
                provider="local",
            ) from e
        except Exception as e:
            raise ProviderError(f"Agent SDK query failed: {e}", provider="local") from e

        if not result_text:
            logger.warning("AgentSDK returned no content")

        return result_text
