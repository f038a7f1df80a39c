"""Local command-line tool invocation and capability probing."""

import asyncio
import logging
from dataclasses import dataclass
from typing import Optional

from config.exceptions import (
    EmptyResponseError,
    ProviderError,
    ProviderNotInstalledError,
    ProviderTimeoutError,
)
from config.settings import Settings
from models.enums import LocalTool

logger = logging.getLogger(__name__)


async def run_cli(
    args: list[str],
    timeout: float,
    provider: str = "local",
) -> str:
    """Run ``args`` as a subprocess and return its trimmed stdout.

    Raises:
        ProviderNotInstalledError: The executable does not exist.
        ProviderTimeoutError: The process outlived ``timeout`` seconds (it is killed).
        ProviderError: Non-zero exit status.
        EmptyResponseError: The process printed nothing.
    """
    logger.debug("Running local CLI: %s (timeout=%ss)", args[0], timeout)
    try:
        proc = await asyncio.create_subprocess_exec(
            *args,
            stdin=asyncio.subprocess.DEVNULL,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
    except FileNotFoundError as e:
        raise ProviderNotInstalledError(
            f"{args[0]} CLI not found", provider=provider
        ) from e

    try:
        stdout, stderr = await asyncio.wait_for(proc.communicate(), timeout=timeout)
    except asyncio.TimeoutError as e:
        proc.kill()
        await proc.wait()
        raise ProviderTimeoutError(
            f"{args[0]} CLI timed out after {timeout:.0f}s", provider=provider
        ) from e

    err_text = (stderr or b"").decode("utf-8", errors="replace").strip()
    if proc.returncode != 0:
        raise ProviderError(
            f"{args[0]} CLI exited with status {proc.returncode}: {err_text[:200]}",
            provider=provider,
        )
    if err_text:
        logger.warning("%s CLI stderr: %s", args[0], err_text[:200])

    text = (stdout or b"").decode("utf-8", errors="replace").strip()
    if not text:
        raise EmptyResponseError(f"Empty response from {args[0]} CLI", provider=provider)
    return text


@dataclass(frozen=True)
class LocalCapabilities:
    claude_code: bool = False
    codex: bool = False

    def has(self, tool: LocalTool) -> bool:
        return self.claude_code if tool == LocalTool.CLAUDE_CODE else self.codex

    @property
    def any(self) -> bool:
        return self.claude_code or self.codex


class LocalCapabilityProbe:
    """Checks which local tools are installed; the result is cached.

    Probing spawns processes, so it runs at most once until ``invalidate()``.
    Concurrent callers share a single probe.
    """

    def __init__(self, settings: Optional[Settings] = None):
        self.settings = settings or Settings()
        self._cached: Optional[LocalCapabilities] = None
        self._lock = asyncio.Lock()
        self.probe_count = 0

    async def _tool_available(self, command: str) -> bool:
        try:
            await run_cli([command, "--version"], timeout=self.settings.probe_timeout_seconds)
            return True
        except ProviderError as e:
            logger.debug("Local tool %s unavailable: %s", command, e)
            return False

    async def probe(self) -> LocalCapabilities:
        async with self._lock:
            if self._cached is None:
                self.probe_count += 1
                claude = await self._tool_available(self.settings.claude_command)
                codex = await self._tool_available(self.settings.codex_command)
                self._cached = LocalCapabilities(claude_code=claude, codex=codex)
                logger.info("Local capability probe: claude_code=%s, codex=%s", claude, codex)
                if not self._cached.any:
                    logger.warning("No local AI tools found; install the Codex CLI or Claude Code CLI for local generation")
            return self._cached

    def invalidate(self) -> None:
        self._cached = None
