"""Shared retry behaviour for cloud text-generation providers."""

import logging

from tenacity import AsyncRetrying, RetryCallState, retry_if_exception_type, stop_after_attempt, wait_exponential

from config.exceptions import ProviderRateLimitError
from providers.base import BaseProvider, IMAGE_OPERATIONS, TEXT_OPERATIONS
from tools.cancellation import CancellationToken

logger = logging.getLogger(__name__)


class CloudProvider(BaseProvider):
    """A network-backed provider whose text calls retry on rate limiting.

    Retries back off exponentially from ``retry_base_delay`` (1s, 2s, 4s by
    default) for at most ``max_retries`` retries. Any other error, and
    exhaustion of the budget, propagates at once. Cancellation is polled
    before every attempt and after every response.
    """

    supported_operations = TEXT_OPERATIONS | IMAGE_OPERATIONS

    async def _invoke(self, system_prompt: str, user_prompt: str) -> str:
        raise NotImplementedError

    def _log_retry(self, retry_state: RetryCallState) -> None:
        wait = retry_state.next_action.sleep if retry_state.next_action else 0
        logger.warning(
            "%s throttled. Retrying in %.1fs... (attempt %d/%d)",
            self.name.value,
            wait,
            retry_state.attempt_number + 1,
            self.settings.max_retries + 1,
        )

    async def _complete(
        self, system_prompt: str, user_prompt: str, cancel: CancellationToken
    ) -> str:
        retrying = AsyncRetrying(
            retry=retry_if_exception_type(ProviderRateLimitError),
            stop=stop_after_attempt(self.settings.max_retries + 1),
            wait=wait_exponential(multiplier=self.settings.retry_base_delay),
            sleep=self._sleep,
            before_sleep=self._log_retry,
            reraise=True,
        )
        text = ""
        async for attempt in retrying:
            with attempt:
                cancel.raise_if_cancelled()
                text = await self._invoke(system_prompt, user_prompt)
                cancel.raise_if_cancelled()
        logger.debug("%s response: %d chars", self.name.value, len(text))
        return text
