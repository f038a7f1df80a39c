"""Perplexity research client: topic + context in, research notes out."""

import logging
from typing import Optional

import httpx

from config.exceptions import EmptyResponseError, ProviderError, ProviderRateLimitError
from config.settings import Settings
from tools.prompt_templates import render_prompts

logger = logging.getLogger(__name__)


class ResearchClient:
    """Calls the Perplexity chat-completions endpoint."""

    name = "perplexity"

    def __init__(
        self,
        api_key: str,
        settings: Optional[Settings] = None,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        self.settings = settings or Settings()
        self._api_key = api_key
        self._http_client = http_client

    async def research(self, topic: str, context: str = "") -> str:
        system_prompt, user_prompt = render_prompts(
            "research", "Research Instructions", topic=topic, context=context or "",
        )
        payload = {
            "model": self.settings.perplexity_model,
            "messages": [
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_prompt},
            ],
            "max_tokens": self.settings.research_max_tokens,
            "temperature": 0.2,
        }
        headers = {"Authorization": f"Bearer {self._api_key}"}

        logger.debug("Research request: topic=%s", topic)
        try:
            if self._http_client is not None:
                response = await self._http_client.post(
                    self.settings.perplexity_api_url, json=payload, headers=headers
                )
            else:
                async with httpx.AsyncClient(timeout=60.0) as client:
                    response = await client.post(
                        self.settings.perplexity_api_url, json=payload, headers=headers
                    )
        except httpx.HTTPError as e:
            raise ProviderError(f"Research request failed: {e}", provider=self.name) from e

        if response.status_code == 429:
            raise ProviderRateLimitError("Research API rate limit exceeded", provider=self.name)
        if response.status_code >= 400:
            raise ProviderError(
                f"Research API returned {response.status_code}: {response.text[:200]}",
                provider=self.name,
            )

        data = response.json()
        choices = data.get("choices") or [{}]
        content = ((choices[0] or {}).get("message") or {}).get("content") or ""
        if not content.strip():
            raise EmptyResponseError("Research API returned no content", provider=self.name)
        return content.strip()
