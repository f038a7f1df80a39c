"""Secondary cloud provider: Google Gemini (text) and Imagen (images)."""

import logging
from typing import Optional

from google import genai
from google.genai import errors, types

from config.exceptions import (
    EmptyResponseError,
    ImageResponseMissingError,
    ProviderError,
    ProviderRateLimitError,
)
from config.settings import Settings
from models.enums import ProviderName
from providers.base import Sleep
from providers.cloud import CloudProvider

logger = logging.getLogger(__name__)


class GeminiProvider(CloudProvider):
    name = ProviderName.GEMINI

    def __init__(
        self,
        api_key: str,
        settings: Optional[Settings] = None,
        client: Optional[genai.Client] = None,
        sleep: Optional[Sleep] = None,
    ):
        super().__init__(settings, sleep)
        self._api_key = api_key
        self._client = client

    @property
    def client(self) -> genai.Client:
        if self._client is None:
            self._client = genai.Client(api_key=self._api_key)
        return self._client

    def _translate_error(self, error: errors.APIError) -> ProviderError:
        if error.code == 429:
            return ProviderRateLimitError("Gemini rate limit exceeded", provider=self.name.value)
        return ProviderError(f"Gemini request failed ({error.code}): {error.message}", provider=self.name.value)

    async def _invoke(self, system_prompt: str, user_prompt: str) -> str:
        logger.debug("Gemini generate_content: model=%s, prompt=%d chars", self.settings.gemini_model, len(user_prompt))
        try:
            response = await self.client.aio.models.generate_content(
                model=self.settings.gemini_model,
                contents=user_prompt,
                config=types.GenerateContentConfig(
                    system_instruction=system_prompt,
                    temperature=self.settings.temperature,
                    max_output_tokens=self.settings.max_tokens,
                ),
            )
        except errors.APIError as e:
            raise self._translate_error(e) from e
        except Exception as e:
            raise ProviderError(f"Gemini request failed: {e}", provider=self.name.value) from e

        text = (response.text or "").strip()
        if not text:
            raise EmptyResponseError("Empty response from Gemini", provider=self.name.value)
        return text

    async def _generate_image_bytes(self, prompt: str) -> bytes:
        try:
            response = await self.client.aio.models.generate_images(
                model=self.settings.gemini_image_model,
                prompt=prompt,
                config=types.GenerateImagesConfig(number_of_images=1),
            )
        except errors.APIError as e:
            raise self._translate_error(e) from e
        except Exception as e:
            raise ProviderError(f"Gemini image request failed: {e}", provider=self.name.value) from e

        if response is None:
            raise ImageResponseMissingError("No response from image model", provider=self.name.value)

        generated = response.generated_images or []
        images = [g.image.image_bytes for g in generated if g.image is not None and g.image.image_bytes]
        error = None
        if not images and generated:
            error = generated[0].rai_filtered_reason
        return self._single_image(images, error)
