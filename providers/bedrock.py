"""Primary cloud provider: AWS Bedrock (Converse API for text, Titan for images)."""

import asyncio
import base64
import json
import logging
import random
from typing import Optional

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from config.credentials import BedrockCredentials
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

_THROTTLING_CODES = {"ThrottlingException", "TooManyRequestsException"}


class BedrockProvider(CloudProvider):
    """Text and image generation through the ``bedrock-runtime`` client.

    boto3 is synchronous, so each call runs in a worker thread.
    """

    name = ProviderName.BEDROCK

    def __init__(
        self,
        credentials: BedrockCredentials,
        settings: Optional[Settings] = None,
        client=None,
        sleep: Optional[Sleep] = None,
    ):
        super().__init__(settings, sleep)
        self.credentials = credentials
        self._client = client

    @property
    def client(self):
        if self._client is None:
            self._client = boto3.client(
                "bedrock-runtime",
                region_name=self.credentials.region,
                aws_access_key_id=self.credentials.access_key_id,
                aws_secret_access_key=self.credentials.secret_access_key,
                aws_session_token=self.credentials.session_token or None,
            )
        return self._client

    @property
    def model_id(self) -> str:
        return self.credentials.model_id or self.settings.bedrock_model_id

    def _translate_error(self, error: Exception) -> ProviderError:
        if isinstance(error, ClientError):
            code = error.response.get("Error", {}).get("Code", "")
            if code in _THROTTLING_CODES:
                return ProviderRateLimitError(
                    f"Bedrock throttled the request ({code})", provider=self.name.value
                )
            return ProviderError(f"Bedrock request failed ({code}): {error}", provider=self.name.value)
        return ProviderError(f"Bedrock request failed: {error}", provider=self.name.value)

    async def _invoke(self, system_prompt: str, user_prompt: str) -> str:
        logger.debug("Bedrock converse: model=%s, prompt=%d chars", self.model_id, len(user_prompt))
        try:
            response = await asyncio.to_thread(
                self.client.converse,
                modelId=self.model_id,
                system=[{"text": system_prompt}],
                messages=[{"role": "user", "content": [{"text": user_prompt}]}],
                inferenceConfig={
                    "maxTokens": self.settings.max_tokens,
                    "temperature": self.settings.temperature,
                    "topP": 1.0,
                },
            )
        except (ClientError, BotoCoreError) as e:
            raise self._translate_error(e) from e

        blocks = ((response.get("output") or {}).get("message") or {}).get("content") or []
        text = "\n".join(block["text"] for block in blocks if block.get("text")).strip()
        if not text:
            raise EmptyResponseError("Empty response from Bedrock", provider=self.name.value)
        return text

    async def _generate_image_bytes(self, prompt: str) -> bytes:
        body = {
            "taskType": "TEXT_IMAGE",
            "textToImageParams": {"text": prompt},
            "imageGenerationConfig": {
                "numberOfImages": 1,
                "quality": "standard",
                "height": 1024,
                "width": 1024,
                "cfgScale": 8.0,
                "seed": random.randint(0, 2147483646),
            },
        }
        model_id = self.settings.bedrock_image_model_id
        logger.debug("Bedrock invoke_model: model=%s", model_id)
        try:
            response = await asyncio.to_thread(
                self.client.invoke_model,
                modelId=model_id,
                contentType="application/json",
                accept="application/json",
                body=json.dumps(body),
            )
        except (ClientError, BotoCoreError) as e:
            raise self._translate_error(e) from e

        stream = response.get("body")
        if stream is None:
            raise ImageResponseMissingError("No response body from image model", provider=self.name.value)
        payload = json.loads(stream.read())
        encoded = self._single_image(payload.get("images"), payload.get("error"))
        return base64.b64decode(encoded)
