"""Hosted text-generation providers.

Each provider sends one prompt and adapts its provider-specific payload into a
``ModelReply``. Failures (missing key, non-2xx, timeout, transport) raise
``UpstreamModelError`` subclasses; there is no retry.
"""

import json
import logging
from abc import ABC, abstractmethod
from typing import Any

import httpx

from clipbook.config import Settings, get_settings
from clipbook.exceptions import ModelNotConfiguredError, UpstreamModelError
from clipbook.schemas.chat import ModelReply

logger = logging.getLogger(__name__)

MAX_RAW_REPLY_CHARS = 4000


class ModelProvider(ABC):
    name: str = ""

    def __init__(
        self,
        api_key: str,
        model: str,
        url: str,
        timeout: float = 60.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.api_key = api_key
        self.model = model
        self.url = url
        self.timeout = timeout
        # Injected in tests (httpx.MockTransport)
        self._transport = transport

    @abstractmethod
    def build_payload(self, prompt: str) -> dict[str, Any]: ...

    @abstractmethod
    def parse_reply(self, data: Any) -> str: ...

    def endpoint(self) -> str:
        return self.url

    async def generate(self, prompt: str) -> ModelReply:
        if not self.api_key:
            raise ModelNotConfiguredError(f"{self.name} API key is not configured")

        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                response = await client.post(
                    self.endpoint(),
                    headers={
                        "Authorization": f"Bearer {self.api_key}",
                        "Content-Type": "application/json",
                    },
                    json=self.build_payload(prompt),
                )
        except httpx.TimeoutException as e:
            logger.error(f"{self.name} API timeout")
            raise UpstreamModelError(f"{self.name} request timed out") from e
        except httpx.HTTPError as e:
            logger.error(f"{self.name} API transport error: {e}")
            raise UpstreamModelError(f"{self.name} request failed: {e}") from e

        if not response.is_success:
            logger.error(f"{self.name} API error: {response.status_code} - {response.text}")
            raise UpstreamModelError(
                f"{self.name} error {response.status_code}: {response.text[:500]}",
                upstream_status=response.status_code,
            )

        try:
            data = response.json()
        except ValueError:
            data = response.text

        return ModelReply(text=self.parse_reply(data), provider=self.name, model=self.model)


class HuggingFaceProvider(ModelProvider):
    """Hugging Face inference router (``{router_url}/{model}``)."""

    name = "huggingface"

    def endpoint(self) -> str:
        return f"{self.url.rstrip('/')}/{self.model}"

    def build_payload(self, prompt: str) -> dict[str, Any]:
        return {
            "inputs": prompt,
            "parameters": {
                "max_new_tokens": 256,
                "temperature": 0.2,
                "return_full_text": False,
            },
            "options": {"wait_for_model": True},
        }

    def parse_reply(self, data: Any) -> str:
        # Response shape differs between models and router versions
        if isinstance(data, list) and data and isinstance(data[0], dict):
            if "generated_text" in data[0]:
                return str(data[0]["generated_text"])
        if isinstance(data, dict):
            if "generated_text" in data:
                return str(data["generated_text"])
            items = data.get("data")
            if isinstance(items, list) and items and isinstance(items[0], dict):
                if "generated_text" in items[0]:
                    return str(items[0]["generated_text"])
        if isinstance(data, str):
            return data
        return json.dumps(data)[:MAX_RAW_REPLY_CHARS]


class GroqProvider(ModelProvider):
    """Groq OpenAI-compatible chat completions."""

    name = "groq"
    system_message = "You are ClipBook assistant. Answer clearly."

    def build_payload(self, prompt: str) -> dict[str, Any]:
        return {
            "model": self.model,
            "messages": [
                {"role": "system", "content": self.system_message},
                {"role": "user", "content": prompt},
            ],
            "max_tokens": 200,
        }

    def parse_reply(self, data: Any) -> str:
        try:
            content = data["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError):
            return "No response"
        return content or "No response"


def get_model_provider(
    settings: Settings | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> ModelProvider:
    """Provider selected by ``model_provider``."""
    settings = settings or get_settings()
    if settings.model_provider == "groq":
        return GroqProvider(
            api_key=settings.groq_api_key,
            model=settings.groq_model,
            url=settings.groq_api_url,
            timeout=settings.model_timeout_seconds,
            transport=transport,
        )
    return HuggingFaceProvider(
        api_key=settings.hf_api_key,
        model=settings.hf_model,
        url=settings.hf_router_url,
        timeout=settings.model_timeout_seconds,
        transport=transport,
    )
