"""Chat-completion client.

The rest of the service only sees ``send(messages) -> str``. Only the OpenAI
provider is supported; any other configured provider fails each call with
UnsupportedProviderError so the misconfiguration is visible per request.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import httpx
import structlog

from coursecontext.errors import UnsupportedProviderError, UpstreamLLMError

if TYPE_CHECKING:
    from collections.abc import Sequence

    from coursecontext.config import LLMSettings
    from coursecontext.models.chat import Message

log = structlog.get_logger()

SUPPORTED_PROVIDERS: frozenset[str] = frozenset({"openai"})


def check_provider(provider: str) -> None:
    if provider not in SUPPORTED_PROVIDERS:
        raise UnsupportedProviderError(
            f"Unsupported provider {provider!r}. Set llm.provider=openai."
        )


class OpenAIChatClient:
    """Calls the OpenAI chat-completions endpoint over the shared httpx client."""

    def __init__(self, client: httpx.AsyncClient, settings: LLMSettings) -> None:
        self._client = client
        self._settings = settings

    async def send(self, messages: Sequence[Message]) -> str:
        """Send the ordered message list and return the reply text.

        Raises UpstreamLLMError on network errors, non-2xx responses and
        malformed response bodies. No retry.
        """
        check_provider(self._settings.provider)

        api_key = self._settings.api_key.get_secret_value() if self._settings.api_key else ""
        url = f"{self._settings.base_url.rstrip('/')}/chat/completions"
        payload = {
            "model": self._settings.model,
            "messages": [m.model_dump(mode="json") for m in messages],
            "temperature": self._settings.temperature,
        }

        try:
            response = await self._client.post(
                url,
                json=payload,
                headers={"Authorization": f"Bearer {api_key}"},
                timeout=self._settings.timeout_seconds,
            )
        except httpx.HTTPError as exc:
            raise UpstreamLLMError(f"Network error calling {url}: {exc}") from exc

        if not response.is_success:
            log.error(
                "llm_http_error",
                status_code=response.status_code,
                body=response.text[:2000],
            )
            raise UpstreamLLMError(f"Chat completion failed with HTTP {response.status_code}")

        try:
            data = response.json()
            content = data["choices"][0]["message"]["content"]
        except (ValueError, KeyError, IndexError, TypeError) as exc:
            raise UpstreamLLMError("Malformed chat completion response") from exc

        log.info(
            "llm_call_complete",
            model=self._settings.model,
            message_count=len(messages),
            reply_length=len(content or ""),
        )
        return content or ""
