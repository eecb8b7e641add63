"""Thin async HTTP wrapper over Perplexity, OpenAI and Anthropic chat APIs."""

import httpx

from ..errors import LLMServiceError
from ..logging import get_logger
from .extractor import extract_widget_descriptor
from .model_selection import select_model
from .models import LLMProvider, WidgetDescriptor

logger = get_logger("widgets.llm")

PERPLEXITY_URL = "https://api.perplexity.ai/chat/completions"
OPENAI_URL = "https://api.openai.com/v1/chat/completions"
ANTHROPIC_URL = "https://api.anthropic.com/v1/messages"

DEFAULT_SYSTEM_PROMPT = "You are a helpful assistant that returns structured JSON responses."
DEFAULT_MAX_TOKENS = 1024
DEFAULT_TEMPERATURE = 0.7


class LLMClient:
    """Async client that sends one system + user instruction and returns the reply text."""

    def __init__(
        self,
        http_client: httpx.AsyncClient | None = None,
        openai_model: str = "gpt-3.5-turbo",
        anthropic_model: str = "claude-sonnet-4-5-20250929",
    ):
        self.openai_model = openai_model
        self.anthropic_model = anthropic_model
        self._client = http_client or httpx.AsyncClient(timeout=120.0)

    async def close(self):
        await self._client.aclose()

    async def complete(
        self,
        provider: LLMProvider,
        prompt: str,
        api_key: str,
        *,
        system: str | None = None,
        is_widget_creation: bool = False,
        max_tokens: int = DEFAULT_MAX_TOKENS,
    ) -> str:
        """Send a chat request to `provider` and return the raw reply text."""
        system = system or DEFAULT_SYSTEM_PROMPT
        provider = LLMProvider(provider)

        if provider is LLMProvider.PERPLEXITY:
            model = select_model(
                prompt,
                is_widget_creation=is_widget_creation,
                force_advanced=is_widget_creation,
            )
            return await self._chat_completions(
                provider, PERPLEXITY_URL, model, prompt, api_key, system, max_tokens
            )
        if provider is LLMProvider.OPENAI:
            return await self._chat_completions(
                provider, OPENAI_URL, self.openai_model, prompt, api_key, system, max_tokens
            )
        return await self._anthropic_messages(prompt, api_key, system, max_tokens)

    async def generate_widget(
        self,
        provider: LLMProvider,
        prompt: str,
        api_key: str,
        *,
        system: str | None = None,
    ) -> WidgetDescriptor:
        """Ask for a widget and recover its descriptor from the reply."""
        content = await self.complete(
            provider, prompt, api_key, system=system, is_widget_creation=True
        )
        return extract_widget_descriptor(content)

    async def _post(self, provider: LLMProvider, url: str, body: dict, headers: dict) -> dict:
        try:
            resp = await self._client.post(url, json=body, headers=headers)
        except httpx.HTTPError as e:
            raise LLMServiceError(provider.value, f"request failed: {e}") from e

        if resp.status_code >= 400:
            logger.warning("%s returned HTTP %d", provider.value, resp.status_code)
            raise LLMServiceError(provider.value, resp.reason_phrase or str(resp.status_code), resp.status_code)

        try:
            data = resp.json()
        except ValueError as e:
            raise LLMServiceError(provider.value, "response is not JSON", resp.status_code) from e

        if not isinstance(data, dict):
            raise LLMServiceError(provider.value, "unexpected response shape", resp.status_code)

        # Some providers report request errors inside a 200 body
        if data.get("error"):
            error = data["error"]
            if isinstance(error, dict):
                detail = error.get("message") or error.get("type") or str(error)
            else:
                detail = str(error)
            raise LLMServiceError(provider.value, f"rejected request: {detail}", resp.status_code)

        return data

    async def _chat_completions(
        self,
        provider: LLMProvider,
        url: str,
        model: str,
        prompt: str,
        api_key: str,
        system: str,
        max_tokens: int,
    ) -> str:
        body = {
            "model": model,
            "messages": [
                {"role": "system", "content": system},
                {"role": "user", "content": prompt},
            ],
            "max_tokens": max_tokens,
            "temperature": DEFAULT_TEMPERATURE,
        }
        headers = {
            "Authorization": f"Bearer {api_key}",
            "Content-Type": "application/json",
        }
        logger.info("Requesting %s completion (model=%s)", provider.value, model)
        data = await self._post(provider, url, body, headers)

        choices = data.get("choices") or []
        if not choices:
            return ""
        if not isinstance(choices, list) or not isinstance(choices[0], dict):
            raise LLMServiceError(provider.value, "unexpected response shape")
        message = choices[0].get("message") or {}
        if not isinstance(message, dict):
            raise LLMServiceError(provider.value, "unexpected response shape")
        content = message.get("content") or ""
        if not isinstance(content, str):
            raise LLMServiceError(provider.value, "unexpected response shape")
        return content

    async def _anthropic_messages(
        self,
        prompt: str,
        api_key: str,
        system: str,
        max_tokens: int,
    ) -> str:
        body = {
            "model": self.anthropic_model,
            "max_tokens": max_tokens,
            "system": system,
            "messages": [{"role": "user", "content": prompt}],
        }
        headers = {
            "x-api-key": api_key,
            "anthropic-version": "2023-06-01",
            "Content-Type": "application/json",
        }
        logger.info("Requesting anthropic completion (model=%s)", self.anthropic_model)
        data = await self._post(LLMProvider.ANTHROPIC, ANTHROPIC_URL, body, headers)

        blocks = data.get("content") or []
        if not isinstance(blocks, list):
            raise LLMServiceError(LLMProvider.ANTHROPIC.value, "unexpected response shape")

        text_content = ""
        for block in blocks:
            if not isinstance(block, dict):
                raise LLMServiceError(LLMProvider.ANTHROPIC.value, "unexpected response shape")
            if block.get("type") == "text":
                text_content += str(block.get("text", ""))
        return text_content
