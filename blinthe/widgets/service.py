"""Widget creation: local fast path first, text-generation service otherwise."""

from typing import Optional

from ..errors import ValidationError
from ..logging import get_logger
from .keys import PROVIDER_KEY_NAMES, extract_api_keys, infer_llm_provider, is_valid_api_key
from .llm_client import LLMClient
from .models import LLMProvider, Widget, WidgetDescriptor
from .repository import WidgetRepository
from .shortcut import reformulate, synthesize_locally

logger = get_logger("widgets")

WIDGET_SYSTEM_PROMPT = (
    "You build widgets for a personal dashboard. After any component code, end your "
    "reply with a single JSON object of the form "
    '{"title": "...", "description": "...", "displayLogic": {"type": "text|number|chart|list|table|html|custom", ...}, '
    '"refreshInterval": <milliseconds, optional>}. '
    "The title must be a short non-empty string."
)


class WidgetService:
    """Turns a user's request into a stored widget."""

    def __init__(
        self,
        repository: WidgetRepository,
        llm: LLMClient,
        api_keys: Optional[dict[str, str]] = None,
        default_provider: LLMProvider = LLMProvider.PERPLEXITY,
    ):
        self.repository = repository
        self.llm = llm
        self.api_keys = dict(api_keys or {})
        self.default_provider = LLMProvider(default_provider)

    def _resolve_api_key(
        self,
        provider: LLMProvider,
        explicit: Optional[str],
        from_prompt: dict[str, str],
    ) -> str:
        key_name = PROVIDER_KEY_NAMES[provider]
        api_key = explicit or from_prompt.get(key_name) or self.api_keys.get(key_name)
        if not api_key:
            raise ValidationError(f"No API key configured for {provider.value}")
        if not is_valid_api_key(api_key, key_name):
            raise ValidationError(f"API key for {provider.value} has an invalid format")
        return api_key

    async def describe(
        self,
        prompt: str,
        provider: Optional[LLMProvider] = None,
        api_key: Optional[str] = None,
    ) -> tuple[WidgetDescriptor, LLMProvider, dict[str, str], str]:
        """
        Produce a descriptor for `prompt` without storing anything.

        Returns:
            (descriptor, provider, api_keys found in the prompt, redacted prompt)
        """
        prompt_keys, redacted = extract_api_keys(prompt)

        chosen = LLMProvider(provider) if provider else (infer_llm_provider(prompt) or self.default_provider)

        descriptor = synthesize_locally(redacted)
        if descriptor is not None:
            logger.info("Synthesized widget locally: %s", descriptor.title)
            return descriptor, chosen, prompt_keys, redacted

        key = self._resolve_api_key(chosen, api_key, prompt_keys)
        descriptor = await self.llm.generate_widget(
            chosen, reformulate(redacted), key, system=WIDGET_SYSTEM_PROMPT
        )
        logger.info("Generated widget via %s: %s", chosen.value, descriptor.title)
        return descriptor, chosen, prompt_keys, redacted

    async def create_from_prompt(
        self,
        prompt: str,
        provider: Optional[LLMProvider] = None,
        api_key: Optional[str] = None,
    ) -> Widget:
        """Describe, then persist a new widget with its first version."""
        descriptor, chosen, prompt_keys, redacted = await self.describe(prompt, provider, api_key)

        widget = Widget(
            title=descriptor.title,
            prompt=redacted,
            description=descriptor.description,
            api_keys=prompt_keys,
            llm_model=chosen,
            refresh_interval=descriptor.refresh_interval,
            display_logic=descriptor.display_logic,
        )
        version = self.repository.create_version(widget)
        widget.versions = [version]
        widget.current_version_id = version.id

        return await self.repository.create_widget(widget)
