"""API key patterns, extraction from free-text prompts, and provider inference."""

import re
from dataclasses import dataclass
from typing import Optional

from .models import LLMProvider


@dataclass(frozen=True)
class APIKeyPattern:
    """How to spot one provider's key inside a prompt."""
    provider: str
    pattern: re.Pattern
    prefix: Optional[str] = None


API_KEY_PATTERNS: tuple[APIKeyPattern, ...] = (
    APIKeyPattern(
        provider="perplexity_api_key",
        pattern=re.compile(
            r"(?:perplexity[_\s]api[_\s]key\s*[:=]\s*)?((pplx-[a-zA-Z0-9_-]+)|([a-zA-Z0-9_-]{40,}))",
            re.IGNORECASE,
        ),
        prefix="pplx-",
    ),
    APIKeyPattern(
        provider="openai_api_key",
        pattern=re.compile(r"(?:openai[_\s]api[_\s]key\s*[:=]\s*)?(sk-[a-zA-Z0-9]+)", re.IGNORECASE),
        prefix="sk-",
    ),
    APIKeyPattern(
        provider="anthropic_api_key",
        pattern=re.compile(r"(?:anthropic[_\s]api[_\s]key\s*[:=]\s*)?(sk-ant-[a-zA-Z0-9]+)", re.IGNORECASE),
        prefix="sk-ant-",
    ),
    APIKeyPattern(
        provider="openweather_api_key",
        pattern=re.compile(r"openweather[_\s]api[_\s]key\s*[:=]\s*([a-zA-Z0-9]+)", re.IGNORECASE),
    ),
    APIKeyPattern(
        provider="newsapi_api_key",
        pattern=re.compile(r"newsapi[_\s]api[_\s]key\s*[:=]\s*([a-zA-Z0-9]+)", re.IGNORECASE),
    ),
    APIKeyPattern(
        provider="weatherapi_api_key",
        pattern=re.compile(r"weatherapi[_\s]api[_\s]key\s*[:=]\s*([a-zA-Z0-9]+)", re.IGNORECASE),
    ),
    APIKeyPattern(
        provider="coingecko_api_key",
        pattern=re.compile(r"coingecko[_\s]api[_\s]key\s*[:=]\s*([a-zA-Z0-9]+)", re.IGNORECASE),
    ),
)

# Which stored key a provider authenticates with
PROVIDER_KEY_NAMES = {
    LLMProvider.PERPLEXITY: "perplexity_api_key",
    LLMProvider.OPENAI: "openai_api_key",
    LLMProvider.ANTHROPIC: "anthropic_api_key",
}


def extract_api_keys(text: str) -> tuple[dict[str, str], str]:
    """
    Pull API keys out of a prompt.

    Returns:
        (api_keys, redacted_prompt) where every matched key is replaced by
        `[provider]` in the prompt
    """
    api_keys: dict[str, str] = {}
    redacted = text

    for key_pattern in API_KEY_PATTERNS:
        for match in key_pattern.pattern.finditer(text):
            if match.group(1):
                api_keys[key_pattern.provider] = match.group(1)
                redacted = redacted.replace(match.group(0), f"[{key_pattern.provider}]", 1)

    return api_keys, redacted.strip()


def infer_llm_provider(text: str) -> Optional[LLMProvider]:
    """Guess the provider a prompt refers to; perplexity when only a key is mentioned."""
    lower = text.lower()

    if "perplexity" in lower:
        return LLMProvider.PERPLEXITY
    if "openai" in lower or "gpt" in lower:
        return LLMProvider.OPENAI
    if "anthropic" in lower or "claude" in lower:
        return LLMProvider.ANTHROPIC

    if re.search(r"api[_\s]key", text):
        return LLMProvider.PERPLEXITY

    return None


def is_valid_api_key(key: str, provider: str) -> bool:
    """Cheap shape check before a key is stored or used."""
    if not key or len(key) < 5:
        return False

    if provider == "openai_api_key":
        return key.startswith("sk-")
    if provider == "anthropic_api_key":
        return key.startswith("sk-ant-")
    if provider == "perplexity_api_key":
        return len(key) > 10

    return True
