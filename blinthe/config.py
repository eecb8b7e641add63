"""Dashboard configuration with CLI > env var > defaults precedence."""

import os
from dataclasses import dataclass, field
from pathlib import Path

from .errors import ValidationError


BLINTHE_DIR = Path.home() / ".blinthe"
DEFAULT_DATA_FILE = BLINTHE_DIR / "storage.json"

SESSION_TIMEOUT_SECONDS = 20 * 60
STORAGE_PREFIX = "blinthe_"


@dataclass
class DashboardConfig:
    """Configuration for a dashboard instance."""
    data_file: str = ""
    namespace: str = ""
    session_timeout: float = 0
    log_dir: str = ""

    # Text-generation configuration
    default_provider: str = ""
    api_keys: dict[str, str] = field(default_factory=dict)

    def __post_init__(self):
        # Apply env var defaults before CLI overrides
        if not self.data_file:
            self.data_file = os.getenv("BLINTHE_DATA_FILE", str(DEFAULT_DATA_FILE))
        if not self.namespace:
            self.namespace = os.getenv("BLINTHE_NAMESPACE", STORAGE_PREFIX)
        if not self.session_timeout:
            env_timeout = os.getenv("BLINTHE_SESSION_TIMEOUT")
            try:
                self.session_timeout = float(env_timeout) if env_timeout else SESSION_TIMEOUT_SECONDS
            except ValueError:
                raise ValidationError(
                    f"BLINTHE_SESSION_TIMEOUT must be a number of seconds, got {env_timeout!r}"
                ) from None
        if not self.log_dir:
            self.log_dir = os.getenv("BLINTHE_LOG_DIR", "")
        if not self.default_provider:
            self.default_provider = os.getenv("BLINTHE_LLM_PROVIDER", "perplexity")

        # Provider keys from env, without overriding explicit ones
        for provider, env_name in (
            ("perplexity_api_key", "PERPLEXITY_API_KEY"),
            ("openai_api_key", "OPENAI_API_KEY"),
            ("anthropic_api_key", "ANTHROPIC_API_KEY"),
        ):
            value = os.getenv(env_name)
            if value and provider not in self.api_keys:
                self.api_keys[provider] = value

    @property
    def data_path(self) -> Path:
        return Path(self.data_file).expanduser()
