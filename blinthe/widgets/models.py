"""Widget models. Wire names are camelCase so stored JSON stays stable."""

import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, StrictStr, field_validator
from pydantic.alias_generators import to_camel


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class LLMProvider(str, Enum):
    """Text-generation providers a widget can be evaluated with."""
    PERPLEXITY = "perplexity"
    OPENAI = "openai"
    ANTHROPIC = "anthropic"


class DisplayType(str, Enum):
    """Known display types. Generated payloads may carry others."""
    TEXT = "text"
    NUMBER = "number"
    CHART = "chart"
    LIST = "list"
    TABLE = "table"
    HTML = "html"
    CUSTOM = "custom"


class _WireModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_wire(self) -> dict[str, Any]:
        """JSON-ready dict with camelCase keys and unset optionals dropped."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class DisplayConfig(_WireModel):
    """How a widget renders. Type-specific fields are kept as extras."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="allow")

    type: StrictStr = DisplayType.TEXT.value


class WidgetDescriptor(_WireModel):
    """Validated widget payload recovered from generated or synthesized text."""

    title: StrictStr = Field(..., min_length=1)
    description: str = ""
    display_logic: DisplayConfig = Field(default_factory=DisplayConfig)
    refresh_interval: Optional[float] = None

    @field_validator("description", mode="before")
    @classmethod
    def _description_text(cls, value: Any) -> str:
        if not value:
            return ""
        return value if isinstance(value, str) else str(value)

    @field_validator("display_logic", mode="before")
    @classmethod
    def _default_display(cls, value: Any) -> Any:
        if value is None:
            return {"type": DisplayType.TEXT.value}
        return value

    @field_validator("refresh_interval", mode="before")
    @classmethod
    def _numeric_interval(cls, value: Any) -> Optional[float]:
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            return None
        return value


class WidgetVersion(_WireModel):
    """One point in a widget's branching history."""

    id: str = Field(default_factory=lambda: f"v_{uuid.uuid4().hex[:12]}")
    prompt: str
    display_logic: DisplayConfig
    llm_model: LLMProvider
    created_at: datetime = Field(default_factory=_utcnow)
    updated_at: datetime = Field(default_factory=_utcnow)


class Widget(_WireModel):
    """A dashboard widget as persisted in the encrypted store."""

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    title: str
    prompt: str
    description: str = ""
    api_keys: dict[str, str] = Field(default_factory=dict)
    llm_model: LLMProvider = LLMProvider.PERPLEXITY
    refresh_interval: Optional[float] = None
    display_logic: DisplayConfig = Field(default_factory=DisplayConfig)
    versions: list[WidgetVersion] = Field(default_factory=list)
    current_version_id: str = ""
    created_at: datetime = Field(default_factory=_utcnow)
    updated_at: datetime = Field(default_factory=_utcnow)
