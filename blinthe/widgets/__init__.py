"""Widget descriptors, generation and storage."""

from .extractor import extract_widget_descriptor, find_json_candidates
from .llm_client import LLMClient
from .models import DisplayConfig, LLMProvider, Widget, WidgetDescriptor, WidgetVersion
from .repository import WidgetRepository
from .service import WidgetService
from .shortcut import (
    is_eligible_for_local_synthesis,
    reformulate,
    should_use_remote_service,
    synthesize_locally,
)

__all__ = [
    'extract_widget_descriptor',
    'find_json_candidates',
    'LLMClient',
    'DisplayConfig',
    'LLMProvider',
    'Widget',
    'WidgetDescriptor',
    'WidgetVersion',
    'WidgetRepository',
    'WidgetService',
    'is_eligible_for_local_synthesis',
    'reformulate',
    'should_use_remote_service',
    'synthesize_locally',
]
