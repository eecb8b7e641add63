"""Widget CRUD and version history on top of the encrypted store."""

import json
import uuid
from datetime import datetime, timezone
from typing import Any, Optional

from pydantic import ValidationError as WidgetShapeError

from ..errors import NotFoundError, ValidationError
from ..logging import get_logger
from ..vault.store import EncryptedStore
from .models import Widget, WidgetVersion

logger = get_logger("widgets.repository")

WIDGET_KEY_PREFIX = "widget_"


def _storage_key(widget_id: str) -> str:
    return f"{WIDGET_KEY_PREFIX}{widget_id}"


class WidgetRepository:
    """
    Widgets for one signed-in user.

    Every widget is stored as its own encrypted entry under `widget_<id>`. The
    in-memory list mirrors what has been loaded or written through this object.
    """

    def __init__(self, store: EncryptedStore, password: str):
        self.store = store
        self._password = password
        self.widgets: list[Widget] = []

    async def _save(self, widget: Widget) -> None:
        await self.store.put(
            _storage_key(widget.id),
            widget.model_dump(mode="json", by_alias=True),
            self._password,
        )

    def _require(self, widget_id: str) -> Widget:
        widget = self.get_widget(widget_id)
        if widget is None:
            raise NotFoundError(f"Widget not found: {widget_id}")
        return widget

    async def load_widgets(self) -> list[Widget]:
        """Load every widget this password can decrypt, newest first."""
        loaded = []
        for key in self.store.list_keys():
            if not key.startswith(WIDGET_KEY_PREFIX):
                continue
            value = await self.store.get(key, self._password)
            if value is None:
                continue
            try:
                loaded.append(Widget.model_validate(value))
            except WidgetShapeError:
                logger.warning("Skipping malformed widget entry %s", key)

        self.widgets = sorted(loaded, key=lambda w: w.created_at, reverse=True)
        logger.info("Loaded %d widget(s)", len(self.widgets))
        return self.widgets

    def get_widget(self, widget_id: str) -> Optional[Widget]:
        for widget in self.widgets:
            if widget.id == widget_id:
                return widget
        return None

    async def create_widget(self, widget: Widget) -> Widget:
        await self._save(widget)
        self.widgets.insert(0, widget)
        logger.info("Created widget %s (%s)", widget.title, widget.id[:8])
        return widget

    async def update_widget(self, widget_id: str, **updates: Any) -> Widget:
        """Apply field updates, bump updated_at and persist."""
        current = self._require(widget_id)
        updated = current.model_copy(
            update={**updates, "updated_at": datetime.now(timezone.utc)}
        )
        await self._save(updated)
        self.widgets[self.widgets.index(current)] = updated
        return updated

    async def delete_widget(self, widget_id: str) -> None:
        self._require(widget_id)
        self.store.remove(_storage_key(widget_id))
        self.widgets = [w for w in self.widgets if w.id != widget_id]
        logger.info("Deleted widget %s", widget_id[:8])

    def create_version(self, widget: Widget) -> WidgetVersion:
        """Snapshot the widget's current prompt and display logic."""
        return WidgetVersion(
            prompt=widget.prompt,
            display_logic=widget.display_logic.model_copy(deep=True),
            llm_model=widget.llm_model,
        )

    async def add_version(self, widget_id: str, version: WidgetVersion) -> Widget:
        widget = self._require(widget_id)
        return await self.update_widget(
            widget_id,
            versions=[*widget.versions, version],
            current_version_id=version.id,
        )

    async def revert_to_version(self, widget_id: str, version_id: str) -> Widget:
        """Make an earlier version current again. History is kept."""
        widget = self._require(widget_id)
        version = next((v for v in widget.versions if v.id == version_id), None)
        if version is None:
            raise NotFoundError(f"Version not found: {version_id}")

        return await self.update_widget(
            widget_id,
            current_version_id=version.id,
            display_logic=version.display_logic.model_copy(deep=True),
            prompt=version.prompt,
            llm_model=version.llm_model,
        )

    def export_widget(self, widget_id: str) -> Optional[str]:
        widget = self.get_widget(widget_id)
        if widget is None:
            return None
        return json.dumps(widget.model_dump(mode="json", by_alias=True), indent=2)

    async def import_widget(self, data: str) -> Widget:
        """Import an exported widget as a new widget with a fresh id and timestamps."""
        try:
            widget = Widget.model_validate_json(data)
        except WidgetShapeError as e:
            raise ValidationError(f"Invalid widget JSON: {e.error_count()} error(s)") from None

        now = datetime.now(timezone.utc)
        widget = widget.model_copy(
            update={"id": str(uuid.uuid4()), "created_at": now, "updated_at": now}
        )
        return await self.create_widget(widget)
