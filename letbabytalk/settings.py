"""Persisted client settings and baby selection.

Settings live in a small JSON file. They are loaded once at startup with
:meth:`SettingsStore.load` and written back with :meth:`SettingsStore.save`
after each change.
"""

import json
import logging
from pathlib import Path
from typing import Iterable, Optional

from pydantic import BaseModel, ValidationError, field_validator

from . import config
from .models import BabyProfile

logger = logging.getLogger(__name__)


class Settings(BaseModel):
    api_url: str = config.DEFAULT_API_URL
    guest_user_id: Optional[str] = None
    session_cookie: Optional[str] = None
    language: str = config.DEFAULT_LANGUAGE
    has_completed_onboarding: bool = False
    selected_baby_id: Optional[int] = None

    @field_validator("language")
    @classmethod
    def _supported_language(cls, value: str) -> str:
        return value if value in config.SUPPORTED_LANGUAGES else config.DEFAULT_LANGUAGE


class SettingsStore:
    """JSON-file backed :class:`Settings`."""

    def __init__(self, path: Path = config.SETTINGS_FILE):
        self.path = Path(path)
        self.settings = Settings()

    def load(self) -> Settings:
        """Read the file; a missing or unreadable file yields defaults."""
        if not self.path.exists():
            self.settings = Settings()
            return self.settings
        try:
            with open(self.path, encoding="utf-8") as f:
                self.settings = Settings.model_validate(json.load(f))
        except (OSError, ValueError, ValidationError) as e:
            logger.warning("Ignoring unreadable settings file %s: %s", self.path, e)
            self.settings = Settings()
        return self.settings

    def save(self) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self.path.with_suffix(".tmp")
        with open(tmp, "w", encoding="utf-8") as f:
            json.dump(self.settings.model_dump(), f, indent=2)
        tmp.replace(self.path)

    def update(self, **changes) -> Settings:
        """Apply *changes*, validate them and save."""
        self.settings = Settings.model_validate({**self.settings.model_dump(), **changes})
        self.save()
        return self.settings


class BabySelection:
    """Keeps the selected baby consistent with the profiles that exist."""

    def __init__(self, store: SettingsStore):
        self.store = store

    @property
    def selected_id(self) -> Optional[int]:
        return self.store.settings.selected_baby_id

    def select(self, baby_id: Optional[int]) -> None:
        self.store.update(selected_baby_id=baby_id)

    def reconcile(self, profiles: Iterable[BabyProfile]) -> Optional[int]:
        """Select the first profile when none is selected; clear a vanished one."""
        ids = [p.id for p in profiles]
        current = self.selected_id
        if current is not None and current not in ids:
            logger.info("Selected baby %s no longer exists", current)
            current = None
        if current is None and ids:
            current = ids[0]
        if current != self.selected_id:
            self.select(current)
        return current
