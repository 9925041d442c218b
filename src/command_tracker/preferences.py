"""User preferences persisted next to the record store.

Written by the settings surface, read by ingestion (tracking flag), the
projection endpoint (view kind, date format) and teardown (protect flag).
Keys missing from the file fall back to their defaults.
"""

import json
import logging
from pathlib import Path

from pydantic import BaseModel, ValidationError

from .tracking.days import DateFormat
from .tracking.projections import ViewKind

logger = logging.getLogger(__name__)

PREFERENCES_FILE = "preferences.json"


class TrackerPreferences(BaseModel):
    view_kind: ViewKind = ViewKind.PER_COMMAND
    date_format: DateFormat = DateFormat.YYYYMMDD
    tracking_enabled: bool = True
    protect_data_on_teardown: bool = False


class PreferencesStore:
    """Loads and saves ``TrackerPreferences`` as JSON under *data_dir*."""

    def __init__(self, data_dir: Path):
        self.path = Path(data_dir) / PREFERENCES_FILE
        self.current = TrackerPreferences()

    def load(self) -> TrackerPreferences:
        if not self.path.exists():
            self.current = TrackerPreferences()
            return self.current

        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
            self.current = TrackerPreferences.model_validate(data)
        except (json.JSONDecodeError, ValidationError) as e:
            logger.warning("Ignoring unreadable preferences at %s: %s", self.path, e)
            self.current = TrackerPreferences()
        return self.current

    def save(self, preferences: TrackerPreferences) -> TrackerPreferences:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(preferences.model_dump_json(indent=2), encoding="utf-8")
        self.current = preferences
        logger.info("Saved preferences to %s", self.path)
        return preferences

    def tracking_enabled(self) -> bool:
        return self.current.tracking_enabled
