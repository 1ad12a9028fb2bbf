"""Persisted user preferences (the selected chain only)."""

import json
import logging
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ValidationError

logger = logging.getLogger(__name__)

PREFERENCES_VERSION = 1


class UserPreferences(BaseModel):
    """
    Serializable preferences that survive restarts.

    Attributes
    ----------
    version : int
        Schema version, for forward migration
    selected_chain_id : int | None
        Chain the user picked last

    """

    version: int = PREFERENCES_VERSION
    selected_chain_id: int | None = None


def migrate_preferences(data: dict[str, Any]) -> dict[str, Any]:
    """
    Upgrade a stored preferences mapping to the current version.

    Older files used the camelCase ``selectedChainId`` key, optionally
    nested under ``state``, with or without a version.

    """
    version = data.get("version", 0)
    if isinstance(version, int) and version >= 1 and "selected_chain_id" in data:
        return {**data, "version": PREFERENCES_VERSION}

    state = data.get("state") if isinstance(data.get("state"), dict) else data
    return {
        "selected_chain_id": state.get("selected_chain_id", state.get("selectedChainId")),
        "version": PREFERENCES_VERSION,
    }


class PreferencesStore:
    """
    JSON file holding :class:`UserPreferences`.

    Parameters
    ----------
    path : Path
        Preferences file location

    """

    def __init__(self, path: Path) -> None:
        self.path = Path(path)

    def load(self) -> UserPreferences:
        """
        Read preferences, falling back to defaults.

        Returns
        -------
        UserPreferences
            Stored preferences, or defaults if the file is missing or unreadable

        """
        if not self.path.exists():
            return UserPreferences()

        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
            if not isinstance(data, dict):
                msg = "preferences file is not a JSON object"
                raise ValueError(msg)
            return UserPreferences.model_validate(migrate_preferences(data))
        except (OSError, ValueError, ValidationError) as e:
            logger.warning("Ignoring unreadable preferences at %s: %s", self.path, e)
            return UserPreferences()

    def save(self, preferences: UserPreferences) -> None:
        """Write preferences, creating parent directories as needed."""
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(preferences.model_dump_json(indent=2), encoding="utf-8")
