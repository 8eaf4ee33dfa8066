"""Persisted user preferences: last-used base URL and theme."""

from __future__ import annotations

import json
import logging
from typing import TYPE_CHECKING, Literal

from pydantic import BaseModel, ValidationError

from lmchat.constants import DEFAULT_BASE_URL, STATE_PATH

if TYPE_CHECKING:
    from pathlib import Path

LOGGER = logging.getLogger(__name__)

Theme = Literal["dark", "light"]


class Preferences(BaseModel):
    """Settings remembered between runs."""

    base_url: str = DEFAULT_BASE_URL
    theme: Theme = "dark"


def load_preferences(path: Path | None = None) -> Preferences:
    """Load preferences, falling back to defaults when the file is unusable."""
    path = path or STATE_PATH
    if not path.exists():
        return Preferences()
    try:
        return Preferences.model_validate(json.loads(path.read_text(encoding="utf-8")))
    except (OSError, json.JSONDecodeError, ValidationError) as e:
        LOGGER.warning("Ignoring unreadable preferences file %s: %s", path, e)
        return Preferences()


def save_preferences(preferences: Preferences, path: Path | None = None) -> None:
    """Write preferences to disk."""
    path = path or STATE_PATH
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", encoding="utf-8") as f:
        json.dump(preferences.model_dump(), f, indent=2)
