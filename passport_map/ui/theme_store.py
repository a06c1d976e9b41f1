"""Theme palettes and the persisted dark-mode preference.

The only persisted state of the application is one boolean stored under
ThemeConfig.PREFERENCE_KEY in a small JSON file. Reading never raises: a
missing, unreadable or corrupt file, or a non-boolean value, means light
theme. Write failures are logged and otherwise ignored.
"""

import json
import logging
from dataclasses import dataclass
from pathlib import Path

from passport_map.constants import ThemeConfig

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Theme:
    """Colors used by the layer renderer."""

    name: str
    background: str
    land: str
    boundary: str
    subdivision: str
    trail_blend: str

    @classmethod
    def light(cls) -> "Theme":
        return cls(name="light", **ThemeConfig.LIGHT)

    @classmethod
    def dark(cls) -> "Theme":
        return cls(name="dark", **ThemeConfig.DARK)

    @classmethod
    def for_mode(cls, dark_mode: bool) -> "Theme":
        return cls.dark() if dark_mode else cls.light()


class ThemeStore:
    """Reads and writes the dark-mode flag.

    Example:
        store = ThemeStore()
        dark = store.load()
        store.save(not dark)
    """

    def __init__(self, path: Path = ThemeConfig.PREFERENCES_PATH, key: str = ThemeConfig.PREFERENCE_KEY) -> None:
        self.path = path
        self.key = key

    def _read_document(self) -> dict:
        try:
            with open(self.path, encoding="utf-8") as fh:
                document = json.load(fh)
        except FileNotFoundError:
            return {}
        except (OSError, ValueError) as e:
            logger.warning(f"Ignoring unreadable preferences at {self.path}: {e}")
            return {}
        if not isinstance(document, dict):
            logger.warning(f"Ignoring preferences at {self.path}: not a JSON object")
            return {}
        return document

    def load(self) -> bool:
        """Return True for dark mode; anything unexpected means light."""
        value = self._read_document().get(self.key, False)
        if not isinstance(value, bool):
            logger.warning(f"Preference '{self.key}' is {value!r}, defaulting to light theme")
            return False
        return value

    def save(self, dark_mode: bool) -> None:
        """Persist the flag, keeping any other keys already in the file."""
        document = self._read_document()
        document[self.key] = bool(dark_mode)
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.path, "w", encoding="utf-8") as fh:
                json.dump(document, fh, indent=2)
        except OSError as e:
            logger.error(f"Could not save theme preference to {self.path}: {e}")
            return
        logger.info(f"Theme preference saved: {'dark' if dark_mode else 'light'}")

    def toggle(self) -> bool:
        """Flip and persist the flag; returns the new value."""
        new_value = not self.load()
        self.save(new_value)
        return new_value
