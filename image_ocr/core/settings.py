"""Typed application settings persisted in the key=value config file."""

from __future__ import annotations

from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Dict, Optional

from .config_manager import ConfigManager, get_config_manager
from .logging_utils import get_module_logger
from .paths import CONFIG_PATH
from .preferences import Preferences

logger = get_module_logger("Settings")

DEFAULT_ENGINE_PATH = "tesseract"
DEFAULT_ENGINE_TIMEOUT = 60.0
DEFAULT_FETCH_TIMEOUT = 30.0
DEFAULT_CAPTURE_RESOLUTION = (1920, 1080)

CONFIG_HEADER = """Image OCR settings
recognition_engine_path: tesseract executable (or any engine accepting `<engine> - -`)
engine_timeout_seconds: kill the engine after this many seconds (0 waits forever)
fetch_timeout_seconds: give up fetching an image URL after this many seconds
capture_width / capture_height: preferred live capture resolution"""


@dataclass(frozen=True)
class OcrSettings:
    recognition_engine_path: str = DEFAULT_ENGINE_PATH
    engine_timeout_seconds: float = DEFAULT_ENGINE_TIMEOUT
    fetch_timeout_seconds: float = DEFAULT_FETCH_TIMEOUT
    capture_width: int = DEFAULT_CAPTURE_RESOLUTION[0]
    capture_height: int = DEFAULT_CAPTURE_RESOLUTION[1]

    @property
    def engine_timeout(self) -> Optional[float]:
        """Timeout for the engine subprocess; ``None`` disables it."""
        return self.engine_timeout_seconds if self.engine_timeout_seconds > 0 else None

    @property
    def fetch_timeout(self) -> Optional[float]:
        return self.fetch_timeout_seconds if self.fetch_timeout_seconds > 0 else None

    @property
    def capture_resolution(self) -> tuple[int, int]:
        return (self.capture_width, self.capture_height)

    def to_config(self) -> Dict[str, Any]:
        return {field.name: getattr(self, field.name) for field in fields(self)}

    @classmethod
    def from_preferences(cls, prefs: Preferences) -> "OcrSettings":
        engine_path = (prefs.get("recognition_engine_path") or "").strip() or DEFAULT_ENGINE_PATH
        return cls(
            recognition_engine_path=engine_path,
            engine_timeout_seconds=prefs.get_float("engine_timeout_seconds", DEFAULT_ENGINE_TIMEOUT),
            fetch_timeout_seconds=prefs.get_float("fetch_timeout_seconds", DEFAULT_FETCH_TIMEOUT),
            capture_width=prefs.get_int("capture_width", DEFAULT_CAPTURE_RESOLUTION[0]),
            capture_height=prefs.get_int("capture_height", DEFAULT_CAPTURE_RESOLUTION[1]),
        )


SETTING_KEYS = tuple(field.name for field in fields(OcrSettings))


class SettingsStore:
    """Host settings store: loads ``OcrSettings`` and persists updates."""

    def __init__(
        self,
        config_path: Optional[Path] = None,
        *,
        config_manager: Optional[ConfigManager] = None,
    ) -> None:
        manager = config_manager or get_config_manager()
        path = Path(config_path) if config_path else CONFIG_PATH
        manager.ensure_config(path, OcrSettings().to_config(), header=CONFIG_HEADER)
        self._prefs = Preferences(path, config_manager=manager)
        self._settings = OcrSettings.from_preferences(self._prefs)

    @property
    def config_path(self) -> Path:
        return self._prefs.config_path

    @property
    def settings(self) -> OcrSettings:
        return self._settings

    @property
    def engine_path(self) -> str:
        return self._settings.recognition_engine_path

    def reload(self) -> OcrSettings:
        self._prefs.reload()
        self._settings = OcrSettings.from_preferences(self._prefs)
        return self._settings

    def update_sync(self, **updates: Any) -> bool:
        self._validate(updates)
        if not self._prefs.write_sync(updates):
            return False
        self._settings = OcrSettings.from_preferences(self._prefs)
        logger.info("Settings updated: %s", ", ".join(sorted(updates)))
        return True

    async def update(self, **updates: Any) -> bool:
        self._validate(updates)
        if not await self._prefs.write_async(updates):
            return False
        self._settings = OcrSettings.from_preferences(self._prefs)
        logger.info("Settings updated: %s", ", ".join(sorted(updates)))
        return True

    async def set_engine_path(self, engine_path: str) -> bool:
        return await self.update(recognition_engine_path=engine_path.strip() or DEFAULT_ENGINE_PATH)

    @staticmethod
    def _validate(updates: Dict[str, Any]) -> None:
        unknown = set(updates) - set(SETTING_KEYS)
        if unknown:
            raise KeyError(f"Unknown setting(s): {', '.join(sorted(unknown))}")


__all__ = [
    "DEFAULT_ENGINE_PATH",
    "OcrSettings",
    "SETTING_KEYS",
    "SettingsStore",
]
