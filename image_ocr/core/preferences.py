"""Cached preference access on top of ConfigManager."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Dict, Optional

from .config_manager import ConfigManager, get_config_manager
from .logging_utils import get_module_logger

logger = get_module_logger(__name__)


@dataclass(slots=True)
class PreferenceChange:
    """Describes which keys were updated in a preference write."""

    updated: Dict[str, Any]


class Preferences:
    """Lightweight wrapper around ConfigManager for one config file."""

    def __init__(
        self,
        config_path: Path,
        *,
        config_manager: Optional[ConfigManager] = None,
        on_change: Optional[Callable[[PreferenceChange], None]] = None,
    ) -> None:
        self._config_path = Path(config_path)
        self._manager = config_manager or get_config_manager()
        self._on_change = on_change
        self._cache: Dict[str, str] = {}
        self.reload()

    @property
    def config_path(self) -> Path:
        return self._config_path

    @property
    def manager(self) -> ConfigManager:
        return self._manager

    # ------------------------------------------------------------------
    # Basic accessors

    def snapshot(self) -> Dict[str, str]:
        return dict(self._cache)

    def get(self, key: str, default: Optional[str] = None) -> Optional[str]:
        return self._cache.get(key, default)

    def get_float(self, key: str, default: float) -> float:
        return self._manager.get_float(self._cache, key, default)

    def get_int(self, key: str, default: int) -> int:
        return self._manager.get_int(self._cache, key, default)

    def reload(self) -> Dict[str, str]:
        self._cache = self._manager.read_config(self._config_path)
        return self.snapshot()

    # ------------------------------------------------------------------
    # Mutation helpers

    def write_sync(self, updates: Dict[str, Any]) -> bool:
        if not updates:
            return True
        success = self._manager.write_config(self._config_path, updates)
        if success:
            self._apply_cache_updates(updates)
        return success

    async def write_async(self, updates: Dict[str, Any]) -> bool:
        if not updates:
            return True
        success = await self._manager.write_config_async(self._config_path, updates)
        if success:
            self._apply_cache_updates(updates)
        return success

    # ------------------------------------------------------------------
    # Internal helpers

    def _apply_cache_updates(self, updates: Dict[str, Any]) -> None:
        for key, value in updates.items():
            self._cache[key] = ConfigManager._stringify_value(value)

        if self._on_change:
            change = PreferenceChange(updated=dict(updates))
            try:
                self._on_change(change)
            except Exception:  # pragma: no cover - listener bugs must not break writes
                logger.debug("Preference change callback failed", exc_info=True)


__all__ = ["PreferenceChange", "Preferences"]
