"""Application configuration manager wrapping QSettings."""

import logging

from PySide6.QtCore import QObject, Signal, Slot, QSettings

logger = logging.getLogger(__name__)

# Default values
DEFAULTS = {
    "general/tokenWindowDays": 0,       # 0 = all time
    "general/refreshInterval": 60,      # seconds
    "advanced/debugLogging": False,
    "account/orgName": "",
    "account/displayName": "",
    "account/plan": "",
}

MAX_TOKEN_WINDOW_DAYS = 7
MIN_REFRESH_INTERVAL = 10
MAX_REFRESH_INTERVAL = 60


class ConfigManager(QObject):
    """Centralized user preferences."""

    settings_changed = Signal(str)  # key

    def __init__(self, parent=None, settings: QSettings | None = None):
        super().__init__(parent)
        self._settings = settings if settings is not None else QSettings()

    @Slot(str, result=str)
    def get_string(self, key: str) -> str:
        val = self._settings.value(key, DEFAULTS.get(key, ""))
        return "" if val is None else str(val)

    @Slot(str, result=int)
    def get_int(self, key: str) -> int:
        val = self._settings.value(key, DEFAULTS.get(key, 0))
        try:
            return int(float(val))
        except (ValueError, TypeError):
            return DEFAULTS.get(key, 0)

    @Slot(str, result=bool)
    def get_bool(self, key: str) -> bool:
        val = self._settings.value(key, DEFAULTS.get(key, False))
        if isinstance(val, bool):
            return val
        if isinstance(val, str):
            return val.lower() in ("true", "1", "yes")
        return bool(val)

    @Slot(str, str)
    def set_string(self, key: str, value: str):
        self._settings.setValue(key, value)
        self.settings_changed.emit(key)

    @Slot(str, int)
    def set_int(self, key: str, value: int):
        self._settings.setValue(key, value)
        self.settings_changed.emit(key)

    @Slot(str, bool)
    def set_bool(self, key: str, value: bool):
        self._settings.setValue(key, value)
        self.settings_changed.emit(key)

    def has_value(self, key: str) -> bool:
        """Whether the key holds a non-empty, explicitly stored value."""
        if not self._settings.contains(key):
            return False
        return self.get_string(key) != ""

    @Slot(str)
    def remove(self, key: str):
        self._settings.remove(key)
        self.settings_changed.emit(key)

    # Typed accessors for the refresh pipeline

    def token_window_days(self) -> int:
        days = self.get_int("general/tokenWindowDays")
        return min(max(days, 0), MAX_TOKEN_WINDOW_DAYS)

    def refresh_interval(self) -> float:
        interval = self.get_int("general/refreshInterval")
        if interval <= 0:
            interval = DEFAULTS["general/refreshInterval"]
        return float(min(max(interval, MIN_REFRESH_INTERVAL), MAX_REFRESH_INTERVAL))
