from PySide6.QtCore import QSettings
from typing import Any, Optional

from shotslicer.core.models import ProjectConfig


class SettingsManager:
    """Manager for persistent application settings using QSettings."""

    # Default values for all settings
    DEFAULTS = {
        # Naming and slicing defaults
        "slice/project_id": "PRJ",
        "slice/scene_id": "SC01",
        "slice/rows": 3,
        "slice/cols": 3,
        "slice/aspect_w": 16,
        "slice/aspect_h": 9,

        # Export defaults
        "export/last_directory": "",
        "export/open_after_export": False,

        # UI defaults
        "last_directory": "",
        "thumbnail_view": True,
        "window_geometry": None,
        "window_state": None,
    }

    def __init__(self, settings: Optional[QSettings] = None):
        self.settings = settings if settings is not None else QSettings()

    def get(self, key: str, default: Optional[Any] = None) -> Any:
        """Get a setting value."""
        if default is None:
            default = self.DEFAULTS.get(key)

        value = self.settings.value(key, default)

        # Handle bool conversion
        if isinstance(default, bool):
            return value in (True, 'true', '1', 1)

        # Handle numeric conversion
        if isinstance(default, (int, float)) and isinstance(value, str):
            try:
                return type(default)(value)
            except (ValueError, TypeError):
                return default

        return value

    def set(self, key: str, value: Any):
        """Set a setting value."""
        self.settings.setValue(key, value)

    def reset(self):
        """Reset all settings to defaults."""
        self.settings.clear()

    def get_project_config(self) -> ProjectConfig:
        """Global slicing configuration as a ProjectConfig."""
        return ProjectConfig.from_dict({
            "project_id": self.get("slice/project_id"),
            "scene_id": self.get("slice/scene_id"),
            "rows": self.get("slice/rows"),
            "cols": self.get("slice/cols"),
            "aspect_w": self.get("slice/aspect_w"),
            "aspect_h": self.get("slice/aspect_h"),
        })

    def save_project_config(self, config: ProjectConfig):
        """Persist a ProjectConfig under the slice/ keys."""
        for key, value in config.to_dict().items():
            self.set(f"slice/{key}", value)
