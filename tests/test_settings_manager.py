import pytest
from PySide6.QtCore import QSettings

from shotslicer.core.models import ProjectConfig
from shotslicer.core.settings_manager import SettingsManager


@pytest.fixture
def settings(tmp_path):
    return SettingsManager(QSettings(str(tmp_path / "settings.ini"), QSettings.Format.IniFormat))


def test_defaults_when_unset(settings):
    assert settings.get("slice/rows") == 3
    assert settings.get("thumbnail_view") is True
    assert settings.get("export/open_after_export") is False
    assert settings.get("last_directory") == ""


def test_values_are_coerced_after_reload(tmp_path):
    path = str(tmp_path / "settings.ini")
    first = SettingsManager(QSettings(path, QSettings.Format.IniFormat))
    first.set("thumbnail_view", False)
    first.set("slice/rows", 4)
    first.settings.sync()

    second = SettingsManager(QSettings(path, QSettings.Format.IniFormat))
    assert second.get("thumbnail_view") is False
    assert second.get("slice/rows") == 4


def test_project_config_round_trip(settings):
    config = ProjectConfig(project_id="MOVIE", scene_id="S07", rows=2, cols=4, aspect_w=21, aspect_h=9)
    settings.save_project_config(config)
    assert settings.get_project_config() == config


def test_reset_restores_defaults(settings):
    settings.set("slice/project_id", "MOVIE")
    settings.reset()
    assert settings.get_project_config() == ProjectConfig()
