# tests/core/test_config_manager.py
import json

import pytest

from i18n_checker.managers.config_manager import ConfigManager
from i18n_checker.model import CheckerSettings
from i18n_checker.utils.path_utils import PathUtils

MOCK_SETTINGS_CONTENT = {
    "logging": {
        "level": "WARNING"
    },
    "http": {
        "timeout": 15,
        "user_agent": "test-agent/1.0"
    },
    "checker": {
        "workers": 2
    }
}


@pytest.fixture
def settings_file(tmp_path):
    path = tmp_path / "settings.json"
    path.write_text(json.dumps(MOCK_SETTINGS_CONTENT))
    return path


@pytest.fixture
def manager(settings_file):
    return ConfigManager(settings_file)


def test_config_manager_load(manager):
    config = manager.get_all()
    assert config["logging"]["level"] == "WARNING"
    assert config["http"]["timeout"] == 15


def test_config_manager_get_nested(manager):
    assert manager.get_nested("checker.workers") == 2
    assert manager.get_nested("non.existent.key", "default") == "default"
    assert manager.get_nested("logging.level.deeper", "default") == "default"


def test_config_manager_set_nested(manager):
    manager.set_nested("logging.level", "INFO")
    assert manager.get_nested("logging.level") == "INFO"

    manager.set_nested("new_feature.enabled", True)
    assert manager.get_nested("new_feature.enabled") is True

    # The original value is an int, so the string is cast
    manager.set_nested("http.timeout", "30")
    assert manager.get_nested("http.timeout") == 30


def test_config_manager_set_nested_through_a_value_fails(manager):
    assert manager.set_nested("logging.level.deeper", "x") is False


def test_config_manager_reset(manager):
    manager.set_nested("logging.level", "DEBUG")
    manager.reset()
    assert manager.get_nested("logging.level") == "WARNING"


def test_missing_file_gives_defaults(tmp_path):
    manager = ConfigManager(tmp_path / "missing.json")
    assert manager.get_all() == {}
    assert manager.to_settings() == CheckerSettings()


def test_unreadable_file_gives_defaults(tmp_path):
    path = tmp_path / "settings.json"
    path.write_text("{broken")
    assert ConfigManager(path).get_all() == {}


def test_to_settings(manager):
    settings = manager.to_settings()
    assert settings.request_timeout == 15
    assert settings.user_agent == "test-agent/1.0"
    assert settings.workers == 2
    assert settings.templates_file == "assertions_en.json"


def test_default_settings_file_is_shipped_with_the_package():
    manager = ConfigManager()
    assert manager.config_path == PathUtils.get_settings_file()
    assert manager.to_settings().request_timeout == 60
