import logging

import pytest
import yaml
from pydantic import ValidationError

from core.config import ConfigManager, ConfigValidator, FileConfigLoader, DEFAULT_CONFIG, load_blocker_settings
from core.logging import setup_logging
from schemas.ranges import DEFAULT_SOURCE_URL


class DictConfig:
    """Minimal stand-in exposing ConfigManager.get_config over a plain dict."""
    def __init__(self, data):
        self._data = data

    def get_config(self, path, default=None):
        value = self._data
        for key in path.split("."):
            if isinstance(value, dict) and key in value:
                value = value[key]
            else:
                return default
        return value

def test_file_loader_reads_yaml(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text(yaml.safe_dump(DEFAULT_CONFIG), encoding="utf-8")
    loader = FileConfigLoader(str(path))
    assert loader.load()["blocker"]["refresh_interval_seconds"] == 60

def test_file_loader_requires_existing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        FileConfigLoader(str(tmp_path / "missing.yaml"))

@pytest.fixture
def fresh_config_manager(monkeypatch):
    monkeypatch.setattr(ConfigManager, "_instance", None)

def test_config_manager_loads_and_serves_dotted_paths(tmp_path, fresh_config_manager):
    path = tmp_path / "config.yaml"
    path.write_text(yaml.safe_dump(DEFAULT_CONFIG), encoding="utf-8")
    manager = ConfigManager(loader=FileConfigLoader(str(path)))
    assert manager.get_config("blocker.refresh_interval_seconds") == 60
    assert manager.get_config("blocker.missing", "x") == "x"
    assert load_blocker_settings(manager).source_url == DEFAULT_SOURCE_URL

def test_config_manager_rejects_invalid_file(tmp_path, fresh_config_manager):
    path = tmp_path / "config.yaml"
    path.write_text(yaml.safe_dump({"server": {}}), encoding="utf-8")
    manager = ConfigManager(loader=FileConfigLoader(str(path)))
    assert manager.get_config("server", "unset") == "unset"

def test_validator_accepts_default_config():
    assert ConfigValidator().validate(DEFAULT_CONFIG)

def test_validator_reports_missing_sections_and_bad_interval():
    result = ConfigValidator().validate({"server": {}, "blocker": {"refresh_interval_seconds": 0}})
    assert not result
    assert any("refresh_interval_seconds" in e for e in result.errors)

    result = ConfigValidator().validate({"server": {}})
    assert not result
    assert any("'blocker'" in e for e in result.errors)

def test_blocker_settings_from_config():
    config = DictConfig({"blocker": {"region": "us-east-1", "service": "EC2", "refresh_interval_seconds": 30}})
    settings = load_blocker_settings(config)
    assert settings.refresh_interval_seconds == 30
    assert settings.source_url == DEFAULT_SOURCE_URL
    selector = settings.selector()
    assert selector.region == "us-east-1"
    assert selector.service == "EC2"

def test_blocker_settings_defaults_and_null_selectors():
    settings = load_blocker_settings(DictConfig({"blocker": {"region": None, "service": None}}))
    assert settings.selector().region == ""
    assert settings.selector().service == ""
    assert load_blocker_settings(DictConfig({})).refresh_interval_seconds == 60

def test_blocker_settings_reject_bad_interval():
    with pytest.raises(ValidationError):
        load_blocker_settings(DictConfig({"blocker": {"refresh_interval_seconds": -5}}))

def test_setup_logging_configures_rangeblock_logger(tmp_path):
    log_file = tmp_path / "logs" / "rangeblock.log"
    setup_logging(DictConfig({"server": {"log_level": "debug"}, "logging": {"file": {"path": str(log_file)}}}))
    logger = logging.getLogger("rangeblock")
    try:
        assert logger.level == logging.DEBUG
        assert len(logger.handlers) == 2
        assert log_file.parent.exists()
    finally:
        for handler in logger.handlers:
            handler.close()
        logger.handlers = []
