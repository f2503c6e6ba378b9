import logging

import yaml

from mquery import config as config_module
from mquery.config import REFERENCES_HEADER, VARIABLE_SUBSECTIONS, ConfigManager, MQueryConfig, load_config


def test_defaults():
    config = load_config()

    assert config.variable_subsections == VARIABLE_SUBSECTIONS
    assert config.references_header == REFERENCES_HEADER
    assert config.log_level == "WARNING"


def test_config_file(tmp_path):
    path = tmp_path / "custom.yaml"
    path.write_text(yaml.safe_dump({
        "variable_subsections": ["User variables"],
        "references_header": "\nLinks:\n",
        "log_level": "debug",
    }))

    config = load_config(path)

    assert config.variable_subsections == ("User variables",)
    assert config.references_header == "\nLinks:\n"
    assert config.log_level == "DEBUG"


def test_config_file_from_environment(tmp_path, monkeypatch):
    path = tmp_path / "env.yaml"
    path.write_text("log_level: ERROR\n")
    monkeypatch.setenv("MQUERY_CONFIG", str(path))

    assert ConfigManager().config_file == path
    assert ConfigManager().load_config().log_level == "ERROR"


def test_environment_overrides_file(tmp_path, monkeypatch):
    path = tmp_path / "custom.yaml"
    path.write_text("log_level: ERROR\n")
    monkeypatch.setenv("MQUERY_LOG_LEVEL", "info")
    monkeypatch.setenv("MQUERY_VARIABLE_SUBSECTIONS", "Required variables, Output variables")
    monkeypatch.setenv("MQUERY_REFERENCES_HEADER", "\\nSee also:\\n")

    config = ConfigManager(path).load_config()

    assert config.log_level == "INFO"
    assert config.variable_subsections == ("Required variables", "Output variables")
    assert config.references_header == "\nSee also:\n"


def test_malformed_file_is_ignored(tmp_path, caplog):
    caplog.set_level(logging.WARNING, logger="mquery")
    path = tmp_path / "broken.yaml"
    path.write_text("variable_subsections: [unclosed\n")

    config = ConfigManager(path).load_config()

    assert config == MQueryConfig()
    assert "Could not load config file" in caplog.text


def test_invalid_values_are_ignored(tmp_path, caplog):
    caplog.set_level(logging.WARNING, logger="mquery")
    path = tmp_path / "invalid.yaml"
    path.write_text("variable_subsections: Required variables\nlog_level: LOUD\n")

    config = ConfigManager(path).load_config()

    assert config.variable_subsections == VARIABLE_SUBSECTIONS
    assert config.log_level == "WARNING"
    assert "Ignoring variable_subsections" in caplog.text
    assert "Ignoring unknown log level: LOUD" in caplog.text


def test_non_mapping_file_is_ignored(tmp_path, caplog):
    caplog.set_level(logging.WARNING, logger="mquery")
    path = tmp_path / "list.yaml"
    path.write_text("- a\n- b\n")

    assert ConfigManager(path).load_config() == MQueryConfig()
    assert "expected a mapping" in caplog.text


def test_save_config(tmp_path):
    path = tmp_path / "nested" / "config.yaml"
    saved = MQueryConfig(variable_subsections=("Output variables",), log_level="DEBUG")

    ConfigManager(path).save_config(saved)

    assert ConfigManager(path).load_config() == saved


def test_config_manager_is_shared():
    first = config_module.get_config_manager()

    assert config_module.get_config_manager() is first
    assert first.load_config() is first.load_config()


def test_environment_header_keeps_non_ascii_text(monkeypatch):
    monkeypatch.setenv("MQUERY_REFERENCES_HEADER", "\\n\\nRéférences → liens:\\n")

    config = ConfigManager().load_config()

    assert config.references_header == "\n\nRéférences → liens:\n"
