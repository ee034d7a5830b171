"""
Tests for options and configuration files
"""
import json
import re

import pytest
import yaml

from fslisten.errors import InvalidConfiguration
from fslisten.utils import config as config_module
from fslisten.utils.config import ListenerConfig, ListenerOptions, load_config


class TestListenerOptions:

    def test_from_dict_rejects_unknown(self):
        with pytest.raises(InvalidConfiguration) as excinfo:
            ListenerOptions.from_dict({"wait_for_delay": 0.2, "colour": True})
        assert "colour" in str(excinfo.value)

    def test_validate_accepts_defaults(self):
        ListenerOptions().validate()

    @pytest.mark.parametrize("value", [0, -1, 0.001, "soon"])
    def test_validate_rejects_bad_wait_for_delay(self, value):
        with pytest.raises(InvalidConfiguration):
            ListenerOptions(wait_for_delay=value).validate()

    def test_validate_rejects_bad_latency(self):
        with pytest.raises(InvalidConfiguration):
            ListenerOptions(latency=0).validate()

    def test_to_dict_serializes_compiled_patterns(self):
        options = ListenerOptions(ignore=[re.compile(r"\.log$"), "*.tmp"])
        assert options.to_dict()['ignore'] == [r"\.log$", "*.tmp"]


class TestListenerConfig:

    def test_options_from_mapping(self, tmp_path):
        config = ListenerConfig.from_dict({
            "directories": [str(tmp_path)],
            "options": {"wait_for_delay": 0.5, "ignore": ["*.log"]},
        })
        assert config.directories == [tmp_path]
        assert config.options.wait_for_delay == 0.5
        assert config.options.ignore == ["*.log"]

    def test_unknown_key_rejected(self):
        with pytest.raises(InvalidConfiguration):
            ListenerConfig.from_dict({"watch": ["."]})

    def test_save_and_load_yaml(self, tmp_path):
        path = tmp_path / "conf" / "fslisten.yaml"
        ListenerConfig(
            directories=[tmp_path],
            options=ListenerOptions(force_polling=True),
            log_format="json",
        ).save(path)

        data = yaml.safe_load(path.read_text())
        assert data['options']['force_polling'] is True

        loaded = load_config(path)
        assert loaded.options.force_polling is True
        assert loaded.log_format == "json"
        assert loaded.directories == [tmp_path]

    def test_save_json_serializes_patterns(self, tmp_path):
        path = tmp_path / "fslisten.json"
        ListenerConfig(options=ListenerOptions(ignore=[re.compile(r"\.log$"), "*.tmp"])).save(path)

        data = json.loads(path.read_text())
        assert data['options']['ignore'] == [r"\.log$", "*.tmp"]
        assert load_config(path).options.ignore == [r"\.log$", "*.tmp"]


class TestLoadConfig:

    def test_json_file(self, tmp_path):
        path = tmp_path / "fslisten.json"
        path.write_text(json.dumps({"options": {"only": "*.py"}, "log_level": "DEBUG"}))

        config = load_config(path)
        assert config.options.only == "*.py"
        assert config.log_level == "DEBUG"

    def test_empty_yaml_gives_defaults(self, tmp_path):
        path = tmp_path / "fslisten.yaml"
        path.write_text("")
        assert load_config(path) == ListenerConfig()

    def test_missing_explicit_file(self, tmp_path):
        with pytest.raises(InvalidConfiguration):
            load_config(tmp_path / "absent.yaml")

    def test_malformed_explicit_file(self, tmp_path):
        path = tmp_path / "broken.yaml"
        path.write_text("options: [unclosed")
        with pytest.raises(InvalidConfiguration):
            load_config(path)

    def test_non_mapping_rejected(self, tmp_path):
        path = tmp_path / "list.yaml"
        path.write_text("- a\n- b\n")
        with pytest.raises(InvalidConfiguration):
            load_config(path)

    def test_default_locations(self, tmp_path, monkeypatch):
        bad = tmp_path / "bad.yaml"
        bad.write_text("unknown_key: 1")
        good = tmp_path / "good.yaml"
        good.write_text("log_level: WARNING")
        monkeypatch.setattr(config_module, "DEFAULT_CONFIG_PATHS", (tmp_path / "none.yaml", bad, good))

        assert load_config().log_level == "WARNING"

    def test_no_file_found(self, tmp_path, monkeypatch):
        monkeypatch.setattr(config_module, "DEFAULT_CONFIG_PATHS", (tmp_path / "none.yaml",))
        assert load_config() == ListenerConfig()
