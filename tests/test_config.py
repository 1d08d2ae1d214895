"""Tests for configuration loading."""

import json
from pathlib import Path

import pytest

from folder_organizer.exceptions import ConfigurationError
from folder_organizer.models.config import OrganizerConfig, load_config, save_config


class TestOrganizerConfig:
    """Test cases for OrganizerConfig."""

    def test_defaults_live_under_data_dir(self):
        config = OrganizerConfig.default()
        assert config.data_dir == Path.home() / ".cache" / "folder-organizer"
        assert config.history_file == config.data_dir / "history.json"
        assert config.trash_dir == config.data_dir / "trash"
        assert config.rules_file is None
        assert config.progress_interval == 100

    def test_explicit_paths_are_kept(self, tmp_path):
        config = OrganizerConfig(data_dir=tmp_path, trash_dir=tmp_path / "bin")
        assert config.history_file == tmp_path / "history.json"
        assert config.trash_dir == tmp_path / "bin"

    @pytest.mark.parametrize("interval", [0, -5, "10", True])
    def test_invalid_progress_interval(self, interval):
        with pytest.raises(ConfigurationError):
            OrganizerConfig(progress_interval=interval)

    def test_save_and_load(self, tmp_path):
        config = OrganizerConfig(data_dir=tmp_path / "data", rules_file=tmp_path / "rules.json",
                                 progress_interval=50)
        path = tmp_path / "config" / "organizer.json"

        save_config(config, path)

        assert load_config(path) == config

    def test_load_rejects_unknown_keys(self, tmp_path):
        path = tmp_path / "config.json"
        path.write_text(json.dumps({"data_dir": str(tmp_path), "colour": "blue"}))

        with pytest.raises(ConfigurationError, match="colour"):
            load_config(path)

    def test_load_rejects_invalid_json(self, tmp_path):
        path = tmp_path / "config.json"
        path.write_text("not json")

        with pytest.raises(ConfigurationError):
            load_config(path)

    def test_load_missing_file(self, tmp_path):
        with pytest.raises(ConfigurationError):
            load_config(tmp_path / "missing.json")
