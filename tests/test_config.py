"""
Tests for run configuration loading.
"""

from pathlib import Path

import pytest

from modpatch.config import RunConfig, load_run_config, write_default_config
from modpatch.errors import ConfigError

from conftest import make_run_config, write_file


class TestLoading:

    def test_yaml_file(self, tmp_path):
        path = write_file(tmp_path, "modpatch.yaml", (
            f"mods_dir: {tmp_path / 'mods'}\n"
            f"output_path: {tmp_path / 'out'}\n"
            "dry_run: true\n"
            "include_mods: [Extra]\n"
        ))
        config = load_run_config(path)
        assert config.config_path == path
        assert config.mods_dir == (tmp_path / "mods").resolve()
        assert config.output_data_path == (tmp_path / "out" / "data").resolve()
        assert config.dry_run is True
        assert config.include_mods == ["Extra"]
        assert config.wrap_top_level_return is True

    def test_missing_explicit_file(self, tmp_path):
        with pytest.raises(ConfigError):
            RunConfig(tmp_path / "nope.yaml")

    def test_invalid_yaml(self, tmp_path):
        path = write_file(tmp_path, "modpatch.yaml", "mods_dir: [unclosed\n")
        with pytest.raises(ConfigError):
            RunConfig(path)

    def test_env_overrides_file(self, tmp_path, monkeypatch):
        path = write_file(tmp_path, "modpatch.yaml", "dry_run: false\nlog_level: info\n")
        monkeypatch.setenv("MODPATCH_DRY_RUN", "yes")
        monkeypatch.setenv("MODPATCH_LOG_LEVEL", "debug")
        config = RunConfig(path)
        assert config.dry_run is True
        assert config.log_level == "DEBUG"

    def test_data_skips_file_and_env(self, monkeypatch):
        monkeypatch.setenv("MODPATCH_DRY_RUN", "1")
        config = RunConfig(data={"mods_dir": "mods"})
        assert config.dry_run is False
        assert config.config_path is None


class TestOverrides:

    def test_none_is_ignored(self):
        config = RunConfig(data={"dry_run": True}).override(dry_run=None, log_level="warning")
        assert config.dry_run is True
        assert config.log_level == "WARNING"

    def test_unknown_key(self):
        with pytest.raises(ConfigError):
            RunConfig(data={}).override(no_such_option=1)

    def test_base_input_falls_back_to_user_input(self, tmp_path):
        config = RunConfig(data={"user_input_path": str(tmp_path)})
        assert config.base_input_path == tmp_path.resolve()

    def test_save_path_default(self):
        assert RunConfig(data={"output_mod_name": "mymod"}).save_path == "mymod/"


class TestValidate:

    def test_valid(self, output_mod, base_input, mods_dir):
        make_run_config(output_mod, base_input, mods_dir).validate()

    def test_missing_mods_dir(self, output_mod, base_input, tmp_path):
        with pytest.raises(ConfigError):
            make_run_config(output_mod, base_input, tmp_path / "none").validate()

    def test_output_must_look_like_a_mod(self, tmp_path, base_input, mods_dir):
        not_a_mod = tmp_path / "random"
        not_a_mod.mkdir()
        with pytest.raises(ConfigError):
            make_run_config(not_a_mod, base_input, mods_dir).validate()

    def test_missing_input(self, output_mod, mods_dir, tmp_path):
        with pytest.raises(ConfigError):
            make_run_config(output_mod, tmp_path / "none", mods_dir).validate()


class TestDefaultConfig:

    def test_written_file_loads(self, tmp_path):
        path = write_default_config(tmp_path / "cfg" / "config.yaml")
        config = RunConfig(path)
        assert config.dry_run is False
        assert config.settings_path == Path("~/mods/settings.yaml").expanduser().resolve()
        assert config.library_path is None
        assert config.to_dict()["config_file"] == str(path)
