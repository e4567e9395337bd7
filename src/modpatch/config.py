"""
Run Configuration

Loads the run configuration from a YAML file, then applies environment
variable overrides, then command-line overrides.

Paths:
    output_path       The game mod directory. Assets are written below
                      ``<output_path>/data``; ``modinfo.json`` sits beside it.
    base_input_path   Extracted vanilla data.
    user_input_path   Optional extra data that shadows base input.
    mods_dir          Directory holding one folder per mod.
    library_path      Directory of shared ``<name>.py`` libraries.
    settings_path     Export of the mod manager's settings (enabled mods, order).
"""

import os
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

from modpatch.errors import ConfigError


# Default configuration file locations (checked in order)
CONFIG_SEARCH_PATHS = [
    Path.cwd() / "modpatch.yaml",
    Path.home() / ".modpatch" / "config.yaml",
]

MODINFO_FILENAME = "modinfo.json"
OUTPUT_DATA_DIR = "data"

DEFAULT_CONFIG: Dict[str, Any] = {
    "mods_dir": None,
    "output_path": None,
    "base_input_path": None,
    "user_input_path": None,
    "library_path": None,
    "settings_path": None,
    "output_mod_name": "",
    "save_path": "",

    # Task behaviour
    "dry_run": False,
    "clean_output_dir": False,
    "copy_user_input_files": False,
    "config_completion": False,
    "wrap_top_level_return": True,
    "override_ordered_mods": None,
    "include_mods": [],
    "exclude_mods": [],

    # Logging
    "log_level": "INFO",
    "log_file": None,
    "journal": True,
}

ENV_MAPPINGS = {
    "MODPATCH_MODS_DIR": "mods_dir",
    "MODPATCH_OUTPUT_PATH": "output_path",
    "MODPATCH_INPUT_PATH": "base_input_path",
    "MODPATCH_USER_INPUT_PATH": "user_input_path",
    "MODPATCH_LIBRARY_PATH": "library_path",
    "MODPATCH_SETTINGS_PATH": "settings_path",
    "MODPATCH_DRY_RUN": "dry_run",
    "MODPATCH_LOG_LEVEL": "log_level",
}

_BOOL_KEYS = {key for key, value in DEFAULT_CONFIG.items() if isinstance(value, bool)}


def _as_bool(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in ("1", "true", "yes", "on")
    return bool(value)


def _as_path(value: Any) -> Optional[Path]:
    if value in (None, ""):
        return None
    return Path(os.path.expanduser(str(value))).resolve()


class RunConfig:
    """Configuration for one modpatch run."""

    def __init__(self, config_path: Optional[Path] = None, data: Optional[Dict[str, Any]] = None):
        self._config: Dict[str, Any] = dict(DEFAULT_CONFIG)
        self._config_path: Optional[Path] = None

        if data is not None:
            self._config.update(data)
        else:
            self._load_config(config_path)
            self._apply_env_overrides()

    def _load_config(self, explicit_path: Optional[Path] = None) -> None:
        """Load configuration from YAML file."""
        if explicit_path is not None and not Path(explicit_path).exists():
            raise ConfigError(f"Specified config file does not exist: {explicit_path}")
        search_paths = [Path(explicit_path)] if explicit_path else CONFIG_SEARCH_PATHS

        for config_path in search_paths:
            if config_path.exists():
                try:
                    with open(config_path, "r", encoding="utf-8") as f:
                        user_config = yaml.safe_load(f) or {}
                except (OSError, yaml.YAMLError) as e:
                    raise ConfigError(f"Invalid config file: {config_path}: {e}") from e
                if not isinstance(user_config, dict):
                    raise ConfigError(f"Invalid config file: {config_path}: expected a mapping")
                self._config.update(user_config)
                self._config_path = config_path
                return

    def _apply_env_overrides(self) -> None:
        """Apply environment variable overrides."""
        for env_var, config_key in ENV_MAPPINGS.items():
            if env_var in os.environ:
                self._config[config_key] = os.environ[env_var]

    def override(self, **values: Any) -> "RunConfig":
        """Apply command-line overrides; None values are ignored."""
        for key, value in values.items():
            if key not in DEFAULT_CONFIG:
                raise ConfigError(f"Unknown config key: {key}")
            if value is not None:
                self._config[key] = value
        return self

    def get(self, key: str) -> Any:
        value = self._config.get(key)
        return _as_bool(value) if key in _BOOL_KEYS else value

    @property
    def config_path(self) -> Optional[Path]:
        """Path to loaded config file, or None if using defaults."""
        return self._config_path

    # =========================================================================
    # Paths
    # =========================================================================

    @property
    def mods_dir(self) -> Optional[Path]:
        return _as_path(self._config["mods_dir"])

    @property
    def output_path(self) -> Optional[Path]:
        return _as_path(self._config["output_path"])

    @property
    def output_data_path(self) -> Optional[Path]:
        """Root of the asset tree the resolver writes into."""
        output = self.output_path
        return output / OUTPUT_DATA_DIR if output else None

    @property
    def base_input_path(self) -> Optional[Path]:
        # Falls back to user input data when no base data is configured
        return _as_path(self._config["base_input_path"]) or self.user_input_path

    @property
    def user_input_path(self) -> Optional[Path]:
        return _as_path(self._config["user_input_path"])

    @property
    def library_path(self) -> Optional[Path]:
        return _as_path(self._config["library_path"])

    @property
    def settings_path(self) -> Optional[Path]:
        return _as_path(self._config["settings_path"])

    @property
    def log_file(self) -> Optional[Path]:
        return _as_path(self._config["log_file"])

    # =========================================================================
    # Options
    # =========================================================================

    @property
    def dry_run(self) -> bool:
        return self.get("dry_run")

    @property
    def clean_output_dir(self) -> bool:
        return self.get("clean_output_dir")

    @property
    def copy_user_input_files(self) -> bool:
        return self.get("copy_user_input_files")

    @property
    def config_completion(self) -> bool:
        return self.get("config_completion")

    @property
    def wrap_top_level_return(self) -> bool:
        return self.get("wrap_top_level_return")

    @property
    def journal(self) -> bool:
        return self.get("journal")

    @property
    def override_ordered_mods(self) -> Optional[List[str]]:
        value = self._config.get("override_ordered_mods")
        return list(value) if value is not None else None

    @property
    def include_mods(self) -> List[str]:
        return list(self._config.get("include_mods") or [])

    @property
    def exclude_mods(self) -> List[str]:
        return list(self._config.get("exclude_mods") or [])

    @property
    def output_mod_name(self) -> str:
        return self._config.get("output_mod_name") or ""

    @property
    def save_path(self) -> str:
        return self._config.get("save_path") or f"{self.output_mod_name}/"

    @property
    def log_level(self) -> str:
        return str(self._config.get("log_level") or "INFO").upper()

    # =========================================================================
    # Validation
    # =========================================================================

    def validate(self) -> None:
        """Check that the paths needed for a mod run are usable."""
        if self.mods_dir is None or not self.mods_dir.is_dir():
            raise ConfigError(f"Invalid mods directory, set mods_dir: {self.mods_dir}")
        if self.output_path is None:
            raise ConfigError("Output path not configured, set output_path")
        if self.base_input_path is None:
            raise ConfigError("Input path not configured, set base_input_path or user_input_path")
        if not self.base_input_path.is_dir():
            raise ConfigError(f"Input path does not exist: {self.base_input_path}")
        output = self.output_path
        if output.exists() and not (output / MODINFO_FILENAME).exists():
            raise ConfigError(f"Output path exists and does not look like a mod directory: {output}")

    def to_dict(self) -> Dict[str, Any]:
        """Export current configuration as dict."""
        data = {key: self.get(key) for key in DEFAULT_CONFIG}
        data["config_file"] = str(self._config_path) if self._config_path else None
        return data


def load_run_config(config_path: Optional[Path] = None) -> RunConfig:
    return RunConfig(config_path)


def write_default_config(path: Optional[Path] = None) -> Path:
    """
    Write a default configuration file.

    Returns the path where config was written.
    """
    if path is None:
        path = Path.home() / ".modpatch" / "config.yaml"

    path.parent.mkdir(parents=True, exist_ok=True)

    config_content = """# modpatch configuration
#
# Any setting here can also be given via environment variables
# (MODPATCH_OUTPUT_PATH, MODPATCH_INPUT_PATH, ...) or on the command line.

# Folder containing one directory per mod (mod.json, mod.py, config.json)
mods_dir: "~/mods"

# Game mod directory; assets go to <output_path>/data
output_path: "~/game/mods/mymod/mymod.mpq"
output_mod_name: "mymod"

# Extracted game data, and optional data that shadows it
base_input_path: "~/game/extracted"
# user_input_path: "~/game/extra_data"

# Shared libraries referenced by "/// #pragma lib-begin <name>" blocks
# library_path: "~/mods/_libs"

# Export of the mod manager settings (enabled-mods, mods-order)
settings_path: "~/mods/settings.yaml"

dry_run: false
clean_output_dir: false
copy_user_input_files: false
config_completion: false

log_level: INFO
"""

    path.write_text(config_content, encoding="utf-8")
    return path
