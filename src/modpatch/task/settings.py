"""
Mod manager settings.

The mod manager keeps the list of enabled mods and their order in its own
storage. modpatch reads an export of those settings (YAML or JSON, JSON being
a subset of YAML) with the mod manager's key names:

    enabled-mods: {ExpandedStash: true, LootFilter: false}
    mods-order: [ExpandedStash, LootFilter]
    output-mod-name: mymod
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Mapping

import yaml

from modpatch.errors import ConfigError

logger = logging.getLogger(__name__)


def _pick(data: Mapping[str, Any], key: str, default: Any = None) -> Any:
    # Accept both the mod manager's dashed keys and snake_case
    if key in data:
        return data[key]
    return data.get(key.replace("-", "_"), default)


@dataclass
class ModManagerSettings:
    """Enabled mods and their order, as persisted by the mod manager."""
    enabled_mods: Dict[str, bool] = field(default_factory=dict)
    mods_order: List[str] = field(default_factory=list)
    output_mod_name: str = ""
    extra: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "ModManagerSettings":
        enabled = _pick(data, "enabled-mods", {}) or {}
        order = _pick(data, "mods-order", []) or []
        if not isinstance(enabled, Mapping):
            raise ConfigError("enabled-mods must be a mapping of mod name to bool")
        if not isinstance(order, list):
            raise ConfigError("mods-order must be a list of mod names")
        known = {"enabled-mods", "enabled_mods", "mods-order", "mods_order", "output-mod-name", "output_mod_name"}
        return cls(
            enabled_mods={str(k): bool(v) for k, v in enabled.items()},
            mods_order=[str(name) for name in order],
            output_mod_name=str(_pick(data, "output-mod-name", "") or ""),
            extra={k: v for k, v in data.items() if k not in known},
        )


def load_settings_file(path: Path) -> ModManagerSettings:
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except FileNotFoundError as e:
        raise ConfigError(f"Mod manager settings not found: {path}") from e
    except (OSError, yaml.YAMLError) as e:
        raise ConfigError(f"Error reading mod manager settings: {path}: {e}") from e
    if not isinstance(data, Mapping):
        raise ConfigError(f"Mod manager settings must be a mapping: {path}")
    settings = ModManagerSettings.from_dict(data)
    logger.debug("mod manager settings: %d enabled of %d ordered",
                 sum(settings.enabled_mods.values()), len(settings.mods_order))
    return settings
