"""
Mod descriptors.

A mod is a folder under the mods directory:

    <mods_dir>/<name>/mod.json      manifest, declares config fields
    <mods_dir>/<name>/mod.py        the script
    <mods_dir>/<name>/config.json   persisted user config (optional)

A mod without a manifest or without a script is skipped, not failed.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from modpatch.errors import AssetParseError, ManifestError
from modpatch.formats.json_data import parse_json
from modpatch.fsops import FileOps
from modpatch.task.settings import ModManagerSettings

logger = logging.getLogger(__name__)

MANIFEST_FILENAME = "mod.json"
SCRIPT_FILENAME = "mod.py"
CONFIG_FILENAME = "config.json"


class ConfigField(BaseModel):
    """
    One user-configurable field declared in a manifest.

    Attributes:
        id: Key in the mod's config; sections and labels may have none
        type: Widget type as shown by the mod manager (checkbox, number, ...)
        default_value: Used when the persisted config lacks the key
    """
    model_config = ConfigDict(extra="allow", populate_by_name=True)

    id: Optional[str] = None
    type: Optional[str] = None
    name: Optional[str] = None
    description: Optional[str] = None
    default_value: Any = Field(default=None, alias="defaultValue")


class ModManifest(BaseModel):
    """Parsed ``mod.json``."""
    model_config = ConfigDict(extra="allow")

    name: Optional[str] = None
    description: Optional[str] = None
    author: Optional[str] = None
    website: Optional[str] = None
    version: Optional[Any] = None
    config: list[ConfigField] = Field(default_factory=list)


@dataclass
class ModDescriptor:
    """Everything needed to run one mod."""
    name: str
    path: Path
    manifest: ModManifest
    script_text: str
    script_path: str
    config: dict[str, Any] = field(default_factory=dict)
    config_text: Optional[str] = None  # persisted config.json as read


# =============================================================================
# MOD LIST
# =============================================================================

def resolve_mod_order(
    settings: ModManagerSettings,
    override_ordered_mods: Optional[list[str]] = None,
    include_mods: Optional[list[str]] = None,
    exclude_mods: Optional[list[str]] = None,
) -> list[str]:
    """
    Ordered names of the mods to run.

    Precedence: the mod manager's enable map and order, then an override
    order (each entry enabled), then includes (appended, enabled), then
    excludes (disabled). A name listed twice keeps its first position.
    """
    enabled = dict(settings.enabled_mods)
    ordered = list(override_ordered_mods) if override_ordered_mods is not None else list(settings.mods_order)
    for name in override_ordered_mods or []:
        enabled[name] = True
    for name in include_mods or []:
        ordered.append(name)
        enabled[name] = True
    for name in exclude_mods or []:
        enabled[name] = False

    result: dict[str, None] = {}
    for name in ordered:
        if enabled.get(name):
            result.setdefault(name, None)
    return list(result)


# =============================================================================
# LOADING
# =============================================================================

def _parse_json_file(mod_name: str, path: Path, text: str) -> Any:
    try:
        data, _ = parse_json(text, str(path))
    except AssetParseError as e:
        raise ManifestError(mod_name, f"{path.name}: {e.message}") from e
    return data


def load_mod(mods_dir: Path, name: str, file_ops: Optional[FileOps] = None) -> tuple[Optional[ModDescriptor], Optional[str]]:
    """
    Load a mod folder.

    Returns:
        (descriptor, None) when the mod can run, or (None, reason) when it
        must be skipped. An unreadable manifest raises ManifestError.
    """
    file_ops = file_ops or FileOps()
    mod_path = Path(mods_dir) / name

    manifest_path = mod_path / MANIFEST_FILENAME
    manifest_text = file_ops.read_text(manifest_path)
    if manifest_text is None:
        return None, "does not exist or is invalid"
    try:
        manifest = ModManifest.model_validate(_parse_json_file(name, manifest_path, manifest_text))
    except ValidationError as e:
        raise ManifestError(name, str(e)) from e

    script_path = mod_path / SCRIPT_FILENAME
    config_path = mod_path / CONFIG_FILENAME
    script_text = file_ops.read_text(script_path)
    config_text = file_ops.read_text(config_path)
    config = _parse_json_file(name, config_path, config_text) if config_text is not None else {}
    if not isinstance(config, dict):
        raise ManifestError(name, f"{CONFIG_FILENAME} must hold an object")
    if script_text is None:
        return None, f"does not have {SCRIPT_FILENAME}"

    return ModDescriptor(
        name=name,
        path=mod_path,
        manifest=manifest,
        script_text=script_text,
        script_path=str(script_path),
        config=config,
        config_text=config_text,
    ), None


# =============================================================================
# CONFIG COMPLETION
# =============================================================================

def complete_mod_config(manifest: ModManifest, config: dict[str, Any]) -> dict[str, Any]:
    """
    Effective config of a mod.

    If every declared field is present the persisted config is used as is.
    Otherwise it is rebuilt in declared field order, taking the persisted
    value where there is one and the manifest default elsewhere.
    """
    fields = [f for f in manifest.config if f.id is not None]
    if all(config.get(f.id) is not None for f in fields):
        return config
    return {
        f.id: config[f.id] if config.get(f.id) is not None else f.default_value
        for f in fields
    }


def fixup_mod_config(mod: ModDescriptor, persist: bool, file_ops: Optional[FileOps] = None) -> bool:
    """
    Complete ``mod.config`` and optionally write it back to ``config.json``.

    Returns True when the config file was (or, in a dry run, would be) written.
    """
    mod.config = complete_mod_config(mod.manifest, mod.config)
    if not persist:
        return False
    text = json.dumps(mod.config, indent=4, ensure_ascii=False)
    if text == "{}" or text == (mod.config_text or "").strip():
        return False
    (file_ops or FileOps()).write_text(mod.path / CONFIG_FILENAME, text)
    logger.info("Mod: %s config completed", mod.name)
    return True
