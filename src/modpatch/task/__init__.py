"""
modpatch.task - Mod discovery, configuration and the run orchestrator.
"""

from modpatch.task.mods import (
    ConfigField,
    ModDescriptor,
    ModManifest,
    complete_mod_config,
    fixup_mod_config,
    load_mod,
    resolve_mod_order,
)
from modpatch.task.runner import TaskSummary, prepare_output, run_mod_task
from modpatch.task.settings import ModManagerSettings, load_settings_file

__all__ = [
    "ConfigField",
    "ModDescriptor",
    "ModManifest",
    "complete_mod_config",
    "fixup_mod_config",
    "load_mod",
    "resolve_mod_order",
    "TaskSummary",
    "prepare_output",
    "run_mod_task",
    "ModManagerSettings",
    "load_settings_file",
]
