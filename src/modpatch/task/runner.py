"""
Mod Task Runner

Drives one complete run:

1. Resolve the ordered list of enabled mods.
2. Optionally clean the output tree and seed it with user input data.
3. For each mod: load it (skip if incomplete), complete its config, run its
   script. The first failing mod stops the pass.
4. Flush the resolver exactly once, even after a failure.
5. Report success / skipped / total.

Usage:
    config = load_run_config(Path("modpatch.yaml"))
    settings = load_settings_file(config.settings_path)
    summary = run_mod_task(config, settings)
    if not summary.ok:
        sys.exit(1)
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Optional

from modpatch.config import MODINFO_FILENAME, RunConfig
from modpatch.errors import ModScriptError
from modpatch.fsops import FileOps
from modpatch.resolver import FileResolver
from modpatch.runlog import RunJournal
from modpatch.script.engine import ScriptRunner
from modpatch.task.mods import fixup_mod_config, load_mod, resolve_mod_order
from modpatch.task.settings import ModManagerSettings

logger = logging.getLogger(__name__)


@dataclass
class TaskSummary:
    """Outcome of a mod run."""
    success: int
    skipped: int
    total: int
    failed_mod: Optional[str] = None
    written: int = 0

    @property
    def ok(self) -> bool:
        return self.success + self.skipped == self.total

    def __str__(self) -> str:
        status = "DONE" if self.ok else "FAIL"
        return f"{status}: {self.success}/{self.total} Installed. ({self.skipped} skipped)"


def prepare_output(config: RunConfig, resolver: FileResolver, file_ops: FileOps) -> None:
    """Apply the clean-output and copy-user-input options before any mod runs."""
    if config.clean_output_dir:
        logger.info("Clean up output dir: %s", resolver.output_root)
        file_ops.remove_files(resolver.output_root, recursive=True)
        file_ops.mkdir(config.output_path)
        modinfo = json.dumps({"name": config.output_mod_name, "savepath": config.save_path})
        file_ops.write_text(config.output_path / MODINFO_FILENAME, modinfo)

    if config.copy_user_input_files and config.user_input_path is not None:
        if config.user_input_path == config.base_input_path:
            logger.warning("Skip copy user input data files: input data and user input data path are the same")
        else:
            logger.info("Copy user input data files to output: %s => %s", config.user_input_path, resolver.output_root)
            file_ops.mkdir(resolver.output_root)
            file_ops.copy(config.user_input_path, resolver.output_root, overwrite=True)


def run_mod_task(
    config: RunConfig,
    settings: ModManagerSettings,
    file_ops: Optional[FileOps] = None,
    journal: Optional[RunJournal] = None,
) -> TaskSummary:
    """Run every enabled mod in order and write back the merged output."""
    file_ops = file_ops or FileOps(dry_run=config.dry_run)
    journal = journal or RunJournal(enabled=False)

    mod_names = resolve_mod_order(
        settings,
        override_ordered_mods=config.override_ordered_mods,
        include_mods=config.include_mods,
        exclude_mods=config.exclude_mods,
    )
    resolver = FileResolver.from_paths(
        config.output_data_path,
        config.base_input_path,
        config.user_input_path,
        file_ops=file_ops,
    )
    prepare_output(config, resolver, file_ops)

    runner = ScriptRunner(
        resolver,
        library_dir=config.library_path,
        wrap_top_level_return=config.wrap_top_level_return,
    )
    summary = TaskSummary(success=0, skipped=0, total=len(mod_names))
    journal.run_start(summary.total, dry_run=file_ops.dry_run)

    try:
        for name in mod_names:
            mod, reason = load_mod(config.mods_dir, name, file_ops)
            if mod is None:
                summary.skipped += 1
                logger.info("Mod: %s %s", name, reason)
                journal.mod_skipped(name, reason)
                continue
            fixup_mod_config(mod, config.config_completion, file_ops)

            journal.mod_start(name)
            try:
                runner.run_mod(mod)
            except ModScriptError as e:
                logger.error("%s", e, exc_info=e.error)
                journal.mod_error(name, str(e))
                summary.failed_mod = name
                break
            journal.mod_complete(name)
            summary.success += 1
    finally:
        summary.written = resolver.flush_all()
        journal.flush_complete(summary.written)

    journal.run_complete(summary.success, summary.skipped, summary.total)
    if summary.ok:
        logger.info("%s", summary)
    else:
        logger.error("%s", summary)
    return summary
