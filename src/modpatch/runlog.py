"""
Run logging - console/file logging setup and the JSONL run journal.

The journal writes one JSON object per line to
``~/.modpatch/logs/modpatch_YYYY-MM-DD.jsonl`` so a failed run can be
inspected after the console output is gone.

Journal entry types:
- run_start: Mod run started
- mod_start: Mod script execution started
- mod_complete: Mod script finished
- mod_skipped: Mod missing its manifest or script
- mod_error: Mod script failed (run stops)
- flush_complete: Output written back
- run_complete: Run finished
"""

from __future__ import annotations

import json
import logging
import time
import uuid
from dataclasses import asdict, dataclass
from datetime import datetime
from pathlib import Path
from typing import Optional

LOG_FORMAT = "%(asctime)s.%(msecs)03d %(levelname)-7s %(name)s: %(message)s"
LOG_DATE_FORMAT = "%Y/%m/%d %H:%M:%S"


def configure_logging(level: str = "INFO", log_file: Optional[Path] = None) -> None:
    """Configure root logging for a CLI run."""
    handlers: list[logging.Handler] = [logging.StreamHandler()]
    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_file, encoding="utf-8"))
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format=LOG_FORMAT,
        datefmt=LOG_DATE_FORMAT,
        handlers=handlers,
        force=True,
    )


def get_log_dir() -> Path:
    """Get the logs directory, creating if needed."""
    log_dir = Path.home() / ".modpatch" / "logs"
    log_dir.mkdir(parents=True, exist_ok=True)
    return log_dir


def get_journal_file() -> Path:
    """Get today's journal file path."""
    today = datetime.now().strftime("%Y-%m-%d")
    return get_log_dir() / f"modpatch_{today}.jsonl"


@dataclass
class JournalEntry:
    """A structured journal entry."""
    ts: float  # Unix timestamp
    event: str
    run_id: Optional[str] = None
    mod: Optional[str] = None
    duration_ms: Optional[float] = None
    error: Optional[str] = None
    stats: Optional[dict] = None
    extra: Optional[dict] = None

    def to_json(self) -> str:
        d = {k: v for k, v in asdict(self).items() if v is not None}
        return json.dumps(d, default=str)


class RunJournal:
    """
    Structured journal for one mod run.

    Pass ``log_file=None`` and ``enabled=False`` to get a journal that only
    keeps entries in memory (used by tests and dry runs).
    """

    def __init__(
        self,
        run_id: Optional[str] = None,
        log_file: Optional[Path] = None,
        enabled: bool = True,
    ):
        self.run_id = run_id or uuid.uuid4().hex[:12]
        self.enabled = enabled
        self.log_file = log_file if log_file is not None or not enabled else get_journal_file()
        self.entries: list[JournalEntry] = []

        self._run_start: Optional[float] = None
        self._mod_starts: dict[str, float] = {}

    def _write(self, entry: JournalEntry) -> None:
        self.entries.append(entry)
        if not self.enabled or self.log_file is None:
            return
        with open(self.log_file, "a", encoding="utf-8") as f:
            f.write(entry.to_json() + "\n")

    def _entry(self, event: str, **kwargs) -> JournalEntry:
        return JournalEntry(ts=time.time(), event=event, run_id=self.run_id, **kwargs)

    def events(self, event: Optional[str] = None) -> list[JournalEntry]:
        return [e for e in self.entries if event is None or e.event == event]

    # =========================================================================
    # Run-level events
    # =========================================================================

    def run_start(self, total_mods: int, dry_run: bool = False) -> None:
        self._run_start = time.time()
        self._write(self._entry("run_start", stats={"total_mods": total_mods, "dry_run": dry_run}))

    def flush_complete(self, written: int) -> None:
        self._write(self._entry("flush_complete", stats={"written": written}))

    def run_complete(self, success: int, skipped: int, total: int) -> None:
        duration_ms = (time.time() - self._run_start) * 1000 if self._run_start else None
        self._write(self._entry(
            "run_complete",
            duration_ms=duration_ms,
            stats={"success": success, "skipped": skipped, "total": total},
        ))

    # =========================================================================
    # Mod-level events
    # =========================================================================

    def mod_start(self, mod: str) -> None:
        self._mod_starts[mod] = time.time()
        self._write(self._entry("mod_start", mod=mod))

    def mod_complete(self, mod: str) -> None:
        start = self._mod_starts.pop(mod, None)
        duration_ms = (time.time() - start) * 1000 if start else None
        self._write(self._entry("mod_complete", mod=mod, duration_ms=duration_ms))

    def mod_skipped(self, mod: str, reason: str) -> None:
        self._write(self._entry("mod_skipped", mod=mod, extra={"reason": reason}))

    def mod_error(self, mod: str, error: str) -> None:
        start = self._mod_starts.pop(mod, None)
        duration_ms = (time.time() - start) * 1000 if start else None
        self._write(self._entry(
            "mod_error",
            mod=mod,
            error=error[:500],  # Truncate long errors
            duration_ms=duration_ms,
        ))


# =============================================================================
# Journal Analysis
# =============================================================================

def read_journal_entries(
    log_file: Optional[Path] = None,
    event_filter: Optional[str] = None,
    run_id: Optional[str] = None,
) -> list[dict]:
    """Read and parse journal entries from a JSONL file."""
    log_file = log_file or get_journal_file()

    if not log_file.exists():
        return []

    entries = []
    with open(log_file, "r", encoding="utf-8") as f:
        for line in f:
            line = line.strip()
            if not line:
                continue
            try:
                entry = json.loads(line)
            except json.JSONDecodeError:
                continue
            if event_filter and entry.get("event") != event_filter:
                continue
            if run_id and entry.get("run_id") != run_id:
                continue
            entries.append(entry)

    return entries
