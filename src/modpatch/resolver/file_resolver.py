"""
Virtual File Resolver

Presents N priority-ordered input roots and one output root as a single
cached overlay.

- Reads go through the output side first, so a mod sees anything an earlier
  mod wrote during the same run, even though nothing has been flushed yet.
  Output files that already existed on disk before the run ("pre-existing")
  are read back once, on first touch.
- Otherwise the first input root containing the path wins and its content is
  cached after the first read.
- Writes only update the in-memory output record. A record becomes dirty only
  when the new content differs from what it tracks, and only dirty records are
  written by ``flush_all()``.

Usage:
    resolver = FileResolver.from_paths(output_path, base_input_path, user_input_path)

    content, record = resolver.read_auto("global/excel/weapons.txt")
    if content is None:
        ...  # present in no root
    resolver.write("global/excel/weapons.txt", patched)

    resolver.flush_all()
"""

import logging
import posixpath
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Tuple, Union

from modpatch.errors import AssetIOError, AssetNotFoundError, ConfigError, PathEscapeError
from modpatch.fsops import FileOps
from modpatch.resolver.string_ids import (
    NEXT_STRING_ID_PATH,
    parse_next_string_id,
    update_next_string_id,
)

logger = logging.getLogger(__name__)


def normalize_rel_path(rel_path: str) -> str:
    """Normalize a mixed-separator relative path to a forward-slash record key."""
    normalized = posixpath.normpath(str(rel_path).replace("\\", "/"))
    return "" if normalized == "." else normalized


@dataclass
class InputFileRecord:
    """A path resolved against the input roots."""
    rel_path: str
    real_path: Optional[Path] = None  # None when present in no root
    content: Optional[str] = None
    content_type: Optional[str] = None  # "json" / "jsonc" once parsed as structured data


@dataclass
class OutputFileRecord:
    """A path resolved against the output root."""
    rel_path: str
    real_path: Path
    pre_existing: bool = False
    dirty: bool = False
    loaded: bool = False  # pre-existing content has been read back
    content: Optional[str] = None
    content_type: Optional[str] = None


FileRecord = Union[InputFileRecord, OutputFileRecord]


class FileResolver:
    """Cached read-through / write-back overlay over input and output roots."""

    def __init__(
        self,
        output_root: Optional[Union[str, Path]],
        input_roots: Iterable[Union[str, Path]],
        file_ops: Optional[FileOps] = None,
        id_ledger_path: str = NEXT_STRING_ID_PATH,
    ):
        self.output_root = Path(output_root) if output_root else None
        self.input_roots: List[Path] = []
        for root in input_roots:
            if root and Path(root) not in self.input_roots:
                self.input_roots.append(Path(root))
        self.file_ops = file_ops or FileOps()
        self.id_ledger_path = normalize_rel_path(id_ledger_path)

        self._inputs: Dict[str, InputFileRecord] = {}
        self._outputs: Dict[str, OutputFileRecord] = {}
        self._next_id: Optional[int] = None

    @classmethod
    def from_paths(
        cls,
        output_path: Optional[Union[str, Path]],
        base_input_path: Optional[Union[str, Path]],
        user_input_path: Optional[Union[str, Path]] = None,
        file_ops: Optional[FileOps] = None,
    ) -> "FileResolver":
        """Build a resolver where user input data shadows base input data."""
        return cls(output_path, [user_input_path, base_input_path], file_ops=file_ops)

    # =========================================================================
    # Resolution
    # =========================================================================

    def resolve_input(self, rel_path: str) -> InputFileRecord:
        rel = normalize_rel_path(rel_path)
        record = self._inputs.get(rel)
        if record is None:
            record = InputFileRecord(rel_path=rel)
            for root in self.input_roots:
                candidate = root / rel
                if candidate.exists():
                    record.real_path = candidate
                    break
            self._inputs[rel] = record
            logger.debug("init input mapping: %s => %s", rel, record.real_path)
        return record

    def resolve_output(self, rel_path: str) -> OutputFileRecord:
        if self.output_root is None:
            raise ConfigError(f"No output root configured, cannot resolve output: {rel_path}")
        rel = normalize_rel_path(rel_path)
        record = self._outputs.get(rel)
        if record is None:
            real_path = self.output_root / rel
            record = OutputFileRecord(rel_path=rel, real_path=real_path, pre_existing=real_path.exists())
            self._outputs[rel] = record
            logger.debug("init output mapping: %s => %s (pre_existing=%s)", rel, real_path, record.pre_existing)
        return record

    def resolve_auto(self, rel_path: str) -> Optional[FileRecord]:
        """Locate a path without reading it: pre-existing output first, then inputs."""
        if self.output_root is not None:
            output = self.resolve_output(rel_path)
            if output.pre_existing:
                return output
        record = self.resolve_input(rel_path)
        return record if record.real_path is not None else None

    # =========================================================================
    # Content
    # =========================================================================

    def _load_pre_existing(self, record: OutputFileRecord) -> None:
        if not record.pre_existing or record.loaded:
            return
        record.loaded = True
        if record.content is not None:
            return
        content = self.file_ops.read_text(record.real_path)
        if content is None:
            # Failure to read back output is never treated as absence
            logger.error("failed to reload output content: %s", record.rel_path)
            raise AssetIOError(record.rel_path, "pre-existing output file vanished")
        logger.info("reload output content: %s", record.rel_path)
        record.content = content

    def read_auto(self, rel_path: str) -> Tuple[Optional[str], Optional[FileRecord]]:
        """Read the current view of a path.

        Returns ``(content, record)``; ``(None, None)`` when the path exists in
        no root. I/O failures raise AssetIOError.
        """
        if self.output_root is not None:
            output = self.resolve_output(rel_path)
            self._load_pre_existing(output)
            if output.content is not None:
                logger.debug("read_auto: forward: %s", output.rel_path)
                return output.content, output

        record = self.resolve_input(rel_path)
        if record.content is not None:
            logger.debug("read_auto: cached: %s", record.rel_path)
            return record.content, record
        if record.real_path is None:
            logger.debug("read_auto: not found: %s", record.rel_path)
            return None, None
        content = self.file_ops.read_text(record.real_path)
        if content is None:
            logger.debug("read_auto: vanished: %s", record.rel_path)
            return None, None
        logger.debug("cache content: %s", record.rel_path)
        record.content = content
        return content, record

    def write(self, rel_path: str, content: str) -> OutputFileRecord:
        """Update the tracked output content; marks dirty only on change."""
        record = self.resolve_output(rel_path)
        self._load_pre_existing(record)
        if content != record.content:
            record.content = content
            record.dirty = True
            logger.info("output updated: %s", record.rel_path)
        else:
            logger.debug("output unchanged: %s", record.rel_path)
        return record

    def write_through(self, rel_path: str, content: str) -> bool:
        """Write and immediately flush a single path."""
        return self._flush_record(self.write(rel_path, content))

    def forget_output(self, rel_path: str) -> None:
        """Resynchronise output records after files changed outside the resolver.

        ``rel_path`` may name a directory; every record below it is reset.
        """
        rel = normalize_rel_path(rel_path)
        prefix = rel + "/"
        for key, record in self._outputs.items():
            if key == rel or key.startswith(prefix):
                self._reset_output(record)

    def _reset_output(self, record: OutputFileRecord) -> None:
        record.pre_existing = record.real_path.exists()
        record.loaded = False
        record.dirty = False
        record.content = None
        record.content_type = None

    # =========================================================================
    # Write-back
    # =========================================================================

    def _check_inside_output_root(self, record: OutputFileRecord) -> None:
        root = self.output_root.resolve()
        target = record.real_path.resolve()
        if target == root or not target.is_relative_to(root):
            raise PathEscapeError(str(record.real_path), str(root))

    def _flush_record(self, record: OutputFileRecord) -> bool:
        if not record.dirty:
            return False
        self._check_inside_output_root(record)
        logger.info("write back: %s", record.rel_path)
        self.file_ops.mkdir(record.real_path.parent)
        self.file_ops.write_text(record.real_path, record.content)
        record.dirty = False
        return True

    def flush_all(self) -> int:
        """Persist the id counter, then write every dirty output record.

        Returns the number of records written.
        """
        self.flush_id()
        written = 0
        for record in list(self._outputs.values()):
            if self._flush_record(record):
                written += 1
        logger.info("flushed %d output file(s)", written)
        return written

    @property
    def dirty_records(self) -> List[OutputFileRecord]:
        return [r for r in self._outputs.values() if r.dirty]

    # =========================================================================
    # String id ledger
    # =========================================================================

    def _read_ledger(self) -> str:
        content, _ = self.read_auto(self.id_ledger_path)
        if content is None:
            raise AssetNotFoundError(self.id_ledger_path, "next string id")
        return content

    def allocate_id(self) -> int:
        if self._next_id is None:
            self._next_id = parse_next_string_id(self._read_ledger(), self.id_ledger_path)
            logger.info("initial next string id: %d", self._next_id)
        allocated = self._next_id
        self._next_id += 1
        return allocated

    def flush_id(self) -> None:
        """Stage the counter into the ledger record (no-op if never allocated)."""
        if self._next_id is None:
            return
        content = self._read_ledger()
        self.write(self.id_ledger_path, update_next_string_id(content, self._next_id))

    @property
    def next_id(self) -> Optional[int]:
        return self._next_id
