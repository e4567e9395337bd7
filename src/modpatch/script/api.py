"""
Host API exposed to mod scripts as ``api``.

One ModAPI is created per mod and bound to the shared FileResolver and the
mod's descriptor. All reads and writes go through the resolver, so a mod sees
the output of every mod that ran before it.

A missing file raises AssetNotFoundError; any other I/O problem raises
AssetIOError. Both carry the requested path.
"""

import logging
from pathlib import Path
from typing import TYPE_CHECKING, Any, Mapping, Optional, Union

from modpatch.errors import AssetNotFoundError, PathEscapeError
from modpatch.formats.json_data import JSON, JSONC, format_json, parse_json
from modpatch.formats.tsv import TsvData, format_tsv, parse_tsv
from modpatch.resolver import FileResolver, normalize_rel_path

if TYPE_CHECKING:
    from modpatch.task.mods import ModDescriptor

logger = logging.getLogger(__name__)

API_VERSION = 1.5


class ModAPI:
    """The capability surface of one mod."""

    def __init__(self, resolver: FileResolver, mod: "ModDescriptor"):
        self._resolver = resolver
        self._mod = mod

    def get_version(self) -> float:
        return API_VERSION

    def _read(self, path: str, operation: str):
        content, record = self._resolver.read_auto(path)
        if content is None:
            raise AssetNotFoundError(path, operation)
        return content, record

    # =========================================================================
    # Raw text
    # =========================================================================

    def read_text(self, path: str) -> str:
        content, _ = self._read(path, "read_text")
        return content

    def write_text(self, path: str, content: str) -> None:
        self._resolver.write(path, content)

    # =========================================================================
    # Structured data
    # =========================================================================

    def read_json(self, path: str) -> Any:
        content, record = self._read(path, "read_json")
        data, content_type = parse_json(content, record.rel_path, record.content_type)
        if content_type == JSONC:
            logger.warning("JSONC: %s", record.rel_path)
        record.content_type = content_type
        return data

    def write_json(self, path: str, data: Any, indent: Union[int, str, None] = None, width: Optional[int] = None) -> None:
        record = self._resolver.write(path, format_json(data, indent=indent, width=width))
        record.content_type = JSON

    # =========================================================================
    # Tabular data
    # =========================================================================

    def read_tsv(self, path: str) -> TsvData:
        content, _ = self._read(path, "read_tsv")
        return parse_tsv(content)

    def write_tsv(self, path: str, data: Union[TsvData, Mapping[str, Any]]) -> None:
        self._resolver.write(path, format_tsv(data))

    # =========================================================================
    # Misc
    # =========================================================================

    def get_next_string_id(self) -> int:
        return self._resolver.allocate_id()

    def copy_file(self, src: str, dst: str, overwrite: bool = False) -> None:
        """Copy a file or directory from the mod's own folder into the output tree."""
        mod_root = Path(self._mod.path)
        src_path = mod_root / normalize_rel_path(src)
        if not src_path.exists():
            raise AssetNotFoundError(src, "copy_file")

        output_root = self._resolver.output_root
        rel_dst = normalize_rel_path(dst)
        dst_path = output_root / rel_dst
        root = output_root.resolve()
        target = dst_path.resolve()
        if target == root or not target.is_relative_to(root):
            raise PathEscapeError(str(dst_path), str(root))

        file_ops = self._resolver.file_ops
        file_ops.mkdir(dst_path.parent)
        file_ops.copy(src_path, dst_path, overwrite=overwrite)
        logger.info("copied %s => %s", src_path, rel_dst)
        self._resolver.forget_output(rel_dst)
