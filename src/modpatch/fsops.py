"""
Filesystem primitives used by the resolver and the task runner.

Every mutating call honours ``dry_run``: instead of touching the disk the
intended operation is logged at WARNING level. Reads are never suppressed.

Text is read as UTF-8 with a leading BOM stripped (game data files often carry
one) and without newline translation, so content round-trips byte for byte.
"""

import logging
import os
import shutil
from pathlib import Path
from typing import List, Optional, Union

from modpatch.errors import AssetIOError

logger = logging.getLogger(__name__)

PathLike = Union[str, os.PathLike]

_BOM = "\ufeff"
_DRY_RUN_PREVIEW = 1000


class FileOps:
    """Dry-run aware file operations."""

    def __init__(self, dry_run: bool = False):
        self.dry_run = dry_run

    # =========================================================================
    # Reads
    # =========================================================================

    def read_text(self, path: PathLike) -> Optional[str]:
        """Read a text file. Returns None if the file does not exist."""
        try:
            with open(path, "r", encoding="utf-8", newline="") as f:
                content = f.read()
        except FileNotFoundError:
            return None
        except (OSError, UnicodeDecodeError) as e:
            logger.error("failed to read file: %s: %s", path, e)
            raise AssetIOError(str(path), str(e)) from e
        if content.startswith(_BOM):
            content = content[1:]
        return content

    # =========================================================================
    # Writes
    # =========================================================================

    def write_text(self, path: PathLike, content: str) -> None:
        if self.dry_run:
            logger.warning("DRY-RUN: write file: %s | content:\n%s", path, content[:_DRY_RUN_PREVIEW])
            return
        try:
            with open(path, "w", encoding="utf-8", newline="") as f:
                f.write(content)
        except OSError as e:
            raise AssetIOError(str(path), str(e)) from e

    def mkdir(self, path: PathLike) -> None:
        if self.dry_run:
            logger.warning("DRY-RUN: mkdir: %s", path)
            return
        try:
            Path(path).mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise AssetIOError(str(path), str(e)) from e

    def copy(self, src: PathLike, dst: PathLike, overwrite: bool = False) -> None:
        """Copy a file or a directory tree.

        Without ``overwrite`` an existing destination file is left alone and
        only a warning is logged.
        """
        if self.dry_run:
            logger.warning("DRY-RUN: cp: %s => %s (overwrite=%s)", src, dst, overwrite)
            return

        def _copy_one(s: str, d: str) -> str:
            if not overwrite and os.path.lexists(d):
                logger.warning("cp: destination exists, skipped: %s", d)
                return d
            return shutil.copy2(s, d, follow_symlinks=False)

        try:
            if Path(src).is_dir():
                shutil.copytree(src, dst, symlinks=True, copy_function=_copy_one, dirs_exist_ok=True)
            else:
                _copy_one(str(src), str(dst))
        except shutil.Error as e:
            raise AssetIOError(str(dst), str(e)) from e
        except OSError as e:
            raise AssetIOError(str(dst), str(e)) from e

    def remove_files(self, root: PathLike, recursive: bool = True) -> List[Path]:
        """Remove regular files under ``root`` and leave directories in place.

        Symlinked directories are not followed. Returns the removed paths.
        """
        root = Path(root)
        if not root.is_dir():
            return []
        removed = []
        for dirpath, dirnames, filenames in os.walk(root, followlinks=False):
            for name in filenames:
                file_path = Path(dirpath) / name
                if file_path.is_symlink() or not file_path.is_file():
                    continue
                if self.dry_run:
                    logger.warning("DRY-RUN: rm: %s", file_path)
                else:
                    try:
                        file_path.unlink()
                    except OSError as e:
                        raise AssetIOError(str(file_path), str(e)) from e
                removed.append(file_path)
            if not recursive:
                break
        return removed
