"""
modpatch.resolver - Virtual overlay of input roots and one output root.
"""

from modpatch.resolver.file_resolver import (
    FileResolver,
    FileRecord,
    InputFileRecord,
    OutputFileRecord,
    normalize_rel_path,
)
from modpatch.resolver.string_ids import (
    NEXT_STRING_ID_PATH,
    parse_next_string_id,
    update_next_string_id,
)

__all__ = [
    "FileResolver",
    "FileRecord",
    "InputFileRecord",
    "OutputFileRecord",
    "normalize_rel_path",
    "NEXT_STRING_ID_PATH",
    "parse_next_string_id",
    "update_next_string_id",
]
