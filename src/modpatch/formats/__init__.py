"""
modpatch.formats - Codecs for the asset formats mods read and write.
"""

from modpatch.formats.json_data import JSON, JSONC, format_json, parse_json
from modpatch.formats.tsv import TsvData, format_tsv, parse_tsv

__all__ = [
    "JSON",
    "JSONC",
    "format_json",
    "parse_json",
    "TsvData",
    "format_tsv",
    "parse_tsv",
]
