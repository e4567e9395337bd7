"""
Id-ledger text codec.

The ledger file holds exactly one meaningful decimal integer somewhere in its
text. Reading locates the first run of digits; writing replaces only that run
and leaves every other character untouched.
"""

import re

from modpatch.errors import AssetParseError

NEXT_STRING_ID_PATH = "local/lng/next_string_id.txt"

_NUMBER_RE = re.compile(r"[0-9]+")


def parse_next_string_id(content: str, path: str = NEXT_STRING_ID_PATH) -> int:
    match = _NUMBER_RE.search(content)
    if not match:
        raise AssetParseError(path, "invalid next-string-id file: no integer found")
    return int(match.group(0))


def update_next_string_id(content: str, new_id: int) -> str:
    return _NUMBER_RE.sub(str(new_id), content, count=1)
