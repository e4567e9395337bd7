"""
Tab-separated tabular assets (the game's excel ``.txt`` files).

The header line names the columns; each data line holds tab-separated values
in header order. Blank lines anywhere in the data are dropped on read, not
only trailing ones. Values past the last header are ignored; a row shorter
than the header simply lacks the remaining keys.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Union


@dataclass
class TsvData:
    """Parsed tabular asset."""
    headers: List[str] = field(default_factory=list)
    rows: List[Dict[str, Any]] = field(default_factory=list)

    def __getitem__(self, key: str):
        # Lets mods written against the mapping form keep using data["rows"]
        if key == "headers":
            return self.headers
        if key == "rows":
            return self.rows
        raise KeyError(key)


def parse_tsv(content: str) -> TsvData:
    header_line, *row_lines = content.split("\n")
    headers = header_line.split("\t")
    rows = []
    for line in row_lines:
        if line == "":
            continue
        row = {}
        for index, value in enumerate(line.split("\t")):
            if index < len(headers):
                row[headers[index]] = value
        rows.append(row)
    return TsvData(headers=headers, rows=rows)


def _cell(value: Any) -> str:
    return "" if value is None else str(value)


def format_tsv(data: Union[TsvData, Mapping[str, Any]]) -> str:
    headers = data["headers"]
    rows = data["rows"]
    lines = ["\t".join(headers)]
    for row in rows:
        lines.append("\t".join(_cell(row.get(header)) for header in headers))
    lines.append("")
    return "\n".join(lines)
