"""
Tests for the tabular and structured asset codecs.
"""

import json

import pytest

from modpatch.errors import AssetParseError
from modpatch.formats import JSON, JSONC, TsvData, format_json, format_tsv, parse_json, parse_tsv


class TestParseTsv:

    def test_header_and_rows(self):
        data = parse_tsv("name\tlevel\nsword\t5\naxe\t7")
        assert data.headers == ["name", "level"]
        assert data.rows == [{"name": "sword", "level": "5"}, {"name": "axe", "level": "7"}]

    def test_blank_lines_anywhere_are_dropped(self):
        data = parse_tsv("name\n\nsword\n\n\naxe\n\n")
        assert [row["name"] for row in data.rows] == ["sword", "axe"]

    def test_empty_cells_are_kept(self):
        data = parse_tsv("a\tb\tc\n\t\tz")
        assert data.rows == [{"a": "", "b": "", "c": "z"}]

    def test_short_and_long_rows(self):
        data = parse_tsv("a\tb\nonly\nx\ty\textra")
        assert data.rows == [{"a": "only"}, {"a": "x", "b": "y"}]

    def test_mapping_access(self):
        data = parse_tsv("a\n1")
        assert data["headers"] is data.headers
        assert data["rows"] is data.rows
        with pytest.raises(KeyError):
            data["columns"]


class TestFormatTsv:

    def test_trailing_blank_line(self):
        data = TsvData(headers=["a", "b"], rows=[{"a": "1", "b": "2"}])
        assert format_tsv(data) == "a\tb\n1\t2\n"

    def test_missing_fields_are_empty(self):
        data = {"headers": ["a", "b", "c"], "rows": [{"a": 1}, {"b": None, "c": "x"}]}
        assert format_tsv(data) == "a\tb\tc\n1\t\t\n\t\tx\n"

    def test_column_order_follows_header(self):
        data = TsvData(headers=["b", "a"], rows=[{"a": "1", "b": "2"}])
        assert format_tsv(data) == "b\ta\n2\t1\n"

    def test_reread_is_stable(self):
        content = "name\tcost\nsword\t10\naxe\t\n"
        assert format_tsv(parse_tsv(content)) == content

    def test_write_then_parse_round_trip(self):
        headers = ["name", "cost", "notes"]
        rows = [
            {"name": "sword", "cost": "10", "notes": ""},
            {"name": "axe", "cost": "", "notes": "two-handed"},
        ]
        parsed = parse_tsv(format_tsv(TsvData(headers=headers, rows=rows)))
        assert parsed.headers == headers
        assert parsed.rows == rows


class TestParseJson:

    def test_strict(self):
        assert parse_json('{"a": 1}') == ({"a": 1}, JSON)

    def test_relaxed_fallback(self):
        data, kind = parse_json('{\n  // note\n  "a": [1, 2,],\n}')
        assert data == {"a": [1, 2]}
        assert kind == JSONC

    def test_known_relaxed_skips_strict(self):
        assert parse_json('{"a": 1}', known_type=JSONC) == ({"a": 1}, JSONC)

    def test_error_reports_strict_position(self):
        with pytest.raises(AssetParseError) as exc_info:
            parse_json('{\n  "a": ?\n}', "global/x.json")
        err = exc_info.value
        assert err.path == "global/x.json"
        assert err.line == 2
        assert err.column == 8


class TestFormatJson:

    DATA = {"name": "sword", "stats": [1, 2, 3], "tags": {"rare": True}}

    def test_compact_default(self):
        assert format_json(self.DATA) == '{"name":"sword","stats":[1,2,3],"tags":{"rare":true}}'

    def test_non_ascii_preserved(self):
        assert format_json({"name": "Épée"}) == '{"name":"Épée"}'

    def test_fits_on_one_line(self):
        assert format_json(self.DATA, indent=2) == '{"name": "sword", "stats": [1, 2, 3], "tags": {"rare": true}}'

    def test_breaks_when_too_wide(self):
        text = format_json(self.DATA, indent=2, width=30)
        assert text == (
            '{\n'
            '  "name": "sword",\n'
            '  "stats": [1, 2, 3],\n'
            '  "tags": {"rare": true}\n'
            '}'
        )
        assert json.loads(text) == self.DATA

    def test_nested_breaks(self):
        data = {"rows": [{"id": 1, "label": "alpha"}, {"id": 2, "label": "beta"}]}
        text = format_json(data, indent=2, width=40)
        lines = text.split("\n")
        assert lines[0] == "{"
        assert lines[1] == '  "rows": ['
        assert lines[2] == '    {"id": 1, "label": "alpha"},'
        assert json.loads(text) == data
        assert lines[4] == "  ]"
        assert all(len(line) <= 40 for line in lines)

    def test_empty_indent_is_one_line(self):
        data = {"key": "x" * 200}
        assert "\n" not in format_json(data, indent="")

    def test_empty_containers(self):
        assert format_json({"a": [], "b": {}}, indent=2, width=5) == '{\n  "a": [],\n  "b": {}\n}'
