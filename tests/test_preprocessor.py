"""
Tests for mod script segmentation and the top-level-return wrap.
"""

import ast

import pytest

from modpatch.errors import DirectiveError
from modpatch.script.preprocessor import (
    ENTRY_FUNCTION,
    STRICT_PROLOGUE,
    SegmentKind,
    has_future_import,
    has_top_level_return,
    preprocess_script,
    wrap_top_level_return,
)


def inline_bodies(segments):
    """Inline segment code without the synthesized prologue line."""
    bodies = []
    for segment in segments:
        if segment.kind is SegmentKind.INLINE:
            lines = segment.code.split("\n")
            if lines[0] == STRICT_PROLOGUE:
                lines = lines[1:]
            bodies.append("\n".join(lines))
    return bodies


class TestSegmentation:
    """Splitting on lib-begin / lib-end blocks."""

    SCRIPT = "A\n/// #pragma lib-begin L\nB\n/// #pragma lib-end\nC"

    def test_library_block_is_excised(self):
        segments = preprocess_script(self.SCRIPT, "mod.py")
        kinds = [segment.kind for segment in segments]
        assert kinds == [SegmentKind.INLINE, SegmentKind.LIBRARY, SegmentKind.INLINE]
        assert segments[1].library == "L"
        assert inline_bodies(segments) == ["A", "C"]
        assert all("B" not in segment.code for segment in segments if segment.code)

    def test_line_offsets_map_back_to_file(self):
        first, _, last = preprocess_script(self.SCRIPT, "mod.py")
        # prologue occupies segment line 1, so "A" is segment line 2 -> file line 1
        assert first.code == f"{STRICT_PROLOGUE}\nA"
        assert first.info.line_offset == -1
        assert last.code == f"{STRICT_PROLOGUE}\nC"
        assert last.info.line_offset == 3
        assert 2 + last.info.line_offset == 5

    def test_hash_comment_directive(self):
        code = "x = 1\n# #pragma lib-begin shared\npass\n# #pragma lib-end\n"
        segments = preprocess_script(code, "mod.py")
        assert [s.library for s in segments if s.is_library] == ["shared"]

    def test_initial_offset_is_carried(self):
        segments = preprocess_script("A", "mod.py", line_offset=10)
        assert segments[0].info.line_offset == 9

    def test_no_directives_single_segment(self):
        code = "a = 1\nb = 2\n"
        segments = preprocess_script(code, "mod.py")
        assert len(segments) == 1
        assert segments[0].code == f"{STRICT_PROLOGUE}\n{code}"
        assert segments[0].info.filename == "mod.py"

    def test_only_directives_no_inline_segments(self):
        code = "/// #pragma lib-begin L\nB\n/// #pragma lib-end"
        segments = preprocess_script(code, "mod.py")
        assert len(segments) == 1
        assert segments[0].is_library

    def test_adjacent_blocks(self):
        code = "# #pragma lib-begin one\n# #pragma lib-end\n# #pragma lib-begin two\n# #pragma lib-end"
        segments = preprocess_script(code, "mod.py")
        assert [s.library for s in segments] == ["one", "two"]

    def test_existing_future_import_not_duplicated(self):
        code = "from __future__ import annotations\nx = 1"
        segment, = preprocess_script(code, "mod.py")
        assert segment.code == code
        assert segment.info.line_offset == 0

    def test_prologue_can_be_disabled(self):
        segment, = preprocess_script("x = 1", "mod.py", prologue=None)
        assert segment.code == "x = 1"
        assert segment.info.line_offset == 0

    def test_unrelated_pragma_ignored(self):
        code = "# #pragma once\nx = 1"
        segments = preprocess_script(code, "mod.py")
        assert len(segments) == 1


class TestDirectiveErrors:
    """Malformed blocks fail before anything runs."""

    def test_unterminated_block(self):
        with pytest.raises(DirectiveError) as exc_info:
            preprocess_script("A\n/// #pragma lib-begin L\nB", "mod.py")
        assert exc_info.value.line == 2
        assert "unterminated" in str(exc_info.value)

    def test_nested_block(self):
        code = "# #pragma lib-begin a\n# #pragma lib-begin b\n# #pragma lib-end\n# #pragma lib-end"
        with pytest.raises(DirectiveError) as exc_info:
            preprocess_script(code, "mod.py")
        assert exc_info.value.line == 2
        assert "line 1" in exc_info.value.message

    def test_end_without_begin(self):
        with pytest.raises(DirectiveError) as exc_info:
            preprocess_script("x = 1\n# #pragma lib-end", "mod.py")
        assert exc_info.value.line == 2

    def test_begin_without_name(self):
        with pytest.raises(DirectiveError):
            preprocess_script("# #pragma lib-begin\n# #pragma lib-end", "mod.py")

    def test_error_message_names_file(self):
        with pytest.raises(DirectiveError, match=r"^mods/Foo/mod\.py:1: "):
            preprocess_script("# #pragma lib-end", "mods/Foo/mod.py")


class TestFuturePrologue:
    """A script's own future imports replace the synthesized prologue."""

    def test_after_comment_header(self):
        code = "# My mod\n# by someone\nfrom __future__ import annotations\nx = 1"
        segment, = preprocess_script(code, "mod.py")
        assert segment.code == code
        assert segment.info.line_offset == 0
        compile(segment.code, "mod.py", "exec")

    def test_after_docstring(self):
        code = '"""Adds a rune word.\n\nSecond line.\n"""\nfrom __future__ import annotations\nx = 1'
        segment, = preprocess_script(code, "mod.py")
        assert segment.code == code
        assert segment.info.line_offset == 0

    def test_future_import_not_at_top_still_gets_prologue(self):
        code = "x = 1\nfrom __future__ import annotations"
        segment, = preprocess_script(code, "mod.py")
        assert segment.code.startswith(STRICT_PROLOGUE + "\n")

    def test_detection(self):
        assert has_future_import("\n\n# c\nfrom __future__ import division")
        assert not has_future_import("import os")
        assert not has_future_import("")


class TestTopLevelReturnWrap:
    """Module-level ``return`` support."""

    def test_detects_module_level_return(self):
        assert has_top_level_return(ast.parse("if done:\n    return\nx = 1"))
        assert not has_top_level_return(ast.parse("def f():\n    return 1\nx = f()"))
        assert not has_top_level_return(ast.parse("class C:\n    def m(self):\n        return 1"))

    def test_body_is_wrapped_and_called(self):
        tree = wrap_top_level_return(ast.parse("x = 1\nreturn"))
        entry, call = tree.body
        assert isinstance(entry, ast.FunctionDef)
        assert entry.name == ENTRY_FUNCTION
        assert [arg.arg for arg in entry.args.args] == ["api"]
        assert len(entry.body) == 2
        assert call.value.func.id == ENTRY_FUNCTION
        compile(tree, "mod.py", "exec")

    def test_line_numbers_unchanged(self):
        tree = wrap_top_level_return(ast.parse("x = 1\n\nif x:\n    return\ny = 2"))
        entry = tree.body[0]
        assert [node.lineno for node in entry.body] == [1, 3, 5]
        assert entry.body[1].body[0].lineno == 4

    def test_docstring_and_future_import_stay_first(self):
        code = '"""Doc."""\n# note\nfrom __future__ import annotations\nx = 1\nreturn'
        tree = wrap_top_level_return(ast.parse(code))
        doc, future, entry, call = tree.body
        assert isinstance(future, ast.ImportFrom)
        assert entry.lineno == 4
        compile(tree, "mod.py", "exec")

    def test_only_header_is_untouched(self):
        tree = ast.parse("from __future__ import annotations")
        assert len(wrap_top_level_return(tree).body) == 1
