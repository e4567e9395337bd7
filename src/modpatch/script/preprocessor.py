"""
Mod Script Preprocessor

Splits a mod script into ordered segments using block directives:

    /// #pragma lib-begin shared_affixes
    ... code that is also shipped as a precompiled library ...
    /// #pragma lib-end

(``# #pragma ...`` is accepted as well, so the directive can be a plain Python
comment.) Everything between a ``lib-begin``/``lib-end`` pair, including the
two directive lines, is replaced by one library segment named after the
``lib-begin`` argument. The remaining lines are coalesced into inline segments.

Every inline segment records a ``line_offset`` so that
``segment_line + line_offset`` is the line number in the original file, which
keeps tracebacks pointing at the mod author's source. A segment whose leading
comments and docstring are not followed by a ``from __future__`` import gets
one synthesized in front of it, and its offset is shifted back by one to
compensate.

Blocks do not nest. Malformed directives raise DirectiveError before any
segment runs.
"""

import ast
import re
from dataclasses import dataclass
from enum import Enum
from types import CodeType
from typing import List, Optional

from modpatch.errors import DirectiveError

STRICT_PROLOGUE = "from __future__ import annotations"

_DIRECTIVE_RE = re.compile(r"^(?:///|#)[\s]+#(pragma)[\s]+(.*)")
_LIB_PRAGMA_RE = re.compile(r"^(lib-begin|lib-end)[\s]*(.*)")
_PROLOGUE_RE = re.compile(r"^from[\s]+__future__[\s]+import[\s]")

ENTRY_FUNCTION = "__mod_main__"


class SegmentKind(Enum):
    """What a ScriptSegment holds."""

    # Code taken from the mod script itself
    INLINE = "inline"

    # Reference to a named library, resolved by the engine
    LIBRARY = "library"


@dataclass
class SourceInfo:
    """Where a segment's code comes from."""
    filename: str
    line_offset: int = 0


@dataclass
class ScriptSegment:
    """One executable piece of a mod script."""
    kind: SegmentKind
    info: SourceInfo
    code: Optional[str] = None
    library: Optional[str] = None
    compiled: Optional[CodeType] = None  # set by the engine for library segments

    @property
    def is_library(self) -> bool:
        return self.kind is SegmentKind.LIBRARY


@dataclass
class _BlockRun:
    library: str
    line_begin: int  # index of the lib-begin line
    line_end: int = -1  # index one past the lib-end line


class _BlockStack:
    """Open directive blocks; depth-limited because blocks do not nest."""

    def __init__(self, filename: str, line_offset: int, depth_limit: int = 1):
        self.filename = filename
        self.line_offset = line_offset
        self.depth_limit = depth_limit
        self._stack: List[_BlockRun] = []

    def _line(self, index: int) -> int:
        return self.line_offset + index + 1

    def top(self) -> Optional[_BlockRun]:
        return self._stack[-1] if self._stack else None

    def push(self, index: int, library: str) -> None:
        if self.depth_limit > 0 and len(self._stack) >= self.depth_limit:
            raise DirectiveError(
                self.filename, self._line(index),
                f"lib-begin while block opened at line {self._line(self.top().line_begin)} is still open",
            )
        self._stack.append(_BlockRun(library=library, line_begin=index))

    def pop(self, index: int) -> _BlockRun:
        if not self._stack:
            raise DirectiveError(self.filename, self._line(index), "lib-end without matching lib-begin")
        run = self._stack.pop()
        run.line_end = index + 1
        return run

    def finish(self) -> None:
        if self._stack:
            raise DirectiveError(
                self.filename, self._line(self.top().line_begin),
                f"unterminated lib-begin {self.top().library}",
            )


def _inline_segment(lines: List[str], begin: int, end: int, info: SourceInfo, prologue: Optional[str]) -> Optional[ScriptSegment]:
    if end <= begin:
        return None
    block = lines[begin:end]
    line_offset = info.line_offset + begin
    code = "\n".join(block)
    if prologue and not has_future_import(code):
        code = prologue + "\n" + code
        line_offset -= 1
    return ScriptSegment(
        kind=SegmentKind.INLINE,
        info=SourceInfo(info.filename, line_offset),
        code=code,
    )


def preprocess_script(
    code: str,
    filename: str,
    line_offset: int = 0,
    prologue: Optional[str] = STRICT_PROLOGUE,
) -> List[ScriptSegment]:
    """Split a script into inline and library segments, in source order."""
    info = SourceInfo(filename, line_offset)
    lines = code.split("\n")
    stack = _BlockStack(filename, line_offset)
    runs: List[_BlockRun] = []

    for index, line in enumerate(lines):
        directive = _DIRECTIVE_RE.match(line)
        if not directive:
            continue
        pragma = _LIB_PRAGMA_RE.match(directive.group(2))
        if not pragma:
            continue
        if pragma.group(1) == "lib-begin":
            library = pragma.group(2).strip()
            if not library:
                raise DirectiveError(filename, line_offset + index + 1, "lib-begin requires a library name")
            stack.push(index, library)
        else:
            runs.append(stack.pop(index))
    stack.finish()

    segments: List[ScriptSegment] = []
    next_code_start = 0
    for run in runs:
        segment = _inline_segment(lines, next_code_start, run.line_begin, info, prologue)
        if segment:
            segments.append(segment)
        segments.append(ScriptSegment(
            kind=SegmentKind.LIBRARY,
            info=SourceInfo(run.library),
            library=run.library,
        ))
        next_code_start = run.line_end
    segment = _inline_segment(lines, next_code_start, len(lines), info, prologue)
    if segment:
        segments.append(segment)
    return segments




# =============================================================================
# FUTURE IMPORTS
# =============================================================================

def _is_docstring(node: ast.stmt) -> bool:
    return (
        isinstance(node, ast.Expr)
        and isinstance(node.value, ast.Constant)
        and isinstance(node.value.value, str)
    )


def _is_future_import(node: ast.stmt) -> bool:
    return isinstance(node, ast.ImportFrom) and node.module == "__future__"


def _module_header(body: List[ast.stmt]) -> int:
    """Number of leading statements that must stay first: docstring, then future imports."""
    count = 0
    if body and _is_docstring(body[0]):
        count = 1
    while count < len(body) and _is_future_import(body[count]):
        count += 1
    return count


def has_future_import(code: str) -> bool:
    """True when the code opens (after comments and a docstring) with a future import."""
    try:
        body = ast.parse(code).body
    except SyntaxError:
        # The compiler reports the error later; only the first line can be trusted here
        first = code.lstrip("\n").split("\n", 1)[0]
        return bool(_PROLOGUE_RE.match(first))
    header = _module_header(body)
    return any(_is_future_import(node) for node in body[:header])


# =============================================================================
# TOP-LEVEL RETURN COMPATIBILITY
# =============================================================================

class _TopLevelReturnFinder(ast.NodeVisitor):
    """Finds ``return`` statements that are not inside a function body."""

    def __init__(self):
        self.found = False

    def visit_Return(self, node: ast.Return) -> None:
        self.found = True

    def _skip(self, node: ast.AST) -> None:
        pass

    visit_FunctionDef = _skip
    visit_AsyncFunctionDef = _skip
    visit_ClassDef = _skip
    visit_Lambda = _skip


def has_top_level_return(tree: ast.Module) -> bool:
    finder = _TopLevelReturnFinder()
    finder.visit(tree)
    return finder.found


def _place(node: ast.AST, lineno: int, col_offset: int = 0) -> None:
    for child in ast.walk(node):
        if hasattr(child, "lineno"):
            child.lineno = child.end_lineno = lineno
            child.col_offset = child.end_col_offset = col_offset


def wrap_top_level_return(tree: ast.Module, accessor: str = "api") -> ast.Module:
    """Move a module body into a function that is called immediately.

    Older mods ``return`` early at module level, which Python only allows in a
    function body. The docstring and future imports stay at module level.
    Statements keep their line numbers, so tracebacks still point at the
    mod's own lines.
    """
    header = _module_header(tree.body)
    head, body = tree.body[:header], tree.body[header:]
    if not body:
        return tree

    entry, call = ast.parse(f"def {ENTRY_FUNCTION}({accessor}):\n    pass\n{ENTRY_FUNCTION}({accessor})\n").body
    first, last = body[0], body[-1]
    _place(entry, first.lineno, first.col_offset)
    entry.body = body
    entry.end_lineno = last.end_lineno
    entry.end_col_offset = last.end_col_offset
    _place(call, last.end_lineno, last.end_col_offset)

    tree.body = head + [entry, call]
    return tree
