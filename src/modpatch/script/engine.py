"""
Mod Script Execution Engine

Runs the segments of one mod at a time inside chained namespaces:

    per-mod namespace        (the mod's own top-level names; thrown away)
        └── __builtins__ ──> CapabilityScope.namespace
                               (Python builtins, ``log``, and the two slots
                                ``api`` / ``config`` rebound for every mod)

Because the shared scope is installed as ``__builtins__``, a name the mod did
not define itself falls through to the capability scope, and functions a mod
defines see the slots as they are bound at call time. Nothing a mod declares
survives into the next mod.

This is isolation for hygiene only. Mods are semi-trusted and can reach the
real interpreter through imports; there is no timeout either.

Usage:
    runner = ScriptRunner(resolver, library_dir=Path("libs"))
    for mod in mods:
        runner.run_mod(mod)   # raises ModScriptError on the first failure
"""

import ast
import builtins
import logging
from pathlib import Path
from types import CodeType
from typing import TYPE_CHECKING, Any, Callable, Dict, List, Optional

from modpatch.errors import LibraryNotFoundError, ModScriptError
from modpatch.resolver import FileResolver
from modpatch.script.api import ModAPI
from modpatch.script.preprocessor import (
    STRICT_PROLOGUE,
    ScriptSegment,
    has_top_level_return,
    preprocess_script,
    wrap_top_level_return,
)

if TYPE_CHECKING:
    from modpatch.task.mods import ModDescriptor

logger = logging.getLogger(__name__)

mod_logger = logging.getLogger("modpatch.mods")

API_SLOT = "api"
CONFIG_SLOT = "config"


class CapabilityScope:
    """The shared scope every mod namespace falls back to."""

    def __init__(self, ambient: Optional[Dict[str, Any]] = None):
        self.namespace: Dict[str, Any] = dict(vars(builtins))
        self.namespace["log"] = mod_logger
        if ambient:
            self.namespace.update(ambient)
        self.namespace[API_SLOT] = None
        self.namespace[CONFIG_SLOT] = None

    def bind(self, api: Any, config: Any) -> None:
        """Rebind the two per-mod slots in place."""
        self.namespace[API_SLOT] = api
        self.namespace[CONFIG_SLOT] = config

    @property
    def api(self) -> Any:
        return self.namespace[API_SLOT]

    @property
    def config(self) -> Any:
        return self.namespace[CONFIG_SLOT]

    def new_local_scope(self, mod_name: str, script_path: str) -> Dict[str, Any]:
        return {
            "__name__": f"mod.{mod_name}",
            "__file__": script_path,
            "__builtins__": self.namespace,
        }


class LibraryResolver:
    """Loads and compiles named libraries once per run."""

    def __init__(self, library_dir: Optional[Path]):
        self.library_dir = Path(library_dir) if library_dir else None
        self._cache: Dict[str, CodeType] = {}

    def resolve(self, segment: ScriptSegment) -> ScriptSegment:
        name = segment.library
        compiled = self._cache.get(name)
        if compiled is None:
            if self.library_dir is None:
                raise LibraryNotFoundError(name)
            path = self.library_dir / f"{name}.py"
            try:
                source = path.read_text(encoding="utf-8")
            except OSError as e:
                raise LibraryNotFoundError(name, str(path)) from e
            compiled = compile(source, str(path), "exec", dont_inherit=True)
            self._cache[name] = compiled
            logger.debug("compiled library: %s (%s)", name, path)
        segment.compiled = compiled
        return segment

    @property
    def cached(self) -> List[str]:
        return list(self._cache)


def compile_segment(segment: ScriptSegment, allow_top_level_return: bool = False) -> CodeType:
    """Compile an inline segment so diagnostics report original file lines.

    With ``allow_top_level_return`` a body that uses module-level ``return`` is
    moved into a function first; other scripts compile unchanged.
    """
    offset = segment.info.line_offset
    try:
        tree = ast.parse(segment.code, filename=segment.info.filename, mode="exec")
    except SyntaxError as e:
        if e.lineno is not None:
            e.lineno += offset
        if getattr(e, "end_lineno", None) is not None:
            e.end_lineno += offset
        raise
    if offset:
        ast.increment_lineno(tree, offset)
    if allow_top_level_return and has_top_level_return(tree):
        logger.debug("wrapping top-level return: %s", segment.info.filename)
        tree = wrap_top_level_return(tree, API_SLOT)
    return compile(tree, segment.info.filename, "exec", dont_inherit=True)


class ScriptRunner:
    """Executes mods one after another against a shared capability scope."""

    def __init__(
        self,
        resolver: FileResolver,
        library_dir: Optional[Path] = None,
        wrap_top_level_return: bool = True,
        prologue: Optional[str] = STRICT_PROLOGUE,
        api_factory: Callable[..., Any] = ModAPI,
    ):
        self.resolver = resolver
        self.libraries = LibraryResolver(library_dir)
        self.wrap_top_level_return = wrap_top_level_return
        self.prologue = prologue
        self.api_factory = api_factory
        self.scope = CapabilityScope()

    def prepare(self, mod: "ModDescriptor") -> List[ScriptSegment]:
        """Preprocess a mod's script and resolve its library segments."""
        segments = preprocess_script(mod.script_text, mod.script_path, prologue=self.prologue)
        for segment in segments:
            if segment.is_library:
                self.libraries.resolve(segment)
        return segments

    def run_mod(self, mod: "ModDescriptor") -> None:
        """Run one mod. Raises ModScriptError on the first failing segment."""
        api = self.api_factory(self.resolver, mod)
        self.scope.bind(api, mod.config)
        local_scope = self.scope.new_local_scope(mod.name, mod.script_path)
        logger.info("RUN: %s", mod.name)
        try:
            segments = self.prepare(mod)
            # Only a script without library blocks may return at top level
            allow_return = self.wrap_top_level_return and len(segments) == 1
            for segment in segments:
                if segment.is_library:
                    exec(segment.compiled, local_scope)
                else:
                    exec(compile_segment(segment, allow_return), local_scope)
        except (Exception, SystemExit) as e:
            raise ModScriptError(mod.name, e) from e
        finally:
            local_scope.clear()
