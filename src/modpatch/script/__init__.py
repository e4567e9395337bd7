"""
modpatch.script - Mod script preprocessing and execution.
"""

from modpatch.script.api import API_VERSION, ModAPI
from modpatch.script.engine import (
    API_SLOT,
    CONFIG_SLOT,
    CapabilityScope,
    LibraryResolver,
    ScriptRunner,
    compile_segment,
)
from modpatch.script.preprocessor import (
    STRICT_PROLOGUE,
    ScriptSegment,
    SegmentKind,
    SourceInfo,
    has_future_import,
    has_top_level_return,
    preprocess_script,
    wrap_top_level_return,
)

__all__ = [
    "API_VERSION",
    "ModAPI",
    "API_SLOT",
    "CONFIG_SLOT",
    "CapabilityScope",
    "LibraryResolver",
    "ScriptRunner",
    "compile_segment",
    "STRICT_PROLOGUE",
    "ScriptSegment",
    "SegmentKind",
    "SourceInfo",
    "has_future_import",
    "has_top_level_return",
    "preprocess_script",
    "wrap_top_level_return",
]
