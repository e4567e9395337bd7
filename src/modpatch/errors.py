"""
modpatch error taxonomy.

NotFound is deliberately absent here: the resolver signals a missing file by
returning ``(None, None)``. Only the script-facing facade turns absence into
an exception (AssetNotFoundError), because a mod asking for a file that does
not exist cannot continue.
"""

from typing import Optional


class ModPatchError(Exception):
    """Base class for all modpatch failures."""


class ConfigError(ModPatchError):
    """Raised when the run configuration is missing or inconsistent."""


class AssetNotFoundError(ModPatchError, FileNotFoundError):
    """Raised to a mod script when a requested asset exists in no root."""

    def __init__(self, path: str, operation: str = "read"):
        self.path = path
        self.operation = operation
        super().__init__(f"{operation}: input file not found: {path}")


class AssetIOError(ModPatchError):
    """Raised when reading or writing an asset fails for a reason other than absence."""

    def __init__(self, path: str, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(f"I/O failure on {path}: {reason}")


class AssetParseError(ModPatchError):
    """Raised when structured data cannot be parsed in strict or relaxed mode."""

    def __init__(self, path: str, message: str, line: int = 0, column: int = 0):
        self.path = path
        self.message = message
        self.line = line
        self.column = column
        super().__init__(f"Cannot parse {path} at line {line} column {column}: {message}")


class PathEscapeError(ModPatchError):
    """Raised when a write would land outside the output root."""

    def __init__(self, path: str, root: str):
        self.path = path
        self.root = root
        super().__init__(f"Refusing to write outside output root {root}: {path}")


class DirectiveError(ModPatchError):
    """Raised when block directives in a mod script are malformed."""

    def __init__(self, filename: str, line: int, message: str):
        self.filename = filename
        self.line = line
        self.message = message
        super().__init__(f"{filename}:{line}: {message}")


class LibraryNotFoundError(ModPatchError):
    """Raised when a library segment names a library that does not exist."""

    def __init__(self, name: str, path: Optional[str] = None):
        self.name = name
        self.path = path
        where = f" ({path})" if path else ""
        super().__init__(f"Failed to load library: {name}{where}")


class ManifestError(ModPatchError):
    """Raised when a mod's manifest exists but cannot be understood."""

    def __init__(self, mod_name: str, reason: str):
        self.mod_name = mod_name
        self.reason = reason
        super().__init__(f"Invalid manifest for mod {mod_name}: {reason}")


class ModScriptError(ModPatchError):
    """Raised when a mod script raises during execution.

    The original exception is chained as ``__cause__``.
    """

    def __init__(self, mod_name: str, error: BaseException):
        self.mod_name = mod_name
        self.error = error
        super().__init__(f"Error during mod: {mod_name} | {type(error).__name__}: {error}")
