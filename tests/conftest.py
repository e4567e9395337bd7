"""
Pytest configuration and shared fixtures.
"""

import json
import sys
from pathlib import Path

import pytest

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from modpatch.config import MODINFO_FILENAME, RunConfig
from modpatch.fsops import FileOps
from modpatch.resolver import FileResolver
from modpatch.task.mods import ModDescriptor, ModManifest
from modpatch.task.settings import ModManagerSettings


# =============================================================================
# PATH FIXTURES
# =============================================================================

@pytest.fixture
def base_input(tmp_path):
    """Extracted vanilla data root."""
    root = tmp_path / "input"
    root.mkdir()
    return root


@pytest.fixture
def user_input(tmp_path):
    """User data root that shadows base input."""
    root = tmp_path / "user_input"
    root.mkdir()
    return root


@pytest.fixture
def output_mod(tmp_path):
    """Game mod directory; assets live under data/."""
    root = tmp_path / "output" / "mymod.mpq"
    (root / "data").mkdir(parents=True)
    (root / MODINFO_FILENAME).write_text('{"name": "mymod"}', encoding="utf-8")
    return root


@pytest.fixture
def output_root(output_mod):
    return output_mod / "data"


@pytest.fixture
def mods_dir(tmp_path):
    root = tmp_path / "mods"
    root.mkdir()
    return root


@pytest.fixture
def library_dir(tmp_path):
    root = tmp_path / "libs"
    root.mkdir()
    return root


@pytest.fixture
def resolver(output_root, base_input, user_input):
    return FileResolver.from_paths(output_root, base_input, user_input)


# =============================================================================
# HELPER FUNCTIONS
# =============================================================================

def write_file(root: Path, rel_path: str, content: str) -> Path:
    """Create a file (and its parents) below root."""
    path = root / rel_path
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8", newline="")
    return path


def make_mod(mods_dir: Path, name: str, script: str = None, manifest: dict = None, config: dict = None) -> Path:
    """Create a mod folder. Pass script=None to leave out mod.py."""
    mod_path = mods_dir / name
    mod_path.mkdir(parents=True, exist_ok=True)
    if manifest is not False:
        (mod_path / "mod.json").write_text(json.dumps(manifest or {"name": name}), encoding="utf-8")
    if script is not None:
        (mod_path / "mod.py").write_text(script, encoding="utf-8")
    if config is not None:
        (mod_path / "config.json").write_text(json.dumps(config), encoding="utf-8")
    return mod_path


def make_descriptor(mod_path: Path, script: str, config: dict = None) -> ModDescriptor:
    """In-memory descriptor for engine tests."""
    return ModDescriptor(
        name=mod_path.name,
        path=mod_path,
        manifest=ModManifest(name=mod_path.name),
        script_text=script,
        script_path=str(mod_path / "mod.py"),
        config=config or {},
    )


def make_run_config(output_mod: Path, base_input: Path, mods_dir: Path, **overrides) -> RunConfig:
    data = {
        "mods_dir": str(mods_dir),
        "output_path": str(output_mod),
        "base_input_path": str(base_input),
        "journal": False,
    }
    data.update(overrides)
    return RunConfig(data=data)


def make_settings(*names: str, disabled=()) -> ModManagerSettings:
    enabled = {name: name not in disabled for name in names}
    return ModManagerSettings(enabled_mods=enabled, mods_order=list(names))


@pytest.fixture
def dry_run_ops():
    return FileOps(dry_run=True)
