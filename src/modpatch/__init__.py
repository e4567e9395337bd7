"""
modpatch - Apply scripted data mods to game asset files.

Runs an ordered set of mod scripts over a layered view of extracted game data
and writes the merged result into a game mod directory, touching only the
files whose content actually changed.
"""

__version__ = "0.1.0"
__author__ = "modpatch contributors"

from modpatch.resolver import FileResolver
from modpatch.script import ModAPI, ScriptRunner, preprocess_script
from modpatch.task import run_mod_task
