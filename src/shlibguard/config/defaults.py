"""Default configuration values, paths and fixed note-format constants."""

from __future__ import annotations

from pathlib import Path

CONFIG_FILE_NAMES = [
    "shlibguard.yaml",
    "shlibguard.yml",
    ".shlibguard.yaml",
    ".shlibguard.yml",
]

CONFIG_SEARCH_PATHS = [
    Path.cwd(),
    Path.home() / ".config" / "shlibguard",
    Path.home(),
]

# Producer name of the Go linker notes, NUL-padded to its on-disk width.
DEFAULT_NOTE_PRODUCER = "Go\x00\x00"

# Local symbol the linker emits pointing at the ABI hash bytes.
DEFAULT_ABI_HASH_SYMBOL = "go.link.abihashbytes"
DEFAULT_ABI_HASH_SYMBOL_OFFSET = 16

# Note tags are part of the on-disk contract.
NOTE_TAG_PACKAGE_LIST = 1
NOTE_TAG_ABI_HASH = 2
NOTE_TAG_DEPENDENCY_LIST = 3

NOTE_ALIGNMENT = 4

DEFAULT_BUILD_COMMAND = "go"
DEFAULT_BUILD_TIMEOUT = 600

SEARCH_PATH_SEPARATOR = ":"
