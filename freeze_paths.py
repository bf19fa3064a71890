#  SPDX-License-Identifier: MIT OR Apache-2.0
#  Copyright (c) 2026 gwz

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional

BUILD_ROOT_ENV = "FREEZE_BUILD_ROOT"

SOURCE_SUFFIX = ".py"
LINK_SUFFIX = ".pylink"
PACKAGE_INIT_STEM = "__init__"


class ModuleNameError(ValueError):
    """Raised when no module segment can be derived from a path."""
    pass


@dataclass
class BuildRoot:
    """
    Base directory that relative `file` and `dir` paths are resolved against.

    The host build supplies it once per invocation, either explicitly or via
    the FREEZE_BUILD_ROOT environment variable.
    """
    root: Path

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> Optional["BuildRoot"]:
        environ = os.environ if environ is None else environ
        value = environ.get(BUILD_ROOT_ENV)
        if not value:
            return None
        return cls(Path(value))

    def resolve(self, rel_path: str | Path) -> Path:
        """
        Join a relative path onto the root. Absolute paths are returned as-is.
        """
        return self.root / rel_path


def module_segment(path: Path) -> str:
    """
    Derive a module segment from a file or directory name: 'util.py' -> 'util',
    'pkg' -> 'pkg', 'a.b.py' -> 'a.b'.

    Raises ModuleNameError if the name has no usable stem.
    """
    name = path.name
    if name in ("", ".", ".."):
        raise ModuleNameError(f"Couldn't get module name from path '{path}'")
    stem = path.stem
    try:
        stem.encode("utf-8")
    except UnicodeEncodeError as e:
        raise ModuleNameError(f"Couldn't get module name from path {path!r}: name is not valid UTF-8") from e
    if not stem:
        raise ModuleNameError(f"Couldn't get module name from path '{path}'")
    return stem


def qualify(prefix: str, segment: str) -> str:
    """
    Dot-join a segment onto a qualified-name prefix; an empty prefix yields
    the bare segment.
    """
    if not prefix:
        return segment
    return f"{prefix}.{segment}"


def read_link_target(link_path: Path) -> Path:
    """
    Read a `.pylink` file and resolve the path it names.

    The file holds a single line; surrounding whitespace is ignored and the
    path is taken relative to the link file's own directory.

    Raises OSError/UnicodeDecodeError if the link cannot be read and
    ValueError if it is empty.
    """
    target = link_path.read_text(encoding="utf-8").strip()
    if not target:
        raise ValueError(f"link file '{link_path}' is empty")
    return link_path.parent / target
