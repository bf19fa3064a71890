#  SPDX-License-Identifier: MIT OR Apache-2.0
#  Copyright (c) 2026 gwz

from __future__ import annotations

import sys
from pathlib import Path
from textwrap import dedent
from typing import Dict

import pytest

PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from freeze_driver import FreezeDriver


@pytest.fixture
def build_root(tmp_path: Path) -> Path:
    root = tmp_path / "build"
    root.mkdir()
    return root


@pytest.fixture
def write_tree(build_root: Path):
    """Write a tree of files below a root (the build root by default).

    Usage:
        def test_something(write_tree):
            write_tree({
                "lib/pkg/__init__.py": "",
                "lib/pkg/mod.py": "x = 1",
                "lib/link.pylink": "pkg/mod.py",
            })
    """

    def _write(files: Dict[str, str], root: Path | None = None) -> Path:
        root = build_root if root is None else root
        for rel, content in files.items():
            path = root / rel
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(dedent(content), encoding="utf-8")
        return root

    return _write


@pytest.fixture
def driver(build_root: Path) -> FreezeDriver:
    return FreezeDriver(build_root=build_root)


@pytest.fixture
def freeze(driver: FreezeDriver):
    """Freeze invocation text against the build root.

    Usage:
        def test_something(freeze):
            result = freeze('source = "x = 1"')
            assert not result.has_errors()
    """

    def _freeze(text: str):
        return driver.freeze_text(text)

    return _freeze


def has_error_code(diagnostics, code: str) -> bool:
    """Check if any diagnostic contains the given error code.

    Args:
        diagnostics: List of Diagnostic objects
        code: Error code string like "CFG-0020" or "[CFG-0020]"

    Returns:
        True if any diagnostic message contains the error code
    """
    if not code.startswith("["):
        code = f"[{code}]"
    return any(code in d.message for d in diagnostics)
