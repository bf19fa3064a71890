#  SPDX-License-Identifier: MIT OR Apache-2.0
#  Copyright (c) 2026 gwz

import os
import sys
from pathlib import Path

import pytest

import freezec
from conftest import has_error_code
from freeze_diagnostics import DIAGNOSTIC_CODE_FAMILIES
from freeze_driver import FreezeDriver


INVOCATION_TRIGGERS = {
    "CFG-0010": 'mode = "exec"',
    "CFG-0020": 'source = "x = 1", dir = "lib"',
    "CFG-0030": 'source = "x = 1", mode = "compile"',
    "CFG-0040": "source = 1",
    "CFG-0050": "source = ",
    "CMP-0010": 'source = "x = ("',
    "IO-0010": 'dir = "missing"',
    "IO-0020": 'file = "missing.py"',
}

# code -> (files below the build root, invocation)
TREE_TRIGGERS = {
    "IO-0030": ({"lib/mod.py": ""}, 'dir = "lib"'),
    "IO-0031": ({"lib/alias.pylink": "  \n"}, 'dir = "lib"'),
    "IO-0040": ({"lib/loop.pylink": ".."}, 'dir = "lib"'),
    "NAM-0020": ({"lib/__init__.py": ""}, 'dir = "lib"'),
    "BND-0010": ({"lib/a.b.py": "", "lib/a/b.py": ""}, 'dir = "lib"'),
}

CLI_TRIGGERS = {
    "FZC-0010": ["build", "-o", "{tmp}/no/such/dir/out.py", 'source = "x = 1"'],
    "FZC-0020": ["check", "-f", "{tmp}/missing.freeze"],
    "FZC-0030": ["build", "--variable", "not-an-identifier", 'source = "x = 1"'],
}


def _all_codes() -> list[str]:
    codes: list[str] = []
    for family in DIAGNOSTIC_CODE_FAMILIES.values():
        codes.extend(family)
    return codes


def _freeze_with_driver(code: str, build_root: Path, write_tree):
    if code == "ENV-0010":
        return FreezeDriver().freeze_text('dir = "lib"')

    if code == "IO-0030":
        files, text = TREE_TRIGGERS[code]
        write_tree(files)
        (build_root / "lib" / "odd.pylink").mkdir()
        return FreezeDriver(build_root).freeze_text(text)

    if code == "NAM-0010":
        if sys.platform != "linux":
            pytest.skip("needs a filesystem that accepts non-UTF-8 names")
        lib = build_root / "lib"
        lib.mkdir()
        try:
            (lib / os.fsdecode(b"\xff.py")).write_text("", encoding="utf-8")
        except OSError:
            pytest.skip("filesystem rejects non-UTF-8 names")
        return FreezeDriver(build_root).freeze_text('dir = "lib"')

    if code in TREE_TRIGGERS:
        files, text = TREE_TRIGGERS[code]
        write_tree(files)
        return FreezeDriver(build_root).freeze_text(text)

    return FreezeDriver(build_root).freeze_text(INVOCATION_TRIGGERS[code])


def _run_cli(argv):
    with pytest.raises(SystemExit) as exc:
        freezec.main(argv)
    return exc.value.code


@pytest.mark.parametrize("code", _all_codes())
def test_diagnostic_code_triggers(code, build_root, write_tree, tmp_path, capsys):
    if code in CLI_TRIGGERS:
        argv = [arg.format(tmp=tmp_path) for arg in CLI_TRIGGERS[code]]
        rc = _run_cli(argv)
        err = capsys.readouterr().err
        assert rc == 1
        assert f"[{code}]" in err, f"expected [{code}] on stderr: {err!r}"
        return

    if code in INVOCATION_TRIGGERS or code in TREE_TRIGGERS or code in ("ENV-0010", "NAM-0010"):
        result = _freeze_with_driver(code, build_root, write_tree)
        assert result.has_errors(), f"expected errors for {code}"
        assert result.bundle is None
        assert has_error_code(result.diagnostics, code), \
            f"expected [{code}] in diagnostics: {[d.message for d in result.diagnostics]}"
        return

    pytest.fail(f"no trigger for diagnostic code {code}")
