#  SPDX-License-Identifier: MIT OR Apache-2.0
#  Copyright (c) 2026 gwz

from pathlib import Path

import pytest

from freeze_paths import (
    BUILD_ROOT_ENV,
    BuildRoot,
    ModuleNameError,
    module_segment,
    qualify,
    read_link_target,
)


@pytest.mark.parametrize(
    "name, segment",
    [
        ("util.py", "util"),
        ("pkg", "pkg"),
        ("a.b.py", "a.b"),
        ("__init__.py", "__init__"),
        ("shim.pylink", "shim"),
        (".hidden", ".hidden"),
    ],
)
def test_module_segment_strips_last_extension(name, segment):
    assert module_segment(Path("src") / name) == segment


@pytest.mark.parametrize("path", [Path("/"), Path(".."), Path(".")])
def test_module_segment_rejects_paths_without_a_stem(path):
    with pytest.raises(ModuleNameError) as exc:
        module_segment(path)

    assert "Couldn't get module name" in str(exc.value)


def test_qualify_dot_joins_onto_prefix():
    assert qualify("", "mod") == "mod"
    assert qualify("pkg", "mod") == "pkg.mod"
    assert qualify("a.b", "c") == "a.b.c"


def test_link_target_is_trimmed_and_relative_to_link_dir(tmp_path):
    (tmp_path / "sub").mkdir()
    link = tmp_path / "sub" / "alias.pylink"
    link.write_text("  ../real/mod.py \n", encoding="utf-8")

    assert read_link_target(link) == tmp_path / "sub" / ".." / "real" / "mod.py"


def test_empty_link_is_rejected(tmp_path):
    link = tmp_path / "alias.pylink"
    link.write_text(" \n", encoding="utf-8")

    with pytest.raises(ValueError) as exc:
        read_link_target(link)

    assert "empty" in str(exc.value)


def test_missing_link_raises_os_error(tmp_path):
    with pytest.raises(OSError):
        read_link_target(tmp_path / "nope.pylink")


def test_build_root_from_env_mapping(tmp_path):
    root = BuildRoot.from_env({BUILD_ROOT_ENV: str(tmp_path)})

    assert root == BuildRoot(tmp_path)
    assert root.resolve("lib") == tmp_path / "lib"


@pytest.mark.parametrize("environ", [{}, {BUILD_ROOT_ENV: ""}])
def test_build_root_from_env_missing(environ):
    assert BuildRoot.from_env(environ) is None


def test_build_root_reads_process_environment(monkeypatch, tmp_path):
    monkeypatch.setenv(BUILD_ROOT_ENV, str(tmp_path))

    assert BuildRoot.from_env().root == tmp_path
