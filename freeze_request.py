#  SPDX-License-Identifier: MIT OR Apache-2.0
#  Copyright (c) 2026 gwz

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Iterable, Optional, Union

from freeze_diagnostics import ConfigError, RelatedLocation
from freeze_invocation import ConfigEntry, Invocation, Span

DEFAULT_BUNDLE_ROOT_NAME = "frozen"

SOURCE_KEYS = ("source", "file", "dir")


class CompileMode(Enum):
    EXEC = "exec"
    EVAL = "eval"
    SINGLE = "single"

    @classmethod
    def parse(cls, text: str) -> "CompileMode":
        for mode in cls:
            if mode.value == text:
                return mode
        expected = ", ".join(f"'{m.value}'" for m in cls)
        raise ValueError(f"unknown compile mode '{text}', expected one of {expected}")


@dataclass(frozen=True)
class InlineSource:
    text: str


@dataclass(frozen=True)
class SingleFileSource:
    path: Path


@dataclass(frozen=True)
class TreeSource:
    path: Path


SourceSpec = Union[InlineSource, SingleFileSource, TreeSource]


@dataclass(frozen=True)
class CompilationRequest:
    """
    A validated freeze request.

    - source: exactly one of InlineSource, SingleFileSource, TreeSource
    - mode: compile mode for every unit of the bundle
    - bundle_root_name: qualified name of the single unit produced by
      inline and single-file sources
    - span / filename: where the source entry was written, for diagnostics
    """
    source: SourceSpec
    mode: CompileMode = CompileMode.EXEC
    bundle_root_name: str = DEFAULT_BUNDLE_ROOT_NAME
    span: Optional[Span] = None
    filename: Optional[str] = None


def _expect_string(entry: ConfigEntry, filename: Optional[str]) -> str:
    if not isinstance(entry.value, str):
        raise ConfigError(
            f"[CFG-0040] {entry.key} must be a string, got {type(entry.value).__name__}",
            span=entry.value_span or entry.span,
            filename=filename,
        )
    return entry.value


def _make_source(entry: ConfigEntry, value: str) -> SourceSpec:
    if entry.key == "source":
        return InlineSource(value)
    if entry.key == "file":
        return SingleFileSource(Path(value))
    return TreeSource(Path(value))


def validate_config(
        entries: Iterable[ConfigEntry],
        *,
        span: Optional[Span] = None,
        filename: Optional[str] = None,
) -> CompilationRequest:
    """
    Validate ordered key/value entries into a CompilationRequest.

    Recognized keys are `source`, `file`, `dir`, `mode` and `module_name`;
    anything else is ignored. The first offending entry raises ConfigError.
    `span` locates the whole invocation and is used when no source is given.
    """
    mode: Optional[CompileMode] = None
    module_name: Optional[str] = None
    source: Optional[SourceSpec] = None
    source_entry: Optional[ConfigEntry] = None

    for entry in entries:
        if entry.key == "mode":
            text = _expect_string(entry, filename)
            try:
                mode = CompileMode.parse(text)
            except ValueError as e:
                raise ConfigError(
                    f"[CFG-0030] {e}",
                    span=entry.value_span or entry.span,
                    filename=filename,
                ) from e
        elif entry.key == "module_name":
            module_name = _expect_string(entry, filename)
        elif entry.key in SOURCE_KEYS:
            if source_entry is not None:
                raise ConfigError(
                    f"[CFG-0020] cannot have more than one source: '{entry.key}' given after '{source_entry.key}'",
                    span=entry.span,
                    filename=filename,
                    related=RelatedLocation(
                        f"first source '{source_entry.key}' given here",
                        filename=filename,
                        span=source_entry.span,
                    ),
                )
            value = _expect_string(entry, filename)
            source = _make_source(entry, value)
            source_entry = entry

    if source is None:
        raise ConfigError(
            "[CFG-0010] must have one of 'source', 'file' or 'dir'",
            span=span,
            filename=filename,
        )

    return CompilationRequest(
        source=source,
        mode=mode or CompileMode.EXEC,
        bundle_root_name=module_name if module_name is not None else DEFAULT_BUNDLE_ROOT_NAME,
        span=source_entry.span,
        filename=filename,
    )


def validate_invocation(invocation: Invocation) -> CompilationRequest:
    return validate_config(invocation.entries, span=invocation.span, filename=invocation.filename)
