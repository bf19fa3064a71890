#  SPDX-License-Identifier: MIT OR Apache-2.0
#  Copyright (c) 2026 gwz

"""
Invocation front end.

An invocation is the argument list of a freeze request, written the way a
keyword-argument call is written in Python:

    dir = "lib", mode = "exec"

The text is parsed with Python's own `ast` module so every entry keeps the
exact span it was written at; validation of the entries happens elsewhere.
"""

from __future__ import annotations

import ast
from dataclasses import dataclass, field
from typing import Any, List, Optional

DEFAULT_INVOCATION_FILENAME = "<invocation>"


@dataclass
class Span:
    start_line: int
    start_column: int
    end_line: int
    end_column: int


@dataclass
class ConfigEntry:
    key: str
    value: Any
    span: Optional[Span] = field(default=None, compare=False)
    value_span: Optional[Span] = field(default=None, compare=False)


@dataclass
class Invocation:
    """
    Ordered key/value entries of one freeze request.

    - entries: in the order they were written
    - span: covers the whole invocation text
    - filename: where the text came from, used by diagnostics
    """
    entries: List[ConfigEntry] = field(default_factory=list)
    span: Optional[Span] = None
    filename: Optional[str] = None


@dataclass
class InvocationSyntaxError(Exception):
    message: str
    span: Optional[Span] = None
    filename: Optional[str] = None


def _text_span(text: str) -> Span:
    lines = text.split("\n")
    return Span(1, 1, len(lines), len(lines[-1]) + 1)


def _node_span(node: ast.AST) -> Span:
    # The text is parsed starting on line 2 of the wrapper; see parse_invocation.
    return Span(
        start_line=node.lineno - 1,
        start_column=node.col_offset + 1,
        end_line=node.end_lineno - 1,
        end_column=node.end_col_offset + 1,
    )


def parse_invocation(text: str, filename: str = DEFAULT_INVOCATION_FILENAME) -> Invocation:
    """
    Parse `key = literal, ...` text into an Invocation.

    Raises InvocationSyntaxError on malformed text, positional arguments,
    `**` expansion or non-literal values.
    """
    whole = _text_span(text)
    wrapped = f"_(\n{text}\n)"
    try:
        tree = ast.parse(wrapped, filename=filename, mode="eval")
    except SyntaxError as e:
        line = min(max((e.lineno or 2) - 1, 1), whole.end_line)
        column = max(e.offset or 1, 1)
        raise InvocationSyntaxError(
            f"[CFG-0050] invalid invocation syntax: {e.msg}",
            Span(line, column, line, column),
            filename,
        ) from e
    except (RecursionError, MemoryError) as e:
        raise InvocationSyntaxError(
            f"[CFG-0050] invocation is too deeply nested or too long to parse: {type(e).__name__}",
            whole,
            filename,
        ) from e

    call = tree.body
    if not (isinstance(call, ast.Call) and isinstance(call.func, ast.Name) and call.func.id == "_"):
        raise InvocationSyntaxError(
            "[CFG-0050] invalid invocation syntax: expected a comma-separated list of 'key = value' pairs",
            whole,
            filename,
        )

    if call.args:
        raise InvocationSyntaxError(
            "[CFG-0050] expected 'key = value', found a positional argument",
            _node_span(call.args[0]),
            filename,
        )

    entries: List[ConfigEntry] = []
    for kw in call.keywords:
        if kw.arg is None:
            raise InvocationSyntaxError(
                "[CFG-0050] '**' expansion is not allowed in an invocation",
                _node_span(kw),
                filename,
            )
        try:
            value = ast.literal_eval(kw.value)
        except (ValueError, TypeError) as e:
            raise InvocationSyntaxError(
                f"[CFG-0050] value of '{kw.arg}' must be a literal",
                _node_span(kw.value),
                filename,
            ) from e
        except (RecursionError, MemoryError) as e:
            raise InvocationSyntaxError(
                f"[CFG-0050] value of '{kw.arg}' is too deeply nested: {type(e).__name__}",
                _node_span(kw.value),
                filename,
            ) from e
        entries.append(
            ConfigEntry(
                key=kw.arg,
                value=value,
                span=_node_span(kw),
                value_span=_node_span(kw.value),
            )
        )

    return Invocation(entries=entries, span=whole, filename=filename)
