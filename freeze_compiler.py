#  SPDX-License-Identifier: MIT OR Apache-2.0
#  Copyright (c) 2026 gwz

"""
Unit compiler boundary.

A unit compiler turns one module's source text into a CompiledUnit. The
default implementation uses CPython's built-in `compile()` and serializes the
resulting code object with `marshal`; the driver accepts any callable with
the same shape.
"""

import marshal
from dataclasses import dataclass, field
from typing import Callable, Optional

from freeze_request import CompileMode


@dataclass(frozen=True)
class CompiledUnit:
    code: bytes = field(repr=False)


@dataclass
class SourceCompileError(Exception):
    message: str
    line: Optional[int] = None
    column: Optional[int] = None


UnitCompiler = Callable[[str, CompileMode, str], CompiledUnit]


def compile_unit(source_text: str, mode: CompileMode, qualified_name: str, optimize: int = 0) -> CompiledUnit:
    """
    Compile `source_text` in `mode` and marshal the code object.

    The qualified name becomes the code object's filename. Raises
    SourceCompileError if the source does not compile.
    """
    try:
        code = compile(source_text, qualified_name, mode.value, dont_inherit=True, optimize=optimize)
    except SyntaxError as e:
        raise SourceCompileError(f"{type(e).__name__}: {e.msg}", e.lineno, e.offset) from e
    except ValueError as e:
        # e.g. source containing null bytes
        raise SourceCompileError(str(e)) from e
    except (RecursionError, MemoryError) as e:
        # Deeply nested or very long expressions exhaust the compiler.
        raise SourceCompileError(f"{type(e).__name__}: {e or 'source too complex to compile'}") from e
    return CompiledUnit(marshal.dumps(code))


def make_unit_compiler(optimize: int = 0) -> UnitCompiler:
    """Bind an optimization level into a UnitCompiler."""
    def _compile(source_text: str, mode: CompileMode, qualified_name: str) -> CompiledUnit:
        return compile_unit(source_text, mode, qualified_name, optimize=optimize)

    return _compile
