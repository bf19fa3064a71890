#  SPDX-License-Identifier: MIT OR Apache-2.0
#  Copyright (c) 2026 gwz

import os
from dataclasses import dataclass
from typing import List, Optional

from freeze_invocation import Span


DIAGNOSTIC_CODE_FAMILIES = {
    "CFG": [
        "CFG-0010",  # no source key
        "CFG-0020",  # more than one source key
        "CFG-0030",  # unknown compile mode
        "CFG-0040",  # non-string literal
        "CFG-0050",  # malformed invocation text
    ],
    "ENV": [
        "ENV-0010",
    ],
    "IO": [
        "IO-0010",
        "IO-0020",
        "IO-0030",
        "IO-0031",
        "IO-0040",
    ],
    "NAM": [
        "NAM-0010",
        "NAM-0020",
    ],
    "CMP": [
        "CMP-0010",
    ],
    "BND": [
        "BND-0010",
    ],
    # FZC codes are reported by the command-line front end only.
    "FZC": [
        "FZC-0010",
        "FZC-0020",
        "FZC-0030",
    ],
}


@dataclass
class Diagnostic:
    kind: str  # "error", "warning" or "note"
    message: str
    module_name: Optional[str] = None  # qualified module name
    filename: Optional[str] = None  # file path or "<invocation>"

    # Primary location (start of the span)
    line: Optional[int] = None
    column: Optional[int] = None

    # Optional end of span (exclusive)
    end_line: Optional[int] = None
    end_column: Optional[int] = None

    # Return the one-line header; snippets will be printed at the call site
    def format(self) -> str:
        loc = ""
        if self.filename is not None:
            name = str(self.filename)
            loc += name if name.startswith("<") else os.path.abspath(name)
        if self.line is not None:
            loc += f":{self.line}"
            if self.column is not None:
                loc += f":{self.column}"
        if self.module_name is not None:
            loc += f"({self.module_name})"
        if loc:
            loc += ": "
        return f"{loc}{self.kind}: {self.message}"


@dataclass(frozen=True)
class RelatedLocation:
    """Secondary location attached to an error, printed as a note."""
    message: str
    filename: Optional[str] = None
    span: Optional[Span] = None
    module_name: Optional[str] = None


class FreezeError(Exception):
    """
    A user-facing freeze failure.

    The message starts with a bracketed diagnostic code. `span` and `filename`
    point at the invocation that requested the freeze, so a failure deep in a
    directory walk is still reported where the build asked for it.
    """

    def __init__(
            self,
            message: str,
            *,
            span: Optional[Span] = None,
            filename: Optional[str] = None,
            module_name: Optional[str] = None,
            related: Optional[RelatedLocation] = None,
    ):
        super().__init__(message)
        self.message = message
        self.span = span
        self.filename = filename
        self.module_name = module_name
        self.related = related

    def to_diagnostics(self) -> List[Diagnostic]:
        diags = [
            diag_from_span(
                "error",
                self.message,
                module_name=self.module_name,
                filename=self.filename,
                span=self.span,
            )
        ]
        if self.related is not None:
            diags.append(
                diag_from_span(
                    "note",
                    self.related.message,
                    module_name=self.related.module_name,
                    filename=self.related.filename,
                    span=self.related.span,
                )
            )
        return diags


class ConfigError(FreezeError):
    """Missing or duplicate source key, bad mode, non-string literal."""
    pass


class BuildEnvironmentError(FreezeError):
    """The build root needed to resolve a relative path is not configured."""
    pass


class SourceIOError(FreezeError):
    """A directory, source file or link file could not be read."""
    pass


class NamingError(FreezeError):
    """No module name can be derived for a path."""
    pass


class CompileError(FreezeError):
    """The unit compiler rejected a module's source."""
    pass


class DuplicateModuleError(FreezeError):
    """Two units resolved to the same qualified name."""
    pass


def diag_from_span(
        kind: str,
        message: str,
        *,
        module_name: Optional[str],
        filename: Optional[str],
        span: Optional[Span],
) -> Diagnostic:
    line = column = end_line = end_column = None
    if span is not None:
        line = span.start_line
        column = span.start_column
        end_line = span.end_line
        end_column = span.end_column
    return Diagnostic(
        kind=kind,
        message=message,
        module_name=module_name,
        filename=filename,
        line=line,
        column=column,
        end_line=end_line,
        end_column=end_column,
    )
