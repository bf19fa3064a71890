#  SPDX-License-Identifier: MIT OR Apache-2.0
#  Copyright (c) 2026 gwz

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Set

from freeze_context import FreezeContext
from freeze_diagnostics import FreezeError, NamingError, SourceIOError
from freeze_invocation import Span
from freeze_logger import log_debug, log_stage
from freeze_paths import (
    LINK_SUFFIX,
    PACKAGE_INIT_STEM,
    SOURCE_SUFFIX,
    ModuleNameError,
    module_segment,
    qualify,
    read_link_target,
)


@dataclass(frozen=True)
class ModuleEntry:
    """
    One discovered unit, ready to be compiled.

    - qualified_name: dotted name the unit is frozen under
    - source_text: the unit's source, read as-is
    - is_package: True for a package initializer standing for its directory
    - origin: file the text was read from (None for inline source)
    """
    qualified_name: str
    source_text: str = field(repr=False)
    is_package: bool = False
    origin: Optional[Path] = None


class ModuleTreeWalker:
    """
    Walk a directory tree and derive one ModuleEntry per source unit.

    Rules, applied to every directory entry in sorted name order:
      - the module segment is the entry's name without its last extension
      - '*.py' files are leaves; extension-less directories are recursed into
      - '*.pylink' files are replaced by the path they name before the two
        rules above are applied (a file target is read as source whatever
        its extension)
      - everything else is skipped
      - an '__init__' leaf becomes the unit of its enclosing package

    Every error carries `span`/`filename`, the location of the invocation that
    asked for the walk, plus the failing path in its message.
    """

    def __init__(
        self,
        *,
        span: Optional[Span] = None,
        filename: Optional[str] = None,
        context: Optional[FreezeContext] = None,
    ):
        self.span = span
        self.filename = filename
        self.context = context or FreezeContext.default()
        # Directories currently on the walk stack (real paths), for cycle detection.
        self._active: Set[str] = set()

    # --- Public API ---

    def walk(self, root: Path, prefix: str = "", label: Optional[str] = None) -> List[ModuleEntry]:
        """
        Collect every ModuleEntry beneath `root`.

        `prefix` is the qualified-name prefix of `root` itself (usually empty);
        `label` names the traversal in logs and defaults to the root path.
        """
        log_stage(self.context, "Walking", label or str(root))
        entries: List[ModuleEntry] = []
        self._active.clear()
        self._walk_dir(Path(root), prefix, entries)
        log_debug(self.context, f"Walk of '{label or root}' found {len(entries)} unit(s)")
        return entries

    # --- Internal helpers ---

    def _error(self, cls: type, message: str) -> FreezeError:
        return cls(message, span=self.span, filename=self.filename)

    def _walk_dir(self, directory: Path, prefix: str, out: List[ModuleEntry]) -> None:
        key = os.path.realpath(directory)
        if key in self._active:
            raise self._error(
                SourceIOError,
                f"[IO-0040] directory '{directory}' is already being walked (link cycle)",
            )

        try:
            children = sorted(directory.iterdir(), key=lambda p: p.name)
        except OSError as e:
            raise self._error(SourceIOError, f"[IO-0010] Error listing dir '{directory}': {e}") from e

        self._active.add(key)
        try:
            for child in children:
                self._visit(child, prefix, out)
        finally:
            self._active.discard(key)

    def _visit(self, path: Path, prefix: str, out: List[ModuleEntry]) -> None:
        try:
            segment = module_segment(path)
        except ModuleNameError as e:
            raise self._error(NamingError, f"[NAM-0010] {e}") from e

        target = self._classify(path)
        if target is None:
            log_debug(self.context, f"Skipping '{path}'")
            return

        if target.is_dir():
            self._walk_dir(target, qualify(prefix, segment), out)
            return

        text = self._read_source(target)
        if segment == PACKAGE_INIT_STEM:
            if not prefix:
                raise self._error(
                    NamingError,
                    f"[NAM-0020] package initializer '{path}' is at the tree root and has no package name",
                )
            log_debug(self.context, f"Found package '{prefix}' at '{target}'")
            out.append(ModuleEntry(prefix, text, is_package=True, origin=target))
        else:
            name = qualify(prefix, segment)
            log_debug(self.context, f"Found module '{name}' at '{target}'")
            out.append(ModuleEntry(name, text, is_package=False, origin=target))

    def _classify(self, path: Path) -> Optional[Path]:
        suffix = path.suffix
        if suffix == SOURCE_SUFFIX:
            return None if path.is_dir() else path
        if not suffix and path.is_dir():
            return path
        if suffix == LINK_SUFFIX:
            return self._resolve_link(path)
        return None

    def _resolve_link(self, link_path: Path) -> Path:
        try:
            target = read_link_target(link_path)
        except (OSError, UnicodeDecodeError) as e:
            raise self._error(SourceIOError, f"[IO-0030] Couldn't read link file '{link_path}': {e}") from e
        except ValueError as e:
            raise self._error(SourceIOError, f"[IO-0031] {e}") from e
        log_debug(self.context, f"Link '{link_path}' -> '{target}'")
        return target

    def _read_source(self, path: Path) -> str:
        try:
            return path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            raise self._error(SourceIOError, f"[IO-0020] Error reading file '{path}': {e}") from e
