#  SPDX-License-Identifier: MIT OR Apache-2.0
#  Copyright (c) 2026 gwz

from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Tuple

from freeze_bundle import BundleAssembler, FrozenBundle
from freeze_compiler import SourceCompileError, UnitCompiler, make_unit_compiler
from freeze_context import FreezeContext
from freeze_diagnostics import (
    BuildEnvironmentError,
    CompileError,
    Diagnostic,
    FreezeError,
    RelatedLocation,
    SourceIOError,
)
from freeze_invocation import (
    DEFAULT_INVOCATION_FILENAME,
    Invocation,
    InvocationSyntaxError,
    Span,
    parse_invocation,
)
from freeze_logger import log_debug, log_info, log_stage
from freeze_paths import BUILD_ROOT_ENV, BuildRoot
from freeze_request import (
    CompilationRequest,
    CompileMode,
    InlineSource,
    SingleFileSource,
    TreeSource,
    validate_invocation,
)
from freeze_walker import ModuleEntry, ModuleTreeWalker


@dataclass
class FreezeResult:
    """
    Outcome of one freeze invocation.

    On success `bundle` holds every frozen module; on failure it is None and
    `diagnostics` explains why. There is never a partial bundle.
    """
    request: Optional[CompilationRequest] = None
    bundle: Optional[FrozenBundle] = None
    diagnostics: List[Diagnostic] = field(default_factory=list)

    def has_errors(self) -> bool:
        return any(d.kind == "error" for d in self.diagnostics)


class FreezeDriver:
    """
    Freeze pipeline:
      - validate the invocation into a CompilationRequest
      - resolve the request's source into ModuleEntry values
      - compile every entry
      - assemble the FrozenBundle

    Entry points:
      - freeze_text(text): parse invocation text, then freeze().
      - freeze(invocation): validate + build, reporting errors as diagnostics.
      - build_bundle(request): resolve, compile and assemble; raises FreezeError.
    """

    def __init__(
        self,
        build_root: Optional[BuildRoot | str | Path] = None,
        context: Optional[FreezeContext] = None,
        compiler: Optional[UnitCompiler] = None,
    ):
        if build_root is not None and not isinstance(build_root, BuildRoot):
            build_root = BuildRoot(Path(build_root))
        self.build_root: Optional[BuildRoot] = build_root
        self.context = context or FreezeContext.default()
        self.compiler = compiler or make_unit_compiler(self.context.optimize)

    # --- Public API ---

    def freeze_text(self, text: str, filename: str = DEFAULT_INVOCATION_FILENAME) -> FreezeResult:
        try:
            invocation = parse_invocation(text, filename)
        except InvocationSyntaxError as e:
            error = FreezeError(e.message, span=e.span, filename=e.filename)
            return FreezeResult(diagnostics=error.to_diagnostics())
        return self.freeze(invocation)

    def freeze(self, invocation: Invocation) -> FreezeResult:
        result = FreezeResult()
        try:
            log_stage(self.context, "Validating invocation")
            result.request = validate_invocation(invocation)
            result.bundle = self.build_bundle(result.request)
        except FreezeError as e:
            result.bundle = None
            result.diagnostics.extend(e.to_diagnostics())
        return result

    def build_bundle(self, request: CompilationRequest) -> FrozenBundle:
        entries, mode = self.resolve_entries(request)

        log_stage(self.context, "Compiling", f"{len(entries)} module(s)")
        assembler = BundleAssembler(span=request.span, filename=request.filename)
        for entry in entries:
            unit = self._compile_entry(request, entry, mode)
            assembler.add(entry.qualified_name, unit, is_package=entry.is_package, origin=entry.origin)

        bundle = assembler.finish()
        log_info(self.context, f"Bundle contains {len(bundle)} module(s), {len(bundle.packages())} package(s)")
        return bundle

    def resolve_entries(self, request: CompilationRequest) -> Tuple[List[ModuleEntry], CompileMode]:
        """
        Turn the request's source into ModuleEntry values, together with the
        mode they must be compiled in.
        """
        source = request.source

        if isinstance(source, InlineSource):
            log_debug(self.context, f"Inline source frozen as '{request.bundle_root_name}'")
            return [ModuleEntry(request.bundle_root_name, source.text)], request.mode

        if isinstance(source, SingleFileSource):
            path = self._resolve_path(request, source.path)
            if path.is_dir():
                # A directory named by `file` is walked as a tree; module_name
                # does not apply and every unit is a module body.
                log_debug(self.context, f"'{path}' is a directory, walking it as a tree")
                walker = self._walker(request)
                return walker.walk(path, "", label=str(path)), CompileMode.EXEC
            try:
                text = path.read_text(encoding="utf-8")
            except (OSError, UnicodeDecodeError) as e:
                raise SourceIOError(
                    f"[IO-0020] Error reading file '{path}': {e}",
                    span=request.span,
                    filename=request.filename,
                ) from e
            return [ModuleEntry(request.bundle_root_name, text, origin=path)], request.mode

        if isinstance(source, TreeSource):
            path = self._resolve_path(request, source.path)
            return self._walker(request).walk(path, ""), request.mode

        raise TypeError(f"unsupported source kind: {type(source).__name__}")

    # --- Internal helpers ---

    def _walker(self, request: CompilationRequest) -> ModuleTreeWalker:
        return ModuleTreeWalker(span=request.span, filename=request.filename, context=self.context)

    def _resolve_path(self, request: CompilationRequest, rel_path: Path) -> Path:
        if self.build_root is None:
            raise BuildEnvironmentError(
                f"[ENV-0010] no build root: set {BUILD_ROOT_ENV} or pass --build-root to resolve '{rel_path}'",
                span=request.span,
                filename=request.filename,
            )
        path = self.build_root.resolve(rel_path)
        log_debug(self.context, f"Resolved '{rel_path}' to '{path}'")
        return path

    def _compile_entry(self, request: CompilationRequest, entry: ModuleEntry, mode: CompileMode):
        log_debug(self.context, f"Compiling '{entry.qualified_name}' ({mode.value})")
        try:
            return self.compiler(entry.source_text, mode, entry.qualified_name)
        except SourceCompileError as e:
            related = None
            if entry.origin is not None:
                span = None
                if e.line is not None:
                    column = e.column or 1
                    span = Span(e.line, column, e.line, column)
                related = RelatedLocation(
                    e.message,
                    filename=str(entry.origin),
                    span=span,
                    module_name=entry.qualified_name,
                )
            raise CompileError(
                f"[CMP-0010] Compile error in '{entry.qualified_name}': {e.message}",
                span=request.span,
                filename=request.filename,
                module_name=entry.qualified_name,
                related=related,
            ) from e
