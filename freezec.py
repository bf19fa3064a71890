#  SPDX-License-Identifier: MIT OR Apache-2.0
#  Copyright (c) 2026 gwz

import argparse
import sys
from pathlib import Path
from typing import Dict, List, Optional, Tuple

from freeze_bundle import DEFAULT_BUNDLE_VARIABLE, dump_marshal, render_python_module
from freeze_context import FreezeContext, LogLevel
from freeze_diagnostics import Diagnostic
from freeze_driver import FreezeDriver, FreezeResult
from freeze_invocation import DEFAULT_INVOCATION_FILENAME
from freeze_logger import log_error, log_info
from freeze_paths import BUILD_ROOT_ENV, BuildRoot


def _load_file_lines(path: str, cache: Dict[str, List[str]]) -> List[str]:
    if path not in cache:
        text = Path(path).read_text(encoding="utf-8")
        cache[path] = text.splitlines()
    return cache[path]


def print_diagnostics(result: FreezeResult, file_cache: Dict[str, List[str]], context: FreezeContext) -> None:
    for diag in result.diagnostics:
        print_diagnostic_with_snippet(diag, file_cache, context)


def print_diagnostic_with_snippet(diag: Diagnostic, file_cache: Dict[str, List[str]], context: Optional[FreezeContext] = None) -> None:
    # First line: header
    log_error(context, diag.format())

    if not diag.filename or diag.line is None:
        return

    try:
        lines = _load_file_lines(diag.filename, file_cache)
    except (OSError, UnicodeDecodeError):
        # Can't read file; fall back to header only
        return

    line_idx = diag.line - 1
    if not (0 <= line_idx < len(lines)):
        return

    src_line = lines[line_idx]

    # "N | ..." gutter, wide enough for multi-digit line numbers
    width = max(5, len(str(diag.line)))
    gutter = f"{diag.line:>{width}} | "

    log_error(context, gutter + src_line)

    if diag.column is None:
        return

    start_col = max(1, diag.column)
    if diag.end_line is None or diag.end_column is None:
        end_col = start_col
    elif diag.end_line == diag.line:
        end_col = max(start_col, diag.end_column)
    else:
        end_col = len(src_line) + 1

    caret_width = max(1, end_col - start_col)
    caret_prefix = " " * width + " | " + " " * (start_col - 1)
    log_error(context, caret_prefix + "^" * caret_width)


def build_freeze_context(args: argparse.Namespace) -> FreezeContext:
    """Build a FreezeContext from command-line arguments."""
    verbosity = getattr(args, 'verbosity', 0)
    if verbosity >= 3:
        log_level = LogLevel.DEBUG
    elif verbosity >= 1:
        log_level = LogLevel.INFO
    else:
        log_level = LogLevel.ERROR

    return FreezeContext(
        optimize=min(getattr(args, 'optimize', 0), 2),
        log_rich_format=getattr(args, 'log', False),
        log_level=log_level,
    )


def build_build_root(context: FreezeContext, args: argparse.Namespace) -> Optional[BuildRoot]:
    if getattr(args, 'build_root', None):
        root = BuildRoot(Path(args.build_root))
    else:
        root = BuildRoot.from_env()
    if root is None:
        log_info(context, f"Build root: <none> (${BUILD_ROOT_ENV} not set)")
    else:
        log_info(context, f"Build root: '{root.root}'")
    return root


def _read_invocation(args: argparse.Namespace, context: FreezeContext) -> Optional[Tuple[str, str]]:
    """Return (text, filename) of the invocation, or None if it can't be read."""
    path = getattr(args, 'invocation_file', None)
    if path:
        try:
            return Path(path).read_text(encoding="utf-8"), str(path)
        except (OSError, UnicodeDecodeError) as e:
            log_error(context, f"error: [FZC-0020] cannot read invocation file {path}: {e}")
            return None
    return args.invocation, DEFAULT_INVOCATION_FILENAME


def _run_freeze(args: argparse.Namespace) -> Tuple[Optional[FreezeResult], FreezeContext, int]:
    """Run the freeze pipeline, returning (result, context, exit_code)."""
    context = build_freeze_context(args)
    source = _read_invocation(args, context)
    if source is None:
        return None, context, 1
    text, filename = source

    driver = FreezeDriver(build_root=build_build_root(context, args), context=context)
    result = driver.freeze_text(text, filename)

    file_cache: Dict[str, List[str]] = {filename: text.splitlines()}
    print_diagnostics(result, file_cache, context)
    exit_code = 1 if (result.bundle is None or result.has_errors()) else 0
    return result, context, exit_code


def cmd_build(args: argparse.Namespace) -> int:
    """Freeze the invocation's source and write the bundle."""
    result, context, exit_code = _run_freeze(args)
    if exit_code != 0:
        return exit_code

    if args.format == "marshal":
        data = dump_marshal(result.bundle)
    else:
        try:
            data = render_python_module(result.bundle, args.variable)
        except ValueError as e:
            log_error(context, f"error: [FZC-0030] {e}")
            return 1

    if args.output:
        try:
            if isinstance(data, bytes):
                Path(args.output).write_bytes(data)
            else:
                Path(args.output).write_text(data, encoding="utf-8")
        except OSError as e:
            log_error(context, f"error: [FZC-0010] cannot write {args.output}: {e}")
            return 1
        log_info(context, f"Wrote {len(result.bundle)} module(s) to {args.output}")
    elif isinstance(data, bytes):
        sys.stdout.buffer.write(data)
        sys.stdout.flush()
    else:
        sys.stdout.write(data)

    return 0


def cmd_check(args: argparse.Namespace) -> int:
    """Resolve and compile without writing anything."""
    result, context, exit_code = _run_freeze(args)
    if exit_code == 0:
        log_info(context, f"OK: {len(result.bundle)} module(s)")
    return exit_code


def cmd_list(args: argparse.Namespace) -> int:
    """List the modules the invocation would freeze."""
    result, _, exit_code = _run_freeze(args)
    if exit_code != 0:
        return exit_code

    for name, mod in result.bundle.items():
        kind = "package" if mod.package else "module"
        print(f"{kind:<8} {name}")
    return 0


def _add_invocation_args(parser: argparse.ArgumentParser) -> None:
    """Add the invocation text / invocation file arguments."""
    group = parser.add_mutually_exclusive_group(required=True)
    group.add_argument(
        "invocation",
        nargs="?",
        help="Freeze invocation, e.g. 'dir = \"lib\", mode = \"exec\"'",
    )
    group.add_argument(
        "--invocation-file", "-f",
        help="Read the freeze invocation from a file",
    )


def main(argv=None) -> None:
    parser = argparse.ArgumentParser(prog="freezec", description="Freeze Python sources into a bundle of compiled modules")
    subparsers = parser.add_subparsers(dest="command", required=True, help="Command to run")

    parser.add_argument("-v", "--verbose",
                        action='count',
                        default=0,
                        dest='verbosity',
                        help="Increase verbosity: -v=INFO, -vvv=DEBUG")
    parser.add_argument("-l", "--log",
                        action='store_true',
                        default=False,
                        help="Enable rich log formatting (timestamps, levels)")
    parser.add_argument("-O",
                        action='count',
                        default=0,
                        dest='optimize',
                        help="Optimize compiled units: -O strips asserts, -OO also strips docstrings")
    parser.add_argument(
        "-B", "--build-root",
        help=f"Directory that 'file' and 'dir' paths are relative to (default: ${BUILD_ROOT_ENV})",
    )

    ###########################
    # build command
    ###########################
    p_build = subparsers.add_parser("build", help="Freeze sources and write the bundle")
    p_build.add_argument("--output", "-o", help="Output file (default: stdout)")
    p_build.add_argument("--format",
                         choices=["py", "marshal"],
                         default="py",
                         help="Bundle format: Python source or marshal bytes (default: py)")
    p_build.add_argument("--variable",
                         default=DEFAULT_BUNDLE_VARIABLE,
                         help=f"Variable name used by the py format (default: {DEFAULT_BUNDLE_VARIABLE})")
    _add_invocation_args(p_build)
    p_build.set_defaults(func=cmd_build)

    ###########################
    # check command
    ###########################
    p_check = subparsers.add_parser("check", help="Resolve and compile without writing a bundle")
    _add_invocation_args(p_check)
    p_check.set_defaults(func=cmd_check)

    ###########################
    # list command
    ###########################
    p_list = subparsers.add_parser("list", help="List the modules that would be frozen", aliases=["ls"])
    _add_invocation_args(p_list)
    p_list.set_defaults(func=cmd_list)

    args = parser.parse_args(argv)

    rc = args.func(args)
    raise SystemExit(rc)


if __name__ == "__main__":
    main()
