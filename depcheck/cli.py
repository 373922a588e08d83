"""Command line entry point."""

from __future__ import annotations

import argparse
import sys
from typing import Sequence

from depcheck.analysis import AnalysisError, analyze_package, analyze_package_file
from depcheck.report import render_check, render_file

__all__ = ["build_parser", "main"]

_ROOT_DESCRIPTION = """\
DepCheck is a CLI tool that helps you verify if specific package versions exist
in various package ecosystems. It can check:
- Node.js packages from package.json
- Python packages from requirements.txt
- Single package versions directly"""

_CHECK_DESCRIPTION = """\
Check a specific package version for updates and vulnerabilities.
Example: depcheck check express 4.17.1"""

_FILE_DESCRIPTION = """\
Check dependencies from a package file (e.g., package.json, requirements.txt).
The tool will automatically detect the file type and check all dependencies."""


class _CommandError(Exception):
    """A command failed; the message is shown to the user."""


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser with its check and file commands."""
    parser = argparse.ArgumentParser(
        prog="depcheck",
        description=_ROOT_DESCRIPTION,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    commands = parser.add_subparsers(dest="command", metavar="command")

    check = commands.add_parser(
        "check",
        help="Check a specific package version",
        description=_CHECK_DESCRIPTION,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    check.add_argument("package")
    check.add_argument("version")

    file_command = commands.add_parser(
        "file",
        help="Check dependencies from a package file",
        description=_FILE_DESCRIPTION,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    file_command.add_argument("path")
    return parser


def _run_check(package: str, version: str) -> None:
    try:
        analysis = analyze_package(package, version)
    except AnalysisError as err:
        raise _CommandError(f"failed to analyze package: {err}") from err
    print(render_check(analysis), end="")


def _run_file(path: str) -> None:
    try:
        handle = open(path, encoding="utf-8")
    except OSError as err:
        raise _CommandError(f"failed to open file {path}: {err.strerror or err}") from err
    with handle:
        print(f"📦 Reading dependencies from {path}...")
        try:
            analyses = analyze_package_file(handle)
        except (AnalysisError, UnicodeDecodeError) as err:
            raise _CommandError(f"failed to analyze package file: {err}") from err
    print(render_file(analyses), end="")


def main(argv: Sequence[str] | None = None) -> int:
    """Run the command line tool and return its exit status."""
    parser = build_parser()
    args = parser.parse_args(argv)
    try:
        if args.command == "check":
            _run_check(args.package, args.version)
        elif args.command == "file":
            _run_file(args.path)
        else:
            parser.print_help()
    except _CommandError as err:
        print(f"Error: {err}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())