"""
Main Entry Point for the minipack CLI.

Parses arguments and dispatches to the handlers in `minipack.cli.commands`.
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from minipack import __version__
from minipack.cli import commands
from minipack.utils.console import console


def _add_build_arguments(cmd: argparse.ArgumentParser) -> None:
  cmd.add_argument(
    "--entry",
    nargs="+",
    default=None,
    metavar="[NAME=]PATH",
    help="Entry file(s), optionally named (default: from pyproject.toml)",
  )
  cmd.add_argument("--root", type=Path, default=None, help="Project root (default: pyproject.toml directory)")
  cmd.add_argument(
    "--config-dir",
    type=Path,
    default=None,
    help="Directory to start the pyproject.toml search from (default: cwd)",
  )
  cmd.add_argument("-v", "--verbose", action="store_true", help="Log every module as it is built")


def main(argv: Optional[List[str]] = None) -> int:
  """
  Main CLI entry point.

  Args:
      argv: Optional list of command line arguments (defaults to sys.argv).

  Returns:
      int: Exit code (0 for success, 1 for failure).
  """
  parser = argparse.ArgumentParser(description="minipack: bundle a Python module graph into one script")
  parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")

  subparsers = parser.add_subparsers(dest="command", required=True)

  # --- Command: BUNDLE ---
  cmd_bundle = subparsers.add_parser("bundle", help="Build the module graph and write the bundle")
  _add_build_arguments(cmd_bundle)
  cmd_bundle.add_argument("--out", type=Path, default=None, help="Output directory (default: dist)")
  cmd_bundle.add_argument("--filename", default=None, help="Artifact file name (default: bundle.py)")

  # --- Command: GRAPH ---
  cmd_graph = subparsers.add_parser("graph", help="Print the module graph without writing a bundle")
  _add_build_arguments(cmd_graph)

  args = parser.parse_args(argv)

  if args.verbose:
    console.set_level(logging.DEBUG)

  if args.command == "bundle":
    return commands.handle_bundle(args.entry, args.out, args.filename, args.root, args.config_dir)

  elif args.command == "graph":
    return commands.handle_graph(args.entry, args.root, args.config_dir)

  return 1


if __name__ == "__main__":
  sys.exit(main())
