"""
Bundle Command Handler.

Implements ``minipack bundle``:
1. Configuration loading (pyproject.toml + CLI overrides).
2. Compiler construction (plugin installation).
3. A full run: graph construction and artifact emission.

This is the top-level catch for `BundleError`: failures are logged and mapped
to exit code 1.
"""

from pathlib import Path
from typing import List, Optional

from rich.markup import escape

from minipack.config import BundleConfig, parse_entry_args
from minipack.core.compiler import Compiler
from minipack.errors import BundleError
from minipack.utils.console import console, log_error


def load_cli_config(
  entry_args: Optional[List[str]],
  root: Optional[Path] = None,
  config_dir: Optional[Path] = None,
  output_path: Optional[Path] = None,
  filename: Optional[str] = None,
) -> BundleConfig:
  """
  Merges pyproject.toml settings with command line overrides.

  Raises:
      ConfigError: If the merged configuration is invalid.
  """
  return BundleConfig.load(
    search_path=config_dir,
    entry=parse_entry_args(entry_args) or None,
    output_path=output_path.resolve() if output_path else None,
    filename=filename,
    root=root,
  )


def handle_bundle(
  entry_args: Optional[List[str]],
  output_path: Optional[Path],
  filename: Optional[str],
  root: Optional[Path] = None,
  config_dir: Optional[Path] = None,
) -> int:
  """
  Handles the 'bundle' command execution.

  Args:
      entry_args: Raw ``[NAME=]PATH`` values from ``--entry``.
      output_path: Override for the output directory.
      filename: Override for the artifact name.
      root: Override for the project root.
      config_dir: Where to start looking for pyproject.toml.

  Returns:
      int: Exit code (0 for success, 1 for failure).
  """
  console.print("[bold]minipack[/bold] bundling...")
  try:
    config = load_cli_config(entry_args, root, config_dir, output_path, filename)
    result = Compiler(config).run()
  except BundleError as e:
    log_error(f"{type(e).__name__}: {escape(str(e))}")
    return 1

  console.print(f"{len(result.modules)} modules -> [path]{result.output_file}[/path]")
  return 0
