"""
Graph Command Handler.

Implements ``minipack graph``: builds the module graph exactly like a bundle
run (same rules, same plugins) but prints it instead of emitting the artifact.
"""

from pathlib import Path
from typing import List, Optional

from rich.markup import escape
from rich.table import Table

from minipack.cli.handlers.bundle import load_cli_config
from minipack.core.compiler import Compiler
from minipack.core.graph import ModuleRecord
from minipack.errors import BundleError
from minipack.utils.console import console, log_error, log_success


def handle_graph(
  entry_args: Optional[List[str]],
  root: Optional[Path] = None,
  config_dir: Optional[Path] = None,
) -> int:
  """
  Handles the 'graph' command execution.

  Returns:
      int: Exit code (0 for success, 1 for failure).
  """
  try:
    compiler = Compiler(load_cli_config(entry_args, root, config_dir))
    compiler.build()
  except BundleError as e:
    log_error(f"{type(e).__name__}: {escape(str(e))}")
    return 1

  _print_graph(list(compiler.builder.modules.values()), compiler.builder.entries)
  log_success(f"{len(compiler.builder.modules)} modules reachable from {len(compiler.builder.entries)} entries.")
  return 0


def _print_graph(records: List[ModuleRecord], entries: dict) -> None:
  """
  Renders the registry as a table, entries marked in the first column.

  Args:
      records: Built modules in registry order.
      entries: Entry name to identity.
  """
  entry_names = {identity: name for name, identity in entries.items()}

  table = Table(title="Module Graph")
  table.add_column("Entry", style="green")
  table.add_column("Module", style="cyan")
  table.add_column("Dependencies")

  for record in records:
    deps = ", ".join(dict.fromkeys(record.dependencies)) or "-"
    table.add_row(entry_names.get(record.identity, ""), record.identity, deps)

  console.print(table)
