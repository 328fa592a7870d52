"""
CLI Command Handlers Facade.

Re-exports handlers from `minipack.cli.handlers` so the dispatcher (and test
patches) target a single module.
"""

from minipack.cli.handlers.bundle import handle_bundle, load_cli_config
from minipack.cli.handlers.graph import handle_graph

__all__ = [
  "handle_bundle",
  "handle_graph",
  "load_cli_config",
]
