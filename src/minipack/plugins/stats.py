"""
Build statistics plugin.

Times each stage of a run and logs a summary once the bundle is written:

.. code-block:: toml

    [tool.minipack]
    plugins = ["minipack.plugins.stats:StatsPlugin"]
"""

import time
from typing import Dict, Optional

from minipack.utils.console import log_info


class StatsPlugin:
  """
  Records stage durations and the bundle size.

  Attributes:
      timings (Dict[str, float]): Seconds spent per stage ("entry", "compile", "emit").
      module_count (int): Modules in the registry after compilation.
      bundle_size (int): Characters written to the artifact.
  """

  def __init__(self) -> None:
    self.timings: Dict[str, float] = {}
    self.module_count = 0
    self.bundle_size = 0
    self._started: Optional[float] = None

  def install(self, compiler) -> None:
    hooks = compiler.hooks

    def start(*_args) -> None:
      self._started = time.perf_counter()

    def stop(stage: str):
      def callback(*_args) -> None:
        self.timings[stage] = time.perf_counter() - (self._started or time.perf_counter())

      return callback

    def count_modules() -> None:
      self.module_count = len(compiler.modules)

    def measure_output() -> None:
      self.bundle_size = len(compiler.assets.get(compiler.output_file, ""))

    hooks.before_entry_options.tap(start, name="stats")
    hooks.after_entry_options.tap(stop("entry"), name="stats")
    hooks.before_compile.tap(start, name="stats")
    hooks.after_compile.tap(stop("compile"), name="stats")
    hooks.after_compile.tap(count_modules, name="stats")
    hooks.before_emit_file.tap(start, name="stats")
    hooks.after_emit_file.tap(stop("emit"), name="stats")
    hooks.after_emit_file.tap(measure_output, name="stats")
    hooks.done.tap(lambda status: self.report(status), name="stats")

  def report(self, status: str) -> None:
    total = sum(self.timings.values())
    log_info(f"{status}: {self.module_count} modules, {self.bundle_size} chars in {total * 1000:.1f} ms")
