"""
Compiler: orchestration of one bundling run.

The compiler wires configuration into the pipeline stages and fires the
lifecycle phases around them:

1.  **Entry resolution** (``beforeEntryOptions`` / ``afterEntryOptions``):
    entry paths are made absolute against the project root.
2.  **Graph construction** (``beforeCompile`` / ``afterCompile``): the
    `ModuleGraphBuilder` discovers every module reachable from each entry.
3.  **Emission** (``beforeEmitFile`` / ``afterEmitFile``): the `BundleEmitter`
    writes the artifact.

``run`` and ``done`` wrap the whole sequence with a status string. Any error
aborts the run; an error before emission leaves no output file behind.
"""

from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, Field

from minipack.config import BundleConfig
from minipack.core.emitter import BundleEmitter
from minipack.core.graph import ModuleGraphBuilder
from minipack.core.hooks import CompilerHooks, load_plugin
from minipack.core.rewriter import ModuleRewriter
from minipack.core.transformer import SourceTransformer
from minipack.utils.console import log_info, log_success

RUN_STATUS = "minipack run"
DONE_STATUS = "minipack done"


class BundleResult(BaseModel):
  """
  Summary of a finished run.
  """

  output_file: Path = Field(..., description="Where the artifact was written.")
  entries: Dict[str, str] = Field(default_factory=dict, description="Entry name to identity.")
  modules: List[str] = Field(default_factory=list, description="Bundled module identities.")


class Compiler:
  """
  Bundles a module graph into one artifact.

  Attributes:
      config (BundleConfig): The read-only run configuration.
      root (Path): Absolute project root.
      hooks (CompilerHooks): Lifecycle phases plugins tap into.
      plugins (List[Any]): Installed plugin objects.
      assets (Dict[Path, str]): Emitted files and their contents.
  """

  def __init__(self, config: Union[BundleConfig, Dict[str, Any]]) -> None:
    """
    Prepares the pipeline and installs plugins.

    Args:
        config: A `BundleConfig` or a raw mapping validated into one.

    Raises:
        ConfigError: For invalid settings, transforms or plugins.
    """
    if not isinstance(config, BundleConfig):
      config = BundleConfig.from_mapping(config)

    self.config = config
    self.root = config.root.resolve()
    self.hooks = CompilerHooks()
    self.assets: Dict[Path, str] = {}

    self.transformer = SourceTransformer(config.rules)
    self.rewriter = ModuleRewriter(
      load_function=config.load_function,
      runtime_function=config.runtime_function,
      default_extension=config.default_extension,
    )
    self.builder = ModuleGraphBuilder(self.root, self.transformer, self.rewriter)
    self.emitter = BundleEmitter(
      self.transformer,
      config.output_file,
      runtime_function=config.runtime_function,
    )

    self.plugins: List[Any] = []
    self._init_plugins()

  def _init_plugins(self) -> None:
    for ref in self.config.plugins:
      plugin = load_plugin(ref)
      plugin.install(self)
      self.plugins.append(plugin)

  @property
  def modules(self) -> Dict[str, str]:
    """The module registry: identity to rewritten text."""
    return self.builder.registry

  @property
  def entry_id(self) -> Optional[str]:
    return self.builder.entry_id

  @property
  def output_file(self) -> Path:
    return self.emitter.output_file

  def resolve_entries(self) -> Dict[str, Path]:
    """
    Makes every configured entry path absolute.

    Returns:
        Dict[str, Path]: Entry name to absolute path, in declaration order.
    """
    resolved = {}
    for name, path in self.config.entry.items():
      path = Path(path)
      resolved[name] = (path if path.is_absolute() else self.root / path).resolve()
    return resolved

  def compile(self, entries: Dict[str, Path]) -> None:
    """Builds the module graph for every entry into the shared registry."""
    for name, path in entries.items():
      self.builder.build_module(path, is_entry=True, name=name)

  def emit_file(self) -> str:
    """Writes the artifact and records it in `assets`."""
    code = self.emitter.emit_file(self.modules, self.builder.entries)
    self.assets[self.output_file] = code
    return code

  def build(self) -> Dict[str, str]:
    """
    Resolves entries and builds the graph without emitting.

    Returns:
        Dict[str, str]: The module registry.
    """
    self.compile(self.resolve_entries())
    return self.modules

  def run(self) -> BundleResult:
    """
    Executes a full run, firing every lifecycle phase.

    Returns:
        BundleResult: Output location, entries and bundled identities.

    Raises:
        BundleError: Any failure of a stage; hook callback exceptions propagate unchanged.
    """
    self.hooks.run.call(RUN_STATUS)

    self.hooks.before_entry_options.call()
    entries = self.resolve_entries()
    self.hooks.after_entry_options.call()

    self.hooks.before_compile.call()
    self.compile(entries)
    self.hooks.after_compile.call()
    log_info(f"Built {len(self.builder.modules)} modules from {len(entries)} entr{'y' if len(entries) == 1 else 'ies'}")

    self.hooks.before_emit_file.call()
    self.emit_file()
    self.hooks.after_emit_file.call()
    log_success(f"Bundle written to [path]{self.output_file}[/path]")

    self.hooks.done.call(DONE_STATUS)

    return BundleResult(
      output_file=self.output_file,
      entries=dict(self.builder.entries),
      modules=list(self.builder.modules),
    )
