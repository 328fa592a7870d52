"""
Lifecycle Hooks and Plugin Loading.

A compiler run is split into named phases. Each phase owns an ordered list of
callbacks; the compiler calls them synchronously, in registration order, at
the phase boundary. Plugins are plain objects with an ``install(compiler)``
method that taps callbacks onto whichever phases they care about.

Phases, in firing order::

    run(status) -> beforeEntryOptions -> afterEntryOptions -> beforeCompile
    -> afterCompile -> beforeEmitFile -> afterEmitFile -> done(status)

Usage:

.. code-block:: python

    class AnnouncePlugin:
      def install(self, compiler):
        compiler.hooks.done.tap(lambda status: print(status))
"""

import importlib
import re
from typing import TYPE_CHECKING, Any, Callable, List, Optional, Protocol, Tuple, runtime_checkable

from minipack.errors import ConfigError

if TYPE_CHECKING:
  from minipack.core.compiler import Compiler

Callback = Callable[..., None]

PHASES: Tuple[str, ...] = (
  "run",
  "beforeEntryOptions",
  "afterEntryOptions",
  "beforeCompile",
  "afterCompile",
  "beforeEmitFile",
  "afterEmitFile",
  "done",
)


@runtime_checkable
class Plugin(Protocol):
  """Capability interface for compiler extensions."""

  def install(self, compiler: "Compiler") -> None: ...


class SyncHook:
  """
  Ordered callback list for a single phase.

  Attributes:
      name (str): Phase name (camel case, as listed in `PHASES`).
      args (Tuple[str, ...]): Names of the arguments every call passes.
  """

  def __init__(self, name: str, args: Tuple[str, ...] = ()) -> None:
    self.name = name
    self.args = args
    self._taps: List[Tuple[str, Callback]] = []

  def tap(self, callback: Callback, name: Optional[str] = None) -> Callback:
    """
    Appends a callback. Returns it unchanged so `tap` works as a decorator.

    Args:
        callback: Called with the phase arguments.
        name: Label used in debugging output; defaults to the callable's name.
    """
    label = name or getattr(callback, "__qualname__", repr(callback))
    self._taps.append((label, callback))
    return callback

  def call(self, *args: Any) -> None:
    """
    Invokes every callback in registration order.

    Raises:
        TypeError: If the argument count differs from the phase declaration.
    """
    if len(args) != len(self.args):
      raise TypeError(f"Hook '{self.name}' expects arguments {self.args}, got {len(args)}")
    for _, callback in list(self._taps):
      callback(*args)

  @property
  def taps(self) -> List[str]:
    return [label for label, _ in self._taps]

  def __len__(self) -> int:
    return len(self._taps)

  def __repr__(self) -> str:
    return f"SyncHook({self.name!r}, taps={len(self._taps)})"


def _snake_case(name: str) -> str:
  return re.sub(r"(?<!^)(?=[A-Z])", "_", name).lower()


class CompilerHooks:
  """
  The fixed set of lifecycle phases exposed by a `Compiler`.

  Phases are attributes in snake case (``hooks.before_compile``); `get`
  accepts either the snake or camel spelling.
  """

  def __init__(self) -> None:
    self.run = SyncHook("run", ("status",))
    self.before_entry_options = SyncHook("beforeEntryOptions")
    self.after_entry_options = SyncHook("afterEntryOptions")
    self.before_compile = SyncHook("beforeCompile")
    self.after_compile = SyncHook("afterCompile")
    self.before_emit_file = SyncHook("beforeEmitFile")
    self.after_emit_file = SyncHook("afterEmitFile")
    self.done = SyncHook("done", ("status",))

  def get(self, phase: str) -> SyncHook:
    """
    Looks up a phase by name.

    Raises:
        KeyError: If the phase does not exist.
    """
    attr = _snake_case(phase)
    hook = getattr(self, attr, None)
    if not isinstance(hook, SyncHook):
      raise KeyError(f"Unknown hook phase '{phase}'. Known phases: {', '.join(PHASES)}")
    return hook

  def __iter__(self):
    return (self.get(phase) for phase in PHASES)


def load_plugin(ref: Any) -> Any:
  """
  Resolves a plugin declaration into a plugin object.

  Strings use the ``"package.module:Attr"`` form. A class is instantiated
  without arguments; any other attribute is used as is.

  Args:
      ref: A plugin object or an import reference string.

  Returns:
      An object exposing ``install(compiler)``.

  Raises:
      ConfigError: If the reference cannot be imported or lacks `install`.
  """
  plugin = ref
  if isinstance(ref, str):
    module_name, _, attr = ref.partition(":")
    if not module_name or not attr:
      raise ConfigError(f"Plugin reference '{ref}' must look like 'package.module:Attr'.")
    try:
      module = importlib.import_module(module_name)
      plugin = getattr(module, attr)
    except (ImportError, AttributeError) as e:
      raise ConfigError(f"Cannot load plugin '{ref}': {e}") from e

  if isinstance(plugin, type):
    plugin = plugin()

  if not callable(getattr(plugin, "install", None)):
    raise ConfigError(f"Plugin {ref!r} does not define install(compiler).")
  return plugin
