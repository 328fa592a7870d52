"""
Source Transformer (Loader Pipeline) and Transform Registry.

Before a file is parsed it passes through the configured loader rules. Each
rule whose pattern matches the file path contributes a chain of pure
text-to-text transforms. A chain runs right-to-left: the last-declared
transform receives the raw file text and the first-declared one produces the
final text. Several matching rules apply cumulatively in declaration order.

Transforms are referenced by:
1.  A callable placed directly in the config.
2.  A name registered with `@register_transform` (built-ins live in
    `minipack.transforms`).
3.  An import reference ``"package.module:function"``.
"""

import importlib
import sys
from functools import reduce
from pathlib import Path
from typing import Callable, Dict, List, Sequence, Tuple, Union

from rich.markup import escape

from minipack.config import Rule, TransformRef
from minipack.errors import ConfigError, FileReadError, TransformError
from minipack.utils.console import log_debug

Transform = Callable[[str], str]

_TRANSFORMS: Dict[str, Transform] = {}
_BUILTINS_LOADED = False


def register_transform(name: str) -> Callable[[Transform], Transform]:
  """
  Decorator registering a function as a named transform.

  Args:
      name: The id rules refer to in their `use` list.
  """

  def decorator(func: Transform) -> Transform:
    _TRANSFORMS[name] = func
    return func

  return decorator


def get_transform(name: str) -> Union[Transform, None]:
  """Retrieves a registered transform, loading the built-ins on first use."""
  global _BUILTINS_LOADED
  if not _BUILTINS_LOADED:
    # Re-running the module re-registers built-ins after clear_transforms().
    if "minipack.transforms" in sys.modules:
      importlib.reload(sys.modules["minipack.transforms"])
    else:
      importlib.import_module("minipack.transforms")
    _BUILTINS_LOADED = True
  return _TRANSFORMS.get(name)


def clear_transforms() -> None:
  """Resets the registry. Primarily for testing."""
  global _BUILTINS_LOADED
  _TRANSFORMS.clear()
  _BUILTINS_LOADED = False


def resolve_transform(ref: TransformRef) -> Transform:
  """
  Turns a transform reference from a rule into a callable.

  Raises:
      ConfigError: If the reference names nothing callable.
  """
  if callable(ref):
    return ref

  registered = get_transform(ref)
  if registered is not None:
    return registered

  module_name, _, attr = ref.partition(":")
  if module_name and attr:
    try:
      func = getattr(importlib.import_module(module_name), attr)
    except (ImportError, AttributeError) as e:
      raise ConfigError(f"Cannot load transform '{ref}': {e}") from e
    if callable(func):
      return func

  raise ConfigError(f"Unknown transform '{ref}'.")


def apply_chain(chain: Sequence[Transform], text: str) -> str:
  """
  Pipes text through a chain right-to-left.

  ``apply_chain([a, b], t) == a(b(t))``

  Raises:
      TypeError: If a transform returns something other than `str`.
  """

  def step(current: str, transform: Transform) -> str:
    result = transform(current)
    if not isinstance(result, str):
      name = getattr(transform, "__name__", repr(transform))
      raise TypeError(f"Transform {name} returned {type(result).__name__}, expected str")
    return result

  return reduce(step, reversed(chain), text)


class SourceTransformer:
  """
  Reads files and runs them through the matching loader rules.

  Transform references are resolved once, at construction, so configuration
  mistakes surface before any file is read.
  """

  def __init__(self, rules: Sequence[Rule]) -> None:
    self._rules: List[Tuple[Rule, List[Transform]]] = [
      (rule, [resolve_transform(ref) for ref in rule.use]) for rule in rules
    ]

  def read(self, path: Path) -> str:
    try:
      return Path(path).read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
      raise FileReadError(str(path), str(e)) from e

  def transform(self, path: Path, text: str) -> str:
    """
    Applies every matching rule to already-loaded text.

    Args:
        path: Path the rule patterns are tested against.
        text: The text to transform.

    Returns:
        str: The transformed text (unchanged when no rule matches).

    Raises:
        TransformError: If a transform raises or returns a non-`str`; the
            original exception is chained.
    """
    for rule, chain in self._rules:
      if rule.matches(path):
        log_debug(f"Applying rule [code]{escape(rule.test)}[/code] to [path]{path}[/path]")
        try:
          text = apply_chain(chain, text)
        except Exception as e:
          raise TransformError(str(path), rule.test, f"{type(e).__name__}: {e}") from e
    return text

  def get_source(self, path: Path) -> str:
    """
    Reads a file and runs it through the matching transform chains.

    Raises:
        FileReadError: If the file is missing or unreadable.
        TransformError: If a matching rule fails on the text.
    """
    return self.transform(path, self.read(path))
