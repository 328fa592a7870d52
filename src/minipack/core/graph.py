"""
Module Graph Builder.

Performs the depth-first discovery of every module reachable from the entry
files. For each module it:

1.  Computes the canonical identity (``"./" + root-relative posix path``).
2.  Loads the text through the `SourceTransformer`.
3.  Rewrites load-expressions with the `ModuleRewriter`.
4.  Recurses into every dependency, then records the module in the registry.

Visits are tracked per identity in three states. A module already done is not
read, transformed or parsed again; reaching a module that is still in progress
means the graph has a cycle, reported as `CyclicDependencyError`.
"""

import posixpath
from enum import Enum
from pathlib import Path
from typing import Dict, List, Optional

from pydantic import BaseModel, Field

from minipack.config import DEFAULT_ENTRY_NAME
from minipack.core.rewriter import ModuleRewriter
from minipack.core.transformer import SourceTransformer
from minipack.errors import CyclicDependencyError, ResolutionError
from minipack.utils.console import log_debug


class VisitState(str, Enum):
  """Traversal state of a module identity."""

  UNVISITED = "unvisited"
  IN_PROGRESS = "in_progress"
  DONE = "done"


class ModuleRecord(BaseModel):
  """
  A fully processed module.
  """

  identity: str = Field(..., description="Canonical identity, e.g. './lib/util.py'.")
  path: Path = Field(..., description="Absolute file path the module was read from.")
  code: str = Field(..., description="Rewritten source text.")
  dependencies: List[str] = Field(default_factory=list, description="Dependency identities in discovery order.")


def module_identity(path: Path, root: Path) -> str:
  """
  Computes the canonical identity of a file.

  Args:
      path: Absolute file path.
      root: Project root.

  Returns:
      str: ``"./"`` followed by the root-relative forward-slash path.

  Raises:
      ResolutionError: If the path lies outside the root.
  """
  try:
    relative = Path(path).relative_to(root)
  except ValueError:
    raise ResolutionError(str(path), reason=f"outside the project root {root}")
  return "./" + relative.as_posix()


class ModuleGraphBuilder:
  """
  Builds the module registry for one run.

  Attributes:
      root (Path): Project root identities are relative to.
      modules (Dict[str, ModuleRecord]): Registry keyed by identity. Only grows.
      entries (Dict[str, str]): Entry name to entry identity, in build order.
  """

  def __init__(self, root: Path, transformer: SourceTransformer, rewriter: ModuleRewriter) -> None:
    self.root = Path(root)
    self.transformer = transformer
    self.rewriter = rewriter
    self.modules: Dict[str, ModuleRecord] = {}
    self.entries: Dict[str, str] = {}
    self._state: Dict[str, VisitState] = {}
    self._stack: List[str] = []

  @property
  def entry_id(self) -> Optional[str]:
    """Identity of the first recorded entry, if any."""
    return next(iter(self.entries.values()), None)

  @property
  def registry(self) -> Dict[str, str]:
    """Identity to rewritten text, as embedded in the bundle."""
    return {identity: record.code for identity, record in self.modules.items()}

  def state_of(self, identity: str) -> VisitState:
    return self._state.get(identity, VisitState.UNVISITED)

  def build_module(self, path: Path, is_entry: bool = False, name: str = DEFAULT_ENTRY_NAME) -> str:
    """
    Discovers a module and, recursively, all of its dependencies.

    Args:
        path: Absolute path of the module file.
        is_entry: Records the module as the entry called `name`.
        name: Entry name used when `is_entry` is set.

    Returns:
        str: The module identity.

    Raises:
        ResolutionError: If the file (or a dependency) does not exist.
        CyclicDependencyError: If a dependency is already being built.
        FileReadError, ModuleSyntaxError, InvalidDependencyError: Propagated.
    """
    path = Path(path)
    identity = module_identity(path, self.root)

    if is_entry:
      self.entries[name] = identity

    state = self.state_of(identity)
    if state is VisitState.DONE:
      return identity
    if state is VisitState.IN_PROGRESS:
      start = self._stack.index(identity)
      raise CyclicDependencyError(self._stack[start:] + [identity])

    importer = self._stack[-1] if self._stack else None
    if not path.is_file():
      raise ResolutionError(identity, importer)

    self._state[identity] = VisitState.IN_PROGRESS
    self._stack.append(identity)
    try:
      source = self.transformer.get_source(path)
      code, dependencies = self.rewriter.parse_source(source, posixpath.dirname(identity), identity)
      log_debug(f"Built [path]{identity}[/path] ({len(dependencies)} dependencies)")

      for dep in dependencies:
        self.build_module(self.root / dep)
    finally:
      self._stack.pop()

    self.modules[identity] = ModuleRecord(identity=identity, path=path, code=code, dependencies=dependencies)
    self._state[identity] = VisitState.DONE
    return identity
