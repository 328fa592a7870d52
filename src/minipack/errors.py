"""
Error Taxonomy for minipack.

Every failure raised by the bundling core derives from `BundleError`. The core
never recovers locally: an error aborts the in-progress run and surfaces to the
top-level caller (the CLI handler or the programmatic `minipack.bundle` call).
"""

from typing import List, Optional


class BundleError(Exception):
  """Base class for all unrecoverable bundling failures."""


class ConfigError(BundleError):
  """Malformed or missing configuration (entries, rules, plugins, transforms)."""


class FileReadError(BundleError):
  """
  A source file or the bundle template could not be read.

  Attributes:
      path (str): The path that failed to load.
  """

  def __init__(self, path: str, reason: str) -> None:
    self.path = path
    super().__init__(f"Cannot read '{path}': {reason}")


class WriteError(BundleError):
  """The bundle artifact could not be written."""

  def __init__(self, path: str, reason: str) -> None:
    self.path = path
    super().__init__(f"Cannot write '{path}': {reason}")


class ModuleSyntaxError(BundleError):
  """
  A module's text (after transforms) is not valid Python.

  Attributes:
      identity (str): The module identity whose source failed to parse.
  """

  def __init__(self, identity: str, reason: str) -> None:
    self.identity = identity
    super().__init__(f"Syntax error in {identity}: {reason}")


class TransformError(BundleError):
  """
  A loader rule failed on a file.

  Attributes:
      path (str): The file being transformed.
      rule (str): Pattern of the rule whose chain failed.
  """

  def __init__(self, path: str, rule: str, reason: str) -> None:
    self.path = path
    self.rule = rule
    super().__init__(f"Rule '{rule}' failed on '{path}': {reason}")


class InvalidDependencyError(BundleError):
  """A load-expression uses a non-literal or otherwise unsupported target."""


class ResolutionError(BundleError):
  """
  A dependency resolves to a path that does not exist.

  Attributes:
      identity (str): The missing module identity.
      importer (Optional[str]): The module that requested it, if any.
  """

  def __init__(self, identity: str, importer: Optional[str] = None, reason: str = "file not found") -> None:
    self.identity = identity
    self.importer = importer
    location = f" (required by {importer})" if importer else ""
    super().__init__(f"Cannot resolve {identity}{location}: {reason}")


class CyclicDependencyError(BundleError):
  """
  The module graph contains a cycle.

  Attributes:
      cycle (List[str]): Identities forming the cycle, first element repeated at the end.
  """

  def __init__(self, cycle: List[str]) -> None:
    self.cycle = cycle
    super().__init__("Circular dependency detected: " + " -> ".join(cycle))
