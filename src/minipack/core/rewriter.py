"""
Module Rewriter for load-expressions.

Turns the source of one module into the form executed inside the bundle:
every ``require("./relative/target")`` call becomes
``__bundle_require__("./root/relative/target.py")``, addressing the module by
its canonical identity, and the identities are returned as the module's
dependency list.

The rewrite is split into two passes over one LibCST tree:

1.  **Scan** (`LoadCallScanner`): a read-only visitor validates each
    load-expression, normalizes its target and emits a `RewriteAction`.
2.  **Patch** (`LoadCallPatcher`): a transformer applies the actions, located by
    node identity, and the tree is serialized back with ``Module.code``.

Formatting and comments of the module are preserved exactly; only the callee
name and the string literal of each load-expression change.
"""

import posixpath
from dataclasses import dataclass
from typing import Dict, List, Tuple

import libcst as cst

from minipack.errors import InvalidDependencyError, ModuleSyntaxError


@dataclass
class RewriteAction:
  """
  Instruction to retarget one load-expression.

  Attributes:
      node: The original `cst.Call` node (matched by object identity).
      identity: Canonical identity replacing the literal argument.
  """

  node: cst.Call
  identity: str


def normalize_dependency(target: str, module_dir: str, default_extension: str = ".py") -> str:
  """
  Converts a load target into a canonical module identity.

  Appends the default extension when the target has none, resolves it against
  the requesting module's directory and prefixes ``./``.

  Args:
      target: The literal given to the load function (e.g. ``"./util"``).
      module_dir: Root-relative directory of the requesting module (e.g. ``"./dir"``).
      default_extension: Extension used when the target has none.

  Returns:
      str: The identity, e.g. ``"./dir/util.py"``.

  Raises:
      InvalidDependencyError: For empty or absolute targets, or targets
          escaping the project root.

  Example:
      >>> normalize_dependency("./util", "./dir")
      './dir/util.py'
  """
  if not target:
    raise InvalidDependencyError("Load target must not be empty.")
  if target.startswith("/") or "\\" in target:
    raise InvalidDependencyError(f"Load target '{target}' must be a relative forward-slash path.")

  if not posixpath.splitext(target)[1]:
    target += default_extension

  joined = posixpath.normpath(posixpath.join(module_dir, target))
  if joined == ".." or joined.startswith("../"):
    raise InvalidDependencyError(f"Load target '{target}' from '{module_dir}' escapes the project root.")
  return "./" + joined


class LoadCallScanner(cst.CSTVisitor):
  """
  Collects load-expressions and their normalized identities.

  Attributes:
      actions (List[RewriteAction]): One action per load-expression, in source order.
      dependencies (List[str]): Identities in discovery order, duplicates kept.
  """

  def __init__(self, module_dir: str, load_function: str = "require", default_extension: str = ".py") -> None:
    self.module_dir = module_dir
    self.load_function = load_function
    self.default_extension = default_extension
    self.actions: List[RewriteAction] = []
    self.dependencies: List[str] = []

  def visit_Call(self, node: cst.Call) -> None:
    if not (isinstance(node.func, cst.Name) and node.func.value == self.load_function):
      return

    target = self._literal_target(node)
    identity = normalize_dependency(target, self.module_dir, self.default_extension)
    self.dependencies.append(identity)
    self.actions.append(RewriteAction(node=node, identity=identity))

  def _literal_target(self, node: cst.Call) -> str:
    """
    Extracts the string literal naming the target.

    Dynamic targets (variables, f-strings, concatenations) cannot be resolved
    at bundle time and are rejected.
    """
    fn = self.load_function
    if len(node.args) != 1:
      raise InvalidDependencyError(f"{fn}() takes exactly one argument, got {len(node.args)}.")

    arg = node.args[0]
    if arg.keyword is not None or arg.star:
      raise InvalidDependencyError(f"{fn}() target must be a positional string literal.")

    if not isinstance(arg.value, cst.SimpleString):
      kind = type(arg.value).__name__
      raise InvalidDependencyError(f"{fn}() target must be a string literal, got {kind}.")

    value = arg.value.evaluated_value
    if not isinstance(value, str):
      raise InvalidDependencyError(f"{fn}() target must be a text string, not bytes.")
    return value


class LoadCallPatcher(cst.CSTTransformer):
  """
  Applies `RewriteAction`s produced by `LoadCallScanner` on the same tree.
  """

  def __init__(self, actions: List[RewriteAction], runtime_function: str = "__bundle_require__") -> None:
    self.runtime_function = runtime_function
    self._action_map: Dict[int, RewriteAction] = {id(action.node): action for action in actions}

  def leave_Call(self, original_node: cst.Call, updated_node: cst.Call) -> cst.Call:
    action = self._action_map.get(id(original_node))
    if action is None:
      return updated_node

    arg = updated_node.args[0]
    literal = _quote_like(action.identity, arg.value)
    return updated_node.with_changes(
      func=cst.Name(self.runtime_function),
      args=[arg.with_changes(value=literal)],
    )


def _quote_like(value: str, original: cst.SimpleString) -> cst.SimpleString:
  """Builds a string literal reusing the quote style of `original` where safe."""
  quote = original.quote
  if "\\" in value or quote[0] in value or "\n" in value:
    return cst.SimpleString(repr(value))
  return cst.SimpleString(f"{quote}{value}{quote}")


class ModuleRewriter:
  """
  Parses one module and rewrites its load-expressions.

  Attributes:
      load_function (str): Bare callee name treated as the load primitive.
      runtime_function (str): Name of the bundle runtime loader.
      default_extension (str): Extension appended to targets without one.
  """

  def __init__(
    self,
    load_function: str = "require",
    runtime_function: str = "__bundle_require__",
    default_extension: str = ".py",
  ) -> None:
    self.load_function = load_function
    self.runtime_function = runtime_function
    self.default_extension = default_extension

  def parse_source(self, source: str, module_dir: str, identity: str = "<module>") -> Tuple[str, List[str]]:
    """
    Rewrites load-expressions and extracts the dependency list.

    Args:
        source: Module text after loader transforms.
        module_dir: Root-relative directory of the module (e.g. ``"./lib"``).
        identity: Module identity, used in error messages.

    Returns:
        Tuple[str, List[str]]: The rewritten text and the dependency identities
        in discovery order.

    Raises:
        ModuleSyntaxError: If the source is not valid Python.
        InvalidDependencyError: If a load-expression has an unsupported target.
    """
    try:
      tree = cst.parse_module(source)
    except cst.ParserSyntaxError as e:
      raise ModuleSyntaxError(identity, str(e)) from e

    scanner = LoadCallScanner(module_dir, self.load_function, self.default_extension)
    try:
      tree.visit(scanner)
    except InvalidDependencyError as e:
      raise InvalidDependencyError(f"{identity}: {e}") from e

    if not scanner.actions:
      return tree.code, []

    patched = tree.visit(LoadCallPatcher(scanner.actions, self.runtime_function))
    return patched.code, scanner.dependencies
