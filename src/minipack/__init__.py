"""
minipack Package.

A minimal module bundler for Python programs. Starting from one or more entry
files, it follows ``require("./relative/path")`` calls through the module
graph, rewrites them to address modules by canonical identity, and emits one
self-contained script that runs the whole graph.

Usage
-----

Programmatic
^^^^^^^^^^^^

.. code-block:: python

    import minipack
    result = minipack.bundle("src/index.py", output_path="dist")
    print(result.output_file)

Advanced Usage (Compiler)
^^^^^^^^^^^^^^^^^^^^^^^^^

.. code-block:: python

    from minipack import BundleConfig, Compiler

    config = BundleConfig(entry={"app": "src/index.py"}, rules=[{"test": r"\\.json$", "use": ["json"]}])
    compiler = Compiler(config)
    compiler.hooks.done.tap(lambda status: print(status))
    compiler.run()
"""

from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from minipack.config import BundleConfig
from minipack.core.compiler import BundleResult, Compiler
from minipack.core.transformer import register_transform
from minipack.errors import BundleError

__version__ = "0.1.0"


def bundle(
  entry: Union[str, Path, Dict[str, Union[str, Path]]],
  output_path: Union[str, Path] = "dist",
  filename: str = "bundle.py",
  rules: Optional[List[Dict[str, Any]]] = None,
  plugins: Optional[List[Any]] = None,
  root: Optional[Union[str, Path]] = None,
) -> BundleResult:
  """
  Bundles an entry file (or named entries) into one script.

  Args:
      entry: Entry path, or a mapping of entry names to paths.
      output_path: Output directory, relative to the root unless absolute.
      filename: Artifact file name.
      rules: Loader rules, e.g. ``[{"test": r"\\.json$", "use": ["json"]}]``.
      plugins: Plugin objects or ``"module:Attr"`` references.
      root: Project root (defaults to the current working directory).

  Returns:
      BundleResult: Output location, entries and bundled identities.

  Raises:
      BundleError: If configuration, graph construction or emission fails.
  """
  data: Dict[str, Any] = {
    "entry": entry,
    "output": {"path": output_path, "filename": filename},
    "rules": rules or [],
    "plugins": plugins or [],
  }
  if root is not None:
    data["root"] = root
  return Compiler(BundleConfig.from_mapping(data)).run()


__all__ = [
  "BundleConfig",
  "BundleError",
  "BundleResult",
  "Compiler",
  "bundle",
  "register_transform",
  "__version__",
]
