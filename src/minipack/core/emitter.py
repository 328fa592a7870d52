"""
Bundle Emitter.

Renders the module registry into a single self-contained Python script using
the jinja2 template shipped in ``minipack/templates``. The script defines:

1.  One closure per module. It binds the runtime loader into the module
    namespace and executes the module's rewritten text there.
2.  ``__bundle_modules__``: identity -> closure.
3.  The runtime loader (``__bundle_require__`` by default), which executes each
    closure at most once and returns the cached module object afterwards.
4.  One bootstrap call per entry, in entry order.
"""

from pathlib import Path
from typing import Dict, Optional

from jinja2 import Environment

from minipack.core.transformer import SourceTransformer
from minipack.errors import WriteError

TEMPLATE_PATH = Path(__file__).resolve().parent.parent / "templates" / "bundle.py.j2"


def _make_environment() -> Environment:
  env = Environment(
    autoescape=False,
    keep_trailing_newline=True,
    trim_blocks=True,
    lstrip_blocks=True,
  )
  env.filters["pyrepr"] = repr
  return env


class BundleEmitter:
  """
  Writes the bundle artifact for a finished module graph.

  Attributes:
      output_file (Path): Destination of the artifact.
      template_path (Path): Bootstrap template; it goes through the loader rules
          like any other file.
  """

  def __init__(
    self,
    transformer: SourceTransformer,
    output_file: Path,
    runtime_function: str = "__bundle_require__",
    template_path: Optional[Path] = None,
  ) -> None:
    self.transformer = transformer
    self.output_file = Path(output_file)
    self.runtime_function = runtime_function
    self.template_path = template_path or TEMPLATE_PATH
    self._env = _make_environment()

  def render(self, modules: Dict[str, str], entries: Dict[str, str]) -> str:
    """
    Renders the artifact text.

    Args:
        modules: Identity to rewritten module text.
        entries: Entry name to entry identity.

    Returns:
        str: The complete bundle script.
    """
    from minipack import __version__

    source = self.transformer.get_source(self.template_path)
    template = self._env.from_string(source)
    return template.render(
      version=__version__,
      runtime=self.runtime_function,
      modules=modules,
      entries=entries,
    )

  def emit_file(self, modules: Dict[str, str], entries: Dict[str, str]) -> str:
    """
    Renders and writes the artifact, replacing any existing file.

    Returns:
        str: The text that was written.

    Raises:
        WriteError: If the output directory or file cannot be written.
    """
    code = self.render(modules, entries)
    try:
      self.output_file.parent.mkdir(parents=True, exist_ok=True)
      self.output_file.write_text(code, encoding="utf-8")
    except OSError as e:
      raise WriteError(str(self.output_file), str(e)) from e
    return code
