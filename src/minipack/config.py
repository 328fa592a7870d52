"""
Bundle Configuration Store.

The bundling core consumes a `BundleConfig` read-only. Configuration comes from
the `[tool.minipack]` table of the nearest `pyproject.toml`, overridden by CLI
arguments, or is built directly by programmatic callers.

Example ``pyproject.toml``:

.. code-block:: toml

    [tool.minipack]
    entry = { main = "src/app.py" }
    plugins = ["minipack.plugins.stats:StatsPlugin"]

    [tool.minipack.output]
    path = "dist"
    filename = "app_bundle.py"

    [[tool.minipack.rules]]
    test = "\\\\.json$"
    use = ["json"]
"""

import re
import sys
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from minipack.errors import ConfigError

if sys.version_info >= (3, 11):
  import tomllib
else:
  import tomli as tomllib

DEFAULT_ENTRY_NAME = "main"

TransformRef = Union[str, Callable[[str], str]]


class Rule(BaseModel):
  """
  A loader rule: files whose path matches `test` go through the `use` chain.

  The chain runs right-to-left; the last-declared transform sees the raw text.
  """

  model_config = ConfigDict(arbitrary_types_allowed=True)

  test: str = Field(..., description="Regular expression searched against the posix file path.")
  use: List[TransformRef] = Field(default_factory=list, description="Transform ids or callables.")

  @field_validator("test")
  @classmethod
  def validate_pattern(cls, v: str) -> str:
    try:
      re.compile(v)
    except re.error as e:
      raise ValueError(f"Invalid rule pattern {v!r}: {e}")
    return v

  @field_validator("use", mode="before")
  @classmethod
  def coerce_chain(cls, v: Any) -> Any:
    if isinstance(v, str) or callable(v):
      return [v]
    return v

  def matches(self, path: Union[str, Path]) -> bool:
    """
    Checks the rule pattern against a file path.

    Args:
        path: File path; native separators are converted to forward slashes.

    Returns:
        bool: True if the pattern is found anywhere in the path.
    """
    return re.search(self.test, Path(path).as_posix()) is not None


class OutputOptions(BaseModel):
  """Where the single bundle artifact is written."""

  path: Path = Field(Path("dist"), description="Output directory.")
  filename: str = Field("bundle.py", description="Artifact file name.")


class BundleConfig(BaseModel):
  """
  Complete configuration of one bundling run.
  """

  model_config = ConfigDict(arbitrary_types_allowed=True)

  entry: Dict[str, Path] = Field(..., description="Named entry files.")
  rules: List[Rule] = Field(default_factory=list, description="Ordered loader rules.")
  output: OutputOptions = Field(default_factory=OutputOptions)
  plugins: List[Any] = Field(default_factory=list, description="Plugin objects or 'module:attr' strings.")
  root: Path = Field(default_factory=Path.cwd, description="Project root all identities are relative to.")

  load_function: str = Field("require", description="Bare callee recognised as a load-expression.")
  runtime_function: str = Field("__bundle_require__", description="Runtime loader the callee is renamed to.")
  default_extension: str = Field(".py", description="Extension appended to targets that have none.")

  @field_validator("entry", mode="before")
  @classmethod
  def coerce_entry(cls, v: Any) -> Any:
    if isinstance(v, (str, Path)):
      return {DEFAULT_ENTRY_NAME: v}
    if isinstance(v, dict) and not v:
      raise ValueError("At least one entry is required.")
    return v

  @field_validator("entry")
  @classmethod
  def validate_entry_names(cls, v: Dict[str, Path]) -> Dict[str, Path]:
    # Names end up in comments of the emitted script.
    for name in v:
      if not name or not name.isprintable():
        raise ValueError(f"Entry name {name!r} must be non-empty printable text.")
    return v

  @field_validator("load_function", "runtime_function")
  @classmethod
  def validate_identifier(cls, v: str) -> str:
    if not v.isidentifier():
      raise ValueError(f"{v!r} is not a valid Python identifier.")
    return v

  @field_validator("default_extension")
  @classmethod
  def validate_extension(cls, v: str) -> str:
    if not v.startswith(".") or len(v) < 2:
      raise ValueError(f"Extension must look like '.py', got {v!r}.")
    return v

  @property
  def output_file(self) -> Path:
    """
    Resolves the artifact path from the output directory and filename.

    Returns:
        Path: Absolute path; a relative output directory is taken from the root.
    """
    directory = self.output.path
    if not directory.is_absolute():
      directory = self.root / directory
    return directory / self.output.filename

  @classmethod
  def from_mapping(cls, data: Dict[str, Any]) -> "BundleConfig":
    """
    Validates a raw dictionary into a config.

    Args:
        data: Mapping shaped like the `[tool.minipack]` table.

    Returns:
        BundleConfig: The validated configuration.

    Raises:
        ConfigError: If validation fails.
    """
    try:
      return cls.model_validate(data)
    except ValidationError as e:
      raise ConfigError(f"Invalid minipack configuration: {e}") from e

  @classmethod
  def load(
    cls,
    search_path: Optional[Path] = None,
    entry: Optional[Dict[str, Path]] = None,
    output_path: Optional[Path] = None,
    filename: Optional[str] = None,
    root: Optional[Path] = None,
  ) -> "BundleConfig":
    """
    Loads configuration from pyproject.toml and overrides with CLI arguments.

    Relative paths found in the TOML file are anchored to the directory holding
    it, which is also the default project root.

    Args:
        search_path: Directory to start searching for `pyproject.toml`.
        entry: Override for the entry map.
        output_path: Override for the output directory.
        filename: Override for the artifact filename.
        root: Override for the project root.

    Returns:
        BundleConfig: The fully resolved configuration object.

    Raises:
        ConfigError: If the TOML is unreadable or the merged settings are invalid.
    """
    start_dir = search_path or Path.cwd()
    toml_config, toml_dir = _load_toml_settings(start_dir)
    base_dir = toml_dir or start_dir.resolve()

    data: Dict[str, Any] = dict(toml_config)
    data["root"] = Path(root).resolve() if root else _anchor(data.get("root", "."), base_dir)

    if entry:
      data["entry"] = entry
    elif "entry" in data:
      raw_entry = data["entry"]
      if isinstance(raw_entry, str):
        raw_entry = {DEFAULT_ENTRY_NAME: raw_entry}
      if isinstance(raw_entry, dict):
        data["entry"] = {name: _anchor(p, base_dir) for name, p in raw_entry.items()}

    output = dict(data.get("output", {}))
    if output_path is not None:
      output["path"] = output_path
    elif "path" in output:
      output["path"] = _anchor(output["path"], base_dir)
    if filename:
      output["filename"] = filename
    data["output"] = output

    return cls.from_mapping(data)


def _anchor(value: Any, base_dir: Path) -> Any:
  if not isinstance(value, (str, Path)):
    return value
  path = Path(value)
  return path if path.is_absolute() else (base_dir / path).resolve()


def _load_toml_settings(start_path: Path) -> Tuple[Dict[str, Any], Optional[Path]]:
  """
  Searches parents for 'pyproject.toml' and extracts the minipack table.

  Args:
      start_path (Path): Directory to start search from.

  Returns:
      Tuple[Dict, Optional[Path]]: The config dict and the directory it was found in.
  """
  current = start_path.resolve()

  for parent in [current, *current.parents]:
    toml_path = parent / "pyproject.toml"
    if toml_path.exists() and toml_path.is_file():
      try:
        with open(toml_path, "rb") as f:
          data = tomllib.load(f)
      except (OSError, tomllib.TOMLDecodeError) as e:
        raise ConfigError(f"Cannot read {toml_path}: {e}") from e

      tool_section = data.get("tool", {})
      if "minipack" in tool_section:
        return tool_section["minipack"], parent

  return {}, None


def parse_entry_args(items: Optional[List[str]]) -> Dict[str, Path]:
  """
  Parses CLI entry values of the form ``name=path`` or ``path``.

  A bare path is named after the default entry, so a single
  ``--entry src/app.py`` yields ``{"main": Path("src/app.py")}``.

  Args:
      items (Optional[List[str]]): Raw CLI strings from argparse.

  Returns:
      Dict[str, Path]: Ordered entry map.

  Raises:
      ConfigError: If two entries share a name.
  """
  entries: Dict[str, Path] = {}
  for item in items or []:
    if "=" in item:
      name, raw_path = item.split("=", 1)
      name = name.strip()
    else:
      name, raw_path = DEFAULT_ENTRY_NAME, item
    if name in entries:
      raise ConfigError(f"Duplicate entry name '{name}'.")
    entries[name] = Path(raw_path.strip()).resolve()
  return entries
