"""
Pytest Configuration and Fixtures.

Includes:
- Syspath patching for local imports.
- A `project` fixture that lays out source trees under a temporary root.
- Global registry isolation for named transforms and console state.
"""

import sys
import textwrap
from pathlib import Path
from typing import Dict

import pytest

# Add src to path so we can import 'minipack' without installing it
src_path = Path(__file__).parent.parent / "src"
sys.path.insert(0, str(src_path))

from minipack.core.transformer import clear_transforms  # noqa: E402
from minipack.utils.console import reset_console  # noqa: E402


class Project:
  """
  Temporary project root with helpers to write module files.
  """

  def __init__(self, root: Path):
    self.root = root

  def write(self, files: Dict[str, str]) -> "Project":
    """Writes each relative path with dedented content."""
    for rel, content in files.items():
      target = self.root / rel
      target.parent.mkdir(parents=True, exist_ok=True)
      target.write_text(textwrap.dedent(content), encoding="utf-8")
    return self

  def path(self, rel: str) -> Path:
    return self.root / rel

  def config(self, **overrides) -> dict:
    """Raw config mapping rooted at the project, entry ``index.py`` by default."""
    data = {
      "entry": {"main": self.root / "index.py"},
      "root": self.root,
      "output": {"path": self.root / "dist", "filename": "bundle.py"},
    }
    data.update(overrides)
    return data


@pytest.fixture
def project(tmp_path):
  """A fresh project root."""
  return Project(tmp_path.resolve())


@pytest.fixture(autouse=True)
def isolate_registries():
  """
  Ensures transforms registered by one test and console changes
  (e.g. --verbose) do not leak into the next.
  """
  clear_transforms()
  yield
  clear_transforms()
  reset_console()
