"""
Tests for the CLI entry point and command handlers.

Verifies that:
1.  Arguments are dispatched to the right handler.
2.  `bundle` writes the artifact and returns 0.
3.  Bundling failures are reported with exit code 1.
4.  `graph` prints the registry without writing anything.
"""

import logging
from io import StringIO
from unittest.mock import patch

import pytest
from rich.console import Console

from minipack.cli.__main__ import main
from minipack.utils.console import set_console


@pytest.fixture
def captured():
  """Routes console and log output into a buffer."""
  buffer = StringIO()
  set_console(Console(file=buffer, width=200, force_terminal=False))
  return buffer


@patch("minipack.cli.commands.handle_bundle")
def test_bundle_dispatch(mock_handle):
  mock_handle.return_value = 0

  assert main(["bundle", "--entry", "app=src/app.py", "--out", "build", "--filename", "x.py"]) == 0

  args = mock_handle.call_args[0]
  assert args[0] == ["app=src/app.py"]
  assert str(args[1]) == "build"
  assert args[2] == "x.py"


@patch("minipack.cli.commands.handle_graph")
def test_graph_dispatch(mock_handle):
  mock_handle.return_value = 0

  main(["graph", "--entry", "a.py", "b=b.py"])

  assert mock_handle.call_args[0][0] == ["a.py", "b=b.py"]


def test_bundle_command_writes_artifact(project, captured):
  project.write({"index.py": 'util = require("./util")\n', "util.py": "pass\n"})

  code = main(
    [
      "bundle",
      "--entry",
      str(project.path("index.py")),
      "--root",
      str(project.root),
      "--config-dir",
      str(project.root),
      "--out",
      str(project.path("dist")),
    ]
  )

  assert code == 0
  assert project.path("dist/bundle.py").is_file()
  assert "2 modules" in captured.getvalue()


def test_bundle_command_reports_errors(project, captured):
  project.write({"index.py": 'gone = require("./missing")\n'})

  code = main(
    [
      "bundle",
      "--entry",
      str(project.path("index.py")),
      "--root",
      str(project.root),
      "--config-dir",
      str(project.root),
      "--out",
      str(project.path("dist")),
    ]
  )

  assert code == 1
  assert "ResolutionError" in captured.getvalue()
  assert not project.path("dist").exists()


def test_bundle_command_uses_pyproject(project, captured):
  project.write(
    {
      "pyproject.toml": """\
        [tool.minipack]
        entry = "index.py"
        output = { path = "out", filename = "app.py" }
        """,
      "index.py": "pass\n",
    }
  )

  assert main(["bundle", "--config-dir", str(project.root)]) == 0
  assert project.path("out/app.py").is_file()


@pytest.mark.parametrize("command", ["bundle", "graph"])
def test_transform_failures_are_reported(project, captured, command):
  project.write(
    {
      "pyproject.toml": """\
        [tool.minipack]
        entry = "index.py"

        [[tool.minipack.rules]]
        test = '[.]json$'
        use = ["json"]
        """,
      "index.py": 'c = require("./c.json")\n',
      "c.json": "{not json",
    }
  )

  assert main([command, "--config-dir", str(project.root)]) == 1
  assert "TransformError" in captured.getvalue()
  assert not project.path("dist").exists()


def test_graph_command_prints_without_writing(project, captured):
  project.write({"index.py": 'a = require("./lib/a")\n', "lib/a.py": "pass\n"})

  code = main(
    [
      "graph",
      "--entry",
      str(project.path("index.py")),
      "--root",
      str(project.root),
      "--config-dir",
      str(project.root),
    ]
  )

  output = captured.getvalue()
  assert code == 0
  assert "./lib/a.py" in output
  assert "./index.py" in output
  assert not project.path("dist").exists()


def test_verbose_enables_debug_logging(project, captured):
  project.write({"index.py": "pass\n"})

  main(
    [
      "graph",
      "-v",
      "--entry",
      str(project.path("index.py")),
      "--root",
      str(project.root),
      "--config-dir",
      str(project.root),
    ]
  )

  assert logging.getLogger().level == logging.DEBUG
  assert "Built" in captured.getvalue()
