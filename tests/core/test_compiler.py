"""
Integration tests for the Compiler.
Covers the end-to-end scenarios: linear graphs, loader rules, missing
dependencies, cycles, lifecycle phase ordering, multiple entries and the
behaviour of the emitted bundle when executed.
"""

import runpy

import pytest

from minipack import bundle
from minipack.core.compiler import DONE_STATUS, RUN_STATUS, Compiler
from minipack.core.transformer import register_transform
from minipack.errors import ConfigError, CyclicDependencyError, ResolutionError


class RecorderPlugin:
  """Records every phase it observes, with arguments."""

  def __init__(self):
    self.events = []

  def install(self, compiler):
    for hook in compiler.hooks:
      hook.tap(lambda *args, _name=hook.name: self.events.append((_name, args)))


def test_linear_graph_bundle(project):
  project.write(
    {
      "index.py": 'a = require("./a")\n',
      "a.py": 'b = require("./b")\n',
      "b.py": "VALUE = 'b'\n",
    }
  )
  compiler = Compiler(project.config())

  result = compiler.run()

  assert set(compiler.modules) == {"./index.py", "./a.py", "./b.py"}
  assert compiler.entry_id == "./index.py"
  assert result.output_file == project.path("dist/bundle.py")
  assert result.entries == {"main": "./index.py"}

  code = project.path("dist/bundle.py").read_text(encoding="utf-8")
  boot_lines = [line for line in code.splitlines() if line.startswith("__bundle_require__(")]
  assert boot_lines == ["__bundle_require__('./index.py', \"__main__\")  # entry: main"]
  assert compiler.assets == {result.output_file: code}


def test_rule_transform_is_stored_in_registry(project):
  @register_transform("uppercase")
  def uppercase(text):
    return text.upper()

  project.write({"index.py": "x"})
  compiler = Compiler(project.config(rules=[{"test": r"\.py$", "use": ["uppercase"]}]))

  compiler.build()

  assert compiler.modules == {"./index.py": "X"}


def test_missing_dependency_aborts_without_output(project):
  project.write({"index.py": 'gone = require("./nowhere")\n'})
  compiler = Compiler(project.config())

  with pytest.raises(ResolutionError):
    compiler.run()

  assert not project.path("dist/bundle.py").exists()


def test_cycle_aborts_without_output(project):
  project.write(
    {
      "index.py": 'a = require("./a")\n',
      "a.py": 'b = require("./b")\n',
      "b.py": 'a = require("./a")\n',
    }
  )

  with pytest.raises(CyclicDependencyError):
    Compiler(project.config()).run()

  assert not project.path("dist").exists()


def test_phases_fire_in_order(project):
  project.write({"index.py": "pass\n"})
  recorder = RecorderPlugin()

  Compiler(project.config(plugins=[recorder])).run()

  assert recorder.events == [
    ("run", (RUN_STATUS,)),
    ("beforeEntryOptions", ()),
    ("afterEntryOptions", ()),
    ("beforeCompile", ()),
    ("afterCompile", ()),
    ("beforeEmitFile", ()),
    ("afterEmitFile", ()),
    ("done", (DONE_STATUS,)),
  ]


def test_plugins_installed_once_in_declaration_order(project):
  order = []

  class Named:
    def __init__(self, name):
      self.name = name

    def install(self, compiler):
      order.append(self.name)

  compiler = Compiler(project.config(plugins=[Named("first"), Named("second")]))

  assert order == ["first", "second"]
  assert [p.name for p in compiler.plugins] == ["first", "second"]


def test_failing_callback_aborts_the_run(project):
  project.write({"index.py": "pass\n"})

  class Failing:
    def install(self, compiler):
      def fail():
        raise RuntimeError("refusing to emit")

      compiler.hooks.before_emit_file.tap(fail)

  with pytest.raises(RuntimeError, match="refusing to emit"):
    Compiler(project.config(plugins=[Failing()])).run()

  assert not project.path("dist/bundle.py").exists()


def test_invalid_config_mapping():
  with pytest.raises(ConfigError):
    Compiler({"entry": {}})


def test_relative_entries_resolve_against_root(project):
  project.write({"src/app.py": "pass\n"})
  compiler = Compiler(project.config(entry="src/app.py"))

  compiler.run()

  assert compiler.entry_id == "./src/app.py"


def test_bundle_round_trip(project, capsys):
  project.write(
    {
      "index.py": """\
        greeter = require("./lib/greeter")
        again = require("./lib/greeter")
        print(greeter.greet("world"))
        print(again is greeter)
        print(greeter.SETTINGS.data["lang"])
        """,
      "lib/greeter.py": """\
        print("loading greeter")
        SETTINGS = require("../settings.json")


        def greet(name):
          return f"hello {name}"
        """,
      "settings.json": '{"lang": "en"}',
    }
  )
  compiler = Compiler(project.config(rules=[{"test": r"\.json$", "use": "json"}]))

  result = compiler.run()
  capsys.readouterr()
  runpy.run_path(str(result.output_file))

  assert capsys.readouterr().out.splitlines() == ["loading greeter", "hello world", "True", "en"]


def test_entry_runs_as_main_module(project, capsys):
  project.write(
    {
      "index.py": """\
        helper = require("./helper")
        print("top")


        def main():
          print("main ran", helper.__name__)


        if __name__ == "__main__":
          main()
        """,
      "helper.py": """\
        if __name__ == "__main__":
          print("helper guard ran")
        """,
    }
  )

  result = Compiler(project.config()).run()
  capsys.readouterr()
  runpy.run_path(str(result.output_file), run_name="__main__")

  assert capsys.readouterr().out.splitlines() == ["top", "main ran ./helper.py"]


def test_rewritten_loads_target_the_same_files(project):
  project.write(
    {
      "index.py": 'x = require("./pkg/x")\n',
      "pkg/x.py": 'y = require("../other/y")\nz = require("./sub/z")\n',
      "other/y.py": "",
      "pkg/sub/z.py": "",
    }
  )
  compiler = Compiler(project.config())
  compiler.build()

  for record in compiler.builder.modules.values():
    for dep in record.dependencies:
      assert (project.root / dep).resolve() in {r.path for r in compiler.builder.modules.values()}


def test_multiple_entries_bootstrap_each(project, capsys):
  project.write(
    {
      "app.py": 'shared = require("./shared")\nprint("app", shared.TOKEN)\n',
      "worker.py": 'shared = require("./shared")\nprint("worker", shared.TOKEN)\n',
      "shared.py": 'print("shared")\nTOKEN = 7\n',
    }
  )
  config = project.config(entry={"app": project.path("app.py"), "worker": project.path("worker.py")})

  result = Compiler(config).run()
  capsys.readouterr()
  runpy.run_path(str(result.output_file))

  assert result.entries == {"app": "./app.py", "worker": "./worker.py"}
  assert capsys.readouterr().out.splitlines() == ["shared", "app 7", "worker 7"]


def test_bundle_helper(project):
  project.write({"index.py": "pass\n"})

  result = bundle("index.py", output_path="out", filename="app.py", root=project.root)

  assert result.output_file == project.path("out/app.py")
  assert result.output_file.is_file()
  assert result.modules == ["./index.py"]
