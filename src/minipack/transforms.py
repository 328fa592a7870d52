"""
Built-in transforms.

Both turn non-Python files into modules, so a bundled program can load data
files with ``require("./settings.json")``:

.. code-block:: toml

    [[tool.minipack.rules]]
    test = "\\\\.json$"
    use = ["json"]
"""

import json

from minipack.core.transformer import register_transform


@register_transform("json")
def json_module(text: str) -> str:
  """
  Wraps a JSON document as a module exposing it as ``data``.

  The document is validated here but decoded when the module runs, so values
  such as ``NaN`` that have no Python literal survive the round trip.

  Raises:
      ValueError: If the text is not valid JSON.
  """
  json.loads(text)
  return f"import json as _json\n\ndata = _json.loads({text!r})\n"


@register_transform("text")
def text_module(text: str) -> str:
  """Wraps raw text as a module exposing it as ``text``."""
  return f"text = {text!r}\n"
