"""
Entry point for module execution (``python -m minipack``).

Delegates to the CLI handler in ``minipack.cli.__main__``.
"""

import sys
from minipack.cli.__main__ import main

if __name__ == "__main__":
  sys.exit(main())
