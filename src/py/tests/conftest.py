"""
conftest.py — Add src/py/ to sys.path so the strict_output package is
importable when the tests are run from a source checkout without installing.
"""

import sys
from pathlib import Path

_pkg_dir = str(Path(__file__).resolve().parent.parent)
if _pkg_dir not in sys.path:
    sys.path.insert(0, _pkg_dir)
