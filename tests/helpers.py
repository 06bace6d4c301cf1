"""
Helpers for tests that need source trees on disk.
"""

import tempfile
import textwrap
import unittest
from pathlib import Path

SAMPLES = Path(__file__).parent / "samples"


class SourceTreeTestCase(unittest.TestCase):
    """Test case with a temporary directory to write modules into."""

    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.root = Path(self._tmp.name)

    def tearDown(self):
        self._tmp.cleanup()

    def write(self, relative: str, source: str = "") -> Path:
        """Write a module, creating parent directories; returns its path."""
        path = self.root / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(textwrap.dedent(source).lstrip("\n"), encoding="utf-8")
        return path

    def package(self, name: str) -> Path:
        """Create a package directory with an empty `__init__.py`."""
        return self.write(f"{name}/__init__.py").parent
