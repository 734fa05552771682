"""
Tests for the test tree layout.

The test directories are not packages, so pytest's default "prepend"
import mode imports every module by its basename. Two modules with the
same basename abort collection.
"""

from collections import Counter
from pathlib import Path

TESTS_DIR = Path(__file__).parent


class TestLayout:
    def test_module_basenames_unique(self) -> None:
        names = Counter(path.name for path in TESTS_DIR.rglob("test_*.py"))

        assert [name for name, count in names.items() if count > 1] == []

    def test_no_package_markers(self) -> None:
        assert list(TESTS_DIR.rglob("__init__.py")) == []
