"""
Smoke Tests for package imports.

Each public subpackage is imported first thing in a fresh interpreter, so an
import cycle cannot hide behind modules that the test session already loaded.
"""
import subprocess
import sys
from pathlib import Path

import pytest

pytestmark = pytest.mark.smoke

PROJECT_ROOT = Path(__file__).parent.parent.parent


@pytest.mark.parametrize(
    "module",
    [
        "skilltree.generation",
        "skilltree.generation.schemas",
        "skilltree.learning",
        "skilltree.db",
        "skilltree.quiz",
        "skilltree.cli.main",
        "skilltree",
    ],
)
def test_module_imports_in_fresh_interpreter(module):
    result = subprocess.run(
        [sys.executable, "-c", f"import {module}"],
        cwd=PROJECT_ROOT,
        capture_output=True,
        text=True,
        timeout=60,
    )

    assert result.returncode == 0, f"import {module} failed: {result.stderr}"
