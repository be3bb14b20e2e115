import os
import sys
import tempfile

import pytest

# Windows extended-length path prefix
WIN_PREFIX = "\\\\?\\"

# Skip symlink tests on Windows (requires admin/Developer Mode)
skip_symlinks_on_windows = pytest.mark.skipif(
    sys.platform == "win32",
    reason="Symlinks require admin privileges on Windows",
)


def normalize_path(path: str) -> str:
    """Normalize path for comparison (strips Windows \\?\\ prefix)."""
    if path.startswith(WIN_PREFIX):
        return path[len(WIN_PREFIX) :]
    return path


def paths_equal(a: str, b: str) -> bool:
    """Compare paths, handling Windows extended-length paths."""
    return normalize_path(os.fspath(a)) == normalize_path(os.fspath(b))


@pytest.fixture
def jail_dir():
    """Create a temporary directory for testing."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield tmpdir


@pytest.fixture
def outside_dir():
    """A second temporary directory, never inside the jail."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield os.path.realpath(tmpdir)
