"""Shared test fixtures for dir-obj."""

from pathlib import Path

import pytest
from click.testing import CliRunner

from dir_obj import Dir, File


@pytest.fixture
def cli_runner():
    """Click CLI test runner."""
    return CliRunner()


@pytest.fixture
def data_dir():
    """Path to the fixture data tree.

    Every name ends in ``<level>-<n>``; files hold their own name.

    Structure:
        data/
        ├── file0-0
        ├── file0-1
        ├── dir0-0/
        │   ├── file1-0
        │   ├── file1-1
        │   └── dir1-0/
        │       └── file2-0
        └── dir0-1/
            ├── file1-0
            └── file1-1
    """
    return Path(__file__).parent / "fixtures" / "data"


@pytest.fixture
def scenario_root(tmp_path: Path) -> Path:
    """
    Create the minimal two-level tree on disk.

    Structure:
        root/
        ├── file0-0        ("file0-0")
        └── dir0-0/
            └── file1-0    ("file1-0")
    """
    root = tmp_path / "root"
    root.mkdir()
    (root / "file0-0").write_bytes(b"file0-0")

    subdir = root / "dir0-0"
    subdir.mkdir()
    (subdir / "file1-0").write_bytes(b"file1-0")

    return root


def build_sample_tree() -> Dir:
    """Build a small tree purely in memory."""
    nested = Dir()
    nested.add_file("deep.txt", File(b"deep\n"))

    src = Dir()
    src.add_file("main.py", File(b"print('hello')\n"))
    src.add_dir("pkg", nested)

    root = Dir()
    root.add_file("README.md", File(b"# Sample\n"))
    root.add_file("empty", File(b""))
    root.add_file("binary.bin", File(bytes(range(256))))
    root.add_dir("src", src)
    root.add_dir("empty_dir", Dir())
    return root


@pytest.fixture
def sample_tree() -> Dir:
    """An in-memory tree with files, nested and empty directories."""
    return build_sample_tree()
