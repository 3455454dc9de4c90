"""
Shared fixtures for duplicate detection tests.
Creates isolated temporary directories with controlled test files.
"""
import pytest
import tempfile
from pathlib import Path
from typing import Dict

from dupefinder.core import CatalogConfig, FileCatalog


@pytest.fixture
def temp_dir():
    """Creates isolated temporary directory, auto-cleanup after test."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir).resolve()


@pytest.fixture
def test_files(temp_dir) -> Dict[str, Path]:
    """
    Creates controlled test files for tiering scenarios:
    - A, B: 10 bytes, identical content (true duplicates)
    - C: 20 bytes (unique by size)
    - D, E: 30 bytes each, same size, different content
    - empty: 0 bytes
    - sub/A copy: same content as A, in a subdirectory
    """
    files = {}

    files["a"] = temp_dir / "a.txt"
    files["b"] = temp_dir / "b.txt"
    files["a"].write_bytes(b"0123456789")
    files["b"].write_bytes(b"0123456789")

    files["c"] = temp_dir / "c.txt"
    files["c"].write_bytes(b"C" * 20)

    files["d"] = temp_dir / "d.bin"
    files["e"] = temp_dir / "e.bin"
    files["d"].write_bytes(b"D" * 30)
    files["e"].write_bytes(b"E" * 30)

    files["empty"] = temp_dir / "empty.txt"
    files["empty"].write_bytes(b"")

    subdir = temp_dir / "sub"
    subdir.mkdir()
    files["sub_a"] = subdir / "a_copy.txt"
    files["sub_a"].write_bytes(b"0123456789")

    return files


@pytest.fixture
def catalog(temp_dir):
    """Catalog bound to the temporary directory; background worker always stopped on teardown."""
    cat = FileCatalog(str(temp_dir), config=CatalogConfig(quick_sample_size=4, read_chunk_size=8))
    yield cat
    cat.cancel_background_hashing()
