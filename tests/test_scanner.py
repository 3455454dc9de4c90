"""
Tests for FileScannerImpl: recursive walk, filters and exclusions.
"""
import os

import pytest

from dupefinder.core import FileScannerImpl, InvalidRoot


class TestFileScannerImpl:

    def test_finds_all_files_recursively(self, test_files, temp_dir):
        found = FileScannerImpl(str(temp_dir)).scan()
        assert set(found) == {str(p) for p in test_files.values()}
        assert all(os.path.isabs(p) for p in found)

    def test_min_and_max_size(self, test_files, temp_dir):
        found = FileScannerImpl(str(temp_dir), min_size=15, max_size=25).scan()
        assert found == [str(test_files["c"])]

    def test_extension_filter(self, test_files, temp_dir):
        found = FileScannerImpl(str(temp_dir), extensions=[".BIN"]).scan()
        assert set(found) == {str(test_files["d"]), str(test_files["e"])}

    def test_skip_empty(self, test_files, temp_dir):
        found = FileScannerImpl(str(temp_dir), skip_empty=True).scan()
        assert str(test_files["empty"]) not in found

    def test_excluded_directory_is_not_entered(self, test_files, temp_dir):
        found = FileScannerImpl(str(temp_dir), excluded_dirs=[str(temp_dir / "sub")]).scan()
        assert str(test_files["sub_a"]) not in found
        assert str(test_files["a"]) in found

    @pytest.mark.skipif(not hasattr(os, "symlink"), reason="symlinks not supported")
    def test_symlinks_are_ignored(self, test_files, temp_dir):
        link = temp_dir / "link.txt"
        link_dir = temp_dir / "linked_dir"
        try:
            link.symlink_to(test_files["a"])
            link_dir.symlink_to(temp_dir / "sub", target_is_directory=True)
        except OSError:
            pytest.skip("cannot create symlinks")

        found = FileScannerImpl(str(temp_dir)).scan()
        assert str(link) not in found
        assert not any(p.startswith(str(link_dir)) for p in found)

    def test_invalid_root(self, test_files, temp_dir):
        with pytest.raises(InvalidRoot):
            FileScannerImpl(str(temp_dir / "nope")).scan()
        with pytest.raises(InvalidRoot):
            FileScannerImpl(str(test_files["a"])).scan()

    def test_stopped_flag_interrupts_walk(self, test_files, temp_dir):
        assert FileScannerImpl(str(temp_dir)).scan(stopped_flag=lambda: True) == []

    def test_final_progress_report(self, test_files, temp_dir):
        events = []
        FileScannerImpl(str(temp_dir)).scan(progress_callback=lambda *a: events.append(a))
        assert events[-1] == ("scanning", len(test_files), None)
