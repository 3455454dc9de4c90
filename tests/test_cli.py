"""
Tests for the command line interface: argument parsing, validation, output
and exit codes.
"""
import logging
import sys
from unittest import mock

import pytest

from dupefinder import cli
from dupefinder.cli import CLIApplication, EXIT_TIMEOUT
from dupefinder.commands import TierTimeout
from dupefinder.core import HashTier, ScanParams, SimilarFileSet


@pytest.fixture(autouse=True)
def restore_root_log_level():
    root = logging.getLogger()
    level = root.level
    yield
    root.setLevel(level)


def run_cli(*argv):
    CLIApplication().run(list(argv))


class TestArgumentParsing:

    def test_defaults(self):
        args = CLIApplication.parse_args(["-i", "/tmp"])
        assert args.tier == "full"
        assert args.min_size == "0"
        assert args.max_size is None
        assert args.workers == 1
        assert args.timeout is None
        assert args.include_singletons is False

    def test_help_describes_every_tier(self, capsys):
        with pytest.raises(SystemExit) as excinfo:
            CLIApplication.parse_args(["--help"])
        assert excinfo.value.code == 0

        out = capsys.readouterr().out
        for tier in HashTier:
            assert tier.description in out

    def test_input_is_required(self):
        with pytest.raises(SystemExit) as excinfo:
            CLIApplication.parse_args([])
        assert excinfo.value.code == 2

    def test_unknown_tier_rejected(self):
        with pytest.raises(SystemExit):
            CLIApplication.parse_args(["-i", "/tmp", "--tier", "md5"])

    def test_create_params(self, temp_dir):
        app = CLIApplication()
        args = app.parse_args([
            "-i", str(temp_dir), "--tier", "quick", "-m", "1K", "-M", "2MB",
            "-x", ".jpg", "PNG", "--quick-size", "4K", "--workers", "3", "--timeout", "9",
        ])
        params = app.create_params(args)

        assert isinstance(params, ScanParams)
        assert params.root_dir == str(temp_dir)
        assert params.tier is HashTier.QUICK
        assert params.min_size_bytes == 1024
        assert params.max_size_bytes == 2 * 1024 ** 2
        assert params.extensions == [".jpg", ".png"]
        assert params.config.quick_sample_size == 4096
        assert params.config.hash_workers == 3
        assert params.timeout == 9


class TestValidation:

    def test_missing_directory(self, temp_dir, capsys):
        with pytest.raises(SystemExit) as excinfo:
            run_cli("-i", str(temp_dir / "nope"))
        assert excinfo.value.code == 1
        assert "Directory not found" in capsys.readouterr().err

    def test_file_as_input(self, test_files, capsys):
        with pytest.raises(SystemExit) as excinfo:
            run_cli("-i", str(test_files["a"]))
        assert excinfo.value.code == 1
        assert "not a directory" in capsys.readouterr().err

    def test_invalid_size(self, temp_dir, capsys):
        with pytest.raises(SystemExit) as excinfo:
            run_cli("-i", str(temp_dir), "-m", "lots")
        assert excinfo.value.code == 1
        assert "Invalid size format for --min-size" in capsys.readouterr().err

    def test_min_greater_than_max(self, temp_dir, capsys):
        with pytest.raises(SystemExit) as excinfo:
            run_cli("-i", str(temp_dir), "-m", "2K", "-M", "1K")
        assert excinfo.value.code == 1
        assert "Parameter error" in capsys.readouterr().err

    def test_bad_workers(self, temp_dir):
        with pytest.raises(SystemExit) as excinfo:
            run_cli("-i", str(temp_dir), "--workers", "0")
        assert excinfo.value.code == 1

    def test_missing_excluded_dir_is_a_warning(self, test_files, temp_dir, capsys):
        run_cli("-i", str(temp_dir), "-e", str(temp_dir / "ghost"))
        assert "Excluded directory not found" in capsys.readouterr().err


class TestOutput:

    def test_prints_duplicate_groups(self, test_files, temp_dir, capsys):
        run_cli("-i", str(temp_dir))
        out = capsys.readouterr().out

        assert "Found 1 duplicate groups (3 files" in out
        assert "Group 1 | Size: 10B | Files: 3" in out
        for key in ("a", "b", "sub_a"):
            assert str(test_files[key]) in out
        assert str(test_files["c"]) not in out

    def test_no_duplicates(self, temp_dir, capsys):
        (temp_dir / "only.txt").write_bytes(b"alone")
        run_cli("-i", str(temp_dir))
        assert "No duplicate groups found." in capsys.readouterr().out

    def test_include_singletons_lists_unique_files(self, test_files, temp_dir, capsys):
        run_cli("-i", str(temp_dir), "--include-singletons")
        out = capsys.readouterr().out
        assert "Unique" in out
        assert str(test_files["c"]) in out

    def test_quiet_prints_nothing(self, test_files, temp_dir, capsys):
        run_cli("-i", str(temp_dir), "-q")
        assert capsys.readouterr().out == ""

    def test_verbose_prints_statistics(self, test_files, temp_dir, capsys):
        run_cli("-i", str(temp_dir), "-v")
        out = capsys.readouterr().out
        assert "Hashing Statistics:" in out
        assert "Full Hash: 3 /" in out

    def test_timeout_prints_partial_and_exits(self, test_files, temp_dir, capsys):
        partial = SimilarFileSet(HashTier.FULL, {})
        params = ScanParams(root_dir=str(temp_dir), timeout=1)

        with mock.patch.object(cli.DuplicateScanCommand, "execute",
                               side_effect=TierTimeout(params, partial)):
            with pytest.raises(SystemExit) as excinfo:
                run_cli("-i", str(temp_dir), "--timeout", "1")

        assert excinfo.value.code == EXIT_TIMEOUT
        captured = capsys.readouterr()
        assert "results below are partial" in captured.err
        assert "No duplicate groups found." in captured.out


class TestMain:

    def test_keyboard_interrupt_exit_code(self, temp_dir):
        with mock.patch.object(sys, "argv", ["dupefinder", "-i", str(temp_dir)]):
            with mock.patch.object(CLIApplication, "run_scan", side_effect=KeyboardInterrupt):
                with pytest.raises(SystemExit) as excinfo:
                    cli.main()
        assert excinfo.value.code == 130

    def test_unexpected_error_exit_code(self, temp_dir, capsys, monkeypatch):
        monkeypatch.delenv("DEBUG", raising=False)
        with mock.patch.object(sys, "argv", ["dupefinder", "-i", str(temp_dir)]):
            with mock.patch.object(CLIApplication, "run_scan", side_effect=RuntimeError("boom")):
                with pytest.raises(SystemExit) as excinfo:
                    cli.main()
        assert excinfo.value.code == 1
        assert "Unexpected error: boom" in capsys.readouterr().err
