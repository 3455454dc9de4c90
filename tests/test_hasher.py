"""
Unit tests for HashTierEngineImpl with XXHashAlgorithmImpl.
Verifies tier semantics, memoization, failure recording and cancellation.
"""
import pytest
import xxhash
from unittest.mock import Mock

from dupefinder.core.errors import (
    FileUnavailable,
    HashComputationFailure,
    HashingCancelled,
)
from dupefinder.core.hasher import HashTierEngineImpl, XXHashAlgorithmImpl
from dupefinder.core.models import FileDescriptor, HashState, HashTier


def make_descriptor(path):
    return FileDescriptor(path=str(path), size=path.stat().st_size)


class TestHashTierEngineImpl:
    """Test xxHash64 computation per tier."""

    def test_size_tier_reads_nothing(self, tmp_path):
        """SIZE is the snapshot size, even if the file is gone."""
        f = tmp_path / "f.bin"
        f.write_bytes(b"x" * 42)
        d = make_descriptor(f)
        f.unlink()

        assert HashTierEngineImpl().compute_hash(d, HashTier.SIZE) == 42
        assert d.state(HashTier.SIZE) is HashState.COMPUTED

    def test_full_hash_is_xxh64_of_content(self, tmp_path):
        content = b"test content " * 1000
        f = tmp_path / "f.bin"
        f.write_bytes(content)

        engine = HashTierEngineImpl(read_chunk_size=100)
        digest = engine.compute_hash(make_descriptor(f), HashTier.FULL)

        assert digest == xxhash.xxh64(content).digest()
        assert len(digest) == 8  # xxHash64 = 8 bytes

    def test_quick_hash_covers_only_the_sample(self, tmp_path):
        """Files sharing the first bytes share the QUICK hash but not the FULL one."""
        f1 = tmp_path / "f1.bin"
        f2 = tmp_path / "f2.bin"
        f1.write_bytes(b"HEADER" + b"A" * 100)
        f2.write_bytes(b"HEADER" + b"B" * 100)
        d1, d2 = make_descriptor(f1), make_descriptor(f2)

        engine = HashTierEngineImpl(quick_sample_size=6, read_chunk_size=4)

        assert engine.compute_hash(d1, HashTier.QUICK) == xxhash.xxh64(b"HEADER").digest()
        assert engine.compute_hash(d1, HashTier.QUICK) == engine.compute_hash(d2, HashTier.QUICK)
        assert engine.compute_hash(d1, HashTier.FULL) != engine.compute_hash(d2, HashTier.FULL)

    def test_quick_hash_of_short_file_covers_whole_file(self, tmp_path):
        f = tmp_path / "short.bin"
        f.write_bytes(b"abc")
        engine = HashTierEngineImpl(quick_sample_size=1024)
        assert engine.compute_hash(make_descriptor(f), HashTier.QUICK) == xxhash.xxh64(b"abc").digest()

    def test_empty_file_hashes(self, tmp_path):
        f = tmp_path / "empty.bin"
        f.write_bytes(b"")
        d = make_descriptor(f)
        engine = HashTierEngineImpl()
        assert engine.compute_hash(d, HashTier.FULL) == xxhash.xxh64(b"").digest()

    def test_hash_caching(self, tmp_path):
        """Second call returns the memoized value without touching the algorithm."""
        f = tmp_path / "f.bin"
        f.write_bytes(b"test" * 100)
        d = make_descriptor(f)

        algorithm = Mock(wraps=XXHashAlgorithmImpl())
        engine = HashTierEngineImpl(algorithm=algorithm)

        first = engine.compute_hash(d, HashTier.FULL)
        second = engine.compute_hash(d, HashTier.FULL)

        assert first == second
        assert algorithm.new.call_count == 1

    def test_cached_value_survives_content_change(self, tmp_path):
        f = tmp_path / "f.bin"
        f.write_bytes(b"before")
        d = make_descriptor(f)
        engine = HashTierEngineImpl()

        first = engine.compute_hash(d, HashTier.QUICK)
        f.write_bytes(b"after!")
        assert engine.compute_hash(d, HashTier.QUICK) == first

    def test_deleted_file_raises_file_unavailable_and_is_memoized(self, tmp_path):
        f = tmp_path / "deleted.txt"
        f.write_bytes(b"content")
        d = make_descriptor(f)
        f.unlink()

        engine = HashTierEngineImpl()
        with pytest.raises(FileUnavailable) as excinfo:
            engine.compute_hash(d, HashTier.QUICK)

        assert excinfo.value.tier is HashTier.QUICK
        assert d.state(HashTier.QUICK) is HashState.FAILED
        assert d.has_failed()

        # Recreating the file does not trigger a new read
        f.write_bytes(b"content")
        with pytest.raises(FileUnavailable):
            engine.compute_hash(d, HashTier.QUICK)

    def test_directory_path_is_unavailable(self, tmp_path):
        d = FileDescriptor(path=str(tmp_path), size=0)
        with pytest.raises(FileUnavailable):
            HashTierEngineImpl().compute_hash(d, HashTier.FULL)

    def test_size_change_is_a_computation_failure(self, tmp_path):
        f = tmp_path / "grows.bin"
        f.write_bytes(b"1234")
        d = make_descriptor(f)
        f.write_bytes(b"12345678")

        with pytest.raises(HashComputationFailure):
            HashTierEngineImpl().compute_hash(d, HashTier.FULL)
        assert d.state(HashTier.FULL) is HashState.FAILED

    def test_cancellation_discards_partial_result(self, tmp_path):
        f = tmp_path / "big.bin"
        f.write_bytes(b"A" * 1000)
        d = make_descriptor(f)

        calls = {"n": 0}

        def stopped_flag():
            calls["n"] += 1
            return calls["n"] > 3  # let a few chunks through

        engine = HashTierEngineImpl(read_chunk_size=10)
        with pytest.raises(HashingCancelled):
            engine.compute_hash(d, HashTier.FULL, stopped_flag=stopped_flag)

        assert d.state(HashTier.FULL) is HashState.NOT_COMPUTED

        # A later uncancelled run computes the real value
        assert engine.compute_hash(d, HashTier.FULL) == xxhash.xxh64(b"A" * 1000).digest()

    def test_identical_files_identical_hashes_at_every_tier(self, tmp_path):
        content = bytes(range(256)) * 50
        f1, f2 = tmp_path / "1", tmp_path / "2"
        f1.write_bytes(content)
        f2.write_bytes(content)
        d1, d2 = make_descriptor(f1), make_descriptor(f2)
        engine = HashTierEngineImpl(quick_sample_size=512, read_chunk_size=1000)

        for tier in HashTier:
            assert engine.compute_hash(d1, tier) == engine.compute_hash(d2, tier)
