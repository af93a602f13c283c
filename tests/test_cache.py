"""Tests for lintloom.cache: mtime-fingerprinted on-disk result cache."""

from __future__ import annotations

import json
import os
from typing import TYPE_CHECKING

import pytest

from lintloom.cache import INDEX_FILE, PAYLOAD_DIR, ValidationCache, build_identity
from lintloom.config.loader import parse_config
from lintloom.engine.diagnostics import DiagnosticCollector
from lintloom.engine.issues import ValidationError, ValidationResult, ValidationWarning

if TYPE_CHECKING:
    from pathlib import Path


def _result(*files: str) -> ValidationResult:
    return ValidationResult(
        errors=[ValidationError("too big", file="CLAUDE.md", line=1, rule_id="size-error")],
        warnings=[ValidationWarning("odd", file="CLAUDE.md", rule_id="size-warning")],
        validated_files=list(files),
    )


def _bump_mtime(path: Path) -> None:
    stat = path.stat()
    os.utime(path, ns=(stat.st_atime_ns, stat.st_mtime_ns + 5_000_000_000))


@pytest.fixture()
def tracked(tmp_path: Path) -> Path:
    path = tmp_path / "CLAUDE.md"
    path.write_text("# Project\n", encoding="utf-8")
    return path


@pytest.fixture()
def cache(tmp_path: Path) -> ValidationCache:
    return ValidationCache(tmp_path / "cache", version="test")


class TestRoundTrip:
    def test_miss_when_empty(self, cache: ValidationCache) -> None:
        assert cache.get("claude-md", None) is None

    def test_set_then_get(self, cache: ValidationCache, tracked: Path) -> None:
        cache.set("claude-md", _result(str(tracked)), None)
        cached = cache.get("claude-md", None)

        assert cached is not None
        assert [e.message for e in cached.errors] == ["too big"]
        assert [w.rule_id for w in cached.warnings] == ["size-warning"]
        assert cached.validated_files == [str(tracked)]

    def test_entries_are_per_validator(self, cache: ValidationCache, tracked: Path) -> None:
        cache.set("claude-md", _result(str(tracked)), None)
        assert cache.get("skills", None) is None

    def test_layout_on_disk(self, cache: ValidationCache, tracked: Path) -> None:
        cache.set("claude-md", _result(str(tracked)), None)
        index = json.loads((cache.location / INDEX_FILE).read_text(encoding="utf-8"))
        entry = index["entries"]["claude-md"]

        assert index["version"] == "test"
        assert entry["files"] == [str(tracked)]
        assert (cache.location / PAYLOAD_DIR / entry["result_file"]).is_file()


class TestInvalidation:
    def test_tracked_mtime_change_misses(self, cache: ValidationCache, tracked: Path) -> None:
        cache.set("claude-md", _result(str(tracked)), None)
        _bump_mtime(tracked)
        assert cache.get("claude-md", None) is None

    def test_tracked_file_deleted_misses(self, cache: ValidationCache, tracked: Path) -> None:
        cache.set("claude-md", _result(str(tracked)), None)
        tracked.unlink()
        assert cache.get("claude-md", None) is None

    def test_untracked_change_still_hits(
        self, cache: ValidationCache, tracked: Path, tmp_path: Path
    ) -> None:
        other = tmp_path / "notes.md"
        other.write_text("x", encoding="utf-8")
        cache.set("claude-md", _result(str(tracked)), None)
        _bump_mtime(other)
        assert cache.get("claude-md", None) is not None

    def test_zero_tracked_files_always_misses(self, cache: ValidationCache) -> None:
        cache.set("claude-md", ValidationResult(), None)
        assert cache.get("claude-md", None) is None
        assert cache.get("claude-md", None) is None

    def test_config_change_misses(self, cache: ValidationCache, tracked: Path) -> None:
        before = parse_config({"rules": {"size-error": "error"}})
        after = parse_config({"rules": {"size-error": "warn"}})
        cache.set("claude-md", _result(str(tracked)), before)

        assert cache.get("claude-md", before) is not None
        assert cache.get("claude-md", after) is None

    def test_version_change_discards_everything(self, tmp_path: Path, tracked: Path) -> None:
        location = tmp_path / "cache"
        ValidationCache(location, version="1").set("claude-md", _result(str(tracked)), None)

        upgraded = ValidationCache(location, version="2")
        assert upgraded.get("claude-md", None) is None
        assert not (location / PAYLOAD_DIR).exists()

    def test_missing_payload_misses(self, cache: ValidationCache, tracked: Path) -> None:
        cache.set("claude-md", _result(str(tracked)), None)
        for payload in (cache.location / PAYLOAD_DIR).iterdir():
            payload.unlink()
        assert cache.get("claude-md", None) is None

    def test_corrupt_payload_misses(self, cache: ValidationCache, tracked: Path) -> None:
        cache.set("claude-md", _result(str(tracked)), None)
        for payload in (cache.location / PAYLOAD_DIR).iterdir():
            payload.write_text("{not json", encoding="utf-8")
        assert cache.get("claude-md", None) is None

    def test_corrupt_index_is_a_miss_with_diagnostic(self, tmp_path: Path) -> None:
        location = tmp_path / "cache"
        location.mkdir()
        (location / INDEX_FILE).write_text("[[[", encoding="utf-8")
        diagnostics = DiagnosticCollector()
        cache = ValidationCache(location, diagnostics=diagnostics, version="test")

        assert cache.get("claude-md", None) is None
        assert [d.code for d in diagnostics.get_warnings()] == ["CACHE_ERROR"]

    def test_entries_not_a_mapping(self, tmp_path: Path, tracked: Path) -> None:
        location = tmp_path / "cache"
        location.mkdir()
        index = {"version": "test", "entries": ["x"]}
        (location / INDEX_FILE).write_text(json.dumps(index), encoding="utf-8")
        diagnostics = DiagnosticCollector()
        cache = ValidationCache(location, diagnostics=diagnostics, version="test")

        assert cache.get("claude-md", None) is None
        assert {d.code for d in diagnostics.get_warnings()} == {"CACHE_ERROR"}

        cache.set("claude-md", _result(str(tracked)), None)
        cached = cache.get("claude-md", None)
        assert cached is not None
        assert cached.validated_files == [str(tracked)]


class TestMaintenance:
    def test_rehash_removes_old_payload(self, cache: ValidationCache, tracked: Path) -> None:
        cache.set("claude-md", _result(str(tracked)), None)
        _bump_mtime(tracked)
        cache.set("claude-md", _result(str(tracked)), None)
        assert len(list((cache.location / PAYLOAD_DIR).iterdir())) == 1

    def test_clear(self, cache: ValidationCache, tracked: Path) -> None:
        cache.set("claude-md", _result(str(tracked)), None)
        cache.clear()
        assert not cache.location.exists()
        assert cache.get("claude-md", None) is None

    def test_clear_missing_location(self, tmp_path: Path) -> None:
        diagnostics = DiagnosticCollector()
        ValidationCache(tmp_path / "nowhere", diagnostics=diagnostics).clear()
        assert len(diagnostics) == 0

    def test_disabled_cache_is_inert(self, tmp_path: Path, tracked: Path) -> None:
        cache = ValidationCache(tmp_path / "cache", enabled=False, version="test")
        cache.set("claude-md", _result(str(tracked)), None)
        assert not cache.location.exists()
        assert cache.get("claude-md", None) is None

    def test_stats(self, cache: ValidationCache, tracked: Path) -> None:
        assert cache.stats()["entries"] == 0
        cache.set("claude-md", _result(str(tracked)), None)
        stats = cache.stats()
        assert stats["entries"] == 1
        assert stats["bytes"] > 0


class TestFingerprint:
    def test_order_and_duplicates_do_not_matter(
        self, cache: ValidationCache, tracked: Path
    ) -> None:
        path = str(tracked)
        assert cache.fingerprint("v", None, [path, path]) == cache.fingerprint("v", None, [path])

    def test_validator_name_is_part_of_hash(self, cache: ValidationCache, tracked: Path) -> None:
        files = [str(tracked)]
        assert cache.fingerprint("a", None, files) != cache.fingerprint("b", None, files)

    def test_build_identity_carries_version(self) -> None:
        from lintloom import __version__

        assert build_identity().startswith(f"{__version__}+")
