"""
Tests for the persistent action SHA cache.
"""

import json
from pathlib import Path

import pytest
from pydantic import ValidationError

from pinner.core.persistence.action_cache import ActionCache

SHA = "5a3ec84eff668545956fd18022155c47e93e2684"
OTHER_SHA = "11bd71901bbe5b1630ceea73d27597364c9af683"


class TestActionCache:
    """Tests for get/set and durability."""

    def test_empty_when_missing(self, tmp_cache_dir: Path):
        cache = ActionCache(tmp_cache_dir)
        assert len(cache) == 0
        assert cache.get("actions/cache", "v4") is None

    def test_path_layout(self, tmp_cache_dir: Path):
        cache = ActionCache(tmp_cache_dir)
        assert cache.path == tmp_cache_dir / ".github" / "aw" / "actions-lock.json"

    def test_set_then_get(self, action_cache: ActionCache):
        action_cache.set("actions/cache", "v4", SHA)
        assert action_cache.get("actions/cache", "v4") == SHA
        assert action_cache.get("actions/cache", "v5") is None

    def test_set_writes_through(self, tmp_cache_dir: Path):
        ActionCache(tmp_cache_dir).set("actions/cache", "v4", SHA)
        # a later process sees the entry
        assert ActionCache(tmp_cache_dir).get("actions/cache", "v4") == SHA

    def test_file_format(self, action_cache: ActionCache):
        action_cache.set("b/b", "v1", OTHER_SHA)
        action_cache.set("a/a", "v1", SHA)

        raw = action_cache.path.read_text()
        assert raw.endswith("\n")
        data = json.loads(raw)
        assert list(data["entries"]) == ["a/a@v1", "b/b@v1"]
        assert data["entries"]["a/a@v1"] == {"repo": "a/a", "version": "v1", "sha": SHA}

    def test_overwrite(self, action_cache: ActionCache):
        action_cache.set("a/a", "v1", SHA)
        action_cache.set("a/a", "v1", OTHER_SHA)
        assert action_cache.get("a/a", "v1") == OTHER_SHA
        assert len(action_cache) == 1

    def test_no_temp_files_left(self, action_cache: ActionCache):
        action_cache.set("a/a", "v1", SHA)
        leftovers = list(action_cache.path.parent.glob(".actions-lock_*.tmp"))
        assert leftovers == []

    def test_corrupt_file_starts_empty(self, tmp_cache_dir: Path):
        path = tmp_cache_dir / ".github" / "aw" / "actions-lock.json"
        path.parent.mkdir(parents=True)
        path.write_text("not json at all {{{")
        cache = ActionCache(tmp_cache_dir)
        assert len(cache) == 0
        cache.set("a/a", "v1", SHA)
        assert ActionCache(tmp_cache_dir).get("a/a", "v1") == SHA

    def test_malformed_sha_entry_dropped(self, tmp_cache_dir: Path, caplog):
        path = tmp_cache_dir / ".github" / "aw" / "actions-lock.json"
        path.parent.mkdir(parents=True)
        path.write_text(json.dumps({"entries": {
            "foo/bar@v1": {"repo": "foo/bar", "version": "v1", "sha": "not-a-sha"},
            "foo/bar@v2": {"repo": "foo/bar", "version": "v2", "sha": SHA.upper()},
            "a/a@v1": {"repo": "a/a", "version": "v1", "sha": SHA},
        }}))
        cache = ActionCache(tmp_cache_dir)
        assert cache.get("foo/bar", "v1") is None
        assert cache.get("foo/bar", "v2") is None
        assert cache.get("a/a", "v1") == SHA
        assert len(cache) == 1
        assert "Dropping invalid action cache entry foo/bar@v1" in caplog.text

    def test_set_rejects_malformed_sha(self, action_cache: ActionCache):
        with pytest.raises(ValidationError):
            action_cache.set("a/a", "v1", "not-a-sha")
        assert len(action_cache) == 0

    def test_clear(self, tmp_cache_dir: Path):
        cache = ActionCache(tmp_cache_dir)
        cache.set("a/a", "v1", SHA)
        cache.clear()
        assert len(cache) == 0
        assert len(ActionCache(tmp_cache_dir)) == 0

    def test_entries_sorted(self, action_cache: ActionCache):
        action_cache.set("z/z", "v1", SHA)
        action_cache.set("a/a", "v2", OTHER_SHA)
        assert [e.repo for e in action_cache.entries()] == ["a/a", "z/z"]

    def test_contains_key(self, action_cache: ActionCache):
        action_cache.set("a/a", "v1", SHA)
        assert "a/a@v1" in action_cache
        assert "a/a@v2" not in action_cache
