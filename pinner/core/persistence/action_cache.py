"""
Action cache — persistent (repo, version) → SHA map.

Stored as JSON in ``.github/aw/actions-lock.json`` under the repository
root, in the same ``entries`` shape as the bundled pin catalog::

    {
      "entries": {
        "actions/checkout@v5": {"repo": "actions/checkout", "version": "v5", "sha": "…"}
      }
    }

Writes are atomic (write to temp file, then rename) so a crashed run
never leaves a half-written lock file behind.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path

from pydantic import ValidationError

from pinner.core.models.action_pin import ActionPin

logger = logging.getLogger(__name__)

CACHE_DIR = Path(".github") / "aw"
CACHE_FILE = "actions-lock.json"


def cache_key(repo: str, version: str) -> str:
    return f"{repo}@{version}"


class ActionCache:
    """SHA cache rooted at a repository directory.

    The file is read on construction.  ``set`` writes through to disk
    immediately, so separate processes sharing a checkout see each
    other's resolutions.
    """

    def __init__(self, base_dir: Path | str) -> None:
        self.base_dir = Path(base_dir)
        self._entries: dict[str, ActionPin] = {}
        self.load()

    @property
    def path(self) -> Path:
        return self.base_dir / CACHE_DIR / CACHE_FILE

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: object) -> bool:
        return key in self._entries

    # ── Lookup ──────────────────────────────────────────────────

    def get(self, repo: str, version: str) -> str | None:
        """Cached SHA for ``repo@version``, or None."""
        entry = self._entries.get(cache_key(repo, version))
        return entry.sha if entry else None

    def set(self, repo: str, version: str, sha: str) -> None:
        """Record a resolution and persist it."""
        self._entries[cache_key(repo, version)] = ActionPin(repo=repo, version=version, sha=sha)
        self.save()

    def entries(self) -> list[ActionPin]:
        """All entries, ordered by key."""
        return [self._entries[k] for k in sorted(self._entries)]

    # ── Disk I/O ────────────────────────────────────────────────

    def load(self) -> None:
        """(Re)read the cache file.  Missing or unreadable ⇒ empty cache."""
        self._entries = {}
        path = self.path
        if not path.is_file():
            logger.debug("No action cache at %s — starting empty", path)
            return

        try:
            data = json.loads(path.read_text(encoding="utf-8"))
            raw_entries = data.get("entries", {}) if isinstance(data, dict) else {}
            for key, entry in raw_entries.items():
                try:
                    self._entries[key] = ActionPin.model_validate(entry)
                except ValidationError as e:
                    logger.warning(
                        "Dropping invalid action cache entry %s in %s: %s",
                        key, path, e.errors()[0]["msg"],
                    )
            logger.debug("Loaded %d cached action SHAs from %s", len(self._entries), path)
        except json.JSONDecodeError as e:
            logger.warning("Corrupt action cache %s: %s — starting empty", path, e)
            self._entries = {}
        except Exception as e:
            logger.warning("Cannot load action cache from %s: %s — starting empty", path, e)
            self._entries = {}

    def save(self) -> None:
        """Write all entries to disk (atomic write)."""
        path = self.path
        path.parent.mkdir(parents=True, exist_ok=True)

        data = {
            "entries": {
                key: self._entries[key].model_dump(mode="json")
                for key in sorted(self._entries)
            }
        }
        content = json.dumps(data, indent=2, ensure_ascii=False) + "\n"

        try:
            fd, tmp_path = tempfile.mkstemp(
                dir=path.parent,
                prefix=".actions-lock_",
                suffix=".tmp",
            )
            os.close(fd)
            tmp = Path(tmp_path)
            try:
                tmp.write_text(content, encoding="utf-8")
                tmp.replace(path)
                logger.debug("Action cache saved to %s (%d entries)", path, len(self._entries))
            except Exception:
                tmp.unlink(missing_ok=True)
                raise
        except Exception as e:
            logger.error("Failed to save action cache to %s: %s", path, e)
            raise

    def clear(self) -> None:
        """Drop every entry, on disk too."""
        count = len(self._entries)
        self._entries = {}
        if self.path.is_file():
            self.save()
        logger.info("Cleared %d cached action SHAs", count)
