"""
Action resolver — turns ``repo@version`` into a commit SHA on demand.

Lookup order:
    1. keys that already failed during this run fail again immediately
    2. the persistent ActionCache
    3. the GitHub API (via ``gh``), result stored back into the cache

The failed-key set lives on the instance and is never persisted, so a
later run retries.
"""

from __future__ import annotations

import logging
import re
import subprocess
from collections.abc import Callable

from pinner.core.persistence.action_cache import ActionCache, cache_key
from pinner.core.services.git_ops import gh_commit_sha

logger = logging.getLogger(__name__)

_SHA_RE = re.compile(r"^[0-9a-f]{40}$")

ResolveFn = Callable[[str, str, int], str]


class ActionResolutionError(Exception):
    """Raised when a tag or branch cannot be resolved to a commit SHA."""


def is_valid_sha(value: str) -> bool:
    """Whether ``value`` is a full 40-character lowercase hex commit SHA."""
    return bool(_SHA_RE.match(value or ""))


def extract_base_repo(repo: str) -> str:
    """Reduce ``owner/repo/sub/path`` to ``owner/repo``.

    Sub-path actions live in the same repository, so the commit lookup
    goes to the base repo.
    """
    parts = repo.split("/")
    if len(parts) >= 2:
        return f"{parts[0]}/{parts[1]}"
    return repo


def _default_resolve(owner_repo: str, ref: str, timeout: int) -> str:
    return gh_commit_sha(owner_repo, ref, timeout=timeout)


class ActionResolver:
    """Resolves action refs to SHAs, backed by an ActionCache.

    Args:
        cache: Persistent cache consulted first and updated on success.
        resolve_fn: ``(owner_repo, ref, timeout) -> sha`` callable.  Defaults
            to a ``gh api`` lookup.  Tests pass a fake.
        timeout: Seconds allowed per remote lookup.
    """

    def __init__(
        self,
        cache: ActionCache,
        *,
        resolve_fn: ResolveFn | None = None,
        timeout: int = 20,
    ) -> None:
        self.cache = cache
        self.timeout = timeout
        self.failed: set[str] = set()
        self._resolve_fn = resolve_fn or _default_resolve

    def resolve_sha(self, repo: str, version: str) -> str:
        """Return the commit SHA for ``repo@version``.

        Raises:
            ActionResolutionError: lookup failed now or earlier in this run.
        """
        key = cache_key(repo, version)
        if key in self.failed:
            raise ActionResolutionError(f"previously failed to resolve {key}")

        cached = self.cache.get(repo, version)
        if cached and is_valid_sha(cached):
            logger.debug("Cache hit for %s: %s", key, cached)
            return cached
        if cached:
            logger.warning("Ignoring malformed cached SHA %r for %s", cached, key)

        base_repo = extract_base_repo(repo)
        logger.info("Resolving %s@%s via GitHub API", base_repo, version)

        try:
            sha = self._resolve_fn(base_repo, version, self.timeout)
        except subprocess.TimeoutExpired as e:
            self.failed.add(key)
            raise ActionResolutionError(
                f"timed out after {self.timeout}s resolving {key}"
            ) from e
        except FileNotFoundError as e:
            self.failed.add(key)
            raise ActionResolutionError(
                f"cannot resolve {key}: gh CLI not found"
            ) from e
        except Exception as e:
            self.failed.add(key)
            raise ActionResolutionError(f"failed to resolve {key}: {e}") from e

        sha = (sha or "").strip()
        if not is_valid_sha(sha):
            self.failed.add(key)
            raise ActionResolutionError(
                f"invalid SHA {sha!r} returned for {key}"
            )

        try:
            self.cache.set(repo, version, sha)
        except OSError as e:
            logger.warning("Resolved %s but could not cache it: %s", key, e)
        logger.debug("Resolved %s → %s", key, sha)
        return sha
