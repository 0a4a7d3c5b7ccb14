"""
GitHub CLI access — the only place that shells out to ``gh``.

The resolver asks GitHub which commit a tag or branch points at.  The
``gh`` CLI supplies authentication; nothing here handles tokens.
"""

from __future__ import annotations

import logging
import subprocess
from pathlib import Path

logger = logging.getLogger(__name__)


def run_gh(
    *args: str,
    cwd: Path | None = None,
    timeout: int = 30,
) -> subprocess.CompletedProcess[str]:
    """Run a gh CLI command and return the result."""
    logger.debug("gh %s", " ".join(args))
    return subprocess.run(
        ["gh", *args],
        cwd=str(cwd) if cwd else None,
        capture_output=True,
        text=True,
        timeout=timeout,
    )


def gh_commit_sha(owner_repo: str, ref: str, *, timeout: int = 20) -> str:
    """Ask the GitHub API for the commit SHA ``ref`` points at in ``owner_repo``.

    Returns the raw (stripped) output; validation is up to the caller.

    Raises:
        RuntimeError: ``gh`` exited non-zero.
        FileNotFoundError: ``gh`` is not installed.
        subprocess.TimeoutExpired: the call exceeded ``timeout`` seconds.
    """
    r = run_gh(
        "api",
        f"repos/{owner_repo}/commits/{ref}",
        "--jq",
        ".sha",
        timeout=timeout,
    )
    if r.returncode != 0:
        detail = r.stderr.strip() or r.stdout.strip() or f"exit code {r.returncode}"
        raise RuntimeError(f"gh api failed for {owner_repo}@{ref}: {detail}")
    return r.stdout.strip()
