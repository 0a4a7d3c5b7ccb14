"""
Action pin model — a known-good (repo, version, sha) triple.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

SHA_PATTERN = r"^[0-9a-f]{40}$"


class ActionPin(BaseModel):
    """A reusable action pinned to an immutable commit.

    Pins are loaded once from the bundled catalog and never mutated;
    several pins may share a ``repo`` at different versions.
    """

    model_config = ConfigDict(frozen=True)

    repo: str       # owner/repo[/subpath]
    version: str    # tag as published, e.g. "v4.6.2"
    sha: str = Field(pattern=SHA_PATTERN)   # 40-char lowercase commit hash
