"""
Runtime models — catalog entries and detected requirements.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class Runtime(BaseModel):
    """A language or tool runtime that can be provisioned by a setup action."""

    model_config = ConfigDict(frozen=True)

    id: str                          # "node", "python", "go", …
    name: str                        # display name used in "Setup <name>"
    action_repo: str                 # e.g. "actions/setup-node"
    action_version: str              # tag resolved through the pin registry
    version_field: str               # "with" key carrying the version
    default_version: str = ""        # empty = let the action pick
    commands: tuple[str, ...] = ()   # executables that imply this runtime
    extra_with: dict[str, Any] = Field(default_factory=dict)
    capture_root_env: str = ""       # env var filled after setup (go only)


class RuntimeRequirement(BaseModel):
    """A detected need for one runtime in one workflow.

    At most one requirement exists per ``runtime.id``; an empty
    ``version`` means "use the catalog default".
    """

    runtime: Runtime
    version: str = ""
    if_condition: str = ""
    go_mod_file: str = ""

    @property
    def runtime_id(self) -> str:
        return self.runtime.id

    def effective_version(self) -> str:
        """Requested version, or the runtime's default."""
        return self.version or self.runtime.default_version
