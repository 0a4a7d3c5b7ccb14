"""
Workflow step model — one entry of a job's ``steps:`` list.

A step either invokes a reusable action (``uses``) or executes a shell
command (``run``).  ``with`` and ``env`` stay open-ended mappings; the
pinning and runtime code only checks key presence and reads scalars.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class WorkflowStep(BaseModel):
    """A typed GitHub Actions step.

    Field names follow Python conventions; the YAML spelling is kept as
    the alias (``if``, ``with``, ``timeout-minutes`` …) so steps load from
    and dump to plain mappings unchanged.  Unknown keys are kept as extras.
    """

    model_config = ConfigDict(populate_by_name=True, extra="allow", coerce_numbers_to_str=True)

    name: str = ""
    id: str = ""
    if_condition: str = Field(default="", alias="if")
    uses: str = ""
    run: str = ""
    shell: str = ""
    working_directory: str = Field(default="", alias="working-directory")
    with_: dict[str, Any] = Field(default_factory=dict, alias="with")
    env: dict[str, Any] = Field(default_factory=dict)
    timeout_minutes: int | str | None = Field(default=None, alias="timeout-minutes")
    continue_on_error: bool | str | None = Field(default=None, alias="continue-on-error")

    def is_uses_step(self) -> bool:
        """Whether the step invokes an action."""
        return bool(self.uses)

    def is_run_step(self) -> bool:
        """Whether the step runs a shell command."""
        return bool(self.run)

    def to_map(self) -> dict[str, Any]:
        """Plain mapping with YAML key names, empty fields omitted."""
        return self.model_dump(by_alias=True, exclude_defaults=True)

    def copy_step(self, **changes: Any) -> WorkflowStep:
        """Independent deep copy, optionally with some fields replaced."""
        return self.model_copy(update=changes, deep=True)
