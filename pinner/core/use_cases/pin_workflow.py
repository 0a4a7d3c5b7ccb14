"""
Pin use case — rewrite the step actions of a GitHub Actions workflow file.

Only ``jobs.<id>.steps[*].uses`` references are touched.  The file is
edited line by line, so comments and formatting elsewhere survive.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from pathlib import Path

import yaml

from pinner.core.models.step import WorkflowStep
from pinner.core.models.workflow import WorkflowData
from pinner.core.services.action_pins import apply_action_pin_to_typed_step

logger = logging.getLogger(__name__)

_USES_LINE = re.compile(
    r"^(?P<lead>\s*(?:-\s+)?uses:\s*)"
    r"(?P<quote>['\"]?)(?P<ref>[^'\"\s#]+)(?P=quote)"
    r"(?P<tail>\s*(?:#.*)?)$"
)


class WorkflowFileError(Exception):
    """Raised when a workflow file cannot be read or parsed."""


@dataclass
class PinResult:
    """Outcome of pinning one workflow file."""

    path: Path
    text: str = ""
    changes: list[tuple[str, str]] = field(default_factory=list)
    written: bool = False
    warnings: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "path": str(self.path),
            "changes": [{"from": old, "to": new} for old, new in self.changes],
            "written": self.written,
            "warnings": self.warnings,
        }


def _step_uses(document: dict) -> set[str]:
    """Every ``uses`` value found in the jobs' steps."""
    found: set[str] = set()
    jobs = document.get("jobs") or {}
    if not isinstance(jobs, dict):
        return found
    for job in jobs.values():
        if not isinstance(job, dict):
            continue
        for step in job.get("steps") or []:
            if isinstance(step, dict) and isinstance(step.get("uses"), str):
                found.add(step["uses"])
    return found


def pin_workflow_text(text: str, data: WorkflowData) -> tuple[str, list[tuple[str, str]]]:
    """Pin step actions in workflow YAML text.

    Returns the new text and the ``(old, new)`` references that changed.

    Raises:
        WorkflowFileError: the text is not a YAML mapping.
    """
    try:
        document = yaml.safe_load(text)
    except yaml.YAMLError as e:
        raise WorkflowFileError(f"Invalid workflow YAML: {e}") from e
    if not isinstance(document, dict):
        raise WorkflowFileError("Expected a workflow mapping at the top level")

    step_refs = _step_uses(document)
    pinned: dict[str, str] = {}
    changes: list[tuple[str, str]] = []

    out_lines = []
    for line in text.splitlines(keepends=True):
        body = line.rstrip("\r\n")
        ending = line[len(body):]
        match = _USES_LINE.match(body)
        if match is None or match.group("ref") not in step_refs:
            out_lines.append(line)
            continue

        ref = match.group("ref")
        comment = match.group("tail").strip()
        current = f"{ref} {comment}" if comment else ref
        if current not in pinned:
            step = apply_action_pin_to_typed_step(WorkflowStep(uses=current), data)
            pinned[current] = step.uses
        new_ref = pinned[current]

        if new_ref == current:
            out_lines.append(line)
            continue

        changes.append((ref, new_ref))
        out_lines.append(f"{match.group('lead')}{new_ref}{ending}")

    return "".join(out_lines), changes


def pin_workflow_file(path: Path, data: WorkflowData, *, dry_run: bool = False) -> PinResult:
    """Pin the step actions of one workflow file.

    Args:
        path: Workflow YAML file.
        data: Per-workflow context (resolver, strict mode, warning set).
        dry_run: Compute the result without writing the file.

    Raises:
        WorkflowFileError: the file is missing or not valid YAML.
    """
    try:
        original = path.read_text(encoding="utf-8")
    except OSError as e:
        raise WorkflowFileError(f"Cannot read {path}: {e}") from e

    text, changes = pin_workflow_text(original, data)
    result = PinResult(path=path, text=text, changes=changes)
    result.warnings = [f"unable to pin action {key}" for key in sorted(data.action_pin_warnings)]

    if changes and not dry_run:
        path.write_text(text, encoding="utf-8")
        result.written = True
        logger.info("Pinned %d action reference(s) in %s", len(changes), path)
    else:
        logger.debug("%s: %d change(s), dry_run=%s", path, len(changes), dry_run)
    return result
