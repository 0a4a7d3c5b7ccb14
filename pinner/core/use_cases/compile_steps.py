"""
Compile use case — build a main job's step list from custom steps.

    detect runtimes → drop duplicates → generate setup → pin custom steps

Runtime setup goes in front of the custom steps, or right behind the
first ``actions/checkout`` step when the custom steps check out the
repository themselves (setup actions may read files from the checkout).
"""

from __future__ import annotations

import logging
import textwrap
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from pinner.core.models.runtime import RuntimeRequirement
from pinner.core.models.workflow import WorkflowData
from pinner.core.services.action_pins import apply_action_pins_to_typed_steps, extract_action_repo
from pinner.core.services.runtime_detection import detect_runtime_requirements
from pinner.core.services.runtime_setup import (
    RuntimeSetupError,
    deduplicate_runtime_setup_steps_from_custom_steps,
    generate_runtime_setup_steps,
)
from pinner.core.services.step_codec import (
    StepCodecError,
    dump_steps,
    parse_steps,
    render_step_lines,
)

logger = logging.getLogger(__name__)

CHECKOUT_ACTION = "actions/checkout"
STEP_INDENT = 6


@dataclass
class CompileResult:
    """Compiled main-job steps."""

    steps_yaml: str = ""
    requirements: list[RuntimeRequirement] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "steps_yaml": self.steps_yaml,
            "runtimes": [
                {
                    "id": r.runtime_id,
                    "version": r.effective_version(),
                    "action": r.runtime.action_repo,
                    "if": r.if_condition,
                }
                for r in self.requirements
            ],
            "warnings": self.warnings,
        }


def read_steps_file(path: Path) -> tuple[str, dict[str, Any], dict[str, Any]]:
    """Read a steps document: ``(custom_steps, tools, runtimes)``.

    The document is either a bare step list, or a mapping with ``steps``
    and optional ``tools`` / ``runtimes`` sections (workflow frontmatter
    shape).  A steps-only document is passed on verbatim.

    Raises:
        StepCodecError: the file is unreadable or not YAML.
    """
    try:
        text = path.read_text(encoding="utf-8")
        document = yaml.safe_load(text)
    except (OSError, yaml.YAMLError) as e:
        raise StepCodecError(f"cannot read steps file {path}: {e}") from e

    if not isinstance(document, dict) or set(document) <= {"steps"}:
        return text, {}, {}

    steps = document.get("steps") or []
    custom_steps = dump_steps(steps) if steps else ""
    return custom_steps, document.get("tools") or {}, document.get("runtimes") or {}


def _raw_custom_lines(text: str) -> list[str]:
    """Custom steps copied as text, re-indented under the job."""
    lines = text.splitlines()
    if lines and lines[0].strip() == "steps:":
        lines = lines[1:]
    body = textwrap.dedent("\n".join(lines))
    return [(" " * STEP_INDENT + line) if line.strip() else "" for line in body.splitlines()]


def compile_main_steps(data: WorkflowData) -> CompileResult:
    """Assemble runtime setup and pinned custom steps for one workflow."""
    result = CompileResult()

    requirements = detect_runtime_requirements(data)
    custom_text = data.custom_steps

    if requirements and custom_text:
        try:
            custom_text, requirements = deduplicate_runtime_setup_steps_from_custom_steps(
                custom_text, requirements,
            )
        except RuntimeSetupError as e:
            logger.warning("Skipping runtime deduplication: %s", e)
            result.warnings.append(str(e))

    result.requirements = requirements
    runtime_blocks = generate_runtime_setup_steps(requirements, data)

    custom_blocks: list[list[str]] = []
    checkout_at: int | None = None
    try:
        custom_steps = parse_steps(custom_text)
    except StepCodecError as e:
        logger.warning("Custom steps copied without pinning: %s", e)
        result.warnings.append(f"custom steps not pinned: {e}")
        if custom_text.strip():
            custom_blocks.append(_raw_custom_lines(custom_text))
    else:
        pinned = apply_action_pins_to_typed_steps(custom_steps, data) or []
        for index, step in enumerate(pinned):
            custom_blocks.append(render_step_lines(step, indent=STEP_INDENT))
            if checkout_at is None and extract_action_repo(step.uses) == CHECKOUT_ACTION:
                checkout_at = index

    if checkout_at is None:
        blocks = runtime_blocks + custom_blocks
    else:
        logger.debug("Inserting %d runtime steps after checkout", len(runtime_blocks))
        blocks = custom_blocks[:checkout_at + 1] + runtime_blocks + custom_blocks[checkout_at + 1:]

    lines = [line for block in blocks for line in block]
    result.steps_yaml = "\n".join(lines) + "\n" if lines else ""
    result.warnings.extend(
        f"unable to pin action {key}" for key in sorted(data.action_pin_warnings)
    )
    return result
