"""
Step codec — YAML text ↔ typed workflow steps.

Custom steps arrive as YAML, either wrapped (``steps: [...]``) or as a
bare list.  Parsing yields ``WorkflowStep`` models; dumping goes back
through plain mappings so key order and unknown keys survive.
"""

from __future__ import annotations

import logging
from typing import Any

import yaml
from pydantic import ValidationError

from pinner.core.models.step import WorkflowStep

logger = logging.getLogger(__name__)


class StepCodecError(Exception):
    """Raised when step text is not a valid step list."""


# ── Parsing ─────────────────────────────────────────────────────


def load_step_maps(text: str) -> list[dict[str, Any]]:
    """Parse step YAML into plain mappings.

    Raises:
        StepCodecError: invalid YAML, or an item is not a mapping.
    """
    if not text or not text.strip():
        return []

    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as e:
        raise StepCodecError(f"invalid YAML: {e}") from e

    if data is None:
        return []
    if isinstance(data, dict):
        if "steps" not in data:
            raise StepCodecError("expected a 'steps:' key or a list of steps")
        data = data["steps"] or []
    if not isinstance(data, list):
        raise StepCodecError(f"expected a list of steps, got {type(data).__name__}")

    for i, item in enumerate(data):
        if not isinstance(item, dict):
            raise StepCodecError(
                f"step {i + 1} must be a mapping, got {type(item).__name__}"
            )
    return data


def step_from_map(mapping: dict[str, Any]) -> WorkflowStep:
    """Build a typed step from a plain mapping."""
    try:
        return WorkflowStep.model_validate(mapping)
    except ValidationError as e:
        raise StepCodecError(f"invalid step: {e}") from e


def steps_from_list(items: list[dict[str, Any]]) -> list[WorkflowStep]:
    return [step_from_map(item) for item in items]


def parse_steps(text: str) -> list[WorkflowStep]:
    """Parse step YAML into typed steps."""
    return steps_from_list(load_step_maps(text))


# ── Dumping ─────────────────────────────────────────────────────


def steps_to_list(steps: list[WorkflowStep]) -> list[dict[str, Any]]:
    return [step.to_map() for step in steps]


def dump_steps(items: list[dict[str, Any]], wrap: bool = True) -> str:
    """Serialize step mappings to YAML, under ``steps:`` when ``wrap``."""
    payload: Any = {"steps": items} if wrap else items
    return yaml.safe_dump(
        payload,
        default_flow_style=False,
        sort_keys=False,
        allow_unicode=True,
        width=1000,
    )


def _scalar(value: Any) -> str:
    """Render one scalar as a YAML flow value."""
    if isinstance(value, bool):
        return "true" if value else "false"
    if value is None:
        return "null"
    if isinstance(value, (int, float)):
        return str(value)
    return yaml.safe_dump(value, default_flow_style=True, width=1000).removesuffix("\n...\n").strip()


def _block_lines(head: str, value: str, body_pad: str) -> list[str]:
    """``head: |`` plus body lines, with the chomping indicator that
    keeps ``value``'s trailing newlines exact."""
    body = value.rstrip("\n")
    trailing = len(value) - len(body)
    indicator = "|-" if trailing == 0 else "|" if trailing == 1 else "|+"
    lines = [f"{head}: {indicator}"]
    for line in body.split("\n"):
        lines.append(f"{body_pad}{line}" if line else "")
    lines.extend([""] * max(trailing - 1, 0))
    return lines


def _is_block(value: Any) -> bool:
    # a leading space or blank line would need an explicit indentation indicator
    return isinstance(value, str) and "\n" in value and "\r" not in value and value[:1] not in (" ", "\n")


_RAW_KEYS = ("uses", "if")


def _single_quoted(value: str) -> str:
    return "'" + value.replace("'", "''") + "'"


def render_step_lines(
    step: WorkflowStep,
    indent: int = 6,
    quote_keys: frozenset[str] | set[str] = frozenset(),
) -> list[str]:
    """Render one step as YAML list-item lines.

    ``uses`` is written raw so a ``# version`` suffix stays a comment, and
    so is ``if`` so expressions read exactly as given.
    String inputs named in ``quote_keys`` are always single-quoted
    (``node-version: '20'``), even where YAML would not need it.
    Multi-line strings, top-level or under ``with``/``env``, become
    ``|`` block scalars.
    """
    pad = " " * indent
    lines: list[str] = []
    for key, value in step.to_map().items():
        prefix = f"{pad}- " if not lines else f"{pad}  "
        if key in _RAW_KEYS:
            lines.append(f"{prefix}{key}: {value}")
        elif isinstance(value, dict):
            lines.append(f"{prefix}{key}:")
            for sub_key, sub_value in value.items():
                if _is_block(sub_value):
                    lines.extend(_block_lines(f"{pad}    {sub_key}", sub_value, f"{pad}      "))
                    continue
                if sub_key in quote_keys and isinstance(sub_value, str):
                    rendered = _single_quoted(sub_value)
                else:
                    rendered = _scalar(sub_value)
                lines.append(f"{pad}    {sub_key}: {rendered}")
        elif _is_block(value):
            lines.extend(_block_lines(f"{prefix}{key}", value, f"{pad}    "))
        else:
            lines.append(f"{prefix}{key}: {_scalar(value)}")
    return lines
