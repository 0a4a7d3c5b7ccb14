"""
Runtime setup — generate provisioning steps and drop the duplicates.

``generate_runtime_setup_steps`` turns requirements into pinned setup
steps (YAML lines, indented for a job's ``steps:`` list).

``deduplicate_runtime_setup_steps_from_custom_steps`` reconciles those
requirements with setup actions the author already wrote:

    - setup action with ``with:`` inputs → the author's step wins,
      the requirement is dropped
    - setup action without inputs        → the author's step is removed,
      the generated (pinned, versioned) step replaces it
"""

from __future__ import annotations

import logging

import yaml

from pinner.core.models.runtime import RuntimeRequirement
from pinner.core.models.step import WorkflowStep
from pinner.core.models.workflow import WorkflowData
from pinner.core.services.action_pins import (
    ActionPinError,
    extract_action_repo,
    format_action_cache_key,
    get_action_pin_with_data,
)
from pinner.core.services.step_codec import (
    StepCodecError,
    dump_steps,
    load_step_maps,
    render_step_lines,
)

logger = logging.getLogger(__name__)

StepLines = list[str]


class RuntimeSetupError(Exception):
    """Raised when custom steps cannot be deduplicated."""


# ═══════════════════════════════════════════════════════════════════
#  Generation
# ═══════════════════════════════════════════════════════════════════


def _pinned_action(repo: str, version: str, data: WorkflowData) -> str:
    try:
        return get_action_pin_with_data(repo, version, data)
    except ActionPinError:
        return format_action_cache_key(repo, version)


def _setup_step(req: RuntimeRequirement, data: WorkflowData) -> StepLines:
    runtime = req.runtime
    inputs: dict[str, object] = {}

    if runtime.id == "go" and req.go_mod_file:
        inputs["go-version-file"] = req.go_mod_file
        inputs["cache"] = True
    else:
        version = req.effective_version()
        if version:
            inputs[runtime.version_field] = version
    inputs.update(runtime.extra_with)

    step = WorkflowStep(
        name=f"Setup {runtime.name}",
        if_condition=req.if_condition,
        uses=_pinned_action(runtime.action_repo, runtime.action_version, data),
        with_=inputs,
    )
    return render_step_lines(step, quote_keys={runtime.version_field})


def _capture_root_step(req: RuntimeRequirement) -> StepLines:
    env_var = req.runtime.capture_root_env
    step = WorkflowStep(
        name=f"Capture {env_var} for AWF chroot mode",
        if_condition=req.if_condition,
        run=f'echo "{env_var}=$({req.runtime.id} env {env_var})" >> "$GITHUB_ENV"',
    )
    return render_step_lines(step)


def generate_runtime_setup_steps(
    requirements: list[RuntimeRequirement],
    data: WorkflowData | None = None,
) -> list[StepLines]:
    """Expand requirements into setup steps, one list of lines per step."""
    data = data if data is not None else WorkflowData()
    steps: list[StepLines] = []
    for req in requirements:
        steps.append(_setup_step(req, data))
        if req.runtime.capture_root_env:
            steps.append(_capture_root_step(req))
    logger.debug("Generated %d runtime setup steps for %d requirements", len(steps), len(requirements))
    return steps


# ═══════════════════════════════════════════════════════════════════
#  Deduplication
# ═══════════════════════════════════════════════════════════════════

_PARSE_HELP = (
    "failed to parse custom workflow steps. "
    "Custom steps must be valid GitHub Actions step syntax, "
    "given as a list of steps under a 'steps:' key. Example:\n"
    "steps:\n"
    "  - name: Install dependencies\n"
    "    run: npm install\n"
    "Error: {error}"
)

_MARSHAL_HELP = (
    "failed to marshal deduplicated workflow steps to YAML. "
    "Step deduplication removes duplicate runtime setup actions "
    "(like actions/setup-node) from custom steps to avoid conflicts when "
    "automatic runtime detection adds them. This keeps runtime setup steps "
    "ahead of custom steps. Error: {error}"
)


def deduplicate_runtime_setup_steps_from_custom_steps(
    custom_steps: str,
    requirements: list[RuntimeRequirement],
) -> tuple[str, list[RuntimeRequirement]]:
    """Reconcile detected requirements with the author's own setup steps.

    Returns the (possibly rewritten) custom steps text and the
    requirements still to be generated.  The text is returned unchanged,
    byte for byte, when no step had to be removed.

    Raises:
        RuntimeSetupError: the custom steps cannot be parsed or re-serialized.
    """
    if not custom_steps or not requirements:
        return custom_steps, list(requirements)

    try:
        items = load_step_maps(custom_steps)
    except StepCodecError as e:
        raise RuntimeSetupError(_PARSE_HELP.format(error=e)) from e

    by_action = {req.runtime.action_repo: req for req in requirements}
    customized: set[str] = set()
    kept: list[dict] = []
    removed = 0

    for item in items:
        uses = item.get("uses")
        req = by_action.get(extract_action_repo(uses)) if isinstance(uses, str) else None
        if req is None:
            kept.append(item)
            continue
        if item.get("with"):
            logger.info("Keeping customized %s step; skipping generated %s setup", uses, req.runtime_id)
            customized.add(req.runtime_id)
            kept.append(item)
        else:
            logger.info("Removing uncustomized %s step; generated setup replaces it", uses)
            removed += 1

    filtered = [req for req in requirements if req.runtime_id not in customized]
    if not removed:
        return custom_steps, filtered

    try:
        text = dump_steps(kept, wrap=True)
    except yaml.YAMLError as e:
        raise RuntimeSetupError(_MARSHAL_HELP.format(error=e)) from e
    return text, filtered


def should_skip_runtime_setup(data: WorkflowData) -> bool:
    """Always False: duplicated runtimes are filtered one by one instead."""
    return False
