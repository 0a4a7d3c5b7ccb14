"""
Runtime detection — which language runtimes does a workflow need?

Sources, merged into one requirement per runtime id:
    - ``run:`` commands in the custom steps
    - tool configurations that launch a local command
    - Serena in local mode (uv plus its configured language runtimes)
    - explicit ``runtimes:`` overrides

Detection never looks at setup actions the author already wrote; that is
the deduplicator's job (runtime_setup.py).
"""

from __future__ import annotations

import logging
import re
from typing import Any

from pinner.core.models.runtime import Runtime, RuntimeRequirement
from pinner.core.models.workflow import WorkflowData
from pinner.core.services.runtime_catalog import COMMAND_TO_RUNTIME, find_runtime_by_id
from pinner.core.services.step_codec import StepCodecError, parse_steps
from pinner.core.services.versions import compare_versions

logger = logging.getLogger(__name__)

Requirements = dict[str, RuntimeRequirement]

_TOKEN_SPLIT = re.compile(r"[ \t\n|&;]+")

_PIP_COMMANDS = ("pip", "pip3")

# Serena language name → runtime id
_SERENA_LANGUAGES = {
    "go": "go",
    "typescript": "node",
    "javascript": "node",
    "python": "python",
    "java": "java",
    "rust": "rust",
    "csharp": "dotnet",
}


# ═══════════════════════════════════════════════════════════════════
#  Requirement map helpers
# ═══════════════════════════════════════════════════════════════════


def update_required_runtime(runtime: Runtime, version: str, requirements: Requirements) -> None:
    """Add ``runtime`` or raise its version; the higher version wins."""
    existing = requirements.get(runtime.id)
    if existing is None:
        logger.debug("Adding runtime requirement: %s (version=%s)", runtime.id, version or "default")
        requirements[runtime.id] = RuntimeRequirement(runtime=runtime, version=version)
        return

    if not version:
        return
    if not existing.version or compare_versions(version, existing.version) > 0:
        existing.version = version


# ═══════════════════════════════════════════════════════════════════
#  Command text
# ═══════════════════════════════════════════════════════════════════


def detect_runtime_from_command(command: str, requirements: Requirements) -> None:
    """Record every runtime whose executable appears as a word in ``command``.

    ``uv pip …`` is uv's own pip and does not imply a Python setup.
    """
    words = [w for w in _TOKEN_SPLIT.split(command) if w]
    for index, word in enumerate(words):
        runtime = COMMAND_TO_RUNTIME.get(word)
        if runtime is None:
            continue
        if word in _PIP_COMMANDS and "uv" in words[:index]:
            continue
        update_required_runtime(runtime, "", requirements)


def _scan_run_lines(text: str, requirements: Requirements) -> None:
    for line in text.splitlines():
        _, sep, command = line.partition("run:")
        if sep:
            detect_runtime_from_command(command.strip(), requirements)


def detect_from_custom_steps(text: str, requirements: Requirements) -> None:
    """Scan every ``run`` of the custom steps."""
    if not text:
        return
    try:
        steps = parse_steps(text)
    except StepCodecError as e:
        logger.debug("Custom steps not parseable (%s), scanning run: lines", e)
        _scan_run_lines(text, requirements)
        return

    for step in steps:
        if step.run:
            detect_runtime_from_command(step.run, requirements)


# ═══════════════════════════════════════════════════════════════════
#  Tool configurations
# ═══════════════════════════════════════════════════════════════════


def _detect_serena_languages(config: dict[str, Any], requirements: Requirements) -> None:
    languages = config.get("languages")

    if isinstance(languages, list):
        for lang in languages:
            runtime = find_runtime_by_id(_SERENA_LANGUAGES.get(str(lang), ""))
            if runtime is not None:
                update_required_runtime(runtime, "", requirements)
        return

    if not isinstance(languages, dict):
        return

    for lang, lang_config in languages.items():
        runtime = find_runtime_by_id(_SERENA_LANGUAGES.get(str(lang), ""))
        if runtime is None:
            logger.debug("Serena language %r has no provisionable runtime", lang)
            continue
        lang_config = lang_config if isinstance(lang_config, dict) else {}
        version = str(lang_config.get("version") or "")
        go_mod_file = str(lang_config.get("go-mod-file") or "")

        if runtime.id == "go" and go_mod_file:
            requirements["go"] = RuntimeRequirement(
                runtime=runtime, version=version, go_mod_file=go_mod_file,
            )
        else:
            update_required_runtime(runtime, version, requirements)


def detect_from_tool_configs(tools: dict[str, Any], requirements: Requirements) -> None:
    """Scan tool configurations that run a local command."""
    if not tools:
        return

    serena = tools.get("serena")
    if isinstance(serena, list):
        serena = {"languages": serena}
    if isinstance(serena, dict) and serena.get("mode") == "local":
        logger.debug("Serena in local mode: adding uv")
        update_required_runtime(find_runtime_by_id("uv"), "", requirements)
        _detect_serena_languages(serena, requirements)

    for name, config in tools.items():
        if not isinstance(config, dict) or not config.get("command"):
            continue
        if config.get("container") or config.get("type") == "docker":
            logger.debug("Skipping containerized tool %s", name)
            continue
        args = config.get("args") or []
        if not isinstance(args, list):
            args = [args]
        command = " ".join([str(config["command"]), *(str(a) for a in args)])
        detect_runtime_from_command(command, requirements)


# ═══════════════════════════════════════════════════════════════════
#  Explicit overrides
# ═══════════════════════════════════════════════════════════════════


def apply_runtime_overrides(runtimes: dict[str, Any], requirements: Requirements) -> None:
    """Apply ``runtimes: {id: {version, action-repo, action-version, if}}``.

    Listed runtimes are required even when nothing else detected them.
    """
    for runtime_id, override in (runtimes or {}).items():
        override = override if isinstance(override, dict) else {}
        version = str(override.get("version") or "")
        action_repo = str(override.get("action-repo") or "")
        action_version = str(override.get("action-version") or "")

        runtime = find_runtime_by_id(runtime_id)
        if runtime is None:
            if not action_repo:
                logger.warning("Unknown runtime %r ignored (no action-repo given)", runtime_id)
                continue
            runtime = Runtime(
                id=runtime_id,
                name=runtime_id,
                action_repo=action_repo,
                action_version=action_version,
                version_field=f"{runtime_id}-version",
            )
        elif action_repo or action_version:
            runtime = runtime.model_copy(update={
                "action_repo": action_repo or runtime.action_repo,
                "action_version": action_version or runtime.action_version,
            })

        existing = requirements.get(runtime_id)
        requirement = RuntimeRequirement(
            runtime=runtime,
            version=version or (existing.version if existing else ""),
            if_condition=str(override.get("if") or ""),
            go_mod_file=existing.go_mod_file if existing else "",
        )
        requirements[runtime_id] = requirement
        logger.debug("Runtime override applied: %s", runtime_id)


# ═══════════════════════════════════════════════════════════════════
#  Aggregation
# ═══════════════════════════════════════════════════════════════════


def detect_runtime_requirements(data: WorkflowData) -> list[RuntimeRequirement]:
    """All runtime requirements of a workflow, sorted by runtime id."""
    requirements: Requirements = {}

    detect_from_custom_steps(data.custom_steps, requirements)
    detect_from_tool_configs(data.tools, requirements)
    if data.runtimes:
        apply_runtime_overrides(data.runtimes, requirements)

    # uv needs a Python interpreter
    if "uv" in requirements and "python" not in requirements:
        update_required_runtime(find_runtime_by_id("python"), "", requirements)

    result = [requirements[rid] for rid in sorted(requirements)]
    logger.info("Detected %d runtime requirements: %s", len(result), [r.runtime_id for r in result])
    return result
