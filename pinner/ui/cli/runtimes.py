"""
CLI commands for runtime detection and setup generation.

Thin wrappers over ``pinner.core.services.runtime_detection`` and
``pinner.core.use_cases.compile_steps``.
"""

from __future__ import annotations

import json
import sys
from pathlib import Path

import click


@click.group()
def runtimes() -> None:
    """Runtimes — detect what custom steps need and generate setup steps."""


def _workflow_data(ctx: click.Context, steps_file: Path):
    from pinner.core.context import new_workflow_data
    from pinner.core.services.step_codec import StepCodecError
    from pinner.core.use_cases.compile_steps import read_steps_file
    from pinner.main import load_cli_settings

    settings = load_cli_settings(ctx)
    try:
        custom_steps, tools, overrides = read_steps_file(steps_file)
    except StepCodecError as e:
        click.secho(f"❌ {e}", fg="red", err=True)
        sys.exit(1)
    return new_workflow_data(settings, custom_steps=custom_steps, tools=tools, runtimes=overrides)


# ── Detect ──────────────────────────────────────────────────────


@runtimes.command("detect")
@click.argument("steps_file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def detect(ctx: click.Context, steps_file: Path, as_json: bool) -> None:
    """List the runtimes STEPS_FILE needs."""
    from pinner.core.services.runtime_detection import detect_runtime_requirements

    data = _workflow_data(ctx, steps_file)
    requirements = detect_runtime_requirements(data)

    if as_json:
        click.echo(json.dumps([
            {
                "id": r.runtime_id,
                "version": r.effective_version(),
                "action": f"{r.runtime.action_repo}@{r.runtime.action_version}",
                "if": r.if_condition,
            }
            for r in requirements
        ], indent=2))
        return

    if not requirements:
        click.secho("No runtimes detected", fg="yellow")
        return

    click.secho(f"🧰 Runtimes ({len(requirements)}):", fg="cyan", bold=True)
    for r in requirements:
        version = r.effective_version() or "action default"
        guard = f"  if: {r.if_condition}" if r.if_condition else ""
        click.echo(f"   • {r.runtime.name} ({version}) via {r.runtime.action_repo}{guard}")


# ── Setup ───────────────────────────────────────────────────────


@runtimes.command("setup")
@click.argument("steps_file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def setup(ctx: click.Context, steps_file: Path, as_json: bool) -> None:
    """Print the compiled main-job steps for STEPS_FILE."""
    from pinner.core.use_cases.compile_steps import compile_main_steps

    data = _workflow_data(ctx, steps_file)
    result = compile_main_steps(data)

    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2))
        return

    click.echo(result.steps_yaml, nl=False)
    for warning in result.warnings:
        click.secho(f"⚠️  {warning}", fg="yellow", err=True)
