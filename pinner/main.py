"""
Workflow pinner — CLI entrypoint.

Usage:
    python -m pinner.main --help
    python -m pinner.main pin .github/workflows/ci.yml
    python -m pinner.main runtimes detect steps.yml
"""

from __future__ import annotations

import json
import os
import sys
from pathlib import Path

import click

from pinner import __version__
from pinner.core.observability.logging_config import setup_logging


@click.group()
@click.version_option(version=__version__, prog_name="pinner")
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output.")
@click.option("--quiet", "-q", is_flag=True, help="Suppress non-essential output.")
@click.option("--debug", is_flag=True, help="Enable debug logging (very verbose).")
@click.option(
    "--config",
    "-c",
    "config_path",
    type=click.Path(exists=False),
    default=None,
    help="Path to pinner.yml (default: auto-detect).",
)
@click.pass_context
def cli(
    ctx: click.Context,
    verbose: bool,
    quiet: bool,
    debug: bool,
    config_path: str | None,
) -> None:
    """Workflow pinner — pin GitHub Actions to commit SHAs and provision runtimes."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["quiet"] = quiet
    ctx.obj["debug"] = debug
    ctx.obj["config_path"] = Path(config_path) if config_path else None

    # ── Logging setup (once, at process start) ──────────────────
    if debug:
        level = "DEBUG"
    elif verbose:
        level = "INFO"
    elif quiet:
        level = "ERROR"
    else:
        level = os.environ.get("PINNER_LOG_LEVEL", "WARNING")

    setup_logging(
        level=level,
        log_file=os.environ.get("PINNER_LOG_FILE"),
        log_file_level=os.environ.get("PINNER_LOG_FILE_LEVEL"),
    )


def load_cli_settings(ctx: click.Context, **overrides: bool):
    """Settings from pinner.yml (or --config), with CLI flag overrides.

    Prints the error and exits 1 on invalid configuration.
    """
    from pinner.core.config.loader import ConfigError, load_settings

    try:
        settings = load_settings(ctx.obj.get("config_path"))
    except ConfigError as e:
        click.secho(f"❌ {e}", fg="red", err=True)
        sys.exit(1)

    updates = {key: value for key, value in overrides.items() if value}
    return settings.model_copy(update=updates) if updates else settings


@cli.command()
@click.argument("workflows", nargs=-1, required=True, type=click.Path(path_type=Path))
@click.option("--dry-run", is_flag=True, help="Show what would change without writing.")
@click.option("--strict", is_flag=True, help="Fail when an action cannot be pinned.")
@click.option("--force-refresh", is_flag=True, help="Clear the action cache before resolving.")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def pin(
    ctx: click.Context,
    workflows: tuple[Path, ...],
    dry_run: bool,
    strict: bool,
    force_refresh: bool,
    as_json: bool,
) -> None:
    """Pin every step action of WORKFLOWS to a commit SHA."""
    from pinner.core.context import new_workflow_data
    from pinner.core.use_cases.pin_workflow import WorkflowFileError, pin_workflow_file

    settings = load_cli_settings(ctx, strict=strict, force_refresh=force_refresh)
    quiet = ctx.obj.get("quiet", False)

    results = []
    unpinned = 0
    for path in workflows:
        data = new_workflow_data(settings)
        try:
            result = pin_workflow_file(path, data, dry_run=dry_run)
        except WorkflowFileError as e:
            click.secho(f"❌ {e}", fg="red", err=True)
            sys.exit(1)
        results.append(result)
        unpinned += len(result.warnings)

    if as_json:
        click.echo(json.dumps([r.to_dict() for r in results], indent=2))
    else:
        for result in results:
            if not result.changes:
                if not quiet:
                    click.secho(f"✓ {result.path}: nothing to pin", fg="green")
                continue
            verb = "would pin" if dry_run else "pinned"
            click.secho(f"📌 {result.path}: {verb} {len(result.changes)} action(s)", fg="cyan")
            if not quiet:
                for old, new in result.changes:
                    click.echo(f"   {old}  →  {new}")

    if settings.strict and unpinned:
        click.secho(f"❌ {unpinned} action(s) could not be pinned", fg="red", err=True)
        sys.exit(1)


# ── Register sub-command groups from pinner/ui/cli/ ───────────────

from pinner.ui.cli.cache import cache  # noqa: E402
from pinner.ui.cli.runtimes import runtimes  # noqa: E402

cli.add_command(cache)
cli.add_command(runtimes)


if __name__ == "__main__":
    cli()
