"""
CLI commands for the action SHA cache (``.github/aw/actions-lock.json``).
"""

from __future__ import annotations

import json

import click


@click.group()
def cache() -> None:
    """Cache — inspect or clear resolved action SHAs."""


def _open_cache(ctx: click.Context):
    from pinner.core.persistence.action_cache import ActionCache
    from pinner.main import load_cli_settings

    settings = load_cli_settings(ctx)
    return ActionCache(settings.cache_dir)


@cache.command("show")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def show(ctx: click.Context, as_json: bool) -> None:
    """List cached action SHAs."""
    action_cache = _open_cache(ctx)
    entries = action_cache.entries()

    if as_json:
        click.echo(json.dumps({
            "path": str(action_cache.path),
            "entries": [e.model_dump(mode="json") for e in entries],
        }, indent=2))
        return

    if not entries:
        click.secho(f"Cache is empty ({action_cache.path})", fg="yellow")
        return

    click.secho(f"🗄  {action_cache.path} ({len(entries)} entries)", fg="cyan", bold=True)
    for e in entries:
        click.echo(f"   {e.repo}@{e.version}  →  {e.sha}")


@cache.command("clear")
@click.pass_context
def clear(ctx: click.Context) -> None:
    """Remove every cached SHA."""
    action_cache = _open_cache(ctx)
    count = len(action_cache)
    action_cache.clear()
    click.secho(f"✅ Cleared {count} cached SHA(s)", fg="green")
