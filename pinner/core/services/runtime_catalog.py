"""
Runtime catalog — the runtimes a workflow can have provisioned.

Order matters only for display; lookups go through ``find_runtime_by_id``
or ``COMMAND_TO_RUNTIME``.
"""

from __future__ import annotations

from pinner.core.models.runtime import Runtime

KNOWN_RUNTIMES: tuple[Runtime, ...] = (
    Runtime(
        id="node",
        name="Node.js",
        action_repo="actions/setup-node",
        action_version="v6",
        version_field="node-version",
        default_version="24",
        commands=("node", "npm", "npx"),
    ),
    Runtime(
        id="python",
        name="Python",
        action_repo="actions/setup-python",
        action_version="v5",
        version_field="python-version",
        default_version="3.12",
        commands=("python", "python3", "pip", "pip3"),
    ),
    Runtime(
        id="go",
        name="Go",
        action_repo="actions/setup-go",
        action_version="v6",
        version_field="go-version",
        default_version="1.25",
        commands=("go",),
        capture_root_env="GOROOT",
    ),
    Runtime(
        id="uv",
        name="uv",
        action_repo="astral-sh/setup-uv",
        action_version="v5",
        version_field="version",
        commands=("uv", "uvx"),
    ),
    Runtime(
        id="bun",
        name="Bun",
        action_repo="oven-sh/setup-bun",
        action_version="v2",
        version_field="bun-version",
        default_version="latest",
        commands=("bun", "bunx"),
    ),
    Runtime(
        id="deno",
        name="Deno",
        action_repo="denoland/setup-deno",
        action_version="v2",
        version_field="deno-version",
        default_version="v2.x",
        commands=("deno",),
    ),
    Runtime(
        id="ruby",
        name="Ruby",
        action_repo="ruby/setup-ruby",
        action_version="v1",
        version_field="ruby-version",
        default_version="3.3",
        commands=("ruby",),
    ),
    Runtime(
        id="java",
        name="Java",
        action_repo="actions/setup-java",
        action_version="v4",
        version_field="java-version",
        default_version="21",
        commands=("java", "javac", "mvn", "gradle"),
        extra_with={"distribution": "temurin"},
    ),
    Runtime(
        id="dotnet",
        name=".NET",
        action_repo="actions/setup-dotnet",
        action_version="v4",
        version_field="dotnet-version",
        default_version="8.0",
        commands=("dotnet",),
    ),
    Runtime(
        id="elixir",
        name="Elixir",
        action_repo="erlef/setup-beam",
        action_version="v1",
        version_field="elixir-version",
        default_version="1.17",
        commands=("elixir", "mix"),
        extra_with={"otp-version": "27"},
    ),
    Runtime(
        id="haskell",
        name="Haskell",
        action_repo="haskell-actions/setup",
        action_version="v2",
        version_field="ghc-version",
        default_version="9.10",
        commands=("ghc", "cabal", "stack"),
    ),
)

COMMAND_TO_RUNTIME: dict[str, Runtime] = {
    command: runtime
    for runtime in KNOWN_RUNTIMES
    for command in runtime.commands
}

_BY_ID: dict[str, Runtime] = {runtime.id: runtime for runtime in KNOWN_RUNTIMES}


def find_runtime_by_id(runtime_id: str) -> Runtime | None:
    return _BY_ID.get(runtime_id)


def find_runtime_by_action(action_repo: str) -> Runtime | None:
    """Catalog runtime whose setup action is ``action_repo``."""
    for runtime in KNOWN_RUNTIMES:
        if runtime.action_repo == action_repo:
            return runtime
    return None
