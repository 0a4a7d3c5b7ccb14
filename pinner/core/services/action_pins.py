"""
Action pinning — rewrite ``uses: owner/repo@tag`` to an immutable commit.

Resolution tiers, first hit wins:

    1. the ref is already a 40-hex SHA        → pass through
    2. exact (repo, version) in the catalog   → catalog SHA
    3. catalog version on the requested line  → highest compatible SHA
    4. a resolver on the WorkflowData         → cache / GitHub API
    5. none of the above                      → warn once, keep ``repo@version``

Whatever tier answers, the trailing comment shows the version the
workflow author asked for (``# v4``), never the more precise catalog
version it was matched against (``# v4.6.2``).

Step-level helpers never mutate their input: they return deep copies.
"""

from __future__ import annotations

import logging

from pinner.core.data import get_action_pins, get_registry
from pinner.core.models.action_pin import ActionPin
from pinner.core.models.step import WorkflowStep
from pinner.core.models.workflow import WorkflowData
from pinner.core.services.action_resolver import ActionResolutionError, is_valid_sha
from pinner.core.services.versions import is_compatible_version, sort_pins_by_version

logger = logging.getLogger(__name__)

__all__ = [
    "ActionPinError",
    "apply_action_pin_to_typed_step",
    "apply_action_pins_to_typed_steps",
    "extract_action_repo",
    "extract_action_version",
    "format_action_cache_key",
    "format_action_reference",
    "get_action_pin",
    "get_action_pin_by_repo",
    "get_action_pin_with_data",
    "is_remote_action",
    "sort_pins_by_version",
]


class ActionPinError(Exception):
    """Raised in strict mode when an action cannot be pinned to a SHA."""


# ═══════════════════════════════════════════════════════════════════
#  Formatting & parsing
# ═══════════════════════════════════════════════════════════════════


def format_action_reference(repo: str, sha: str, version: str) -> str:
    return f"{repo}@{sha} # {version}"


def format_action_cache_key(repo: str, version: str) -> str:
    return f"{repo}@{version}"


def _split_comment(uses: str) -> tuple[str, str]:
    """Split ``ref # comment`` into (ref, comment)."""
    ref, sep, comment = uses.partition(" #")
    if not sep:
        return uses.strip(), ""
    return ref.strip(), comment.strip()


def extract_action_repo(uses: str) -> str:
    """``owner/repo/sub@ref`` → ``owner/repo/sub``."""
    ref, _ = _split_comment(uses)
    repo, sep, _version = ref.rpartition("@")
    return repo if sep else ref


def extract_action_version(uses: str) -> str:
    """``owner/repo@ref # comment`` → ``ref``; no ``@`` → ``""``."""
    ref, _ = _split_comment(uses)
    _repo, sep, version = ref.rpartition("@")
    return version if sep else ""


def is_remote_action(uses: str) -> bool:
    """Whether ``uses`` names an action fetched from a repository."""
    if not uses:
        return False
    return not (uses.startswith("./") or uses.startswith("docker://"))


# ═══════════════════════════════════════════════════════════════════
#  Catalog queries
# ═══════════════════════════════════════════════════════════════════


def get_action_pin_by_repo(repo: str) -> ActionPin | None:
    """Highest-version catalog pin for ``repo``, or None."""
    if not repo:
        return None
    pins = get_registry().pins_for_repo(repo)
    return pins[0] if pins else None


def get_action_pin(repo: str) -> str:
    """``repo@sha # version`` for the highest catalog pin, or ``""``."""
    pin = get_action_pin_by_repo(repo)
    if pin is None:
        return ""
    return format_action_reference(pin.repo, pin.sha, pin.version)


def _find_exact_pin(repo: str, version: str) -> ActionPin | None:
    for pin in get_action_pins():
        if pin.repo == repo and pin.version == version:
            return pin
    return None


def _find_compatible_pin(repo: str, version: str) -> ActionPin | None:
    # catalog order is highest version first
    for pin in get_registry().pins_for_repo(repo):
        if is_compatible_version(version, pin.version):
            return pin
    return None


def _find_pin_by_sha(repo: str, sha: str) -> ActionPin | None:
    for pin in get_registry().pins_for_repo(repo):
        if pin.sha == sha:
            return pin
    return None


# ═══════════════════════════════════════════════════════════════════
#  Resolution with context
# ═══════════════════════════════════════════════════════════════════


def get_action_pin_with_data(repo: str, version: str, data: WorkflowData) -> str:
    """Pinned reference for ``repo@version``, walking the resolution tiers.

    Returns ``repo@version`` unchanged (after a single warning per key)
    when nothing can pin it.

    Raises:
        ActionPinError: nothing could pin it and ``data.strict_mode`` is set.
    """
    # Tier 1 — already a SHA
    if is_valid_sha(version):
        known = _find_pin_by_sha(repo, version)
        if known is not None:
            return format_action_reference(repo, version, known.version)
        return f"{repo}@{version}"

    # Tier 2 — exact catalog match
    pin = _find_exact_pin(repo, version)
    if pin is not None:
        logger.debug("Exact pin for %s@%s", repo, version)
        return format_action_reference(repo, pin.sha, version)

    # Tier 3 — compatible catalog match
    pin = _find_compatible_pin(repo, version)
    if pin is not None:
        logger.debug("Compatible pin for %s@%s: %s", repo, version, pin.version)
        return format_action_reference(repo, pin.sha, version)

    # Tier 4 — dynamic resolution
    reason = "no pin in catalog and no resolver available"
    if data.action_resolver is not None:
        try:
            sha = data.action_resolver.resolve_sha(repo, version)
            return format_action_reference(repo, sha, version)
        except ActionResolutionError as e:
            reason = str(e)

    # Tier 5 — unpinned
    key = format_action_cache_key(repo, version)
    if key not in data.action_pin_warnings:
        data.action_pin_warnings.add(key)
        logger.warning("⚠ Unable to pin action %s: %s", key, reason)

    if data.strict_mode:
        raise ActionPinError(f"unable to pin action {key}: {reason}")
    return key


def _pinned_uses(uses: str, data: WorkflowData) -> str:
    repo = extract_action_repo(uses)
    version = extract_action_version(uses)
    if not version:
        return uses

    # already pinned and annotated — keep exactly what the author wrote
    _, comment = _split_comment(uses)
    if comment and is_valid_sha(version):
        return uses

    try:
        pinned = get_action_pin_with_data(repo, version, data)
    except ActionPinError as e:
        logger.debug("Keeping unpinned reference %s: %s", uses, e)
        return uses
    # unresolved: keep the author's text, comment included
    if pinned == format_action_cache_key(repo, version):
        return uses
    return pinned


def apply_action_pin_to_typed_step(
    step: WorkflowStep | None,
    data: WorkflowData,
) -> WorkflowStep | None:
    """Return a pinned deep copy of ``step`` (None stays None)."""
    if step is None:
        return None
    if not is_remote_action(step.uses):
        return step.copy_step()
    return step.copy_step(uses=_pinned_uses(step.uses, data))


def apply_action_pins_to_typed_steps(
    steps: list[WorkflowStep | None] | None,
    data: WorkflowData,
) -> list[WorkflowStep | None] | None:
    """Pin every step, preserving order, length and None entries."""
    if steps is None:
        return None
    return [apply_action_pin_to_typed_step(step, data) for step in steps]
