"""
Version comparison for action tags and runtime versions.

Tags look like ``v4``, ``v4.6.2`` or ``1.22``.  Comparison is
component-wise on the dot-separated parts:

    - a leading ``v`` is ignored
    - a bare ``vN`` / ``vN.M`` is padded to three components (``v4`` == ``v4.0.0``)
    - numeric parts compare as integers
    - a non-numeric part sorts below any numeric one
    - beyond the padding, a missing part sorts below a present one
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from pinner.core.models.action_pin import ActionPin

_MIN_COMPONENTS = 3


def version_key(version: str) -> tuple[tuple[int, int], ...]:
    """Sort key for a version string (see module docstring)."""
    parts = version.strip().removeprefix("v").split(".") if version else []
    while len(parts) < _MIN_COMPONENTS:
        parts.append("0")

    key = []
    for part in parts:
        if part.isdigit():
            key.append((1, int(part)))
        else:
            key.append((0, 0))
    return tuple(key)


def compare_versions(a: str, b: str) -> int:
    """Return 1 if ``a`` > ``b``, -1 if ``a`` < ``b``, 0 if equal."""
    ka, kb = version_key(a), version_key(b)
    if ka > kb:
        return 1
    if ka < kb:
        return -1
    return 0


def is_compatible_version(requested: str, candidate: str) -> bool:
    """Whether ``candidate`` lies on the release line named by ``requested``.

    ``v4`` accepts ``v4.6.2``; ``v4.6`` accepts ``v4.6.2`` but not ``v4.7.0``.
    """
    if not requested or not candidate:
        return False
    return candidate == requested or candidate.startswith(requested + ".")


def sort_pins_by_version(pins: list[ActionPin] | tuple[ActionPin, ...]) -> list[ActionPin]:
    """Return a new list sorted by version (descending), then repo (ascending).

    The input is left untouched.  Both passes use the stable built-in
    sort, so equal entries keep their relative order.
    """
    by_repo = sorted(pins, key=lambda p: p.repo)
    return sorted(by_repo, key=lambda p: version_key(p.version), reverse=True)
