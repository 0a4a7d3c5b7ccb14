"""
Central data registry for the bundled action pin catalog.

Loads ``catalogs/action_pins.json`` once at first access and caches it
for the process lifetime.  Everything downstream (pin application,
runtime setup generation, the CLI) reads from this single source of truth.

Usage::

    from pinner.core.data import get_action_pins

    pins = get_action_pins()   # tuple[ActionPin, ...], highest version first
"""

from __future__ import annotations

import json
import logging
from functools import cached_property
from pathlib import Path

from pinner.core.models.action_pin import ActionPin
from pinner.core.services.versions import sort_pins_by_version

logger = logging.getLogger(__name__)

_DATA_DIR = Path(__file__).parent


def _load_json(relative_path: str) -> dict:
    """Load a JSON file relative to the data directory."""
    path = _DATA_DIR / relative_path
    if not path.exists():
        logger.warning("Data file not found: %s", path)
        return {}
    with open(path, encoding="utf-8") as f:
        return json.load(f)


class DataRegistry:
    """Central registry for static data catalogs.

    Each property lazily loads its JSON file on first access and caches
    the result for the lifetime of the instance.  Use the module-level
    singleton via :func:`get_registry`.
    """

    @cached_property
    def action_pins(self) -> tuple[ActionPin, ...]:
        """Known-good pins, sorted by version (desc) then repo (asc)."""
        data = _load_json("catalogs/action_pins.json")
        entries = data.get("entries", {})
        pins = [ActionPin.model_validate(entry) for entry in entries.values()]
        result = tuple(sort_pins_by_version(pins))
        logger.debug("Loaded %d action pins", len(result))
        return result

    def pins_for_repo(self, repo: str) -> tuple[ActionPin, ...]:
        """All pins of one repository, highest version first."""
        return tuple(p for p in self.action_pins if p.repo == repo)


# ── Module-level singleton ───────────────────────────────────────

_registry: DataRegistry | None = None


def get_registry() -> DataRegistry:
    """Return the process-level DataRegistry singleton.

    Creates the instance on first call; subsequent calls return the
    same object.
    """
    global _registry  # noqa: PLW0603
    if _registry is None:
        _registry = DataRegistry()
    return _registry


def get_action_pins() -> tuple[ActionPin, ...]:
    """Shortcut for ``get_registry().action_pins``."""
    return get_registry().action_pins
