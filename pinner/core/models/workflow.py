"""
Per-compilation context threaded through pin and runtime operations.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from pinner.core.persistence.action_cache import ActionCache
    from pinner.core.services.action_resolver import ActionResolver


@dataclass
class WorkflowData:
    """Everything one workflow compilation shares.

    Created once per compile and discarded afterwards.  The only
    mutable part is ``action_pin_warnings``, which only grows: it holds
    the ``repo@version`` keys already reported as unpinnable.
    """

    strict_mode: bool = False
    action_resolver: ActionResolver | None = None
    action_cache: ActionCache | None = None
    action_pin_warnings: set[str] = field(default_factory=set)

    # Workflow inputs used by runtime detection
    custom_steps: str = ""
    tools: dict[str, Any] = field(default_factory=dict)
    runtimes: dict[str, Any] = field(default_factory=dict)
