"""
Domain models — Pydantic types (plus the compilation context dataclass).

All models are re-exported here for convenient access:

    from pinner.core.models import ActionPin, WorkflowStep, WorkflowData
"""

from pinner.core.models.action_pin import ActionPin
from pinner.core.models.runtime import Runtime, RuntimeRequirement
from pinner.core.models.step import WorkflowStep
from pinner.core.models.workflow import WorkflowData

__all__ = [
    # action_pin.py
    "ActionPin",
    # runtime.py
    "Runtime",
    "RuntimeRequirement",
    # workflow.py
    "WorkflowData",
    # step.py
    "WorkflowStep",
]
