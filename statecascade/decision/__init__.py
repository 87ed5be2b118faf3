"""
decision/ - Target state computation

Literal assignment, audit-based restoration and the process-flow overlay.
"""

from .restoration import (
    RestorationOutcome,
    RestorationDecision,
    eligible_entries,
    is_audit_current,
    is_audit_valid,
    decide_attribute,
    decide_restoration,
)
from .process_flow import (
    ProcessStage,
    StageGraph,
    ProcessFlowOverlay,
    process_flow_reason,
    governing_edge,
)
from .engine import StateDecisionEngine

__all__ = [
    # Restoration
    "RestorationOutcome",
    "RestorationDecision",
    "eligible_entries",
    "is_audit_current",
    "is_audit_valid",
    "decide_attribute",
    "decide_restoration",
    # Process flows
    "ProcessStage",
    "StageGraph",
    "ProcessFlowOverlay",
    "process_flow_reason",
    "governing_edge",
    # Engine
    "StateDecisionEngine",
]
