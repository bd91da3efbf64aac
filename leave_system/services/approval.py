"""
Approval state machine for leave records.

    pending --approve--> approved
    pending --reject---> rejected

approved and rejected are terminal.
"""
from typing import Dict, FrozenSet

from leave_system.core.exceptions import InvalidTransitionError
from leave_system.models.leave_record import ApprovalStatus

TRANSITIONS: Dict[ApprovalStatus, FrozenSet[ApprovalStatus]] = {
    ApprovalStatus.PENDING: frozenset({ApprovalStatus.APPROVED, ApprovalStatus.REJECTED}),
    ApprovalStatus.APPROVED: frozenset(),
    ApprovalStatus.REJECTED: frozenset(),
}

INITIAL_STATUS = ApprovalStatus.PENDING


def can_transition(current: ApprovalStatus, new: ApprovalStatus) -> bool:
    return ApprovalStatus(new) in TRANSITIONS[ApprovalStatus(current)]


def sources_for(new: ApprovalStatus) -> FrozenSet[ApprovalStatus]:
    """Statuses from which `new` is reachable in one step."""
    return frozenset(s for s, targets in TRANSITIONS.items() if ApprovalStatus(new) in targets)


def is_terminal(status: ApprovalStatus) -> bool:
    return not TRANSITIONS[ApprovalStatus(status)]


def ensure_transition(current: ApprovalStatus, new: ApprovalStatus) -> None:
    if not can_transition(current, new):
        raise invalid_transition(current, new)


def invalid_transition(current: ApprovalStatus, new: ApprovalStatus) -> InvalidTransitionError:
    current, new = ApprovalStatus(current), ApprovalStatus(new)
    return InvalidTransitionError(
        f"Cannot change a {current.value} request to {new.value}",
        details={"current": current.value, "requested": new.value},
    )
