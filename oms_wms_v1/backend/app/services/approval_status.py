from __future__ import annotations

from enum import Enum


class ApprovalStatus(str, Enum):
    PENDING_APPROVAL = "PendingApproval"
    APPROVED = "Approved"
    REJECTED = "Rejected"
    RECEIVED = "Received"

    @classmethod
    def parse(cls, raw: object) -> ApprovalStatus | None:
        """Return the status for an exact wire token, or None."""
        if not isinstance(raw, str):
            return None
        try:
            return cls(raw)
        except ValueError:
            return None


ALLOWED_TRANSITIONS: dict[ApprovalStatus, frozenset[ApprovalStatus]] = {
    ApprovalStatus.PENDING_APPROVAL: frozenset({ApprovalStatus.APPROVED, ApprovalStatus.REJECTED}),
    ApprovalStatus.APPROVED: frozenset({ApprovalStatus.RECEIVED}),
    ApprovalStatus.REJECTED: frozenset(),
    ApprovalStatus.RECEIVED: frozenset(),
}

STATUS_TOKENS: tuple[str, ...] = tuple(status.value for status in ApprovalStatus)


def can_transition(current: ApprovalStatus, target: ApprovalStatus) -> bool:
    # re-stating the current status is allowed so a new reason can be recorded
    if current == target:
        return True
    return target in ALLOWED_TRANSITIONS[current]


def is_terminal(status: ApprovalStatus) -> bool:
    return not ALLOWED_TRANSITIONS[status]
