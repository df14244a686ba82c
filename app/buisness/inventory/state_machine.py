"""
State machine for the event allocation lifecycle

Encodes valid transitions only. Keeps "what is allowed" separate from
"how persistence occurs" and from the quantity checks in the validator.
"""

from typing import Dict, Set
from app.buisness.inventory.errors import IllegalTransitionError
from app.data.inventory.statuses import AllocationStatus


class EventAllocationStateMachine:
    """
    State machine for EventAllocation.status transitions.

    Requests start as requested. returned and cancelled end a cycle; the only
    way out of them is a re-request, which opens a fresh record.
    """

    REQUESTED = AllocationStatus.REQUESTED
    ALLOCATED = AllocationStatus.ALLOCATED
    CHECKED_OUT = AllocationStatus.CHECKED_OUT
    IN_USE = AllocationStatus.IN_USE
    RETURNED = AllocationStatus.RETURNED
    CANCELLED = AllocationStatus.CANCELLED

    INITIAL_STATE = REQUESTED

    # Terminal for the current cycle
    TERMINAL_STATES = {RETURNED, CANCELLED}

    # Valid transitions: from_status -> set of allowed to_status values
    TRANSITIONS: Dict[str, Set[str]] = {
        REQUESTED: {ALLOCATED, CANCELLED},
        ALLOCATED: {CHECKED_OUT, CANCELLED},  # can't return what wasn't checked out
        CHECKED_OUT: {IN_USE, RETURNED},
        IN_USE: {RETURNED},
        RETURNED: {REQUESTED},
        CANCELLED: {REQUESTED},
    }

    @classmethod
    def can_transition(cls, from_status: str, to_status: str) -> bool:
        """
        Check if transition is valid.

        Args:
            from_status: Current status
            to_status: Target status

        Returns:
            bool: True if transition is allowed
        """
        # Allow staying in same state (no-op)
        if from_status == to_status:
            return True

        return to_status in cls.TRANSITIONS.get(from_status, set())

    @classmethod
    def validate_transition(cls, from_status: str, to_status: str) -> None:
        """
        Validate transition and raise exception if invalid.

        Raises:
            IllegalTransitionError: If transition is not allowed
        """
        if not cls.can_transition(from_status, to_status):
            raise IllegalTransitionError(
                f"Invalid allocation status transition: {from_status} → {to_status}"
            )

    @classmethod
    def get_allowed_transitions(cls, from_status: str) -> Set[str]:
        """Get set of allowed target statuses from current status"""
        return set(cls.TRANSITIONS.get(from_status, set()))

    @classmethod
    def is_terminal(cls, status: str) -> bool:
        return status in cls.TERMINAL_STATES

    @classmethod
    def is_re_request(cls, from_status: str, to_status: str) -> bool:
        """True for the terminal -> requested edge, which opens a new record instead of changing this one"""
        return from_status in cls.TERMINAL_STATES and to_status == cls.INITIAL_STATE

    @classmethod
    def get_in_place_transitions(cls, from_status: str) -> Set[str]:
        """Allowed targets that update the record itself (re-request edges excluded)"""
        return {
            status for status in cls.get_allowed_transitions(from_status)
            if not cls.is_re_request(from_status, status)
        }
