"""
Status classification table.

Single source of truth for how an allocation status affects the item's pool.
Both the availability calculator and the transition validator receive a
StatusRules instance instead of carrying their own status lists.
"""

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import FrozenSet, Mapping, Optional

from app.data.inventory.statuses import AllocationStatus


class StatusClass:
    UNAVAILABLE = 'unavailable'  # counts against the pool
    RESERVED = 'reserved'        # held, shown as a warning, reduces effective availability only
    RELEASING = 'releasing'      # terminal for the cycle, excluded entirely


@dataclass(frozen=True)
class StatusRules:
    """
    Immutable status -> StatusClass mapping.

    Statuses absent from the mapping are neutral: they do not count against
    the pool but the record is still active (not terminal).
    """

    classification: Mapping[str, str]
    messages: Mapping[str, str] = field(default_factory=dict)

    def classify(self, status: str) -> Optional[str]:
        return self.classification.get(status)

    def statuses_in(self, status_class: str) -> FrozenSet[str]:
        return frozenset(s for s, c in self.classification.items() if c == status_class)

    @property
    def unavailable_statuses(self) -> FrozenSet[str]:
        return self.statuses_in(StatusClass.UNAVAILABLE)

    @property
    def reserved_statuses(self) -> FrozenSet[str]:
        return self.statuses_in(StatusClass.RESERVED)

    @property
    def releasing_statuses(self) -> FrozenSet[str]:
        return self.statuses_in(StatusClass.RELEASING)

    def counts_against_pool(self, status: str) -> bool:
        return self.classify(status) == StatusClass.UNAVAILABLE

    def is_reserved(self, status: str) -> bool:
        return self.classify(status) == StatusClass.RESERVED

    def is_terminal(self, status: str) -> bool:
        return self.classify(status) == StatusClass.RELEASING

    def is_active(self, status: str) -> bool:
        return not self.is_terminal(status)

    def to_dict(self):
        return {
            'unavailable_statuses': sorted(self.unavailable_statuses),
            'reserved_statuses': sorted(self.reserved_statuses),
            'releasing_statuses': sorted(self.releasing_statuses),
            'status_messages': dict(self.messages),
        }


DEFAULT_STATUS_RULES = StatusRules(
    classification=MappingProxyType({
        # requested counts too: a request holds its allocated units
        AllocationStatus.REQUESTED: StatusClass.UNAVAILABLE,
        AllocationStatus.ALLOCATED: StatusClass.UNAVAILABLE,
        AllocationStatus.CHECKED_OUT: StatusClass.UNAVAILABLE,
        AllocationStatus.IN_USE: StatusClass.UNAVAILABLE,
        AllocationStatus.RETURNED: StatusClass.RELEASING,
        AllocationStatus.CANCELLED: StatusClass.RELEASING,
    }),
    messages=MappingProxyType({
        AllocationStatus.REQUESTED: 'Equipment is requested but not yet allocated. Quantity is reserved.',
        AllocationStatus.ALLOCATED: 'Equipment is allocated and unavailable.',
        AllocationStatus.CHECKED_OUT: 'Equipment is checked out and unavailable.',
        AllocationStatus.IN_USE: 'Equipment is in use and unavailable.',
        AllocationStatus.RETURNED: 'Equipment has been returned and is available.',
        AllocationStatus.CANCELLED: 'Request was cancelled, equipment is available.',
    }),
)
