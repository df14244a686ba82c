from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from flask import current_app, has_app_context

from app.buisness.inventory import notices
from app.buisness.inventory.errors import InvalidStatusError
from app.buisness.inventory.ledger import AllocationLedger, AllocationRecord
from app.buisness.inventory.notices import Notice
from app.buisness.inventory.registries import ItemRegistry
from app.buisness.inventory.state_machine import EventAllocationStateMachine
from app.buisness.inventory.status_rules import StatusRules, DEFAULT_STATUS_RULES
from app.data.inventory.statuses import AllocationKind, AllocationStatus
from app.logger import get_logger

logger = get_logger("equipment_inventory.buisness.inventory.validator")

S = AllocationStatus


class ConflictType:
    MISSING_ITEM = 'missing_item_conflict'
    ZERO_ALLOCATION = 'zero_allocation_conflict'
    STATUS = 'status_conflict'
    QUANTITY = 'quantity_conflict'
    RETURN_LOGIC = 'return_logic_conflict'
    USAGE_LOGIC = 'usage_logic_conflict'
    ILLEGAL_TRANSITION = 'illegal_transition'


class WarningType:
    OVER_ALLOCATION = 'over_allocation_warning'
    LOW_AVAILABILITY = 'low_availability'
    ALLOCATION = 'allocation_warning'


@dataclass(frozen=True)
class ConflictRules:
    """Validator-only rule tables. What counts as active comes from StatusRules."""

    # Only enforced for indivisible items (total quantity 1)
    mutually_exclusive: Dict[str, frozenset] = field(default_factory=lambda: {
        S.CHECKED_OUT: frozenset({S.CHECKED_OUT, S.IN_USE}),
        S.IN_USE: frozenset({S.CHECKED_OUT, S.IN_USE, S.ALLOCATED}),
        S.ALLOCATED: frozenset({S.IN_USE}),
    })
    requires_availability: frozenset = frozenset({S.ALLOCATED, S.CHECKED_OUT, S.IN_USE})
    # Statuses of other records compared against, per proposed status
    compared_statuses: Dict[str, frozenset] = field(default_factory=lambda: {
        S.CHECKED_OUT: frozenset({S.CHECKED_OUT, S.IN_USE}),
        S.IN_USE: frozenset({S.CHECKED_OUT, S.IN_USE}),
        S.ALLOCATED: frozenset({S.ALLOCATED, S.CHECKED_OUT, S.IN_USE}),
    })
    returnable_from: frozenset = frozenset({S.CHECKED_OUT, S.IN_USE})
    usable_from: frozenset = frozenset({S.CHECKED_OUT})


@dataclass
class ValidationResult:
    conflicts: List[Notice] = field(default_factory=list)
    warnings: List[Notice] = field(default_factory=list)
    current_allocations: List[AllocationRecord] = field(default_factory=list)

    @property
    def valid(self) -> bool:
        return not self.conflicts

    def conflict_types(self) -> List[str]:
        return [c.type for c in self.conflicts]

    def warning_types(self) -> List[str]:
        return [w.type for w in self.warnings]

    def to_dict(self) -> Dict[str, Any]:
        return {
            'valid': self.valid,
            'conflicts': [c.to_dict() for c in self.conflicts],
            'warnings': [w.to_dict() for w in self.warnings],
            'current_allocations': [r.to_dict() for r in self.current_allocations],
        }


class StatusTransitionValidator:
    """
    Decides whether a proposed allocation status is legal.

    Rule violations are returned as structured conflicts and warnings so a
    caller can present all of them at once; nothing here writes to the
    database. Only a missing item or allocation raises (NotFoundError).
    """

    def __init__(
        self,
        rules: StatusRules = DEFAULT_STATUS_RULES,
        ledger: Optional[AllocationLedger] = None,
        conflict_rules: Optional[ConflictRules] = None,
        low_availability_ratio: Optional[float] = None
    ):
        self.rules = rules
        self.ledger = ledger or AllocationLedger(rules)
        self.conflict_rules = conflict_rules or ConflictRules()
        self._low_availability_ratio = low_availability_ratio

    @property
    def low_availability_ratio(self) -> float:
        if self._low_availability_ratio is not None:
            return self._low_availability_ratio
        if has_app_context():
            return float(current_app.config.get('LOW_AVAILABILITY_RATIO', 0.2))
        return 0.2

    def validate(
        self,
        item_id: int,
        allocation_id: Optional[int],
        proposed_status: str,
        quantity: Optional[int] = None,
        allocation_kind: str = AllocationKind.EVENT,
        quantity_allocated: Optional[int] = None
    ) -> ValidationResult:
        """
        Validate a status change for one allocation (or a new one when allocation_id is None).

        Args:
            item_id: Item the allocation belongs to
            allocation_id: Allocation being changed; excluded from conflict checks
            proposed_status: Target status
            quantity: Units the change commits; defaults to the allocation's quantity
            allocation_kind: Ledger of allocation_id (ids overlap across ledgers)
            quantity_allocated: New quantity_allocated applied with the change (event ledger)

        Raises:
            NotFoundError: If the item or the allocation does not exist
            InvalidStatusError: If the status is outside the ledger's vocabulary
        """
        item = ItemRegistry.get(item_id)
        current = self.ledger.get(allocation_kind, allocation_id) if allocation_id is not None else None
        self._check_vocabulary(proposed_status, allocation_kind if current is not None else None)

        cr = self.conflict_rules
        result = ValidationResult()
        exclude = (allocation_kind, allocation_id) if current is not None else None
        others = self.ledger.active_records(item_id, exclude=exclude)
        result.current_allocations = others

        is_event = current is not None and current.KIND == AllocationKind.EVENT
        allocated_now = None
        if is_event:
            allocated_now = current.quantity_allocated if quantity_allocated is None else quantity_allocated
        elif current is None:
            allocated_now = quantity_allocated

        if quantity is None:
            if allocated_now is not None:
                quantity = allocated_now
            elif current is not None:
                quantity = current.counted_quantity
            else:
                quantity = 1

        # 1-2. Event allocation must be fully allocated before it moves on
        if is_event and proposed_status in cr.requires_availability:
            needed = current.quantity_needed or 0
            if needed > allocated_now:
                result.conflicts.append(notices.error(
                    ConflictType.MISSING_ITEM,
                    f'Cannot set status to "{proposed_status}" because item has insufficient allocation. '
                    f'Needed: {needed}, Allocated: {allocated_now}. Please allocate the required quantity first.',
                    quantity_needed=needed,
                    quantity_allocated=allocated_now,
                    missing_quantity=needed - allocated_now,
                ))
        if proposed_status == S.CHECKED_OUT and allocated_now == 0:
            result.conflicts.append(notices.error(
                ConflictType.ZERO_ALLOCATION,
                'Cannot check out equipment with zero allocated quantity. Please allocate equipment first.',
                quantity_allocated=0,
            ))

        # 4. Indivisible items cannot hold two clashing statuses
        if item.quantity == 1 and proposed_status in cr.mutually_exclusive:
            clashing = cr.mutually_exclusive[proposed_status]
            for record in others:
                if record.status in clashing:
                    result.conflicts.append(notices.error(
                        ConflictType.STATUS,
                        f'Cannot set status to "{proposed_status}" because equipment is already '
                        f'"{record.status}" in {record.label}',
                        conflicting_allocation=record.to_dict(),
                    ))

        # 5. Quantity accounting
        if proposed_status in cr.requires_availability:
            self._check_quantity(item, proposed_status, quantity, others, result)

        # 6. Ordering
        if current is not None:
            self._check_ordering(current, proposed_status, result)

        # 7. Soft warnings
        if is_event and proposed_status == S.ALLOCATED and allocated_now > (current.quantity_needed or 0):
            result.warnings.append(notices.warning(
                WarningType.OVER_ALLOCATION,
                f'Allocated quantity ({allocated_now}) exceeds needed quantity ({current.quantity_needed}). '
                f'Consider reducing allocation.',
                quantity_allocated=allocated_now,
                quantity_needed=current.quantity_needed,
            ))
        if proposed_status == S.CHECKED_OUT:
            also_allocated = [r for r in others if r.status == S.ALLOCATED]
            if also_allocated:
                result.warnings.append(notices.warning(
                    WarningType.ALLOCATION,
                    f"Equipment is also allocated to: {', '.join(r.label for r in also_allocated)}",
                    allocations=[r.to_dict() for r in also_allocated],
                ))

        if result.valid:
            logger.debug(f"Status change to '{proposed_status}' for item {item_id} is valid")
        else:
            logger.warning(
                f"Status change to '{proposed_status}' for item {item_id} "
                f"(allocation {allocation_kind}:{allocation_id}) rejected: {result.conflict_types()}"
            )
        return result

    def get_suggested_transitions(self, allocation_id: int) -> List[str]:
        """
        Legal in-place next statuses of an event allocation, minus the ones that
        would clash with other allocations of an indivisible item. Returned and
        cancelled records have none; they are re-requested instead.

        Raises:
            NotFoundError: If the allocation does not exist
        """
        current = self.ledger.get(AllocationKind.EVENT, allocation_id)
        allowed = EventAllocationStateMachine.get_in_place_transitions(current.status)
        item = ItemRegistry.get(current.item_id)

        if item.quantity == 1:
            others = self.ledger.active_records(item.id, exclude=(AllocationKind.EVENT, allocation_id))
            allowed = {
                status for status in allowed
                if not any(
                    r.status in self.conflict_rules.mutually_exclusive.get(status, frozenset())
                    for r in others
                )
            }

        return [status for status in S.EVENT_LEDGER if status in allowed]

    def _check_vocabulary(self, status: str, kind: Optional[str]) -> None:
        if kind == AllocationKind.LOCATION:
            vocabulary = S.LOCATION_LEDGER
        elif kind == AllocationKind.EVENT:
            vocabulary = S.EVENT_LEDGER
        else:
            vocabulary = S.ALL
        if status not in vocabulary:
            raise InvalidStatusError(f"Status '{status}' is not valid here. Allowed: {', '.join(vocabulary)}")

    def _check_quantity(
        self,
        item,
        proposed_status: str,
        quantity: int,
        others: List[AllocationRecord],
        result: ValidationResult
    ) -> None:
        total = item.quantity or 0
        installation = item.installation_quantity or 0
        compared = self.conflict_rules.compared_statuses.get(proposed_status, self.rules.unavailable_statuses)
        unavailable = AllocationLedger.sum_statuses(others, compared)
        available = total - installation - unavailable

        if quantity > available:
            result.conflicts.append(notices.error(
                ConflictType.QUANTITY,
                f'Insufficient quantity available. Available: {available}, Requested: {quantity}. '
                f'Total: {total}, Installed: {installation}, Currently unavailable: {unavailable}',
                available_quantity=available,
                requested_quantity=quantity,
            ))
        elif available - quantity < total * self.low_availability_ratio:
            result.warnings.append(notices.warning(
                WarningType.LOW_AVAILABILITY,
                f'Low availability after this allocation: {available - quantity} remaining',
                remaining=available - quantity,
                total=total,
            ))

    def _check_ordering(self, current, proposed_status: str, result: ValidationResult) -> None:
        cr = self.conflict_rules
        ordering_conflict = False

        if proposed_status == S.RETURNED and current.status not in cr.returnable_from:
            ordering_conflict = True
            result.conflicts.append(notices.error(
                ConflictType.RETURN_LOGIC,
                f'Cannot return equipment that was never checked out. Current status: "{current.status}". '
                f'Equipment must be checked-out or in-use before it can be returned.',
                current_status=current.status,
            ))

        if proposed_status == S.IN_USE and current.status not in cr.usable_from:
            ordering_conflict = True
            result.conflicts.append(notices.error(
                ConflictType.USAGE_LOGIC,
                f'Cannot put equipment in-use without checking it out first. Current status: "{current.status}". '
                f'Equipment must be checked-out before it can be put in-use.',
                current_status=current.status,
            ))

        if current.KIND != AllocationKind.EVENT or ordering_conflict:
            return

        # A finished cycle is never reopened in place
        if EventAllocationStateMachine.is_re_request(current.status, proposed_status):
            result.conflicts.append(notices.error(
                ConflictType.ILLEGAL_TRANSITION,
                f'Allocation is "{current.status}" and its cycle has ended. '
                f'Re-request it to open a new "{proposed_status}" allocation.',
                current_status=current.status,
                allowed=[],
            ))
        elif not EventAllocationStateMachine.can_transition(current.status, proposed_status):
            allowed = sorted(EventAllocationStateMachine.get_in_place_transitions(current.status))
            result.conflicts.append(notices.error(
                ConflictType.ILLEGAL_TRANSITION,
                f'Invalid allocation status transition: {current.status} → {proposed_status}',
                current_status=current.status,
                allowed=allowed,
            ))
