"""
EventAllocationManager - Domain service for the event allocation workflow

Requests, validated status changes and re-requests of event allocations.
Transitions go through StatusTransitionValidator; rejected changes raise
ValidationConflictError and leave the database untouched.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional

from app import db
from app.buisness.inventory.audit.audit_log import AuditLog, resolve_actor_id
from app.buisness.inventory.audit.narrator import AllocationNarrator
from app.buisness.inventory.availability_calculator import AvailabilityCalculator
from app.buisness.inventory.errors import (
    IllegalTransitionError,
    InsufficientQuantityError,
    InvalidQuantityError,
    ValidationConflictError,
)
from app.buisness.inventory.ledger import AllocationLedger
from app.buisness.inventory.locking import item_locks
from app.buisness.inventory.managers.allocation_manager import require_positive_quantity
from app.buisness.inventory.managers.transaction import inventory_transaction
from app.buisness.inventory.notices import Notice
from app.buisness.inventory.registries import EventRegistry, ItemRegistry
from app.buisness.inventory.state_machine import EventAllocationStateMachine
from app.buisness.inventory.status.status_validator import StatusTransitionValidator
from app.data.inventory.allocations import EventAllocation
from app.data.inventory.statuses import AllocationKind, AllocationStatus, AuditAction
from app.logger import get_logger

logger = get_logger("equipment_inventory.buisness.inventory.event_allocations")

S = AllocationStatus

# Audit action recorded for each target status
ACTION_FOR_STATUS = {
    S.REQUESTED: AuditAction.REQUESTED,
    S.ALLOCATED: AuditAction.ALLOCATED,
    S.RETURNED: AuditAction.RETURNED,
    S.CANCELLED: AuditAction.CANCELLED,
}

NOTE_PREFIX_FOR_STATUS = {
    S.ALLOCATED: 'Allocated',
    S.CHECKED_OUT: 'Checked out',
    S.IN_USE: 'In use',
    S.RETURNED: 'Returned',
    S.CANCELLED: 'Cancelled',
}


@dataclass
class StatusChangeOutcome:
    allocation: EventAllocation
    changed: bool
    warnings: List[Notice] = field(default_factory=list)


class EventAllocationManager:
    """
    Domain service for event allocations.

    Responsibilities:
    - Create requests and re-requests
    - Validate and apply status / quantity changes
    - Stamp checkout and return fields
    - Append one audit entry per successful mutation
    """

    def __init__(
        self,
        validator: Optional[StatusTransitionValidator] = None,
        calculator: Optional[AvailabilityCalculator] = None
    ):
        self.validator = validator or StatusTransitionValidator()
        self.calculator = calculator or AvailabilityCalculator(self.validator.rules, self.validator.ledger)

    def request_for_event(
        self,
        item_id: int,
        event_id: int,
        quantity_needed: int,
        actor=None,
        notes: Optional[str] = None
    ) -> EventAllocation:
        """
        Open a new request. Nothing is allocated yet (quantity_allocated = 0).

        Raises:
            InvalidQuantityError: If quantity_needed is not a positive integer
            NotFoundError: If the item or event does not exist
        """
        require_positive_quantity(quantity_needed, 'quantity_needed')
        actor_id = resolve_actor_id(actor)

        with inventory_transaction(f"Request item {item_id} for event {event_id}"):
            item = ItemRegistry.get(item_id)
            event = EventRegistry.get(event_id)

            allocation = EventAllocation(
                item_id=item.id,
                event_id=event.id,
                quantity_needed=quantity_needed,
                quantity_allocated=0,
                status=EventAllocationStateMachine.INITIAL_STATE,
                notes=notes,
                created_by_id=actor_id,
                updated_by_id=actor_id,
            )
            db.session.add(allocation)

            AuditLog.record(
                item_id=item.id,
                action_type=AuditAction.REQUESTED,
                user_id=actor_id,
                allocation=allocation,
                new_status=allocation.status,
                new_quantity=0,
                details=AllocationNarrator.requested(quantity_needed, event.name, notes),
            )

        logger.info(f"Requested {quantity_needed} x item {item_id} for event {event_id} (allocation {allocation.id})")
        return allocation

    def change_status(
        self,
        allocation_id: int,
        new_status: str,
        actor=None,
        quantity_allocated: Optional[int] = None,
        notes: Optional[str] = None
    ) -> StatusChangeOutcome:
        """
        Apply a validated status (and optionally quantity) change.

        Raises:
            NotFoundError: If the allocation does not exist
            InvalidQuantityError: If quantity_allocated is negative
            InvalidStatusError: If new_status is not an event allocation status
            ValidationConflictError: If the validator reports conflicts
            IllegalTransitionError: If new_status would reopen a returned or cancelled allocation
            InsufficientQuantityError: If a larger quantity_allocated no longer fits the pool
        """
        if quantity_allocated is not None and (
            isinstance(quantity_allocated, bool) or not isinstance(quantity_allocated, int) or quantity_allocated < 0
        ):
            raise InvalidQuantityError(f"quantity_allocated must be an integer >= 0, got {quantity_allocated!r}")

        allocation = AllocationLedger.get(AllocationKind.EVENT, allocation_id)
        if EventAllocationStateMachine.is_re_request(allocation.status, new_status):
            raise IllegalTransitionError(
                f"Allocation {allocation_id} is '{allocation.status}'; its cycle has ended. "
                f"Use re_request to open a new '{new_status}' allocation"
            )
        actor_id = resolve_actor_id(actor)
        item_id = allocation.item_id

        with item_locks.hold(item_id):
            with inventory_transaction(f"Change status of event allocation {allocation_id}"):
                ItemRegistry.get_for_update(item_id)
                previous_status = allocation.status
                previous_quantity = allocation.quantity_allocated
                target_quantity = previous_quantity if quantity_allocated is None else quantity_allocated

                if new_status == previous_status and target_quantity == previous_quantity:
                    logger.debug(f"Event allocation {allocation_id} already '{new_status}'; nothing to do")
                    return StatusChangeOutcome(allocation, changed=False)

                result = self.validator.validate(
                    item_id,
                    allocation.id,
                    new_status,
                    allocation_kind=AllocationKind.EVENT,
                    quantity_allocated=target_quantity,
                )
                if not result.valid:
                    raise ValidationConflictError.from_result(result)

                self._check_pool_growth(allocation, new_status, previous_quantity, target_quantity)

                allocation.status = new_status
                allocation.quantity_allocated = target_quantity
                allocation.touch(actor_id)
                now = datetime.utcnow()
                if new_status == S.CHECKED_OUT:
                    allocation.checkout_date = now
                    allocation.checked_out_by_id = actor_id
                elif new_status == S.RETURNED:
                    allocation.return_date = now
                    allocation.returned_by_id = actor_id
                allocation.append_note(NOTE_PREFIX_FOR_STATUS.get(new_status, 'Status'), notes)

                AuditLog.record(
                    item_id=item_id,
                    action_type=ACTION_FOR_STATUS.get(new_status, AuditAction.STATUS_CHANGED),
                    user_id=actor_id,
                    allocation=allocation,
                    previous_status=previous_status,
                    new_status=new_status,
                    previous_quantity=previous_quantity,
                    new_quantity=target_quantity,
                    details=AllocationNarrator.event_status_changed(
                        previous_status,
                        new_status,
                        EventRegistry.display_name(allocation.event_id),
                        previous_quantity,
                        target_quantity,
                        notes,
                    ),
                )

        logger.info(f"Event allocation {allocation_id}: {previous_status} → {new_status} ({target_quantity} allocated)")
        return StatusChangeOutcome(allocation, changed=True, warnings=result.warnings)

    def allocate(self, allocation_id: int, quantity_allocated: int, actor=None, notes: Optional[str] = None) -> StatusChangeOutcome:
        return self.change_status(allocation_id, S.ALLOCATED, actor, quantity_allocated=quantity_allocated, notes=notes)

    def checkout(self, allocation_id: int, actor=None, notes: Optional[str] = None) -> StatusChangeOutcome:
        return self.change_status(allocation_id, S.CHECKED_OUT, actor, notes=notes)

    def mark_in_use(self, allocation_id: int, actor=None, notes: Optional[str] = None) -> StatusChangeOutcome:
        return self.change_status(allocation_id, S.IN_USE, actor, notes=notes)

    def return_allocation(self, allocation_id: int, actor=None, notes: Optional[str] = None) -> StatusChangeOutcome:
        return self.change_status(allocation_id, S.RETURNED, actor, notes=notes)

    def cancel(self, allocation_id: int, actor=None, notes: Optional[str] = None) -> StatusChangeOutcome:
        return self.change_status(allocation_id, S.CANCELLED, actor, notes=notes)

    def re_request(self, allocation_id: int, actor=None, notes: Optional[str] = None) -> EventAllocation:
        """
        Start a new cycle from a returned or cancelled allocation.

        The old record stays untouched; a fresh ``requested`` record is created
        for the same item, event and needed quantity.

        Raises:
            NotFoundError: If the allocation does not exist
            IllegalTransitionError: If the allocation is not terminal
        """
        previous = AllocationLedger.get(AllocationKind.EVENT, allocation_id)
        if not EventAllocationStateMachine.is_terminal(previous.status):
            raise IllegalTransitionError(
                f"Only returned or cancelled allocations can be re-requested; "
                f"allocation {allocation_id} is '{previous.status}'"
            )
        EventAllocationStateMachine.validate_transition(previous.status, S.REQUESTED)
        actor_id = resolve_actor_id(actor)

        with inventory_transaction(f"Re-request event allocation {allocation_id}"):
            allocation = EventAllocation(
                item_id=previous.item_id,
                event_id=previous.event_id,
                quantity_needed=previous.quantity_needed,
                quantity_allocated=0,
                status=S.REQUESTED,
                notes=notes,
                created_by_id=actor_id,
                updated_by_id=actor_id,
            )
            db.session.add(allocation)

            AuditLog.record(
                item_id=previous.item_id,
                action_type=AuditAction.REQUESTED,
                user_id=actor_id,
                allocation=allocation,
                previous_status=previous.status,
                new_status=S.REQUESTED,
                new_quantity=0,
                details=AllocationNarrator.re_requested(
                    previous.id, previous.status, EventRegistry.display_name(previous.event_id)
                ),
            )

        logger.info(f"Re-requested event allocation {allocation_id} as {allocation.id}")
        return allocation

    def get_suggested_transitions(self, allocation_id: int) -> List[str]:
        return self.validator.get_suggested_transitions(allocation_id)

    def _check_pool_growth(self, allocation, new_status, previous_quantity, target_quantity) -> None:
        """
        Statuses the validator does not quantity-check (requested) still hold
        units, so growing quantity_allocated must fit what is left.
        """
        rules = self.validator.rules
        if not rules.counts_against_pool(new_status):
            return
        counted_before = previous_quantity if rules.counts_against_pool(allocation.status) else 0
        growth = target_quantity - counted_before
        if growth <= 0:
            return
        view = self.calculator.get_availability(allocation.item_id)
        if growth > view.effectively_available:
            raise InsufficientQuantityError(allocation.item_id, growth, view.effectively_available)
