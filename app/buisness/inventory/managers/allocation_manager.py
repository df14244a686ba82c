"""
AllocationManager - Location ledger operations

Allocate, return and move location allocations. Each operation is one
transaction that also appends exactly one audit entry.
"""

from datetime import datetime
from typing import List, Optional

from app import db
from app.buisness.inventory.audit.audit_log import AuditLog, resolve_actor_id
from app.buisness.inventory.audit.narrator import AllocationNarrator
from app.buisness.inventory.availability_calculator import AvailabilityCalculator
from app.buisness.inventory.errors import (
    InsufficientQuantityError,
    InvalidQuantityError,
    InvalidStatusError,
)
from app.buisness.inventory.ledger import AllocationLedger, AllocationRecord
from app.buisness.inventory.locking import item_locks
from app.buisness.inventory.managers.transaction import inventory_transaction
from app.buisness.inventory.registries import EventRegistry, ItemRegistry, LocationRegistry
from app.data.inventory.allocations import LocationAllocation
from app.data.inventory.statuses import AllocationKind, AllocationStatus, AllocationType, AuditAction
from app.logger import get_logger

logger = get_logger("equipment_inventory.buisness.inventory.allocations")


def require_positive_quantity(quantity, field_name='quantity') -> int:
    if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity < 1:
        raise InvalidQuantityError(f"{field_name} must be an integer >= 1, got {quantity!r}")
    return quantity


class AllocationManager:
    """
    Domain service for the location ledger.

    Responsibilities:
    - Re-check availability under a per-item lock before inserting
    - Apply return and move to existing allocations
    - Append one audit entry per successful mutation
    """

    def __init__(self, calculator: Optional[AvailabilityCalculator] = None):
        self.calculator = calculator or AvailabilityCalculator()

    def allocate(
        self,
        item_id: int,
        location_id: int,
        quantity: int,
        allocation_type: str = AllocationType.GENERAL,
        actor=None,
        notes: Optional[str] = None,
        expected_return_date: Optional[datetime] = None,
        event_id: Optional[int] = None
    ) -> LocationAllocation:
        """
        Commit ``quantity`` units of an item to a location.

        Raises:
            InvalidQuantityError: If quantity is not a positive integer
            NotFoundError: If the item, location or event does not exist
            InsufficientQuantityError: If fewer than ``quantity`` units are available
        """
        require_positive_quantity(quantity)
        if allocation_type not in AllocationType.ALL:
            raise ValueError(f"Unknown allocation type: {allocation_type}")
        actor_id = resolve_actor_id(actor)

        with item_locks.hold(item_id):
            with inventory_transaction(f"Allocate item {item_id}"):
                item = ItemRegistry.get_for_update(item_id)
                location = LocationRegistry.get(location_id)
                if event_id is not None:
                    EventRegistry.get(event_id)

                view = self.calculator.availability_for(item)
                if quantity > view.effectively_available:
                    logger.warning(
                        f"Allocation of {quantity} x item {item_id} rejected: "
                        f"{view.effectively_available} available"
                    )
                    raise InsufficientQuantityError(item_id, quantity, view.effectively_available)

                allocation = LocationAllocation(
                    item_id=item.id,
                    location_id=location.id,
                    event_id=event_id,
                    quantity=quantity,
                    status=AllocationStatus.ALLOCATED,
                    allocation_type=allocation_type,
                    allocated_date=datetime.utcnow(),
                    expected_return_date=expected_return_date,
                    allocated_by_id=actor_id,
                    notes=notes,
                    created_by_id=actor_id,
                    updated_by_id=actor_id,
                )
                db.session.add(allocation)

                AuditLog.record(
                    item_id=item.id,
                    action_type=AuditAction.ALLOCATED,
                    user_id=actor_id,
                    allocation=allocation,
                    new_status=allocation.status,
                    new_location_id=location.id,
                    new_quantity=quantity,
                    details=AllocationNarrator.allocated(quantity, location.name, allocation_type, notes),
                )

        logger.info(f"Allocated {quantity} x item {item_id} to location {location_id} (allocation {allocation.id})")
        return allocation

    def return_allocation(self, allocation_id: int, actor=None, notes: Optional[str] = None) -> LocationAllocation:
        """
        Mark a location allocation returned.

        A second return is a no-op: nothing changes and no audit entry is written.
        The returned check and the write happen under the item lock.
        """
        allocation = AllocationLedger.get(AllocationKind.LOCATION, allocation_id)
        item_id = allocation.item_id

        with item_locks.hold(item_id):
            with inventory_transaction(f"Return location allocation {allocation_id}"):
                db.session.refresh(allocation)
                if allocation.is_returned:
                    logger.info(f"Location allocation {allocation_id} already returned; nothing to do")
                    return allocation

                actor_id = resolve_actor_id(actor)
                previous_status = allocation.status
                allocation.status = AllocationStatus.RETURNED
                allocation.return_date = datetime.utcnow()
                allocation.returned_by_id = actor_id
                allocation.touch(actor_id)
                allocation.append_note('Returned', notes)

                AuditLog.record(
                    item_id=item_id,
                    action_type=AuditAction.RETURNED,
                    user_id=actor_id,
                    allocation=allocation,
                    previous_status=previous_status,
                    new_status=allocation.status,
                    previous_location_id=allocation.location_id,
                    previous_quantity=allocation.quantity,
                    details=AllocationNarrator.returned(allocation.quantity, allocation.location.name, notes),
                )

        logger.info(f"Returned location allocation {allocation_id} ({allocation.quantity} x item {allocation.item_id})")
        return allocation

    def move(self, allocation_id: int, new_location_id: int, actor=None, notes: Optional[str] = None) -> LocationAllocation:
        """
        Move an active allocation to another location. Quantity and status are untouched.

        Raises:
            NotFoundError: If the allocation or the location does not exist
            InvalidStatusError: If the allocation was already returned
        """
        allocation = AllocationLedger.get(AllocationKind.LOCATION, allocation_id)
        new_location = LocationRegistry.get(new_location_id)
        if allocation.is_returned:
            raise InvalidStatusError(f"Location allocation {allocation_id} was returned and cannot be moved")

        actor_id = resolve_actor_id(actor)
        with inventory_transaction(f"Move location allocation {allocation_id}"):
            previous_location = allocation.location
            allocation.location_id = new_location.id
            allocation.location = new_location
            allocation.touch(actor_id)
            allocation.append_note('Moved', notes)

            AuditLog.record(
                item_id=allocation.item_id,
                action_type=AuditAction.MOVED,
                user_id=actor_id,
                allocation=allocation,
                previous_status=allocation.status,
                new_status=allocation.status,
                previous_location_id=previous_location.id,
                new_location_id=new_location.id,
                previous_quantity=allocation.quantity,
                new_quantity=allocation.quantity,
                details=AllocationNarrator.moved(previous_location.name, new_location.name, notes),
            )

        logger.info(f"Moved location allocation {allocation_id} from {previous_location.id} to {new_location.id}")
        return allocation

    def get_item_allocations(self, item_id: int) -> List[AllocationRecord]:
        """Active allocations of an item across both ledgers"""
        ItemRegistry.get(item_id)
        return self.calculator.ledger.active_records(item_id)
