"""
Item status derivation.

derive_item_state is a pure function; ItemStatusManager calls it explicitly
before persisting a location or installation change, and displayed_location
reads the shown location from the same derivation.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from app.buisness.inventory.audit.audit_log import AuditLog, resolve_actor_id
from app.buisness.inventory.audit.narrator import AllocationNarrator
from app.buisness.inventory.availability_calculator import AvailabilityCalculator
from app.buisness.inventory.errors import InsufficientQuantityError, InvalidQuantityError
from app.buisness.inventory.locking import item_locks
from app.buisness.inventory.managers.transaction import inventory_transaction
from app.buisness.inventory.registries import ItemRegistry, LocationRegistry
from app.data.inventory.statuses import AuditAction, InstallationType, ItemStatus
from app.logger import get_logger

logger = get_logger("equipment_inventory.buisness.inventory.item_status")


@dataclass(frozen=True)
class DerivationContext:
    """Everything derive_item_state needs besides the item's own fields"""

    requested_status: str
    installation_type: str
    installation_quantity: int
    location_name: Optional[str] = None
    location_is_default_storage: bool = False
    installation_location_name: Optional[str] = None


@dataclass(frozen=True)
class DerivedItemState:
    status: str
    location: Optional[str]


def derive_item_state(item, context: DerivationContext) -> DerivedItemState:
    """
    Suggest the item status and displayed location.

    Installed units win over storage: the item shows as in-use at its
    installation location. An item in default storage shows as available.
    maintenance, broken and unavailable are never overwritten.
    """
    current_status = item.status
    protected = current_status in ItemStatus.PROTECTED

    if context.installation_type in InstallationType.INSTALLED and context.installation_quantity > 0:
        status = current_status if protected else ItemStatus.IN_USE
        location = context.installation_location_name or context.location_name
        return DerivedItemState(status, location)

    if context.location_is_default_storage:
        status = current_status if protected else ItemStatus.AVAILABLE
        return DerivedItemState(status, context.location_name)

    return DerivedItemState(context.requested_status, context.location_name)


def context_for(item, requested_status: Optional[str] = None) -> DerivationContext:
    """DerivationContext built from the item's own location and installation fields"""
    storage = item.current_location
    return DerivationContext(
        requested_status=requested_status or item.status,
        installation_type=item.installation_type,
        installation_quantity=item.installation_quantity or 0,
        location_name=item.location,
        location_is_default_storage=bool(storage and storage.is_default_storage),
        installation_location_name=item.installation_location,
    )


class ItemStatusManager:

    def __init__(self, calculator: Optional[AvailabilityCalculator] = None):
        self.calculator = calculator or AvailabilityCalculator()

    def set_location(
        self,
        item_id: int,
        location_id: Optional[int] = None,
        location_name: Optional[str] = None,
        actor=None,
        status: Optional[str] = None
    ):
        """
        Set where an item is kept.

        A location id always wins over free text: the stored name becomes the
        registry's canonical name. Free text that matches a known location is
        linked to it; otherwise it is stored as-is without a reference.

        Raises:
            NotFoundError: If the item or location id does not exist
        """
        if status is not None and status not in ItemStatus.ALL:
            raise ValueError(f"Unknown item status: {status}")
        actor_id = resolve_actor_id(actor)

        with inventory_transaction(f"Set location of item {item_id}"):
            item = ItemRegistry.get(item_id)
            previous_status = item.status
            previous_location_id = item.location_id
            previous_location_name = item.location

            location = None
            if location_id is not None:
                location = LocationRegistry.get(location_id)
            elif location_name:
                location = LocationRegistry.find_by_name(location_name)

            item.current_location = location
            item.location_id = location.id if location else None
            item.location = location.name if location else (location_name or None)

            derived = derive_item_state(item, context_for(item, status))
            item.status = derived.status
            item.touch(actor_id)

            AuditLog.record(
                item_id=item.id,
                action_type=AuditAction.MOVED,
                user_id=actor_id,
                previous_status=previous_status,
                new_status=item.status,
                previous_location_id=previous_location_id,
                new_location_id=item.location_id,
                details=AllocationNarrator.location_set(
                    previous_location_name, item.location, previous_status, item.status
                ),
            )

        logger.info(
            f"Item {item_id} location set to '{item.location}' (status {item.status}, shown at '{derived.location}')"
        )
        return item

    def set_installation(
        self,
        item_id: int,
        installation_type: str,
        installation_quantity: int,
        installation_location_id: Optional[int] = None,
        actor=None,
        notes: Optional[str] = None
    ):
        """
        Change how many units are permanently installed.

        Raises:
            InvalidQuantityError: If the quantity is negative or above the item total
            InsufficientQuantityError: If allocations already hold the units
            NotFoundError: If the item or installation location does not exist
        """
        if installation_type not in InstallationType.ALL:
            raise ValueError(f"Unknown installation type: {installation_type}")
        if isinstance(installation_quantity, bool) or not isinstance(installation_quantity, int) or installation_quantity < 0:
            raise InvalidQuantityError(f"installation_quantity must be an integer >= 0, got {installation_quantity!r}")
        if installation_type == InstallationType.PORTABLE:
            installation_quantity = 0
            installation_location_id = None
        actor_id = resolve_actor_id(actor)

        with item_locks.hold(item_id):
            with inventory_transaction(f"Set installation of item {item_id}"):
                item = ItemRegistry.get_for_update(item_id)
                if installation_quantity > item.quantity:
                    raise InvalidQuantityError(
                        f"installation_quantity {installation_quantity} exceeds total quantity {item.quantity}"
                    )

                installation_location = None
                if installation_location_id is not None:
                    installation_location = LocationRegistry.get(installation_location_id)

                view = self.calculator.availability_for(item)
                growth = installation_quantity - view.installation_quantity
                if growth > 0 and growth > view.available_quantity:
                    raise InsufficientQuantityError(item.id, growth, view.available_quantity)

                previous_status = item.status
                previous_quantity = item.installation_quantity
                item.installation_type = installation_type
                item.installation_quantity = installation_quantity
                item.installation_location_id = installation_location.id if installation_location else None
                item.installation_location = installation_location.name if installation_location else None
                item.installation_notes = notes
                item.installation_date = datetime.utcnow() if installation_quantity > 0 else None

                derived = derive_item_state(item, context_for(item))
                item.status = derived.status
                item.touch(actor_id)

                AuditLog.record(
                    item_id=item.id,
                    action_type=AuditAction.INSTALLED,
                    user_id=actor_id,
                    previous_status=previous_status,
                    new_status=item.status,
                    new_location_id=item.installation_location_id,
                    previous_quantity=previous_quantity,
                    new_quantity=installation_quantity,
                    details=AllocationNarrator.installation_set(
                        installation_type, installation_quantity, item.installation_location, notes
                    ),
                )

        logger.info(
            f"Item {item_id} installation set to {installation_type} x{installation_quantity} "
            f"(shown at '{derived.location}')"
        )
        return item

    @staticmethod
    def displayed_location(item) -> Optional[str]:
        """Location shown for an item, as derived from its current fields"""
        return derive_item_state(item, context_for(item)).location
