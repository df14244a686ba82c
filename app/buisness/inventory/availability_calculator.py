"""
Availability Calculator

Computes how many units of an item are free from the item's totals and the
allocation ledgers. Every call recomputes from the database; nothing is cached.
Reads never fail because of ledger inconsistency: they clamp at zero and add
an error-level notice instead.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from flask import current_app, has_app_context

from app.buisness.inventory import notices
from app.buisness.inventory.ledger import AllocationLedger
from app.buisness.inventory.notices import Notice
from app.buisness.inventory.registries import ItemRegistry, LocationRegistry
from app.buisness.inventory.status_rules import StatusRules, DEFAULT_STATUS_RULES
from app.data.inventory.statuses import AllocationKind, AllocationStatus, InstallationType
from app.logger import get_logger

logger = get_logger("equipment_inventory.buisness.inventory.availability")

DEFAULT_LOW_AVAILABILITY_RATIO = 0.2


@dataclass
class AvailabilityView:
    item_id: int
    item_name: str
    total_quantity: int
    installation_quantity: int
    installation_type: str
    installation_location: Optional[str]
    location_status_breakdown: Dict[str, int]
    event_status_breakdown: Dict[str, int]
    location_unavailable: int
    event_unavailable: int
    reserved_quantity: int
    available_quantity: int
    effectively_available: int
    is_over_allocated: bool
    warnings: List[Notice] = field(default_factory=list)
    status_rules: Optional[StatusRules] = None

    @property
    def allocated_quantity(self) -> int:
        """Units held by allocations, excluding installations"""
        return self.location_unavailable + self.event_unavailable

    @property
    def total_unavailable(self) -> int:
        return self.allocated_quantity + self.installation_quantity

    def to_dict(self) -> Dict[str, Any]:
        return {
            'item_id': self.item_id,
            'item_name': self.item_name,
            'total_quantity': self.total_quantity,
            'installation_quantity': self.installation_quantity,
            'installation_type': self.installation_type,
            'installation_location': self.installation_location,
            'location_status_breakdown': dict(self.location_status_breakdown),
            'event_status_breakdown': dict(self.event_status_breakdown),
            'location_unavailable': self.location_unavailable,
            'event_unavailable': self.event_unavailable,
            'allocated_quantity': self.allocated_quantity,
            'total_unavailable': self.total_unavailable,
            'reserved_quantity': self.reserved_quantity,
            'available_quantity': self.available_quantity,
            'effectively_available': self.effectively_available,
            'is_over_allocated': self.is_over_allocated,
            'warnings': [w.to_dict() for w in self.warnings],
            'status_rules': self.status_rules.to_dict() if self.status_rules else None,
        }


@dataclass
class StorageAvailability:
    item_id: int
    total_quantity: int
    installation_quantity: int
    in_default_storage: bool
    total_in_storage: int
    available_in_storage: int
    storage_locations: List[Dict[str, Any]] = field(default_factory=list)
    message: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'item_id': self.item_id,
            'total_quantity': self.total_quantity,
            'installation_quantity': self.installation_quantity,
            'in_default_storage': self.in_default_storage,
            'total_in_storage': self.total_in_storage,
            'available_in_storage': self.available_in_storage,
            'storage_locations': list(self.storage_locations),
            'message': self.message,
        }


class AvailabilityCalculator:
    """
    Pure read over an item and both ledgers.

    available_quantity = max(0, total - unavailable_sum - installation_quantity)
    effectively_available = max(0, available_quantity - reserved_sum)
    """

    def __init__(
        self,
        rules: StatusRules = DEFAULT_STATUS_RULES,
        ledger: Optional[AllocationLedger] = None,
        low_availability_ratio: Optional[float] = None
    ):
        self.rules = rules
        self.ledger = ledger or AllocationLedger(rules)
        self._low_availability_ratio = low_availability_ratio

    @property
    def low_availability_ratio(self) -> float:
        if self._low_availability_ratio is not None:
            return self._low_availability_ratio
        if has_app_context():
            return float(current_app.config.get('LOW_AVAILABILITY_RATIO', DEFAULT_LOW_AVAILABILITY_RATIO))
        return DEFAULT_LOW_AVAILABILITY_RATIO

    def get_availability(self, item_id: int) -> AvailabilityView:
        """
        Compute the availability view of one item.

        Raises:
            NotFoundError: If the item does not exist
        """
        item = ItemRegistry.get(item_id)
        return self.availability_for(item)

    def availability_for(self, item) -> AvailabilityView:
        records = self.ledger.records_for_item(item.id)
        breakdown = self.ledger.sum_by_status(records)

        unavailable = {
            kind: sum(qty for status, qty in by_status.items() if self.rules.counts_against_pool(status))
            for kind, by_status in breakdown.items()
        }
        reserved = sum(
            qty
            for by_status in breakdown.values()
            for status, qty in by_status.items()
            if self.rules.is_reserved(status)
        )

        total = item.quantity or 0
        installation = item.installation_quantity or 0
        unavailable_sum = unavailable[AllocationKind.LOCATION] + unavailable[AllocationKind.EVENT]

        available = max(0, total - unavailable_sum - installation)
        effectively_available = max(0, available - reserved)
        over_allocated = unavailable_sum + installation > total

        if over_allocated:
            logger.warning(
                f"Item {item.id} is over-allocated: {unavailable_sum} allocated + "
                f"{installation} installed > {total} total"
            )

        view = AvailabilityView(
            item_id=item.id,
            item_name=item.display_name,
            total_quantity=total,
            installation_quantity=installation,
            installation_type=item.installation_type,
            installation_location=item.installation_location,
            location_status_breakdown=breakdown[AllocationKind.LOCATION],
            event_status_breakdown=breakdown[AllocationKind.EVENT],
            location_unavailable=unavailable[AllocationKind.LOCATION],
            event_unavailable=unavailable[AllocationKind.EVENT],
            reserved_quantity=reserved,
            available_quantity=available,
            effectively_available=effectively_available,
            is_over_allocated=over_allocated,
            status_rules=self.rules,
        )
        view.warnings = self._build_warnings(view)

        logger.debug(
            f"Availability for item {item.id}: total={total} unavailable={unavailable_sum} "
            f"installed={installation} reserved={reserved} available={available}"
        )
        return view

    def get_all_availability(self) -> List[AvailabilityView]:
        """One view per item, ordered by item name"""
        return [self.availability_for(item) for item in ItemRegistry.all_ordered()]

    def get_storage_availability(self, item_id: int) -> StorageAvailability:
        """
        How many units can be taken from default storage right now.

        Portable units count as stored when the item sits in a default-storage
        location, or when only part of an installed item is installed.
        """
        item = ItemRegistry.get(item_id)
        storage_locations = LocationRegistry.default_storage()
        installation = item.installation_quantity or 0

        if not storage_locations:
            return StorageAvailability(
                item_id=item.id,
                total_quantity=item.quantity,
                installation_quantity=installation,
                in_default_storage=False,
                total_in_storage=0,
                available_in_storage=0,
                message='No default storage locations configured',
            )

        storage_ids = {location.id for location in storage_locations}
        in_storage = item.location_id in storage_ids
        partially_installed = (
            item.installation_type in InstallationType.INSTALLED and installation < item.quantity
        )
        total_in_storage = item.portable_quantity if (in_storage or partially_installed) else 0

        view = self.availability_for(item)
        available_in_storage = max(0, total_in_storage - view.allocated_quantity - view.reserved_quantity)

        return StorageAvailability(
            item_id=item.id,
            total_quantity=item.quantity,
            installation_quantity=installation,
            in_default_storage=in_storage,
            total_in_storage=total_in_storage,
            available_in_storage=available_in_storage,
            storage_locations=[
                {'id': location.id, 'name': location.name, 'priority': location.storage_priority}
                for location in storage_locations
            ],
        )

    def _build_warnings(self, view: AvailabilityView) -> List[Notice]:
        warnings = []
        loc = view.location_status_breakdown
        evt = view.event_status_breakdown
        total = view.total_quantity

        requested = loc.get(AllocationStatus.REQUESTED, 0) + evt.get(AllocationStatus.REQUESTED, 0)
        if requested > 0:
            warnings.append(notices.info(
                'requested_unallocated',
                f"{requested} units are requested but not yet allocated. These quantities are reserved.",
                events=evt.get(AllocationStatus.REQUESTED, 0),
                locations=loc.get(AllocationStatus.REQUESTED, 0),
            ))

        if view.is_over_allocated:
            warnings.append(notices.error(
                'over_allocated',
                f"Over-allocated: {view.total_unavailable} units committed but only {total} exist.",
                total=total,
                allocated=view.allocated_quantity,
                installed=view.installation_quantity,
            ))

        if view.effectively_available == 0 and total > 0:
            warnings.append(notices.error(
                'no_units_available',
                'No units available. All equipment is allocated or reserved.',
                total=total,
                unavailable=view.total_unavailable,
                reserved=view.reserved_quantity,
            ))
        elif total > 0 and view.effectively_available < total * self.low_availability_ratio:
            warnings.append(notices.warning(
                'low_availability',
                f"Low availability: Only {view.effectively_available} of {total} units available.",
                available=view.effectively_available,
                total=total,
                percentage=round(view.effectively_available / total * 100),
            ))

        in_use = loc.get(AllocationStatus.IN_USE, 0) + evt.get(AllocationStatus.IN_USE, 0)
        if in_use > 0:
            warnings.append(notices.info(
                'in_use',
                f"{in_use} units are currently in use.",
                events=evt.get(AllocationStatus.IN_USE, 0),
                locations=loc.get(AllocationStatus.IN_USE, 0),
            ))

        checked_out = loc.get(AllocationStatus.CHECKED_OUT, 0) + evt.get(AllocationStatus.CHECKED_OUT, 0)
        if checked_out > 0:
            warnings.append(notices.warning(
                'checked_out_pending_return',
                f"{checked_out} units are checked out and need to be returned.",
                events=evt.get(AllocationStatus.CHECKED_OUT, 0),
                locations=loc.get(AllocationStatus.CHECKED_OUT, 0),
            ))

        return warnings
