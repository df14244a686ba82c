"""
Location Inventory Service
What currently sits at a location according to the location ledger.
"""

from typing import Any, Dict, List

from app.buisness.inventory.registries import LocationRegistry
from app.data.core.item_info.item import Item
from app.data.inventory.allocations import LocationAllocation
from app.data.inventory.statuses import AllocationStatus


class LocationInventoryService:

    @staticmethod
    def get_location_inventory(location_id: int) -> List[LocationAllocation]:
        """
        Active location allocations at a location, ordered by item name.

        Raises:
            NotFoundError: If the location does not exist
        """
        LocationRegistry.get(location_id)
        return (
            LocationAllocation.query
            .join(Item, LocationAllocation.item_id == Item.id)
            .filter(
                LocationAllocation.location_id == location_id,
                LocationAllocation.status.in_(AllocationStatus.ON_HAND_AT_LOCATION),
            )
            .order_by(Item.name.asc(), LocationAllocation.id.asc())
            .all()
        )

    @staticmethod
    def get_location_inventory_dicts(location_id: int) -> List[Dict[str, Any]]:
        rows = []
        for allocation in LocationInventoryService.get_location_inventory(location_id):
            row = allocation.to_dict()
            row['item_name'] = allocation.item.display_name
            row['serial_number'] = allocation.item.serial_number
            row['allocated_by'] = allocation.allocated_by.username if allocation.allocated_by else None
            row['event_name'] = allocation.event.name if allocation.event else None
            rows.append(row)
        return rows
