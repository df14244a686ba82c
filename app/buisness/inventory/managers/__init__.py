"""Inventory managers - Business logic layer"""

from app.buisness.inventory.managers.allocation_manager import AllocationManager
from app.buisness.inventory.managers.event_allocation_manager import EventAllocationManager, StatusChangeOutcome

__all__ = [
    'AllocationManager',
    'EventAllocationManager',
    'StatusChangeOutcome',
]
