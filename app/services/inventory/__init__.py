"""
Inventory Services
Read-only queries over the allocation ledgers and the audit trail.
"""

from .allocation_history_service import AllocationHistoryService
from .location_inventory_service import LocationInventoryService

__all__ = [
    'AllocationHistoryService',
    'LocationInventoryService',
]
