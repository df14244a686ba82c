"""Allocation ledgers - one table per ledger, shared columns on AllocationBase"""

from app.data.inventory.allocations.allocation_base import AllocationBase
from app.data.inventory.allocations.location_allocation import LocationAllocation
from app.data.inventory.allocations.event_allocation import EventAllocation

__all__ = [
    'AllocationBase',
    'LocationAllocation',
    'EventAllocation',
]
