"""
Closed vocabularies for inventory columns.

String constants grouped per concept; the tuples are what the status columns
accept (``db.Enum`` with a CHECK constraint) so a typo can never be persisted.
"""


class AllocationStatus:
    """Shared status vocabulary for both allocation ledgers"""

    REQUESTED = 'requested'
    ALLOCATED = 'allocated'
    CHECKED_OUT = 'checked-out'
    IN_USE = 'in-use'
    RESERVED = 'reserved'
    RETURNED = 'returned'
    CANCELLED = 'cancelled'
    MAINTENANCE = 'maintenance'

    ALL = (REQUESTED, ALLOCATED, CHECKED_OUT, IN_USE, RESERVED, RETURNED, CANCELLED, MAINTENANCE)

    # Per-ledger subsets
    LOCATION_LEDGER = (ALLOCATED, CHECKED_OUT, IN_USE, RESERVED, RETURNED, MAINTENANCE)
    EVENT_LEDGER = (REQUESTED, ALLOCATED, CHECKED_OUT, IN_USE, RETURNED, CANCELLED)

    # Statuses listed as a location's current inventory
    ON_HAND_AT_LOCATION = (ALLOCATED, CHECKED_OUT, IN_USE, RESERVED)


class AllocationKind:
    """Discriminant of the unified allocation record"""

    LOCATION = 'location'
    EVENT = 'event'

    ALL = (LOCATION, EVENT)


class AllocationType:
    """Why a location allocation exists"""

    GENERAL = 'general'
    EVENT = 'event'
    MAINTENANCE = 'maintenance'
    STORAGE = 'storage'

    ALL = (GENERAL, EVENT, MAINTENANCE, STORAGE)


class ItemStatus:
    """Intrinsic status of an item, independent of its allocations"""

    AVAILABLE = 'available'
    IN_USE = 'in-use'
    MAINTENANCE = 'maintenance'
    UNAVAILABLE = 'unavailable'
    BROKEN = 'broken'

    ALL = (AVAILABLE, IN_USE, MAINTENANCE, UNAVAILABLE, BROKEN)

    # Never overwritten by automatic derivation
    PROTECTED = (MAINTENANCE, BROKEN, UNAVAILABLE)


class InstallationType:
    PORTABLE = 'portable'
    FIXED = 'fixed'
    SEMI_PERMANENT = 'semi-permanent'

    ALL = (PORTABLE, FIXED, SEMI_PERMANENT)
    INSTALLED = (FIXED, SEMI_PERMANENT)


class AuditAction:
    CREATED = 'created'
    REQUESTED = 'requested'
    ALLOCATED = 'allocated'
    MOVED = 'moved'
    STATUS_CHANGED = 'status_changed'
    RETURNED = 'returned'
    CANCELLED = 'cancelled'
    INSTALLED = 'installed'
    MAINTENANCE = 'maintenance'
    DELETED = 'deleted'

    ALL = (CREATED, REQUESTED, ALLOCATED, MOVED, STATUS_CHANGED, RETURNED, CANCELLED,
           INSTALLED, MAINTENANCE, DELETED)
