"""
Domain exceptions for inventory allocation business logic

These exceptions represent business rule violations and domain-specific errors.
They are raised by the business layer; the validator itself reports rule
violations as data and only the mutating operations turn them into exceptions.
"""


class InventoryDomainError(Exception):
    """Base exception for all inventory domain errors"""
    pass


class NotFoundError(InventoryDomainError):
    """Raised when an item, allocation, location or event does not exist"""

    def __init__(self, entity, entity_id):
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(f"{entity} {entity_id} not found")


class ValidationConflictError(InventoryDomainError):
    """Raised when a proposed change has hard conflicts; nothing was persisted"""

    def __init__(self, message, conflicts=None, warnings=None):
        self.conflicts = list(conflicts or [])
        self.warnings = list(warnings or [])
        super().__init__(message)

    @classmethod
    def from_result(cls, result):
        messages = "; ".join(c.message for c in result.conflicts)
        return cls(f"Status change rejected: {messages}", result.conflicts, result.warnings)


class InsufficientQuantityError(InventoryDomainError):
    """Raised when an allocation asks for more units than are available"""

    def __init__(self, item_id, requested, available):
        self.item_id = item_id
        self.requested = requested
        self.available = available
        super().__init__(
            f"Insufficient quantity available for item {item_id}. "
            f"Available: {available}, Requested: {requested}"
        )


class InvalidQuantityError(InventoryDomainError):
    """Raised for quantities outside their allowed range"""
    pass


class InvalidStatusError(InventoryDomainError):
    """Raised for a status outside the ledger's vocabulary"""
    pass


class AuditLogFailure(InventoryDomainError):
    """Audit entry could not be written. Logged, never propagated past the mutation."""
    pass


class InventoryInfrastructureError(InventoryDomainError):
    """Datastore failure; the enclosing transaction was rolled back"""
    pass


class IllegalTransitionError(InventoryDomainError):
    """Raised when a workflow transition is not allowed from the current status"""
    pass
