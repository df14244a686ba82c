from app import db
from app.data.inventory.allocations.allocation_base import AllocationBase
from app.data.inventory.statuses import AllocationStatus, AllocationKind

class EventAllocation(AllocationBase):
    """
    Quantity of an item requested for / committed to an event.

    ``quantity_allocated`` counts against the pool; ``quantity_needed`` is what
    the event asked for. Allocating more than needed is allowed but warned about.
    """
    __tablename__ = 'event_allocations'

    KIND = AllocationKind.EVENT

    event_id = db.Column(db.Integer, db.ForeignKey('events.id'), nullable=False, index=True)

    quantity_needed = db.Column(db.Integer, nullable=False, default=1)
    quantity_allocated = db.Column(db.Integer, nullable=False, default=0)
    status = db.Column(
        db.Enum(*AllocationStatus.EVENT_LEDGER, name='event_allocation_status',
                native_enum=False, create_constraint=True),
        nullable=False,
        default=AllocationStatus.REQUESTED,
        index=True
    )

    checkout_date = db.Column(db.DateTime, nullable=True)
    checked_out_by_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=True)
    return_date = db.Column(db.DateTime, nullable=True)
    returned_by_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=True)

    __table_args__ = (
        db.CheckConstraint('quantity_needed >= 1', name='ck_event_allocation_needed_positive'),
        db.CheckConstraint('quantity_allocated >= 0', name='ck_event_allocation_allocated_non_negative'),
    )

    # Relationships
    event = db.relationship('Event', foreign_keys=[event_id])
    checked_out_by = db.relationship('User', foreign_keys=[checked_out_by_id])
    returned_by = db.relationship('User', foreign_keys=[returned_by_id])

    def __repr__(self):
        return f'<EventAllocation {self.id}: Item {self.item_id} for Event {self.event_id} {self.quantity_allocated}/{self.quantity_needed} ({self.status})>'

    @property
    def counted_quantity(self):
        return self.quantity_allocated or 0
