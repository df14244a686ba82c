from app import db
from datetime import datetime
from app.data.inventory.allocations.allocation_base import AllocationBase
from app.data.inventory.statuses import AllocationStatus, AllocationType, AllocationKind

class LocationAllocation(AllocationBase):
    """Quantity of an item committed to a location"""
    __tablename__ = 'location_allocations'

    KIND = AllocationKind.LOCATION

    location_id = db.Column(db.Integer, db.ForeignKey('locations.id'), nullable=False, index=True)
    event_id = db.Column(db.Integer, db.ForeignKey('events.id'), nullable=True, index=True)

    quantity = db.Column(db.Integer, nullable=False, default=1)
    status = db.Column(
        db.Enum(*AllocationStatus.LOCATION_LEDGER, name='location_allocation_status',
                native_enum=False, create_constraint=True),
        nullable=False,
        default=AllocationStatus.ALLOCATED,
        index=True
    )
    allocation_type = db.Column(
        db.Enum(*AllocationType.ALL, name='location_allocation_type',
                native_enum=False, create_constraint=True),
        nullable=False,
        default=AllocationType.GENERAL,
        index=True
    )

    allocated_date = db.Column(db.DateTime, nullable=False, default=datetime.utcnow, index=True)
    expected_return_date = db.Column(db.DateTime, nullable=True)
    return_date = db.Column(db.DateTime, nullable=True)
    allocated_by_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False)
    returned_by_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=True)

    __table_args__ = (
        db.CheckConstraint('quantity >= 1', name='ck_location_allocation_quantity_positive'),
    )

    # Relationships
    location = db.relationship('Location', foreign_keys=[location_id])
    event = db.relationship('Event', foreign_keys=[event_id])
    allocated_by = db.relationship('User', foreign_keys=[allocated_by_id])
    returned_by = db.relationship('User', foreign_keys=[returned_by_id])

    def __repr__(self):
        return f'<LocationAllocation {self.id}: Item {self.item_id} @ Location {self.location_id} x{self.quantity} ({self.status})>'

    @property
    def counted_quantity(self):
        return self.quantity or 0

    @property
    def is_returned(self):
        return self.status == AllocationStatus.RETURNED
