from app import db
from app.data.core.user_created_base import UserCreatedBase
from app.data.inventory.statuses import ItemStatus, InstallationType

class Item(UserCreatedBase):
    """
    Trackable equipment record.

    ``quantity`` is the total number of owned units. ``installation_quantity``
    units are permanently deployed and removed from the allocatable pool.
    ``location`` and ``installation_location`` hold the canonical names of the
    referenced locations (or free text when no reference is set).
    """
    __tablename__ = 'items'

    name = db.Column(db.String(255), nullable=False)
    brand = db.Column(db.String(255), nullable=True)
    model = db.Column(db.String(255), nullable=True)
    serial_number = db.Column(db.String(255), nullable=True, unique=True)

    quantity = db.Column(db.Integer, nullable=False, default=1)
    status = db.Column(
        db.Enum(*ItemStatus.ALL, name='item_status', native_enum=False, create_constraint=True),
        nullable=False,
        default=ItemStatus.AVAILABLE
    )

    location_id = db.Column(db.Integer, db.ForeignKey('locations.id'), nullable=True, index=True)
    location = db.Column(db.String(255), nullable=True)

    installation_type = db.Column(
        db.Enum(*InstallationType.ALL, name='installation_type', native_enum=False, create_constraint=True),
        nullable=False,
        default=InstallationType.PORTABLE
    )
    installation_quantity = db.Column(db.Integer, nullable=False, default=0)
    installation_location_id = db.Column(db.Integer, db.ForeignKey('locations.id'), nullable=True)
    installation_location = db.Column(db.String(255), nullable=True)
    installation_date = db.Column(db.DateTime, nullable=True)
    installation_notes = db.Column(db.Text, nullable=True)

    __table_args__ = (
        db.CheckConstraint('quantity >= 1', name='ck_item_quantity_positive'),
        db.CheckConstraint('installation_quantity >= 0', name='ck_item_installation_quantity_non_negative'),
    )

    # Relationships
    current_location = db.relationship('Location', foreign_keys=[location_id])
    installation_location_ref = db.relationship('Location', foreign_keys=[installation_location_id])

    def __repr__(self):
        return f'<Item {self.id}: {self.name} x{self.quantity}>'

    @property
    def display_name(self):
        parts = [p for p in (self.brand, self.model) if p]
        if parts:
            return f"{self.name} ({' '.join(parts)})"
        return self.name

    @property
    def is_installed(self):
        """Check if some units are permanently installed"""
        return self.installation_type in InstallationType.INSTALLED and (self.installation_quantity or 0) > 0

    @property
    def portable_quantity(self):
        """Units not permanently installed"""
        return max(0, (self.quantity or 0) - (self.installation_quantity or 0))
