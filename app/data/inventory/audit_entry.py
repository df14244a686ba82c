from app import db
from datetime import datetime
from sqlalchemy import event
from app.buisness.core.data_insertion_mixin import DataInsertionMixin
from app.data.inventory.statuses import AuditAction, AllocationKind

class AuditEntry(DataInsertionMixin, db.Model):
    """Append-only record of every successful inventory mutation"""
    __tablename__ = 'audit_entries'

    id = db.Column(db.Integer, primary_key=True)
    item_id = db.Column(db.Integer, db.ForeignKey('items.id'), nullable=False, index=True)
    allocation_kind = db.Column(
        db.Enum(*AllocationKind.ALL, name='audit_allocation_kind', native_enum=False, create_constraint=True),
        nullable=True
    )
    allocation_id = db.Column(db.Integer, nullable=True)
    user_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False)
    action_type = db.Column(
        db.Enum(*AuditAction.ALL, name='audit_action_type', native_enum=False, create_constraint=True),
        nullable=False,
        index=True
    )

    previous_status = db.Column(db.String(20), nullable=True)
    new_status = db.Column(db.String(20), nullable=True)
    previous_location_id = db.Column(db.Integer, db.ForeignKey('locations.id'), nullable=True)
    new_location_id = db.Column(db.Integer, db.ForeignKey('locations.id'), nullable=True)
    previous_quantity = db.Column(db.Integer, nullable=True)
    new_quantity = db.Column(db.Integer, nullable=True)
    details = db.Column(db.Text, nullable=True)
    timestamp = db.Column(db.DateTime, nullable=False, default=datetime.utcnow, index=True)

    # Relationships
    item = db.relationship('Item')
    user = db.relationship('User', back_populates='audit_entries')
    previous_location = db.relationship('Location', foreign_keys=[previous_location_id])
    new_location = db.relationship('Location', foreign_keys=[new_location_id])

    def __repr__(self):
        return f'<AuditEntry {self.action_type}: Item {self.item_id} by User {self.user_id}>'

    def to_dict(self, include_audit_fields=True):
        result = super().to_dict(include_audit_fields)
        result['username'] = self.user.username if self.user else None
        result['previous_location_name'] = self.previous_location.name if self.previous_location else None
        result['new_location_name'] = self.new_location.name if self.new_location else None
        return result


@event.listens_for(AuditEntry, 'before_update')
def _reject_audit_update(mapper, connection, target):
    raise ValueError(f"Audit entries are append-only; refusing to update entry {target.id}")
