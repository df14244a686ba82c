from app import db
from datetime import datetime
from sqlalchemy.ext.declarative import declared_attr
from app.buisness.core.data_insertion_mixin import DataInsertionMixin

class UserCreatedBase(db.Model, DataInsertionMixin):
    """
    Abstract base for registry and ledger rows that record who created and
    last changed them. The actor of an inventory mutation is stamped here in
    addition to the audit entry written for it.
    """

    __abstract__ = True

    @declared_attr
    def __tablename__(cls):
        return cls.__name__.lower() + 's'

    id = db.Column(db.Integer, primary_key=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    created_by_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=True)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
    updated_by_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=True)

    @declared_attr
    def created_by(cls):
        return db.relationship('User', foreign_keys=[cls.created_by_id])

    @declared_attr
    def updated_by(cls):
        return db.relationship('User', foreign_keys=[cls.updated_by_id])

    def touch(self, user_id):
        """Record user_id as the last actor; updated_at follows on flush"""
        self.updated_by_id = user_id
        if self.created_by_id is None:
            self.created_by_id = user_id
