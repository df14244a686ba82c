from app import db
from app.data.core.user_created_base import UserCreatedBase
from sqlalchemy.ext.declarative import declared_attr

class AllocationBase(UserCreatedBase):
    """
    Columns and behaviour shared by both allocation ledgers.

    Concrete ledgers define ``KIND``, their own ``status`` column (each ledger
    accepts a different subset of AllocationStatus) and ``counted_quantity``,
    the quantity that counts against the item's pool.
    """
    __abstract__ = True

    KIND = None

    item_id = db.Column(db.Integer, db.ForeignKey('items.id'), nullable=False, index=True)
    notes = db.Column(db.Text, nullable=True)

    @declared_attr
    def item(cls):
        return db.relationship('Item', foreign_keys=[cls.item_id])

    @property
    def kind(self):
        return self.KIND

    @property
    def counted_quantity(self):
        raise NotImplementedError

    def append_note(self, prefix, text):
        """Append a prefixed line to the notes, keeping earlier notes intact"""
        if not text:
            return
        line = f"{prefix}: {text}"
        self.notes = f"{self.notes}\n{line}" if self.notes else line
