from app.data.core.user_created_base import UserCreatedBase
from app import db

class Location(UserCreatedBase):
    """
    Physical place equipment can sit in.

    Default storage is an explicit flag resolved once here instead of being
    inferred from the location name; ``storage_priority`` orders several
    storage locations (1 = highest priority).
    """
    __tablename__ = 'locations'

    name = db.Column(db.String(255), nullable=False)
    description = db.Column(db.Text, nullable=True)
    address = db.Column(db.Text, nullable=True)
    is_active = db.Column(db.Boolean, nullable=False, default=True)
    is_default_storage = db.Column(db.Boolean, nullable=False, default=False, index=True)
    storage_priority = db.Column(db.Integer, nullable=False, default=1)

    def __repr__(self):
        return f'<Location {self.name}>'

    @classmethod
    def default_storage_locations(cls):
        """Active default-storage locations in priority order"""
        return cls.query.filter_by(is_default_storage=True, is_active=True).order_by(
            cls.storage_priority.asc(), cls.name.asc()
        ).all()
