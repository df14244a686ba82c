from app import db
from app.data.core.user_created_base import UserCreatedBase

class Event(UserCreatedBase):
    """A show or production that equipment can be requested for."""
    __tablename__ = 'events'

    name = db.Column(db.String(255), nullable=False)
    venue = db.Column(db.String(255), nullable=True)
    start_date = db.Column(db.DateTime, nullable=True)
    end_date = db.Column(db.DateTime, nullable=True)
    status = db.Column(db.String(20), nullable=True)
    description = db.Column(db.Text, nullable=True)

    def __repr__(self):
        return f'<Event {self.name}>'
