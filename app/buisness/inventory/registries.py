"""
Lookups for the records the engine reads but does not own.

Items, locations and events are maintained elsewhere; the engine only needs
to fetch them by id and resolve canonical names.
"""

from typing import List, Optional
from app import db
from app.buisness.inventory.errors import NotFoundError
from app.data.core.item_info.item import Item
from app.data.core.location import Location
from app.data.core.event_info.event import Event


class ItemRegistry:

    @staticmethod
    def get(item_id: int) -> Item:
        item = db.session.get(Item, item_id)
        if item is None:
            raise NotFoundError('Item', item_id)
        return item

    @staticmethod
    def get_for_update(item_id: int) -> Item:
        """Fetch the item row with a locking read (no-op on SQLite)"""
        item = db.session.execute(
            db.select(Item).where(Item.id == item_id).with_for_update()
        ).scalar_one_or_none()
        if item is None:
            raise NotFoundError('Item', item_id)
        return item

    @staticmethod
    def all_ordered() -> List[Item]:
        return db.session.execute(db.select(Item).order_by(Item.name.asc(), Item.id.asc())).scalars().all()


class LocationRegistry:

    @staticmethod
    def get(location_id: int) -> Location:
        location = db.session.get(Location, location_id)
        if location is None:
            raise NotFoundError('Location', location_id)
        return location

    @staticmethod
    def find_by_name(name: str) -> Optional[Location]:
        if not name:
            return None
        return Location.query.filter_by(name=name.strip()).first()

    @staticmethod
    def default_storage() -> List[Location]:
        return Location.default_storage_locations()


class EventRegistry:

    @staticmethod
    def get(event_id: int) -> Event:
        event = db.session.get(Event, event_id)
        if event is None:
            raise NotFoundError('Event', event_id)
        return event

    @staticmethod
    def display_name(event_id: Optional[int]) -> Optional[str]:
        if event_id is None:
            return None
        event = db.session.get(Event, event_id)
        return event.name if event else f"Event {event_id}"
