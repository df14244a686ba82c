#!/usr/bin/env python3
"""
Core Debug Data Insertion
Inserts users, locations, events and items used by the inventory debug data
"""

from datetime import datetime
from app import db
from app.logger import get_logger

logger = get_logger("equipment_inventory.debug.core")


def insert_core_debug_data(debug_data, system_user_id):
    """
    Insert debug data for the core module

    Args:
        debug_data (dict): Debug data from JSON file
        system_user_id (int): System user ID for audit fields

    Raises:
        Exception: If insertion fails (fail-fast)
    """
    from app.data.core.user_info.user import User
    from app.data.core.location import Location
    from app.data.core.event_info.event import Event
    from app.data.core.item_info.item import Item

    core = debug_data.get('Core', {})

    try:
        for user_data in core.get('Users', []):
            User.find_or_create_from_dict(user_data, lookup_fields=['username'], commit=False)

        for location_data in core.get('Locations', []):
            Location.find_or_create_from_dict(
                location_data, user_id=system_user_id, lookup_fields=['name'], commit=False
            )

        for event_data in core.get('Events', []):
            event_data = dict(event_data)
            for key in ('start_date', 'end_date'):
                if event_data.get(key):
                    event_data[key] = datetime.fromisoformat(event_data[key])
            Event.find_or_create_from_dict(
                event_data, user_id=system_user_id, lookup_fields=['name'], commit=False
            )

        for item_data in core.get('Items', []):
            item_data = dict(item_data)
            location_name = item_data.pop('location_name', None)
            if location_name:
                location = Location.query.filter_by(name=location_name).first()
                item_data['location_id'] = location.id if location else None
                item_data['location'] = location.name if location else location_name
            Item.find_or_create_from_dict(
                item_data, user_id=system_user_id, lookup_fields=['serial_number'], commit=False
            )

        db.session.commit()
        logger.info("Successfully inserted core debug data")

    except Exception as e:
        db.session.rollback()
        logger.error(f"Failed to insert core debug data: {e}")
        raise
