#!/usr/bin/env python3
"""
Inventory Debug Data Insertion
Creates allocations through the managers so availability checks and the
audit trail apply to debug data as well.
"""

from app.logger import get_logger

logger = get_logger("equipment_inventory.debug.inventory")


def _item_id(serial_number):
    from app.data.core.item_info.item import Item
    item = Item.query.filter_by(serial_number=serial_number).first()
    if item is None:
        raise ValueError(f"Debug item with serial number {serial_number} not found")
    return item.id


def _named_id(model, name):
    record = model.query.filter_by(name=name).first()
    if record is None:
        raise ValueError(f"Debug {model.__name__} '{name}' not found")
    return record.id


def insert_inventory_debug_data(debug_data, system_user_id):
    """
    Insert debug data for the inventory module

    Args:
        debug_data (dict): Debug data from JSON file
        system_user_id (int): System user ID, the actor of every mutation

    Raises:
        Exception: If insertion fails (fail-fast)
    """
    from app.data.core.location import Location
    from app.data.core.event_info.event import Event
    from app.buisness.inventory.item_status import ItemStatusManager
    from app.buisness.inventory.managers import AllocationManager, EventAllocationManager

    inventory = debug_data.get('Inventory', {})
    items = ItemStatusManager()
    locations = AllocationManager()
    events = EventAllocationManager()

    for installation in inventory.get('Installations', []):
        items.set_installation(
            _item_id(installation['serial_number']),
            installation['installation_type'],
            installation['installation_quantity'],
            installation_location_id=_named_id(Location, installation['location_name']),
            actor=system_user_id,
            notes=installation.get('notes'),
        )

    for allocation in inventory.get('Location_Allocations', []):
        created = locations.allocate(
            _item_id(allocation['serial_number']),
            _named_id(Location, allocation['location_name']),
            allocation['quantity'],
            allocation.get('allocation_type', 'general'),
            actor=system_user_id,
            notes=allocation.get('notes'),
        )
        if allocation.get('returned'):
            locations.return_allocation(created.id, actor=system_user_id, notes='Debug data')

    for request in inventory.get('Event_Allocations', []):
        created = events.request_for_event(
            _item_id(request['serial_number']),
            _named_id(Event, request['event_name']),
            request['quantity_needed'],
            actor=system_user_id,
            notes=request.get('notes'),
        )
        # Walk the workflow up to the requested status
        for status in request.get('workflow', []):
            quantity = request['quantity_needed'] if status == 'allocated' else None
            events.change_status(created.id, status, actor=system_user_id, quantity_allocated=quantity)

    logger.info("Successfully inserted inventory debug data")
