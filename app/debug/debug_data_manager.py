#!/usr/bin/env python3
"""
Debug Data Manager
Central controller for debug data insertion

Handles:
- Loading debug data JSON files
- Checking if data is already present
- Orchestrating module-specific insertion functions in build order: core → inventory
- Fail-fast error handling
"""

from pathlib import Path
import json
from app import db
from app.logger import get_logger

logger = get_logger("equipment_inventory.debug_data_manager")

MODULES = ['core', 'inventory']


def insert_debug_data(enabled=True):
    """
    Insert debug data for all modules

    Args:
        enabled (bool): Whether to insert debug data (default: True)

    Returns:
        dict: Summary of inserted data

    Raises:
        Exception: If any debug data insertion fails (fail-fast)
    """
    if not enabled:
        logger.info("Debug data insertion is disabled")
        return {}

    from app.data.core.user_info.user import User
    system_user = User.system_user()
    if not system_user:
        logger.error("System user not found - cannot insert debug data without system user")
        raise RuntimeError("System user not found - critical data must be inserted first")

    summary = {}
    for module_name in MODULES:
        debug_data = _load_debug_data_file(module_name)
        if not debug_data:
            logger.info(f"No debug data file found for {module_name}, skipping")
            summary[module_name] = {'status': 'skipped', 'reason': 'file_not_found'}
            continue

        if _check_debug_data_present(module_name, debug_data):
            logger.info(f"Debug data for {module_name} already present, skipping")
            summary[module_name] = {'status': 'skipped', 'reason': 'data_present'}
            continue

        try:
            logger.info(f"Inserting debug data for {module_name}...")
            _insert_module_debug_data(module_name, debug_data, system_user.id)
            summary[module_name] = {'status': 'inserted'}
        except Exception as e:
            logger.error(f"Failed to insert debug data for {module_name}: {e}")
            db.session.rollback()
            raise

    logger.info("Debug data insertion completed successfully")
    return summary


def _load_debug_data_file(module_name):
    debug_file = Path(__file__).parent / 'data' / f'{module_name}.json'
    if not debug_file.exists():
        return None

    try:
        with open(debug_file, 'r') as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        logger.error(f"Invalid JSON in {debug_file}: {e}")
        raise
    logger.debug(f"Loaded debug data file: {debug_file}")
    return data


def _check_debug_data_present(module_name, debug_data):
    """Presence is detected by the first named record of each module"""
    if module_name == 'core':
        from app.data.core.item_info.item import Item
        items = debug_data.get('Core', {}).get('Items', [])
        return bool(items) and Item.query.filter_by(serial_number=items[0]['serial_number']).first() is not None

    if module_name == 'inventory':
        from app.data.inventory.allocations import LocationAllocation, EventAllocation
        return LocationAllocation.query.first() is not None or EventAllocation.query.first() is not None

    return False


def _insert_module_debug_data(module_name, debug_data, system_user_id):
    if module_name == 'core':
        from app.debug.add_core_debugging_data import insert_core_debug_data
        insert_core_debug_data(debug_data, system_user_id)
    elif module_name == 'inventory':
        from app.debug.add_inventory_debugging_data import insert_inventory_debug_data
        insert_inventory_debug_data(debug_data, system_user_id)
    else:
        raise ValueError(f"Unknown debug data module: {module_name}")
