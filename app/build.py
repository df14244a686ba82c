#!/usr/bin/env python3
"""
Build orchestrator for the Equipment Inventory engine
Creates the tables, inserts critical data and optionally debug data
"""

from app import create_app, db
from pathlib import Path
import json
import secrets
from flask import current_app
from app.logger import get_logger

logger = get_logger("equipment_inventory.build")

CRITICAL_DATA_FILE = Path(__file__).parent / 'data' / 'core' / 'build_data_critical.json'


def build_models():
    """
    Create all tables. Models register themselves with SQLAlchemy when the
    app is created, so importing them here only guards against a bare app.
    """
    import app.data.core.user_info.user
    import app.data.core.location
    import app.data.core.event_info.event
    import app.data.core.item_info.item
    import app.data.inventory.allocations
    import app.data.inventory.audit_entry

    db.create_all()
    logger.info("All database tables created")


def load_critical_data():
    if not CRITICAL_DATA_FILE.exists():
        error_msg = f"Critical data file not found: {CRITICAL_DATA_FILE}"
        logger.error(error_msg)
        raise FileNotFoundError(error_msg)

    with open(CRITICAL_DATA_FILE, 'r') as f:
        return json.load(f)


def verify_critical_data():
    """
    Verify that critical data is present in the database

    Returns:
        bool: True if the system user and a default storage location exist
    """
    from app.data.core.user_info.user import User
    from app.data.core.location import Location

    system_user = User.system_user()
    if not system_user:
        logger.warning("System user not found")
        return False

    if not Location.default_storage_locations():
        logger.warning("No active default storage location found")
        return False

    logger.info("Critical data verification passed")
    return True


def insert_critical_data():
    """
    Insert critical data that must always be present

    Loads app/data/core/build_data_critical.json. The default storage
    location takes its name from the DEFAULT_STORAGE_LOCATION setting.
    """
    critical_data = load_critical_data()

    if verify_critical_data():
        logger.info("Critical data already present, skipping insertion")
        return

    logger.warning("Critical data missing, attempting insertion...")

    from app.data.core.user_info.user import User
    from app.data.core.location import Location

    try:
        for user_key, user_data in critical_data['Essential']['Users'].items():
            user_data = dict(user_data)
            # System accounts never log in; give them an unguessable password
            user_data.setdefault('password', secrets.token_urlsafe(32))
            User.find_or_create_from_dict(user_data, lookup_fields=['username'], commit=False)
            logger.info(f"Inserted essential user: {user_data.get('username')}")

        system_user = User.system_user()

        storage_data = dict(critical_data['Essential']['Default_Storage_Location'])
        storage_data['name'] = current_app.config.get('DEFAULT_STORAGE_LOCATION', storage_data['name'])
        storage, created = Location.find_or_create_from_dict(
            storage_data,
            user_id=system_user.id,
            lookup_fields=['name'],
            commit=False
        )
        if not storage.is_default_storage:
            storage.is_default_storage = True
        logger.info(f"Default storage location: {storage.name} ({'created' if created else 'existing'})")

        db.session.commit()
        logger.info("Successfully inserted critical data")

        if not verify_critical_data():
            raise RuntimeError("Critical data insertion completed but verification failed")

    except Exception as e:
        db.session.rollback()
        error_msg = f"Critical data insertion failed: {e}"
        logger.error(error_msg)
        raise RuntimeError(error_msg) from e


def build_database(app=None, enable_debug_data=False):
    """
    Build the database

    Args:
        app: Flask app to build for (a new one is created when omitted)
        enable_debug_data (bool): Whether to insert debug data
            Note: Critical data is ALWAYS checked and inserted
    """
    app = app or create_app()

    with app.app_context():
        logger.info("Starting database build")
        build_models()

        logger.info("Verifying and inserting critical data (always required)...")
        insert_critical_data()

        if enable_debug_data:
            from app.debug.debug_data_manager import insert_debug_data
            logger.info("Inserting debug data...")
            insert_debug_data(enabled=True)

        logger.info("Database build completed successfully")
