"""
Pytest configuration and fixtures for the inventory engine tests
"""
import os
import tempfile
from itertools import count

import pytest

# Must be set before the app package is imported
os.environ.setdefault('SECRET_KEY', 'test_secret_key_for_inventory_tests')
os.environ.setdefault('LOG_DIR', os.path.join(tempfile.gettempdir(), 'equipment_inventory_test_logs'))

from app import create_app
from app import db as _db
from app.data.core.user_info.user import User
from app.data.core.location import Location
from app.data.core.event_info.event import Event
from app.data.core.item_info.item import Item
from app.data.inventory.allocations import EventAllocation, LocationAllocation
from app.data.inventory.statuses import AllocationStatus, AllocationType

_sequence = count(1)


@pytest.fixture(scope='session')
def app():
    """Create Flask application for testing (in-memory SQLite)"""
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite://',
    })

    with app.app_context():
        yield app


@pytest.fixture(scope='function')
def db(app):
    """Fresh tables for every test"""
    _db.create_all()
    yield _db
    _db.session.remove()
    _db.drop_all()


@pytest.fixture
def make_user(db):
    def _make_user(username=None, **fields):
        n = next(_sequence)
        user = User(
            username=username or f'user{n}',
            email=fields.pop('email', f'user{n}@example.test'),
            **fields
        )
        user.set_password('password-for-tests')
        db.session.add(user)
        db.session.commit()
        return user
    return _make_user


@pytest.fixture
def actor(make_user):
    return make_user('operator')


@pytest.fixture
def make_location(db):
    def _make_location(name=None, **fields):
        location = Location(name=name or f'Location {next(_sequence)}', **fields)
        db.session.add(location)
        db.session.commit()
        return location
    return _make_location


@pytest.fixture
def storage(make_location):
    return make_location('Lager', is_default_storage=True, storage_priority=1)


@pytest.fixture
def make_event(db):
    def _make_event(name=None, **fields):
        event = Event(name=name or f'Event {next(_sequence)}', **fields)
        db.session.add(event)
        db.session.commit()
        return event
    return _make_event


@pytest.fixture
def make_item(db):
    def _make_item(quantity=1, name=None, **fields):
        item = Item(name=name or f'Item {next(_sequence)}', quantity=quantity, **fields)
        db.session.add(item)
        db.session.commit()
        return item
    return _make_item


@pytest.fixture
def add_location_allocation(db, actor):
    """Insert a ledger row directly, bypassing the managers"""
    def _add(item, location, quantity=1, status=AllocationStatus.ALLOCATED, **fields):
        allocation = LocationAllocation(
            item_id=item.id,
            location_id=location.id,
            quantity=quantity,
            status=status,
            allocation_type=fields.pop('allocation_type', AllocationType.GENERAL),
            allocated_by_id=actor.id,
            **fields
        )
        db.session.add(allocation)
        db.session.commit()
        return allocation
    return _add


@pytest.fixture
def add_event_allocation(db):
    """Insert a ledger row directly, bypassing the managers"""
    def _add(item, event, quantity_needed=1, quantity_allocated=0, status=AllocationStatus.REQUESTED, **fields):
        allocation = EventAllocation(
            item_id=item.id,
            event_id=event.id,
            quantity_needed=quantity_needed,
            quantity_allocated=quantity_allocated,
            status=status,
            **fields
        )
        db.session.add(allocation)
        db.session.commit()
        return allocation
    return _add
