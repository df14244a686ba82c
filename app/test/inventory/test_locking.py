"""
Per-item locks and concurrent allocations
"""
import threading

import pytest

from app import create_app
from app import db as _db
from app.buisness.inventory.errors import InsufficientQuantityError
from app.buisness.inventory.locking import ItemLockRegistry
from app.buisness.inventory.managers import AllocationManager
from app.data.core.item_info.item import Item
from app.data.core.location import Location
from app.data.core.user_info.user import User
from app.data.inventory.allocations import LocationAllocation
from app.data.inventory.audit_entry import AuditEntry
from app.data.inventory.statuses import AuditAction


class TestItemLockRegistry:

    def test_hold_takes_the_item_lock(self):
        registry = ItemLockRegistry()

        with registry.hold(7):
            assert registry.lock_for(7).locked()
            assert not registry.lock_for(7).acquire(blocking=False)

        assert not registry.lock_for(7).locked()

    def test_item_ids_share_a_fixed_pool(self):
        registry = ItemLockRegistry(num_locks=4)

        for item_id in range(1, 1000):
            with registry.hold(item_id):
                pass

        assert len(registry) == 4
        assert registry.lock_for(1) is registry.lock_for(5)
        assert registry.lock_for(1) is not registry.lock_for(2)

    def test_pool_needs_at_least_one_lock(self):
        with pytest.raises(ValueError):
            ItemLockRegistry(num_locks=0)


class RecordingLocks(ItemLockRegistry):

    def __init__(self):
        super().__init__()
        self.held = []

    def hold(self, item_id):
        self.held.append(item_id)
        return super().hold(item_id)


def test_return_checks_and_writes_under_the_item_lock(db, make_item, make_location, actor, monkeypatch):
    manager = AllocationManager()
    item = make_item(quantity=3)
    allocation = manager.allocate(item.id, make_location().id, 2, actor=actor.id)
    locks = RecordingLocks()
    monkeypatch.setattr('app.buisness.inventory.managers.allocation_manager.item_locks', locks)

    manager.return_allocation(allocation.id, actor=actor.id)
    manager.return_allocation(allocation.id, actor=actor.id)

    assert locks.held == [item.id, item.id]
    returns = AuditEntry.query.filter_by(item_id=item.id, action_type=AuditAction.RETURNED).count()
    assert returns == 1


@pytest.fixture
def file_app(tmp_path):
    """App on a SQLite file, so every thread gets its own connection"""
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': f"sqlite:///{tmp_path / 'inventory.db'}",
    })
    with app.app_context():
        _db.create_all()
    yield app
    with app.app_context():
        _db.session.remove()
        _db.engine.dispose()


def seed_last_unit(app):
    with app.app_context():
        user = User(username='racer', email='racer@example.test')
        user.set_password('password-for-tests')
        item = Item(name='Fog machine', quantity=1)
        location = Location(name='Stage')
        _db.session.add_all([user, item, location])
        _db.session.commit()
        return user.id, item.id, location.id


def run_together(app, target, threads=2):
    """Start target in several threads at once; collect 'ok' or the exception type"""
    barrier = threading.Barrier(threads)
    outcomes = []
    outcomes_lock = threading.Lock()

    def worker():
        with app.app_context():
            barrier.wait()
            try:
                target()
                outcome = 'ok'
            except Exception as e:
                outcome = type(e)
            with outcomes_lock:
                outcomes.append(outcome)

    workers = [threading.Thread(target=worker) for _ in range(threads)]
    for thread in workers:
        thread.start()
    for thread in workers:
        thread.join(timeout=30)
    return outcomes


def test_two_threads_race_for_the_last_unit(file_app):
    user_id, item_id, location_id = seed_last_unit(file_app)

    outcomes = run_together(
        file_app, lambda: AllocationManager().allocate(item_id, location_id, 1, actor=user_id)
    )

    assert len(outcomes) == 2
    assert outcomes.count('ok') == 1
    assert outcomes.count(InsufficientQuantityError) == 1
    with file_app.app_context():
        assert LocationAllocation.query.filter_by(item_id=item_id).count() == 1
        assert AuditEntry.query.filter_by(item_id=item_id, action_type=AuditAction.ALLOCATED).count() == 1
