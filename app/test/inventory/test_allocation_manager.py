"""
Location ledger operations: allocate, return, move
"""
from datetime import datetime

import pytest
from sqlalchemy.exc import SQLAlchemyError

from app.buisness.inventory.audit.audit_log import AuditLog
from app.buisness.inventory.availability_calculator import AvailabilityCalculator
from app.buisness.inventory.errors import (
    InsufficientQuantityError,
    InvalidQuantityError,
    InvalidStatusError,
    NotFoundError,
)
from app.buisness.inventory.managers import AllocationManager
from app.data.inventory.allocations import LocationAllocation
from app.data.inventory.audit_entry import AuditEntry
from app.data.inventory.statuses import AllocationKind, AllocationStatus as S, AuditAction, InstallationType


@pytest.fixture
def manager(db):
    return AllocationManager()


@pytest.fixture
def calculator(db):
    return AvailabilityCalculator()


def available(calculator, item):
    return calculator.get_availability(item.id).available_quantity


def audit_actions(item):
    return [e.action_type for e in AuditEntry.query.filter_by(item_id=item.id).order_by(AuditEntry.id).all()]


class TestAllocate:

    def test_allocation_is_visible_immediately(self, manager, calculator, make_item, make_location, actor):
        item = make_item(quantity=5)

        allocation = manager.allocate(item.id, make_location().id, 3, actor=actor.id)

        assert allocation.status == S.ALLOCATED
        assert allocation.allocated_by_id == actor.id
        assert available(calculator, item) == 2

    def test_allocating_exactly_available_succeeds(self, manager, calculator, make_item, make_location, actor):
        item = make_item(quantity=10, installation_type=InstallationType.FIXED, installation_quantity=4)
        location = make_location()

        manager.allocate(item.id, location.id, 6, actor=actor.id)

        assert available(calculator, item) == 0

    def test_allocating_one_more_than_available_fails(self, manager, calculator, make_item, make_location, actor):
        item = make_item(quantity=10, installation_type=InstallationType.FIXED, installation_quantity=4)
        location = make_location()

        with pytest.raises(InsufficientQuantityError) as exc_info:
            manager.allocate(item.id, location.id, 7, actor=actor.id)

        assert exc_info.value.available == 6
        assert exc_info.value.requested == 7
        assert LocationAllocation.query.count() == 0
        assert AuditEntry.query.count() == 0
        assert available(calculator, item) == 6

    def test_event_ledger_units_are_respected(self, manager, make_item, make_location, make_event,
                                              add_event_allocation, actor):
        item = make_item(quantity=4)
        add_event_allocation(item, make_event(), quantity_needed=3, quantity_allocated=3, status=S.CHECKED_OUT)

        with pytest.raises(InsufficientQuantityError):
            manager.allocate(item.id, make_location().id, 2, actor=actor.id)

    def test_optional_fields_are_stored(self, manager, make_item, make_location, make_event, actor):
        item = make_item(quantity=2)
        event = make_event()
        due = datetime(2026, 5, 1, 12, 0)

        allocation = manager.allocate(
            item.id, make_location().id, 1, 'event', actor=actor.id,
            notes='For the gala', expected_return_date=due, event_id=event.id,
        )

        assert allocation.allocation_type == 'event'
        assert allocation.event_id == event.id
        assert allocation.expected_return_date == due
        assert allocation.notes == 'For the gala'

    @pytest.mark.parametrize('quantity', [0, -1, 1.5, '2', True])
    def test_invalid_quantity(self, manager, make_item, make_location, actor, quantity):
        item = make_item(quantity=5)

        with pytest.raises(InvalidQuantityError):
            manager.allocate(item.id, make_location().id, quantity, actor=actor.id)

    def test_unknown_item_location_or_event(self, manager, make_item, make_location, actor):
        item = make_item(quantity=5)
        location = make_location()

        with pytest.raises(NotFoundError):
            manager.allocate(999, location.id, 1, actor=actor.id)
        with pytest.raises(NotFoundError):
            manager.allocate(item.id, 999, 1, actor=actor.id)
        with pytest.raises(NotFoundError):
            manager.allocate(item.id, location.id, 1, actor=actor.id, event_id=999)

    def test_actor_is_required_outside_requests(self, manager, make_item, make_location):
        item = make_item(quantity=5)

        with pytest.raises(ValueError):
            manager.allocate(item.id, make_location().id, 1)

    def test_audit_entry_is_written(self, manager, make_item, make_location, actor):
        item = make_item(quantity=5)
        location = make_location('Studio')

        allocation = manager.allocate(item.id, location.id, 2, actor=actor)

        entry = AuditEntry.query.filter_by(item_id=item.id).one()
        assert entry.action_type == AuditAction.ALLOCATED
        assert entry.allocation_kind == AllocationKind.LOCATION
        assert entry.allocation_id == allocation.id
        assert entry.user_id == actor.id
        assert entry.new_location_id == location.id
        assert entry.new_quantity == 2
        assert 'Studio' in entry.details

    def test_audit_failure_does_not_undo_the_allocation(self, manager, calculator, make_item, make_location,
                                                         actor, monkeypatch):
        def broken_entry(**fields):
            raise SQLAlchemyError("audit table unavailable")

        monkeypatch.setattr(AuditLog, '_build_entry', staticmethod(broken_entry))
        item = make_item(quantity=5)

        allocation = manager.allocate(item.id, make_location().id, 2, actor=actor.id)

        assert LocationAllocation.query.filter_by(id=allocation.id).first() is not None
        assert AuditEntry.query.count() == 0
        assert available(calculator, item) == 3


class TestReturn:

    def test_return_frees_units_and_stamps_actor(self, manager, calculator, make_item, make_location, actor):
        item = make_item(quantity=5)
        allocation = manager.allocate(item.id, make_location().id, 3, actor=actor.id)

        returned = manager.return_allocation(allocation.id, actor=actor.id, notes='All cables present')

        assert returned.status == S.RETURNED
        assert returned.returned_by_id == actor.id
        assert returned.return_date is not None
        assert returned.notes.endswith('Returned: All cables present')
        assert available(calculator, item) == 5

    def test_second_return_is_a_no_op(self, manager, calculator, make_item, make_location, actor):
        item = make_item(quantity=5)
        allocation = manager.allocate(item.id, make_location().id, 3, actor=actor.id)
        manager.return_allocation(allocation.id, actor=actor.id)
        first_return_date = LocationAllocation.query.filter_by(id=allocation.id).first().return_date

        again = manager.return_allocation(allocation.id, actor=actor.id, notes='twice')

        assert again.status == S.RETURNED
        assert again.return_date == first_return_date
        assert 'twice' not in (again.notes or '')
        assert available(calculator, item) == 5
        assert audit_actions(item) == [AuditAction.ALLOCATED, AuditAction.RETURNED]

    def test_round_trip_restores_baseline(self, manager, calculator, make_item, make_location, actor):
        item = make_item(quantity=4)
        location = make_location()
        baseline = available(calculator, item)

        first = manager.allocate(item.id, location.id, 4, actor=actor.id)
        manager.return_allocation(first.id, actor=actor.id)
        second = manager.allocate(item.id, location.id, 4, actor=actor.id)
        manager.return_allocation(second.id, actor=actor.id)

        assert available(calculator, item) == baseline

    def test_unknown_allocation(self, manager, actor):
        with pytest.raises(NotFoundError):
            manager.return_allocation(999, actor=actor.id)


class TestMove:

    def test_move_changes_location_only(self, manager, calculator, make_item, make_location, actor):
        item = make_item(quantity=5)
        old = make_location('Studio')
        new = make_location('Stage')
        allocation = manager.allocate(item.id, old.id, 2, actor=actor.id)

        moved = manager.move(allocation.id, new.id, actor=actor.id, notes='Show setup')

        assert moved.location_id == new.id
        assert moved.quantity == 2
        assert moved.status == S.ALLOCATED
        assert available(calculator, item) == 3

        entry = AuditEntry.query.filter_by(action_type=AuditAction.MOVED).one()
        assert entry.previous_location_id == old.id
        assert entry.new_location_id == new.id
        assert 'Studio' in entry.details and 'Stage' in entry.details

    def test_returned_allocation_cannot_move(self, manager, make_item, make_location, actor):
        item = make_item(quantity=5)
        allocation = manager.allocate(item.id, make_location().id, 2, actor=actor.id)
        manager.return_allocation(allocation.id, actor=actor.id)

        with pytest.raises(InvalidStatusError):
            manager.move(allocation.id, make_location().id, actor=actor.id)

    def test_unknown_target_location(self, manager, make_item, make_location, actor):
        item = make_item(quantity=5)
        allocation = manager.allocate(item.id, make_location().id, 2, actor=actor.id)

        with pytest.raises(NotFoundError):
            manager.move(allocation.id, 999, actor=actor.id)


def test_item_allocations_cover_both_ledgers(manager, make_item, make_location, make_event,
                                             add_event_allocation, actor):
    item = make_item(quantity=5)
    location_allocation = manager.allocate(item.id, make_location().id, 1, actor=actor.id)
    add_event_allocation(item, make_event(), quantity_needed=2, quantity_allocated=2, status=S.ALLOCATED)
    returned = manager.allocate(item.id, make_location().id, 1, actor=actor.id)
    manager.return_allocation(returned.id, actor=actor.id)

    records = manager.get_item_allocations(item.id)

    assert sorted(r.kind for r in records) == [AllocationKind.EVENT, AllocationKind.LOCATION]
    assert location_allocation.id in [r.id for r in records if r.kind == AllocationKind.LOCATION]
