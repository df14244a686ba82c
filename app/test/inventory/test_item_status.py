"""
Item location, installation and derived status
"""
from types import SimpleNamespace

import pytest

from app.buisness.inventory.errors import InsufficientQuantityError, InvalidQuantityError, NotFoundError
from app.buisness.inventory.item_status import (
    DerivationContext,
    DerivedItemState,
    ItemStatusManager,
    context_for,
    derive_item_state,
)
from app.buisness.inventory.managers import AllocationManager
from app.data.inventory.audit_entry import AuditEntry
from app.data.inventory.statuses import AuditAction, InstallationType, ItemStatus


class TestDeriveItemState:

    def test_installed_units_mean_in_use_at_installation(self):
        item = SimpleNamespace(status=ItemStatus.AVAILABLE)
        context = DerivationContext(
            requested_status=ItemStatus.AVAILABLE,
            installation_type=InstallationType.FIXED,
            installation_quantity=2,
            location_name='Lager',
            location_is_default_storage=True,
            installation_location_name='Main Hall',
        )

        assert derive_item_state(item, context) == DerivedItemState(ItemStatus.IN_USE, 'Main Hall')

    def test_installed_without_location_falls_back_to_storage_name(self):
        item = SimpleNamespace(status=ItemStatus.AVAILABLE)
        context = DerivationContext(
            requested_status=ItemStatus.AVAILABLE,
            installation_type=InstallationType.SEMI_PERMANENT,
            installation_quantity=1,
            location_name='Lager',
        )

        assert derive_item_state(item, context).location == 'Lager'

    def test_default_storage_means_available(self):
        item = SimpleNamespace(status=ItemStatus.IN_USE)
        context = DerivationContext(
            requested_status=ItemStatus.IN_USE,
            installation_type=InstallationType.PORTABLE,
            installation_quantity=0,
            location_name='Lager',
            location_is_default_storage=True,
        )

        assert derive_item_state(item, context).status == ItemStatus.AVAILABLE

    def test_installation_type_without_units_is_not_installed(self):
        item = SimpleNamespace(status=ItemStatus.AVAILABLE)
        context = DerivationContext(
            requested_status=ItemStatus.UNAVAILABLE,
            installation_type=InstallationType.FIXED,
            installation_quantity=0,
            location_name='Stage',
        )

        assert derive_item_state(item, context) == DerivedItemState(ItemStatus.UNAVAILABLE, 'Stage')

    @pytest.mark.parametrize('status', ItemStatus.PROTECTED)
    def test_protected_statuses_survive(self, status):
        item = SimpleNamespace(status=status)
        in_storage = DerivationContext(
            requested_status=status,
            installation_type=InstallationType.PORTABLE,
            installation_quantity=0,
            location_is_default_storage=True,
        )
        installed = DerivationContext(
            requested_status=status,
            installation_type=InstallationType.FIXED,
            installation_quantity=1,
        )

        assert derive_item_state(item, in_storage).status == status
        assert derive_item_state(item, installed).status == status


@pytest.fixture
def manager(db):
    return ItemStatusManager()


class TestSetLocation:

    def test_location_id_wins_over_free_text(self, manager, storage, make_item, actor):
        item = make_item(quantity=2, status=ItemStatus.IN_USE)

        updated = manager.set_location(item.id, location_id=storage.id, location_name='shelf 3', actor=actor.id)

        assert updated.location_id == storage.id
        assert updated.location == 'Lager'
        assert updated.status == ItemStatus.AVAILABLE

    def test_free_text_matching_a_location_is_linked(self, manager, make_location, make_item, actor):
        stage = make_location('Stage')
        item = make_item(quantity=1)

        updated = manager.set_location(item.id, location_name=' Stage ', actor=actor.id)

        assert updated.location_id == stage.id
        assert updated.location == 'Stage'

    def test_unknown_free_text_is_kept_without_reference(self, manager, make_item, actor):
        item = make_item(quantity=1)

        updated = manager.set_location(item.id, location_name='Van 2', actor=actor.id, status=ItemStatus.UNAVAILABLE)

        assert updated.location_id is None
        assert updated.location == 'Van 2'
        assert updated.status == ItemStatus.UNAVAILABLE

    def test_maintenance_is_not_cleared_by_storage(self, manager, storage, make_item, actor):
        item = make_item(quantity=1, status=ItemStatus.MAINTENANCE)

        updated = manager.set_location(item.id, location_id=storage.id, actor=actor.id)

        assert updated.status == ItemStatus.MAINTENANCE

    def test_audit_entry_is_written(self, manager, storage, make_location, make_item, actor):
        stage = make_location('Stage')
        item = make_item(quantity=1, location_id=stage.id, location='Stage')

        manager.set_location(item.id, location_id=storage.id, actor=actor.id)

        entry = AuditEntry.query.filter_by(item_id=item.id).one()
        assert entry.action_type == AuditAction.MOVED
        assert entry.previous_location_id == stage.id
        assert entry.new_location_id == storage.id
        assert entry.details == 'Location: Stage → Lager'

    def test_unknown_ids(self, manager, make_item, actor):
        item = make_item(quantity=1)

        with pytest.raises(NotFoundError):
            manager.set_location(999, location_name='Stage', actor=actor.id)
        with pytest.raises(NotFoundError):
            manager.set_location(item.id, location_id=999, actor=actor.id)

    def test_unknown_status(self, manager, make_item, actor):
        item = make_item(quantity=1)

        with pytest.raises(ValueError):
            manager.set_location(item.id, location_name='Stage', actor=actor.id, status='lost')


class TestSetInstallation:

    def test_installation_marks_item_in_use(self, manager, storage, make_location, make_item, actor):
        hall = make_location('Main Hall')
        item = make_item(quantity=4, location_id=storage.id, location='Lager')

        updated = manager.set_installation(
            item.id, InstallationType.FIXED, 2, installation_location_id=hall.id, actor=actor.id, notes='Rigging'
        )

        assert updated.status == ItemStatus.IN_USE
        assert updated.installation_location == 'Main Hall'
        assert updated.installation_date is not None
        assert ItemStatusManager.displayed_location(updated) == 'Main Hall'
        assert manager.calculator.get_availability(item.id).available_quantity == 2

        entry = AuditEntry.query.filter_by(item_id=item.id).one()
        assert entry.action_type == AuditAction.INSTALLED
        assert entry.new_quantity == 2
        assert 'Notes: Rigging' in entry.details

    def test_back_to_portable_clears_installation(self, manager, storage, make_location, make_item, actor):
        hall = make_location('Main Hall')
        item = make_item(quantity=4, location_id=storage.id, location='Lager')
        manager.set_installation(item.id, InstallationType.FIXED, 2, installation_location_id=hall.id, actor=actor.id)

        updated = manager.set_installation(item.id, InstallationType.PORTABLE, 3, actor=actor.id)

        assert updated.installation_quantity == 0
        assert updated.installation_location is None
        assert updated.status == ItemStatus.AVAILABLE
        assert ItemStatusManager.displayed_location(updated) == 'Lager'

    def test_moving_an_installed_item_keeps_showing_the_installation(
            self, manager, storage, make_location, make_item, actor):
        hall = make_location('Main Hall')
        stage = make_location('Stage')
        item = make_item(quantity=4, location_id=storage.id, location='Lager')
        manager.set_installation(item.id, InstallationType.FIXED, 4, installation_location_id=hall.id, actor=actor.id)

        moved = manager.set_location(item.id, location_id=stage.id, actor=actor.id)

        assert moved.location == 'Stage'
        assert moved.status == ItemStatus.IN_USE
        assert ItemStatusManager.displayed_location(moved) == 'Main Hall'
        assert derive_item_state(moved, context_for(moved)) == DerivedItemState(ItemStatus.IN_USE, 'Main Hall')

    def test_allocated_units_cannot_be_installed(self, manager, make_location, make_item, actor):
        item = make_item(quantity=5)
        AllocationManager().allocate(item.id, make_location().id, 4, actor=actor.id)

        with pytest.raises(InsufficientQuantityError):
            manager.set_installation(item.id, InstallationType.FIXED, 2, actor=actor.id)

        assert manager.calculator.get_availability(item.id).installation_quantity == 0

    def test_quantity_bounds(self, manager, make_item, actor):
        item = make_item(quantity=3)

        with pytest.raises(InvalidQuantityError):
            manager.set_installation(item.id, InstallationType.FIXED, -1, actor=actor.id)
        with pytest.raises(InvalidQuantityError):
            manager.set_installation(item.id, InstallationType.FIXED, 4, actor=actor.id)

    def test_unknown_installation_type(self, manager, make_item, actor):
        item = make_item(quantity=3)

        with pytest.raises(ValueError):
            manager.set_installation(item.id, 'glued', 1, actor=actor.id)
