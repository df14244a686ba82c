"""
Event allocation workflow
"""
import pytest

from app.buisness.inventory.errors import IllegalTransitionError
from app.buisness.inventory.state_machine import EventAllocationStateMachine as SM
from app.data.inventory.statuses import AllocationStatus as S


def test_requested_only_goes_to_allocated_or_cancelled():
    assert SM.get_allowed_transitions(S.REQUESTED) == {S.ALLOCATED, S.CANCELLED}
    assert not SM.can_transition(S.REQUESTED, S.RETURNED)
    with pytest.raises(IllegalTransitionError):
        SM.validate_transition(S.REQUESTED, S.RETURNED)


@pytest.mark.parametrize('from_status, to_status', [
    (S.REQUESTED, S.ALLOCATED),
    (S.ALLOCATED, S.CHECKED_OUT),
    (S.CHECKED_OUT, S.IN_USE),
    (S.IN_USE, S.RETURNED),
    (S.CHECKED_OUT, S.RETURNED),
    (S.RETURNED, S.REQUESTED),
    (S.CANCELLED, S.REQUESTED),
])
def test_workflow_edges(from_status, to_status):
    assert SM.can_transition(from_status, to_status)
    SM.validate_transition(from_status, to_status)


@pytest.mark.parametrize('from_status, to_status', [
    (S.ALLOCATED, S.RETURNED),
    (S.ALLOCATED, S.IN_USE),
    (S.IN_USE, S.CHECKED_OUT),
    (S.RETURNED, S.ALLOCATED),
    (S.CHECKED_OUT, S.CANCELLED),
])
def test_rejected_edges(from_status, to_status):
    assert not SM.can_transition(from_status, to_status)


def test_same_status_is_allowed():
    assert SM.can_transition(S.ALLOCATED, S.ALLOCATED)


def test_terminal_states():
    assert SM.INITIAL_STATE == S.REQUESTED
    assert SM.is_terminal(S.RETURNED)
    assert SM.is_terminal(S.CANCELLED)
    assert not SM.is_terminal(S.IN_USE)


def test_re_request_edges_are_not_in_place_transitions():
    assert SM.is_re_request(S.CANCELLED, S.REQUESTED)
    assert SM.is_re_request(S.RETURNED, S.REQUESTED)
    assert not SM.is_re_request(S.ALLOCATED, S.REQUESTED)
    assert SM.get_in_place_transitions(S.RETURNED) == set()
    assert SM.get_in_place_transitions(S.CHECKED_OUT) == {S.IN_USE, S.RETURNED}
