import random
from collections import Counter

import pytest

from chaoscontrol.common import *
from chaoscontrol.policy import *
from test import FixedRng


def test_weight_tables_match_documented_weights():
    assert WEIGHT_TABLES[ResourceKind.INSTANCE][InstanceState.STOPPED] == (
        (Action.WAIT, Action.CREATE, Action.START, Action.DELETE),
        (25, 5, 40, 20))
    assert WEIGHT_TABLES[ResourceKind.INSTANCE][InstanceState.CREATING] == (
        (Action.WAIT, Action.CREATE, Action.START, Action.STOP,
         Action.DELETE),
        (60, 10, 10, 10, 10))
    assert WEIGHT_TABLES[ResourceKind.DISK][DiskState.DETACHED] == (
        (Action.WAIT, Action.CREATE, Action.DELETE), (35, 30, 35))
    assert WEIGHT_TABLES[ResourceKind.SNAPSHOT][SnapshotState.DESTROYED] == \
        WEIGHT_TABLES[ResourceKind.SNAPSHOT][SnapshotState.READY]


def test_legal_states():
    assert set(legal_states(ResourceKind.INSTANCE)) == {
        InstanceState.CREATING, InstanceState.STARTING,
        InstanceState.RUNNING, InstanceState.REBOOTING,
        InstanceState.STOPPING, InstanceState.STOPPED}
    assert set(legal_states(ResourceKind.DISK)) == {
        DiskState.CREATING, DiskState.DETACHED}
    assert set(legal_states(ResourceKind.SNAPSHOT)) == {
        SnapshotState.CREATING, SnapshotState.READY,
        SnapshotState.DESTROYED}


def test_legal_states_never_bail():
    rng = random.Random(42)
    for kind in ResourceKind:
        actions = set()
        for state in legal_states(kind):
            options = WEIGHT_TABLES[kind][state][0]
            for _ in range(200):
                action = select_action(kind, state, rng)
                assert isinstance(action, Action)
                assert action in options
                actions.add(action)
        assert Action.WAIT in actions


def test_invalid_states_bail():
    for kind in ResourceKind:
        states = invalid_states(kind)
        assert states
        for state in states:
            assert select_action(kind, state) == Bail(InvalidState(state))

    assert InstanceState.FAILED in invalid_states(ResourceKind.INSTANCE)
    assert DiskState.ATTACHED in invalid_states(ResourceKind.DISK)
    assert SnapshotState.FAULTED in invalid_states(ResourceKind.SNAPSHOT)


def test_bail_does_not_draw():
    rng = FixedRng()
    select_action(ResourceKind.INSTANCE, InstanceState.FAILED, rng)
    assert rng.draws == 0


def test_select_action_state_kind_mismatch():
    with pytest.raises(TypeError):
        select_action(ResourceKind.DISK, InstanceState.RUNNING)


def test_detached_disk_distribution():
    rng = random.Random(1234)
    draws = 10000
    counts = Counter(select_action(ResourceKind.DISK, DiskState.DETACHED, rng)
                     for _ in range(draws))

    assert set(counts) <= {Action.WAIT, Action.CREATE, Action.DELETE}
    assert abs(counts[Action.WAIT] - 3500) < 300
    assert abs(counts[Action.CREATE] - 3000) < 300
    assert abs(counts[Action.DELETE] - 3500) < 300


def test_stopped_instance_never_stops():
    rng = random.Random(7)
    for _ in range(1000):
        action = select_action(ResourceKind.INSTANCE, InstanceState.STOPPED,
                               rng)
        assert action is not Action.STOP


def test_weighted_choice_zero_weight_never_drawn():
    rng = random.Random(3)
    for _ in range(500):
        assert weighted_choice(['a', 'b'], [0, 1], rng) == 'b'


def test_validate_weights():
    assert validate_weights(['a', 'b'], [1, 2]) == 3

    with pytest.raises(WeightTableError):
        validate_weights(['a', 'b'], [1])

    with pytest.raises(WeightTableError):
        validate_weights([], [])

    with pytest.raises(WeightTableError):
        validate_weights(['a'], [-1])

    with pytest.raises(WeightTableError):
        validate_weights(['a', 'b'], [0, 0])

    with pytest.raises(WeightTableError):
        validate_weights(['a'], [0.5])


def test_creating_disk_distribution():
    rng = random.Random(99)
    counts = Counter(select_action(ResourceKind.DISK, DiskState.CREATING, rng)
                     for _ in range(1000))

    assert set(counts) <= {Action.WAIT, Action.CREATE, Action.DELETE}
    assert abs(counts[Action.WAIT] - 700) < 60
    assert abs(counts[Action.CREATE] - 100) < 40
    assert abs(counts[Action.DELETE] - 200) < 50


@pytest.mark.parametrize('kind,state', [
    (kind, state) for kind in ResourceKind for state in legal_states(kind)])
def test_draws_follow_weights(kind, state):
    actions, weights = WEIGHT_TABLES[kind][state]
    total = sum(weights)
    draws = 5000
    rng = random.Random(2024)
    counts = Counter(select_action(kind, state, rng) for _ in range(draws))

    assert set(counts) <= set(actions)
    for action, weight in zip(actions, weights):
        expected = draws * weight / total
        # Well over four standard deviations for every table entry.
        assert abs(counts[action] - expected) < 0.04 * draws
