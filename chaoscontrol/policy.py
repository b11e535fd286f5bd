"""
Weighted-random action selection.

For every resource kind, each lifecycle state the harness considers legal maps
to a small table of (action, weight) pairs. A state without a table is one the
control plane should never leave a resource in while antagonists are running
(failed, mid-migration, faulted, ...); for those select_action returns a Bail
carrying the state instead of drawing.
"""
import random
from collections import namedtuple
from enum import Enum

from chaoscontrol.common import (DiskState, InstanceState, ResourceKind,
                                 SnapshotState, STATE_ENUMS)

from typing import Dict, Sequence, Tuple, Union


class Action(Enum):
    """
    Everything an antagonist can decide to do in a cycle.
    """
    WAIT = "wait"
    CREATE = "create"
    START = "start"
    STOP = "stop"
    DELETE = "delete"


# The resource was observed in a state the policy has no table for.
InvalidState = namedtuple('InvalidState', ['state'])

# A non-random outcome: the cycle must fail with reason.
Bail = namedtuple('Bail', ['reason'])


class WeightTableError(ValueError):
    """A weight table that cannot be drawn from. Always a programming error."""
    pass


def validate_weights(options: Sequence, weights: Sequence[int]) -> int:
    """
    Check that weights can drive a weighted draw over options.

    :return: int - the total weight
    :raises WeightTableError: if the lengths differ, a weight is not a
        non-negative int, or the total is zero
    """
    if len(options) != len(weights) or not options:
        raise WeightTableError(
            "{} options but {} weights".format(len(options), len(weights)))
    for weight in weights:
        if isinstance(weight, bool) or not isinstance(weight, int) \
                or weight < 0:
            raise WeightTableError("invalid weight {!r}".format(weight))
    total = sum(weights)
    if total <= 0:
        raise WeightTableError("weights {} sum to zero".format(weights))
    return total


def weighted_choice(options: Sequence, weights: Sequence[int], rng=random):
    """
    Pick one of options with probability proportional to its weight.

    :param options: The things to choose from.
    :type options: Sequence
    :param weights: One non-negative integer weight per option.
    :type weights: Sequence[int]
    :param rng: Source of randomness; anything with a choices method.
        Optional. (Default: the random module)
    :return: One element of options
    """
    validate_weights(options, weights)
    return rng.choices(options, weights=weights, k=1)[0]


_INSTANCE_WEIGHTS = [
    # If the instance is still starting up, favor politely waiting for it to
    # finish.
    ((InstanceState.CREATING, InstanceState.STARTING),
     ((Action.WAIT, 60), (Action.CREATE, 10), (Action.START, 10),
      (Action.STOP, 10), (Action.DELETE, 10))),
    # If the instance is running or winding down, favor asking to start or
    # stop it again.
    ((InstanceState.RUNNING, InstanceState.REBOOTING, InstanceState.STOPPING),
     ((Action.WAIT, 35), (Action.CREATE, 5), (Action.START, 25),
      (Action.STOP, 25), (Action.DELETE, 10))),
    # If the instance is stopped, favor starting it again, with a modest
    # chance of destroying it.
    ((InstanceState.STOPPED,),
     ((Action.WAIT, 25), (Action.CREATE, 5), (Action.START, 40),
      (Action.DELETE, 20))),
]

_DISK_WEIGHTS = [
    # Mostly wait for a new disk, but lean towards deleting it over
    # re-creating it.
    ((DiskState.CREATING,),
     ((Action.WAIT, 70), (Action.CREATE, 10), (Action.DELETE, 20))),
    ((DiskState.DETACHED,),
     ((Action.WAIT, 35), (Action.CREATE, 30), (Action.DELETE, 35))),
]

_SNAPSHOT_WEIGHTS = [
    ((SnapshotState.CREATING,),
     ((Action.WAIT, 70), (Action.CREATE, 10), (Action.DELETE, 20))),
    # A destroyed snapshot is treated like a ready one; the antagonist moves
    # on to a fresh name before drawing.
    ((SnapshotState.READY, SnapshotState.DESTROYED),
     ((Action.WAIT, 35), (Action.CREATE, 30), (Action.DELETE, 35))),
]


def _expand(buckets) -> Dict[Enum, Tuple[Tuple[Action, ...], Tuple[int, ...]]]:
    table = {}
    for states, pairs in buckets:
        actions = tuple(action for action, _ in pairs)
        weights = tuple(weight for _, weight in pairs)
        validate_weights(actions, weights)
        for state in states:
            table[state] = (actions, weights)
    return table


WEIGHT_TABLES = {
    ResourceKind.INSTANCE: _expand(_INSTANCE_WEIGHTS),
    ResourceKind.DISK: _expand(_DISK_WEIGHTS),
    ResourceKind.SNAPSHOT: _expand(_SNAPSHOT_WEIGHTS),
}


def legal_states(kind: ResourceKind):
    """The states of kind for which select_action draws an action."""
    return list(WEIGHT_TABLES[kind].keys())


def invalid_states(kind: ResourceKind):
    """The states of kind for which select_action bails."""
    table = WEIGHT_TABLES[kind]
    return [state for state in STATE_ENUMS[kind] if state not in table]


def select_action(kind: ResourceKind, state: Enum,
                  rng=random) -> Union[Action, Bail]:
    """
    Select the next action for a resource of kind observed in state.

    :param kind: The kind of resource.
        Required.
    :type kind: ResourceKind
    :param state: The observed state; a member of kind's state enum.
        Required.
    :type state: Enum
    :param rng: Source of randomness.
        Optional. (Default: the random module)
    :return: Union[Action, Bail] - a Bail wrapping InvalidState(state) when
        the state has no weight table
    :raises TypeError: if state does not belong to kind
    """
    if not isinstance(state, STATE_ENUMS[kind]):
        raise TypeError("{!r} is not a {} state".format(state, kind.value))

    entry = WEIGHT_TABLES[kind].get(state)
    if entry is None:
        return Bail(InvalidState(state))

    actions, weights = entry
    return weighted_choice(actions, weights, rng)
