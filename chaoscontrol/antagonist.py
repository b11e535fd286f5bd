"""
Antagonists: the observe, decide, act logic for one resource.

An Antagonist is a tagged variant. Its kind is derived from the parameters it
is built with (InstanceParams, DiskParams or SnapshotParams), and run_cycle
looks up everything kind-specific (how to probe, how to prepare, which call
implements which action) in a single table keyed by kind.

A cycle never retries and never hides a failure. Errors leave run_cycle as
AntagonistError subclasses:

- ApiError wraps the ControlPlaneError of a failed call.
- OtherError covers everything else, most notably InvalidStateError when the
  resource is in a state the policy does not allow.
"""
import random
from collections import namedtuple

from chaoscontrol.actions.disk import create_disk, delete_disk
from chaoscontrol.actions.instance import (create_instance, delete_instance,
                                           start_instance, stop_instance)
from chaoscontrol.actions.snapshot import (create_snapshot, delete_snapshot,
                                           ensure_backing_disk)
from chaoscontrol.client import (ControlPlaneClient, ControlPlaneError,
                                 validate_name)
from chaoscontrol.common import (DEFAULT_CHAOS_MAX_JITTER_MS, ResourceKind,
                                 SnapshotState)
from chaoscontrol.helpers import sleep_random_ms
from chaoscontrol.policy import Action, Bail, select_action
from chaoscontrol.probes.disk import get_disk_state
from chaoscontrol.probes.instance import get_instance_state
from chaoscontrol.probes.snapshot import get_snapshot_state
from logzero import logger


class AntagonistError(Exception):
    """Base class for everything a cycle can fail with."""
    pass


class ApiError(AntagonistError):
    """A control-plane call failed."""

    def __init__(self, error: ControlPlaneError):
        self.error = error
        super().__init__("api error: {}".format(error))


class OtherError(AntagonistError):
    """A failure that did not come from the control plane."""
    pass


class InvalidStateError(OtherError):
    """The resource was observed in a state the policy does not allow."""

    def __init__(self, kind: ResourceKind, name: str, state):
        self.kind = kind
        self.name = name
        self.state = state
        super().__init__("{} {} unexpectedly in state {}".format(
            kind.value, name, state.name.title()))


InstanceParams = namedtuple('InstanceParams', ['project', 'instance_name'])
DiskParams = namedtuple('DiskParams', ['project', 'disk_name'])
SnapshotParams = namedtuple('SnapshotParams',
                            ['project', 'disk_name', 'snapshot_name'])

_PARAMS_KINDS = {
    InstanceParams: ResourceKind.INSTANCE,
    DiskParams: ResourceKind.DISK,
    SnapshotParams: ResourceKind.SNAPSHOT,
}

# prepare: optional coroutine run before every probe
# probe: coroutine returning the observed state (or None)
# actions: the coroutine implementing each non-WAIT action
KindOperations = namedtuple('KindOperations', ['prepare', 'probe', 'actions'])


def _instance_probe(a):
    return get_instance_state(a.client, a.params.project, a.params.instance_name)


def _disk_probe(a):
    return get_disk_state(a.client, a.params.project, a.params.disk_name)


def _snapshot_prepare(a):
    return ensure_backing_disk(a.client, a.params.project, a.params.disk_name)


def _snapshot_probe(a):
    return get_snapshot_state(a.client, a.params.project, a.resource_name)


_OPERATIONS = {
    ResourceKind.INSTANCE: KindOperations(
        prepare=None,
        probe=_instance_probe,
        actions={
            Action.CREATE: lambda a: create_instance(
                a.client, a.params.project, a.params.instance_name),
            Action.START: lambda a: start_instance(
                a.client, a.params.project, a.params.instance_name),
            Action.STOP: lambda a: stop_instance(
                a.client, a.params.project, a.params.instance_name),
            Action.DELETE: lambda a: delete_instance(
                a.client, a.params.project, a.params.instance_name),
        }),
    ResourceKind.DISK: KindOperations(
        prepare=None,
        probe=_disk_probe,
        actions={
            Action.CREATE: lambda a: create_disk(
                a.client, a.params.project, a.params.disk_name),
            Action.DELETE: lambda a: delete_disk(
                a.client, a.params.project, a.params.disk_name),
        }),
    ResourceKind.SNAPSHOT: KindOperations(
        prepare=_snapshot_prepare,
        probe=_snapshot_probe,
        actions={
            Action.CREATE: lambda a: create_snapshot(
                a.client, a.params.project, a.resource_name,
                a.params.disk_name),
            Action.DELETE: lambda a: delete_snapshot(
                a.client, a.params.project, a.resource_name),
        }),
}


def kind_of(params) -> ResourceKind:
    try:
        return _PARAMS_KINDS[type(params)]
    except KeyError:
        raise OtherError("unknown antagonist parameters {!r}".format(params))


class Antagonist(object):
    """
    Drives one resource through random lifecycle transitions.

    :param params: InstanceParams, DiskParams or SnapshotParams. Fixes the
        antagonist's kind and the names it acts on for its whole life.
    :param client: The control-plane client.
    :param max_jitter_ms: Upper bound of the random naps taken before and
        after each action.
    :param rng: Source of randomness for naps and action draws.
    """

    def __init__(self, params, client: ControlPlaneClient,
                 max_jitter_ms: int = DEFAULT_CHAOS_MAX_JITTER_MS,
                 rng=random):
        self.kind = kind_of(params)
        for field, value in params._asdict().items():
            validate_name(value, field.replace('_', ' '))
        self.params = params
        self.client = client
        self.max_jitter_ms = max_jitter_ms
        self.rng = rng
        # Snapshot names get a numeric suffix that moves on every time the
        # current snapshot is seen destroyed, so a create never collides with
        # a snapshot the control plane is still tearing down.
        self.snapshot_name_suffix = 0

    @property
    def resource_name(self) -> str:
        if self.kind is ResourceKind.INSTANCE:
            return self.params.instance_name
        if self.kind is ResourceKind.DISK:
            return self.params.disk_name
        return "{}{}".format(self.params.snapshot_name,
                             self.snapshot_name_suffix)

    def __repr__(self):
        return "<Antagonist {} {}>".format(self.kind.value,
                                           self.resource_name)

    def next_action(self, state):
        """
        Select the action to take given the observed state.

        :return: Union[Action, Bail]
        """
        if self.kind is ResourceKind.SNAPSHOT \
                and state is SnapshotState.DESTROYED:
            self.snapshot_name_suffix += 1
            logger.debug("snapshot destroyed, moving on to %s",
                         self.resource_name)
        return select_action(self.kind, state, self.rng)

    async def run_cycle(self) -> None:
        """
        Run one observe, decide, act cycle.

        :raises ApiError: if a control-plane call failed
        :raises InvalidStateError: if the resource is in a state the policy
            does not allow
        :raises OtherError: for any other local failure
        """
        operations = _OPERATIONS[self.kind]
        try:
            if operations.prepare is not None:
                await operations.prepare(self)

            logger.debug("querying %s %s state", self.kind.value,
                         self.resource_name)
            state = await operations.probe(self)
            if state is None:
                logger.info("%s %s doesn't exist, will try to create it",
                            self.kind.value, self.resource_name)
                await operations.actions[Action.CREATE](self)
                return
            logger.debug("got %s %s state %s", self.kind.value,
                         self.resource_name, state.value)
        except ControlPlaneError as e:
            raise ApiError(e) from e

        await sleep_random_ms(self.max_jitter_ms, self.rng)

        action = self.next_action(state)
        logger.debug("selected action %s for %s %s", action, self.kind.value,
                     self.resource_name)
        if isinstance(action, Bail):
            raise InvalidStateError(self.kind, self.resource_name,
                                    action.reason.state)

        failure = None
        if action is not Action.WAIT:
            handler = operations.actions.get(action)
            if handler is None:
                raise OtherError("{} antagonist cannot {}".format(
                    self.kind.value, action.value))
            try:
                await handler(self)
            except ControlPlaneError as e:
                failure = e

        await sleep_random_ms(self.max_jitter_ms, self.rng)

        if failure is not None:
            raise ApiError(failure) from failure
