import pytest

from chaoscontrol.antagonist import *
from chaoscontrol.client import (CommunicationError, ErrorResponse,
                                 InvalidRequest)
from chaoscontrol.common import *
from chaoscontrol.policy import Action
from test import FakeClient, FixedRng


def instance_antagonist(client, action=None):
    return Antagonist(InstanceParams('p', 'inst0'), client,
                      rng=FixedRng(action))


def snapshot_antagonist(client, action=None):
    return Antagonist(SnapshotParams('p', 'snapdisk0', 'snap'), client,
                      rng=FixedRng(action))


def test_kind_follows_params():
    client = FakeClient()
    assert Antagonist(InstanceParams('p', 'inst0'), client).kind \
        is ResourceKind.INSTANCE
    assert Antagonist(DiskParams('p', 'disk0'), client).kind \
        is ResourceKind.DISK
    assert Antagonist(SnapshotParams('p', 'snapdisk0', 'snap0'),
                      client).kind is ResourceKind.SNAPSHOT

    with pytest.raises(OtherError):
        Antagonist(('p', 'inst0'), client)


def test_invalid_names_rejected():
    with pytest.raises(InvalidRequest):
        Antagonist(DiskParams('p', 'Disk 0'), FakeClient())


@pytest.mark.asyncio
async def test_missing_resource_is_created():
    client = FakeClient()
    rng = FixedRng()
    antagonist = Antagonist(InstanceParams('p', 'inst0'), client, rng=rng)
    await antagonist.run_cycle()

    assert client.methods() == ['instance_view', 'instance_create']
    assert rng.draws == 0


@pytest.mark.asyncio
async def test_failed_instance_is_invalid_state():
    client = FakeClient(bodies={
        ('instance', 'inst0'): {'name': 'inst0', 'run_state': 'failed'}})
    antagonist = instance_antagonist(client)

    with pytest.raises(InvalidStateError) as excinfo:
        await antagonist.run_cycle()

    assert excinfo.value.state is InstanceState.FAILED
    assert "Failed" in str(excinfo.value)
    assert client.methods() == ['instance_view']


@pytest.mark.asyncio
async def test_selected_action_is_sent():
    client = FakeClient(bodies={
        ('instance', 'inst0'): {'name': 'inst0', 'run_state': 'running'}})
    await instance_antagonist(client, Action.STOP).run_cycle()
    assert client.calls == [('instance_view', 'p', 'inst0'),
                            ('instance_stop', 'p', 'inst0')]


@pytest.mark.asyncio
async def test_wait_sends_nothing():
    client = FakeClient(bodies={
        ('disk', 'disk0'): {'name': 'disk0', 'state': 'detached'}})
    antagonist = Antagonist(DiskParams('p', 'disk0'), client,
                            rng=FixedRng(Action.WAIT))
    await antagonist.run_cycle()
    assert client.methods() == ['disk_view']


@pytest.mark.asyncio
async def test_failed_action_is_api_error():
    failure = ErrorResponse(409, error_code='InvalidRequest',
                            message='instance is stopping')
    client = FakeClient(
        bodies={('instance', 'inst0'): {'run_state': 'stopping'}},
        failures={'instance_start': failure})

    with pytest.raises(ApiError) as excinfo:
        await instance_antagonist(client, Action.START).run_cycle()

    assert excinfo.value.error is failure


@pytest.mark.asyncio
async def test_failed_probe_is_api_error():
    failure = CommunicationError('connection reset')
    client = FakeClient(failures={'instance_view': failure})

    with pytest.raises(ApiError) as excinfo:
        await instance_antagonist(client).run_cycle()

    assert excinfo.value.error is failure
    assert client.methods() == ['instance_view']


@pytest.mark.asyncio
async def test_backing_disk_created_before_snapshot():
    client = FakeClient()
    await snapshot_antagonist(client).run_cycle()

    assert client.methods() == ['disk_view', 'disk_create', 'snapshot_view',
                                'snapshot_create']
    assert client.calls[1][2]['size'] == GIBIBYTE
    assert client.calls[3][2]['disk'] == 'snapdisk0'
    assert client.calls[3][2]['name'] == 'snap0'


@pytest.mark.asyncio
async def test_destroyed_snapshot_moves_to_next_name():
    client = FakeClient(bodies={
        ('disk', 'snapdisk0'): {'state': 'detached'},
        ('snapshot', 'snap0'): {'state': 'destroyed'},
        ('snapshot', 'snap1'): {'state': 'ready'},
    })
    antagonist = snapshot_antagonist(client, Action.DELETE)

    await antagonist.run_cycle()
    assert antagonist.snapshot_name_suffix == 1
    assert client.calls[-1] == ('snapshot_delete', 'p', 'snap1')

    await antagonist.run_cycle()
    assert antagonist.snapshot_name_suffix == 1
    assert ('snapshot_view', 'p', 'snap1') in client.calls


def test_next_action_only_bumps_on_destroyed():
    antagonist = snapshot_antagonist(FakeClient(), Action.WAIT)
    for state in (SnapshotState.CREATING, SnapshotState.READY):
        assert antagonist.next_action(state) is Action.WAIT
    assert antagonist.snapshot_name_suffix == 0

    antagonist.next_action(SnapshotState.DESTROYED)
    antagonist.next_action(SnapshotState.DESTROYED)
    assert antagonist.snapshot_name_suffix == 2
    assert antagonist.resource_name == 'snap2'
