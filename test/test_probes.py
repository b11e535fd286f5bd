import pytest

from chaoscontrol.client import ErrorResponse, InvalidResponsePayload
from chaoscontrol.common import *
from chaoscontrol.probes import parse_state
from chaoscontrol.probes.disk import get_disk_state
from chaoscontrol.probes.instance import get_instance_state
from chaoscontrol.probes.snapshot import get_snapshot_state
from test import FakeClient


@pytest.mark.asyncio
async def test_get_instance_state():
    client = FakeClient(bodies={
        ('instance', 'inst0'): {'name': 'inst0', 'run_state': 'running'}})
    assert await get_instance_state(client, 'p', 'inst0') \
        is InstanceState.RUNNING
    assert client.calls == [('instance_view', 'p', 'inst0')]


@pytest.mark.asyncio
async def test_get_disk_state_nested():
    client = FakeClient(bodies={
        ('disk', 'disk0'): {'name': 'disk0',
                            'state': {'state': 'attached',
                                      'instance': 'x'}}})
    assert await get_disk_state(client, 'p', 'disk0') is DiskState.ATTACHED


@pytest.mark.asyncio
async def test_missing_resource_is_none():
    client = FakeClient()
    assert await get_snapshot_state(client, 'p', 'snap0') is None
    assert await get_disk_state(client, 'p', 'disk0') is None
    assert await get_instance_state(client, 'p', 'inst0') is None


@pytest.mark.asyncio
async def test_other_errors_propagate():
    client = FakeClient(failures={
        'disk_view': ErrorResponse(500, message='boom')})
    with pytest.raises(ErrorResponse):
        await get_disk_state(client, 'p', 'disk0')


@pytest.mark.asyncio
async def test_unknown_state_is_invalid_payload():
    client = FakeClient(bodies={
        ('snapshot', 'snap0'): {'name': 'snap0', 'state': 'melting'}})
    with pytest.raises(InvalidResponsePayload):
        await get_snapshot_state(client, 'p', 'snap0')


def test_parse_state():
    assert parse_state(DiskState, {'state': 'import_ready'}, 'state') \
        is DiskState.IMPORT_READY

    with pytest.raises(InvalidResponsePayload):
        parse_state(InstanceState, {'name': 'inst0'}, 'run_state')

    with pytest.raises(InvalidResponsePayload):
        parse_state(InstanceState, None, 'run_state')
