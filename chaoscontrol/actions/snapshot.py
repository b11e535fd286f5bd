from chaoscontrol.actions import call_and_log
from chaoscontrol.actions.disk import create_disk
from chaoscontrol.client import ControlPlaneClient
from chaoscontrol.probes.disk import get_disk_state
from logzero import logger

from typing import Any, Dict


def default_snapshot_create(snapshot: str, disk: str) -> Dict[str, Any]:
    """
    Build the body used to snapshot a disk.

    :param snapshot: The snapshot name, including any name suffix.
    :type snapshot: str
    :param disk: The name of the disk to snapshot.
    :type disk: str
    :return: Dict[str, Any]
    """
    return {
        'name': snapshot,
        'description': snapshot,
        'disk': disk,
    }


async def ensure_backing_disk(client: ControlPlaneClient, project: str,
                              disk: str) -> bool:
    """
    Make sure the disk a snapshot antagonist snapshots exists.

    If the disk cannot be found, a blank disk with the default size is
    created. The disk's state is otherwise not inspected: snapshotting a disk
    in an odd state is part of the stress.

    :param client: The control-plane client.
        Required.
    :type client: ControlPlaneClient
    :param project: The project the disk lives in.
        Required.
    :type project: str
    :param disk: The backing disk name.
        Required.
    :type disk: str
    :return: bool - True if a create request was sent
    :raises ControlPlaneError: if the query or the create failed
    """
    state = await get_disk_state(client, project, disk)
    if state is not None:
        logger.debug("backing disk %s is %s", disk, state.value)
        return False

    logger.info("backing disk %s doesn't exist, creating it", disk)
    await create_disk(client, project, disk)
    return True


async def create_snapshot(client: ControlPlaneClient, project: str,
                          snapshot: str, disk: str) -> Any:
    """
    Ask to snapshot a disk.

    :param client: The control-plane client.
        Required.
    :type client: ControlPlaneClient
    :param project: The project to create the snapshot in.
        Required.
    :type project: str
    :param snapshot: The snapshot name, including any name suffix.
        Required.
    :type snapshot: str
    :param disk: The disk to snapshot.
        Required.
    :type disk: str
    :return: The created snapshot, as returned by the control plane
    """
    body = default_snapshot_create(snapshot, disk)
    logger.info("sending snapshot create request: %s", body)
    return await call_and_log("snapshot create request",
                              client.snapshot_create(project, body))


async def delete_snapshot(client: ControlPlaneClient, project: str,
                          snapshot: str) -> Any:
    logger.info("sending snapshot delete request for %s", snapshot)
    return await call_and_log("snapshot delete request",
                              client.snapshot_delete(project, snapshot))
