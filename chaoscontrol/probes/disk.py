from chaoscontrol.client import ControlPlaneClient
from chaoscontrol.common import DiskState
from chaoscontrol.probes import observe_state

from typing import Optional


async def get_disk_state(client: ControlPlaneClient, project: str,
                         disk: str) -> Optional[DiskState]:
    """
    Get a disk's current state.

    :param client: The control-plane client.
        Required.
    :type client: ControlPlaneClient
    :param project: The project the disk lives in.
        Required.
    :type project: str
    :param disk: The disk name.
        Required.
    :type disk: str
    :return: Optional[DiskState] - None if the disk does not exist
    """
    return await observe_state(client.disk_view(project, disk), DiskState,
                               'state', "disk {}".format(disk))
