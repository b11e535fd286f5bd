from chaoscontrol.client import ControlPlaneClient
from chaoscontrol.common import SnapshotState
from chaoscontrol.probes import observe_state

from typing import Optional


async def get_snapshot_state(client: ControlPlaneClient, project: str,
                             snapshot: str) -> Optional[SnapshotState]:
    """
    Get a snapshot's current state.

    :param client: The control-plane client.
    :type client: ControlPlaneClient
    :param project: The project the snapshot lives in.
    :type project: str
    :param snapshot: The snapshot name, including any name suffix.
    :type snapshot: str
    :return: Optional[SnapshotState] - None if the snapshot does not exist
    """
    return await observe_state(client.snapshot_view(project, snapshot),
                               SnapshotState, 'state',
                               "snapshot {}".format(snapshot))
