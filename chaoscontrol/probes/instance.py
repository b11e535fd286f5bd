from chaoscontrol.client import ControlPlaneClient
from chaoscontrol.common import InstanceState
from chaoscontrol.probes import observe_state

from typing import Optional


async def get_instance_state(client: ControlPlaneClient, project: str,
                             instance: str) -> Optional[InstanceState]:
    """
    Get an instance's current run state.

    :param client: The control-plane client.
        Required.
    :type client: ControlPlaneClient
    :param project: The project the instance lives in.
        Required.
    :type project: str
    :param instance: The instance name.
        Required.
    :type instance: str
    :return: Optional[InstanceState] - None if the instance does not exist
    """
    return await observe_state(client.instance_view(project, instance),
                               InstanceState, 'run_state',
                               "instance {}".format(instance))
