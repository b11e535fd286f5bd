from chaoscontrol.actions import call_and_log
from chaoscontrol.client import ControlPlaneClient
from chaoscontrol.common import (DEFAULT_CHAOS_INSTANCE_MEMORY,
                                 DEFAULT_CHAOS_INSTANCE_NCPUS)
from logzero import logger

from typing import Any, Dict


def default_instance_create(instance: str) -> Dict[str, Any]:
    """
    Build the body used to create an antagonist's instance.

    The instance has 1 vCPU, 1 GiB of memory, no disks, no NICs and no
    external IPs, and is started as soon as it is created. Its hostname is
    its name.

    :param instance: The instance name.
    :type instance: str
    :return: Dict[str, Any]
    """
    return {
        'name': instance,
        'description': instance,
        'hostname': instance,
        'ncpus': DEFAULT_CHAOS_INSTANCE_NCPUS,
        'memory': DEFAULT_CHAOS_INSTANCE_MEMORY,
        'disks': [],
        'external_ips': [],
        'network_interfaces': {'type': 'none'},
        'start': True,
        'user_data': '',
        'ssh_public_keys': None,
    }


async def create_instance(client: ControlPlaneClient, project: str,
                          instance: str) -> Any:
    """
    Ask to create an instance with the default shape.

    :param client: The control-plane client.
        Required.
    :type client: ControlPlaneClient
    :param project: The project to create the instance in.
        Required.
    :type project: str
    :param instance: The instance name.
        Required.
    :type instance: str
    :return: The created instance, as returned by the control plane
    """
    body = default_instance_create(instance)
    logger.info("sending instance create request: %s", body)
    return await call_and_log("instance create request",
                              client.instance_create(project, body))


async def start_instance(client: ControlPlaneClient, project: str,
                         instance: str) -> Any:
    logger.info("sending instance start request for %s", instance)
    return await call_and_log("instance start request",
                              client.instance_start(project, instance))


async def stop_instance(client: ControlPlaneClient, project: str,
                        instance: str) -> Any:
    logger.info("sending instance stop request for %s", instance)
    return await call_and_log("instance stop request",
                              client.instance_stop(project, instance))


async def delete_instance(client: ControlPlaneClient, project: str,
                          instance: str) -> Any:
    logger.info("sending instance delete request for %s", instance)
    return await call_and_log("instance delete request",
                              client.instance_delete(project, instance))
