from chaoscontrol.actions import call_and_log
from chaoscontrol.client import ControlPlaneClient
from chaoscontrol.common import (DEFAULT_CHAOS_DISK_BLOCK_SIZE,
                                 DEFAULT_CHAOS_DISK_SIZE)
from logzero import logger

from typing import Any, Dict


def default_disk_create(disk: str, size: int = DEFAULT_CHAOS_DISK_SIZE,
                        block_size: int = DEFAULT_CHAOS_DISK_BLOCK_SIZE
                        ) -> Dict[str, Any]:
    """
    Build the body used to create a blank disk.

    :param disk: The disk name.
        Required.
    :type disk: str
    :param size: Disk size in bytes.
        Optional. (Default: chaoscontrol.common.DEFAULT_CHAOS_DISK_SIZE)
    :type size: int
    :param block_size: Block size in bytes.
        Optional. (Default: chaoscontrol.common.DEFAULT_CHAOS_DISK_BLOCK_SIZE)
    :type block_size: int
    :return: Dict[str, Any]
    """
    return {
        'name': disk,
        'description': disk,
        'disk_source': {'type': 'blank', 'block_size': block_size},
        'size': size,
    }


async def create_disk(client: ControlPlaneClient, project: str,
                      disk: str) -> Any:
    """
    Ask to create a blank 1 GiB disk.

    :param client: The control-plane client.
        Required.
    :type client: ControlPlaneClient
    :param project: The project to create the disk in.
        Required.
    :type project: str
    :param disk: The disk name.
        Required.
    :type disk: str
    :return: The created disk, as returned by the control plane
    """
    body = default_disk_create(disk)
    logger.info("sending disk create request: %s", body)
    return await call_and_log("disk create request",
                              client.disk_create(project, body))


async def delete_disk(client: ControlPlaneClient, project: str,
                      disk: str) -> Any:
    logger.info("sending disk delete request for %s", disk)
    return await call_and_log("disk delete request",
                              client.disk_delete(project, disk))
