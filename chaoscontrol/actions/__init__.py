"""
Chaos 'actions' module.

This module contains *actions* that modify the state of control-plane
resources: create, start, stop and delete requests for instances, disks and
snapshots.

*Actions* are issued by antagonists at random, without any client-side
coordination. Several antagonists may target the same resource at once, so an
*action* failing because another antagonist got there first (deleting a disk
that is already gone, starting an instance that is being destroyed) is an
expected outcome and is reported, not hidden: every *action* logs the request
it sends and the result it gets back, then raises the ControlPlaneError if the
call failed. Whether a failure matters is decided by the harness.

Things to consider when adding or modifying *actions*:
1. *Actions* must not retry. A retry hides exactly the kind of conflicting
   state transition the harness exists to surface.
2. *Actions* should only depend on the client and their arguments so they can
   be reused outside of an antagonist (e.g. from an interactive session).
"""
from chaoscontrol.client import ControlPlaneError
from logzero import logger

from typing import Any, Awaitable


async def call_and_log(description: str, call: Awaitable[Any]) -> Any:
    """
    Await an API call, logging its outcome.

    :param description: What the call does, e.g. "disk delete request"
    :type description: str
    :param call: The pending API call
    :type call: Awaitable
    :return: The call's result
    :raises ControlPlaneError: if the call failed
    """
    try:
        result = await call
    except ControlPlaneError as e:
        logger.warning("%s returned: %s", description, e)
        raise
    logger.info("%s returned: %s", description, result)
    return result
