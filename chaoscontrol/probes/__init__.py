"""
Chaos 'probes' module.

This module contains *probes* that gather the current lifecycle state of a
resource from the control plane. A probe never changes anything.

Every probe answers with one of three outcomes:

1. The state enum member, if the resource exists and could be queried.
2. None, if the control plane says the resource does not exist. Antagonists
   react to this by creating the resource.
3. A raised ControlPlaneError for anything else. Whether that ends the run is
   decided by the harness, not here.
"""
from chaoscontrol.client import ErrorResponse, InvalidResponsePayload
from logzero import logger

from typing import Any, Awaitable, Optional


async def observe_state(view: Awaitable[Any], state_enum, field: str,
                        description: str) -> Optional[Any]:
    """
    Await a view call and extract a lifecycle state from its body.

    :param view: The pending view call, e.g. client.disk_view(project, name)
    :type view: Awaitable
    :param state_enum: Enum whose values are the wire values of the state.
    :type state_enum: Type[Enum]
    :param field: Name of the body field holding the state.
    :type field: str
    :param description: Human readable name of the resource, for logging.
    :type description: str
    :return: Optional[state_enum]
    """
    try:
        body = await view
    except ErrorResponse as e:
        # It's OK if the resource just isn't there. Any other error is
        # unexpected.
        if e.is_not_found():
            logger.debug("%s does not exist", description)
            return None
        raise
    return parse_state(state_enum, body, field)


def parse_state(state_enum, body: Any, field: str):
    """
    Convert the state field of a response body to a state enum member.

    The field may hold the state directly ("detached") or an object carrying
    it under a "state" key ({"state": "attached", "instance": ...}).

    :raises InvalidResponsePayload: if the field is missing or unknown
    """
    if not isinstance(body, dict) or field not in body:
        raise InvalidResponsePayload(
            "response has no '{}' field: {!r}".format(field, body))
    raw = body[field]
    if isinstance(raw, dict):
        raw = raw.get('state')
    if not state_enum.has_value(raw):
        raise InvalidResponsePayload(
            "unknown {} value {!r}".format(state_enum.__name__, raw))
    return state_enum(raw)
