"""
Async client for the control-plane REST API.

Every call either returns the decoded JSON body or raises one of the
ControlPlaneError subclasses below. These are the only failure shapes the rest
of chaoscontrol has to reason about:

- ErrorResponse: the server answered with a structured error body. Carries the
  HTTP status so callers can tell "not found" and 5xx responses apart.
- CommunicationError: the request never produced a response (connection
  refused, timeout, protocol error).
- InvalidRequest: the request was refused locally before being sent.
- InvalidResponsePayload: a success response that could not be decoded or
  lacked the expected shape.
- UnexpectedResponse: an error status without a structured body, or a status
  that is neither success nor client/server error.
"""
import re

import httpx

from chaoscontrol.common import DEFAULT_CHAOS_REQUEST_TIMEOUT

from typing import Any, Dict, Optional


class ControlPlaneError(Exception):
    """Base exception for control-plane API failures."""

    def is_not_found(self) -> bool:
        return False

    def is_server_error(self) -> bool:
        return False


class ErrorResponse(ControlPlaneError):
    """The server answered with a structured error body."""

    def __init__(self, status: int, error_code: Optional[str] = None,
                 message: str = "", request_id: Optional[str] = None):
        self.status = status
        self.error_code = error_code
        self.message = message
        self.request_id = request_id
        super().__init__("error response {} ({}): {}".format(
            status, error_code, message))

    def is_not_found(self) -> bool:
        return self.status == 404

    def is_server_error(self) -> bool:
        return 500 <= self.status < 600


class CommunicationError(ControlPlaneError):
    """The request did not produce a response."""
    pass


class InvalidRequest(ControlPlaneError):
    """The request was refused before it was sent."""
    pass


class InvalidResponsePayload(ControlPlaneError):
    """A success response could not be decoded."""
    pass


class UnexpectedResponse(ControlPlaneError):
    """A response with a status or body the client does not understand."""

    def __init__(self, status: int, body: str = ""):
        self.status = status
        self.body = body
        super().__init__("unexpected response {}: {}".format(status,
                                                              body[:200]))


# Failures that mean the harness can no longer trust what it observes.
TRANSPORT_ERRORS = (
    CommunicationError,
    InvalidRequest,
    InvalidResponsePayload,
    UnexpectedResponse,
)

# Resource names double as instance hostnames.
_NAME_PATTERN = re.compile(r'^[a-z]([a-z0-9-]*[a-z0-9])?$')
_NAME_MAX_LENGTH = 63


def validate_name(name: str, what: str = "name") -> str:
    """
    Check that name is usable as a resource name (and hostname).

    :param name: The candidate name.
    :type name: str
    :param what: What the name is for; used in the error message.
    :type what: str
    :return: str - the name, unchanged
    :raises InvalidRequest: if the name is not valid
    """
    if (not isinstance(name, str) or len(name) > _NAME_MAX_LENGTH
            or not _NAME_PATTERN.match(name)):
        raise InvalidRequest("{} is not a valid {}".format(name, what))
    return name


class ControlPlaneClient(object):
    """
    Thin async wrapper around the resource endpoints of the control plane.

    One client is shared by every antagonist of a harness; httpx pools the
    underlying connections.
    """

    _COLLECTIONS = {
        'instance': '/v1/instances',
        'disk': '/v1/disks',
        'snapshot': '/v1/snapshots',
    }

    def __init__(self, host: str, token: str,
                 timeout: float = DEFAULT_CHAOS_REQUEST_TIMEOUT,
                 transport: Optional[httpx.AsyncBaseTransport] = None):
        self.host = host
        # Instance creations can take a while, so the timeout is generous.
        self._client = httpx.AsyncClient(
            base_url=host,
            headers={"Authorization": "Bearer {}".format(token)},
            timeout=httpx.Timeout(timeout),
            transport=transport,
        )

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc_info):
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def request(self, method: str, path: str, project: str,
                      body: Optional[Dict[str, Any]] = None) -> Any:
        """
        Send one request and decode the response.

        :param method: HTTP method
        :type method: str
        :param path: Path relative to the host, e.g. /v1/disks/disk0
        :type path: str
        :param project: The project the resource lives in
        :type project: str
        :param body: JSON body, if any
        :type body: dict
        :return: The decoded JSON body, or None for an empty response
        :raises ControlPlaneError: see the module docstring
        """
        try:
            response = await self._client.request(
                method, path, params={"project": project}, json=body)
        except httpx.RequestError as e:
            raise CommunicationError("{} {}: {}".format(method, path,
                                                         e)) from e
        return self._decode(response)

    @staticmethod
    def _decode(response: httpx.Response) -> Any:
        status = response.status_code
        if 200 <= status < 300:
            if not response.content:
                return None
            try:
                return response.json()
            except ValueError as e:
                raise InvalidResponsePayload(
                    "response body is not JSON: {}".format(e)) from e

        if 400 <= status < 600:
            try:
                body = response.json()
            except ValueError:
                raise UnexpectedResponse(status, response.text)
            if not isinstance(body, dict):
                raise UnexpectedResponse(status, response.text)
            raise ErrorResponse(status,
                                error_code=body.get('error_code'),
                                message=body.get('message', ''),
                                request_id=body.get('request_id'))

        raise UnexpectedResponse(status, response.text)

    def _item_path(self, collection: str, name: str, *suffix: str) -> str:
        validate_name(name, "{} name".format(collection))
        return "/".join((self._COLLECTIONS[collection], name) + suffix)

    # Instances

    async def instance_view(self, project: str, instance: str) -> Any:
        return await self.request(
            'GET', self._item_path('instance', instance), project)

    async def instance_create(self, project: str, body: Dict[str, Any]) -> Any:
        validate_name(body.get('name'), "instance name")
        return await self.request(
            'POST', self._COLLECTIONS['instance'], project, body)

    async def instance_start(self, project: str, instance: str) -> Any:
        return await self.request(
            'POST', self._item_path('instance', instance, 'start'), project)

    async def instance_stop(self, project: str, instance: str) -> Any:
        return await self.request(
            'POST', self._item_path('instance', instance, 'stop'), project)

    async def instance_delete(self, project: str, instance: str) -> Any:
        return await self.request(
            'DELETE', self._item_path('instance', instance), project)

    # Disks

    async def disk_view(self, project: str, disk: str) -> Any:
        return await self.request(
            'GET', self._item_path('disk', disk), project)

    async def disk_create(self, project: str, body: Dict[str, Any]) -> Any:
        validate_name(body.get('name'), "disk name")
        return await self.request(
            'POST', self._COLLECTIONS['disk'], project, body)

    async def disk_delete(self, project: str, disk: str) -> Any:
        return await self.request(
            'DELETE', self._item_path('disk', disk), project)

    # Snapshots

    async def snapshot_view(self, project: str, snapshot: str) -> Any:
        return await self.request(
            'GET', self._item_path('snapshot', snapshot), project)

    async def snapshot_create(self, project: str,
                              body: Dict[str, Any]) -> Any:
        validate_name(body.get('name'), "snapshot name")
        return await self.request(
            'POST', self._COLLECTIONS['snapshot'], project, body)

    async def snapshot_delete(self, project: str, snapshot: str) -> Any:
        return await self.request(
            'DELETE', self._item_path('snapshot', snapshot), project)
