from contextlib import contextmanager

from chaoscontrol.client import ErrorResponse


@contextmanager
def patch(owner, attr, value):
    """Monkey patch context manager.

    with patch(os, 'open', myopen):
        ...
    """
    old = getattr(owner, attr)
    setattr(owner, attr, value)
    try:
        yield getattr(owner, attr)
    finally:
        setattr(owner, attr, old)


def not_found(name):
    return ErrorResponse(404, error_code='ObjectNotFound',
                         message="not found: {}".format(name))


class FakeClient(object):
    """In-memory stand-in for ControlPlaneClient.

    bodies maps (kind, name) to the body a view call returns; a missing entry
    answers with a 404. failures maps a method name to the exception that
    method raises. Every call is recorded in calls as (method, args...).
    """

    def __init__(self, bodies=None, failures=None):
        self.bodies = dict(bodies or {})
        self.failures = dict(failures or {})
        self.calls = []

    def methods(self):
        return [call[0] for call in self.calls]

    async def _call(self, method, *args):
        self.calls.append((method,) + args)
        if method in self.failures:
            raise self.failures[method]

    async def _view(self, kind, project, name):
        await self._call('{}_view'.format(kind), project, name)
        try:
            return self.bodies[(kind, name)]
        except KeyError:
            raise not_found(name)

    async def instance_view(self, project, instance):
        return await self._view('instance', project, instance)

    async def instance_create(self, project, body):
        await self._call('instance_create', project, body)
        return body

    async def instance_start(self, project, instance):
        await self._call('instance_start', project, instance)

    async def instance_stop(self, project, instance):
        await self._call('instance_stop', project, instance)

    async def instance_delete(self, project, instance):
        await self._call('instance_delete', project, instance)

    async def disk_view(self, project, disk):
        return await self._view('disk', project, disk)

    async def disk_create(self, project, body):
        await self._call('disk_create', project, body)
        return body

    async def disk_delete(self, project, disk):
        await self._call('disk_delete', project, disk)

    async def snapshot_view(self, project, snapshot):
        return await self._view('snapshot', project, snapshot)

    async def snapshot_create(self, project, body):
        await self._call('snapshot_create', project, body)
        return body

    async def snapshot_delete(self, project, snapshot):
        await self._call('snapshot_delete', project, snapshot)


class FixedRng(object):
    """Deterministic rng: never naps, and always draws action if given
    (otherwise the first option)."""

    def __init__(self, action=None):
        self.action = action
        self.draws = 0

    def randint(self, a, b):
        return a

    def choices(self, options, weights=None, k=1):
        self.draws += 1
        choice = self.action if self.action is not None else options[0]
        return [choice] * k
