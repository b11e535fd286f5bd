"""
The stress harness: owns every actor and decides when the run is over.

Each actor reports failed cycles on its own error channel. One forwarding task
per actor relays those errors, tagged with the actor's name, into a single
shared channel that the run loop reads. The run loop is the only place where
an error is judged fatal:

- An API call answered with a structured error response is expected while
  antagonists race each other (deleting what another antagonist just
  deleted, starting what is being destroyed). These are logged and ignored,
  unless fatal_on_server_errors is set, in which case 5xx responses end the
  run.
- A call that got no usable response (transport, decode or local request
  failures) always ends the run: further observations can't be trusted.
- An invalid resource state ends the run when invalid_state_fatal is set.
- Anything else is a bug and ends the run.

When the run ends, because of a fatal error or an interrupt, every actor is
halted and awaited before run returns.
"""
import asyncio
from collections import namedtuple

from chaoscontrol.actor import Actor
from chaoscontrol.antagonist import (Antagonist, ApiError, DiskParams,
                                     InstanceParams, InvalidStateError,
                                     OtherError, SnapshotParams)
from chaoscontrol.channel import Channel, ChannelClosed
from chaoscontrol.client import (ControlPlaneClient, ErrorResponse,
                                 TRANSPORT_ERRORS)
from chaoscontrol.config import Config
from logzero import logger

from typing import Callable, Iterator, List, Optional, Tuple


class ErrorChannelDisconnected(OtherError):
    """An actor task exited and closed its error channel."""

    def __init__(self, actor_name: str):
        self.actor_name = actor_name
        super().__init__("antagonist {} disconnected its error "
                         "channel".format(actor_name))


# An error reported by the actor named actor.
ActorError = namedtuple('ActorError', ['actor', 'error'])


def actor_specs(config: Config) -> Iterator[Tuple[str, object]]:
    """
    Enumerate the actors a configuration asks for.

    Every resource gets threads_per_<kind> actors. The actors of one resource
    share its name, which is what makes them antagonize each other.

    :param config: The harness configuration.
    :type config: Config
    :return: Iterator of (actor name, antagonist parameters)
    """
    for inst in range(config.num_test_instances):
        for index in range(config.threads_per_instance):
            yield ("inst{}_{}".format(inst, index),
                   InstanceParams(project=config.project,
                                  instance_name="inst{}".format(inst)))

    for disk in range(config.num_test_disks):
        for index in range(config.threads_per_disk):
            yield ("disk{}_{}".format(disk, index),
                   DiskParams(project=config.project,
                              disk_name="disk{}".format(disk)))

    for snap in range(config.num_test_snapshots):
        for index in range(config.threads_per_snapshot):
            yield ("snap{}_{}".format(snap, index),
                   SnapshotParams(project=config.project,
                                  disk_name="snapdisk{}".format(snap),
                                  snapshot_name="snap{}".format(snap)))


class Harness(object):
    """
    Runs a stress test.

    :param config: The harness configuration.
    :param client: The control-plane client shared by all antagonists.
    :param antagonist_factory: Builds an antagonist from its parameters.
        Defaults to Antagonist(params, client, config.max_jitter_ms).
    """

    def __init__(self, config: Config, client: Optional[ControlPlaneClient],
                 antagonist_factory: Optional[Callable] = None):
        self.config = config
        self.client = client
        if antagonist_factory is None:
            def antagonist_factory(params):
                return Antagonist(params, client, config.max_jitter_ms)
        self._antagonist_factory = antagonist_factory
        self.actors = []  # type: List[Actor]
        self._forwarders = []  # type: List[asyncio.Future]
        self._errors = None  # type: Optional[Channel]

    def start(self) -> None:
        """Spawn every actor and its error forwarder."""
        specs = list(actor_specs(self.config))
        self._errors = Channel(max(1, len(specs)))
        for name, params in specs:
            actor, errors = Actor.spawn(name, self._antagonist_factory(params))
            self.actors.append(actor)
            self._forwarders.append(
                asyncio.ensure_future(self._forward_errors(name, errors)))
        logger.info("Spawned %d actors", len(self.actors))

    async def _forward_errors(self, name: str, errors: Channel) -> None:
        try:
            while True:
                try:
                    error = await errors.recv()
                except ChannelClosed:
                    await self._errors.send(
                        ActorError(name, ErrorChannelDisconnected(name)))
                    return
                await self._errors.send(ActorError(name, error))
        except ChannelClosed:
            # The run loop is gone.
            return
        finally:
            errors.close_receiver()

    def is_fatal(self, error: BaseException) -> bool:
        """
        Decide whether an actor error ends the run.

        :param error: The error an actor reported.
        :type error: AntagonistError
        :return: bool
        """
        if isinstance(error, ApiError):
            cause = error.error
            if isinstance(cause, TRANSPORT_ERRORS):
                return True
            if isinstance(cause, ErrorResponse):
                if self.config.fatal_on_server_errors:
                    return cause.is_server_error()
                return False
            return True
        if isinstance(error, InvalidStateError):
            return self.config.invalid_state_fatal
        return True

    async def run(self, interrupt: asyncio.Event) -> Optional[ActorError]:
        """
        Run until an actor reports a fatal error or interrupt is set.

        :param interrupt: Set by the caller (e.g. from a signal handler) to
            stop the run.
        :type interrupt: asyncio.Event
        :return: Optional[ActorError] - the fatal error, or None if the run
            was interrupted
        """
        interrupted = asyncio.ensure_future(interrupt.wait())
        fatal = None
        try:
            if not self.actors:
                self.start()
            logger.info("Starting stress test")

            while True:
                received = asyncio.ensure_future(self._errors.recv())
                done, _ = await asyncio.wait(
                    {received, interrupted},
                    return_when=asyncio.FIRST_COMPLETED)
                if interrupted in done:
                    received.cancel()
                    logger.info("got interrupt, exiting")
                    break

                reported = received.result()
                if self.is_fatal(reported.error):
                    logger.error("[%s] actor error: %s", reported.actor,
                                 reported.error)
                    fatal = reported
                    break
                logger.warning("[%s] ignoring actor error: %s",
                               reported.actor, reported.error)
        finally:
            interrupted.cancel()
            await self.halt_all()
        return fatal

    async def halt_all(self) -> None:
        """Halt every actor and wait for all of them to finish."""
        logger.info("Halting actors")
        tasks = [actor.halt() for actor in self.actors]

        # Actors blocked reporting an error notice the closed channel once
        # their forwarder stops.
        for forwarder in self._forwarders:
            forwarder.cancel()

        logger.info("Waiting for actors to halt")
        results = await asyncio.gather(*tasks, return_exceptions=True)
        await asyncio.gather(*self._forwarders, return_exceptions=True)
        for actor, result in zip(self.actors, results):
            if isinstance(result, BaseException):
                logger.error("[%s] actor task failed: %r", actor.name, result)
        if self._errors is not None:
            self._errors.close_receiver()
        logger.info("b'bye")
