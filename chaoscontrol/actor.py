"""
Actors: supervised asyncio tasks that run an antagonist in a loop.

The harness and an actor task only talk through four channels:

- halt: the harness asks the task to stop at the next cycle boundary.
- pause: the harness sends True to pause and False to resume. Requests must
  alternate, starting with True.
- paused: the task acknowledges a pause request before blocking.
- errors: the task reports every failed cycle.

A cycle is never interrupted. Halt and pause requests are only looked at
between cycles, and a paused task blocks until it is resumed or halted.
"""
import asyncio

from chaoscontrol.antagonist import AntagonistError, OtherError
from chaoscontrol.channel import Channel, ChannelClosed, ChannelEmpty
from logzero import logger

from typing import Tuple


class PauseProtocolError(RuntimeError):
    """Pause and resume requests did not alternate."""
    pass


class ActorGoneError(RuntimeError):
    """The actor task stopped answering control messages."""
    pass


class ActorHaltedError(RuntimeError):
    """The actor was already halted."""
    pass


class Actor(object):
    """
    The harness's handle on one actor task.

    Create actors with Actor.spawn. The handle owns the sending side of the
    pause and halt channels and the receiving side of the pause
    acknowledgement channel; the task owns the antagonist.
    """

    def __init__(self, name: str, task: asyncio.Task, pause_tx: Channel,
                 paused_rx: Channel, halt_tx: Channel):
        self.name = name
        self._task = task
        self._pause_tx = pause_tx
        self._paused_rx = paused_rx
        self._halt_tx = halt_tx
        self._halted = False

    @classmethod
    def spawn(cls, name: str, antagonist) -> Tuple['Actor', Channel]:
        """
        Start an actor task running antagonist.

        :param name: The actor's name, used in log messages.
        :type name: str
        :param antagonist: Anything with an async run_cycle method.
        :type antagonist: Antagonist
        :return: Tuple[Actor, Channel] - the handle, and the channel on which
            the task reports antagonist errors. Close its receiver to make
            the task stop at its next error.
        """
        errors = Channel(1)
        pause = Channel(1)
        paused = Channel(1)
        halt = Channel(1)
        task = asyncio.ensure_future(
            _actor_loop(name, antagonist, errors, pause, paused, halt))
        logger.debug("[%s] spawned actor for %r", name, antagonist)
        return cls(name, task, pause, paused, halt), errors

    @property
    def task(self) -> asyncio.Task:
        return self._task

    def _check_not_halted(self) -> None:
        if self._halted:
            raise ActorHaltedError("actor {} was halted".format(self.name))

    async def pause(self) -> None:
        """
        Direct the actor to pause and wait for it to report that it has.

        :raises ActorGoneError: if the task is no longer listening
        """
        self._check_not_halted()
        logger.info("[%s] sending pause request", self.name)
        try:
            await self._pause_tx.send(True)
            logger.info("[%s] waiting for task to pause", self.name)
            await self._paused_rx.recv()
        except ChannelClosed as e:
            raise ActorGoneError(
                "actor {} did not acknowledge pause".format(self.name)) from e

    async def resume(self) -> None:
        """
        Direct a paused actor to resume.

        :raises ActorGoneError: if the task is no longer listening
        """
        self._check_not_halted()
        logger.info("[%s] sending resume request", self.name)
        try:
            await self._pause_tx.send(False)
        except ChannelClosed as e:
            raise ActorGoneError(
                "actor {} did not accept resume".format(self.name)) from e

    def halt(self) -> asyncio.Task:
        """
        Direct the actor to halt.

        The handle cannot be used afterwards. Closing the pause and
        acknowledgement channels wakes a paused task so it can exit too.

        :return: asyncio.Task - await it to wait for the task to finish
        """
        self._check_not_halted()
        self._halted = True
        logger.info("[%s] sending halt request", self.name)
        self._halt_tx.send_nowait(None)
        self._halt_tx.close_sender()
        self._pause_tx.close_sender()
        self._paused_rx.close_receiver()
        return self._task


async def _actor_loop(name: str, antagonist, errors: Channel, pause: Channel,
                      paused: Channel, halt: Channel) -> None:
    try:
        while True:
            # If the harness asked this actor to stop, then stop.
            try:
                halt.try_recv()
                logger.info("[%s] halting", name)
                break
            except (ChannelEmpty, ChannelClosed):
                pass

            # If the harness asked to pause, then pause.
            try:
                should_pause = pause.try_recv()
            except (ChannelEmpty, ChannelClosed):
                should_pause = None

            if should_pause is not None:
                if should_pause is not True:
                    raise PauseProtocolError(
                        "should only ask to resume when paused")

                # Tell the harness this actor is paused, leaving if the
                # harness is no longer around to listen.
                try:
                    await paused.send(None)
                except ChannelClosed:
                    break
                logger.info("[%s] paused", name)

                # Wait to be told to resume. If the channel goes away the
                # harness is gone, so just leave.
                try:
                    should_resume = await pause.recv()
                except ChannelClosed:
                    logger.info("[%s] pause channel closed while paused",
                                name)
                    break
                if should_resume is not False:
                    raise PauseProtocolError(
                        "should only ask to pause when running")
                logger.info("[%s] resumed", name)
                continue

            try:
                await antagonist.run_cycle()
            except AntagonistError as e:
                error = e
            except Exception as e:
                error = OtherError("{}: {!r}".format(type(e).__name__, e))
                error.__cause__ = e
            else:
                continue

            logger.debug("[%s] cycle failed: %s", name, error)
            try:
                await errors.send(error)
            except ChannelClosed:
                logger.info("[%s] error channel closed, exiting", name)
                break
    finally:
        errors.close_sender()
        paused.close_sender()
