"""
Bounded single-purpose channels between the harness and actor tasks.

A Channel is an asyncio.Queue whose two ends can each be closed:

- Once the receiver is closed, send raises ChannelClosed, including a send
  that is already blocked waiting for room. An actor uses this to notice
  that nobody is listening any more.
- Once the sender is closed, recv drains what is left and then raises
  ChannelClosed, including a recv that is already blocked. A paused actor
  uses this to notice that the harness is gone.
"""
import asyncio

from typing import Any, Awaitable, Optional


class ChannelClosed(Exception):
    """The other end of the channel is closed."""
    pass


class ChannelEmpty(Exception):
    """try_recv found nothing to receive."""
    pass


async def _unless_set(operation: Awaitable[Any],
                      event: asyncio.Event) -> Optional[asyncio.Future]:
    """
    Await operation unless event is set first.

    :return: The finished operation future, or None if event won.
    """
    op_future = asyncio.ensure_future(operation)
    event_future = asyncio.ensure_future(event.wait())
    try:
        await asyncio.wait({op_future, event_future},
                           return_when=asyncio.FIRST_COMPLETED)
    finally:
        event_future.cancel()
        if not op_future.done():
            op_future.cancel()
    if op_future.done() and not op_future.cancelled():
        op_future.result()
        return op_future
    return None


class Channel(object):
    def __init__(self, capacity: int = 1):
        if capacity < 1:
            raise ValueError("channel capacity must be at least 1")
        self.capacity = capacity
        self._queue = asyncio.Queue(maxsize=capacity)
        self._sender_closed = asyncio.Event()
        self._receiver_closed = asyncio.Event()

    @property
    def sender_closed(self) -> bool:
        return self._sender_closed.is_set()

    @property
    def receiver_closed(self) -> bool:
        return self._receiver_closed.is_set()

    def close_sender(self) -> None:
        self._sender_closed.set()

    def close_receiver(self) -> None:
        self._receiver_closed.set()

    def _check_can_send(self) -> None:
        if self.receiver_closed:
            raise ChannelClosed("receiver is closed")
        if self.sender_closed:
            raise ChannelClosed("sender is closed")

    def send_nowait(self, item: Any) -> None:
        """
        Send without waiting.

        :raises ChannelClosed: if either end is closed
        :raises asyncio.QueueFull: if the channel is at capacity
        """
        self._check_can_send()
        self._queue.put_nowait(item)

    async def send(self, item: Any) -> None:
        """
        Send, waiting for room if the channel is at capacity.

        :raises ChannelClosed: if either end is closed, or the receiver is
            closed while waiting
        """
        self._check_can_send()
        if not self._queue.full():
            self._queue.put_nowait(item)
            return
        if await _unless_set(self._queue.put(item),
                             self._receiver_closed) is None:
            raise ChannelClosed("receiver closed while sending")

    def try_recv(self) -> Any:
        """
        Receive without waiting.

        :raises ChannelEmpty: if nothing is queued
        :raises ChannelClosed: if nothing is queued and the sender is closed
        """
        try:
            return self._queue.get_nowait()
        except asyncio.QueueEmpty:
            if self.sender_closed:
                raise ChannelClosed("sender is closed")
            raise ChannelEmpty()

    async def recv(self) -> Any:
        """
        Receive, waiting for an item if none is queued.

        :raises ChannelClosed: if the sender is closed and nothing is queued
        """
        if not self._queue.empty():
            return self._queue.get_nowait()
        if self.sender_closed:
            raise ChannelClosed("sender is closed")
        getter = await _unless_set(self._queue.get(), self._sender_closed)
        if getter is not None:
            return getter.result()
        try:
            return self._queue.get_nowait()
        except asyncio.QueueEmpty:
            raise ChannelClosed("sender closed while receiving")
