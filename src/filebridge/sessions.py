"""Session registry for SSE-bound protocol clients.

A session associates an opaque id with one open server-to-client stream.
The registry is the only owner of those streams: entries are created when
a client opens `/sse` and removed when that stream closes. Everyone else
looks a stream up per delivery with `resolve()` and never keeps it.

All registry methods are synchronous. Under the single-threaded event loop
that makes each mutation atomic with respect to other in-flight requests.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
import uuid
from dataclasses import dataclass

from .errors import ChannelClosed, SessionNotFound

logger = logging.getLogger(__name__)

DEFAULT_HEARTBEAT_INTERVAL = 30.0


@dataclass(frozen=True)
class Frame:
    """One Server-Sent Events frame."""

    data: str
    event: str | None = None
    comment: bool = False

    def encode(self) -> str:
        """Render the frame in SSE wire format."""
        if self.comment:
            return f": {self.data}\n\n"

        lines = []
        if self.event:
            lines.append(f"event: {self.event}")
        lines.extend(f"data: {line}" for line in self.data.split("\n"))
        return "\n".join(lines) + "\n\n"


KEEPALIVE = Frame(data="keepalive", comment=True)


class SessionChannel:
    """Writable, long-lived server-to-client stream.

    Frames are queued until the SSE response generator drains them.
    """

    def __init__(self) -> None:
        self._queue: asyncio.Queue[Frame | None] = asyncio.Queue()
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def send(self, frame: Frame) -> None:
        """Queue a frame for delivery.

        Raises:
            ChannelClosed: If the channel has been closed
        """
        if self._closed:
            raise ChannelClosed("Session channel is closed")
        self._queue.put_nowait(frame)

    async def next_frame(self, timeout: float | None = None) -> Frame | None:
        """Wait for the next frame.

        Returns:
            The next frame, or None once the channel is closed

        Raises:
            TimeoutError: If no frame arrives within `timeout` seconds
        """
        if timeout is None:
            return await self._queue.get()
        return await asyncio.wait_for(self._queue.get(), timeout=timeout)

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._queue.put_nowait(None)  # Wake the reader

    @property
    def pending(self) -> int:
        return self._queue.qsize()


class SessionRegistry:
    """Maps session ids to open channels and owns their heartbeats."""

    def __init__(self, heartbeat_interval: float | None = DEFAULT_HEARTBEAT_INTERVAL) -> None:
        self._heartbeat_interval = heartbeat_interval
        self._channels: dict[str, SessionChannel] = {}
        self._heartbeats: dict[str, asyncio.Task[None]] = {}

    @property
    def heartbeat_interval(self) -> float | None:
        return self._heartbeat_interval

    def open(self, channel: SessionChannel) -> str:
        """Register a channel and start its heartbeat.

        Returns:
            The new session id
        """
        session_id = f"session_{uuid.uuid4().hex}"
        while session_id in self._channels:
            session_id = f"session_{uuid.uuid4().hex}"

        self._channels[session_id] = channel

        if self._heartbeat_interval and self._heartbeat_interval > 0:
            self._heartbeats[session_id] = asyncio.get_running_loop().create_task(
                self._heartbeat(session_id, channel, self._heartbeat_interval)
            )

        logger.info(f"Opened session {session_id} ({len(self._channels)} open)")
        return session_id

    def resolve(self, session_id: str | None) -> SessionChannel:
        """Look up the channel for a session.

        Raises:
            SessionNotFound: If the session is unknown or already closed
        """
        channel = self._channels.get(session_id) if session_id else None
        if channel is None or channel.closed:
            raise SessionNotFound(session_id)
        return channel

    def close(self, session_id: str) -> None:
        """Remove a session, cancel its heartbeat and close its channel.

        Safe to call more than once.
        """
        channel = self._channels.pop(session_id, None)
        heartbeat = self._heartbeats.pop(session_id, None)

        if heartbeat is not None:
            heartbeat.cancel()
        if channel is None:
            return

        channel.close()
        logger.info(f"Closed session {session_id} ({len(self._channels)} open)")

    async def close_all(self) -> None:
        """Close every open session (server shutdown)."""
        tasks = list(self._heartbeats.values())
        for session_id in list(self._channels):
            self.close(session_id)
        for task in tasks:
            with contextlib.suppress(asyncio.CancelledError):
                await task

    def has_heartbeat(self, session_id: str) -> bool:
        return session_id in self._heartbeats

    def __contains__(self, session_id: object) -> bool:
        return session_id in self._channels

    def __len__(self) -> int:
        return len(self._channels)

    async def _heartbeat(self, session_id: str, channel: SessionChannel, interval: float) -> None:
        """Send periodic keep-alive frames until the channel closes."""
        while True:
            await asyncio.sleep(interval)
            try:
                channel.send(KEEPALIVE)
            except ChannelClosed:
                logger.debug(f"Heartbeat stopped for closed session {session_id}")
                return
