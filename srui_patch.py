"""Server-pushed patches over Server-Sent Events.

A :class:`Channel` is a broadcast set of open event streams. Publishing
writes one event to every stream open at that moment; nothing is stored or
replayed, and a stream that cannot keep up or has gone away just misses the
event.

The :class:`DeferredExecutor` runs handlers after the current response and
publishes their HTML as a single ``patch`` event. A job that fails is
dropped: its skeleton stays on screen.
"""

from __future__ import annotations

import asyncio
import contextlib
import json
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, List, Optional, Set, Tuple

logger = logging.getLogger("srui.patch")

SSE_HEADERS: Tuple[Tuple[str, str], ...] = (
    ("Content-Type", "text/event-stream"),
    ("Cache-Control", "no-cache"),
    ("Connection", "keep-alive"),
    ("X-Accel-Buffering", "no"),
    ("Access-Control-Allow-Origin", "*"),
)


@dataclass(frozen=True)
class SSEEvent:
    """A single Server-Sent Event."""

    data: str
    event: Optional[str] = None
    id: Optional[str] = None
    retry: Optional[int] = None

    def encode(self) -> str:
        lines: List[str] = []
        if self.event:
            lines.append(f"event: {self.event}")
        if self.id:
            lines.append(f"id: {self.id}")
        if self.retry is not None:
            lines.append(f"retry: {self.retry}")
        lines.extend(f"data: {line}" for line in self.data.split("\n"))
        lines.append("")
        return "\n".join(lines) + "\n"


PING = SSEEvent(data="1", event="ping")
RELOAD = SSEEvent(data="1", event="reload")


@dataclass(frozen=True)
class PatchMessage:
    id: str
    swap: str
    html: str

    def to_json(self) -> dict:
        return {"id": self.id, "swap": self.swap, "html": self.html}

    def to_event(self) -> SSEEvent:
        return SSEEvent(data=json.dumps(self.to_json()), event="patch")


class Subscriber:
    """One open stream's inbox."""

    def __init__(self, maxsize: int = 256) -> None:
        self.queue: "asyncio.Queue[SSEEvent]" = asyncio.Queue(maxsize=maxsize)
        self.closed = False

    def offer(self, event: SSEEvent) -> bool:
        if self.closed:
            return False
        try:
            self.queue.put_nowait(event)
        except asyncio.QueueFull:
            logger.debug("stream backlog full, dropping %s event", event.event)
            return False
        return True

    async def next(self, timeout: float) -> Optional[SSEEvent]:
        """Next queued event, or ``None`` after ``timeout`` idle seconds."""

        try:
            return await asyncio.wait_for(self.queue.get(), timeout)
        except asyncio.TimeoutError:
            return None

    def close(self) -> None:
        self.closed = True


class Channel:
    def __init__(self, name: str = "patch", queue_size: int = 256) -> None:
        self.name = name
        self._queue_size = queue_size
        self._subscribers: Set[Subscriber] = set()

    def __len__(self) -> int:
        return len(self._subscribers)

    def subscribe(self) -> Subscriber:
        sub = Subscriber(self._queue_size)
        self._subscribers.add(sub)
        logger.debug("%s stream opened (%d open)", self.name, len(self._subscribers))
        return sub

    def unsubscribe(self, sub: Subscriber) -> None:
        sub.close()
        self._subscribers.discard(sub)
        logger.debug("%s stream closed (%d open)", self.name, len(self._subscribers))

    def publish(self, event: SSEEvent) -> int:
        """Offer ``event`` to every open stream; returns how many accepted it."""

        delivered = 0
        for sub in tuple(self._subscribers):
            if sub.offer(event):
                delivered += 1
        return delivered

    def publish_patch(self, target_id: str, swap: str, html: str) -> int:
        return self.publish(PatchMessage(target_id, swap, html).to_event())

    async def stream(
        self,
        reader: asyncio.StreamReader,
        writer: asyncio.StreamWriter,
        heartbeat: float = 15.0,
        headers: Tuple[Tuple[str, str], ...] = (),
    ) -> None:
        """Hold ``writer`` open as an event stream until the client goes away."""

        sub = self.subscribe()
        disconnected = asyncio.ensure_future(reader.read())
        try:
            head = ["HTTP/1.1 200 OK"]
            head.extend(f"{name}: {value}" for name, value in SSE_HEADERS + tuple(headers))
            writer.write(("\r\n".join(head) + "\r\n\r\n").encode("latin-1"))
            writer.write(PING.encode().encode("utf-8"))
            await writer.drain()
            while not disconnected.done():
                pending = asyncio.ensure_future(sub.next(heartbeat))
                await asyncio.wait({pending, disconnected}, return_when=asyncio.FIRST_COMPLETED)
                if not pending.done():
                    pending.cancel()
                    with contextlib.suppress(asyncio.CancelledError):
                        await pending
                    break
                event = pending.result() or PING
                writer.write(event.encode().encode("utf-8"))
                await writer.drain()
        except (ConnectionError, OSError, RuntimeError) as exc:
            logger.debug("%s stream write failed: %s", self.name, exc)
        finally:
            self.unsubscribe(sub)
            if not disconnected.done():
                disconnected.cancel()
            with contextlib.suppress(asyncio.CancelledError, ConnectionError, OSError):
                await disconnected
            with contextlib.suppress(ConnectionError, OSError, RuntimeError):
                writer.close()


Job = Callable[[], Awaitable[str]]


class DeferredExecutor:
    """Fire-and-forget jobs whose result is published as one patch."""

    def __init__(self, channel: Channel) -> None:
        self.channel = channel
        self._tasks: Set["asyncio.Task[None]"] = set()

    @property
    def pending(self) -> int:
        return len(self._tasks)

    def schedule(self, job: Job, target_id: str, swap: str) -> "asyncio.Task[None]":
        task = asyncio.get_running_loop().create_task(self._run(job, target_id, swap))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def _run(self, job: Job, target_id: str, swap: str) -> None:
        # let the initiating response flush first
        await asyncio.sleep(0)
        try:
            html = await job()
        except Exception as exc:
            logger.debug("deferred job for %r dropped: %r", target_id, exc)
            return
        if not target_id:
            return
        self.channel.publish_patch(target_id, swap, html)

    async def drain(self) -> None:
        while self._tasks:
            await asyncio.gather(*tuple(self._tasks), return_exceptions=True)


def resolve_later(value: Any) -> Job:
    """Wrap an awaitable as a job for :meth:`DeferredExecutor.schedule`."""

    async def job() -> str:
        result = await value
        return "" if result is None else str(result)

    return job
