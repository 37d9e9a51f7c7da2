"""Shared fixtures: a fresh App per test and a raw-socket client for it."""

import asyncio
import contextlib
import json
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import pytest

from srui_patch import SSEEvent
from srui_server import App


@dataclass
class Reply:
    status: int
    headers: Dict[str, str]
    body: str


def parse_event(block: str) -> SSEEvent:
    """Parse one SSE frame (without its trailing blank line)."""
    event_type: Optional[str] = None
    data_lines: List[str] = []
    for line in block.split("\n"):
        if line.startswith("event: "):
            event_type = line[7:]
        elif line.startswith("data: "):
            data_lines.append(line[6:])
    return SSEEvent(data="\n".join(data_lines), event=event_type)


async def read_reply(reader: asyncio.StreamReader) -> Reply:
    head = await reader.readuntil(b"\r\n\r\n")
    lines = head.decode("latin-1").split("\r\n")
    status = int(lines[0].split()[1])
    headers: Dict[str, str] = {}
    for line in lines[1:]:
        if ":" in line:
            name, value = line.split(":", 1)
            headers[name.strip().lower()] = value.strip()
    body = await reader.readexactly(int(headers.get("content-length", "0")))
    return Reply(status, headers, body.decode("utf-8"))


def build_request(method: str, path: str, body: bytes = b"", headers: Optional[Dict[str, str]] = None) -> bytes:
    lines = [f"{method} {path} HTTP/1.1", "Host: test"]
    lines.extend(f"{name}: {value}" for name, value in (headers or {}).items())
    if body:
        lines.append(f"Content-Length: {len(body)}")
    return ("\r\n".join(lines) + "\r\n\r\n").encode("latin-1") + body


class Stream:
    def __init__(self, reader: asyncio.StreamReader, headers: Dict[str, str]) -> None:
        self.reader = reader
        self.headers = headers

    async def next(self, timeout: float = 2.0) -> SSEEvent:
        raw = await asyncio.wait_for(self.reader.readuntil(b"\n\n"), timeout)
        return parse_event(raw.decode("utf-8").rstrip("\n"))

    async def next_event(self, name: str, timeout: float = 2.0) -> SSEEvent:
        while True:
            event = await self.next(timeout)
            if event.event == name:
                return event


class Client:
    """Speaks just enough HTTP/1.1 to drive a running App."""

    def __init__(self, port: int) -> None:
        self.port = port
        self._writers: List[asyncio.StreamWriter] = []

    async def connect(self):
        reader, writer = await asyncio.open_connection("127.0.0.1", self.port)
        self._writers.append(writer)
        return reader, writer

    async def request(self, method: str, path: str, body: Any = None, headers: Optional[Dict[str, str]] = None) -> Reply:
        if body is None:
            payload = b""
        elif isinstance(body, bytes):
            payload = body
        else:
            payload = json.dumps(body).encode("utf-8")
        reader, writer = await self.connect()
        writer.write(build_request(method, path, payload, headers))
        await writer.drain()
        return await asyncio.wait_for(read_reply(reader), 5)

    async def get(self, path: str, **kwargs: Any) -> Reply:
        return await self.request("GET", path, **kwargs)

    async def post(self, path: str, items: Any = None, **kwargs: Any) -> Reply:
        return await self.request("POST", path, body=items, **kwargs)

    async def stream(self, path: str) -> Stream:
        reader, writer = await self.connect()
        writer.write(build_request("GET", path))
        await writer.drain()
        head = await asyncio.wait_for(reader.readuntil(b"\r\n\r\n"), 5)
        headers: Dict[str, str] = {}
        for line in head.decode("latin-1").split("\r\n")[1:]:
            if ":" in line:
                name, value = line.split(":", 1)
                headers[name.strip().lower()] = value.strip()
        stream = Stream(reader, headers)
        # every stream opens with a ping
        await stream.next()
        return stream

    async def close(self) -> None:
        for writer in self._writers:
            writer.close()
            with contextlib.suppress(ConnectionError, OSError):
                await writer.wait_closed()


@pytest.fixture
def app() -> App:
    return App("en")


@pytest.fixture
async def serve():
    """Start an App on an ephemeral port; returns a Client bound to it."""
    apps: List[App] = []
    clients: List[Client] = []

    async def start(application: App) -> Client:
        server = await application.start("127.0.0.1", 0)
        client = Client(server.sockets[0].getsockname()[1])
        apps.append(application)
        clients.append(client)
        return client

    yield start

    for client in clients:
        await client.close()
    for application in apps:
        await application.executor.drain()
        await application.close()
