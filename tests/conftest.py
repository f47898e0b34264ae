"""Test configuration and fixtures."""

import asyncio
import socket
from typing import Callable

import pytest
import pytest_asyncio

from trex import PacketListener, Notification
from trex.api import encode_packet, Packet
from trex.io import Frame, TransportConst


class FakeTRexServer:
    """An in-process TCP server that records frames and can push frames back"""

    def __init__(self):
        self.frames: list[Frame] = []
        self.writers: list[asyncio.StreamWriter] = []
        self.connected = asyncio.Event()
        self.port: int = 0
        self._server = None
        self._frame_arrived = asyncio.Condition()

    async def start(self):
        self._server = await asyncio.start_server(self._handle, "127.0.0.1", 0)
        self.port = self._server.sockets[0].getsockname()[1]

    async def _handle(self, reader: asyncio.StreamReader, writer: asyncio.StreamWriter):
        self.writers.append(writer)
        self.connected.set()
        try:
            while True:
                header = await reader.readexactly(TransportConst.HEADER.size)
                packet_type, length = TransportConst.HEADER.unpack(header)
                payload = await reader.readexactly(length)
                async with self._frame_arrived:
                    self.frames.append(Frame(packet_type=packet_type, payload=payload))
                    self._frame_arrived.notify_all()
        except (asyncio.IncompleteReadError, ConnectionError):
            pass
        finally:
            writer.close()

    async def wait_for_frames(self, count: int, timeout: float = 2.0) -> list[Frame]:
        async def _wait():
            async with self._frame_arrived:
                await self._frame_arrived.wait_for(lambda: len(self.frames) >= count)
        await asyncio.wait_for(_wait(), timeout)
        return self.frames[:count]

    async def send_bytes(self, data: bytes):
        await asyncio.wait_for(self.connected.wait(), 2.0)
        writer = self.writers[-1]
        writer.write(data)
        await writer.drain()

    async def send_packet(self, packet: Packet):
        await self.send_bytes(encode_packet(packet).to_bytes())

    async def disconnect(self):
        await asyncio.wait_for(self.connected.wait(), 2.0)
        for writer in self.writers:
            writer.close()
            try:
                await writer.wait_closed()
            except ConnectionError:
                pass

    async def stop(self):
        if self.writers:
            await self.disconnect()
        self._server.close()
        await self._server.wait_closed()


class RecordingListener(PacketListener):
    def __init__(self):
        self.notifications: list[Notification] = []
        self.connection_errors = 0

    async def on_notification(self, packet: Notification) -> None:
        self.notifications.append(packet)

    async def on_connection_error(self) -> None:
        self.connection_errors += 1


async def wait_until(predicate: Callable[[], bool], timeout: float = 2.0):
    """Poll until predicate() is true"""
    async def _poll():
        while not predicate():
            await asyncio.sleep(0.01)
    await asyncio.wait_for(_poll(), timeout)


@pytest_asyncio.fixture
async def server():
    srv = FakeTRexServer()
    await srv.start()
    yield srv
    await srv.stop()


@pytest.fixture
def closed_port() -> int:
    """A local port with nothing listening on it"""
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
        s.bind(("127.0.0.1", 0))
        return s.getsockname()[1]


@pytest.fixture
def listener() -> RecordingListener:
    return RecordingListener()
