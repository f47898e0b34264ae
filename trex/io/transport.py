"""
T-Rex wire-level transport.

This module implements the stream side of the T-Rex client protocol using asyncio.
It contains the TRexTransport class for writing and reading whole frames over
one TCP connection.

Terms:
- Frame = A packet type byte plus an opaque payload, as carried on the wire
- Transport = A class which owns the connection and moves Frames across it

Frame layout:
  [packet_type (u8), payload_length (u32, big-endian), payload...]

Example usage:
async def main():
    transport = await TRexTransport.open("localhost", 50254)
    async with transport:
        await transport.write_frame(Frame(packet_type=0x02, payload=bytes([0, 0, 0x08, 0x34])))
        frame = await transport.read_frame()
        print(frame.packet_type, frame.payload.hex())

asyncio.run(main())
"""

import asyncio
import logging
import struct
from dataclasses import dataclass
from typing import Optional, Self

from ..exceptions import TRexConnectionError


# Constants
class TransportConst:
    """Constants for the TRexTransport"""
    HEADER = struct.Struct(">BI")
    MAX_FRAME_SIZE = 16 * 1024 * 1024
    DEFAULT_CONNECT_TIMEOUT = 5.0


@dataclass
class Frame:
    """Represents one packet as carried on the wire"""
    packet_type: int
    payload: bytes

    def to_bytes(self) -> bytes:
        """Convert frame to wire format"""
        return TransportConst.HEADER.pack(self.packet_type & 0xFF, len(self.payload)) + self.payload


class TRexTransport:
    """
    Owns one TCP connection to a T-Rex server.
      - Writes are serialised by a lock so concurrent senders never interleave partial frames.
      - Reads are expected from a single reader (the session's receive loop).
      - Any failure to read a whole frame is a connection failure: the stream can't be resynchronised.
    """

    def __init__(self, host: str, port: int, logger: Optional[logging.Logger] = None):
        self.host = host
        self.port = port
        self.logger = logger or logging.getLogger(__name__)
        self._reader: Optional[asyncio.StreamReader] = None
        self._writer: Optional[asyncio.StreamWriter] = None
        self._write_lock = asyncio.Lock()
        self._closed = False

    @classmethod
    async def open(cls, host: str, port: int, timeout: Optional[float] = None, logger: Optional[logging.Logger] = None) -> Self:
        self = cls(host, port, logger)
        if timeout is None: timeout = TransportConst.DEFAULT_CONNECT_TIMEOUT
        try:
            self._reader, self._writer = await asyncio.wait_for(asyncio.open_connection(host, port), timeout=timeout)
        except asyncio.TimeoutError as e:
            raise TRexConnectionError(f"Timed out connecting to {host}:{port} after {timeout}s") from e
        except OSError as e:
            raise TRexConnectionError(f"Unable to connect to {host}:{port}: {e}") from e
        self.logger.info(f"Connected to T-Rex server at {host}:{port}")
        return self

    async def write_frame(self, frame: Frame) -> None:
        """Write one frame; raises OSError (or ConnectionError) if the write can't complete"""
        if self._writer is None or self._closed:
            raise ConnectionResetError(f"Connection to {self.host}:{self.port} is closed")
        wire = frame.to_bytes()
        async with self._write_lock:
            self._writer.write(wire)
            await self._writer.drain()

    async def read_frame(self) -> Frame:
        """Block until a whole frame has arrived"""
        if self._reader is None or self._closed:
            raise TRexConnectionError(f"Connection to {self.host}:{self.port} is closed")
        try:
            header = await self._reader.readexactly(TransportConst.HEADER.size)
            packet_type, length = TransportConst.HEADER.unpack(header)
            if length > TransportConst.MAX_FRAME_SIZE:
                raise TRexConnectionError(f"Frame of {length} bytes exceeds maximum of {TransportConst.MAX_FRAME_SIZE}, stream is out of sync")
            payload = await self._reader.readexactly(length)
        except asyncio.IncompleteReadError as e:
            raise TRexConnectionError(f"Connection to {self.host}:{self.port} closed by peer") from e
        except OSError as e:
            raise TRexConnectionError(f"Connection to {self.host}:{self.port} lost: {e}") from e
        return Frame(packet_type=packet_type, payload=payload)

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    async def close(self):
        """Close the transport"""
        if self._writer and not self._closed:
            self._closed = True
            self._writer.close()
            try:
                await self._writer.wait_closed()
            except OSError as e:
                self.logger.debug(f"Error while closing connection to {self.host}:{self.port}: {e}")
            self.logger.info(f"Connection to {self.host}:{self.port} closed")
