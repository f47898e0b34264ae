import asyncio
import dataclasses
import logging
import traceback
from abc import ABC, abstractmethod
from typing import Awaitable, Callable, Iterable, Optional, Self

from colorama import Fore, Style

from ..io import TRexTransport, Frame
from ..exceptions import TRexError, TRexConnectionError, TRexSendError, TRexNotConnectedError, TRexArgumentError, TRexDecodeError
from .codec import encode_packet, decode_frame
from .models import RulePacket, SubPacket, PubPacket, Notification, Packet
from .types import EngineType, PacketType, SessionState

"""
===================================================================================
This module implements a T-Rex client session on top of trex.io.
===================================================================================

Terms:
TRexSession = Owns one connection to a T-Rex server, sends rules, subscriptions
              and publications, and runs the receive loop.
PacketListener = Implemented by callers to receive notifications and the
                 connection-error signal.

Lifecycle:
CREATED -> CONNECTED -> LISTENING -> TERMINATED
Sending is valid while CONNECTED or LISTENING. TERMINATED is final.
"""


class PacketListener(ABC):
    """Receives packets delivered by a TRexSession's receive loop"""

    @abstractmethod
    async def on_notification(self, packet: Notification) -> None:
        """Called once per received notification, in arrival order"""

    @abstractmethod
    async def on_connection_error(self) -> None:
        """Called at most once, when the connection fails while listening"""


TransportFactory = Callable[..., Awaitable[TRexTransport]]


class TRexSession:

    def __init__(self,
                 host: str,
                 port: int,
                 logger: Optional[logging.Logger] = None,
                 print_traffic: bool = False,
                 connect_timeout: Optional[float] = None,
                 transport_factory: Optional[TransportFactory] = None):
        self.host = host
        self.port = port
        self.logger = logger or logging.getLogger(__name__)
        self.print_traffic = print_traffic
        self.connect_timeout = connect_timeout
        self.state = SessionState.CREATED

        self._transport_factory: TransportFactory = transport_factory or TRexTransport.open
        self._transport: Optional[TRexTransport] = None
        self._listeners: list[PacketListener] = []
        self._receive_task: Optional[asyncio.Task] = None
        self._terminated = asyncio.Event()
        self._error_reported = False

    @classmethod
    async def create(cls, host: str, port: int, **kwargs) -> Self:
        """Create a session and connect it"""
        self = cls(host, port, **kwargs)
        await self.connect()
        return self

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    @property
    def endpoint(self) -> tuple[str, int]:
        return self.host, self.port

    @property
    def running(self) -> bool:
        return self.state == SessionState.LISTENING

    def is_connected(self) -> bool:
        return self.state in (SessionState.CONNECTED, SessionState.LISTENING)

    # ============================
    # CONNECTION
    # ============================

    async def connect(self) -> None:
        """Establish the connection; raises TRexConnectionError if the server can't be reached"""
        match self.state:
            case SessionState.CONNECTED | SessionState.LISTENING:
                self.logger.warning(f"Session to {self.host}:{self.port} already connected")
                return
            case SessionState.TERMINATED:
                raise TRexNotConnectedError(f"Session to {self.host}:{self.port} has terminated")
        self._transport = await self._transport_factory(self.host, self.port, timeout=self.connect_timeout, logger=self.logger)
        self.state = SessionState.CONNECTED

    async def close(self) -> None:
        """Stop the receive loop and close the connection. Listeners are not notified."""
        if self.state == SessionState.TERMINATED and self._transport is None:
            return
        self.state = SessionState.TERMINATED
        task = self._receive_task
        if task and not task.done() and task is not asyncio.current_task():
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass
        await self._close_transport()
        self._terminated.set()

    async def wait_closed(self) -> None:
        """Wait until the session has terminated"""
        await self._terminated.wait()

    async def _close_transport(self) -> None:
        transport, self._transport = self._transport, None
        if transport:
            await transport.close()

    def _ensure_connected(self) -> None:
        if not self.is_connected():
            raise TRexNotConnectedError(f"Session to {self.host}:{self.port} is {self.state.value}")

    # ============================
    # PACKET SENDING
    # ============================

    async def send(self, packet: Packet) -> None:
        """Write one packet. Raises TRexNotConnectedError or TRexSendError; never retries."""
        self._ensure_connected()
        frame = encode_packet(packet)
        try:
            await self._transport.write_frame(frame)
        except OSError as e:
            raise TRexSendError(f"Failed to send {PacketType(frame.packet_type).name} packet to {self.host}:{self.port}: {e}") from e
        self._log_traffic("SENT", frame)
        self.logger.debug(f"Sent {packet}")

    async def submit_rule(self, rule: RulePacket, engine: EngineType = EngineType.CPU) -> None:
        """Send a parsed rule to be run on the given execution engine"""
        await self.send(dataclasses.replace(rule, engine=engine))

    async def subscribe(self, event_types: Iterable[int]) -> list[SubPacket]:
        """
        Send one subscription per event type. Every subscription is attempted;
        if any of them fail, an ExceptionGroup of the failures is raised afterwards.
        """
        event_types = list(event_types)
        if not event_types:
            raise TRexArgumentError("At least one event type is required to subscribe")
        self._ensure_connected()
        sent: list[SubPacket] = []
        errors: list[TRexError] = []
        for event_type in event_types:
            packet = SubPacket(event_type=event_type)
            try:
                await self.send(packet)
                sent.append(packet)
            except (TRexSendError, TRexNotConnectedError) as e:
                self.logger.error(f"Subscription to event type {event_type} failed: {e}")
                errors.append(e)
        if errors:
            raise ExceptionGroup(f"{len(errors)} of {len(event_types)} subscriptions failed", errors)
        return sent

    async def publish(self, packet: PubPacket) -> None:
        await self.send(packet)

    # ============================
    # EVENT LISTENING
    # ============================

    def add_listener(self, listener: PacketListener) -> None:
        if listener not in self._listeners:
            self._listeners.append(listener)

    def remove_listener(self, listener: PacketListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    @property
    def listeners(self) -> tuple[PacketListener, ...]:
        return tuple(self._listeners)

    async def start(self) -> None:
        """Start the receive loop"""
        if self.state == SessionState.LISTENING:
            self.logger.warning(f"Receive loop for {self.host}:{self.port} already running")
            return
        self._ensure_connected()
        self.state = SessionState.LISTENING
        self._receive_task = asyncio.create_task(self._receive_loop())

    async def _receive_loop(self) -> None:
        try:
            while self.state == SessionState.LISTENING:
                frame = await self._transport.read_frame()
                self._log_traffic("RECV", frame)
                try:
                    packet = decode_frame(frame)
                except TRexDecodeError as e:
                    self.logger.warning(f"Ignoring malformed packet from {self.host}:{self.port}: {e}")
                    continue
                if not isinstance(packet, Notification):
                    self.logger.warning(f"Ignoring wrong packet: {packet}")
                    continue
                await self._dispatch(packet)
        except TRexConnectionError as e:
            if self.state == SessionState.TERMINATED:
                return  # Closed by us
            self.logger.error(f"Connection to {self.host}:{self.port} failed: {e}")
            await self._fail()
        except Exception as e:
            if self.state == SessionState.TERMINATED:
                return
            self.logger.error(f"Receive loop error: {e}")
            self.logger.error(traceback.format_exc())
            await self._fail()

    async def _dispatch(self, packet: Notification) -> None:
        for listener in self.listeners:
            try:
                await listener.on_notification(packet)
            except Exception:
                self.logger.exception(f"Listener {listener!r} failed to handle notification for event type {packet.event_type}")

    async def _fail(self) -> None:
        self.state = SessionState.TERMINATED
        await self._close_transport()
        if not self._error_reported:
            self._error_reported = True
            for listener in self.listeners:
                try:
                    await listener.on_connection_error()
                except Exception:
                    self.logger.exception(f"Listener {listener!r} failed to handle connection error")
        self._terminated.set()

    def _log_traffic(self, direction: str, frame: Frame) -> None:
        if not self.print_traffic:
            return
        kind = PacketType(frame.packet_type).name if frame.packet_type in PacketType._value2member_map_ else f"0x{frame.packet_type:02X}"
        print(Fore.MAGENTA + f"{direction}: {kind.ljust(12)}"
              + Fore.CYAN + f"  [{', '.join(f'0x{b:02X}' for b in frame.payload)}]"
              + Style.RESET_ALL)
