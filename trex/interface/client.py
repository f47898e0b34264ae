import logging
import sys
from pathlib import Path
from typing import Iterable, Optional, Sequence, TextIO

from colorama import Fore, Style

from ..api import TRexSession, PacketListener, TeslaRuleParser, RuleParser, build_publication
from ..api.models import RulePacket, SubPacket, PubPacket, Notification
from ..api.types import EngineType, Const

"""
===================================================================================
This module takes the T-Rex session API and provides a higher level client
for scripts and command line tools.
===================================================================================

Terms:
TRexClient = Parses rules, builds typed publications from strings, and sends
             them over one TRexSession.
ConsoleListener = A PacketListener which prints notifications as they arrive.
"""


class TRexClient:
    def __init__(self,
                 host: str,
                 port: int = Const.DEFAULT_PORT,
                 logger: Optional[logging.Logger] = None,
                 print_traffic: bool = False,
                 connect_timeout: Optional[float] = None,
                 engine: EngineType = EngineType.CPU,
                 parser: Optional[RuleParser] = None,
                 session: Optional[TRexSession] = None):
        self.logger = logger or logging.getLogger(__name__)
        self.engine = engine
        self.parser: RuleParser = parser or TeslaRuleParser(logger=self.logger)
        self.session: TRexSession = session or TRexSession(host, port, logger=self.logger, print_traffic=print_traffic, connect_timeout=connect_timeout)

    async def __aenter__(self):
        await self.connect()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    # ============================
    # Setup / Start / Stop
    # ============================

    async def connect(self) -> None:
        await self.session.connect()

    async def close(self) -> None:
        await self.session.close()

    def add_listener(self, listener: PacketListener) -> None:
        self.session.add_listener(listener)

    async def start_listening(self) -> None:
        await self.session.start()

    async def wait_closed(self) -> None:
        await self.session.wait_closed()

    # ============================
    # Rules / Subscriptions / Publications
    # ============================

    async def send_rule(self, rule_text: str, assigned_id: int = Const.DEFAULT_RULE_ID, engine: Optional[EngineType] = None) -> RulePacket:
        """Parse a TESLA rule and deploy it. Nothing is sent if parsing fails."""
        rule = self.parser.parse(rule_text, assigned_id)
        engine = self.engine if engine is None else engine
        await self.session.submit_rule(rule, engine)
        self.logger.info(f"Rule {assigned_id} submitted to the {engine.name} engine")
        return rule

    async def send_rule_file(self, path: str | Path, assigned_id: int = Const.DEFAULT_RULE_ID, engine: Optional[EngineType] = None) -> RulePacket:
        rule_text = Path(path).read_text(encoding="utf-8")
        return await self.send_rule(rule_text, assigned_id, engine)

    async def subscribe(self, event_types: Iterable[int]) -> list[SubPacket]:
        sent = await self.session.subscribe(event_types)
        self.logger.info(f"Subscribed to event types {[s.event_type for s in sent]}")
        return sent

    async def publish(self, event_type: int, keys: Sequence[str], values: Sequence[str]) -> PubPacket:
        """Publish an event whose attribute values are given as strings; each value's type is inferred"""
        pub = build_publication(event_type, keys, values)
        await self.session.publish(pub)
        self.logger.info(f"Published event type {event_type} with {len(pub)} attributes")
        return pub


class ConsoleListener(PacketListener):
    """Prints every notification, and remembers whether the connection failed"""

    def __init__(self, stream: Optional[TextIO] = None, colour: bool = True):
        self.stream = stream or sys.stdout
        self.colour = colour
        self.connection_failed = False

    def _print(self, colour: str, text: str) -> None:
        if self.colour:
            text = colour + text + Style.RESET_ALL
        print(text, file=self.stream, flush=True)

    async def on_notification(self, packet: Notification) -> None:
        self._print(Fore.CYAN, f"PubPacket received: {packet}")

    async def on_connection_error(self) -> None:
        self.connection_failed = True
        self._print(Fore.RED, "Connection error. Exiting.")
