"""
Deploys the Fire rule, subscribes to Fire events, then feeds the server a
temperature reading followed by a smoke event so that one Fire notification
is produced.

Usage: python examples/fire_alarm.py [host] [port]
"""
import asyncio
import logging
import sys
from pathlib import Path

import trex
from trex.utils import setup_logging


SMOKE, TEMP, FIRE = 2000, 2001, 2100


class FireAlarm(trex.PacketListener):
    def __init__(self, logger: logging.Logger):
        self.logger = logger
        self.fires = asyncio.Queue()

    async def on_notification(self, packet: trex.Notification) -> None:
        self.logger.info(f"FIRE in {packet.get('area').value} at {packet.get('measuredTemp').value} degrees")
        await self.fires.put(packet)

    async def on_connection_error(self) -> None:
        self.logger.error("Lost connection to the T-Rex server")


async def main() -> int:
    host = sys.argv[1] if len(sys.argv) > 1 else "localhost"
    port = int(sys.argv[2]) if len(sys.argv) > 2 else 50254
    logger = setup_logging("INFO", logger=logging.getLogger("fire_alarm"))

    alarm = FireAlarm(logger)
    try:
        async with trex.TRexClient(host, port, logger=logger) as client:
            await client.send_rule_file(Path(__file__).with_name("fire.tesla"), assigned_id=FIRE)
            client.add_listener(alarm)
            await client.start_listening()
            await client.subscribe([FIRE])
            await client.publish(TEMP, ["area", "value"], ["kitchen", "50"])
            await client.publish(SMOKE, ["area"], ["kitchen"])
            await asyncio.wait_for(alarm.fires.get(), timeout=10)
    except trex.TRexConnectionError as e:
        logger.error(f"{e}")
        return -1
    except asyncio.TimeoutError:
        logger.error("No Fire notification within 10 seconds")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(trex.run_with_keyboard_interrupt(main))
