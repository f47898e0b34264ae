"""
Command line client.

Usage:
  trex-client <host> <port> [-rule <path>] [-sub <type> ...] [-pub <type> [<key> <val> ...]] ...

Example session against a local server:
  trex-client localhost 50254 -rule fire.tesla
  trex-client localhost 50254 -sub 2100
  trex-client localhost 50254 -pub 2001 area toto value 50
  trex-client localhost 50254 -pub 2000 area toto

Exits with -1 on an argument or connection error, 0 otherwise. With -sub the
client keeps printing notifications until the connection drops or Ctrl+C.
"""

import argparse
import logging
import sys
from typing import Optional, Sequence

from ..config import TRexConfig
from ..exceptions import TRexError, TRexConnectionError, TRexConfigurationError, TRexParseError
from ..api.types import EngineType
from ..utils import run_with_keyboard_interrupt, setup_logging
from .client import TRexClient, ConsoleListener


EXIT_OK = 0
EXIT_ERROR = -1


class _ArgumentParser(argparse.ArgumentParser):
    def error(self, message):
        self.print_usage(sys.stderr)
        print(f"{self.prog}: error: {message}", file=sys.stderr)
        sys.exit(EXIT_ERROR)


def build_parser() -> argparse.ArgumentParser:
    ap = _ArgumentParser(prog="trex-client", description="Command line client for the T-Rex CEP server", allow_abbrev=False)
    ap.add_argument("host", nargs="?", help="Server host (default: from -config)")
    ap.add_argument("port", nargs="?", type=int, help="Server port (default: 50254)")
    ap.add_argument("-rule", metavar="PATH", help="Send the TESLA rule in PATH")
    ap.add_argument("-rule-id", dest="rule_id", type=int, help="Event type assigned to the rule (default: 2000)")
    ap.add_argument("-engine", choices=[e.name for e in EngineType], help="Engine the rule runs on (default: CPU)")
    ap.add_argument("-sub", metavar="TYPE", type=int, nargs="+", action="extend", default=[], help="Subscribe to event types and print notifications")
    ap.add_argument("-pub", metavar="ARG", nargs="+", action="append", default=[], help="Publish: <type> [<key> <val> ...]")
    ap.add_argument("-config", metavar="YAML", help="Read settings from a YAML file")
    ap.add_argument("-traffic", action="store_true", default=None, help="Print every packet sent and received")
    ap.add_argument("-v", "--verbose", action="store_true", help="Log at DEBUG level")
    return ap


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    """Parse the command line; -pub groups become (event_type, keys, values) tuples in args.publications"""
    ap = build_parser()
    args = ap.parse_args(argv)

    args.publications = []
    for group in args.pub:
        try:
            event_type = int(group[0])
        except ValueError:
            ap.error(f"-pub event type must be an integer, got '{group[0]}'")
        pairs = group[1:]
        if len(pairs) % 2 != 0:
            ap.error(f"-pub {event_type}: keys and values must come in pairs")
        args.publications.append((event_type, pairs[0::2], pairs[1::2]))

    try:
        config = TRexConfig.from_yaml(args.config) if args.config else TRexConfig()
        args.settings = config.merged(
            host=args.host,
            port=args.port,
            rule_id=args.rule_id,
            engine=args.engine,
            print_traffic=args.traffic,
            log_level="DEBUG" if args.verbose else None,
        )
    except TRexConfigurationError as e:
        ap.error(str(e))
    if not args.settings.host:
        ap.error("a server host is required")

    args.rule_text = None
    if args.rule:
        try:
            with open(args.rule, encoding="utf-8") as f:
                args.rule_text = f.read()
        except OSError as e:
            ap.error(f"unable to read rule file {args.rule}: {e}")
    return args


async def run(args: argparse.Namespace, logger: Optional[logging.Logger] = None) -> int:
    settings: TRexConfig = args.settings
    logger = logger or logging.getLogger(__name__)
    client = TRexClient(settings.host, settings.port,
                        logger=logger,
                        print_traffic=settings.print_traffic,
                        connect_timeout=settings.connect_timeout,
                        engine=settings.engine)
    listener = ConsoleListener()
    exit_code = EXIT_OK

    try:
        await client.connect()
    except TRexConnectionError as e:
        logger.error(f"{e}")
        return EXIT_ERROR

    try:
        if args.sub:
            client.add_listener(listener)
            await client.start_listening()
            try:
                await client.subscribe(args.sub)
            except* TRexError as eg:
                for e in eg.exceptions:
                    logger.error(f"{e}")

        if args.rule_text is not None:
            try:
                await client.send_rule(args.rule_text, settings.rule_id)
            except TRexParseError as e:
                logger.error(f"Rule not sent: {e}")
                exit_code = EXIT_ERROR
            except TRexError as e:
                logger.error(f"Rule not sent: {e}")

        for event_type, keys, values in args.publications:
            try:
                await client.publish(event_type, keys, values)
            except (TRexError, ValueError) as e:
                logger.error(f"Event {event_type} not published: {e}")

        if args.sub:
            await client.wait_closed()
            if listener.connection_failed:
                exit_code = EXIT_ERROR
    finally:
        await client.close()

    return exit_code


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = parse_args(argv)
    logger = setup_logging(args.settings.log_level, args.settings.log_file, logging.getLogger("trex"))
    return run_with_keyboard_interrupt(lambda: run(args, logger))


if __name__ == "__main__":
    sys.exit(main())
