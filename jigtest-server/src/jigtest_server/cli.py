"""Command-line interface for the JIG test firmware.

Usage:
    # Answer host requests on the JIG UART
    jigtest serve --port /dev/ttyS0

    # Run one check locally and print the response frame
    jigtest check --gid 5 --did 3 --action R

    # Exercise MAC provisioning without burning fuses
    jigtest --emulate-otp check --gid 5 --did 11 --action W
"""

from __future__ import annotations

import argparse
import logging
import sys
from typing import Any

from jigtest_core.protocol import Request, Status
from jigtest_ethernet.facts import DEFAULT_INTERFACE
from jigtest_ethernet.macserver import DEFAULT_MAC_SERVER_URL, DEFAULT_MODEL

from jigtest_server.bootstrap import build_dispatcher
from jigtest_server.serial_link import CHECK_COMMAND, DEFAULT_BAUDRATE, JigServer, SerialLink

logger = logging.getLogger(__name__)


def setup_logging(debug: bool = False) -> None:
    """Configure logging."""
    level = logging.DEBUG if debug else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


def group_kwargs(args: argparse.Namespace) -> dict[str, Any]:
    """Collect the options forwarded to every group factory."""
    return {
        "interface": args.interface,
        "config_path": args.config,
        "mac_server_url": args.mac_server,
        "model": args.model,
        "emulate_otp": args.emulate_otp,
    }


def cmd_serve(args: argparse.Namespace) -> int:
    """Serve host requests over the serial port."""
    dispatcher = build_dispatcher(group_kwargs=group_kwargs(args))
    try:
        link = SerialLink(args.port, baudrate=args.baud)
    except OSError as exc:
        print(f"Error: {exc}")
        return 1

    server = JigServer(dispatcher, link)
    server.announce()
    try:
        server.serve_forever()
    except KeyboardInterrupt:
        logger.info("Interrupted, shutting down")
    finally:
        link.close()
    return 0


def cmd_check(args: argparse.Namespace) -> int:
    """Run one check and print its response frame."""
    try:
        request = Request(
            command=CHECK_COMMAND, ui_id=0, gid=args.gid, did=args.did, action=args.action
        )
    except ValueError as exc:
        print(f"Error: {exc}")
        return 1

    dispatcher = build_dispatcher(group_kwargs=group_kwargs(args))
    response = dispatcher.handle(request)
    print(response.encode(), end="")
    return 0 if response.status is Status.PASS else 2


def build_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog="jigtest",
        description="JIG test firmware",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--debug", action="store_true", help="Enable debug logging")
    parser.add_argument(
        "--config",
        help="Ethernet config file (default: $JIGTEST_ETHERNET_CONFIG or /boot/jig_ethernet.yaml)",
    )
    parser.add_argument(
        "--interface", default=DEFAULT_INTERFACE,
        help=f"Network interface under test (default: {DEFAULT_INTERFACE})"
    )
    parser.add_argument(
        "--mac-server", default=DEFAULT_MAC_SERVER_URL,
        help=f"MAC allocation service URL (default: {DEFAULT_MAC_SERVER_URL})"
    )
    parser.add_argument(
        "--model", default=DEFAULT_MODEL,
        help=f"Device model for MAC allocation (default: {DEFAULT_MODEL})"
    )
    parser.add_argument(
        "--emulate-otp", action="store_true",
        help="Use in-memory provisioning memory instead of the OTP fuses"
    )

    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    serve_parser = subparsers.add_parser("serve", help="Answer host requests on a serial port")
    serve_parser.add_argument("--port", required=True, help="Serial device (e.g., /dev/ttyS0)")
    serve_parser.add_argument(
        "--baud", type=int, default=DEFAULT_BAUDRATE,
        help=f"Baud rate (default: {DEFAULT_BAUDRATE})"
    )

    check_parser = subparsers.add_parser("check", help="Run one check and print the response")
    check_parser.add_argument("--gid", type=int, required=True, help="Group ID (5 = Ethernet)")
    check_parser.add_argument("--did", type=int, required=True, help="Device ID")
    check_parser.add_argument("--action", required=True, help="Action code (e.g., I, R, W)")

    return parser


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 1

    setup_logging(args.debug)

    if args.command == "serve":
        return cmd_serve(args)
    elif args.command == "check":
        return cmd_check(args)
    else:
        parser.print_help()
        return 1


if __name__ == "__main__":
    sys.exit(main())
