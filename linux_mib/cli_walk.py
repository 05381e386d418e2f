"""CLI for inspecting the MIB values computed from the running kernel."""

from __future__ import annotations

import argparse
import asyncio
import sys

from linux_mib.app_config import AppConfig
from linux_mib.app_logger import AppLogger
from linux_mib.mib_provider import build_provider
from linux_mib.snmp_responder import READ_ERRORS, SNMPResponder


def parse_oid(text: str) -> tuple[int, ...]:
    try:
        return tuple(int(part) for part in text.strip(".").split("."))
    except ValueError:
        raise argparse.ArgumentTypeError(f"Not a numeric OID: {text}") from None


def format_oid(oid: tuple[int, ...]) -> str:
    return ".".join(str(part) for part in oid)


async def _run(responder: SNMPResponder, oid: tuple[int, ...], get: bool) -> int:
    if get:
        try:
            value = await responder.handle_get_request(oid)
        except READ_ERRORS as e:
            print(f"{format_oid(oid)} = Error reading value: {e}", file=sys.stderr)
            return 2
        if value is None:
            print(f"{format_oid(oid)} = No Such Instance", file=sys.stderr)
            return 1
        print(f"{format_oid(oid)} = {value.prettyPrint()}")
        return 0

    for instance_oid, value in await responder.walk(oid):
        print(f"{format_oid(instance_oid)} = {value.prettyPrint()}")
    return 0


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        description="Print RFC1213-MIB / IPV6-MIB values read from /proc and /sys, "
        "the way an SNMP walk (or get) of this host would see them."
    )
    parser.add_argument(
        "oid",
        nargs="?",
        type=parse_oid,
        default=(1, 3, 6, 1, 2, 1),
        help="OID to walk from, or to get with --get (default: 1.3.6.1.2.1)",
    )
    parser.add_argument("--get", action="store_true", help="Fetch a single instance instead of walking")
    parser.add_argument(
        "--config",
        default="agent_config.yaml",
        help="Path to the config file (default: agent_config.yaml)",
    )
    args = parser.parse_args(argv)

    try:
        config = AppConfig(args.config)
    except FileNotFoundError:
        print(f"Error: Config file not found: {args.config}", file=sys.stderr)
        return 1

    AppLogger.configure(config)
    responder = SNMPResponder(build_provider(config))
    return asyncio.run(_run(responder, args.oid, args.get))


if __name__ == "__main__":
    sys.exit(main())
