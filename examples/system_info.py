#!/usr/bin/env python3
"""
System overview example for the RouterOS API client.

This script demonstrates how to:
1. Connect and log in with settings from the environment
2. Send catalog commands (identity, resources, interfaces)
3. Handle device traps without dropping the connection
4. React to connection events

Usage:
    # Configure environment
    export ROUTEROS_API_HOST=192.168.88.1
    export ROUTEROS_API_USERNAME=admin
    export ROUTEROS_API_PASSWORD=secret

    # Run script
    python examples/system_info.py

    # Or with inline config
    python examples/system_info.py --host 10.0.0.1 --tls --json
"""

import argparse
import asyncio
import json
import sys
from typing import Any

from routeros_api.commands import INTERFACE, SYSTEM
from routeros_api.config import Settings
from routeros_api.infra.observability.logging import setup_logging
from routeros_api.infra.routeros import RouterOSApiClient, RouterOSError, RouterOSTrapError


async def collect_overview(client: RouterOSApiClient) -> dict[str, Any]:
    """Gather a small overview of the device."""
    identity = await client.send(SYSTEM.identity)
    resources = await client.send(SYSTEM.resources)
    interfaces = await client.send(INTERFACE.all)

    overview: dict[str, Any] = {
        "identity": identity[0].get("name") if identity else None,
        "version": resources[0].get("version") if resources else None,
        "uptime": resources[0].get("uptime") if resources else None,
        "cpu_load": resources[0].get("cpu-load") if resources else None,
        "interfaces": [
            {"name": item.get("name"), "type": item.get("type"), "running": item.get("running")}
            for item in interfaces
        ],
    }

    # Not every board has health sensors; a trap here is expected on CHR
    try:
        overview["health"] = await client.send(SYSTEM.health)
    except RouterOSTrapError as e:
        overview["health"] = None
        print(f"Health not available: {e.message}", file=sys.stderr)

    return overview


async def main_async(settings: Settings, as_json: bool) -> int:
    client = RouterOSApiClient.from_settings(settings)
    client.on(
        "connected", lambda: print(f"Connected to {client.host}:{client.port}", file=sys.stderr)
    )
    client.on("close", lambda: print("Connection closed", file=sys.stderr))

    async with client:
        overview = await collect_overview(client)

    if as_json:
        print(json.dumps(overview, indent=2))
    else:
        print(f"Identity:  {overview['identity']}")
        print(f"Version:   {overview['version']}")
        print(f"Uptime:    {overview['uptime']}")
        print(f"CPU load:  {overview['cpu_load']}%")
        print("Interfaces:")
        for interface in overview["interfaces"]:
            state = "up" if interface["running"] == "true" else "down"
            print(f"  {interface['name']:<16} {interface['type']:<10} {state}")

    return 0


def main() -> int:
    parser = argparse.ArgumentParser(description="Print a RouterOS system overview")
    parser.add_argument("--host", help="Device hostname or IP (default: ROUTEROS_API_HOST)")
    parser.add_argument("--tls", action="store_true", help="Use the api-ssl service")
    parser.add_argument("--json", action="store_true", help="Print JSON instead of text")
    args = parser.parse_args()

    overrides: dict[str, Any] = {}
    if args.host:
        overrides["host"] = args.host
    if args.tls:
        overrides["tls"] = True

    settings = Settings(**overrides)
    setup_logging(level=settings.log_level, json_format=settings.log_format == "json")

    try:
        return asyncio.run(main_async(settings, args.json))
    except RouterOSError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
