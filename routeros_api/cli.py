"""Command-line interface for the RouterOS API client.

Connects to a device, sends one command and prints the returned records as
JSON. Configuration is loaded from files, environment variables and
command-line arguments with proper precedence.

    routeros-api --host 192.168.88.1 --username admin /interface/print ?type=ether
"""

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path

from routeros_api import __version__
from routeros_api.config import Settings, load_settings_from_file, set_settings
from routeros_api.infra.observability.logging import setup_logging as configure_logging
from routeros_api.infra.routeros.api_client import RouterOSApiClient
from routeros_api.infra.routeros.exceptions import RouterOSError, RouterOSTrapError

EXIT_OK = 0
EXIT_ERROR = 1
EXIT_TRAP = 2


def create_argument_parser() -> argparse.ArgumentParser:
    """Create command-line argument parser."""
    parser = argparse.ArgumentParser(
        prog="routeros-api",
        description="Send a command to a MikroTik RouterOS device over the API service",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )

    parser.add_argument(
        "words",
        nargs="+",
        metavar="WORD",
        help="Command path followed by =key=value / ?key=value words",
    )

    parser.add_argument(
        "--config", "-c", type=Path, help="Path to configuration file (YAML or TOML)"
    )

    # Device connection
    parser.add_argument("--host", help="RouterOS device hostname or IP")
    parser.add_argument("--port", type=int, help="API port (default: 8728, 8729 with --tls)")
    parser.add_argument("--username", "-u", help="RouterOS username")
    parser.add_argument("--password", "-p", help="RouterOS password")
    parser.add_argument("--tls", action="store_true", help="Use the api-ssl service")
    parser.add_argument("--timeout", type=float, help="Connection timeout in seconds")

    # Application settings
    parser.add_argument("--debug", action="store_true", help="Log every sentence on the wire")
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Logging level",
    )
    parser.add_argument("--log-format", choices=["json", "text"], help="Log output format")

    parser.add_argument("--version", "-v", action="version", version=f"%(prog)s {__version__}")

    return parser


def load_config_from_cli(args: list[str] | None = None) -> tuple[Settings, list[str]]:
    """Load configuration and command words from CLI arguments.

    Args:
        args: Command-line arguments (defaults to sys.argv[1:])

    Returns:
        Configured Settings instance and the command words

    Example:
        settings, words = load_config_from_cli(["--host", "10.0.0.1", "/system/identity/print"])
    """
    parser = create_argument_parser()
    parsed_args = parser.parse_args(args)

    if parsed_args.config:
        settings = load_settings_from_file(parsed_args.config)
    else:
        settings = Settings()

    cli_overrides: dict = {}

    if parsed_args.host is not None:
        cli_overrides["host"] = parsed_args.host

    if parsed_args.port is not None:
        cli_overrides["port"] = parsed_args.port

    if parsed_args.username is not None:
        cli_overrides["username"] = parsed_args.username

    if parsed_args.password is not None:
        cli_overrides["password"] = parsed_args.password

    if parsed_args.tls:
        cli_overrides["tls"] = True

    if parsed_args.timeout is not None:
        cli_overrides["timeout_seconds"] = parsed_args.timeout

    if parsed_args.debug:
        cli_overrides["debug"] = True
        cli_overrides["log_level"] = "DEBUG"

    if parsed_args.log_level is not None:
        cli_overrides["log_level"] = parsed_args.log_level

    if parsed_args.log_format is not None:
        cli_overrides["log_format"] = parsed_args.log_format

    if cli_overrides:
        settings = Settings(**{**settings.model_dump(), **cli_overrides})

    return settings, parsed_args.words


def setup_logging(settings: Settings) -> None:
    """Configure logging based on settings (logs go to stderr)."""
    configure_logging(level=settings.log_level, json_format=settings.log_format == "json")

    if settings.debug:
        logging.getLogger(__name__).warning("Debug mode enabled - wire traffic is logged")


async def run_command(settings: Settings, words: list[str]) -> list[dict[str, str]]:
    """Connect, send ``words`` and return the reply records."""
    async with RouterOSApiClient.from_settings(settings) as client:
        return await client.send(words)


def main(args: list[str] | None = None) -> int:
    """Main entry point for the RouterOS API CLI.

    Returns:
        Exit code (0 success, 1 connection/config error, 2 device trap)
    """
    try:
        settings, words = load_config_from_cli(args)
        set_settings(settings)
        setup_logging(settings)

        records = asyncio.run(run_command(settings, words))

    except FileNotFoundError as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_ERROR
    except ValueError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return EXIT_ERROR
    except RouterOSTrapError as e:
        print(f"Device error: {e.message}", file=sys.stderr)
        return EXIT_TRAP
    except RouterOSError as e:
        print(f"Connection error: {e}", file=sys.stderr)
        return EXIT_ERROR

    print(json.dumps(records, indent=2))
    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
