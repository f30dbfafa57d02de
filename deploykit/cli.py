"""Command-line interface for deploykit.

Three subcommands share one configuration file:

``deploy``  fund the configured contract from the giver if needed, then deploy it.
``call``    run a built-in contract command with positional arguments.
``info``    print the configured contract's address, balance and state.
"""

from __future__ import annotations

import argparse
import logging
import sys
from typing import Any, Sequence

from .call import InvocationDispatcher, UsageError
from .commands import COMMANDS
from .config import ConfigurationError, load_deploy_config, load_tool_config
from .deploy import DeploymentOrchestrator
from .info import AccountInfo
from .ledger_client import LedgerRPCClient, RPCError, RPCTransportError, format_rpc_hint
from .reporter import Reporter

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Deploy and call smart contracts")
    parser.add_argument(
        "--config",
        default=None,
        help="Path to a YAML config file (default: ~/.deploykit.yaml)",
    )
    parser.add_argument("--url", default=None, help="Gateway URL, overrides net.url")
    parser.add_argument("--locale", default=None, help="Locale for balances, e.g. EN or ru")
    parser.add_argument("--keys", default=None, help="Key file of the contract to use")
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser(
        "deploy", help="fund the contract from the giver when needed, then deploy it"
    )

    call_parser = subparsers.add_parser(
        "call", help="call a contract method with positional arguments"
    )
    call_parser.add_argument("name", choices=sorted(COMMANDS), help="Built-in command to run")
    call_parser.add_argument("arguments", nargs="*", help="Positional command arguments")

    info_parser = subparsers.add_parser("info", help="print the contract's account state")
    info_parser.add_argument(
        "--address", default=None, help="Inspect this address instead of contract.address"
    )

    subparsers.add_parser("commands", help="list built-in call commands and their fields")
    return parser


def _overrides(args: argparse.Namespace) -> dict[str, Any]:
    overrides = {
        "url": args.url,
        "locale": args.locale,
        "keys": args.keys,
        "address": getattr(args, "address", None),
    }
    return {key: value for key, value in overrides.items() if value is not None}


def cmd_deploy(args: argparse.Namespace) -> int:
    config = load_deploy_config(config_path=args.config, overrides=_overrides(args))
    orchestrator = DeploymentOrchestrator(
        config, LedgerRPCClient(config.net), Reporter(config.locale)
    )
    outcome = orchestrator.run()
    logger.debug("Deployment finished: %s", outcome.value)
    return 1 if outcome.is_failure else 0


def cmd_call(args: argparse.Namespace) -> int:
    command = COMMANDS[args.name]
    config = load_tool_config(config_path=args.config, overrides=_overrides(args))
    dispatcher = InvocationDispatcher(
        config,
        command,
        args.arguments,
        LedgerRPCClient(config.net),
        Reporter(config.locale),
    )
    dispatcher.run()
    return 0


def cmd_info(args: argparse.Namespace) -> int:
    config = load_tool_config(config_path=args.config, overrides=_overrides(args))
    AccountInfo(config, LedgerRPCClient(config.net), Reporter(config.locale)).run()
    return 0


def cmd_commands() -> int:
    for name in sorted(COMMANDS):
        command = COMMANDS[name]
        print(f"{name}: {command.description}")
        print(f"    {' '.join(command.field_names)}")
    return 0


def _error_text(exc: Exception) -> str:
    text = f"error: {exc}"
    if isinstance(exc, RPCError):
        hint = format_rpc_hint(exc)
        if hint:
            text += f"\nHint: {hint}"
    return text + "\n"


def main(argv: Sequence[str] | None = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)
    if args.verbose:
        logging.getLogger().setLevel(logging.DEBUG)
    try:
        if args.command == "deploy":
            status = cmd_deploy(args)
        elif args.command == "call":
            status = cmd_call(args)
        elif args.command == "info":
            status = cmd_info(args)
        elif args.command == "commands":
            status = cmd_commands()
        else:  # pragma: no cover - argparse enforces choices
            raise UsageError(f"Unknown command: {args.command}")
    except KeyboardInterrupt:  # pragma: no cover - interactive use
        logger.info("Interrupted by user")
        status = 130
    except (UsageError, ConfigurationError, RPCError, RPCTransportError) as exc:
        parser.exit(1, _error_text(exc))
    if status:
        parser.exit(status)


if __name__ == "__main__":
    main(sys.argv[1:])
