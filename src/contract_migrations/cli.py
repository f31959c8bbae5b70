"""
Command line interface for contract-migrations.

Usage:
    # Apply all pending steps to the local node
    contract-migrate migrate --network local

    # Use a configuration file and a custom state directory
    contract-migrate migrate --network ropsten --config networks.json --state-dir .state

    # Show which steps are applied
    contract-migrate status --network local
"""

import argparse
import logging
import os
import sys
from typing import List, Optional

from .constants import CONFIG_ENV, DEFAULT_STEP_TIMEOUT, DEFAULT_ZOS_COMMAND
from .exceptions import ConfigError, MigrationError
from .migrations import default_steps
from .runner import MigrationRunner
from .transport import ZosCliTransport


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="contract-migrate",
        description="Apply contract deployment migrations to a blockchain network",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")

    subparsers = parser.add_subparsers(dest="command", required=True)

    for name, help_text in (
        ("migrate", "Run all unapplied steps for a network"),
        ("status", "Show applied and pending steps for a network"),
    ):
        sub = subparsers.add_parser(name, help=help_text)
        sub.add_argument("--network", required=True, help="Configured network name")
        sub.add_argument(
            "--config",
            default=os.environ.get(CONFIG_ENV),
            help=f"Network configuration JSON (default: ${CONFIG_ENV} or built-in networks)",
        )
        sub.add_argument("--state-dir", default=None, help="Directory for migration records")
        sub.add_argument(
            "--zos-command", default=DEFAULT_ZOS_COMMAND, help="Contract-management CLI executable"
        )
        sub.add_argument(
            "--timeout",
            type=float,
            default=DEFAULT_STEP_TIMEOUT,
            help="Seconds a single step may take",
        )

    return parser


def _status(runner: MigrationRunner, network: str) -> int:
    for step, applied in runner.status(network, default_steps()):
        marker = applied.applied_at if applied is not None else "pending"
        print(f"{step.ordinal:>3}  {step.describe():<40} {marker}")
    return 0


def _migrate(runner: MigrationRunner, network: str) -> int:
    report = runner.run(network, default_steps())
    print(
        f"Migrated '{report.network}': {len(report.applied)} step(s) applied, "
        f"{len(report.skipped)} already applied"
    )
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        runner = MigrationRunner.from_config(
            args.config,
            args.state_dir,
            ZosCliTransport(command=args.zos_command, timeout=args.timeout),
        )
    except ConfigError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return 1

    try:
        if args.command == "status":
            return _status(runner, args.network)
        return _migrate(runner, args.network)
    except MigrationError as e:
        if e.ordinal is not None:
            print(f"Migration failed at step {e.ordinal}: {e.cause}", file=sys.stderr)
        else:
            print(f"Migration failed ({e.failure.value}): {e.cause}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
