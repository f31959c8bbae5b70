"""Contract-management transports for contract-migrations library."""

import logging
import re
import shlex
import subprocess
from typing import List, Optional, Protocol, Sequence

from .constants import DEFAULT_STEP_TIMEOUT, DEFAULT_ZOS_COMMAND
from .exceptions import (
    NetworkUnreachableError,
    StepError,
    StepTimeoutError,
    TransactionRevertedError,
)
from .types import NetworkConfig

logger = logging.getLogger(__name__)

ADDRESS_PATTERN = re.compile(r"0x[0-9a-fA-F]{40}")


class Transport(Protocol):
    """
    Remote operations a deployment step can perform.

    Both operations block until the remote side reports a terminal outcome
    and raise StepError on failure.
    """

    def create(
        self,
        network: NetworkConfig,
        contract: str,
        initializer: str,
        args: Sequence[str],
        sender: str,
    ) -> Optional[str]:
        """Create and initialize a contract; return its address if known."""
        ...

    def call(
        self,
        network: NetworkConfig,
        address: str,
        method: str,
        args: Sequence[str],
        sender: str,
    ) -> None:
        """Invoke a method on a deployed contract and wait for confirmation."""
        ...


def format_args(args: Sequence[str]) -> str:
    """
    Join arguments the way the zos CLI expects them (comma separated).

    Raises:
        StepError: If an argument contains a comma, since zos would split it
    """
    values = [str(a) for a in args]
    for value in values:
        if "," in value:
            raise StepError(f"Argument {value!r} contains a comma and cannot be passed to zos --args")
    return ",".join(values)


def parse_created_address(output: str) -> Optional[str]:
    """
    Extract the created contract address from zos CLI output.

    Args:
        output: Captured stdout of `zos create`

    Returns:
        Last 0x-prefixed 40 hex digit token in output, or None if absent
    """
    matches = ADDRESS_PATTERN.findall(output)
    return matches[-1] if matches else None


class ZosCliTransport:
    """Transport that shells out to the ZeppelinOS command line tool."""

    def __init__(self, command: str = DEFAULT_ZOS_COMMAND, timeout: float = DEFAULT_STEP_TIMEOUT):
        # May carry a launcher prefix, e.g. "npx zos"
        self.command = command
        self.timeout = timeout

    def _argv(self, subcommand: str, *rest: str) -> List[str]:
        return [*shlex.split(self.command), subcommand, *rest]

    def _run(self, subcommand: str, argv: List[str]) -> subprocess.CompletedProcess:
        """
        Run a zos command to completion.

        Raises:
            NetworkUnreachableError: If the executable cannot be started
            StepTimeoutError: If the command exceeds the timeout
            TransactionRevertedError: If the command fails reporting a revert
            StepError: If the command exits with a non-zero status
        """
        logger.debug("Running %s", " ".join(argv))
        try:
            result = subprocess.run(
                argv,
                capture_output=True,
                text=True,
                timeout=self.timeout,
            )
        except OSError as e:
            raise NetworkUnreachableError(f"Cannot execute '{argv[0]}': {e}") from e
        except subprocess.TimeoutExpired as e:
            raise StepTimeoutError(
                f"'zos {subcommand}' did not finish within {self.timeout} seconds"
            ) from e

        if result.returncode != 0:
            output = (result.stderr or "").strip() or (result.stdout or "").strip()
            message = f"'zos {subcommand}' exited with status {result.returncode}: {output}"
            if "revert" in output.lower():
                raise TransactionRevertedError(message)
            raise StepError(message)

        return result

    def create(
        self,
        network: NetworkConfig,
        contract: str,
        initializer: str,
        args: Sequence[str],
        sender: str,
    ) -> Optional[str]:
        argv = self._argv("create", contract, "--init", initializer)
        if args:
            argv += ["--args", format_args(args)]
        argv += ["--network", network.name, "--from", sender]

        result = self._run("create", argv)
        address = parse_created_address(result.stdout or "")
        if address is None:
            logger.warning("zos create %s succeeded but printed no address", contract)
        return address

    def call(
        self,
        network: NetworkConfig,
        address: str,
        method: str,
        args: Sequence[str],
        sender: str,
    ) -> None:
        argv = self._argv("send-tx", "--to", address, "--method", method)
        if args:
            argv += ["--args", format_args(args)]
        argv += ["--network", network.name, "--from", sender]

        self._run("send-tx", argv)
