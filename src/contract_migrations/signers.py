"""Signer capabilities for contract-migrations library.

A signer exposes the ordered list of accounts a migration may sign with.
Key handling is delegated: local nodes manage their own unlocked accounts,
and remote providers derive accounts from a mnemonic through eth-account.
"""

import logging
import os
from typing import List, Mapping, Optional, Protocol

import requests
from eth_account import Account
from eth_utils import ValidationError

from .constants import DERIVATION_PATH
from .exceptions import MissingSecretError, SignerError
from .types import NetworkConfig, RemoteProvider

logger = logging.getLogger(__name__)


class Signer(Protocol):
    """Anything that can list the accounts available for signing."""

    def accounts(self) -> List[str]: ...


class NodeAccountsSigner:
    """Accounts unlocked on the node itself, listed via eth_accounts."""

    def __init__(self, rpc_url: str, timeout: float = 30):
        self.rpc_url = rpc_url
        self.timeout = timeout

    def accounts(self) -> List[str]:
        """
        Fetch the node's account list.

        Returns:
            Ordered list of account addresses

        Raises:
            SignerError: On network errors, HTTP errors, non-JSON replies or RPC errors
        """
        logger.debug("Requesting eth_accounts from %s", self.rpc_url)
        try:
            response = requests.post(
                self.rpc_url,
                json={
                    "jsonrpc": "2.0",
                    "method": "eth_accounts",
                    "params": [],
                    "id": 1,
                },
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            raise SignerError(f"Network error during RPC call to {self.rpc_url}: {e}") from e

        if response.status_code != 200:
            raise SignerError(f"RPC request failed with status {response.status_code}")

        try:
            result = response.json()
        except ValueError as e:
            raise SignerError(f"RPC response from {self.rpc_url} is not valid JSON: {e}") from e

        if not isinstance(result, dict):
            raise SignerError(f"Malformed eth_accounts response: {result}")
        if "error" in result:
            raise SignerError(f"RPC error: {result['error']}")

        accounts = result.get("result")
        if not isinstance(accounts, list):
            raise SignerError(f"Malformed eth_accounts response: {result}")

        return accounts


class MnemonicSigner:
    """Accounts derived from a mnemonic held in an environment variable."""

    def __init__(self, provider: RemoteProvider, environ: Optional[Mapping[str, str]] = None):
        self.provider = provider
        self._environ = os.environ if environ is None else environ

    def _mnemonic(self) -> str:
        mnemonic = self._environ.get(self.provider.mnemonic_env)
        if not mnemonic:
            raise MissingSecretError(
                f"Environment variable ${self.provider.mnemonic_env} must hold the wallet mnemonic"
            )
        return mnemonic

    def accounts(self) -> List[str]:
        """
        Derive num_addresses accounts starting at address_index.

        Raises:
            MissingSecretError: If the mnemonic environment variable is unset
            SignerError: If the mnemonic is rejected by the derivation library
        """
        mnemonic = self._mnemonic()
        Account.enable_unaudited_hdwallet_features()

        start = self.provider.address_index
        stop = start + self.provider.num_addresses
        accounts = []
        for index in range(start, stop):
            try:
                account = Account.from_mnemonic(
                    mnemonic, account_path=DERIVATION_PATH.format(index=index)
                )
            except (ValidationError, ValueError) as e:
                # Never include the mnemonic in the message
                raise SignerError(
                    f"Cannot derive account {index} from ${self.provider.mnemonic_env}: "
                    f"{type(e).__name__}"
                ) from None
            accounts.append(account.address)

        logger.debug("Derived %d account(s) from $%s", len(accounts), self.provider.mnemonic_env)
        return accounts


def signer_for(network: NetworkConfig) -> Signer:
    """Pick the signer capability matching a network's configuration."""
    if network.provider is not None:
        return MnemonicSigner(network.provider)
    return NodeAccountsSigner(network.rpc_url)
