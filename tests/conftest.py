"""Shared pytest fixtures for contract-migrations tests."""

import json
import shutil
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Set

import pytest

from contract_migrations.config import load_networks
from contract_migrations.exceptions import StepError
from contract_migrations.records import MigrationRecordStore
from contract_migrations.runner import MigrationRunner
from contract_migrations.types import NetworkConfig

ACCOUNTS = [
    "0xf39Fd6e51aad88F6F4ce6aB8827279cffFb92266",
    "0x70997970C51812dc3A010C7d01b50e0d17dc79C8",
]


class FakeTransport:
    """In-memory transport recording every operation it is asked to perform."""

    def __init__(self):
        self.operations: List[Dict[str, Any]] = []
        self.fail_contracts: Set[str] = set()
        self.fail_methods: Set[str] = set()
        self._next_address = 0x1000

    def create(
        self,
        network: NetworkConfig,
        contract: str,
        initializer: str,
        args: Sequence[str],
        sender: str,
    ) -> Optional[str]:
        self.operations.append(
            {
                "op": "create",
                "network": network.name,
                "contract": contract,
                "initializer": initializer,
                "args": list(args),
                "sender": sender,
            }
        )
        if contract in self.fail_contracts:
            raise StepError(f"zos create {contract} exited with status 1")
        self._next_address += 1
        return "0x" + format(self._next_address, "040x")

    def call(
        self,
        network: NetworkConfig,
        address: str,
        method: str,
        args: Sequence[str],
        sender: str,
    ) -> None:
        self.operations.append(
            {
                "op": "call",
                "network": network.name,
                "address": address,
                "method": method,
                "args": list(args),
                "sender": sender,
            }
        )
        if method in self.fail_methods:
            raise StepError(f"zos send-tx {method} exited with status 1")


class FakeSigner:
    """Signer returning a fixed account list."""

    def __init__(self, accounts: List[str]):
        self._accounts = accounts
        self.calls = 0

    def accounts(self) -> List[str]:
        self.calls += 1
        return list(self._accounts)


@pytest.fixture
def fixtures_dir() -> Path:
    """Return the path to the fixtures directory."""
    return Path(__file__).parent / "fixtures"


@pytest.fixture
def networks_config_path(fixtures_dir: Path) -> Path:
    """Return path to the sample network configuration."""
    return fixtures_dir / "networks.json"


@pytest.fixture
def networks(networks_config_path: Path) -> Dict[str, NetworkConfig]:
    """Load the sample network configuration."""
    return load_networks(networks_config_path)


@pytest.fixture
def temp_state_dir(tmp_path: Path) -> Path:
    """Create a temporary state directory for tests."""
    state_dir = tmp_path / ".contract-migrations"
    state_dir.mkdir(parents=True, exist_ok=True)
    return state_dir


@pytest.fixture
def record_store(temp_state_dir: Path) -> MigrationRecordStore:
    return MigrationRecordStore(temp_state_dir)


@pytest.fixture
def sample_record_file(fixtures_dir: Path, temp_state_dir: Path) -> Path:
    """Copy the sample record (Migrations and CallMeMaybe created) for network 'local'."""
    record_path = temp_state_dir / "local.json"
    shutil.copy(fixtures_dir / "sample_record.json", record_path)
    return record_path


@pytest.fixture
def transport() -> FakeTransport:
    return FakeTransport()


@pytest.fixture
def accounts() -> List[str]:
    """Account list returned by the fake signer."""
    return list(ACCOUNTS)


@pytest.fixture
def signer(accounts: List[str]) -> FakeSigner:
    return FakeSigner(accounts)


@pytest.fixture
def runner(
    networks: Dict[str, NetworkConfig],
    transport: FakeTransport,
    record_store: MigrationRecordStore,
    signer: FakeSigner,
) -> MigrationRunner:
    """MigrationRunner wired to the fake transport and signer."""
    return MigrationRunner(networks, transport, record_store, signer_factory=lambda network: signer)


@pytest.fixture
def read_record(temp_state_dir: Path):
    """Return a function reading the raw record JSON for a network."""

    def _read(network: str) -> Dict[str, Any]:
        with open(temp_state_dir / f"{network}.json") as f:
            return json.load(f)

    return _read
