"""Data types and dataclasses for contract-migrations library."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Union


class StepKind(Enum):
    """
    Deployment step kinds.

    Value strings define de/serialization law for the migration record.
    """

    CREATE = "create"
    CALL = "call"


class RunnerState(Enum):
    """Lifecycle of a single MigrationRunner.run() invocation."""

    IDLE = "idle"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"


@dataclass(frozen=True)
class RemoteProvider:
    """Remote RPC provider whose accounts are derived from an external secret."""

    rpc_url: str
    mnemonic_env: str  # Name of the environment variable holding the mnemonic
    address_index: int = 0  # First derived account
    num_addresses: int = 1  # Number of accounts to unlock


@dataclass(frozen=True)
class NetworkConfig:
    """Connection parameters for a named deployment target."""

    name: str  # e.g., "local", "ropsten"
    host: Optional[str] = None
    port: Optional[int] = None
    network_id: Union[int, str] = "*"  # "*" matches any network id
    gas: Optional[int] = None
    gas_price: Optional[int] = None  # In wei
    provider: Optional[RemoteProvider] = None

    @property
    def rpc_url(self) -> str:
        """JSON-RPC endpoint: the provider URL, or http://host:port for a local node."""
        if self.provider is not None:
            return self.provider.rpc_url
        return f"http://{self.host}:{self.port}"


@dataclass(frozen=True)
class AccountRef:
    """Placeholder for the account at ``index`` in the resolved account list."""

    index: int


@dataclass(frozen=True)
class AppliedStep:
    """A step recorded as applied in the migration record."""

    ordinal: int
    applied_at: str  # UTC ISO-8601 timestamp
    kind: StepKind
    contract: str
    method: str
    address: Optional[str] = None  # Set for CREATE steps when the transport reports it

    def to_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {
            "ordinal": self.ordinal,
            "applied_at": self.applied_at,
            "kind": self.kind.value,
            "contract": self.contract,
            "method": self.method,
        }
        if self.address is not None:
            result["address"] = self.address
        return result

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "AppliedStep":
        return cls(
            ordinal=int(data["ordinal"]),
            applied_at=data["applied_at"],
            kind=StepKind(data["kind"]),
            contract=data["contract"],
            method=data["method"],
            address=data.get("address"),
        )


@dataclass
class MigrationReport:
    """Outcome of a completed migration run."""

    network: str
    applied: List[int] = field(default_factory=list)  # Ordinals executed in this run
    skipped: List[int] = field(default_factory=list)  # Ordinals already applied earlier
    state: RunnerState = RunnerState.COMPLETED
