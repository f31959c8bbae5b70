"""
contract-migrations: ordered, idempotent contract deployment migrations
"""

from importlib.metadata import PackageNotFoundError, version

from .config import get_network, load_networks
from .exceptions import (
    ConfigError,
    ContractMigrationError,
    ContractNotDeployedError,
    MigrationError,
    MigrationFailure,
    NetworkNotFoundError,
    StepError,
    StepFailureReason,
)
from .migrations import default_steps
from .records import MigrationRecord, MigrationRecordStore
from .runner import MigrationRunner
from .steps import DeployStep, build_steps
from .transport import ZosCliTransport
from .types import AccountRef, NetworkConfig, RunnerState, StepKind

try:
    __version__ = version("contract-migrations")
except PackageNotFoundError:
    __version__ = None

__all__ = [
    "MigrationRunner",
    "MigrationRecord",
    "MigrationRecordStore",
    "DeployStep",
    "build_steps",
    "default_steps",
    "load_networks",
    "get_network",
    "ZosCliTransport",
    "AccountRef",
    "NetworkConfig",
    "RunnerState",
    "StepKind",
    "ContractMigrationError",
    "ConfigError",
    "NetworkNotFoundError",
    "StepError",
    "StepFailureReason",
    "ContractNotDeployedError",
    "MigrationError",
    "MigrationFailure",
]
