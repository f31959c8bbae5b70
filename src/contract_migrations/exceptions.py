"""Custom exception classes for contract-migrations library."""

from enum import Enum
from typing import Optional


class StepFailureReason(Enum):
    """Why a deployment step failed."""

    COMMAND_FAILED = "command-failed"
    REVERTED = "reverted"
    NOT_DEPLOYED = "not-deployed"
    UNREACHABLE = "unreachable"
    TIMEOUT = "timeout"
    INVALID_ACCOUNT = "invalid-account"


class MigrationFailure(Enum):
    """Why a migration run stopped."""

    CONFIG_NOT_FOUND = "config-not-found"
    INVALID_CONFIG = "invalid-config"
    INVALID_STEPS = "invalid-steps"
    RECORD_LOCKED = "record-locked"
    RECORD_UNREADABLE = "record-unreadable"
    RECORD_UNWRITABLE = "record-unwritable"
    SIGNER_FAILED = "signer-failed"
    STEP_FAILED = "step-failed"


class ContractMigrationError(Exception):
    """Base exception for migration-related errors."""

    pass


class ConfigError(ContractMigrationError, ValueError):
    """Raised when network configuration is unusable."""

    pass


class NetworkNotFoundError(ConfigError):
    """Raised when requested network is not configured."""

    pass


class InvalidConfigError(ConfigError):
    """Raised when a configuration file is malformed or fails schema validation."""

    pass


class ConfigFileNotFoundError(ConfigError, FileNotFoundError):
    """Raised when a configuration file does not exist."""

    pass


class MissingSecretError(ConfigError):
    """Raised when the environment variable holding a signer secret is unset."""

    pass


class SignerError(ContractMigrationError, RuntimeError):
    """Raised when the signer capability cannot produce an account list."""

    pass


class StepError(ContractMigrationError, RuntimeError):
    """Raised when a CREATE or CALL step fails on the remote side."""

    reason = StepFailureReason.COMMAND_FAILED

    def __init__(self, message: str, reason: Optional[StepFailureReason] = None):
        super().__init__(message)
        if reason is not None:
            self.reason = reason


class ContractNotDeployedError(StepError):
    """Raised when a CALL targets a contract that has not been created."""

    reason = StepFailureReason.NOT_DEPLOYED


class TransactionRevertedError(StepError):
    """Raised when the network reports a reverted transaction."""

    reason = StepFailureReason.REVERTED


class NetworkUnreachableError(StepError):
    """Raised when the network or transport cannot be reached."""

    reason = StepFailureReason.UNREACHABLE


class StepTimeoutError(StepError):
    """Raised when a step does not finish within the transport timeout."""

    reason = StepFailureReason.TIMEOUT


class RecordError(ContractMigrationError):
    """Base exception for migration record persistence errors."""

    pass


class RecordLockedError(RecordError):
    """Raised when another runner holds the record lock for a network."""

    pass


class RecordCorruptedError(RecordError, ValueError):
    """Raised when a migration record file cannot be parsed."""

    pass


class MigrationError(ContractMigrationError):
    """
    Raised when a migration run stops.

    Wraps the underlying ConfigError, RecordError, SignerError or StepError
    together with the ordinal of the failing step, when there is one.
    """

    def __init__(
        self,
        failure: MigrationFailure,
        cause: Optional[BaseException] = None,
        ordinal: Optional[int] = None,
    ):
        self.failure = failure
        self.cause = cause
        self.ordinal = ordinal

        message = failure.value
        if ordinal is not None:
            message += f" at step {ordinal}"
        if cause is not None:
            message += f": {cause}"
        super().__init__(message)
