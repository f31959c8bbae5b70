"""Main API for contract-migrations library."""

import logging
from pathlib import Path
from typing import Callable, List, Mapping, Optional, Sequence, Tuple, Union

from .config import get_network, load_networks
from .exceptions import (
    ConfigError,
    MigrationError,
    MigrationFailure,
    RecordCorruptedError,
    RecordLockedError,
    SignerError,
    StepError,
)
from .records import MigrationRecord, MigrationRecordStore, utc_now
from .signers import Signer, signer_for
from .steps import DeployStep
from .transport import Transport, ZosCliTransport
from .types import AppliedStep, MigrationReport, NetworkConfig, RunnerState, StepKind

logger = logging.getLogger(__name__)


class MigrationRunner:
    """Applies ordered deployment steps to a network, once each."""

    def __init__(
        self,
        networks: Mapping[str, NetworkConfig],
        transport: Transport,
        record_store: Optional[MigrationRecordStore] = None,
        signer_factory: Optional[Callable[[NetworkConfig], Signer]] = None,
    ):
        """
        Initialize the migration runner.

        Args:
            networks: Network name -> NetworkConfig
            transport: Transport used to execute CREATE and CALL steps
            record_store: Where migration records live
                          If None, uses ./.contract-migrations
            signer_factory: Builds the signer capability for a network
                            If None, uses signers.signer_for
        """
        self.networks = networks
        self.transport = transport
        self.record_store = record_store if record_store is not None else MigrationRecordStore()
        self.signer_factory = signer_factory

        self.state = RunnerState.IDLE
        self.current_ordinal: Optional[int] = None
        self.failed_ordinal: Optional[int] = None

    @classmethod
    def from_config(
        cls,
        config_path: Optional[Union[Path, str]] = None,
        state_root: Optional[Union[Path, str]] = None,
        transport: Optional[Transport] = None,
    ) -> "MigrationRunner":
        """
        Build a runner from a configuration file.

        Raises:
            ConfigError: If the configuration cannot be loaded
        """
        return cls(
            load_networks(config_path),
            transport if transport is not None else ZosCliTransport(),
            MigrationRecordStore(state_root),
        )

    @staticmethod
    def _ordered(steps: Sequence[DeployStep]) -> List[DeployStep]:
        ordered = sorted(steps, key=lambda s: s.ordinal)
        for previous, step in zip(ordered, ordered[1:]):
            if previous.ordinal == step.ordinal:
                raise MigrationError(
                    MigrationFailure.INVALID_STEPS,
                    ValueError(f"Duplicate step ordinal {step.ordinal}"),
                )
        return ordered

    def _fail(self, error: MigrationError) -> MigrationError:
        self.state = RunnerState.FAILED
        self.failed_ordinal = error.ordinal
        return error

    def status(
        self, network_name: str, steps: Sequence[DeployStep]
    ) -> List[Tuple[DeployStep, Optional[AppliedStep]]]:
        """
        Report which steps are applied on a network without executing any.

        Raises:
            MigrationError: If the network is unknown or the record is unreadable
        """
        try:
            get_network(self.networks, network_name)
        except ConfigError as e:
            raise MigrationError(MigrationFailure.CONFIG_NOT_FOUND, e) from e

        try:
            record = self.record_store.load(network_name)
        except (RecordCorruptedError, OSError) as e:
            raise MigrationError(MigrationFailure.RECORD_UNREADABLE, e) from e

        return [(step, record.steps.get(step.ordinal)) for step in self._ordered(steps)]

    def run(self, network_name: str, steps: Sequence[DeployStep]) -> MigrationReport:
        """
        Apply all unapplied steps to a network in ascending ordinal order.

        Steps already recorded as applied are skipped. The first failure
        stops the run; only successful steps are recorded, so a rerun
        resumes from the first unapplied ordinal.

        Args:
            network_name: Configured network to migrate
            steps: Deployment steps; ordinals must be unique

        Returns:
            MigrationReport listing applied and skipped ordinals

        Raises:
            MigrationError: On unknown network, invalid steps, a held lock,
                            an unreadable record, signer failure, the first
                            failing step (with its ordinal), or a record
                            that cannot be written after a step ran
        """
        self.state = RunnerState.IDLE
        self.current_ordinal = None
        self.failed_ordinal = None

        try:
            network = get_network(self.networks, network_name)
        except ConfigError as e:
            raise self._fail(MigrationError(MigrationFailure.CONFIG_NOT_FOUND, e)) from e

        try:
            ordered = self._ordered(steps)
        except MigrationError as e:
            raise self._fail(e)

        try:
            with self.record_store.lock(network_name):
                return self._run_locked(network, ordered)
        except RecordLockedError as e:
            raise self._fail(MigrationError(MigrationFailure.RECORD_LOCKED, e)) from e
        except OSError as e:
            raise self._fail(MigrationError(MigrationFailure.RECORD_UNWRITABLE, e)) from e

    def _run_locked(self, network: NetworkConfig, ordered: List[DeployStep]) -> MigrationReport:
        try:
            record = self.record_store.load(network.name)
        except (RecordCorruptedError, OSError) as e:
            raise self._fail(MigrationError(MigrationFailure.RECORD_UNREADABLE, e)) from e

        self.state = RunnerState.RUNNING
        report = MigrationReport(network=network.name, state=RunnerState.RUNNING)

        pending = []
        for step in ordered:
            if record.is_applied(step.ordinal):
                logger.info("Step %d (%s) already applied, skipping", step.ordinal, step.describe())
                report.skipped.append(step.ordinal)
            else:
                pending.append(step)

        if pending:
            accounts = self._resolve_accounts(network)
            for step in pending:
                self._apply(step, network, accounts, record)
                report.applied.append(step.ordinal)

        self.current_ordinal = None
        self.state = RunnerState.COMPLETED
        report.state = RunnerState.COMPLETED
        logger.info(
            "Migration of '%s' completed: %d applied, %d skipped",
            network.name,
            len(report.applied),
            len(report.skipped),
        )
        return report

    def _resolve_accounts(self, network: NetworkConfig) -> List[str]:
        try:
            factory = self.signer_factory if self.signer_factory is not None else signer_for
            return list(factory(network).accounts())
        except ConfigError as e:
            raise self._fail(MigrationError(MigrationFailure.INVALID_CONFIG, e)) from e
        except SignerError as e:
            raise self._fail(MigrationError(MigrationFailure.SIGNER_FAILED, e)) from e

    def _apply(
        self,
        step: DeployStep,
        network: NetworkConfig,
        accounts: List[str],
        record: MigrationRecord,
    ) -> None:
        self.current_ordinal = step.ordinal
        logger.info("Running step %d: %s on '%s'", step.ordinal, step.describe(), network.name)

        try:
            address = step.execute(network, accounts, self.transport, record.deployed_contracts())
        except StepError as e:
            logger.warning("Step %d failed (%s): %s", step.ordinal, e.reason.value, e)
            raise self._fail(
                MigrationError(MigrationFailure.STEP_FAILED, e, ordinal=step.ordinal)
            ) from e

        record.mark_applied(
            AppliedStep(
                ordinal=step.ordinal,
                applied_at=utc_now(),
                kind=step.kind,
                contract=step.contract,
                method=step.method,
                address=address if step.kind is StepKind.CREATE else None,
            )
        )
        try:
            self.record_store.save(record)
        except OSError as e:
            logger.warning(
                "Step %d ran on '%s' but could not be recorded: %s", step.ordinal, network.name, e
            )
            raise self._fail(
                MigrationError(MigrationFailure.RECORD_UNWRITABLE, e, ordinal=step.ordinal)
            ) from e
        logger.info("Step %d applied", step.ordinal)
