"""Migration record persistence for contract-migrations library."""

import json
import logging
import os
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, Iterator, Optional, Union

from .constants import STATE_DIR_NAME
from .exceptions import RecordCorruptedError, RecordLockedError
from .types import AppliedStep, StepKind

logger = logging.getLogger(__name__)


def utc_now() -> str:
    """Current time as an ISO-8601 UTC timestamp."""
    return datetime.now(timezone.utc).isoformat(timespec="seconds")


class MigrationRecord:
    """Applied step ordinals for one network."""

    def __init__(self, network: str, steps: Optional[Dict[int, AppliedStep]] = None):
        self.network = network
        self.steps: Dict[int, AppliedStep] = dict(steps or {})

    def is_applied(self, ordinal: int) -> bool:
        return ordinal in self.steps

    def applied_ordinals(self) -> list[int]:
        return sorted(self.steps)

    def mark_applied(self, entry: AppliedStep) -> None:
        self.steps[entry.ordinal] = entry

    def deployed_contracts(self) -> Dict[str, Optional[str]]:
        """
        Contracts created on this network.

        Returns:
            Contract name -> address (None if the transport reported none);
            later creations of the same name win
        """
        deployed: Dict[str, Optional[str]] = {}
        for ordinal in self.applied_ordinals():
            entry = self.steps[ordinal]
            if entry.kind is StepKind.CREATE:
                deployed[entry.contract] = entry.address
        return deployed

    def to_dict(self) -> dict:
        return {
            "network": self.network,
            "steps": {str(o): self.steps[o].to_dict() for o in self.applied_ordinals()},
        }


class MigrationRecordStore:
    """
    Loads and saves MigrationRecords under a state directory.

    Each network keeps <network>.json and, while a run holds it, <network>.lock.
    """

    def __init__(self, state_root: Optional[Union[Path, str]] = None):
        self.state_root = state_root

    def paths(self, network: str) -> tuple[Path, Path]:
        """Record and lock paths for a network, resolved against the working directory."""
        if self.state_root is None:
            root = Path.cwd() / STATE_DIR_NAME
        else:
            root = Path(self.state_root).absolute()
        return root / f"{network}.json", root / f"{network}.lock"

    def load(self, network: str) -> MigrationRecord:
        """
        Load the record for a network.

        Returns:
            MigrationRecord, empty if no record file exists yet

        Raises:
            RecordCorruptedError: If the record file cannot be parsed
        """
        record_path, _ = self.paths(network)
        try:
            with open(record_path) as f:
                data = json.load(f)
        except FileNotFoundError:
            return MigrationRecord(network)
        except json.JSONDecodeError as e:
            raise RecordCorruptedError(f"Migration record {record_path} is not valid JSON: {e}") from e

        try:
            steps = {int(k): AppliedStep.from_dict(v) for k, v in data["steps"].items()}
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            raise RecordCorruptedError(f"Migration record {record_path} is malformed: {e}") from e

        return MigrationRecord(network, steps)

    def save(self, record: MigrationRecord) -> None:
        """
        Persist a record atomically.

        Creates parent directories if they don't exist.
        """
        record_path, _ = self.paths(record.network)
        record_path.parent.mkdir(parents=True, exist_ok=True)

        tmp_path = record_path.with_name(record_path.name + ".tmp")
        with open(tmp_path, "w") as f:
            json.dump(record.to_dict(), f, indent=2)
        os.replace(tmp_path, record_path)
        logger.debug("Saved migration record %s (%d step(s))", record_path, len(record.steps))

    @contextmanager
    def lock(self, network: str) -> Iterator[None]:
        """
        Hold the single-writer lock for a network.

        Raises:
            RecordLockedError: If another runner already holds it
        """
        _, lock_path = self.paths(network)
        lock_path.parent.mkdir(parents=True, exist_ok=True)
        try:
            fd = os.open(lock_path, os.O_CREAT | os.O_EXCL | os.O_WRONLY)
        except FileExistsError as e:
            raise RecordLockedError(
                f"Migration record for network '{network}' is locked by another run "
                f"(remove {lock_path} if no migration is running)"
            ) from e

        try:
            try:
                os.write(fd, str(os.getpid()).encode())
            finally:
                os.close(fd)
            yield
        finally:
            lock_path.unlink(missing_ok=True)
