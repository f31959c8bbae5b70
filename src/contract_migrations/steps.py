"""Deployment steps for contract-migrations library."""

from dataclasses import dataclass, field
from typing import Any, Iterable, List, Mapping, Optional, Sequence, Tuple

from .exceptions import ContractNotDeployedError, StepError, StepFailureReason
from .transport import Transport
from .types import AccountRef, NetworkConfig, StepKind


def resolve_account(ref: AccountRef, accounts: Sequence[str]) -> str:
    """
    Resolve an AccountRef against the signer's account list.

    Raises:
        StepError: If the index is outside the account list
    """
    if not 0 <= ref.index < len(accounts):
        raise StepError(
            f"Account index {ref.index} not available ({len(accounts)} account(s) unlocked)",
            reason=StepFailureReason.INVALID_ACCOUNT,
        )
    return accounts[ref.index]


@dataclass(frozen=True)
class DeployStep:
    """
    A single unit of deployment work, identified by its ordinal.

    CREATE steps instantiate ``contract`` and run initializer ``method``.
    CALL steps invoke ``method`` on the already created ``contract``.
    ``args`` may contain AccountRef placeholders; ``sender`` signs the step.
    """

    ordinal: int
    kind: StepKind
    contract: str
    method: str
    args: Tuple[Any, ...] = ()
    sender: AccountRef = field(default_factory=lambda: AccountRef(0))

    def describe(self) -> str:
        if self.kind is StepKind.CREATE:
            return f"create {self.contract} (init {self.method})"
        return f"call {self.contract}.{self.method}"

    def resolve_args(self, accounts: Sequence[str]) -> List[str]:
        return [
            resolve_account(a, accounts) if isinstance(a, AccountRef) else str(a)
            for a in self.args
        ]

    def execute(
        self,
        network: NetworkConfig,
        accounts: Sequence[str],
        transport: Transport,
        deployed: Mapping[str, Optional[str]],
    ) -> Optional[str]:
        """
        Execute this step against a network.

        Args:
            network: Target network
            accounts: Ordered account list from the network's signer
            transport: Contract-management transport
            deployed: Contract name -> address for contracts already created
                      on this network (address may be None if unknown)

        Returns:
            Created contract address for CREATE steps (None if not reported),
            None for CALL steps

        Raises:
            ContractNotDeployedError: If a CALL targets a contract not yet created
            StepError: If the transport reports a failure
        """
        if self.kind is StepKind.CALL:
            # Checked before touching the signer or transport
            if self.contract not in deployed:
                raise ContractNotDeployedError(
                    f"Contract '{self.contract}' has not been created on network '{network.name}'"
                )
            address = deployed[self.contract]
            if address is None:
                raise StepError(
                    f"Address of contract '{self.contract}' on network '{network.name}' "
                    "was not recorded at creation"
                )

        sender = resolve_account(self.sender, accounts)
        args = self.resolve_args(accounts)

        if self.kind is StepKind.CREATE:
            return transport.create(network, self.contract, self.method, args, sender)

        transport.call(network, address, self.method, args, sender)
        return None


def build_steps(declarations: Iterable[Mapping[str, Any]]) -> List[DeployStep]:
    """
    Build ordered DeploySteps from a declarative list.

    Each declaration has ``kind`` ("create" or "call"), ``contract``,
    ``method``, and optional ``args`` and ``sender`` (an account index or
    AccountRef). Ordinals are assigned by position, starting at 0.
    """
    steps = []
    for ordinal, declaration in enumerate(declarations):
        sender = declaration.get("sender", 0)
        if not isinstance(sender, AccountRef):
            sender = AccountRef(sender)
        steps.append(
            DeployStep(
                ordinal=ordinal,
                kind=StepKind(declaration["kind"]),
                contract=declaration["contract"],
                method=declaration["method"],
                args=tuple(declaration.get("args", ())),
                sender=sender,
            )
        )
    return steps
