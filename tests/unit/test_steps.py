"""Unit tests for deployment steps."""

import pytest

from contract_migrations.exceptions import (
    ContractNotDeployedError,
    StepError,
    StepFailureReason,
)
from contract_migrations.migrations import default_steps
from contract_migrations.steps import DeployStep, build_steps, resolve_account
from contract_migrations.types import AccountRef, NetworkConfig, StepKind

LOCAL = NetworkConfig(name="local", host="127.0.0.1", port=8545)


class TestResolveAccount:
    def test_resolves_index(self, accounts):
        assert resolve_account(AccountRef(1), accounts) == accounts[1]

    @pytest.mark.parametrize("index", [2, -1])
    def test_out_of_range(self, accounts, index):
        with pytest.raises(StepError) as exc_info:
            resolve_account(AccountRef(index), accounts)

        assert exc_info.value.reason is StepFailureReason.INVALID_ACCOUNT


class TestBuildSteps:
    """Test building steps from declarations."""

    def test_assigns_ordinals_by_position(self):
        steps = build_steps(
            [
                {"kind": "create", "contract": "A", "method": "init"},
                {"kind": "call", "contract": "A", "method": "go", "args": ["x"], "sender": 1},
            ]
        )

        assert [s.ordinal for s in steps] == [0, 1]
        assert steps[0].kind is StepKind.CREATE
        assert steps[0].sender == AccountRef(0)
        assert steps[0].args == ()
        assert steps[1].kind is StepKind.CALL
        assert steps[1].args == ("x",)
        assert steps[1].sender == AccountRef(1)

    def test_unknown_kind(self):
        with pytest.raises(ValueError):
            build_steps([{"kind": "destroy", "contract": "A", "method": "x"}])

    def test_steps_are_immutable(self):
        step = build_steps([{"kind": "create", "contract": "A", "method": "init"}])[0]

        with pytest.raises(AttributeError):
            step.contract = "B"


class TestDefaultSteps:
    """Test the project's declared migrations."""

    def test_declared_sequence(self):
        steps = default_steps()

        assert [(s.ordinal, s.kind, s.contract, s.method) for s in steps] == [
            (0, StepKind.CREATE, "Migrations", "initialize"),
            (1, StepKind.CREATE, "CallMeMaybe", "init"),
            (2, StepKind.CALL, "CallMeMaybe", "setName"),
        ]

    def test_arguments_resolve_against_accounts(self, accounts):
        migrations, call_me_maybe, set_name = default_steps()

        assert migrations.resolve_args(accounts) == [accounts[0]]
        assert call_me_maybe.resolve_args(accounts) == [accounts[0], "maybe"]
        assert set_name.resolve_args(accounts) == ["or not"]
        assert migrations.sender == AccountRef(1)
        assert set_name.sender == AccountRef(0)


class TestExecute:
    """Test DeployStep.execute against the fake transport."""

    def test_create_passes_resolved_arguments(self, transport, accounts):
        step = default_steps()[1]

        address = step.execute(LOCAL, accounts, transport, {})

        assert address is not None
        assert transport.operations == [
            {
                "op": "create",
                "network": "local",
                "contract": "CallMeMaybe",
                "initializer": "init",
                "args": [accounts[0], "maybe"],
                "sender": accounts[1],
            }
        ]

    def test_call_uses_deployed_address(self, transport, accounts):
        step = default_steps()[2]

        result = step.execute(LOCAL, accounts, transport, {"CallMeMaybe": "0xabc"})

        assert result is None
        assert transport.operations[0]["op"] == "call"
        assert transport.operations[0]["address"] == "0xabc"
        assert transport.operations[0]["args"] == ["or not"]
        assert transport.operations[0]["sender"] == accounts[0]

    def test_call_on_undeployed_contract(self, transport, accounts):
        step = default_steps()[2]

        with pytest.raises(ContractNotDeployedError) as exc_info:
            step.execute(LOCAL, accounts, transport, {"Migrations": "0xdef"})

        assert exc_info.value.reason is StepFailureReason.NOT_DEPLOYED
        assert transport.operations == []

    def test_call_without_recorded_address(self, transport, accounts):
        step = default_steps()[2]

        with pytest.raises(StepError):
            step.execute(LOCAL, accounts, transport, {"CallMeMaybe": None})

        assert transport.operations == []

    def test_transport_failure_propagates(self, transport, accounts):
        transport.fail_contracts.add("Migrations")

        with pytest.raises(StepError):
            default_steps()[0].execute(LOCAL, accounts, transport, {})

    def test_sender_outside_account_list(self, transport):
        step = DeployStep(ordinal=0, kind=StepKind.CREATE, contract="A", method="init", sender=AccountRef(1))

        with pytest.raises(StepError) as exc_info:
            step.execute(LOCAL, ["0xonly"], transport, {})

        assert exc_info.value.reason is StepFailureReason.INVALID_ACCOUNT
        assert transport.operations == []
