"""Declared migration steps of this project."""

from .steps import DeployStep, build_steps
from .types import AccountRef

# Account 0 owns the contracts; account 1 acts as the proxy admin that sends
# the create transactions.
OWNER = AccountRef(0)
ADMIN = AccountRef(1)

MIGRATIONS = [
    {
        "kind": "create",
        "contract": "Migrations",
        "method": "initialize",
        "args": [OWNER],
        "sender": ADMIN,
    },
    {
        "kind": "create",
        "contract": "CallMeMaybe",
        "method": "init",
        "args": [OWNER, "maybe"],
        "sender": ADMIN,
    },
    {
        "kind": "call",
        "contract": "CallMeMaybe",
        "method": "setName",
        "args": ["or not"],
        "sender": OWNER,
    },
]


def default_steps() -> list[DeployStep]:
    """Return the project's migration steps in ordinal order."""
    return build_steps(MIGRATIONS)
