"""Configuration constants for contract-migrations library."""

# Built-in network table used when no configuration file is given.
# Mirrors the truffle network definitions the migrations were written against;
# secrets are referenced by environment variable name, never inlined.
DEFAULT_NETWORKS = {
    "local": {
        "host": "127.0.0.1",
        "port": 8545,
        "network_id": "*",
    },
    "ropsten": {
        "provider": {
            "rpc_url": "https://ropsten.infura.io/<YourAccessKey>",
            "mnemonic_env": "ROPSTEN_MNEMONIC",
            "address_index": 0,  # start with address[0]
            "num_addresses": 2,  # unlock address[0] and address[1]
        },
        "network_id": 3,
        "gas": 8000000,
        "gas_price": 20 * 1000000000,
    },
}

# Environment variable consulted by the CLI when --config is omitted
CONFIG_ENV = "CONTRACT_MIGRATIONS_CONFIG"

# Default name of the per-project state directory
STATE_DIR_NAME = ".contract-migrations"

# Contract-management CLI invoked by the subprocess transport
DEFAULT_ZOS_COMMAND = "zos"

# Seconds a single CLI invocation may run before it is treated as failed
DEFAULT_STEP_TIMEOUT = 600

# Standard Ethereum BIP-44 derivation path, formatted with the account index
DERIVATION_PATH = "m/44'/60'/0'/0/{index}"
