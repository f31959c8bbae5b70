"""Network configuration loading for contract-migrations library."""

import json
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Union

from jsonschema import Draft202012Validator

from .constants import DEFAULT_NETWORKS
from .exceptions import ConfigFileNotFoundError, InvalidConfigError, NetworkNotFoundError
from .types import NetworkConfig, RemoteProvider

NETWORKS_SCHEMA: Dict[str, Any] = {
    "$schema": "https://json-schema.org/draft/2020-12/schema",
    "type": "object",
    "required": ["networks"],
    "properties": {
        "networks": {
            "type": "object",
            "minProperties": 1,
            "additionalProperties": {"$ref": "#/$defs/network"},
        },
    },
    "$defs": {
        "network": {
            "type": "object",
            "properties": {
                "host": {"type": "string", "minLength": 1},
                "port": {"type": "integer", "minimum": 1, "maximum": 65535},
                "network_id": {
                    "anyOf": [
                        {"type": "integer", "minimum": 0},
                        {"const": "*"},
                    ]
                },
                "gas": {"type": "integer", "minimum": 1},
                "gas_price": {"type": "integer", "minimum": 0},
                "provider": {"$ref": "#/$defs/provider"},
            },
            "required": ["network_id"],
            # A network is either a directly reachable node or a remote provider
            "oneOf": [
                {"required": ["host", "port"], "not": {"required": ["provider"]}},
                {"required": ["provider"], "not": {"anyOf": [{"required": ["host"]}, {"required": ["port"]}]}},
            ],
            "additionalProperties": False,
        },
        "provider": {
            "type": "object",
            "properties": {
                "rpc_url": {"type": "string", "minLength": 1},
                "mnemonic_env": {"type": "string", "pattern": "^[A-Za-z_][A-Za-z0-9_]*$"},
                "address_index": {"type": "integer", "minimum": 0},
                "num_addresses": {"type": "integer", "minimum": 1},
            },
            "required": ["rpc_url", "mnemonic_env"],
            "additionalProperties": False,
        },
    },
}


def _reject_inline_secrets(data: Any) -> None:
    """Refuse configuration that embeds a mnemonic instead of referencing one."""
    if not isinstance(data, dict):
        return
    for name, network in (data.get("networks") or {}).items():
        if not isinstance(network, dict):
            continue
        provider = network.get("provider")
        if "mnemonic" in network or (isinstance(provider, dict) and "mnemonic" in provider):
            raise InvalidConfigError(
                f"Network '{name}' embeds a mnemonic; "
                "set provider.mnemonic_env to the name of an environment variable instead"
            )


def validate_config(data: Any) -> None:
    """
    Validate raw configuration data against NETWORKS_SCHEMA.

    Args:
        data: Parsed configuration document

    Raises:
        InvalidConfigError: If data embeds a secret or violates the schema
    """
    _reject_inline_secrets(data)

    validator = Draft202012Validator(NETWORKS_SCHEMA)
    errors = sorted(validator.iter_errors(data), key=lambda e: list(e.absolute_path))
    if errors:
        first = errors[0]
        location = "/".join(str(p) for p in first.absolute_path) or "<root>"
        raise InvalidConfigError(f"Invalid network configuration at {location}: {first.message}")


def parse_network(name: str, data: Mapping[str, Any]) -> NetworkConfig:
    """
    Build a NetworkConfig from one validated network entry.

    Args:
        name: Network name
        data: Network entry (host/port/network_id/gas/gas_price/provider)

    Returns:
        NetworkConfig instance
    """
    provider = None
    if "provider" in data:
        provider_data = data["provider"]
        provider = RemoteProvider(
            rpc_url=provider_data["rpc_url"],
            mnemonic_env=provider_data["mnemonic_env"],
            address_index=provider_data.get("address_index", 0),
            num_addresses=provider_data.get("num_addresses", 1),
        )

    return NetworkConfig(
        name=name,
        host=data.get("host"),
        port=data.get("port"),
        network_id=data["network_id"],
        gas=data.get("gas"),
        gas_price=data.get("gas_price"),
        provider=provider,
    )


def load_networks(config_path: Optional[Union[Path, str]] = None) -> Dict[str, NetworkConfig]:
    """
    Load all network definitions.

    Args:
        config_path: Path to a JSON configuration file.
                     If None, the built-in DEFAULT_NETWORKS table is used.

    Returns:
        Dictionary mapping network name -> NetworkConfig

    Raises:
        ConfigFileNotFoundError: If config_path does not exist
        InvalidConfigError: If the file is not valid JSON or fails validation
    """
    if config_path is None:
        data: Any = {"networks": DEFAULT_NETWORKS}
    else:
        path = Path(config_path)
        try:
            with open(path) as f:
                data = json.load(f)
        except FileNotFoundError as e:
            raise ConfigFileNotFoundError(f"Network configuration not found at {path}") from e
        except json.JSONDecodeError as e:
            raise InvalidConfigError(f"Network configuration at {path} is not valid JSON: {e}") from e

    validate_config(data)

    return {name: parse_network(name, entry) for name, entry in data["networks"].items()}


def get_network(networks: Mapping[str, NetworkConfig], name: str) -> NetworkConfig:
    """
    Look up a network by name.

    Raises:
        NetworkNotFoundError: If name is not configured
    """
    try:
        return networks[name]
    except KeyError:
        known = ", ".join(sorted(networks)) or "none"
        raise NetworkNotFoundError(f"Network '{name}' not configured (known: {known})") from None
