import json
import os
from pathlib import Path
from typing import Dict

import yaml
from ape import networks

from chaindeploy.errors import ConfigurationError


def _load_yaml(filepath: Path) -> dict:
    """Loads a YAML file."""
    try:
        with open(filepath, "r") as file:
            return yaml.safe_load(file)
    except FileNotFoundError:
        raise ConfigurationError(f"Params file not found at {filepath}")
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Params file at {filepath} is not valid YAML: {e}") from e
    except (OSError, UnicodeDecodeError) as e:
        raise ConfigurationError(f"Could not read params file at {filepath}: {e}") from e


def _load_json(filepath: Path) -> dict:
    """Loads a JSON file."""
    with open(filepath, "r") as file:
        return json.load(file)


def check_etherscan_plugin() -> None:
    """
    Checks that the ape-etherscan plugin is installed and that
    the appropriate API key environment variable is set.
    """
    try:
        from ape_etherscan.utils import API_KEY_ENV_KEY_MAP
    except ImportError:
        raise ConfigurationError("Please install the ape-etherscan plugin to verify contracts.")
    ecosystem_name = networks.provider.network.ecosystem.name
    explorer_envvar = API_KEY_ENV_KEY_MAP.get(ecosystem_name)
    api_key = os.environ.get(explorer_envvar) if explorer_envvar else None
    if not api_key:
        raise ConfigurationError(f"{explorer_envvar or 'Explorer API key'} is not set.")


def verify_contracts(contracts: Dict[str, str], explorer=None) -> None:
    """Publishes the source of each deployed contract to the network's block explorer."""
    explorer = explorer or networks.provider.network.explorer
    if explorer is None:
        raise ConfigurationError("No block explorer configured for the active network.")
    for name, address in contracts.items():
        print(f"(i) Verifying {name} at {address}...")
        explorer.publish_contract(address)


def _print_addresses(contracts: Dict[str, str], indent: str = "\t") -> None:
    for name, address in contracts.items():
        print(f"{indent}{name}: {address}")
