import os
import re
from contextlib import contextmanager
from typing import Dict, Iterator, NamedTuple, Optional

from ape import accounts, networks
from ape.api import AccountAPI, ProviderAPI
from ape.exceptions import AccountsError

from chaindeploy.constants import LOCAL_ENDPOINT, LOCAL_NETWORK
from chaindeploy.errors import ConfigurationError

ENVIRONMENT_PLACEHOLDER = re.compile(r"\$\{([A-Za-z_][A-Za-z0-9_]*)\}")


class NetworkContext(NamedTuple):
    """The resolved endpoint, chain and signing account alias for one network name."""

    name: str
    endpoint: str
    chain_id: Optional[int]
    signer: Optional[str]

    @property
    def is_local(self) -> bool:
        return self.name == LOCAL_NETWORK


LOCAL_CONTEXT = NetworkContext(name=LOCAL_NETWORK, endpoint=LOCAL_ENDPOINT, chain_id=None, signer=None)


def _substitute_environment(value: str, field: str, network: str) -> str:
    """Replaces ${VAR} placeholders with environment variable values."""

    def _lookup(match: re.Match) -> str:
        envvar = match.group(1)
        resolved = os.environ.get(envvar)
        if not resolved:
            raise ConfigurationError(
                f"{envvar} is not set; required by '{field}' of network '{network}'."
            )
        return resolved

    return ENVIRONMENT_PLACEHOLDER.sub(_lookup, value)


def resolve_network(name: str, config: Dict) -> NetworkContext:
    """Resolves the network context for a network name declared in the params file."""
    networks_config = config.get("networks") or dict()
    if name not in networks_config:
        if name == LOCAL_NETWORK:
            return LOCAL_CONTEXT
        available = ", ".join(sorted(set(networks_config) | {LOCAL_NETWORK}))
        raise ConfigurationError(f"Unknown network '{name}'; expected one of: {available}.")

    network_config = networks_config[name] or dict()
    if not isinstance(network_config, dict):
        raise ConfigurationError(f"Malformed configuration for network '{name}'.")

    endpoint = network_config.get("endpoint")
    if not endpoint:
        raise ConfigurationError(f"endpoint is not set for network '{name}'.")
    endpoint = _substitute_environment(str(endpoint), field="endpoint", network=name)

    chain_id = network_config.get("chain_id")
    if chain_id is not None:
        try:
            chain_id = int(chain_id)
        except (TypeError, ValueError):
            raise ConfigurationError(f"chain_id for network '{name}' is not an integer.")
    elif name != LOCAL_NETWORK:
        raise ConfigurationError(f"chain_id is not set for network '{name}'.")

    signer = network_config.get("signer")
    if signer is not None:
        signer = _substitute_environment(str(signer), field="signer", network=name)
    elif name != LOCAL_NETWORK:
        raise ConfigurationError(f"signer is not set for network '{name}'.")

    return NetworkContext(name=name, endpoint=endpoint, chain_id=chain_id, signer=signer)


def check_chain_id(context: NetworkContext, provider_chain_id: int) -> None:
    """Checks that the connected provider serves the chain declared for the network."""
    if context.is_local or context.chain_id is None:
        return  # any local chain will do
    if context.chain_id != provider_chain_id:
        raise ConfigurationError(
            f"chain_id in params file ({context.chain_id}) does not match "
            f"chain_id of current network ({provider_chain_id})."
        )


@contextmanager
def connect(context: NetworkContext) -> Iterator[ProviderAPI]:
    """Connects to the network endpoint for the lifetime of the context."""
    with networks.parse_network_choice(context.endpoint) as provider:
        check_chain_id(context, provider.chain_id)
        yield provider


def get_account(context: NetworkContext) -> AccountAPI:
    """Returns the signing account for the network."""
    if context.is_local:
        return accounts.test_accounts[0]
    try:
        return accounts.load(context.signer)
    except (KeyError, AccountsError):
        raise ConfigurationError(
            f"No ape account with alias '{context.signer}' for network '{context.name}'."
        )
