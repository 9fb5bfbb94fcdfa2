import json
from collections import OrderedDict
from pathlib import Path
from typing import Dict, Mapping, NamedTuple

from eth_typing import ChecksumAddress
from eth_utils import to_checksum_address

from chaindeploy.constants import (
    DEFAULT_MANIFEST_DIR,
    MANIFEST_FILENAME_TEMPLATE,
    STANDARD_MANIFEST_JSON_FORMAT,
)
from chaindeploy.errors import PersistenceError
from chaindeploy.utils import _load_json

NetworkId = str
StepId = str


class DeploymentManifest(NamedTuple):
    """The persisted record of what a successful run deployed on one network."""

    network: NetworkId
    contracts: Dict[StepId, ChecksumAddress]


def manifest_filepath(network: NetworkId, directory: Path = DEFAULT_MANIFEST_DIR) -> Path:
    """Returns the manifest location for a network."""
    return Path(directory) / MANIFEST_FILENAME_TEMPLATE.format(network=network)


def read_manifest(filepath: Path) -> Dict[StepId, ChecksumAddress]:
    """Reads the id -> address mapping of a manifest file."""
    data = _load_json(filepath)
    return OrderedDict((name, to_checksum_address(address)) for name, address in data.items())


class ManifestWriter:
    """Persists one manifest per network, replacing previous content wholesale."""

    def __init__(self, directory: Path = DEFAULT_MANIFEST_DIR):
        self.directory = Path(directory)

    def filepath(self, network: NetworkId) -> Path:
        return manifest_filepath(network=network, directory=self.directory)

    def write(self, network: NetworkId, contracts: Mapping[StepId, str]) -> Path:
        """Writes the manifest for a network."""
        filepath = self.filepath(network)
        # written beside the target then moved into place; never a half-written manifest
        temp_filepath = filepath.with_suffix(".temp.json")
        try:
            data = OrderedDict(
                (name, to_checksum_address(address)) for name, address in contracts.items()
            )
            if filepath.exists():
                print(f"Overwriting existing manifest at {filepath}.")
            else:
                print(f"Creating new manifest at {filepath}.")

            filepath.parent.mkdir(parents=True, exist_ok=True)
            with open(temp_filepath, "w") as file:
                json.dump(data, file, **STANDARD_MANIFEST_JSON_FORMAT)
            temp_filepath.replace(filepath)
        except (OSError, ValueError, TypeError) as e:
            if temp_filepath.is_file():
                temp_filepath.unlink()
            raise PersistenceError(f"Could not write manifest to {filepath}: {e}") from e

        print(f"(i) Manifest written to {filepath}!")
        return filepath
