import json
from collections import OrderedDict
from typing import NamedTuple

import pytest
from eth_utils import keccak, to_checksum_address
from hexbytes import HexBytes

from chaindeploy.artifacts import ArtifactDirectory
from chaindeploy.deployer import ArtifactDeployer
from chaindeploy.errors import PersistenceError
from chaindeploy.networks import NetworkContext

# Common constants
BYTECODE = "0x6080604052348015600f57600080fd5b50"
DEPLOYER_ADDRESS = to_checksum_address("0x" + "ab" * 20)

TOKEN_ABI = [
    {
        "type": "constructor",
        "stateMutability": "nonpayable",
        "inputs": [
            {"name": "name", "type": "string", "internalType": "string"},
            {"name": "symbol", "type": "string", "internalType": "string"},
        ],
    },
    {
        "type": "function",
        "name": "symbol",
        "stateMutability": "view",
        "inputs": [],
        "outputs": [{"name": "", "type": "string", "internalType": "string"}],
    },
]

MERGE_MANAGER_ABI = [
    {
        "type": "constructor",
        "stateMutability": "nonpayable",
        "inputs": [{"name": "_vamp", "type": "address", "internalType": "address"}],
    },
]

REGISTRY_ABI = [
    {
        "type": "constructor",
        "stateMutability": "nonpayable",
        "inputs": [{"name": "_members", "type": "address[]", "internalType": "address[]"}],
    },
]


# Utility functions
def hardhat_artifact(contract_name, abi):
    return {
        "_format": "hh-sol-artifact-1",
        "contractName": contract_name,
        "sourceName": f"contracts/{contract_name}.sol",
        "abi": abi,
        "bytecode": BYTECODE,
        "deployedBytecode": BYTECODE,
    }


def write_artifact(directory, contract_name, abi):
    artifact_dir = directory / f"{contract_name}.sol"
    artifact_dir.mkdir(parents=True, exist_ok=True)
    filepath = artifact_dir / f"{contract_name}.json"
    filepath.write_text(json.dumps(hardhat_artifact(contract_name, abi)))
    # hardhat writes debug files beside each artifact
    (artifact_dir / f"{contract_name}.dbg.json").write_text(json.dumps({"buildInfo": "x"}))
    return filepath


class FakeContractInstance(NamedTuple):
    address: str
    txn_hash: HexBytes


class FakeAccount:
    """Stands in for an ape account; every deployment gets a fresh address."""

    def __init__(self, address=DEPLOYER_ADDRESS, fail_on=None, error=None):
        self.address = address
        self.autosign = None
        self.deployments = list()
        self.nonce = 0
        self.fail_on = fail_on
        self.error = error

    def set_autosign(self, enabled, passphrase=None):
        self.autosign = enabled

    def deploy(self, container, *args, **kwargs):
        if self.error is not None and (self.fail_on is None or self.fail_on == self.nonce):
            raise self.error
        self.nonce += 1
        address = to_checksum_address(keccak(text=f"{self.address}:{self.nonce}")[-20:])
        txn_hash = HexBytes(keccak(text=f"{self.address}:tx:{self.nonce}"))
        self.deployments.append((container.contract_type.name, args, kwargs))
        return FakeContractInstance(address=address, txn_hash=txn_hash)


class FakeManifestWriter:
    def __init__(self):
        self.writes = list()

    def write(self, network, contracts):
        self.writes.append((network, OrderedDict(contracts)))


class BrokenManifestWriter:
    def __init__(self, error=None):
        self.error = error or PersistenceError("storage unavailable")

    def write(self, network, contracts):
        raise self.error


# Fixtures
@pytest.fixture
def artifacts_dir(tmp_path):
    directory = tmp_path / "artifacts" / "contracts"
    write_artifact(directory, "Token", TOKEN_ABI)
    write_artifact(directory, "MergeManager", MERGE_MANAGER_ABI)
    write_artifact(directory, "Registry", REGISTRY_ABI)
    return directory


@pytest.fixture
def artifacts(artifacts_dir):
    return ArtifactDirectory(artifacts_dir)


@pytest.fixture
def account():
    return FakeAccount()


@pytest.fixture
def deployer(artifacts, account):
    return ArtifactDeployer(artifacts, account, autosign=True)


@pytest.fixture
def writer():
    return FakeManifestWriter()


@pytest.fixture
def sepolia():
    return NetworkContext(
        name="sepolia",
        endpoint="https://sepolia.example.org",
        chain_id=11155111,
        signer="vamp-deployer",
    )
