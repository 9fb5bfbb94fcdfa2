import json

import pytest
from eth_utils import to_checksum_address

from chaindeploy.errors import PersistenceError
from chaindeploy.executor import orchestrate
from chaindeploy.manifest import ManifestWriter, manifest_filepath, read_manifest
from chaindeploy.plan import DeploymentStep, ref

VAMP = to_checksum_address("0x" + "11" * 20)
MERGE_MANAGER = to_checksum_address("0x" + "22" * 20)


def test_manifest_filepath(tmp_path):
    assert manifest_filepath("sepolia", tmp_path) == tmp_path / "deployment-sepolia.json"


def test_write_manifest(tmp_path):
    writer = ManifestWriter(directory=tmp_path / "manifests")
    filepath = writer.write("sepolia", {"vamp": VAMP.lower(), "mergeManager": MERGE_MANAGER})

    assert filepath == tmp_path / "manifests" / "deployment-sepolia.json"
    with open(filepath) as file:
        data = json.load(file)
    assert data == {"vamp": VAMP, "mergeManager": MERGE_MANAGER}
    assert list(data) == ["vamp", "mergeManager"]
    assert list(tmp_path.joinpath("manifests").iterdir()) == [filepath]


def test_write_empty_manifest(tmp_path):
    filepath = ManifestWriter(directory=tmp_path).write("sepolia", {})
    assert read_manifest(filepath) == {}


def test_manifests_are_scoped_by_network(tmp_path):
    writer = ManifestWriter(directory=tmp_path)
    writer.write("sepolia", {"vamp": VAMP})
    writer.write("mainnet", {"vamp": MERGE_MANAGER})

    assert read_manifest(writer.filepath("sepolia")) == {"vamp": VAMP}
    assert read_manifest(writer.filepath("mainnet")) == {"vamp": MERGE_MANAGER}


def test_rewrite_replaces_previous_manifest(tmp_path, capsys):
    writer = ManifestWriter(directory=tmp_path)
    writer.write("sepolia", {"vamp": VAMP, "mergeManager": MERGE_MANAGER})
    writer.write("sepolia", {"token": VAMP})

    assert read_manifest(writer.filepath("sepolia")) == {"token": VAMP}
    assert "Overwriting existing manifest" in capsys.readouterr().out


def test_unwritable_location(tmp_path):
    blocker = tmp_path / "not-a-directory"
    blocker.write_text("")
    writer = ManifestWriter(directory=blocker)

    with pytest.raises(PersistenceError, match="Could not write manifest"):
        writer.write("sepolia", {"vamp": VAMP})


def test_rerun_overwrites_manifest_without_merging(tmp_path, deployer, sepolia):
    writer = ManifestWriter(directory=tmp_path)
    plan = [
        DeploymentStep(id="A", contract_ref="Token", args=("Name", "SYM")),
        DeploymentStep(id="B", contract_ref="MergeManager", args=(ref("A"),)),
    ]

    first = orchestrate(plan, sepolia, deployer, writer)
    second = orchestrate(plan, sepolia, deployer, writer)

    persisted = read_manifest(writer.filepath("sepolia"))
    assert persisted == second.contracts
    assert set(persisted.values()).isdisjoint(first.contracts.values())


def test_invalid_address_is_a_persistence_failure(tmp_path):
    writer = ManifestWriter(directory=tmp_path)
    with pytest.raises(PersistenceError, match="Could not write manifest"):
        writer.write("sepolia", {"vamp": "not an address"})
    assert list(tmp_path.iterdir()) == []
