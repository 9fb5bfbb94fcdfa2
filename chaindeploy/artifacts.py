from abc import ABC, abstractmethod
from pathlib import Path
from typing import Dict

from ape import project
from ape.contracts import ContractContainer
from ethpm_types import ContractType
from pydantic import ValidationError

from chaindeploy.errors import CompileArtifactNotFound, ConfigurationError
from chaindeploy.utils import _load_json


class ArtifactSource(ABC):
    """Resolves contract identifiers to compiled contract containers."""

    @abstractmethod
    def get(self, contract_ref: str) -> ContractContainer:
        raise NotImplementedError


class ProjectArtifacts(ArtifactSource):
    """Artifacts compiled by the active ape project, including its dependencies."""

    def get(self, contract_ref: str) -> ContractContainer:
        try:
            return getattr(project, contract_ref)
        except AttributeError:
            # not in root project; check dependencies
            return self._get_dependency_contract_container(contract_ref)

    @staticmethod
    def _get_dependency_contract_container(contract_ref: str) -> ContractContainer:
        for dependency_name, dependency_versions in project.dependencies.items():
            if len(dependency_versions) > 1:
                raise CompileArtifactNotFound(
                    f"Ambiguous {dependency_name} dependency for {contract_ref}"
                )
            try:
                dependency_api = list(dependency_versions.values())[0]
                return getattr(dependency_api, contract_ref)
            except AttributeError:
                continue
        raise CompileArtifactNotFound(f"No compiled artifact found for '{contract_ref}'.")


class ArtifactDirectory(ArtifactSource):
    """
    Artifacts read from a directory of compiled JSON files.

    Accepts hardhat artifacts (``abi`` + ``bytecode``) and ape/ethPM
    contract types (``abi`` + ``deploymentBytecode``), looked up by file
    stem anywhere under the directory.
    """

    def __init__(self, directory: Path):
        self.directory = Path(directory)
        if not self.directory.is_dir():
            raise ConfigurationError(f"Artifacts directory {self.directory} does not exist.")
        self._cache: Dict[str, ContractContainer] = dict()

    def _find(self, contract_ref: str) -> Path:
        candidates = [
            p for p in sorted(self.directory.rglob(f"{contract_ref}.json")) if p.is_file()
        ]
        if not candidates:
            raise CompileArtifactNotFound(
                f"No compiled artifact found for '{contract_ref}' in {self.directory}."
            )
        if len(candidates) > 1:
            raise CompileArtifactNotFound(
                f"Artifact '{contract_ref}' is ambiguous - found {len(candidates)} "
                f"files in {self.directory}."
            )
        return candidates[0]

    @staticmethod
    def _contract_type(contract_ref: str, data: Dict) -> ContractType:
        if "deploymentBytecode" in data:
            return ContractType.model_validate(data)

        contract_data = {
            "contractName": data.get("contractName", contract_ref),
            "abi": data["abi"],
            "deploymentBytecode": {"bytecode": data["bytecode"]},
        }
        if data.get("sourceName"):
            contract_data["sourceId"] = data["sourceName"]
        if data.get("deployedBytecode"):
            contract_data["runtimeBytecode"] = {"bytecode": data["deployedBytecode"]}
        return ContractType.model_validate(contract_data)

    def get(self, contract_ref: str) -> ContractContainer:
        if contract_ref in self._cache:
            return self._cache[contract_ref]

        filepath = self._find(contract_ref)
        try:
            data = _load_json(filepath)
            contract_type = self._contract_type(contract_ref, data)
        except (KeyError, ValueError, ValidationError) as e:
            raise CompileArtifactNotFound(
                f"Artifact for '{contract_ref}' at {filepath} is malformed: {e}"
            )

        container = ContractContainer(contract_type)
        self._cache[contract_ref] = container
        return container
