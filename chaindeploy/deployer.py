from typing import Any, List, NamedTuple, Optional, Sequence

from ape.api import AccountAPI
from ape.contracts import ContractContainer
from ape.exceptions import ApeException, TransactionNotFoundError
from eth_typing import ChecksumAddress
from eth_utils import to_checksum_address, to_hex
from hexbytes import HexBytes
from web3.auto import w3

from chaindeploy.artifacts import ArtifactSource
from chaindeploy.confirm import _confirm_resolution
from chaindeploy.constants import REQUIRED_CONFIRMATIONS
from chaindeploy.errors import ArgumentMismatch, ConfirmationTimeout, DeploymentRejected


class DeployedContract(NamedTuple):
    """A confirmed contract instance produced by one deployment step."""

    id: str
    contract_ref: str
    address: ChecksumAddress
    tx_hash: Optional[str]


def _is_encodable(abi_type: str, value: Any) -> bool:
    # the codec raises on some wrong-shaped values
    try:
        return w3.is_encodable(abi_type, value)
    except (TypeError, ValueError, AttributeError):
        return False


def _validate_constructor_args(
    contract_ref: str,
    abi_inputs: List[Any],
    args: Sequence[Any],
    arg_names: Optional[Sequence[str]] = None,
) -> None:
    """Validates the constructor arguments against the constructor ABI."""
    if len(args) != len(abi_inputs):
        raise ArgumentMismatch(
            f"Constructor parameters length mismatch - "
            f"{contract_ref} ABI requires {len(abi_inputs)}, Got {len(args)}."
        )

    codex = enumerate(zip(abi_inputs, args), start=0)
    for position, (abi_input, value) in codex:
        # validate name
        if arg_names is not None and abi_input.name and abi_input.name != arg_names[position]:
            raise ArgumentMismatch(
                f"{contract_ref} constructor parameter '{arg_names[position]}' at position "
                f"{position} does not match the expected ABI name '{abi_input.name}'."
            )

        # validate value type
        if not _is_encodable(abi_input.canonical_type, value):
            raise ArgumentMismatch(
                f"{contract_ref} constructor parameter at position {position} has a value "
                f"'{value}' whose type does not match expected ABI type "
                f"'{abi_input.canonical_type}'."
            )


def _to_hash(txn_hash: Any) -> Optional[str]:
    if txn_hash is None:
        return None
    return to_hex(HexBytes(txn_hash))


class ArtifactDeployer:
    """
    Represents an ape account plus validated/annotated contract creation.
    """

    def __init__(
        self,
        artifacts: ArtifactSource,
        account: AccountAPI,
        autosign: bool = False,
    ):
        self.artifacts = artifacts
        self._account = account
        if autosign:
            print("WARNING: Autosign is enabled. Transactions will be signed automatically.")
        self._autosign = autosign
        self._account.set_autosign(autosign)

    def get_account(self) -> AccountAPI:
        """Returns the deployer account."""
        return self._account

    @property
    def address(self) -> ChecksumAddress:
        return self._account.address

    def check(
        self,
        contract_ref: str,
        args: Sequence[Any],
        arg_names: Optional[Sequence[str]] = None,
    ) -> ContractContainer:
        """Resolves the artifact and checks the arguments without submitting anything."""
        container = self.artifacts.get(contract_ref)
        _validate_constructor_args(
            contract_ref=contract_ref,
            abi_inputs=container.contract_type.constructor.inputs,
            args=args,
            arg_names=arg_names,
        )
        return container

    def deploy(
        self,
        contract_ref: str,
        args: Sequence[Any],
        arg_names: Optional[Sequence[str]] = None,
        step_id: Optional[str] = None,
    ) -> DeployedContract:
        """Creates one contract instance and blocks until the creation is confirmed."""
        step_id = step_id or contract_ref
        container = self.check(contract_ref, args, arg_names)
        if not self._autosign:
            _confirm_resolution(step_id, contract_ref, args, arg_names)

        print(f"\nDeploying {step_id} ({contract_ref})...")
        try:
            instance = self._account.deploy(
                container,
                *args,
                publish=False,
                required_confirmations=REQUIRED_CONFIRMATIONS,
            )
        except TransactionNotFoundError as e:
            raise ConfirmationTimeout(
                f"Deployment of {step_id} ({contract_ref}) was not confirmed: {e}"
            ) from e
        except ApeException as e:
            raise DeploymentRejected(
                f"Deployment of {step_id} ({contract_ref}) was rejected: {e}"
            ) from e

        deployed = DeployedContract(
            id=step_id,
            contract_ref=contract_ref,
            address=to_checksum_address(instance.address),
            tx_hash=_to_hash(instance.txn_hash),
        )
        print(f"(i) {step_id} deployed at {deployed.address}")
        return deployed
