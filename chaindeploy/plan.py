import typing
from typing import Any, Dict, Iterator, List, Mapping, NamedTuple, Optional, Sequence, Tuple

from chaindeploy.constants import (
    CONSTRUCTOR_KEY,
    CONTRACT_TYPE_KEY,
    DEPLOYER_VARIABLE,
    MANIFEST_KEY,
    VARIABLE_PREFIX,
)
from chaindeploy.errors import ConfigurationError, PlanValidationError


class Ref(NamedTuple):
    """A constructor argument standing for the address produced by an earlier step."""

    id: str

    def __repr__(self) -> str:
        return f"{VARIABLE_PREFIX}{self.id}"


# Resolves to the address of the deploying account
DEPLOYER = Ref(DEPLOYER_VARIABLE)


def ref(step_id: str) -> Ref:
    return Ref(step_id)


class DeploymentStep(NamedTuple):
    """One contract instantiation in a deployment plan."""

    id: str
    contract_ref: str
    args: Tuple[Any, ...] = ()
    arg_names: Optional[Tuple[str, ...]] = None
    manifest: bool = True


Plan = Sequence[DeploymentStep]


def _references(value: Any) -> Iterator[Ref]:
    if isinstance(value, Ref):
        yield value
    elif isinstance(value, (list, tuple)):
        for item in value:
            yield from _references(item)


def validate_plan(plan: Plan) -> None:
    """
    Checks that step ids are unique and that every reference points
    at a step appearing earlier in the plan.
    """
    all_ids = [step.id for step in plan]
    produced = set()
    for position, step in enumerate(plan):
        if not step.id:
            raise PlanValidationError(f"Step at position {position} has no id.")
        if step.id == DEPLOYER_VARIABLE:
            raise PlanValidationError(f"Step id '{DEPLOYER_VARIABLE}' is reserved.")
        if step.id in produced:
            raise PlanValidationError(f"Duplicate step id '{step.id}' at position {position}.")
        if step.arg_names is not None and len(step.arg_names) != len(step.args):
            raise PlanValidationError(
                f"Step '{step.id}' names {len(step.arg_names)} parameter(s) "
                f"but has {len(step.args)} argument(s)."
            )

        for reference in _references(step.args):
            if reference == DEPLOYER or reference.id in produced:
                continue
            if reference.id == step.id:
                problem = "refers to itself"
            elif reference.id in all_ids:
                problem = f"refers to '{reference.id}' which is deployed later"
            else:
                problem = f"refers to unknown step '{reference.id}'"
            raise PlanValidationError(f"Step '{step.id}' at position {position} {problem}.")

        produced.add(step.id)


def resolve_args(
    args: Sequence[Any], addresses: Mapping[str, str], deployer_address: str
) -> List[Any]:
    """Replaces references with the addresses of the steps they point at."""

    def _resolve(value: Any) -> Any:
        if isinstance(value, Ref):
            if value == DEPLOYER:
                return deployer_address
            try:
                return addresses[value.id]
            except KeyError:
                raise PlanValidationError(f"Reference {value!r} has not been deployed yet.")
        if isinstance(value, (list, tuple)):
            return [_resolve(v) for v in value]
        return value  # literally a value

    return [_resolve(arg) for arg in args]


#
# Params file
#


class VariableContext(NamedTuple):
    step_ids: typing.FrozenSet[str]
    constants: Dict[str, Any]


def is_variable(value: Any) -> bool:
    """Returns True if the param is a variable."""
    return isinstance(value, str) and value.startswith(VARIABLE_PREFIX)


def _process_raw_value(value: Any, context: VariableContext) -> Any:
    if isinstance(value, list):
        return [_process_raw_value(v, context) for v in value]

    if not is_variable(value):
        return value

    variable = value[len(VARIABLE_PREFIX) :]
    if variable == DEPLOYER_VARIABLE:
        return DEPLOYER
    if variable in context.step_ids:
        return Ref(variable)  # step ids take precedence over constants
    if variable.isupper():
        try:
            return context.constants[variable]
        except KeyError:
            raise ConfigurationError(f"Constant '{variable}' not found in params file.")
    return Ref(variable)


def _get_step_ids(contracts: List[Any]) -> typing.FrozenSet[str]:
    step_ids = set()
    for contract_info in contracts:
        if isinstance(contract_info, str):
            step_ids.add(contract_info)
        elif isinstance(contract_info, dict):
            step_ids.update(str(step_id) for step_id in contract_info)
    return frozenset(step_ids)


def _step_from_entry(contract_info: Any, context: VariableContext) -> DeploymentStep:
    if isinstance(contract_info, str):
        return DeploymentStep(id=contract_info, contract_ref=contract_info)

    if not isinstance(contract_info, dict) or len(contract_info) != 1:
        raise ConfigurationError("Malformed contracts entry in params file.")

    step_id, step_data = list(contract_info.items())[0]  # only one entry
    step_data = step_data or dict()
    if not isinstance(step_data, dict):
        raise ConfigurationError(f"Malformed params for step '{step_id}'.")

    contract_ref = step_data.get(CONTRACT_TYPE_KEY, step_id)
    constructor = step_data.get(CONSTRUCTOR_KEY) or dict()
    if isinstance(constructor, dict):
        arg_names = tuple(constructor)
        raw_values = list(constructor.values())
    elif isinstance(constructor, list):
        arg_names = None
        raw_values = constructor
    else:
        raise ConfigurationError(f"Malformed constructor parameters for step '{step_id}'.")

    manifest = step_data.get(MANIFEST_KEY, True)
    if not isinstance(manifest, bool):
        raise ConfigurationError(
            f"'{MANIFEST_KEY}' for step '{step_id}' must be true or false, got {manifest!r}."
        )

    return DeploymentStep(
        id=str(step_id),
        contract_ref=str(contract_ref),
        args=tuple(_process_raw_value(v, context) for v in raw_values),
        arg_names=arg_names,
        manifest=manifest,
    )


def plan_from_config(config: typing.Dict) -> List[DeploymentStep]:
    """Builds the ordered deployment plan declared in a params file."""
    contracts = config.get("contracts")
    if contracts is None:
        raise ConfigurationError("Params file missing 'contracts' field.")
    if not isinstance(contracts, list):
        raise ConfigurationError("'contracts' in params file must be a list.")

    context = VariableContext(
        step_ids=_get_step_ids(contracts), constants=config.get("constants") or dict()
    )
    plan = [_step_from_entry(contract_info, context) for contract_info in contracts]
    validate_plan(plan)
    return plan
