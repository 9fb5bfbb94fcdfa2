from typing import Any, Optional, Sequence

from ape.utils import ZERO_ADDRESS

from chaindeploy.errors import DeploymentAborted


def _ask(question: str) -> None:
    try:
        answer = input(question)
    except EOFError:
        answer = "n"  # no operator attached
    if answer.lower().strip() == "n":
        print("Aborting deployment!")
        raise DeploymentAborted(f"Operator declined: {question.strip()}")


def _continue() -> None:
    """Asks the user to continue."""
    _ask("Continue Y/N? ")


def _contains_zero_address(value: Any) -> bool:
    if isinstance(value, (list, tuple)):
        return any(_contains_zero_address(v) for v in value)
    return value == ZERO_ADDRESS


def _confirm_resolution(
    step_id: str,
    contract_ref: str,
    resolved_args: Sequence[Any],
    arg_names: Optional[Sequence[str]] = None,
) -> None:
    """Asks the user to confirm the resolved constructor arguments for a single step."""
    if len(resolved_args) == 0:
        print(f"\n(i) No constructor parameters for {step_id} ({contract_ref})")
        _ask(f"Deploy {step_id} Y/N? ")
        return

    print(f"\nConstructor parameters for {step_id} ({contract_ref})")
    names = arg_names or [f"[{position}]" for position in range(len(resolved_args))]
    for name, resolved_value in zip(names, resolved_args):
        print(f"\t{name}={resolved_value}")
    _ask(f"Deploy {step_id} Y/N? ")
    if _contains_zero_address(resolved_args):
        _ask("Zero Address detected for deployment parameter; Continue? Y/N? ")
