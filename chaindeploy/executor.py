from collections import OrderedDict
from typing import Dict

from ape.utils import ZERO_ADDRESS

from chaindeploy.deployer import DeployedContract
from chaindeploy.manifest import DeploymentManifest
from chaindeploy.networks import NetworkContext
from chaindeploy.plan import Plan, resolve_args, validate_plan
from chaindeploy.utils import _print_addresses


def check_plan(plan: Plan, deployer) -> None:
    """
    Validates the whole plan before anything is submitted.

    References are stood in by the zero address so that every step's
    constructor arguments can be checked against its artifact up front.
    """
    validate_plan(plan)
    placeholders = {step.id: ZERO_ADDRESS for step in plan}
    for step in plan:
        args = resolve_args(step.args, addresses=placeholders, deployer_address=deployer.address)
        deployer.check(step.contract_ref, args, step.arg_names)


def run(plan: Plan, deployer) -> Dict[str, DeployedContract]:
    """
    Deploys every step of the plan in order and returns the confirmed
    contracts keyed by step id.

    ``deployer`` is anything with an ``address`` plus the ``check`` and
    ``deploy`` methods of :class:`chaindeploy.deployer.ArtifactDeployer`.
    Steps run one at a time; a step starts only once the previous one is
    confirmed. Any failure propagates and nothing deployed so far is returned.
    """
    print(f"Validating deployment plan ({len(plan)} steps)...")
    check_plan(plan, deployer)

    results = OrderedDict()
    addresses = OrderedDict()
    for position, step in enumerate(plan, start=1):
        print(f"\n[{position}/{len(plan)}] {step.id}")
        args = resolve_args(step.args, addresses=addresses, deployer_address=deployer.address)
        deployed = deployer.deploy(
            step.contract_ref, args, arg_names=step.arg_names, step_id=step.id
        )
        results[step.id] = deployed
        addresses[step.id] = deployed.address

    return results


def _report_unrecorded(network: str, results: Dict[str, DeployedContract]) -> None:
    print(
        "\n" + "!" * 72,
        f"MANIFEST NOT WRITTEN - the following contracts ARE deployed on {network}",
        "and must be recorded manually:",
        sep="\n",
    )
    _print_addresses(
        OrderedDict((step_id, f"{d.address} (tx {d.tx_hash})") for step_id, d in results.items())
    )
    print("!" * 72)


def orchestrate(plan: Plan, context: NetworkContext, deployer, writer) -> DeploymentManifest:
    """Runs the plan and persists its manifest for the context's network."""
    results = run(plan, deployer)

    recorded = {step.id for step in plan if step.manifest}
    contracts = OrderedDict(
        (step_id, deployed.address)
        for step_id, deployed in results.items()
        if step_id in recorded
    )
    manifest = DeploymentManifest(network=context.name, contracts=contracts)

    try:
        writer.write(manifest.network, manifest.contracts)
    except Exception:
        _report_unrecorded(context.name, results)
        raise

    print(f"\nDeployment to {context.name} complete:")
    _print_addresses(manifest.contracts)
    return manifest
