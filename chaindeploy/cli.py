#!/usr/bin/python3
import sys
from pathlib import Path
from typing import Dict

import click
from ape.api import ProviderAPI
from ape.exceptions import ApeException

from chaindeploy.artifacts import ArtifactDirectory, ArtifactSource, ProjectArtifacts
from chaindeploy.confirm import _continue
from chaindeploy.constants import DEFAULT_MANIFEST_DIR
from chaindeploy.deployer import ArtifactDeployer
from chaindeploy.errors import ConfigurationError, DeploymentError
from chaindeploy.executor import orchestrate
from chaindeploy.manifest import DeploymentManifest, ManifestWriter
from chaindeploy.networks import NetworkContext, connect, get_account, resolve_network
from chaindeploy.options import (
    autosign_option,
    network_option,
    params_filepath_option,
    verify_option,
)
from chaindeploy.plan import plan_from_config
from chaindeploy.utils import _load_yaml, check_etherscan_plugin, verify_contracts


def _load_config(params_filepath: Path) -> Dict:
    config = _load_yaml(params_filepath)
    if not isinstance(config, dict):
        raise ConfigurationError(f"Params file {params_filepath} is empty or malformed.")
    return config


def _artifact_source(config: Dict) -> ArtifactSource:
    """Compiled JSON artifacts when a directory is configured, the ape project otherwise."""
    artifacts_config = config.get("artifacts") or dict()
    directory = artifacts_config.get("dir")
    if directory:
        return ArtifactDirectory(Path(directory))
    return ProjectArtifacts()


def _manifest_writer(config: Dict) -> ManifestWriter:
    manifests_config = config.get("manifests") or dict()
    return ManifestWriter(directory=Path(manifests_config.get("dir", DEFAULT_MANIFEST_DIR)))


def _print_deployment_info(
    deployer: ArtifactDeployer,
    context: NetworkContext,
    provider: ProviderAPI,
    params_filepath: Path,
    writer: ManifestWriter,
    verify: bool,
) -> None:
    print(
        f"Account: {deployer.address}",
        f"Config: {params_filepath}",
        f"Manifest: {writer.filepath(context.name)}",
        f"Verify: {verify}",
        f"Network: {context.name}",
        f"Chain ID: {provider.chain_id}",
        sep="\n",
    )


def deploy(
    network: str, params_filepath: Path, autosign: bool = False, verify: bool = False
) -> DeploymentManifest:
    """Deploys the plan of a params file to a network and writes its manifest."""
    config = _load_config(params_filepath)
    context = resolve_network(network, config)
    plan = plan_from_config(config)
    artifacts = _artifact_source(config)
    writer = _manifest_writer(config)

    verify = verify and not context.is_local
    with connect(context) as provider:
        if verify:
            print("Checking plugins...")
            check_etherscan_plugin()

        deployer = ArtifactDeployer(artifacts, get_account(context), autosign=autosign)
        _print_deployment_info(deployer, context, provider, params_filepath, writer, verify)
        if not autosign:
            # Confirms the start of the deployment.
            _continue()

        manifest = orchestrate(plan, context, deployer, writer)
        if verify:
            verify_contracts(manifest.contracts)

    return manifest


@click.command(name="deploy")
@network_option
@params_filepath_option
@autosign_option
@verify_option
def cli(network, params_filepath, autosign, verify):
    """Deploy the contracts of a params file and record them in the network's manifest."""
    try:
        deploy(network, params_filepath=params_filepath, autosign=autosign, verify=verify)
    except (DeploymentError, ApeException) as e:
        click.secho(f"{type(e).__name__}: {e}", fg="red", err=True)
        sys.exit(1)


if __name__ == "__main__":
    cli()
