from pathlib import Path

import click

from chaindeploy.constants import DEFAULT_PARAMS_FILEPATH

network_option = click.option(
    "--network",
    "-n",
    help="Name of a network declared in the params file (or 'local').",
    type=click.STRING,
    required=True,
)

params_filepath_option = click.option(
    "--params-filepath",
    "-p",
    help="Filepath of the YAML params file declaring networks and contracts.",
    type=click.Path(dir_okay=False, path_type=Path),
    default=DEFAULT_PARAMS_FILEPATH,
    show_default=True,
)

autosign_option = click.option(
    "--autosign",
    help="Sign and submit every deployment without asking for confirmation.",
    is_flag=True,
    default=False,
)

verify_option = click.option(
    "--verify",
    help="Publish contract sources to the block explorer once the manifest is written.",
    is_flag=True,
    default=False,
)
