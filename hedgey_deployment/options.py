from pathlib import Path

import click

from hedgey_deployment.types import MinInt, Signer

params_filepath_option = click.option(
    "--params-filepath",
    "-f",
    help="Deployment params YAML file",
    type=click.Path(dir_okay=False, exists=True, path_type=Path),
    required=True,
)

verify_option = click.option(
    "--verify/--no-verify",
    help="Submit deployed contracts to the network's explorer for verification.",
    default=True,
    show_default=True,
)

autosign_option = click.option(
    "--autosign",
    help="Sign transactions without prompting for confirmation.",
    is_flag=True,
    default=False,
)

strict_option = click.option(
    "--strict",
    help="Exit with an error if any base URI update or verification failed.",
    is_flag=True,
    default=False,
)

settle_delay_option = click.option(
    "--settle-delay",
    help="Seconds to wait before submitting contracts for verification; overrides params file.",
    type=MinInt(0),
    required=False,
)

recipient_option = click.option(
    "--recipient",
    "-r",
    help="Donation recipient signer (index, address or alias); overrides params file.",
    type=Signer(),
    required=False,
)
