#!/usr/bin/python3

import click
from ape.cli import ConnectedProviderCommand, account_option, network_option

from hedgey_deployment.options import (
    autosign_option,
    params_filepath_option,
    recipient_option,
    settle_delay_option,
    strict_option,
    verify_option,
)
from hedgey_deployment.orchestrator import deploy_all
from hedgey_deployment.params import Deployer, override_config
from hedgey_deployment.utils import _load_yaml


@click.command(cls=ConnectedProviderCommand)
@network_option(required=True)
@account_option()
@params_filepath_option
@verify_option
@autosign_option
@strict_option
@settle_delay_option
@recipient_option
def cli(network, account, params_filepath, verify, autosign, strict, settle_delay, recipient):
    """
    Deploys the Hedgey plans NFTs, sets each one's metadata base URI,
    deploys the BatchPlanner and ClaimCampaigns periphery contracts and
    submits everything for verification.

    ape run deploy --network ethereum:sepolia:infura -f hedgey_deployment/constructor_params/sepolia/plans.yml
    """
    config = override_config(
        _load_yaml(params_filepath), settle_delay=settle_delay, recipient=recipient
    )
    deployer = Deployer(
        config=config, path=params_filepath, verify=verify, account=account, autosign=autosign
    )

    report = deploy_all(deployer)
    report.summarize()

    if strict and report.warnings:
        raise click.ClickException(
            f"{len(report.warnings)} contract(s) deployed with failed configuration "
            "or verification steps."
        )


if __name__ == "__main__":
    cli()
