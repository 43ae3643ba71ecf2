from pathlib import Path

import click
from ape import networks
from ape.cli import ConnectedProviderCommand, network_option

from hedgey_deployment.models import VerificationRequest
from hedgey_deployment.options import settle_delay_option
from hedgey_deployment.registry import read_registry, update_verification
from hedgey_deployment.verification import ExplorerVerifier


@click.command(cls=ConnectedProviderCommand)
@network_option(required=True)
@click.option(
    "--contract-name",
    "-c",
    "contract_names",
    help="Contract to verify; defaults to every contract not yet verified",
    type=click.STRING,
    multiple=True,
)
@click.option(
    "--registry-filepath",
    "-f",
    type=click.Path(dir_okay=False, exists=True, path_type=Path),
    help="Registry filepath written by the deploy script",
    required=True,
)
@settle_delay_option
def cli(network, contract_names, registry_filepath, settle_delay):
    """Re-submits deployed contracts from a registry for verification."""
    chain_id = networks.active_provider.chain_id
    entries = {
        entry.name: entry
        for entry in read_registry(filepath=registry_filepath)
        if entry.chain_id == chain_id
    }
    if not contract_names:
        contract_names = [name for name, entry in entries.items() if not entry.is_verified]
        if not contract_names:
            click.secho(f"All contracts for chain {chain_id} are already verified.", fg="green")
            return

    verification_requests = list()
    for contract_name in contract_names:
        try:
            entry = entries[contract_name]
        except KeyError:
            raise click.BadParameter(
                f"Contract '{contract_name}' not found in registry, '{registry_filepath}', "
                f"for chain {chain_id}",
                param_hint="--contract-name",
            )
        # constructor arguments are recovered by the explorer from the creation transaction
        verification_requests.append(
            VerificationRequest(entry.name, entry.address, constructor_args=())
        )

    verifier = ExplorerVerifier.from_network(verify=True, settle_delay=settle_delay or 0)
    if not verifier.enabled:
        raise click.ClickException(f"No explorer available for chain {chain_id}.")

    verifier.settle()
    results = {request.name: verifier.submit(request) for request in verification_requests}
    update_verification(registry_filepath, chain_id=chain_id, results=results)

    failures = [name for name, result in results.items() if result.is_failure]
    if failures:
        raise click.ClickException(f"Verification failed for {', '.join(failures)}.")


if __name__ == "__main__":
    cli()
