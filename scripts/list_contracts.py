#!/usr/bin/python3

from itertools import groupby
from pathlib import Path
from typing import List

import click
from ape.cli import ConnectedProviderCommand

from hedgey_deployment.constants import ARTIFACTS_DIR
from hedgey_deployment.networks import get_chain_name
from hedgey_deployment.registry import RegistryEntry, read_registry


def _format_chain_name(chain_name: str) -> str:
    """Format the chain name to capitalize each word and join with slashes."""
    return "/".join(word.capitalize() for word in chain_name.split())


def _display_registry_entries(registry_filepath: Path, entries: List[RegistryEntry]) -> None:
    """Display registry entries grouped by chain ID."""
    click.secho(f"\n{registry_filepath.name}", fg="green")
    entries = sorted(entries, key=lambda e: e.chain_id)
    for chain_id, chain_entries in groupby(entries, key=lambda e: e.chain_id):
        try:
            chain_name = _format_chain_name(get_chain_name(chain_id))
        except ValueError:
            chain_name = f"Chain {chain_id}"
        click.secho(f"    {chain_name}", fg="yellow")

        for index, entry in enumerate(chain_entries, start=1):
            status = "" if entry.is_verified else " (unverified)"
            click.secho(f"        {index}. {entry.name} {entry.address}{status}", fg="cyan")
            if entry.base_uri:
                click.secho(f"           base URI: {entry.base_uri}")


@click.command(cls=ConnectedProviderCommand, name="list-contracts")
@click.option(
    "--registry-filepath",
    "-f",
    type=click.Path(dir_okay=False, exists=True, path_type=Path),
    help="Registry to list; defaults to every registry in the artifacts directory.",
    required=False,
)
def cli(registry_filepath):
    """List all deployed contracts in the registries."""
    filepaths = [registry_filepath] if registry_filepath else sorted(ARTIFACTS_DIR.glob("*.json"))
    if not filepaths:
        click.secho(f"No registries found in {ARTIFACTS_DIR}", fg="red")
        return
    for filepath in filepaths:
        _display_registry_entries(filepath, read_registry(filepath=filepath))


if __name__ == "__main__":
    cli()
