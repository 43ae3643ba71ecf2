import sys
from collections import OrderedDict
from typing import Optional

from ape.utils import ZERO_ADDRESS


def _ask(question: str) -> None:
    """Prompts the operator and aborts the deployment on a 'n' answer."""
    answer = input(f"{question} Y/N? ")
    if answer.lower().strip() == "n":
        print("Aborting deployment!")
        sys.exit(-1)


def _continue() -> None:
    """Asks the user to continue."""
    _ask("Continue")


def _confirm_resolution(
    resolved_params: OrderedDict, contract_name: str, signer: Optional[str] = None
) -> None:
    """
    Shows the resolved constructor parameters (and the signing account,
    when it is not the deployer) and asks the user to confirm the deployment.
    """
    if len(resolved_params) == 0:
        print(f"\n(i) No constructor parameters for {contract_name}")
    else:
        print(f"\nConstructor parameters for {contract_name}")
        for name, resolved_value in resolved_params.items():
            print(f"\t{name}={resolved_value}")

    if signer is not None:
        print(f"(i) {contract_name} will be deployed by {signer}")

    _ask(f"Deploy {contract_name}")
    if ZERO_ADDRESS in resolved_params.values():
        _ask("Zero Address detected for deployment parameter; Continue?")
