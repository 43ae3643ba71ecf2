from typing import List, Optional

import requests
from ape.api import AccountAPI
from ape.exceptions import ApeException

from hedgey_deployment.constants import UPDATE_BASE_URI_METHOD
from hedgey_deployment.exceptions import DeploymentFailure
from hedgey_deployment.metadata import BaseURITemplate
from hedgey_deployment.models import (
    ContractSpec,
    DeployedContract,
    DeploymentRecord,
    StepResult,
    VerificationRequest,
)
from hedgey_deployment.verification import ExplorerVerifier


def deploy_contract(
    deployer, spec: ContractSpec, account: Optional[AccountAPI] = None
) -> DeployedContract:
    """
    Deploys a single contract and blocks until the deployment is confirmed.
    Any chain error is fatal and raised as a DeploymentFailure.
    """
    try:
        instance = deployer.deploy(spec, account=account)
    except (ApeException, requests.RequestException) as e:
        print(f"(!) Deployment of {spec.name} failed: {e}")
        raise DeploymentFailure(contract_name=spec.name, reason=str(e)) from e

    print(f"(i) New {spec.name} contract deployed to {instance.address}")
    return DeployedContract(spec=spec, instance=instance)


class PrimarySetDeployer:
    """
    Deploys the plans NFTs one at a time. Each contract is deployed,
    pointed at its own metadata base URI, and then submitted for verification
    before the next one is deployed.
    """

    def __init__(self, deployer, verifier: ExplorerVerifier, uri_template: BaseURITemplate):
        self.deployer = deployer
        self.verifier = verifier
        self.uri_template = uri_template
        self.records: List[DeploymentRecord] = list()

    def run(self, specs: List[ContractSpec]) -> List[DeploymentRecord]:
        print(f"\nDeploying {len(specs)} primary contract(s)...")
        for spec in specs:
            self.records.append(self.deploy(spec))
        return list(self.records)

    def deploy(self, spec: ContractSpec) -> DeploymentRecord:
        deployed = deploy_contract(self.deployer, spec)

        # the base URI embeds the confirmed address
        base_uri = self.uri_template.render(deployed.address)
        configuration = self.configure(deployed, base_uri)

        self.verifier.settle()
        verification = self.verifier.submit(VerificationRequest.for_contract(deployed))

        return DeploymentRecord(
            name=spec.name,
            address=deployed.address,
            base_uri=base_uri,
            configuration=configuration,
            verification=verification,
            deployed=deployed,
        )

    def configure(self, deployed: DeployedContract, base_uri: str) -> StepResult:
        """Sets the metadata base URI and waits for the transaction receipt."""
        method = getattr(deployed.instance, UPDATE_BASE_URI_METHOD)
        try:
            receipt = self.deployer.transact(method, base_uri)
        except ApeException as e:
            print(f"(!) Setting base URI of {deployed.name} failed: {e}")
            return StepResult.failed(str(e))

        if getattr(receipt, "failed", False):
            detail = f"transaction {receipt.txn_hash} reverted"
            print(f"(!) Setting base URI of {deployed.name} failed: {detail}")
            return StepResult.failed(detail)

        print(f"(i) Base URI of {deployed.name} set to {base_uri}")
        return StepResult.succeeded(base_uri)
