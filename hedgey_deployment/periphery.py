from typing import List, Optional

from ape.api import AccountAPI

from hedgey_deployment.models import (
    ContractSpec,
    DeployedContract,
    DeploymentRecord,
    PeripheryContract,
    PeripheryRole,
    StepResult,
    VerificationRequest,
)
from hedgey_deployment.primary import deploy_contract
from hedgey_deployment.verification import ExplorerVerifier


class PeripheryDeployer:
    """
    Deploys the BatchPlanner and ClaimCampaigns contracts.

    ClaimCampaigns takes a donation collector as its only constructor argument;
    that collector is a signer distinct from the deployer and it also signs the
    ClaimCampaigns deployment.
    """

    def __init__(
        self,
        deployer,
        verifier: ExplorerVerifier,
        recipient: AccountAPI,
        planner_name: str,
        claimer_name: str,
    ):
        self.deployer = deployer
        self.verifier = verifier
        self.recipient = recipient
        self.planner_name = planner_name
        self.claimer_name = claimer_name
        self.deployed: List[DeployedContract] = list()

    @property
    def planner_spec(self) -> ContractSpec:
        return ContractSpec(name=self.planner_name)

    @property
    def claimer_spec(self) -> ContractSpec:
        return ContractSpec(
            name=self.claimer_name,
            constructor_args=(self.recipient.address,),
        )

    def run(self) -> List[DeploymentRecord]:
        print("\nDeploying periphery contracts...")
        planner = PeripheryContract(
            role=PeripheryRole.PLANNER,
            deployed=self._deploy(self.planner_spec),
        )
        claimer = PeripheryContract(
            role=PeripheryRole.CLAIMER,
            deployed=self._deploy(self.claimer_spec, account=self.recipient),
        )

        self.verifier.settle()
        records = dict()
        for periphery_contract in (claimer, planner):
            records[periphery_contract.role] = self._verify(periphery_contract)

        return [records[PeripheryRole.PLANNER], records[PeripheryRole.CLAIMER]]

    def _deploy(self, spec: ContractSpec, account: Optional[AccountAPI] = None) -> DeployedContract:
        deployed = deploy_contract(self.deployer, spec, account=account)
        self.deployed.append(deployed)
        return deployed

    def unverified_records(self) -> List[DeploymentRecord]:
        """Records for the contracts deployed before the periphery run was aborted."""
        verification = StepResult.skipped("run aborted before verification")
        return [self._record(deployed, verification) for deployed in self.deployed]

    def _verify(self, periphery_contract: PeripheryContract) -> DeploymentRecord:
        deployed = periphery_contract.deployed
        verification = self.verifier.submit(VerificationRequest.for_contract(deployed))
        return self._record(deployed, verification)

    @staticmethod
    def _record(deployed: DeployedContract, verification: StepResult) -> DeploymentRecord:
        return DeploymentRecord(
            name=deployed.name,
            address=deployed.address,
            base_uri=None,
            configuration=StepResult.skipped("no configuration for periphery contracts"),
            verification=verification,
            deployed=deployed,
        )
