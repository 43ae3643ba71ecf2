from typing import Optional

from hedgey_deployment.exceptions import DeploymentFailure
from hedgey_deployment.models import DeploymentReport
from hedgey_deployment.periphery import PeripheryDeployer
from hedgey_deployment.primary import PrimarySetDeployer
from hedgey_deployment.verification import ExplorerVerifier


def deploy_all(deployer, verifier: Optional[ExplorerVerifier] = None) -> DeploymentReport:
    """
    Deploys the primary plans contracts in order, then the periphery
    contracts, then writes the registry. Each phase completes before the
    next one starts.

    A deployment failure aborts the run; contracts deployed before the
    failure are still written to the registry before the error is re-raised.
    """
    deployment_config = deployer.deployment_config
    if verifier is None:
        verifier = ExplorerVerifier.from_network(
            verify=deployer.verify, settle_delay=deployment_config.settle_delay
        )

    # resolve the donation recipient before sending any transaction
    recipient = deployer.get_recipient()

    primary = PrimarySetDeployer(
        deployer=deployer, verifier=verifier, uri_template=deployment_config.uri_template
    )
    periphery = PeripheryDeployer(
        deployer=deployer,
        verifier=verifier,
        recipient=recipient,
        planner_name=deployment_config.periphery.planner,
        claimer_name=deployment_config.periphery.claimer,
    )

    report = DeploymentReport()
    try:
        report.extend(primary.run(deployment_config.contracts))
        report.extend(periphery.run())
    except DeploymentFailure as e:
        records = primary.records + periphery.unverified_records()
        if records:
            print(f"(!) {e}; recording {len(records)} contract(s) deployed before the failure.")
            deployer.finalize(records)
        raise

    deployer.finalize(report.records)
    return report
