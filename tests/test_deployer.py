import json

import pytest

from hedgey_deployment.constants import BATCH_PLANNER, CLAIM_CAMPAIGNS
from hedgey_deployment.exceptions import InvalidConstructorParameters
from hedgey_deployment.models import ContractSpec, Outcome
from hedgey_deployment.orchestrator import deploy_all
from hedgey_deployment.params import (
    Deployer,
    PeripheryConfig,
    Transactor,
    validate_constructor_parameters,
    validate_periphery,
)
from hedgey_deployment.verification import ExplorerVerifier
from tests.conftest import NETWORK_SEGMENT, URI_PREFIX

VESTING_SPEC = ContractSpec("TokenVestingPlans", ("TokenVestingPlans", "TVP"), ("name", "symbol"))


class RecordingSigner:
    """Wraps a test account and records the keyword arguments of its deployments."""

    def __init__(self, account):
        self.account = account
        self.address = account.address
        self.deploy_kwargs = list()

    def deploy(self, container, *args, **kwargs):
        self.deploy_kwargs.append(kwargs)
        return self.account.deploy(container, *args, **kwargs)


@pytest.fixture
def make_deployer(contract_containers, plans_config, creator, tmp_path):
    def make(autosign=True):
        return Deployer(
            config=plans_config,
            path=tmp_path / "plans.yml",
            verify=False,
            account=creator,
            autosign=autosign,
        )

    return make


@pytest.fixture
def deployer(make_deployer):
    return make_deployer()


def test_deploy_all(deployer, creator, recipient, tmp_path):
    report = deploy_all(deployer)

    names = [record.name for record in report]
    assert names == ["TokenVestingPlans", "TokenLockupPlans", BATCH_PLANNER, CLAIM_CAMPAIGNS]
    assert report.warnings == []
    for record in report:
        # nothing to verify against on a local network
        assert record.verification.outcome is Outcome.SKIPPED

    vesting, lockup, planner, claimer = report.records
    assert vesting.configuration.outcome is Outcome.SUCCEEDED
    assert vesting.base_uri == f"{URI_PREFIX}{NETWORK_SEGMENT}{vesting.address.lower()}/"
    assert planner.base_uri is None

    registry = json.loads((tmp_path / "artifacts" / "plans.json").read_text())
    (contracts,) = registry.values()
    assert list(contracts) == sorted(names)
    assert contracts["TokenLockupPlans"]["base_uri"] == lockup.base_uri
    assert contracts["TokenLockupPlans"]["configuration"] == "succeeded"
    assert contracts["TokenVestingPlans"]["deployer"] == creator.address
    # the claim contract is deployed by the donation recipient
    assert contracts[CLAIM_CAMPAIGNS]["deployer"] == recipient.address
    assert contracts[CLAIM_CAMPAIGNS]["address"] == claimer.address


def test_deploy_all_without_plans_contracts(make_deployer, plans_config):
    plans_config["contracts"] = []
    deployer = make_deployer()

    report = deploy_all(deployer)
    assert [record.name for record in report] == [BATCH_PLANNER, CLAIM_CAMPAIGNS]


def test_deploy_does_not_publish(deployer, recipient):
    signer = RecordingSigner(recipient)
    spec = ContractSpec(CLAIM_CAMPAIGNS, (recipient.address,))

    instance = deployer.deploy(spec, account=signer)
    assert signer.deploy_kwargs == [{"publish": False}]
    assert instance.receipt.transaction.sender == recipient.address


def test_deploy_uses_deployer_account_by_default(deployer, creator):
    instance = deployer.deploy(VESTING_SPEC)
    assert instance.receipt.transaction.sender == creator.address


def test_deployments_are_confirmed_without_autosign(make_deployer, recipient, answers, capsys):
    prompts = answers("y", "y", "y")
    deployer = make_deployer(autosign=False)
    deployer.deploy(VESTING_SPEC)
    deployer.deploy(ContractSpec(CLAIM_CAMPAIGNS, (recipient.address,)), account=recipient)

    assert prompts == [
        "Continue Y/N? ",
        "Deploy TokenVestingPlans Y/N? ",
        f"Deploy {CLAIM_CAMPAIGNS} Y/N? ",
    ]
    out = capsys.readouterr().out
    assert "\tname=TokenVestingPlans" in out
    assert f"{CLAIM_CAMPAIGNS} will be deployed by {recipient.address}" in out


def test_declined_deployment_aborts(make_deployer, answers):
    answers("y", "n")
    deployer = make_deployer(autosign=False)
    with pytest.raises(SystemExit):
        deployer.deploy(VESTING_SPEC)


def test_transact(deployer, contract_containers, creator, answers):
    instance = creator.deploy(contract_containers["TokenVestingPlans"], "TokenVestingPlans", "TVP")

    prompts = answers()
    receipt = deployer.transact(instance.updateBaseURI, "https://x/net/")
    assert not receipt.failed
    assert receipt.sender == creator.address
    # autosign skips confirmation
    assert prompts == []

    transactor = Transactor(account=creator)
    prompts = answers("y")
    transactor.transact(instance.updateBaseURI, "https://x/net/")
    assert prompts == ["Continue Y/N? "]


def test_transact_rejects_mismatched_args(deployer, contract_containers, creator):
    instance = creator.deploy(contract_containers["TokenVestingPlans"], "TokenVestingPlans", "TVP")
    with pytest.raises(ValueError, match="Could not find ABI for 'updateBaseURI'"):
        deployer.transact(instance.updateBaseURI, "https://x/", 1)


def test_constructor_parameters_match_abi(contract_containers):
    validate_constructor_parameters(
        [VESTING_SPEC, ContractSpec("TokenLockupPlans", ("TokenLockupPlans", "TLP"))]
    )


@pytest.mark.parametrize(
    "spec, message",
    [
        (ContractSpec("TokenVestingPlans", ("A",), ("name",)), "length mismatch"),
        (
            ContractSpec("TokenVestingPlans", ("A", "B"), ("name", "ticker")),
            "'ticker' at position 1 does not match the expected ABI name 'symbol'",
        ),
        (ContractSpec("TokenVestingPlans", ("A", 5)), "does not match expected ABI type 'string'"),
        (ContractSpec(BATCH_PLANNER), "does not expose 'updateBaseURI'"),
    ],
)
def test_invalid_constructor_parameters(contract_containers, spec, message):
    with pytest.raises(InvalidConstructorParameters, match=message):
        validate_constructor_parameters([spec])


def test_validate_periphery(contract_containers):
    validate_periphery(PeripheryConfig())

    # the claimer takes exactly one argument, the planner none
    with pytest.raises(InvalidConstructorParameters, match="length mismatch"):
        validate_periphery(PeripheryConfig(claimer=BATCH_PLANNER))
    with pytest.raises(InvalidConstructorParameters, match="length mismatch"):
        validate_periphery(PeripheryConfig(planner=CLAIM_CAMPAIGNS))


def test_invalid_config_is_rejected_before_deploying(make_deployer, plans_config, tmp_path):
    plans_config["contracts"] = [{"TokenVestingPlans": {"constructor": {"name": "A"}}}]
    with pytest.raises(InvalidConstructorParameters):
        make_deployer()
    assert not (tmp_path / "artifacts" / "plans.json").exists()


@pytest.mark.parametrize("verify", [True, False])
def test_verifier_is_disabled_without_explorer(verify, capsys):
    verifier = ExplorerVerifier.from_network(verify=verify, settle_delay=10)
    assert not verifier.enabled
    skipped = "verification will be skipped" in capsys.readouterr().out
    assert skipped is verify
