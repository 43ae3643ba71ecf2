from typing import List, NamedTuple

import pytest
from ape.contracts import ContractContainer
from ape.exceptions import ProviderError
from eth_utils import to_checksum_address
from ethpm_types import ContractType

from hedgey_deployment.constants import BATCH_PLANNER, CLAIM_CAMPAIGNS
from hedgey_deployment.metadata import BaseURITemplate
from hedgey_deployment.models import ContractSpec
from hedgey_deployment.params import DeploymentConfig, PeripheryConfig
from hedgey_deployment.verification import ExplorerVerifier

URI_PREFIX = "https://x/"
NETWORK_SEGMENT = "net/"
SETTLE_DELAY = 10


def make_address(index: int) -> str:
    """Deterministic mixed-case checksum address."""
    return to_checksum_address("0x" + "ab" * 18 + f"{index:04x}")


class FakeReceipt(NamedTuple):
    txn_hash: str = "0x" + "ab" * 32
    failed: bool = False


class FakeMethod:
    def __init__(self, contract: "FakeInstance", name: str):
        self.contract = contract
        self.name = name


class FakeInstance:
    def __init__(self, name: str, address: str):
        self.name = name
        self.address = address
        self.receipt = FakeReceipt()
        self.updateBaseURI = FakeMethod(self, "updateBaseURI")


class FakeDeployer:
    """Records every chain interaction into a shared event log."""

    def __init__(
        self,
        events: List[tuple],
        deployment_config: DeploymentConfig,
        recipient=None,
        fail_on=(),
        deploy_error=None,
        configure_error=None,
        configure_reverts=False,
    ):
        self.events = events
        self.deployment_config = deployment_config
        self.verify = True
        self.recipient = recipient
        self.fail_on = set(fail_on)
        self.deploy_error = deploy_error
        self.configure_error = configure_error
        self.configure_reverts = configure_reverts
        self.deploy_count = 0

    def deploy(self, spec: ContractSpec, account=None):
        self.events.append(("deploy", spec.name, tuple(spec.constructor_args), account))
        if spec.name in self.fail_on:
            raise self.deploy_error or ProviderError(f"{spec.name} deployment reverted")
        instance = FakeInstance(spec.name, make_address(self.deploy_count))
        self.deploy_count += 1
        return instance

    def transact(self, method: FakeMethod, *args):
        self.events.append(("transact", method.contract.name, method.name, args))
        if self.configure_error is not None:
            raise self.configure_error
        return FakeReceipt(failed=self.configure_reverts)

    def get_recipient(self):
        self.events.append(("get_recipient",))
        return self.recipient

    def finalize(self, records):
        self.events.append(("finalize", [r.address for r in records]))


class FakeExplorer:
    def __init__(self, events: List[tuple], errors=None):
        self.events = events
        self.errors = errors or dict()

    def publish_contract(self, address):
        self.events.append(("verify", address))
        error = self.errors.get(address)
        if error is not None:
            raise error


@pytest.fixture
def events():
    return list()


@pytest.fixture
def uri_template():
    return BaseURITemplate(uri_prefix=URI_PREFIX, network_segment=NETWORK_SEGMENT)


@pytest.fixture
def specs():
    return [
        ContractSpec("A", ("A", "SA"), ("name", "symbol")),
        ContractSpec("B", ("B", "SB"), ("name", "symbol")),
    ]


@pytest.fixture
def deployment_config(specs, uri_template):
    return DeploymentConfig(
        contracts=specs,
        uri_template=uri_template,
        periphery=PeripheryConfig(),
        settle_delay=SETTLE_DELAY,
    )


@pytest.fixture
def creator(accounts):
    return accounts[0]


@pytest.fixture
def recipient(accounts):
    return accounts[1]


@pytest.fixture
def deployer(events, deployment_config, recipient):
    return FakeDeployer(events=events, deployment_config=deployment_config, recipient=recipient)


@pytest.fixture
def explorer(events):
    return FakeExplorer(events)


@pytest.fixture
def verifier(events, explorer):
    return ExplorerVerifier(
        explorer=explorer,
        settle_delay=SETTLE_DELAY,
        sleep=lambda seconds: events.append(("sleep", seconds)),
    )


# Init code that stores a single STOP byte as runtime code, ignoring constructor arguments.
# Calls to such a contract always succeed, which is all the deployment flow needs.
STOP_CONTRACT_INITCODE = "0x600060005360016000f3"

PLANS_CONSTRUCTOR = (("name", "string"), ("symbol", "string"))


def _abi_inputs(inputs):
    return [{"name": name, "type": type_, "internalType": type_} for name, type_ in inputs]


def make_contract_type(name: str, constructor=(), update_base_uri=True) -> ContractType:
    abi = [
        {
            "type": "constructor",
            "stateMutability": "nonpayable",
            "inputs": _abi_inputs(constructor),
        }
    ]
    if update_base_uri:
        abi.append(
            {
                "type": "function",
                "name": "updateBaseURI",
                "stateMutability": "nonpayable",
                "inputs": _abi_inputs([("_uri", "string")]),
                "outputs": [],
            }
        )
    return ContractType.model_validate(
        {
            "contractName": name,
            "sourceId": f"contracts/{name}.sol",
            "abi": abi,
            "deploymentBytecode": {"bytecode": STOP_CONTRACT_INITCODE},
            "runtimeBytecode": {"bytecode": "0x00"},
        }
    )


@pytest.fixture
def contract_containers(monkeypatch):
    contract_types = {
        "TokenVestingPlans": make_contract_type("TokenVestingPlans", PLANS_CONSTRUCTOR),
        "TokenLockupPlans": make_contract_type("TokenLockupPlans", PLANS_CONSTRUCTOR),
        BATCH_PLANNER: make_contract_type(BATCH_PLANNER, update_base_uri=False),
        CLAIM_CAMPAIGNS: make_contract_type(
            CLAIM_CAMPAIGNS, [("_donationCollector", "address")], update_base_uri=False
        ),
    }
    containers = {name: ContractContainer(ct) for name, ct in contract_types.items()}

    def get_contract_container(contract: str) -> ContractContainer:
        try:
            return containers[contract]
        except KeyError:
            raise ValueError(f"No contract found with name '{contract}'.")

    monkeypatch.setattr("hedgey_deployment.params.get_contract_container", get_contract_container)
    return containers


@pytest.fixture
def plans_config(tmp_path, chain):
    return {
        "deployment": {"name": "plans-test", "chain_id": chain.chain_id},
        "artifacts": {"dir": str(tmp_path / "artifacts"), "filename": "plans.json"},
        "metadata": {"uri_prefix": URI_PREFIX, "network_segment": NETWORK_SEGMENT},
        "verification": {"settle_delay": 0},
        "periphery": {"recipient": 1},
        "contracts": [
            {"TokenVestingPlans": {"constructor": {"name": "TokenVestingPlans", "symbol": "TVP"}}},
            {"TokenLockupPlans": {"constructor": {"name": "TokenLockupPlans", "symbol": "TLP"}}},
        ],
    }


@pytest.fixture
def answers(monkeypatch):
    """Answers interactive prompts in order and returns the prompts shown."""
    prompts = list()

    def respond(*replies):
        replies = iter(replies)

        def fake_input(prompt):
            prompts.append(prompt)
            return next(replies)

        monkeypatch.setattr("builtins.input", fake_input)
        return prompts

    return respond
