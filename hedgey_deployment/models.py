from enum import Enum
from typing import Any, List, NamedTuple, Optional, Tuple

from ape.contracts import ContractInstance
from eth_typing import ChecksumAddress


class ContractSpec(NamedTuple):
    """A named contract artifact plus the ordered arguments for its constructor."""

    name: str
    constructor_args: Tuple[Any, ...] = ()
    parameter_names: Tuple[str, ...] = ()


class DeployedContract(NamedTuple):
    """A contract whose deployment transaction has been confirmed."""

    spec: ContractSpec
    instance: ContractInstance

    @property
    def name(self) -> str:
        return self.spec.name

    @property
    def address(self) -> ChecksumAddress:
        return self.instance.address


class PeripheryRole(Enum):
    PLANNER = "planner"
    CLAIMER = "claimer"


class PeripheryContract(NamedTuple):
    role: PeripheryRole
    deployed: DeployedContract


class VerificationRequest(NamedTuple):
    name: str
    address: ChecksumAddress
    constructor_args: Tuple[Any, ...]

    @classmethod
    def for_contract(cls, deployed: DeployedContract) -> "VerificationRequest":
        return cls(
            name=deployed.name,
            address=deployed.address,
            constructor_args=tuple(deployed.spec.constructor_args),
        )


class Outcome(Enum):
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    SKIPPED = "skipped"


class StepResult(NamedTuple):
    outcome: Outcome
    detail: str = ""

    @classmethod
    def succeeded(cls, detail: str = "") -> "StepResult":
        return cls(Outcome.SUCCEEDED, detail)

    @classmethod
    def failed(cls, detail: str) -> "StepResult":
        return cls(Outcome.FAILED, detail)

    @classmethod
    def skipped(cls, detail: str = "") -> "StepResult":
        return cls(Outcome.SKIPPED, detail)

    @property
    def is_failure(self) -> bool:
        return self.outcome is Outcome.FAILED


class DeploymentRecord(NamedTuple):
    """Outcome of deploying, configuring and verifying a single contract."""

    name: str
    address: ChecksumAddress
    base_uri: Optional[str]
    configuration: StepResult
    verification: StepResult
    deployed: Optional[DeployedContract] = None

    @property
    def has_warnings(self) -> bool:
        return self.configuration.is_failure or self.verification.is_failure


class DeploymentReport:
    """Ordered collection of deployment records for a single run."""

    def __init__(self, records: Optional[List[DeploymentRecord]] = None):
        self.records = list(records or [])

    def __len__(self) -> int:
        return len(self.records)

    def __iter__(self):
        return iter(self.records)

    def extend(self, records: List[DeploymentRecord]) -> None:
        self.records.extend(records)

    @property
    def warnings(self) -> List[DeploymentRecord]:
        return [r for r in self.records if r.has_warnings]

    def summarize(self) -> None:
        print("\nDeployment summary")
        for index, record in enumerate(self.records, start=1):
            print(
                f"\t{index}. {record.name} at {record.address}",
                f"configuration={record.configuration.outcome.value}",
                f"verification={record.verification.outcome.value}",
            )
            for label, step in (
                ("configuration", record.configuration),
                ("verification", record.verification),
            ):
                if step.is_failure:
                    print(f"\t   (!) {label}: {step.detail}")
        if self.warnings:
            print(f"(!) {len(self.warnings)} contract(s) deployed with warnings.")
        else:
            print(f"(i) {len(self.records)} contract(s) deployed without warnings.")
