import json
from pathlib import Path
from typing import Dict, List, NamedTuple, Optional

from ape.contracts import ContractInstance
from eth_typing import ABI, ChecksumAddress
from eth_utils import to_checksum_address

from hedgey_deployment.models import DeploymentRecord, Outcome, StepResult
from hedgey_deployment.utils import _load_json

REGISTRY_JSON_FORMAT = {"indent": 4, "separators": (",", ": ")}


def _abi_of(contract_instance: ContractInstance) -> ABI:
    return [
        entry.model_dump(mode="json", by_alias=True, exclude_none=True)
        for entry in contract_instance.contract_type.abi
    ]


class RegistryEntry(NamedTuple):
    """
    A deployed plans or periphery contract as stored in a registry file,
    including the base URI it was configured with and whether it was verified.
    """

    chain_id: int
    name: str
    address: ChecksumAddress
    abi: ABI
    tx_hash: str
    block_number: int
    deployer: ChecksumAddress
    base_uri: Optional[str] = None
    configuration: str = Outcome.SKIPPED.value
    verification: str = Outcome.SKIPPED.value

    @classmethod
    def from_record(cls, record: DeploymentRecord) -> "RegistryEntry":
        instance = record.deployed.instance
        receipt = instance.receipt
        return cls(
            chain_id=receipt.chain_id,
            name=record.name,
            address=to_checksum_address(record.address),
            abi=_abi_of(instance),
            tx_hash=receipt.txn_hash,
            block_number=receipt.block_number,
            deployer=receipt.transaction.sender,
            base_uri=record.base_uri,
            configuration=record.configuration.outcome.value,
            verification=record.verification.outcome.value,
        )

    @classmethod
    def from_json(cls, chain_id: str, name: str, data: Dict) -> "RegistryEntry":
        return cls(
            chain_id=int(chain_id),
            name=name,
            address=data["address"],
            abi=data["abi"],
            tx_hash=data["tx_hash"],
            block_number=data["block_number"],
            deployer=data["deployer"],
            base_uri=data.get("base_uri"),
            configuration=data.get("configuration", Outcome.SKIPPED.value),
            verification=data.get("verification", Outcome.SKIPPED.value),
        )

    def to_json(self) -> Dict:
        return {
            "address": self.address,
            "base_uri": self.base_uri,
            "configuration": self.configuration,
            "verification": self.verification,
            "tx_hash": self.tx_hash,
            "block_number": int(self.block_number),
            "deployer": self.deployer,
            "abi": sorted(self.abi, key=lambda item: (item["type"], item.get("name", ""))),
        }

    @property
    def is_verified(self) -> bool:
        return self.verification == Outcome.SUCCEEDED.value


def read_registry(filepath: Path) -> List[RegistryEntry]:
    data = _load_json(filepath)
    return [
        RegistryEntry.from_json(chain_id, name, contract_data)
        for chain_id, contracts in data.items()
        for name, contract_data in contracts.items()
    ]


def _dump(data: Dict, filepath: Path) -> None:
    with open(filepath, "w") as file:
        json.dump(data, file, **REGISTRY_JSON_FORMAT)


def write_registry(entries: List[RegistryEntry], filepath: Path) -> Path:
    """
    Writes registry entries grouped by chain id. An existing registry is extended
    with chains it does not hold yet; if any chain is already present the entries
    go to a separate '.unmerged.json' file instead of overwriting it.
    """
    if not entries:
        print("No entries provided.")
        return filepath

    data = dict()
    for entry in sorted(entries, key=lambda e: (e.chain_id, e.name)):
        data.setdefault(str(entry.chain_id), dict())[entry.name] = entry.to_json()

    filepath.parent.mkdir(parents=True, exist_ok=True)
    if filepath.exists():
        existing_data = _load_json(filepath)
        overlapping = sorted(set(existing_data) & set(data))
        if overlapping:
            filepath = filepath.with_suffix(".unmerged.json")
            print(
                f"(!) Registry already holds chain(s) {', '.join(overlapping)}; "
                f"writing to {filepath} instead."
            )
        else:
            print(f"Updating existing registry at {filepath}.")
            data = {**existing_data, **data}
    else:
        print(f"Creating new registry at {filepath}.")

    _dump(data, filepath)
    return filepath


def registry_from_records(records: List[DeploymentRecord], output_filepath: Path) -> Path:
    """Creates a contract registry from the records of a deployment run."""
    entries = [RegistryEntry.from_record(record) for record in records]
    output_filepath = write_registry(entries=entries, filepath=output_filepath)
    print(f"(i) Registry written to {output_filepath}!")
    return output_filepath


def update_verification(filepath: Path, chain_id: int, results: Dict[str, StepResult]) -> None:
    """Stores the outcome of re-submitted verifications in an existing registry."""
    data = _load_json(filepath)
    contracts = data[str(chain_id)]
    for name, result in results.items():
        contracts[name]["verification"] = result.outcome.value
    _dump(data, filepath)
