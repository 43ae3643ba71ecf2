import typing
from abc import ABC, abstractmethod
from collections import OrderedDict
from pathlib import Path
from typing import Any, List, NamedTuple, Optional, Tuple

from ape import accounts, networks
from ape.api import AccountAPI, ReceiptAPI
from ape.cli.choices import select_account
from ape.contracts.base import ContractContainer, ContractInstance, ContractTransactionHandler
from ape.utils import ZERO_ADDRESS
from ethpm_types import MethodABI
from web3.auto import w3

from hedgey_deployment.confirm import _confirm_resolution, _continue
from hedgey_deployment.constants import (
    BATCH_PLANNER,
    CLAIM_CAMPAIGNS,
    DEFAULT_SETTLE_DELAY,
    UPDATE_BASE_URI_METHOD,
)
from hedgey_deployment.exceptions import DeploymentConfigError, InvalidConstructorParameters
from hedgey_deployment.metadata import BaseURITemplate
from hedgey_deployment.models import ContractSpec, DeploymentRecord
from hedgey_deployment.networks import is_local_network
from hedgey_deployment.registry import registry_from_records
from hedgey_deployment.types import SignerSelector, parse_signer_selector
from hedgey_deployment.utils import (
    _load_yaml,
    check_plugins,
    get_contract_container,
    validate_config,
)

CONTRACT_CONSTRUCTOR_PARAMETER_KEY = "constructor"

DEFAULT_RECIPIENT_SIGNER = 1


class VariableContext:
    def __init__(
        self,
        contract_name: str,
        constants: typing.Dict[str, Any] = None,
        deployer_address: Optional[str] = None,
    ):
        self.contract_name = contract_name
        self.constants = constants or dict()
        self.deployer_address = deployer_address


# Variables


class Variable(ABC):
    VARIABLE_PREFIX = "$"

    @abstractmethod
    def resolve(self) -> Any:
        raise NotImplementedError

    @classmethod
    def is_variable(cls, param: Any) -> bool:
        """Returns True if the param is a variable."""
        result = isinstance(param, str) and param.startswith(cls.VARIABLE_PREFIX)
        return result


class DeployerAccount(Variable):
    DEPLOYER_INDICATOR = "deployer"

    def __init__(self, context: VariableContext):
        self.deployer_address = context.deployer_address

    @classmethod
    def is_deployer(cls, value: str) -> bool:
        """Returns True if the variable is a special deployer variable."""
        return value == cls.DEPLOYER_INDICATOR

    def resolve(self) -> Any:
        if self.deployer_address is None:
            return ZERO_ADDRESS
        return self.deployer_address


class Constant(Variable):
    def __init__(self, constant_name: str, context: VariableContext):
        try:
            self.constant_value = context.constants[constant_name]
        except KeyError:
            raise DeploymentConfigError(
                f"Constant '{constant_name}' used by {context.contract_name} "
                "not found in deployment file."
            )

    @classmethod
    def is_constant(cls, value: str) -> bool:
        """Returns True if the variable is a deployment constant."""
        return value.isupper()

    def resolve(self) -> Any:
        return self.constant_value


def _variable_from_value(variable: str, context: VariableContext) -> Variable:
    name = variable[len(Variable.VARIABLE_PREFIX) :]
    if DeployerAccount.is_deployer(name):
        return DeployerAccount(context)
    elif Constant.is_constant(name):
        return Constant(name, context)
    raise DeploymentConfigError(
        f"Variable {variable} for {context.contract_name} is not resolvable"
    )


def _resolve_param(value: Any, context: VariableContext) -> Any:
    """Resolves a single parameter value or a list of parameter values."""
    if isinstance(value, list):
        return [_resolve_param(v, context) for v in value]

    if Variable.is_variable(value):
        return _variable_from_value(value, context).resolve()

    return value  # literally a value


def _get_contract_entries(config: typing.Dict) -> List[Tuple[str, typing.Dict]]:
    entries = list()
    for contract_info in config.get("contracts") or []:
        if isinstance(contract_info, str):
            entries.append((contract_info, dict()))
        elif isinstance(contract_info, dict) and len(contract_info) == 1:
            contract_name = list(contract_info.keys())[0]  # only one entry
            entries.append((contract_name, contract_info[contract_name] or dict()))
        else:
            raise DeploymentConfigError("Malformed constructor parameters YAML.")

    names = [name for name, _ in entries]
    duplicates = sorted({name for name in names if names.count(name) > 1})
    if duplicates:
        raise DeploymentConfigError(f"Contracts listed more than once: {', '.join(duplicates)}")
    return entries


def _contract_spec(
    contract_name: str, contract_data: typing.Dict, context: VariableContext
) -> ContractSpec:
    if not isinstance(contract_data, dict):
        # this can happen if the yml file is malformed
        raise DeploymentConfigError(f"Malformed constructor parameter config for {contract_name}.")

    parameters = contract_data.get(CONTRACT_CONSTRUCTOR_PARAMETER_KEY) or OrderedDict()
    if isinstance(parameters, list):
        # positional arguments; names are not validated
        values = [_resolve_param(value, context) for value in parameters]
        return ContractSpec(name=contract_name, constructor_args=tuple(values))

    if not isinstance(parameters, dict):
        raise DeploymentConfigError(f"Malformed constructor parameter config for {contract_name}.")

    resolved = OrderedDict()
    for name, value in parameters.items():
        resolved[name] = _resolve_param(value, context)
    return ContractSpec(
        name=contract_name,
        constructor_args=tuple(resolved.values()),
        parameter_names=tuple(resolved.keys()),
    )


def specs_from_config(
    config: typing.Dict, deployer_address: Optional[str] = None
) -> List[ContractSpec]:
    """Returns the ordered primary contract specs with all variables resolved."""
    constants = config.get("constants") or dict()
    specs = list()
    for contract_name, contract_data in _get_contract_entries(config):
        context = VariableContext(
            contract_name=contract_name, constants=constants, deployer_address=deployer_address
        )
        specs.append(_contract_spec(contract_name, contract_data, context))
    return specs


class PeripheryConfig(NamedTuple):
    planner: str = BATCH_PLANNER
    claimer: str = CLAIM_CAMPAIGNS
    recipient: SignerSelector = DEFAULT_RECIPIENT_SIGNER

    @classmethod
    def from_config(cls, config: typing.Dict) -> "PeripheryConfig":
        periphery = config.get("periphery") or dict()
        if not isinstance(periphery, dict):
            raise DeploymentConfigError("Malformed periphery config.")
        try:
            recipient = parse_signer_selector(
                periphery.get("recipient", DEFAULT_RECIPIENT_SIGNER)
            )
        except ValueError as e:
            raise DeploymentConfigError(f"Invalid periphery recipient: {e}")
        return cls(
            planner=periphery.get("planner", BATCH_PLANNER),
            claimer=periphery.get("claimer", CLAIM_CAMPAIGNS),
            recipient=recipient,
        )


def _get_settle_delay(config: typing.Dict) -> int:
    verification = config.get("verification") or dict()
    settle_delay = verification.get("settle_delay", DEFAULT_SETTLE_DELAY)
    try:
        settle_delay = int(settle_delay)
    except (TypeError, ValueError):
        raise DeploymentConfigError(f"Invalid verification.settle_delay '{settle_delay}'.")
    if settle_delay < 0:
        raise DeploymentConfigError("verification.settle_delay must not be negative.")
    return settle_delay


class DeploymentConfig(NamedTuple):
    """Everything a deployment run needs, loaded once from the params file."""

    contracts: List[ContractSpec]
    uri_template: BaseURITemplate
    periphery: PeripheryConfig
    settle_delay: int

    @classmethod
    def from_config(
        cls, config: typing.Dict, deployer_address: Optional[str] = None
    ) -> "DeploymentConfig":
        print("Processing contract constructor parameters...")
        return cls(
            contracts=specs_from_config(config, deployer_address=deployer_address),
            uri_template=BaseURITemplate.from_config(config),
            periphery=PeripheryConfig.from_config(config),
            settle_delay=_get_settle_delay(config),
        )


# Validation


def _validate_method_args(
    method_abis: List[MethodABI], args: typing.Sequence[Any]
) -> typing.Dict[str, Any]:
    """Validates the transaction arguments against the function ABI."""
    if len(method_abis) == 0:
        raise ValueError("No method abis provided for validation of args")

    abis_matching_args_length = [abi for abi in method_abis if len(abi.inputs) == len(args)]
    for abi in abis_matching_args_length:
        named_args = {}
        for arg, abi_input in zip(args, abi.inputs):
            if not w3.is_encodable(abi_input.type, arg):
                break
            named_args[abi_input.name] = arg
        else:
            return named_args
    raise ValueError(
        f"Could not find ABI for '{method_abis[0].name}' with {len(args)} arg(s) and given type(s)"
    )


def _validate_constructor_abi_inputs(spec: ContractSpec, abi_inputs: List[Any]) -> None:
    """Validates the constructor arguments of a spec against the constructor ABI."""
    contract_name = spec.name
    if len(spec.constructor_args) != len(abi_inputs):
        raise InvalidConstructorParameters(
            f"Constructor parameters length mismatch - "
            f"{contract_name} ABI requires {len(abi_inputs)}, Got {len(spec.constructor_args)}."
        )

    for position, (abi_input, value) in enumerate(zip(abi_inputs, spec.constructor_args)):
        if spec.parameter_names:
            name = spec.parameter_names[position]
            if abi_input.name != name:
                raise InvalidConstructorParameters(
                    f"{contract_name} constructor parameter '{name}' at position {position} "
                    f"does not match the expected ABI name '{abi_input.name}'."
                )

        if not w3.is_encodable(abi_input.type, value):
            raise InvalidConstructorParameters(
                f"{contract_name} constructor param at position {position} has a value "
                f"'{value}' whose type does not match expected ABI type '{abi_input.type}'"
            )


def _validate_has_method(container: ContractContainer, method_name: str) -> None:
    method_names = [abi.name for abi in container.contract_type.methods]
    if method_name not in method_names:
        raise InvalidConstructorParameters(
            f"{container.contract_type.name} does not expose '{method_name}'."
        )


def validate_constructor_parameters(specs: List[ContractSpec]) -> None:
    """Validates the primary contract specs against their compiled artifacts."""
    for spec in specs:
        contract_container = get_contract_container(spec.name)
        _validate_constructor_abi_inputs(
            spec=spec, abi_inputs=contract_container.constructor.abi.inputs
        )
        _validate_has_method(contract_container, UPDATE_BASE_URI_METHOD)


def validate_periphery(periphery: PeripheryConfig) -> None:
    """Validates the periphery artifacts' constructor shapes."""
    planner_spec = ContractSpec(name=periphery.planner)
    claimer_spec = ContractSpec(name=periphery.claimer, constructor_args=(ZERO_ADDRESS,))
    for spec in (planner_spec, claimer_spec):
        contract_container = get_contract_container(spec.name)
        _validate_constructor_abi_inputs(
            spec=spec, abi_inputs=contract_container.constructor.abi.inputs
        )


# Signers


def get_signers() -> List[AccountAPI]:
    """Returns the signer identities available on the active network."""
    if is_local_network():
        return list(accounts.test_accounts)
    return list(accounts)


def select_signer(
    selector: SignerSelector,
    signers: List[AccountAPI],
    deployer: Optional[AccountAPI] = None,
) -> AccountAPI:
    """
    Selects a signer by index, address or alias. The selected signer
    must not be the deployer.
    """
    if isinstance(selector, int):
        try:
            signer = signers[selector]
        except IndexError:
            raise DeploymentConfigError(
                f"Signer index {selector} out of range; {len(signers)} signer(s) available."
            )
    else:
        for candidate in signers:
            alias = getattr(candidate, "alias", None)
            if selector in (candidate.address, alias):
                signer = candidate
                break
        else:
            raise DeploymentConfigError(f"No available signer matches '{selector}'.")

    if deployer is not None and signer.address == deployer.address:
        raise DeploymentConfigError(
            f"Signer '{selector}' resolves to the deployer account {deployer.address}; "
            "a distinct identity is required."
        )
    return signer


class Transactor:
    """
    Represents an ape account plus validated/annotated transaction execution.
    """

    def __init__(self, account: typing.Optional[AccountAPI] = None, autosign: bool = False):
        if account is None:
            self._account = select_account()
        else:
            self._account = account
        if autosign:
            print("WARNING: Autosign is enabled. Transactions will be signed automatically.")
        self._autosign = autosign
        _set_autosign(self._account, autosign)

    def get_account(self) -> AccountAPI:
        """Returns the transactor account."""
        return self._account

    def transact(self, method: ContractTransactionHandler, *args) -> ReceiptAPI:
        named_args = _validate_method_args(method_abis=method.abis, args=args)
        base_message = (
            f"\nTransacting {method.contract.contract_type.name}"
            f"[{method.contract.address[:10]}].{method}"
        )
        if named_args:
            pretty_args = "\n\t".join(f"{k}={v}" for k, v in named_args.items())
            message = f"{base_message} with arguments:\n\t{pretty_args}"
        else:
            message = f"{base_message} with no arguments"
        print(message)
        if not self._autosign:
            _continue()

        return method(*args, sender=self._account)


def _set_autosign(account: AccountAPI, autosign: bool) -> None:
    # only keyfile accounts support autosign; test accounts always sign
    if hasattr(account, "set_autosign"):
        account.set_autosign(autosign)


class Deployer(Transactor):
    """
    Represents an ape account plus the deployment config of the plans
    contracts, plus validated/annotated execution.
    """

    def __init__(
        self,
        config: typing.Dict,
        path: Path,
        verify: bool,
        account: typing.Optional[AccountAPI] = None,
        autosign: bool = False,
    ):
        super().__init__(account, autosign)

        check_plugins(verify)
        self.path = path
        self.config = config
        self.verify = verify
        self.registry_filepath = validate_config(config=self.config)
        self.deployment_config = DeploymentConfig.from_config(
            self.config, deployer_address=self._account.address
        )
        validate_constructor_parameters(self.deployment_config.contracts)
        validate_periphery(self.deployment_config.periphery)
        self._print_deployment_info()

        if not self._autosign:
            # Confirms the start of the deployment.
            _continue()

    @classmethod
    def from_yaml(cls, filepath: Path, *args, **kwargs) -> "Deployer":
        config = _load_yaml(filepath)
        if not isinstance(config, dict):
            raise DeploymentConfigError(f"Malformed params file at {filepath}.")
        return cls(config=config, path=filepath, *args, **kwargs)

    def get_recipient(self) -> AccountAPI:
        """Returns the configured donation recipient signer."""
        recipient = select_signer(
            selector=self.deployment_config.periphery.recipient,
            signers=get_signers(),
            deployer=self._account,
        )
        _set_autosign(recipient, self._autosign)
        return recipient

    def deploy(
        self, spec: ContractSpec, account: typing.Optional[AccountAPI] = None
    ) -> ContractInstance:
        container = get_contract_container(spec.name)
        sender = account if account is not None else self._account
        if not self._autosign:
            names = spec.parameter_names or [f"[{i}]" for i in range(len(spec.constructor_args))]
            _confirm_resolution(
                OrderedDict(zip(names, spec.constructor_args)),
                spec.name,
                signer=None if sender is self._account else sender.address,
            )

        # verification is submitted separately once the deployment settles
        return sender.deploy(container, *spec.constructor_args, publish=False)

    def finalize(self, records: List[DeploymentRecord]) -> Path:
        """Publishes the deployment records to the registry."""
        return registry_from_records(records=records, output_filepath=self.registry_filepath)

    def _print_deployment_info(self):
        uri_template = self.deployment_config.uri_template
        print(
            f"Account: {self.get_account().address}",
            f"Config: {self.path}",
            f"Registry: {self.registry_filepath}",
            f"Verify: {self.verify}",
            f"Base URI: {uri_template.base}<address>/",
            f"Contracts: {', '.join(spec.name for spec in self.deployment_config.contracts)}",
            f"Ecosystem: {networks.provider.network.ecosystem.name}",
            f"Network: {networks.provider.network.name}",
            f"Chain ID: {networks.provider.network.chain_id}",
            f"Gas Price: {networks.provider.gas_price}",
            sep="\n",
        )


def override_config(
    config: typing.Dict,
    settle_delay: Optional[int] = None,
    recipient: Optional[SignerSelector] = None,
) -> typing.Dict:
    """Returns a copy of the params config with command-line overrides applied."""
    if not isinstance(config, dict):
        raise DeploymentConfigError("Malformed params file.")
    config = dict(config)
    if settle_delay is not None:
        verification = dict(config.get("verification") or {})
        verification["settle_delay"] = settle_delay
        config["verification"] = verification
    if recipient is not None:
        periphery = dict(config.get("periphery") or {})
        periphery["recipient"] = recipient
        config["periphery"] = periphery
    return config
