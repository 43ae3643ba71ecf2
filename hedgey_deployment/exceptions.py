class DeploymentConfigError(ValueError):
    """Raised when the deployment params file is malformed or cannot be resolved."""


class DeploymentFailure(Exception):
    """Raised when a contract deployment transaction fails or is never confirmed."""

    def __init__(self, contract_name: str, reason: str):
        self.contract_name = contract_name
        self.reason = reason
        super().__init__(f"Deployment of {contract_name} failed: {reason}")


class InvalidConstructorParameters(DeploymentConfigError):
    """Raised when constructor arguments do not match the compiled constructor ABI."""
