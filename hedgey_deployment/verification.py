import time
from typing import Callable

import requests
from ape.exceptions import ApeException

from hedgey_deployment.constants import DEFAULT_SETTLE_DELAY
from hedgey_deployment.models import StepResult, VerificationRequest
from hedgey_deployment.networks import get_explorer


class ExplorerVerifier:
    """
    Best-effort submission of deployed contracts to a block explorer.

    Each request is submitted at most once; explorer failures are reported
    as failed results and never interrupt the deployment.
    """

    def __init__(
        self,
        explorer,
        settle_delay: int = DEFAULT_SETTLE_DELAY,
        sleep: Callable[[float], None] = time.sleep,
    ):
        if settle_delay < 0:
            raise ValueError(f"Settle delay must not be negative, got {settle_delay}")
        self.explorer = explorer
        self.settle_delay = settle_delay
        self._sleep = sleep

    @classmethod
    def from_network(
        cls, verify: bool, settle_delay: int = DEFAULT_SETTLE_DELAY
    ) -> "ExplorerVerifier":
        explorer = get_explorer() if verify else None
        if verify and explorer is None:
            print("(i) No explorer available for this network; verification will be skipped.")
        return cls(explorer=explorer, settle_delay=settle_delay)

    @property
    def enabled(self) -> bool:
        return self.explorer is not None

    def settle(self) -> None:
        """Waits for recent transactions to propagate before verifying."""
        if not self.enabled or not self.settle_delay:
            return
        print(f"(i) Waiting {self.settle_delay}s before verification...")
        self._sleep(self.settle_delay)

    def submit(self, request: VerificationRequest) -> StepResult:
        if not self.enabled:
            return StepResult.skipped("verification disabled")

        print(f"(i) Verifying {request.name} at {request.address}...")
        if request.constructor_args:
            args = ", ".join(str(arg) for arg in request.constructor_args)
            print(f"\tconstructor arguments: {args}")
        try:
            self.explorer.publish_contract(request.address)
        except (ApeException, requests.RequestException) as e:
            print(f"(!) Verification of {request.name} at {request.address} failed: {e}")
            return StepResult.failed(str(e))
        return StepResult.succeeded()

