from typing import NamedTuple

from eth_utils import is_address

from hedgey_deployment.exceptions import DeploymentConfigError


class BaseURITemplate(NamedTuple):
    """
    Builds the metadata base URI of a plans NFT from its deployed address:

        <uri_prefix><network_segment><lowercase address>/
    """

    uri_prefix: str
    network_segment: str

    @classmethod
    def from_config(cls, config: dict) -> "BaseURITemplate":
        metadata = config.get("metadata")
        if not metadata:
            raise DeploymentConfigError("metadata is not set in params file.")

        uri_prefix = metadata.get("uri_prefix")
        if not uri_prefix:
            raise DeploymentConfigError("metadata.uri_prefix is not set in params file.")
        network_segment = metadata.get("network_segment")
        if not network_segment:
            raise DeploymentConfigError("metadata.network_segment is not set in params file.")

        return cls(uri_prefix=str(uri_prefix), network_segment=str(network_segment))

    @property
    def base(self) -> str:
        return f"{self.uri_prefix}{self.network_segment}"

    def render(self, address: str) -> str:
        if not is_address(address):
            raise ValueError(f"Cannot build a base URI from '{address}'; not an address.")
        return f"{self.base}{address.lower()}/"
