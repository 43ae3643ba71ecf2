from ape import networks

from hedgey_deployment.constants import LOCAL_NETWORKS


def is_local_network() -> bool:
    """Returns True if the active provider is connected to a local/test network."""
    return networks.provider.network.name in LOCAL_NETWORKS


def get_explorer():
    """Returns the explorer of the active network, or None if there is none."""
    if is_local_network():
        return None
    return networks.provider.network.explorer


def get_chain_name(chain_id: int) -> str:
    """Returns the name of the chain given its chain ID."""
    for ecosystem_name, ecosystem in networks.ecosystems.items():
        for network_name, network in ecosystem.networks.items():
            if network.chain_id == chain_id:
                return f"{ecosystem_name} {network_name}"
    raise ValueError(f"Chain ID {chain_id} not found in networks.")
