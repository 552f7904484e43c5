"""
Known EVM chains the mint action can target.
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class Chain:
    """An EVM chain identified by its chain ID."""

    id: int
    name: str

    def rpc_url(self, client_id: str) -> str:
        """Client-id keyed public RPC endpoint for this chain."""
        return f"https://{self.id}.rpc.thirdweb.com/{client_id}"


ETHEREUM = Chain(id=1, name="Ethereum")
SEPOLIA = Chain(id=11155111, name="Sepolia")
BASE = Chain(id=8453, name="Base")
BASE_SEPOLIA = Chain(id=84532, name="Base Sepolia")

CHAINS: dict[int, Chain] = {
    chain.id: chain for chain in (ETHEREUM, SEPOLIA, BASE, BASE_SEPOLIA)
}


def get_chain(chain_id: int) -> Chain:
    """Look up a known chain by ID."""
    try:
        return CHAINS[chain_id]
    except KeyError:
        raise ValueError(f"Unsupported chain ID: {chain_id}") from None
