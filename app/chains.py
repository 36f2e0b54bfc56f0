from __future__ import annotations

from dataclasses import dataclass

from app.config import settings

NATIVE_TOKEN_ADDRESS = "0x0000000000000000000000000000000000000000"
NATIVE_DECIMALS = 18


@dataclass(frozen=True)
class Chain:
    chain_id: int
    name: str
    native_symbol: str
    explorer_api: str
    rpc: str


CHAINS: dict[int, Chain] = {
    1: Chain(1, "Ethereum Mainnet", "ETH", "https://api.etherscan.io/api", "https://eth.llamarpc.com"),
    5: Chain(5, "Goerli", "GoerliETH", "https://api-goerli.etherscan.io/api", "https://ethereum-goerli.publicnode.com"),
    10: Chain(10, "Optimism", "ETH", "https://api-optimistic.etherscan.io/api", "https://optimism.publicnode.com"),
    100: Chain(100, "Gnosis", "xDAI", "https://api.gnosisscan.io/api", "https://gnosis.publicnode.com"),
    137: Chain(137, "Polygon", "MATIC", "https://api.polygonscan.com/api", "https://polygon.llamarpc.com"),
    8453: Chain(8453, "Base", "ETH", "https://api.basescan.org/api", "https://base.llamarpc.com"),
    42161: Chain(42161, "Arbitrum One", "ETH", "https://api.arbiscan.io/api", "https://arb1.arbitrum.io/rpc"),
    80001: Chain(80001, "Mumbai", "MATIC", "https://api-testnet.polygonscan.com/api", "https://polygon-testnet.public.blastapi.io"),
    11155111: Chain(11155111, "Sepolia", "SepETH", "https://api-sepolia.etherscan.io/api", "https://ethereum-sepolia.publicnode.com"),
}


def explorer_url(chain_id: int) -> str | None:
    chain = CHAINS.get(chain_id)
    if chain is None:
        return None
    return settings.explorer_url(chain_id, chain.explorer_api)


def rpc_url(chain_id: int) -> str | None:
    chain = CHAINS.get(chain_id)
    if chain is None:
        return None
    return settings.rpc_url(chain_id, chain.rpc)


def native_symbol(chain_id: int) -> str:
    chain = CHAINS.get(chain_id)
    return chain.native_symbol if chain else "ETH"
