# apps/api_portfolio/core/domain/chains.py

import re
from typing import Dict, Optional

# sentinel used by the aggregator for the chain's base asset
NATIVE_TOKEN_ADDRESS = "0xEeeeeEeeeEeEeeEeEeEeeEEEeeeeEeeeeeeeEEeE"
NATIVE_SYMBOL = "ETH"

WALLET_ADDRESS_RE = re.compile(r"^0x[a-fA-F0-9]{40}$")

# chain id -> canonical wrapped native token
WRAPPED_NATIVE: Dict[int, str] = {
    1: "0xC02aaA39b223FE8D0A0e5C4F27eAD9083C756Cc2",      # WETH
    10: "0x4200000000000000000000000000000000000006",     # WETH (Optimism)
    56: "0xbb4CdB9CBd36B01bD1cBaEBF2De08d9173bc095c",     # WBNB
    137: "0x0d500B1d8E8eF31E21C99d1Db9A6444d3ADf1270",    # WMATIC
    8453: "0x4200000000000000000000000000000000000006",   # WETH (Base)
    42161: "0x82aF49447D8a07e3bd95BD0d56f35241523fBab1",  # WETH (Arbitrum)
}

# networks where real funds live
PRODUCTION_CHAIN_IDS = frozenset({1, 10, 56, 100, 137, 324, 8453, 42161, 43114})

# default Hardhat / Anvil development accounts (public private keys)
KNOWN_TEST_ADDRESSES = frozenset(a.lower() for a in (
    "0xf39Fd6e51aad88F6F4ce6aB8827279cffFb92266",
    "0x70997970C51812dc3A010C7d01b50e0d17dc79C8",
    "0x3C44CdDdB6a900fa2b585dd299e03d12FA4293BC",
    "0x90F79bf6EB2c4f870365E785982E1f101E93b906",
    "0x15d34AAf54267DB7D7c367839AAf71A00a2C6A65",
))


def is_wallet_address(value: Optional[str]) -> bool:
    return bool(value) and bool(WALLET_ADDRESS_RE.match(value))


def same_address(a: Optional[str], b: Optional[str]) -> bool:
    return bool(a) and bool(b) and a.lower() == b.lower()


def is_native_or_wrapped(address: str, chain_id: int) -> bool:
    """True for the native sentinel or the chain's canonical wrapped native token."""
    if same_address(address, NATIVE_TOKEN_ADDRESS):
        return True
    return same_address(address, WRAPPED_NATIVE.get(int(chain_id)))


def is_test_address_on_production(address: str, chain_id: int) -> bool:
    return int(chain_id) in PRODUCTION_CHAIN_IDS and address.lower() in KNOWN_TEST_ADDRESSES
