"""
Token and network tables.

Maps each supported stablecoin to its decimal count and its ERC-20 contract
address per chain. Some combinations are intentionally absent (USDT is not
listed on Base), so a token being supported does not imply it is supported
on every chain.
"""

from typing import TypedDict

from eth_utils import is_checksum_address, is_hex_address, remove_0x_prefix


class TokenConfig(TypedDict):
    """Configuration for a supported ERC-20 token."""

    decimals: int
    contracts: dict[str, str]  # chain -> contract address


TOKENS: dict[str, TokenConfig] = {
    "USDC": {
        "decimals": 6,
        "contracts": {
            "base": "0x833589fCD6eDb6E08f4c7C32D4f71b54bdA02913",
            "ethereum": "0xA0b86991c6218b36c1d19D4a2e9Eb0cE3606eB48",
            "polygon": "0x3c499c542cEF5E3811e1192ce70d8cC03d5c3359",
            "arbitrum": "0xaf88d065e77c8cC2239327C5EDb3A432268e5831",
        },
    },
    "USDT": {
        "decimals": 6,
        "contracts": {
            "ethereum": "0xdAC17F958D2ee523a2206206994597C13D831ec7",
            "polygon": "0xc2132D05D31c914a87C6611C10748AEb04B58e8F",
            "arbitrum": "0xFd086bC7CD5C481DCC9C85ebE478A1C0b69FCbb9",
        },
    },
    "DAI": {
        "decimals": 18,
        "contracts": {
            "base": "0x50c5725949A6F0c72E6C4a641F24049A917DB0Cb",
            "ethereum": "0x6B175474E89094C44Da98b954EedeAC495271d0F",
            "polygon": "0x8f3Cf7ad23Cd3CaDbD9735AFf958023239c6A063",
            "arbitrum": "0xDA10009cBd5D07dd0CeCc66161FC93D7c9000da1",
        },
    },
}

EXPLORERS: dict[str, str] = {
    "base": "https://basescan.org",
    "ethereum": "https://etherscan.io",
    "polygon": "https://polygonscan.com",
    "arbitrum": "https://arbiscan.io",
}

SUPPORTED_TOKENS = sorted(TOKENS)


def is_valid_address(value: object) -> bool:
    """
    True for a 20-byte hex address. Mixed-case input must carry a valid
    EIP-55 checksum; all-lower and all-upper input carries none.
    """
    if not isinstance(value, str) or not is_hex_address(value):
        return False
    digits = remove_0x_prefix(value)
    if digits.islower() or digits.isupper() or digits.isdigit():
        return True
    return is_checksum_address(value)
