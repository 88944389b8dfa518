"""
Core data types for the DEX grid bot.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class VenueKind(str, Enum):
    """Type of AMM a token pair trades on."""

    V3 = "v3"
    V2 = "v2"


@dataclass(frozen=True)
class TokenInfo:
    """
    Snapshot of an ERC20 token as seen by the trading wallet.

    Attributes:
        address: Checksum address of the token contract
        decimals: Token precision (e.g., 18 for WETH, 6 for USDC)
        symbol: Token symbol
        balance: Wallet balance in raw units
    """

    address: str
    decimals: int
    symbol: str
    balance: int


@dataclass(frozen=True)
class Venue:
    """
    A located liquidity venue for a token pair.

    Attributes:
        kind: V3 concentrated-liquidity pool or V2 constant-product pair
        address: Checksum address of the pool/pair contract
        fee_tier: Pool fee in hundredths of a bip (V3 only, e.g. 3000 = 0.30%)
    """

    kind: VenueKind
    address: str
    fee_tier: Optional[int] = None


@dataclass(frozen=True)
class PriceSample:
    """Output-per-input price and its inverse, both decimals-adjusted."""

    direct: float
    inverted: float


@dataclass(frozen=True)
class Quote:
    """
    Result of a quote for swapping amount_in of token_in into token_out.

    Attributes:
        amount_out: Expected output in raw units of the output token
        prices: Prices the quote was derived from
        token_in_info: Input token snapshot
        token_out_info: Output token snapshot
        venue: Venue the quote was computed on
    """

    amount_out: int
    prices: PriceSample
    token_in_info: TokenInfo
    token_out_info: TokenInfo
    venue: Venue
