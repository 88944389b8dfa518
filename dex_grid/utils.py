"""
Unit conversion helpers shared by the quote engine, runner and executor.

Raw amounts are the integers the chain stores; human amounts are Decimals
scaled down by the token's decimals.
"""

from decimal import ROUND_DOWN, Decimal
from typing import Union


def to_units(raw: int, decimals: int) -> Decimal:
    """Convert a raw on-chain integer amount to human token units."""
    return Decimal(raw) / (Decimal(10) ** decimals)


def to_raw(human: Union[Decimal, str, int], decimals: int) -> int:
    """
    Convert a human token amount to raw on-chain units.

    Digits beyond the token's precision are truncated, never rounded up.
    """
    scaled = Decimal(str(human)) * (Decimal(10) ** decimals)
    return int(scaled.quantize(Decimal(1), rounding=ROUND_DOWN))


def format_units(raw: int, decimals: int, places: int = 6) -> str:
    """Format a raw amount for log output."""
    return f"{to_units(raw, decimals):,.{places}f}"


def apply_slippage(amount: int, slippage_bps: int) -> int:
    """Minimum acceptable output for `amount` given a slippage tolerance in bps."""
    if slippage_bps < 0 or slippage_bps > 10_000:
        raise ValueError(f"slippage_bps must be in [0, 10000]: {slippage_bps}")
    return amount * (10_000 - slippage_bps) // 10_000
