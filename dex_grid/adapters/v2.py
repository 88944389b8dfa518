"""
Uniswap V2 style adapter for constant-product AMM pairs.

Implements reserve orientation, spot pricing and swap simulation using the
x*y=k formula with the 0.3% fee embedded exactly as the pair contract does.
"""

from typing import Tuple

from ..exceptions import QuoteUnavailable
from ..types import PriceSample

# Pair fee expressed the way the contract applies it: amountIn * 997 / 1000
FEE_NUMERATOR = 997
FEE_DENOMINATOR = 1000


def reserves_in_out(
    token_in: str, token0: str, reserve0: int, reserve1: int
) -> Tuple[int, int]:
    """
    Order pair reserves for a swap starting from token_in.

    Args:
        token_in: Address of the input token
        token0: Address the pair records as token0
        reserve0: Reserve of token0
        reserve1: Reserve of token1

    Returns:
        Tuple of (reserve_in, reserve_out)
    """
    if token_in.lower() == token0.lower():
        return reserve0, reserve1
    return reserve1, reserve0


def swap_out(amount_in: int, reserve_in: int, reserve_out: int) -> int:
    """
    Calculate the exact output amount of a V2 swap.

    Formula (integer arithmetic, truncating division):
        amountInWithFee = amountIn * 997
        amountOut = amountInWithFee * reserveOut / (reserveIn * 1000 + amountInWithFee)

    This is the literal on-chain settlement amount and must never be computed
    with floats.

    Args:
        amount_in: Input amount in raw units
        reserve_in: Reserve of the input token
        reserve_out: Reserve of the output token

    Returns:
        Output amount in raw units

    Raises:
        ValueError: If the input amount is negative
        QuoteUnavailable: If either reserve is empty
    """
    if amount_in < 0:
        raise ValueError(f"amount_in must be non-negative: {amount_in}")
    if reserve_in <= 0 or reserve_out <= 0:
        raise QuoteUnavailable(
            f"Reserves must be positive: in={reserve_in}, out={reserve_out}",
            details={"reserve_in": reserve_in, "reserve_out": reserve_out},
        )

    amount_in_with_fee = amount_in * FEE_NUMERATOR
    numerator = amount_in_with_fee * reserve_out
    denominator = reserve_in * FEE_DENOMINATOR + amount_in_with_fee

    return numerator // denominator


def spot_prices(
    reserve_in: int, reserve_out: int, decimals_in: int, decimals_out: int
) -> PriceSample:
    """
    Decimals-adjusted spot price of a V2 pair, output per input.

    Raises:
        QuoteUnavailable: If either reserve is empty
    """
    if reserve_in <= 0 or reserve_out <= 0:
        raise QuoteUnavailable(
            f"Reserves must be positive: in={reserve_in}, out={reserve_out}",
            details={"reserve_in": reserve_in, "reserve_out": reserve_out},
        )

    direct = (reserve_out / 10**decimals_out) / (reserve_in / 10**decimals_in)
    return PriceSample(direct=direct, inverted=1 / direct)
