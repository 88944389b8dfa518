"""
Uniswap V3 style adapter for concentrated-liquidity pools.

V3 pools expose no reserves; price comes from the packed square-root price
in slot0 (sqrtPriceX96 = sqrt(token1/token0) * 2**96, in raw units).
"""

from decimal import ROUND_HALF_UP, Decimal
from typing import Optional

from ..exceptions import InvalidPriceRoot
from ..types import PriceSample

Q96 = 2**96

# Fee tiers in hundredths of a bip, probed in this order
DEFAULT_FEE_TIERS = [100, 500, 3000, 10000]


def spot_prices(
    sqrt_price_x96: int,
    decimals_in: int,
    decimals_out: int,
    token_in_is_token0: bool = True,
    pool: Optional[str] = None,
) -> PriceSample:
    """
    Convert a pool's sqrtPriceX96 into a decimals-adjusted price.

    raw = (sqrtPriceX96 / 2**96) ** 2 is token1 per token0 in raw units. When
    the input token is token1 the raw ratio is inverted first, so `direct` is
    always output per input:
        direct = raw * 10 ** (decimals_in - decimals_out)

    Args:
        sqrt_price_x96: Packed square-root price from slot0
        decimals_in: Decimals of the input token
        decimals_out: Decimals of the output token
        token_in_is_token0: Whether the input token is the pool's token0
        pool: Pool address, for error context only

    Returns:
        PriceSample with direct and inverted prices

    Raises:
        InvalidPriceRoot: If the root is zero (pool not initialized)
    """
    if not sqrt_price_x96:
        raise InvalidPriceRoot(
            f"Invalid sqrtPriceX96 value for pool {pool}: {sqrt_price_x96}",
            pool=pool,
        )

    raw = (sqrt_price_x96 / Q96) ** 2
    if not token_in_is_token0:
        raw = 1 / raw

    direct = raw * 10 ** (decimals_in - decimals_out)
    if direct <= 0:
        # Underflow to 0.0 leaves the price as undefined as a zero root
        raise InvalidPriceRoot(
            f"sqrtPriceX96 {sqrt_price_x96} underflows to a zero price",
            pool=pool,
        )

    return PriceSample(direct=direct, inverted=1 / direct)


def amount_out(
    amount_in: int, direct_price: float, decimals_in: int, decimals_out: int
) -> int:
    """
    Estimate a V3 swap output from the spot price.

    The input is scaled to human units, multiplied by the direct price and
    re-quantized to the output token's precision (half-up).
    """
    human_in = Decimal(amount_in) / (Decimal(10) ** decimals_in)
    human_out = human_in * Decimal(str(direct_price))
    raw_out = human_out * (Decimal(10) ** decimals_out)
    return int(raw_out.quantize(Decimal(1), rounding=ROUND_HALF_UP))
