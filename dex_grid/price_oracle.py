"""
On-chain price oracle.

Turns raw venue state into comparable decimal prices. Pure math: the venue
state is read by the caller (the quote engine) and handed in, so the oracle
never touches the network.
"""

import logging
from typing import Tuple, Union

from .adapters import v2, v3
from .types import PriceSample, Venue, VenueKind

logger = logging.getLogger(__name__)

# sqrtPriceX96 for V3 pools, (reserve_in, reserve_out) for V2 pairs
VenueState = Union[int, Tuple[int, int]]


class PriceOracle:
    """
    Computes direct and inverted prices for a located venue.

    V3 prices come from the pool's packed square-root price; V2 prices come
    from the live reserve ratio and are recomputed on every query.
    """

    def price(
        self,
        venue: Venue,
        decimals_in: int,
        decimals_out: int,
        state: VenueState,
        token_in_is_token0: bool = True,
    ) -> PriceSample:
        """
        Price a venue from its current state.

        Args:
            venue: Located pool or pair
            decimals_in: Decimals of the input token
            decimals_out: Decimals of the output token
            state: sqrtPriceX96 (V3) or ordered (reserve_in, reserve_out) (V2)
            token_in_is_token0: V3 only; whether the input token is token0

        Returns:
            PriceSample with output-per-input and its inverse

        Raises:
            InvalidPriceRoot: V3 pool with a zero price root
            QuoteUnavailable: V2 pair with an empty reserve
        """
        if venue.kind is VenueKind.V3:
            sample = v3.spot_prices(
                state,
                decimals_in,
                decimals_out,
                token_in_is_token0=token_in_is_token0,
                pool=venue.address,
            )
        elif venue.kind is VenueKind.V2:
            reserve_in, reserve_out = state
            sample = v2.spot_prices(reserve_in, reserve_out, decimals_in, decimals_out)
        else:
            raise ValueError(f"Unsupported venue kind: {venue.kind}")

        logger.debug(
            f"{venue.kind.value} {venue.address}: direct={sample.direct:.10g} "
            f"inverted={sample.inverted:.10g}"
        )
        return sample
