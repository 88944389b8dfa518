"""
Quote engine: the single source of truth for the current price and for what
a swap would yield.
"""

import asyncio
import logging
from typing import Optional

from .adapters import v2, v3
from .chain_client import ChainClient
from .exceptions import QuoteUnavailable
from .pool_locator import PoolLocator
from .price_oracle import PriceOracle
from .types import Quote, Venue, VenueKind

logger = logging.getLogger(__name__)


class QuoteEngine:
    """
    Produces quotes for exact-input swaps.

    Each quote re-locates the venue, reads token metadata and venue state
    concurrently, and derives both the spot prices and the output amount.
    Pure read path: nothing is cached or written.
    """

    def __init__(
        self,
        chain: ChainClient,
        locator: PoolLocator,
        oracle: Optional[PriceOracle] = None,
    ):
        self.chain = chain
        self.locator = locator
        self.oracle = oracle or PriceOracle()

    async def quote(self, token_in: str, token_out: str, amount_in: int) -> Quote:
        """
        Quote swapping amount_in raw units of token_in into token_out.

        Args:
            token_in: Input token address
            token_out: Output token address
            amount_in: Input amount in raw units

        Returns:
            Quote with output amount, prices and token snapshots

        Raises:
            QuoteUnavailable: If the venue, price root, reserves or any read fails
        """
        try:
            venue = await self.locator.locate(token_in, token_out)
            return await self._quote_on(venue, token_in, token_out, amount_in)
        except QuoteUnavailable as e:
            if e.token_in is not None:
                raise
            raise QuoteUnavailable(
                f"Quote {token_in} -> {token_out} unavailable: {e}",
                token_in=token_in,
                token_out=token_out,
                details=e.details,
            ) from e
        except Exception as e:
            raise QuoteUnavailable(
                f"Quote {token_in} -> {token_out} unavailable: {e}",
                token_in=token_in,
                token_out=token_out,
            ) from e

    async def _quote_on(
        self, venue: Venue, token_in: str, token_out: str, amount_in: int
    ) -> Quote:
        if venue.kind is VenueKind.V3:
            state_read = self.chain.slot0_sqrt_price(venue.address)
        else:
            state_read = self.chain.get_reserves(venue.address)

        # All reads complete before any pricing; a failure abandons the quote
        token_in_info, token_out_info, token0, state = await asyncio.gather(
            self.chain.token_info(token_in),
            self.chain.token_info(token_out),
            self.chain.token0(venue.address),
            state_read,
        )
        token_in_is_token0 = token_in.lower() == token0.lower()

        if venue.kind is VenueKind.V3:
            prices = self.oracle.price(
                venue,
                token_in_info.decimals,
                token_out_info.decimals,
                state,
                token_in_is_token0=token_in_is_token0,
            )
            amount_out = v3.amount_out(
                amount_in, prices.direct, token_in_info.decimals, token_out_info.decimals
            )
        else:
            reserve0, reserve1 = state
            reserve_in, reserve_out = v2.reserves_in_out(
                token_in, token0, reserve0, reserve1
            )
            logger.debug(f"🔍 Reserves: reserveIn={reserve_in}, reserveOut={reserve_out}")
            prices = self.oracle.price(
                venue,
                token_in_info.decimals,
                token_out_info.decimals,
                (reserve_in, reserve_out),
            )
            amount_out = v2.swap_out(amount_in, reserve_in, reserve_out)

        logger.debug(
            f"Quote {amount_in} {token_in_info.symbol} -> {amount_out} "
            f"{token_out_info.symbol} via {venue.kind.value} {venue.address}"
        )
        return Quote(
            amount_out=amount_out,
            prices=prices,
            token_in_info=token_in_info,
            token_out_info=token_out_info,
            venue=venue,
        )
