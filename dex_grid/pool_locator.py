"""
Venue discovery for a token pair.

Probes the V3 factory across an ordered list of fee tiers, then falls back to
the V2 factory. The first pool found wins, so the same pair always resolves
to the same venue for a fixed chain state.
"""

import logging
import time
from typing import Dict, List, Optional, Tuple

from .adapters.v3 import DEFAULT_FEE_TIERS
from .chain_client import ChainClient
from .exceptions import NoVenueFound
from .types import Venue, VenueKind

logger = logging.getLogger(__name__)


class PoolLocator:
    """
    Finds the liquidity venue for a token pair.

    Venues are re-located on every call unless cache_ttl_seconds is set, in
    which case a located venue is reused until the entry expires.
    """

    def __init__(
        self,
        chain: ChainClient,
        fee_tiers: Optional[List[int]] = None,
        cache_ttl_seconds: float = 0.0,
    ):
        """
        Initialize pool locator.

        Args:
            chain: Chain client used for factory lookups
            fee_tiers: V3 fee tiers to probe, in order (default 100, 500, 3000, 10000)
            cache_ttl_seconds: How long to reuse a located venue (0 disables caching)
        """
        self.chain = chain
        self.fee_tiers = list(fee_tiers) if fee_tiers else list(DEFAULT_FEE_TIERS)
        self.cache_ttl = cache_ttl_seconds
        self.venue_cache: Dict[Tuple[str, str], Tuple[Venue, float]] = {}

    @staticmethod
    def _pair_key(token_a: str, token_b: str) -> Tuple[str, str]:
        a, b = token_a.lower(), token_b.lower()
        return (a, b) if a < b else (b, a)

    async def locate(self, token_a: str, token_b: str) -> Venue:
        """
        Locate the venue for a token pair.

        Args:
            token_a: First token address
            token_b: Second token address

        Returns:
            Venue describing the pool or pair

        Raises:
            NoVenueFound: If no V3 pool at any fee tier and no V2 pair exists
        """
        key = self._pair_key(token_a, token_b)
        if self.cache_ttl > 0 and key in self.venue_cache:
            venue, timestamp = self.venue_cache[key]
            if time.time() - timestamp < self.cache_ttl:
                return venue

        venue = await self._probe(token_a, token_b)

        if self.cache_ttl > 0:
            self.venue_cache[key] = (venue, time.time())
        return venue

    async def _probe(self, token_a: str, token_b: str) -> Venue:
        for fee in self.fee_tiers:
            logger.debug(f"🔍 Checking V3 pool {token_a}/{token_b} fee tier {fee}")
            pool = await self.chain.get_v3_pool(token_a, token_b, fee)
            if pool:
                logger.debug(f"✅ V3 pool found with fee tier {fee}: {pool}")
                return Venue(kind=VenueKind.V3, address=pool, fee_tier=fee)

        logger.debug(f"🔍 Checking V2 pair {token_a}/{token_b}")
        pair = await self.chain.get_v2_pair(token_a, token_b)
        if pair:
            logger.debug(f"✅ V2 pair found: {pair}")
            return Venue(kind=VenueKind.V2, address=pair)

        raise NoVenueFound(
            f"No V2 or V3 pool/pair found for {token_a}/{token_b}",
            token_a=token_a,
            token_b=token_b,
            details={"fee_tiers": self.fee_tiers},
        )

    def clear_cache(self) -> None:
        """Drop all cached venues."""
        self.venue_cache.clear()
