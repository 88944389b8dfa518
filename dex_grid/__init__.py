"""
DEX Grid Bot.

Grid trading for a single token pair on V2/V3 AMM pools: prices are derived
from on-chain pool state, and buy/sell swaps fire whenever price crosses a
ladder of triggers that follows each fill.
"""

from dex_grid.grid import GridPhase, GridState, GridStateMachine, Verdict
from dex_grid.pool_locator import PoolLocator
from dex_grid.price_oracle import PriceOracle
from dex_grid.quote_engine import QuoteEngine
from dex_grid.runner import GridRunner
from dex_grid.types import PriceSample, Quote, TokenInfo, Venue, VenueKind
from dex_grid.version import __version__

__all__ = [
    "__version__",
    "GridPhase",
    "GridRunner",
    "GridState",
    "GridStateMachine",
    "PoolLocator",
    "PriceOracle",
    "PriceSample",
    "Quote",
    "QuoteEngine",
    "TokenInfo",
    "Venue",
    "VenueKind",
    "Verdict",
]
