"""
DEX adapter modules for different AMM types.
"""

from .v2 import reserves_in_out, swap_out
from .v3 import DEFAULT_FEE_TIERS, Q96

__all__ = ["DEFAULT_FEE_TIERS", "Q96", "reserves_in_out", "swap_out"]
