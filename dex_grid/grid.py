"""
Grid state machine.

Keeps a ladder of two trigger prices around a center price. A price at or
below the lower trigger is a buy, at or above the upper trigger a sell.
After a settled trade only the side that fired is moved; the other trigger
stays where it was until its own side fires. Over a trending market the
ladder therefore drifts asymmetrically, following the path of fills.
"""

import logging
from dataclasses import dataclass
from enum import Enum

logger = logging.getLogger(__name__)


class GridPhase(Enum):
    """
    Lifecycle of the grid.

    Values:
        UNINITIALIZED: No price sample seen yet
        ACTIVE: Triggers set; every tick is evaluated against them
    """

    UNINITIALIZED = "uninitialized"
    ACTIVE = "active"


class Verdict(Enum):
    """Decision for one price sample."""

    HOLD = "hold"
    BUY = "buy"
    SELL = "sell"


@dataclass
class GridState:
    """
    Mutable grid ladder, owned by the trading loop for the life of the process.

    Attributes:
        center_price: Price of the last fill (or the starting price)
        step: Absolute step, center_price * percent / 100 at initialization
        fee_buffer: Fixed price buffer added beyond the step on both sides
        upper_trigger: Sell at or above this price
        lower_trigger: Buy at or below this price
        grid_unit_amount: Target-token amount (raw units) traded per grid step
        initialized: Whether the ladder has been set from a first price sample
    """

    center_price: float = 0.0
    step: float = 0.0
    fee_buffer: float = 0.0
    upper_trigger: float = 0.0
    lower_trigger: float = 0.0
    grid_unit_amount: int = 0
    initialized: bool = False

    @property
    def phase(self) -> GridPhase:
        return GridPhase.ACTIVE if self.initialized else GridPhase.UNINITIALIZED


class GridStateMachine:
    """
    Stateless transition logic over a GridState passed in by the caller.

    Args:
        percent: Step size as a percent of the starting price
        fee_buffer: Extra absolute distance added to each trigger
    """

    def __init__(self, percent: float, fee_buffer: float = 0.0):
        if percent <= 0:
            raise ValueError(f"Grid percent must be positive: {percent}")
        if fee_buffer < 0:
            raise ValueError(f"Grid fee buffer must be non-negative: {fee_buffer}")
        self.percent = percent
        self.fee_buffer = fee_buffer

    def initialize(self, state: GridState, price: float, grid_unit_amount: int) -> None:
        """
        Set the ladder from the first valid price sample (Uninitialized -> Active).

        Raises:
            RuntimeError: If the grid is already active
            ValueError: If price is not positive
        """
        if state.initialized:
            raise RuntimeError("Grid is already initialized")
        if price <= 0:
            raise ValueError(f"Starting price must be positive: {price}")

        state.center_price = price
        state.step = price * self.percent / 100
        state.fee_buffer = self.fee_buffer
        state.upper_trigger = price + state.step + state.fee_buffer
        state.lower_trigger = price - state.step - state.fee_buffer
        state.grid_unit_amount = grid_unit_amount
        state.initialized = True

        logger.info(
            f"Grid initialized at {price:.10g}: buy <= {state.lower_trigger:.10g}, "
            f"sell >= {state.upper_trigger:.10g}"
        )

    def evaluate(self, state: GridState, price: float) -> Verdict:
        """
        Classify a price sample against the current triggers.

        Boundary equality triggers. Does not mutate state.
        """
        if not state.initialized:
            raise RuntimeError("Grid must be initialized before evaluating prices")

        if price <= state.lower_trigger:
            return Verdict.BUY
        if price >= state.upper_trigger:
            return Verdict.SELL
        return Verdict.HOLD

    def recenter(self, state: GridState, verdict: Verdict, price: float) -> None:
        """
        Move the fired side of the ladder around the realized trade price.

        Call only once the trade for `verdict` has settled.
        """
        if verdict is Verdict.BUY:
            state.center_price = price
            state.lower_trigger = price - state.step - state.fee_buffer
            logger.info(f"📗 Next Buy at: {state.lower_trigger:.10g}")
        elif verdict is Verdict.SELL:
            state.center_price = price
            state.upper_trigger = price + state.step + state.fee_buffer
            logger.info(f"📕 Next Sell at: {state.upper_trigger:.10g}")

    def on_price(self, state: GridState, price: float) -> Verdict:
        """Evaluate a price and immediately recenter on a trigger."""
        verdict = self.evaluate(state, price)
        self.recenter(state, verdict, price)
        return verdict
