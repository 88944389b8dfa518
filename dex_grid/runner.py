"""
Grid trading loop.

Consumes block ticks one at a time: every `block_delta`-th block it samples
the pair price through the quote engine, asks the grid state machine for a
verdict, and hands buys and sells to the trade executor. The grid only moves
once the executor reports the swap as settled.
"""

import asyncio
import logging
from typing import Optional

from .chain_client import ChainClient
from .config import GridConfig
from .exceptions import ExecutorFailure, InsufficientHolding, QuoteUnavailable
from .executor import TradeExecutor
from .grid import GridState, GridStateMachine, Verdict
from .quote_engine import QuoteEngine
from .types import TokenInfo
from .utils import apply_slippage, format_units, to_raw

logger = logging.getLogger(__name__)


class GridRunner:
    """
    Runs the grid strategy for one base/target token pair.

    The runner owns the GridState for the life of the process and is the only
    code that mutates it.
    """

    def __init__(
        self,
        config: GridConfig,
        chain: ChainClient,
        quotes: QuoteEngine,
        executor: TradeExecutor,
        machine: Optional[GridStateMachine] = None,
        state: Optional[GridState] = None,
    ):
        self.config = config
        self.chain = chain
        self.quotes = quotes
        self.executor = executor
        self.machine = machine or GridStateMachine(config.grid_percent, config.grid_fee)
        self.state = state or GridState()

        self.base_info: Optional[TokenInfo] = None
        self.target_info: Optional[TokenInfo] = None

        self.ticks_seen = 0
        self.ticks_evaluated = 0
        self.ticks_skipped = 0
        self.ticks_dropped = 0
        self.trades_settled = 0
        self._tick_in_flight = False

    @property
    def base_unit(self) -> int:
        """One whole base token in raw units."""
        return 10**self.base_info.decimals

    async def fetch_price(self) -> float:
        """
        Current price of one target token, in base tokens.

        Raises:
            QuoteUnavailable: If the quote cannot be produced
        """
        quote = await self.quotes.quote(
            self.config.base_token, self.config.target_token, self.base_unit
        )
        return quote.prices.inverted

    async def _quote_target_amount(self, base_amount) -> int:
        """Raw target-token amount bought by `base_amount` base-token units."""
        quote = await self.quotes.quote(
            self.config.base_token,
            self.config.target_token,
            to_raw(base_amount, self.base_info.decimals),
        )
        return quote.amount_out

    async def preflight(self) -> None:
        """
        Read balances, derive the holding reserve and grid unit, and set the grid.

        Raises:
            QuoteUnavailable: If the starting price cannot be read
            InsufficientHolding: If the wallet holds less target token than the reserve
        """
        self.base_info, self.target_info = await asyncio.gather(
            self.chain.token_info(self.config.base_token),
            self.chain.token_info(self.config.target_token),
        )

        starting_price = await self.fetch_price()
        holding = await self._quote_target_amount(self.config.grid_total)
        grid_unit = await self._quote_target_amount(self.config.grid_amount)

        if not self.config.has_wallet:
            logger.warning(
                "⚠️ Dry run without a key or wallet_address: skipping holding check"
            )
        elif self.target_info.balance < holding:
            raise InsufficientHolding(
                f"☢️ Wallet needs at least "
                f"{format_units(holding, self.target_info.decimals)} "
                f"{self.target_info.symbol} to proceed.",
                required=holding,
                available=self.target_info.balance,
                symbol=self.target_info.symbol,
            )

        if not self.state.initialized:
            self.machine.initialize(self.state, starting_price, grid_unit)

        base, target = self.base_info, self.target_info
        logger.info("--------- 💎💎 Grid Bot 💎💎 ---------")
        logger.info(f"💰 {base.symbol} Balance: {format_units(base.balance, base.decimals)}")
        logger.info(
            f"📒 {target.symbol} Balance: {format_units(target.balance, target.decimals)}"
        )
        logger.info(f"💰 {target.symbol} Held: {format_units(holding, target.decimals)}")
        logger.info(
            f"🏆 {target.symbol} Per Grid: "
            f"{format_units(self.state.grid_unit_amount, target.decimals)}"
        )
        logger.info(f"📕 Sell at Price: {self.state.upper_trigger:.10g}")
        logger.info(f"📗 Buy at Price: {self.state.lower_trigger:.10g}")

    async def on_tick(self, block_number: int) -> Optional[Verdict]:
        """
        Process one block tick.

        Returns:
            The verdict for an evaluated tick, or None if the tick was skipped
            by cadence or by a quote failure
        """
        self.ticks_seen += 1
        if not self.on_cadence(block_number):
            return None

        try:
            price = await self.fetch_price()
        except QuoteUnavailable as e:
            self.ticks_skipped += 1
            logger.warning(f"❌ Error fetching current price at block #{block_number}: {e}")
            return None

        self.ticks_evaluated += 1
        logger.info(f"💵 Current {self.target_info.symbol} Price: {price:.10g}")

        verdict = self.machine.evaluate(self.state, price)
        if verdict is Verdict.HOLD:
            return verdict

        if await self._execute(verdict, price):
            self.machine.recenter(self.state, verdict, price)
        return verdict

    async def _execute(self, verdict: Verdict, price: float) -> bool:
        """Submit the swap for a verdict; True only once it has settled."""
        if verdict is Verdict.BUY:
            token_in, token_out = self.config.base_token, self.config.target_token
            amount_in = to_raw(self.config.grid_amount, self.base_info.decimals)
        else:
            token_in, token_out = self.config.target_token, self.config.base_token
            amount_in = self.state.grid_unit_amount

        try:
            expected = await self.quotes.quote(token_in, token_out, amount_in)
        except QuoteUnavailable as e:
            logger.warning(f"❌ Skipping {verdict.value}: could not quote swap: {e}")
            return False
        min_amount_out = apply_slippage(expected.amount_out, self.config.slippage_bps)

        try:
            await self.executor.approve_if_needed(token_in, amount_in)
            await self.executor.swap(
                token_in,
                token_out,
                amount_in,
                self.chain.wallet_address,
                min_amount_out=min_amount_out,
            )
        except ExecutorFailure as e:
            if e.details.get("ambiguous"):
                logger.error(
                    f"☢️ {verdict.value} outcome unknown (tx {e.tx_hash}); "
                    f"verify on-chain before restarting. Grid not moved: {e}"
                )
            else:
                logger.error(f"❌ Error {verdict.value}ing token: {e}")
            return False

        self.trades_settled += 1
        action = "Bought" if verdict is Verdict.BUY else "Sold"
        logger.info(f"💰 {action} at: {price:.10g}")
        return True

    def on_cadence(self, block_number: int) -> bool:
        """Whether a block is one the loop evaluates."""
        return block_number % self.config.block_delta == 0

    async def _produce(self, queue: asyncio.Queue) -> None:
        """
        Feed cadence blocks into the queue.

        Blocks arriving while a tick is in flight are dropped. While the
        consumer is idle, a newer cadence block replaces the oldest queued one.
        """
        async for block_number in self.chain.blocks():
            if not self.on_cadence(block_number):
                continue

            if self._tick_in_flight:
                self.ticks_dropped += 1
                logger.debug(f"Dropping block #{block_number}: previous tick in progress")
                continue

            if queue.full():
                stale = queue.get_nowait()
                self.ticks_dropped += 1
                logger.debug(f"Block #{block_number} supersedes queued block #{stale}")
            queue.put_nowait(block_number)

    async def _process(self, block_number: int) -> None:
        self._tick_in_flight = True
        try:
            await self.on_tick(block_number)
        finally:
            self._tick_in_flight = False

    async def run(self) -> None:
        """
        Run preflight, then process ticks until the block source ends or fails.

        Raises:
            InsufficientHolding: If the preflight check fails
            QuoteUnavailable: If the starting price cannot be read
        """
        await self.preflight()

        queue: asyncio.Queue = asyncio.Queue(maxsize=self.config.tick_queue_size)
        producer = asyncio.create_task(self._produce(queue))
        try:
            while True:
                if producer.done():
                    while not queue.empty():
                        await self._process(queue.get_nowait())
                    # Re-raises a block source failure
                    producer.result()
                    return

                next_tick = asyncio.ensure_future(queue.get())
                await asyncio.wait(
                    {next_tick, producer}, return_when=asyncio.FIRST_COMPLETED
                )
                if not next_tick.done():
                    next_tick.cancel()
                    continue

                await self._process(next_tick.result())
        finally:
            if not producer.done():
                producer.cancel()
                try:
                    await producer
                except asyncio.CancelledError:
                    pass

    def get_stats(self) -> dict:
        """Get loop statistics."""
        return {
            "ticks_seen": self.ticks_seen,
            "ticks_evaluated": self.ticks_evaluated,
            "ticks_skipped": self.ticks_skipped,
            "ticks_dropped": self.ticks_dropped,
            "trades_settled": self.trades_settled,
            "center_price": self.state.center_price,
            "lower_trigger": self.state.lower_trigger,
            "upper_trigger": self.state.upper_trigger,
        }
