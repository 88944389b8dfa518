"""
Read-only chain access for the grid bot.

Wraps a synchronous web3.py connection. Every contract call runs in the
default thread pool so independent reads can be awaited together with
asyncio.gather without blocking the event loop.
"""

import asyncio
import logging
from typing import AsyncIterator, Callable, Optional, Tuple, TypeVar

from web3 import Web3

from .abi import (
    ERC20_ABI,
    UNISWAP_V2_FACTORY_ABI,
    UNISWAP_V2_PAIR_ABI,
    UNISWAP_V3_FACTORY_ABI,
    UNISWAP_V3_POOL_ABI,
)
from .types import TokenInfo

logger = logging.getLogger(__name__)

ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"

T = TypeVar("T")


class ChainClient:
    """
    Thin async facade over the factory, pool, pair and ERC20 contracts.

    Connection lifecycle (provider creation, reconnects) belongs to the
    caller; this class only issues calls on the Web3 instance it is given.
    """

    def __init__(
        self,
        w3: Web3,
        wallet_address: str,
        factory_v3: str,
        factory_v2: str,
        poll_sec: float = 2.0,
    ):
        """
        Initialize chain client.

        Args:
            w3: Web3 instance connected to RPC
            wallet_address: Address whose balances are reported in TokenInfo
            factory_v3: V3 factory address (getPool)
            factory_v2: V2 factory address (getPair)
            poll_sec: Seconds between block-number polls in blocks()
        """
        self.w3 = w3
        self.wallet_address = Web3.to_checksum_address(wallet_address)
        self.poll_sec = poll_sec

        self.factory_v3 = w3.eth.contract(
            address=Web3.to_checksum_address(factory_v3), abi=UNISWAP_V3_FACTORY_ABI
        )
        self.factory_v2 = w3.eth.contract(
            address=Web3.to_checksum_address(factory_v2), abi=UNISWAP_V2_FACTORY_ABI
        )

    async def _call(self, fn: Callable[[], T]) -> T:
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, fn)

    def _token(self, token_address: str):
        return self.w3.eth.contract(
            address=Web3.to_checksum_address(token_address), abi=ERC20_ABI
        )

    async def token_info(self, token_address: str) -> TokenInfo:
        """Fetch decimals, symbol and wallet balance of a token in parallel."""
        token = self._token(token_address)
        decimals, symbol, balance = await asyncio.gather(
            self._call(token.functions.decimals().call),
            self._call(token.functions.symbol().call),
            self._call(token.functions.balanceOf(self.wallet_address).call),
        )
        return TokenInfo(
            address=Web3.to_checksum_address(token_address),
            decimals=int(decimals),
            symbol=symbol,
            balance=int(balance),
        )

    async def allowance(self, token_address: str, spender: str) -> int:
        """Allowance granted by the wallet to `spender`."""
        token = self._token(token_address)
        return int(
            await self._call(
                token.functions.allowance(
                    self.wallet_address, Web3.to_checksum_address(spender)
                ).call
            )
        )

    async def get_v3_pool(self, token_a: str, token_b: str, fee: int) -> Optional[str]:
        """
        Look up a V3 pool for a token pair at one fee tier.

        Returns:
            Checksum pool address, or None if the factory returns the zero address
        """
        address = await self._call(
            self.factory_v3.functions.getPool(
                Web3.to_checksum_address(token_a),
                Web3.to_checksum_address(token_b),
                fee,
            ).call
        )
        if not address or address == ZERO_ADDRESS:
            return None
        return Web3.to_checksum_address(address)

    async def get_v2_pair(self, token_a: str, token_b: str) -> Optional[str]:
        """
        Look up a V2 pair for a token pair.

        Returns:
            Checksum pair address, or None if the factory returns the zero address
        """
        address = await self._call(
            self.factory_v2.functions.getPair(
                Web3.to_checksum_address(token_a), Web3.to_checksum_address(token_b)
            ).call
        )
        if not address or address == ZERO_ADDRESS:
            return None
        return Web3.to_checksum_address(address)

    async def token0(self, venue_address: str) -> str:
        """token0 of a V2 pair or V3 pool (both expose the same getter)."""
        contract = self.w3.eth.contract(
            address=Web3.to_checksum_address(venue_address), abi=UNISWAP_V2_PAIR_ABI
        )
        return Web3.to_checksum_address(
            await self._call(contract.functions.token0().call)
        )

    async def slot0_sqrt_price(self, pool_address: str) -> int:
        """sqrtPriceX96 from a V3 pool's slot0."""
        pool = self.w3.eth.contract(
            address=Web3.to_checksum_address(pool_address), abi=UNISWAP_V3_POOL_ABI
        )
        slot0 = await self._call(pool.functions.slot0().call)
        return int(slot0[0])

    async def get_reserves(self, pair_address: str) -> Tuple[int, int]:
        """(reserve0, reserve1) of a V2 pair."""
        pair = self.w3.eth.contract(
            address=Web3.to_checksum_address(pair_address), abi=UNISWAP_V2_PAIR_ABI
        )
        reserves = await self._call(pair.functions.getReserves().call)
        return int(reserves[0]), int(reserves[1])

    async def block_number(self) -> int:
        """Current chain head."""
        return int(await self._call(lambda: self.w3.eth.block_number))

    async def blocks(self) -> AsyncIterator[int]:
        """
        Yield every new block number, in order, as the chain head advances.

        Polls the head every poll_sec. Blocks mined between two polls are all
        yielded so callers keying off block numbers never miss one.
        """
        last = await self.block_number()
        logger.info(f"Subscribed to blocks from #{last}")
        while True:
            await asyncio.sleep(self.poll_sec)
            head = await self.block_number()
            for number in range(last + 1, head + 1):
                yield number
            last = max(last, head)
