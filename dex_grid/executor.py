"""
Trade executor for grid swaps.

Handles:
- ERC20 approval of the smart router (only when allowance is short)
- Single-hop swaps routed by venue kind (V3 exactInputSingle, V2 path swap)
- Waiting for on-chain settlement before reporting success
- Dry-run mode that logs the intended swap without signing anything
"""

import asyncio
import logging
import time
from typing import Any, Callable, Dict, Optional, TypeVar

from eth_account.signers.local import LocalAccount
from web3 import Web3

from .abi import ERC20_ABI, SMART_ROUTER_ABI
from .chain_client import ChainClient
from .exceptions import ExecutorFailure
from .pool_locator import PoolLocator
from .types import VenueKind

logger = logging.getLogger(__name__)

MAX_UINT256 = 2**256 - 1

# Seconds a V2 path swap stays valid after submission
SWAP_DEADLINE_SEC = 300

T = TypeVar("T")


class TradeExecutor:
    """
    Submits approvals and swaps through the smart router and waits for receipts.

    Every call blocks (asynchronously) until the transaction is mined, so the
    caller never sees success for a swap that has not settled.
    """

    def __init__(
        self,
        w3: Web3,
        account: Optional[LocalAccount],
        router_address: str,
        chain: ChainClient,
        locator: PoolLocator,
        dry_run: bool = False,
        receipt_timeout: float = 120.0,
    ):
        """
        Initialize executor.

        Args:
            w3: Web3 instance
            account: Signing account (may be None in dry-run mode)
            router_address: Smart router contract address
            chain: Chain client, used for allowance reads
            locator: Pool locator, used to pick the swap route
            dry_run: If True, log swaps but never sign or submit
            receipt_timeout: Seconds to wait for a receipt
        """
        if account is None and not dry_run:
            raise ValueError("A signing account is required unless dry_run is set")

        self.w3 = w3
        self.account = account
        self.router_address = Web3.to_checksum_address(router_address)
        self.router = w3.eth.contract(address=self.router_address, abi=SMART_ROUTER_ABI)
        self.chain = chain
        self.locator = locator
        self.dry_run = dry_run
        self.receipt_timeout = receipt_timeout

        self.swaps_attempted = 0
        self.swaps_settled = 0

    async def _call(self, fn: Callable[[], T]) -> T:
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, fn)

    async def approve_if_needed(self, token_address: str, amount: int) -> Optional[Dict]:
        """
        Approve the router to spend `token_address` if allowance is below amount.

        Approves the maximum uint256 so later swaps skip this step.

        Returns:
            Approval receipt, or None if no approval was needed

        Raises:
            ExecutorFailure: If the approval transaction fails
        """
        allowance = await self.chain.allowance(token_address, self.router_address)
        if allowance >= amount:
            logger.debug(f"Allowance {allowance} for {token_address} already sufficient")
            return None

        logger.info(f"📗 Approving token spend: {token_address}")
        if self.dry_run:
            logger.info(f"[DRY RUN] Would approve router for {token_address}")
            return self._dry_run_receipt("approve")

        token = self.w3.eth.contract(
            address=Web3.to_checksum_address(token_address), abi=ERC20_ABI
        )
        return await self._send(
            "approve", token.functions.approve(self.router_address, MAX_UINT256)
        )

    async def swap(
        self,
        token_in: str,
        token_out: str,
        amount_in: int,
        recipient: str,
        min_amount_out: int = 0,
    ) -> Dict:
        """
        Swap an exact input amount and wait for settlement.

        Args:
            token_in: Input token address
            token_out: Output token address
            amount_in: Input amount in raw units
            recipient: Address receiving the output tokens
            min_amount_out: Revert if the swap yields less than this

        Returns:
            Transaction receipt

        Raises:
            ExecutorFailure: If routing, signing, submission or settlement fails
        """
        self.swaps_attempted += 1

        try:
            venue = await self.locator.locate(token_in, token_out)
        except Exception as e:
            raise ExecutorFailure(f"No route for swap: {e}", action="swap") from e

        token_in = Web3.to_checksum_address(token_in)
        token_out = Web3.to_checksum_address(token_out)
        recipient = Web3.to_checksum_address(recipient)

        if venue.kind is VenueKind.V3:
            call = self.router.functions.exactInputSingle(
                (
                    token_in,
                    token_out,
                    venue.fee_tier,
                    recipient,
                    amount_in,
                    min_amount_out,
                    0,
                )
            )
        else:
            call = self.router.functions.swapExactTokensForTokens(
                amount_in,
                min_amount_out,
                [token_in, token_out],
                recipient,
                int(time.time()) + SWAP_DEADLINE_SEC,
            )

        logger.info(
            f"Swapping {amount_in} {token_in} -> {token_out} via {venue.kind.value} "
            f"{venue.address} (min out: {min_amount_out})"
        )
        if self.dry_run:
            logger.info("[DRY RUN] Swap not submitted")
            self.swaps_settled += 1
            return self._dry_run_receipt("swap")

        receipt = await self._send("swap", call)
        self.swaps_settled += 1
        return receipt

    async def _send(self, action: str, call: Any) -> Dict:
        """Build, sign and submit a contract call, then wait for its receipt."""
        try:
            nonce = await self._call(
                lambda: self.w3.eth.get_transaction_count(self.account.address)
            )
            tx = await self._call(
                lambda: call.build_transaction(
                    {"from": self.account.address, "nonce": nonce}
                )
            )
            signed = self.account.sign_transaction(tx)
            tx_hash = await self._call(
                lambda: self.w3.eth.send_raw_transaction(signed.raw_transaction)
            )
        except Exception as e:
            raise ExecutorFailure(
                f"{action} submission failed: {e}", action=action
            ) from e

        tx_hash_hex = self.w3.to_hex(tx_hash)
        logger.info(f"Waiting for {action} tx {tx_hash_hex}...")

        try:
            receipt = await self._call(
                lambda: self.w3.eth.wait_for_transaction_receipt(
                    tx_hash, timeout=self.receipt_timeout
                )
            )
        except Exception as e:
            # Submitted but unconfirmed: the swap may still land
            raise ExecutorFailure(
                f"{action} tx {tx_hash_hex} not confirmed: {e}",
                action=action,
                tx_hash=tx_hash_hex,
                details={"ambiguous": True},
            ) from e

        if receipt["status"] != 1:
            raise ExecutorFailure(
                f"{action} tx {tx_hash_hex} reverted",
                action=action,
                tx_hash=tx_hash_hex,
                details={"gas_used": receipt.get("gasUsed")},
            )

        logger.info(f"✓ {action} settled in block {receipt.get('blockNumber')}")
        return receipt

    @staticmethod
    def _dry_run_receipt(action: str) -> Dict:
        return {
            "transactionHash": "0xDRYRUN",
            "status": 1,
            "gasUsed": 0,
            "action": action,
            "dry_run": True,
        }

    def get_stats(self) -> Dict:
        """Get execution statistics."""
        return {
            "swaps_attempted": self.swaps_attempted,
            "swaps_settled": self.swaps_settled,
        }
