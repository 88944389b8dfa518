"""
Unit tests for the trade executor.

Web3 and the signing account are mocked; no transaction leaves the process.
"""

from unittest.mock import AsyncMock, MagicMock, Mock

import pytest

from dex_grid.exceptions import ExecutorFailure, NoVenueFound
from dex_grid.executor import MAX_UINT256, TradeExecutor
from dex_grid.types import Venue, VenueKind

TOKEN_IN = "0x1111111111111111111111111111111111111111"
TOKEN_OUT = "0x2222222222222222222222222222222222222222"
ROUTER = "0x8888888888888888888888888888888888888888"
WALLET = "0x5555555555555555555555555555555555555555"

V3_VENUE = Venue(kind=VenueKind.V3, address="0x3333333333333333333333333333333333333333", fee_tier=500)
V2_VENUE = Venue(kind=VenueKind.V2, address="0x4444444444444444444444444444444444444444")


@pytest.fixture
def w3():
    mock_w3 = MagicMock()
    mock_w3.eth.get_transaction_count.return_value = 7
    mock_w3.eth.send_raw_transaction.return_value = b"\x01"
    mock_w3.eth.wait_for_transaction_receipt.return_value = {
        "status": 1,
        "gasUsed": 120_000,
        "blockNumber": 100,
    }
    mock_w3.to_hex = Mock(return_value="0xabc")
    return mock_w3


@pytest.fixture
def account():
    mock_account = Mock()
    mock_account.address = WALLET
    mock_account.sign_transaction.return_value = Mock(raw_transaction=b"signed")
    return mock_account


@pytest.fixture
def chain():
    mock_chain = Mock()
    mock_chain.allowance = AsyncMock(return_value=0)
    return mock_chain


def make_locator(venue):
    locator = Mock()
    locator.locate = AsyncMock(return_value=venue)
    return locator


class TestConstruction:
    def test_requires_account_unless_dry_run(self, w3, chain):
        with pytest.raises(ValueError):
            TradeExecutor(w3, None, ROUTER, chain, make_locator(V3_VENUE))

        executor = TradeExecutor(
            w3, None, ROUTER, chain, make_locator(V3_VENUE), dry_run=True
        )
        assert executor.dry_run


class TestApprove:
    @pytest.mark.asyncio
    async def test_skips_when_allowance_sufficient(self, w3, account, chain):
        chain.allowance = AsyncMock(return_value=MAX_UINT256)
        executor = TradeExecutor(w3, account, ROUTER, chain, make_locator(V3_VENUE))

        assert await executor.approve_if_needed(TOKEN_IN, 10**18) is None
        w3.eth.send_raw_transaction.assert_not_called()

    @pytest.mark.asyncio
    async def test_approves_max(self, w3, account, chain):
        executor = TradeExecutor(w3, account, ROUTER, chain, make_locator(V3_VENUE))

        receipt = await executor.approve_if_needed(TOKEN_IN, 10**18)

        assert receipt["status"] == 1
        token = w3.eth.contract.return_value
        token.functions.approve.assert_called_once_with(ROUTER, MAX_UINT256)
        account.sign_transaction.assert_called_once()

    @pytest.mark.asyncio
    async def test_dry_run_approval(self, w3, chain):
        executor = TradeExecutor(
            w3, None, ROUTER, chain, make_locator(V3_VENUE), dry_run=True
        )

        receipt = await executor.approve_if_needed(TOKEN_IN, 10**18)

        assert receipt["dry_run"] is True
        w3.eth.send_raw_transaction.assert_not_called()


class TestSwap:
    @pytest.mark.asyncio
    async def test_v3_exact_input_single(self, w3, account, chain):
        executor = TradeExecutor(w3, account, ROUTER, chain, make_locator(V3_VENUE))

        receipt = await executor.swap(TOKEN_IN, TOKEN_OUT, 1000, WALLET, min_amount_out=990)

        assert receipt["status"] == 1
        router = w3.eth.contract.return_value
        router.functions.exactInputSingle.assert_called_once_with(
            (TOKEN_IN, TOKEN_OUT, 500, WALLET, 1000, 990, 0)
        )
        assert executor.get_stats() == {"swaps_attempted": 1, "swaps_settled": 1}

    @pytest.mark.asyncio
    async def test_v2_path_swap(self, w3, account, chain):
        executor = TradeExecutor(w3, account, ROUTER, chain, make_locator(V2_VENUE))

        await executor.swap(TOKEN_IN, TOKEN_OUT, 1000, WALLET, min_amount_out=990)

        router = w3.eth.contract.return_value
        args = router.functions.swapExactTokensForTokens.call_args.args
        assert args[:4] == (1000, 990, [TOKEN_IN, TOKEN_OUT], WALLET)
        assert isinstance(args[4], int)

    @pytest.mark.asyncio
    async def test_dry_run_swap(self, w3, chain):
        executor = TradeExecutor(
            w3, None, ROUTER, chain, make_locator(V3_VENUE), dry_run=True
        )

        receipt = await executor.swap(TOKEN_IN, TOKEN_OUT, 1000, WALLET)

        assert receipt["dry_run"] is True
        assert receipt["action"] == "swap"
        w3.eth.send_raw_transaction.assert_not_called()

    @pytest.mark.asyncio
    async def test_no_route(self, w3, account, chain):
        locator = Mock()
        locator.locate = AsyncMock(side_effect=NoVenueFound("none", TOKEN_IN, TOKEN_OUT))
        executor = TradeExecutor(w3, account, ROUTER, chain, locator)

        with pytest.raises(ExecutorFailure) as exc_info:
            await executor.swap(TOKEN_IN, TOKEN_OUT, 1000, WALLET)

        assert isinstance(exc_info.value.__cause__, NoVenueFound)

    @pytest.mark.asyncio
    async def test_revert(self, w3, account, chain):
        w3.eth.wait_for_transaction_receipt.return_value = {"status": 0, "gasUsed": 21_000}
        executor = TradeExecutor(w3, account, ROUTER, chain, make_locator(V3_VENUE))

        with pytest.raises(ExecutorFailure) as exc_info:
            await executor.swap(TOKEN_IN, TOKEN_OUT, 1000, WALLET)

        assert exc_info.value.tx_hash == "0xabc"
        assert "reverted" in str(exc_info.value)
        assert not exc_info.value.details.get("ambiguous")
        assert executor.swaps_settled == 0

    @pytest.mark.asyncio
    async def test_receipt_timeout_is_ambiguous(self, w3, account, chain):
        w3.eth.wait_for_transaction_receipt.side_effect = TimeoutError("not mined")
        executor = TradeExecutor(w3, account, ROUTER, chain, make_locator(V3_VENUE))

        with pytest.raises(ExecutorFailure) as exc_info:
            await executor.swap(TOKEN_IN, TOKEN_OUT, 1000, WALLET)

        assert exc_info.value.details["ambiguous"] is True
        assert exc_info.value.tx_hash == "0xabc"

    @pytest.mark.asyncio
    async def test_submission_failure(self, w3, account, chain):
        w3.eth.send_raw_transaction.side_effect = ValueError("nonce too low")
        executor = TradeExecutor(w3, account, ROUTER, chain, make_locator(V3_VENUE))

        with pytest.raises(ExecutorFailure) as exc_info:
            await executor.swap(TOKEN_IN, TOKEN_OUT, 1000, WALLET)

        assert exc_info.value.tx_hash is None
        assert not exc_info.value.details
