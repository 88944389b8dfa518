"""
Command line entry point for the DEX grid bot.

Usage:
    dex-grid run
    dex-grid run --config configs/grid.yaml --dry-run
    dex-grid approve
"""

import argparse
import asyncio
import logging
import sys
from dataclasses import dataclass
from typing import List, Optional

from eth_account import Account
from eth_account.signers.local import LocalAccount
from web3 import Web3

from . import logging_config
from .chain_client import ChainClient
from .config import GridConfig, config_from_env, load_config
from .exceptions import ConfigurationError, GridBotError
from .executor import MAX_UINT256, TradeExecutor
from .pool_locator import PoolLocator
from .quote_engine import QuoteEngine
from .runner import GridRunner
from .version import __version__

logger = logging.getLogger(__name__)

# Address used as the balance owner when no key is configured (dry run)
DRY_RUN_WALLET = "0x0000000000000000000000000000000000000001"


@dataclass
class Components:
    """Wired-up collaborators for one run."""

    w3: Web3
    account: Optional[LocalAccount]
    chain: ChainClient
    locator: PoolLocator
    quotes: QuoteEngine
    executor: TradeExecutor


def connect(rpc_url: str) -> Web3:
    """
    Create a Web3 connection for an HTTP(S) or WS(S) endpoint.

    Raises:
        ConnectionError: If the endpoint is unreachable
    """
    if rpc_url.startswith(("ws://", "wss://")):
        provider = Web3.LegacyWebSocketProvider(rpc_url)
    else:
        provider = Web3.HTTPProvider(rpc_url, request_kwargs={"timeout": 20})

    w3 = Web3(provider)
    if not w3.is_connected():
        raise ConnectionError(f"Failed to connect to RPC at {rpc_url}")
    return w3


def build_components(config: GridConfig, w3: Optional[Web3] = None) -> Components:
    """Construct chain client, locator, quote engine and executor from config."""
    w3 = w3 or connect(config.rpc_url)

    account = Account.from_key(config.private_key) if config.private_key else None
    if account:
        wallet = account.address
    else:
        wallet = config.wallet_address or DRY_RUN_WALLET
    if account:
        logger.info(f"Loaded account: {account.address}")

    chain = ChainClient(
        w3,
        wallet,
        factory_v3=config.factory_v3,
        factory_v2=config.factory_v2,
        poll_sec=config.poll_sec,
    )
    locator = PoolLocator(
        chain, fee_tiers=config.fee_tiers, cache_ttl_seconds=config.venue_cache_ttl
    )
    quotes = QuoteEngine(chain, locator)
    executor = TradeExecutor(
        w3,
        account,
        config.smart_router,
        chain,
        locator,
        dry_run=config.dry_run,
        receipt_timeout=config.receipt_timeout,
    )
    return Components(w3, account, chain, locator, quotes, executor)


async def approve_all(components: Components, config: GridConfig) -> None:
    """Max-approve the router for both the base and target token."""
    for label, token in (("Base", config.base_token), ("Target", config.target_token)):
        receipt = await components.executor.approve_if_needed(token, MAX_UINT256)
        if receipt is None:
            logger.info(f"🎯 {label} token spend already approved")
        else:
            logger.info(f"🎯 Max Approve {label} Token Spend: {receipt['transactionHash']}")


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="Grid trading bot for V2/V3 AMM pools",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Run from .env / environment variables
  dex-grid run

  # Run from a YAML config without submitting swaps
  dex-grid run --config configs/grid.yaml --dry-run

  # Approve the router for both tokens
  dex-grid approve
        """,
    )
    parser.add_argument(
        "command",
        choices=["run", "approve"],
        help="run the grid loop, or approve the router for both tokens",
    )
    parser.add_argument(
        "--config",
        default=None,
        help="Path to config YAML file (default: read environment / .env)",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Log swaps instead of submitting them (overrides config setting)",
    )
    parser.add_argument("--debug", action="store_true", help="Verbose logging")
    parser.add_argument(
        "--version", action="version", version=f"%(prog)s {__version__}"
    )
    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> int:
    """
    Main entry point.

    Returns:
        Exit code (0 for success, 1 for error)
    """
    args = parse_args(argv)

    if args.debug:
        logging_config.setup_debug()
    else:
        logging_config.setup()

    overrides = {"dry_run": True} if args.dry_run else {}
    try:
        if args.config:
            config = load_config(args.config, overrides=overrides)
        else:
            config = config_from_env(overrides=overrides)
    except ConfigurationError as e:
        logger.error(f"❌ Config error: {e}")
        return 1

    try:
        components = build_components(config)
    except ConnectionError as e:
        logger.error(f"☢️ {e}")
        return 1

    try:
        if args.command == "approve":
            asyncio.run(approve_all(components, config))
        else:
            runner = GridRunner(
                config, components.chain, components.quotes, components.executor
            )
            asyncio.run(runner.run())
    except KeyboardInterrupt:
        logger.info("🛑 Stopped")
    except GridBotError as e:
        logger.error(f"❌ {e}")
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
