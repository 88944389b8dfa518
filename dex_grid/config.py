"""
Configuration loading and validation for the DEX grid bot.
"""

import os
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, List, Optional

import yaml
from dotenv import load_dotenv
from web3 import Web3

from .adapters.v3 import DEFAULT_FEE_TIERS
from .exceptions import ConfigurationError


class ConfigError(ConfigurationError):
    """Raised when config is invalid or missing required fields."""

    pass


# Environment variable -> config key
ENV_KEYS = {
    "RPC_URL": "rpc_url",
    "WS": "rpc_url",
    "PRIVATE_KEY": "private_key",
    "BASE_TOKEN": "base_token",
    "TARGET_TOKEN": "target_token",
    "FACTORYV3": "factory_v3",
    "FACTORYV2": "factory_v2",
    "SMART_ROUTER": "smart_router",
    "GRID_TOTAL": "grid_total",
    "GRID_AMOUNT": "grid_amount",
    "GRID_PERCENT": "grid_percent",
    "GRID_FEE": "grid_fee",
    "BLOCK_DELTA": "block_delta",
    "FEE_TIERS": "fee_tiers",
    "SLIPPAGE_BPS": "slippage_bps",
    "POLL_SEC": "poll_sec",
    "DRY_RUN": "dry_run",
    "VENUE_CACHE_TTL": "venue_cache_ttl",
    "RECEIPT_TIMEOUT": "receipt_timeout",
    "TICK_QUEUE_SIZE": "tick_queue_size",
    "WALLET_ADDRESS": "wallet_address",
}


class GridConfig:
    """
    Parsed and validated configuration for the grid bot.

    Attributes:
        rpc_url: HTTP(S) or WS(S) RPC endpoint
        private_key: Signing key (optional in dry-run mode)
        base_token: Token the grid is priced in and buys with
        target_token: Token the grid accumulates and sells
        factory_v3: V3 factory address
        factory_v2: V2 factory address
        smart_router: Router used for swaps and approvals
        grid_total: Minimum holding, in base-token units, quoted into target
        grid_amount: Base-token units spent per buy
        grid_percent: Grid step as percent of the starting price
        grid_fee: Absolute price buffer added beyond each step
        block_delta: Evaluate only blocks whose number is a multiple of this
        fee_tiers: V3 fee tiers probed in order
        slippage_bps: Swap output tolerance in basis points
        poll_sec: Seconds between chain-head polls
        dry_run: If True, log swaps instead of submitting them
        wallet_address: Address whose balances a keyless dry run reads
        venue_cache_ttl: Seconds to reuse a located venue (0 disables)
        tick_queue_size: Block ticks buffered while a tick is in flight
        receipt_timeout: Seconds to wait for a transaction receipt
    """

    def __init__(self, config_dict: Dict[str, Any]):
        """
        Parse and validate config from dictionary.

        Args:
            config_dict: Loaded YAML config or environment mapping

        Raises:
            ConfigError: If required fields missing or invalid
        """
        self.rpc_url: str = self._get_required(config_dict, "rpc_url", str)
        self.private_key: Optional[str] = config_dict.get("private_key") or None
        self.dry_run: bool = self._parse_bool(config_dict.get("dry_run", False))

        if not self.private_key and not self.dry_run:
            raise ConfigError("private_key is required unless dry_run is enabled")

        self.wallet_address: Optional[str] = None
        if config_dict.get("wallet_address"):
            self.wallet_address = self._get_address(config_dict, "wallet_address")

        # Addresses
        self.base_token: str = self._get_address(config_dict, "base_token")
        self.target_token: str = self._get_address(config_dict, "target_token")
        self.factory_v3: str = self._get_address(config_dict, "factory_v3")
        self.factory_v2: str = self._get_address(config_dict, "factory_v2")
        self.smart_router: str = self._get_address(config_dict, "smart_router")

        if self.base_token == self.target_token:
            raise ConfigError("base_token and target_token must differ")

        # Grid parameters
        self.grid_total: Decimal = self._get_decimal(config_dict, "grid_total")
        self.grid_amount: Decimal = self._get_decimal(config_dict, "grid_amount")
        self.grid_percent: float = self._get_float(config_dict, "grid_percent")
        self.grid_fee: float = self._get_float(config_dict, "grid_fee", default=0.0)

        if self.grid_amount <= 0:
            raise ConfigError(f"grid_amount must be positive: {self.grid_amount}")
        if self.grid_total < 0:
            raise ConfigError(f"grid_total must be non-negative: {self.grid_total}")
        if self.grid_percent <= 0:
            raise ConfigError(f"grid_percent must be positive: {self.grid_percent}")
        if self.grid_fee < 0:
            raise ConfigError(f"grid_fee must be non-negative: {self.grid_fee}")

        # Loop settings
        self.block_delta: int = self._get_int(config_dict, "block_delta", default=10)
        if self.block_delta < 1:
            raise ConfigError(f"block_delta must be >= 1: {self.block_delta}")

        self.fee_tiers: List[int] = self._parse_fee_tiers(
            config_dict.get("fee_tiers", DEFAULT_FEE_TIERS)
        )

        self.slippage_bps: int = self._get_int(config_dict, "slippage_bps", default=50)
        if not 0 <= self.slippage_bps <= 10_000:
            raise ConfigError(f"slippage_bps must be in [0, 10000]: {self.slippage_bps}")

        self.poll_sec: float = self._get_float(config_dict, "poll_sec", default=2.0)
        self.venue_cache_ttl: float = self._get_float(
            config_dict, "venue_cache_ttl", default=0.0
        )
        self.tick_queue_size: int = self._get_int(
            config_dict, "tick_queue_size", default=1
        )
        self.receipt_timeout: float = self._get_float(
            config_dict, "receipt_timeout", default=120.0
        )

        if self.poll_sec <= 0:
            raise ConfigError(f"poll_sec must be positive: {self.poll_sec}")
        if self.tick_queue_size < 1:
            raise ConfigError(f"tick_queue_size must be >= 1: {self.tick_queue_size}")

    @property
    def has_wallet(self) -> bool:
        """Whether balances are read for a real wallet rather than a placeholder."""
        return bool(self.private_key or self.wallet_address)

    @staticmethod
    def _get_required(d: Dict, key: str, expected_type: type) -> Any:
        """Get required config field with type validation."""
        if key not in d or d[key] in (None, ""):
            raise ConfigError(f"Missing required config field: {key}")
        val = d[key]
        if not isinstance(val, expected_type):
            raise ConfigError(
                f"Config field '{key}' must be {expected_type.__name__}, got {type(val).__name__}"
            )
        return val

    @classmethod
    def _get_address(cls, d: Dict, key: str) -> str:
        """Get required address field as a checksum address."""
        raw = cls._get_required(d, key, str)
        try:
            return Web3.to_checksum_address(raw)
        except ValueError as e:
            raise ConfigError(f"Config field '{key}' is not a valid address: {raw}") from e

    @staticmethod
    def _get_decimal(d: Dict, key: str) -> Decimal:
        if key not in d or d[key] in (None, ""):
            raise ConfigError(f"Missing required config field: {key}")
        try:
            return Decimal(str(d[key]))
        except InvalidOperation as e:
            raise ConfigError(f"Config field '{key}' must be a number: {d[key]}") from e

    @staticmethod
    def _get_float(d: Dict, key: str, default: Optional[float] = None) -> float:
        val = d.get(key)
        if val in (None, ""):
            if default is None:
                raise ConfigError(f"Missing required config field: {key}")
            return default
        try:
            return float(val)
        except (TypeError, ValueError) as e:
            raise ConfigError(f"Config field '{key}' must be a number: {val}") from e

    @staticmethod
    def _get_int(d: Dict, key: str, default: int) -> int:
        val = d.get(key)
        if val in (None, ""):
            return default
        try:
            return int(val)
        except (TypeError, ValueError) as e:
            raise ConfigError(f"Config field '{key}' must be an integer: {val}") from e

    @staticmethod
    def _parse_bool(val: Any) -> bool:
        if isinstance(val, bool):
            return val
        return str(val).strip().lower() in ("1", "true", "yes", "on")

    @staticmethod
    def _parse_fee_tiers(raw: Any) -> List[int]:
        """Parse fee tiers from a list or a comma-separated string."""
        if isinstance(raw, str):
            raw = [part for part in raw.split(",") if part.strip()]
        if not isinstance(raw, (list, tuple)) or not raw:
            raise ConfigError("fee_tiers must be a non-empty list")
        try:
            tiers = [int(str(t).strip()) for t in raw]
        except ValueError as e:
            raise ConfigError(f"fee_tiers must be integers: {raw}") from e
        if any(t <= 0 for t in tiers):
            raise ConfigError(f"fee_tiers must be positive: {tiers}")
        return tiers


def load_config(
    config_path: str, overrides: Optional[Dict[str, Any]] = None
) -> GridConfig:
    """
    Load and validate config from YAML file.

    Args:
        config_path: Path to config YAML file
        overrides: Values taking precedence over the file (e.g. CLI flags)

    Returns:
        Validated GridConfig instance

    Raises:
        ConfigError: If config invalid or file not found
    """
    if not os.path.exists(config_path):
        raise ConfigError(f"Config file not found: {config_path}")

    try:
        with open(config_path, "r") as f:
            config_dict = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigError(f"Failed to parse YAML: {e}") from e

    if not isinstance(config_dict, dict):
        raise ConfigError("Config file must contain a YAML dictionary")

    config_dict.update(overrides or {})
    return GridConfig(config_dict)


def config_from_env(
    env: Optional[Dict[str, str]] = None,
    overrides: Optional[Dict[str, Any]] = None,
) -> GridConfig:
    """
    Build config from environment variables, loading a .env file first.

    Args:
        env: Mapping to read instead of os.environ (the .env file is not loaded)
        overrides: Values taking precedence over the environment

    Returns:
        Validated GridConfig instance
    """
    if env is None:
        load_dotenv()
        env = dict(os.environ)

    config_dict: Dict[str, Any] = {}
    for env_key, config_key in ENV_KEYS.items():
        if env.get(env_key) not in (None, "") and config_key not in config_dict:
            config_dict[config_key] = env[env_key]

    config_dict.update(overrides or {})
    return GridConfig(config_dict)
