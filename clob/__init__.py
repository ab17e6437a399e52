"""Polymarket signing engine — clob package."""

from .client import ClobClient
from .constants import CONTRACT_CONFIG, ROUNDING_CONFIG, get_contract_config, get_rounding_config
from .market_price import calculate_market_price, require_market_price
from .order_builder import OrderBuilder
from .precision import adjust_amount, decimal_places, round_down, round_normal, round_up

__all__ = [
    "CONTRACT_CONFIG",
    "ClobClient",
    "OrderBuilder",
    "ROUNDING_CONFIG",
    "adjust_amount",
    "calculate_market_price",
    "decimal_places",
    "get_contract_config",
    "get_rounding_config",
    "require_market_price",
    "round_down",
    "round_normal",
    "round_up",
]
