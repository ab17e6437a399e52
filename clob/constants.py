"""CLOB constants — rounding buckets, per-chain contracts and EIP-712 domain names."""

from __future__ import annotations

from dataclasses import dataclass
from types import MappingProxyType
from typing import Mapping

import structlog

from core.errors import UnknownTickSizeError, UnsupportedChainError
from models.order import TickSize

logger = structlog.get_logger("clob.constants")

POLYGON_MAINNET = 137
POLYGON_AMOY = 80002

PROTOCOL_NAME = "Polymarket CTF Exchange"
PROTOCOL_VERSION = "1"


@dataclass(frozen=True)
class RoundingConfig:
    """Decimal places allowed for price, size and amount in one tick bucket."""

    price: int
    size: int
    amount: int


@dataclass(frozen=True)
class ContractConfig:
    """Exchange-side contract addresses for one chain."""

    exchange: str
    neg_risk_exchange: str
    neg_risk_adapter: str
    collateral: str
    conditional_tokens: str


ROUNDING_CONFIG: Mapping[TickSize, RoundingConfig] = MappingProxyType({
    TickSize.TENTH: RoundingConfig(price=1, size=2, amount=3),
    TickSize.HUNDREDTH: RoundingConfig(price=2, size=2, amount=4),
    TickSize.THOUSANDTH: RoundingConfig(price=3, size=2, amount=5),
    TickSize.TEN_THOUSANDTH: RoundingConfig(price=4, size=2, amount=6),
})

CONTRACT_CONFIG: Mapping[int, ContractConfig] = MappingProxyType({
    POLYGON_MAINNET: ContractConfig(
        exchange="0x4bFb41d5B3570DeFd03C39a9A4D8dE6Bd8B8982E",
        neg_risk_exchange="0xC5d563A36AE78145C45a50134d48A1215220f80a",
        neg_risk_adapter="0xd91E80cF2E7be2e162c6513ceD06f1dD0dA35296",
        collateral="0x2791Bca1f2de4661ED88A30C99A7a9449Aa84174",
        conditional_tokens="0x4D97DCd97eC945f40cF65F87097ACe5EA0476045",
    ),
    POLYGON_AMOY: ContractConfig(
        exchange="0xdFE02Eb6733538f8Ea35D585af8DE5958AD99E40",
        neg_risk_exchange="0xC5d563A36AE78145C45a50134d48A1215220f80a",
        neg_risk_adapter="0xd91E80cF2E7be2e162c6513ceD06f1dD0dA35296",
        collateral="0x9c4e1703476e875070ee25b56a58b008cfb8fa78",
        conditional_tokens="0x69308FB512518e39F9b16112fA8d994F4e2Bf8bB",
    ),
})


def parse_tick_size(value: TickSize | str | float) -> TickSize:
    """Normalise a tick size from the API (string or number) to its bucket.

    Raises
    ------
    UnknownTickSizeError
        If *value* is not one of ``0.1``, ``0.01``, ``0.001``, ``0.0001``.
    """
    if isinstance(value, TickSize):
        return value
    try:
        text = value if isinstance(value, str) else repr(float(value))
        return TickSize(text)
    except (TypeError, ValueError) as exc:
        raise UnknownTickSizeError(value) from exc


def get_rounding_config(tick_size: TickSize | str | float) -> RoundingConfig:
    """Look up the rounding bucket for *tick_size*."""
    return ROUNDING_CONFIG[parse_tick_size(tick_size)]


def get_contract_config(chain_id: int) -> ContractConfig:
    """Strict lookup of the contract table.

    Raises
    ------
    UnsupportedChainError
        If *chain_id* has no configuration.
    """
    try:
        return CONTRACT_CONFIG[chain_id]
    except KeyError as exc:
        raise UnsupportedChainError(chain_id) from exc


def get_contract_config_or_mainnet(chain_id: int) -> ContractConfig:
    """Lenient lookup used when signing orders: unknown chains fall back to mainnet."""
    try:
        return get_contract_config(chain_id)
    except UnsupportedChainError:
        logger.warning(
            "contract_config.unknown_chain",
            chain_id=chain_id,
            fallback=POLYGON_MAINNET,
        )
        return CONTRACT_CONFIG[POLYGON_MAINNET]
