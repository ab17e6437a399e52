"""Market price discovery — walk the book until the requested amount is covered."""

from __future__ import annotations

from typing import Iterable, Optional

import structlog

from clob.precision import round_normal
from config.settings import settings
from core.errors import InsufficientLiquidityError
from models.book import AccumulatedLevel, BookLevel, OrderBookData
from models.order import Side

logger = structlog.get_logger("clob.market_price")


def accumulate_levels(levels: Iterable[BookLevel]) -> list[AccumulatedLevel]:
    """Annotate already-sorted levels with running value and size totals.

    Empty levels are skipped.  ``value``, ``net_value`` and ``net_size``
    are rounded half-up to 2 places at every step, the same way the
    exchange's own market-order sizing does.
    """
    accumulated: list[AccumulatedLevel] = []
    for level in levels:
        if level.size <= 0:
            continue
        value = round_normal(level.price * level.size, 2)
        prev_value = accumulated[-1].net_value if accumulated else 0.0
        prev_size = accumulated[-1].net_size if accumulated else 0.0
        accumulated.append(
            AccumulatedLevel(
                price=level.price,
                size=level.size,
                value=value,
                net_value=round_normal(value + prev_value, 2),
                net_size=round_normal(level.size + prev_size, 2),
            )
        )
    return accumulated


def calculate_market_price(
    side: Side,
    book: OrderBookData,
    amount: float,
    slippage: Optional[float] = None,
) -> float:
    """Worst price that still fills *amount* within *slippage* percent.

    Parameters
    ----------
    side:
        ``BUY`` walks asks cheapest first and compares cumulative
        collateral value; ``SELL`` walks bids highest first and compares
        cumulative share size.
    book:
        Snapshot; it is not modified.
    amount:
        Collateral to spend (buy) or shares to sell (sell).
    slippage:
        Percent headroom added to *amount*.  Defaults to
        ``settings.DEFAULT_SLIPPAGE_PCT`` (0.1 %).

    Returns
    -------
    float
        Price of the first level whose running total covers the target, or
        ``0.0`` when the whole side of the book is not enough.  A zero price
        means the order must not be submitted.
    """
    slippage = settings.DEFAULT_SLIPPAGE_PCT if slippage is None else slippage
    target = amount * (1 + slippage / 100)

    if side is Side.BUY:
        levels = accumulate_levels(sorted(book.asks, key=lambda lvl: lvl.price))
        match = next((lvl for lvl in levels if lvl.net_value >= target), None)
    else:
        levels = accumulate_levels(
            sorted(book.bids, key=lambda lvl: lvl.price, reverse=True)
        )
        match = next((lvl for lvl in levels if lvl.net_size >= target), None)

    if match is None:
        logger.info(
            "market_price.insufficient_depth",
            side=side.value,
            amount=amount,
            target=target,
            levels=len(levels),
        )
        return 0.0
    return match.price


def require_market_price(
    side: Side,
    book: OrderBookData,
    amount: float,
    slippage: Optional[float] = None,
) -> float:
    """Like :func:`calculate_market_price`, but raise instead of returning ``0.0``.

    Raises
    ------
    InsufficientLiquidityError
        If the book cannot cover *amount* within *slippage*.
    """
    price = calculate_market_price(side, book, amount, slippage)
    if price == 0.0:
        raise InsufficientLiquidityError(
            side.value,
            amount,
            settings.DEFAULT_SLIPPAGE_PCT if slippage is None else slippage,
        )
    return price
