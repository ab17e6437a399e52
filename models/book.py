"""Order-book snapshot as returned by ``GET /book``."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from pydantic import BaseModel, Field


class BookLevel(BaseModel):
    """One price level.  The API sends both fields as decimal strings."""

    price: float = Field(..., ge=0)
    size: float = Field(..., ge=0)


class OrderBookData(BaseModel):
    """Snapshot of one token's book.  Levels arrive in API order, unsorted."""

    market: Optional[str] = None
    asset_id: Optional[str] = None
    timestamp: Optional[str] = None
    hash: Optional[str] = None
    bids: list[BookLevel] = Field(default_factory=list)
    asks: list[BookLevel] = Field(default_factory=list)


@dataclass(frozen=True)
class AccumulatedLevel:
    """Price level annotated with running totals over a sorted book."""

    price: float
    size: float
    value: float
    net_value: float
    net_size: float
