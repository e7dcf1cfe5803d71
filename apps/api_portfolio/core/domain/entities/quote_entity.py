# apps/api_portfolio/core/domain/entities/quote_entity.py

from dataclasses import dataclass, field
from typing import Any, Dict, Optional


@dataclass(frozen=True)
class Quote:
    """Result of a price quote, amounts in smallest units."""
    dest_amount: int
    price_impact_percent: float
    raw: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class TransactionPayload:
    """Unsigned transaction as returned by the aggregator (approval or swap)."""
    to: str
    data: str
    value: int
    gas: Optional[int] = None
    gas_price: Optional[int] = None
