# apps/api_portfolio/core/domain/entities/strategy_entity.py

from decimal import Decimal
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

# |sum(targetPercentage) - 100| must not exceed this, compared as exact decimals
ALLOCATION_TOLERANCE = Decimal("0.02")


class TokenEntity(BaseModel):
    """
    Token reference inside an allocation line. `address` may be the native
    currency sentinel.
    """
    model_config = ConfigDict(populate_by_name=True)

    address: str
    symbol: str
    name: str
    decimals: int = Field(18, ge=0, le=36)
    chain_id: int = Field(1, alias="chainId")

    def address_for_chain(self, chain_id: int) -> str:
        return self.address


class TokenAllocationEntity(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    token: TokenEntity
    target_percentage: float = Field(..., ge=0.0, le=100.0, alias="targetPercentage")


def _exact_total(allocations: List[TokenAllocationEntity]) -> Decimal:
    return sum((Decimal(str(a.target_percentage)) for a in allocations), Decimal(0))


def total_percentage(allocations: List[TokenAllocationEntity]) -> float:
    return float(_exact_total(allocations))


def is_valid_allocation(allocations: List[TokenAllocationEntity]) -> bool:
    return abs(_exact_total(allocations) - 100) <= ALLOCATION_TOLERANCE


class StrategyEntity(BaseModel):
    """
    Canonical in-memory representation of a document in the 'strategies'
    collection. Stored with snake_case keys, served with camelCase aliases.

    `is_active` is written as True at creation and is only used as a read
    filter; deletion removes the document.
    """
    model_config = ConfigDict(populate_by_name=True)

    strategy_id: str = Field(..., alias="strategyId")
    wallet_address: str = Field(..., alias="walletAddress")
    name: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = Field(None, max_length=500)
    target_allocation: List[TokenAllocationEntity] = Field(default_factory=list, alias="targetAllocation")

    is_active: bool = Field(True, alias="isActive")
    drift_threshold: float = Field(5, ge=1, le=50, alias="driftThreshold")
    auto_rebalance: bool = Field(False, alias="autoRebalance")
    chain_id: int = Field(1, alias="chainId")

    total_investment_eth: str = Field("0", alias="totalInvestmentETH")
    total_investment_usd: float = Field(0.0, alias="totalInvestmentUSD")

    # storage metadata
    mongo_id: Optional[str] = Field(None, alias="mongoId")
    created_at: Optional[int] = Field(None, alias="createdAt")  # unix ms
    created_at_iso: Optional[str] = Field(None, alias="createdAtIso")
    updated_at: Optional[int] = Field(None, alias="updatedAt")

    def total_percentage(self) -> float:
        return total_percentage(self.target_allocation)

    def is_valid_allocation(self) -> bool:
        return is_valid_allocation(self.target_allocation)

    def to_document(self) -> Dict:
        """Mongo document (snake_case, without storage-assigned fields)."""
        return self.model_dump(
            mode="json",
            exclude={"mongo_id", "created_at", "created_at_iso", "updated_at"},
        )

    @classmethod
    def from_document(cls, doc: Dict) -> "StrategyEntity":
        data = dict(doc)
        _id = data.pop("_id", None)
        if _id is not None and not data.get("mongo_id"):
            data["mongo_id"] = str(_id)
        return cls.model_validate(data)
