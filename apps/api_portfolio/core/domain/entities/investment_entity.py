# apps/api_portfolio/core/domain/entities/investment_entity.py

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class SwapFromToken(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    address: str
    symbol: str
    amount: str                      # human decimal string in the source token
    amount_usd: float = Field(0.0, alias="amountUSD")
    decimals: int = Field(18, ge=0, le=36)


class SwapToToken(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    address: str
    symbol: str
    target_amount: str = Field(..., alias="targetAmount")   # "0" when no quote
    target_amount_usd: float = Field(0.0, alias="targetAmountUSD")
    percentage: float
    decimals: int = 18


class SwapAllocation(BaseModel):
    """
    One allocation line of an investment plan.

    Pass-through lines (native currency / wrapped native) carry identical
    amounts on both sides and no quote. Lines whose quote failed carry
    target_amount "0" and no quote, so the review step can surface them.
    """
    model_config = ConfigDict(populate_by_name=True)

    from_token: SwapFromToken = Field(..., alias="fromToken")
    to_token: SwapToToken = Field(..., alias="toToken")
    quote: Optional[Dict[str, Any]] = None
    pass_through: bool = Field(False, alias="passThrough")

    @property
    def quote_failed(self) -> bool:
        return not self.pass_through and self.quote is None


class InvestmentCalculation(BaseModel):
    """
    Ephemeral plan produced by CalculateInvestmentUseCase and handed, by value,
    to ExecuteInvestmentUseCase. Never persisted.
    """
    model_config = ConfigDict(populate_by_name=True)

    total_investment_usd: float = Field(..., alias="totalInvestmentUSD")
    total_investment_eth: str = Field(..., alias="totalInvestmentETH")
    swaps: List[SwapAllocation] = Field(default_factory=list)
    estimated_gas_usd: float = Field(0.0, alias="estimatedGasUSD")
    price_impact: float = Field(0.0, alias="priceImpact")  # worst case across quotes

    @property
    def failed_quotes(self) -> List[SwapAllocation]:
        return [s for s in self.swaps if s.quote_failed]
