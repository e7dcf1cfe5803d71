from typing import List, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, ConfigDict, Field, field_validator

from ....config import Settings
from ....core.domain.chains import same_address
from ....core.domain.entities.investment_entity import InvestmentCalculation
from ....core.domain.entities.strategy_entity import TokenAllocationEntity
from ....core.domain.exceptions import NotFoundError, ValidationError, WalletNotConnected
from ....core.domain.presets import get_preset
from ....core.gateways.transaction_signer import TransactionSigner
from ....core.services.strategy_service import StrategyService
from ....core.usecases.calculate_investment_use_case import CalculateInvestmentUseCase
from ....core.usecases.execute_investment_use_case import ExecuteInvestmentUseCase
from ....core.usecases.wallet_guard import ensure_usable_wallet
from ....core.utils.units import to_decimal
from .deps import (
    get_app_settings,
    get_calculate_use_case,
    get_execute_use_case,
    get_signer,
    get_strategy_service,
)

router = APIRouter(prefix="/investments", tags=["investments"])


class CalculateInvestmentDTO(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    wallet_address: Optional[str] = Field(None, alias="walletAddress")
    chain_id: int = Field(1, alias="chainId")
    investment_amount: str = Field(..., alias="investmentAmount", examples=["0.5"])

    # exactly one allocation source
    strategy_id: Optional[str] = Field(None, alias="strategyId")
    preset_id: Optional[str] = Field(None, alias="presetId")
    target_allocation: Optional[List[TokenAllocationEntity]] = Field(None, alias="targetAllocation")

    @field_validator("investment_amount", mode="before")
    @classmethod
    def amount_as_str(cls, v):
        return str(v) if isinstance(v, (int, float)) and not isinstance(v, bool) else v


class ExecuteInvestmentDTO(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    wallet_address: Optional[str] = Field(None, alias="walletAddress")
    chain_id: int = Field(1, alias="chainId")
    calculation: InvestmentCalculation


def _check_bounds(amount: str, settings: Settings) -> None:
    """
    Boundary-layer bounds; the calculator itself only requires amount > 0.
    """
    try:
        value = to_decimal(amount)
    except ValueError as exc:
        raise ValidationError("Investment amount must be a number") from exc
    lo = to_decimal(settings.MIN_INVESTMENT_NATIVE)
    hi = to_decimal(settings.MAX_INVESTMENT_NATIVE)
    if value < lo or value > hi:
        raise ValidationError(
            f"Investment amount must be between {settings.MIN_INVESTMENT_NATIVE} and {settings.MAX_INVESTMENT_NATIVE}"
        )


@router.post("/calculate")
async def calculate_investment(
    dto: CalculateInvestmentDTO,
    uc: CalculateInvestmentUseCase = Depends(get_calculate_use_case),
    strategies: StrategyService = Depends(get_strategy_service),
    settings: Settings = Depends(get_app_settings),
):
    """
    Build the swap plan for a stored strategy, a preset, or an ad hoc allocation.
    Lines whose quote failed are listed in `quoteFailures` for review.
    """
    _check_bounds(dto.investment_amount, settings)
    ensure_usable_wallet(dto.wallet_address, dto.chain_id)

    if dto.strategy_id:
        source = await strategies.get_for_wallet(dto.strategy_id, dto.wallet_address)
    elif dto.preset_id:
        source = get_preset(dto.preset_id)
        if source is None:
            raise NotFoundError(f"Unknown preset {dto.preset_id}")
    elif dto.target_allocation:
        source = dto.target_allocation
    else:
        raise ValidationError("Provide strategyId, presetId or targetAllocation")

    calc = await uc.execute(source, dto.investment_amount, dto.chain_id, dto.wallet_address)
    data = calc.model_dump(by_alias=True)
    data["quoteFailures"] = [s.to_token.symbol for s in calc.failed_quotes]
    return {"success": True, "data": data}


@router.post("/execute")
async def execute_investment(
    dto: ExecuteInvestmentDTO,
    uc: ExecuteInvestmentUseCase = Depends(get_execute_use_case),
    signer: Optional[TransactionSigner] = Depends(get_signer),
):
    """
    Submit the plan's swaps sequentially with the server signer.
    On failure the body carries the hashes already submitted.
    """
    if signer is not None and dto.wallet_address and not same_address(signer.address, dto.wallet_address):
        raise WalletNotConnected(f"Signer {signer.address} does not match {dto.wallet_address}")

    hashes = await uc.execute(dto.calculation, dto.chain_id, dto.wallet_address, signer)
    return {"success": True, "data": {"transactionHashes": hashes}}
