from typing import List, Optional

from fastapi import APIRouter, Body, Depends, Query
from pydantic import BaseModel, ConfigDict, Field

from ....core.domain.entities.strategy_entity import TokenAllocationEntity
from ....core.domain.presets import STRATEGY_PRESETS, presets_for_chain, resolve_token_address
from ....core.services.strategy_service import StrategyService, strategy_to_public
from .deps import get_strategy_service

router = APIRouter(tags=["strategies"])

# =========================
# DTOs
# =========================

class StrategyCreateDTO(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    wallet_address: Optional[str] = Field(None, alias="walletAddress", examples=["0x1234...abcd"])
    name: Optional[str] = None
    description: Optional[str] = None
    target_allocation: Optional[List[TokenAllocationEntity]] = Field(None, alias="targetAllocation")
    drift_threshold: float = Field(5, alias="driftThreshold")
    auto_rebalance: bool = Field(False, alias="autoRebalance")
    chain_id: int = Field(1, alias="chainId")


class StrategyDeleteDTO(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    wallet_address: Optional[str] = Field(None, alias="walletAddress")

# =========================
# Strategies (POST/GET/DELETE)
# =========================

@router.post("/strategies", status_code=201)
async def create_strategy(dto: StrategyCreateDTO, svc: StrategyService = Depends(get_strategy_service)):
    """
    Create a strategy for a wallet. Percentages must sum to 100 (+/- 0.02).
    """
    stored = await svc.create(
        wallet_address=dto.wallet_address,
        name=dto.name,
        description=dto.description,
        target_allocation=dto.target_allocation,
        drift_threshold=dto.drift_threshold,
        auto_rebalance=dto.auto_rebalance,
        chain_id=dto.chain_id,
    )
    return {
        "success": True,
        "data": strategy_to_public(stored),
        "message": "Strategy created successfully",
    }


@router.get("/strategies")
async def list_strategies(
    wallet_address: Optional[str] = Query(None, alias="walletAddress"),
    svc: StrategyService = Depends(get_strategy_service),
):
    """
    Active strategies of a wallet, newest first. Empty list when none.
    """
    strategies = await svc.list_by_wallet(wallet_address)
    data = [strategy_to_public(s) for s in strategies]
    return {"success": True, "data": data, "count": len(data)}


@router.get("/strategies/presets")
async def list_presets(chain_id: Optional[int] = Query(None, alias="chainId")):
    """
    Built-in strategies, optionally filtered by supported chain. Token
    addresses are resolved for `chainId` when given.
    """
    presets = presets_for_chain(chain_id) if chain_id is not None else STRATEGY_PRESETS
    data = []
    for p in presets:
        row = p.model_dump(by_alias=True)
        if chain_id is not None:
            for alloc, src in zip(row["targetAllocation"], p.target_allocation):
                alloc["token"]["address"] = resolve_token_address(src.token, chain_id)
        data.append(row)
    return {"success": True, "data": data, "count": len(data)}


@router.delete("/strategies/{strategy_id}")
async def delete_strategy(
    strategy_id: str,
    dto: Optional[StrategyDeleteDTO] = Body(None),
    svc: StrategyService = Depends(get_strategy_service),
):
    """
    Hard-delete a strategy owned by `walletAddress`. Someone else's strategy
    answers 404 exactly like a missing one.
    """
    deleted = await svc.delete_for_wallet(strategy_id, dto.wallet_address if dto else None)
    return {
        "success": True,
        "message": "Strategy deleted successfully",
        "data": {"id": deleted.strategy_id, "mongoId": deleted.mongo_id, "name": deleted.name},
    }
