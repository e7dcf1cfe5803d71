import logging
import random
import string
import time
from typing import Any, Dict, List, Optional

from pydantic import ValidationError as PydanticValidationError

from ..domain.chains import is_wallet_address
from ..domain.entities.strategy_entity import (
    StrategyEntity,
    TokenAllocationEntity,
    is_valid_allocation,
    total_percentage,
)
from ..domain.exceptions import NotFoundError, ValidationError
from ..repositories.strategy_repository import StrategyRepository

_ID_ALPHABET = string.ascii_lowercase + string.digits


def new_strategy_id(now_ms: Optional[int] = None) -> str:
    """strategy_<unix ms>_<9 base36 chars>"""
    ms = int(time.time() * 1000) if now_ms is None else int(now_ms)
    suffix = "".join(random.choices(_ID_ALPHABET, k=9))
    return f"strategy_{ms}_{suffix}"


def _pretty_pct(value: float) -> str:
    return f"{value:g}"


class StrategyService:
    """
    Create / list / delete user strategies.

    All input checks happen here, before the repository is touched:
      - wallet address must be 0x + 40 hex chars (stored lower-cased)
      - name and a non-empty allocation list are required
      - allocation percentages must sum to 100 (+/- 0.02)
    """

    def __init__(self, repo: StrategyRepository, logger: Optional[logging.Logger] = None):
        self._repo = repo
        self._logger = logger or logging.getLogger(self.__class__.__name__)

    @staticmethod
    def _require_wallet(wallet_address: Optional[str]) -> str:
        if not wallet_address:
            raise ValidationError("Wallet address is required")
        if not is_wallet_address(wallet_address):
            raise ValidationError("Invalid wallet address format")
        return wallet_address.lower()

    async def create(
        self,
        *,
        wallet_address: Optional[str],
        name: Optional[str],
        target_allocation: Optional[List[Any]],
        description: Optional[str] = None,
        drift_threshold: float = 5,
        auto_rebalance: bool = False,
        chain_id: int = 1,
    ) -> StrategyEntity:
        wallet = self._require_wallet(wallet_address)

        if not name or not name.strip() or not target_allocation:
            raise ValidationError("Strategy name and target allocation are required")

        try:
            allocations = [
                a if isinstance(a, TokenAllocationEntity) else TokenAllocationEntity.model_validate(a)
                for a in target_allocation
            ]
        except PydanticValidationError as exc:
            raise ValidationError(f"Validation error: {_summarize(exc)}") from exc

        total = total_percentage(allocations)
        if not is_valid_allocation(allocations):
            raise ValidationError(
                f"Total allocation must equal 100%. Current total: {_pretty_pct(total)}%"
            )

        try:
            entity = StrategyEntity(
                strategy_id=new_strategy_id(),
                wallet_address=wallet,
                name=name.strip(),
                description=description.strip() if description else None,
                target_allocation=allocations,
                is_active=True,
                drift_threshold=drift_threshold,
                auto_rebalance=auto_rebalance,
                chain_id=chain_id,
            )
        except PydanticValidationError as exc:
            raise ValidationError(f"Validation error: {_summarize(exc)}") from exc

        stored = await self._repo.insert(entity.to_document())
        self._logger.info("Strategy %s created for %s", entity.strategy_id, wallet)
        return StrategyEntity.from_document(stored)

    async def list_by_wallet(self, wallet_address: Optional[str]) -> List[StrategyEntity]:
        wallet = self._require_wallet(wallet_address)
        docs = await self._repo.list_active_by_wallet(wallet)
        return [StrategyEntity.from_document(d) for d in docs]

    async def get_for_wallet(self, strategy_id: str, wallet_address: Optional[str]) -> StrategyEntity:
        wallet = self._require_wallet(wallet_address)
        doc = await self._repo.get_by_id_for_wallet(strategy_id, wallet)
        if not doc:
            raise NotFoundError()
        return StrategyEntity.from_document(doc)

    async def delete_for_wallet(self, strategy_id: Optional[str], wallet_address: Optional[str]) -> StrategyEntity:
        """
        Hard delete. A wrong owner and a missing id both surface as NotFoundError.
        """
        if not wallet_address:
            raise ValidationError("Wallet address is required")
        if not strategy_id:
            raise ValidationError("Strategy ID is required")

        deleted = await self._repo.delete_by_id_for_wallet(strategy_id, wallet_address.lower())
        if not deleted:
            raise NotFoundError()
        self._logger.info("Strategy %s deleted for %s", strategy_id, wallet_address.lower())
        return StrategyEntity.from_document(deleted)


def _summarize(exc: PydanticValidationError) -> str:
    parts: List[str] = []
    for err in exc.errors():
        loc = ".".join(str(p) for p in err.get("loc", ()))
        parts.append(f"{loc}: {err.get('msg')}" if loc else str(err.get("msg")))
    return ", ".join(parts)


def strategy_to_public(entity: StrategyEntity) -> Dict[str, Any]:
    """
    Wire shape used by the HTTP API (camelCase) plus the derived
    totalPercentage / isValidAllocation fields.
    """
    return {
        "id": entity.strategy_id,
        "mongoId": entity.mongo_id,
        "name": entity.name,
        "description": entity.description,
        "targetAllocation": [a.model_dump(by_alias=True) for a in entity.target_allocation],
        "isActive": entity.is_active,
        "driftThreshold": entity.drift_threshold,
        "autoRebalance": entity.auto_rebalance,
        "chainId": entity.chain_id,
        "walletAddress": entity.wallet_address,
        "totalInvestmentETH": entity.total_investment_eth,
        "totalInvestmentUSD": entity.total_investment_usd,
        "createdAt": entity.created_at,
        "createdAtIso": entity.created_at_iso,
        "updatedAt": entity.updated_at,
        "totalPercentage": entity.total_percentage(),
        "isValidAllocation": entity.is_valid_allocation(),
    }
