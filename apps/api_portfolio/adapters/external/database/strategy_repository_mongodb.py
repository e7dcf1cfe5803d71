import time
from datetime import datetime, timezone
from typing import Dict, List, Optional

from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo.errors import DuplicateKeyError as MongoDuplicateKeyError

from ....core.domain.exceptions import DuplicateKeyError
from ....core.repositories.strategy_repository import StrategyRepository


def _public(doc: Optional[Dict]) -> Optional[Dict]:
    """Swap Mongo's ObjectId for a plain mongo_id string."""
    if doc is None:
        return None
    out = dict(doc)
    _id = out.pop("_id", None)
    if _id is not None:
        out["mongo_id"] = str(_id)
    return out


class StrategyRepositoryMongoDB(StrategyRepository):
    """
    Mongo implementation for strategies.
    """

    COLLECTION = "strategies"

    def __init__(self, db: AsyncIOMotorDatabase):
        self._col = db[self.COLLECTION]

    async def ensure_indexes(self) -> None:
        await self._col.create_index([("strategy_id", 1)], unique=True, name="ux_strategy_id")
        await self._col.create_index([("wallet_address", 1), ("is_active", 1)], name="ix_wallet_active")
        await self._col.create_index([("wallet_address", 1), ("created_at", -1)], name="ix_wallet_created_at")

    async def insert(self, doc: Dict) -> Dict:
        now_ms = int(time.time() * 1000)
        now_iso = datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")
        to_store = {
            **doc,
            "created_at": now_ms,
            "created_at_iso": now_iso,
            "updated_at": now_ms,
        }
        try:
            res = await self._col.insert_one(to_store)
        except MongoDuplicateKeyError as exc:
            raise DuplicateKeyError(f"strategy_id {doc.get('strategy_id')} already exists") from exc
        to_store["_id"] = res.inserted_id
        return _public(to_store)

    async def list_active_by_wallet(self, wallet_address: str) -> List[Dict]:
        cursor = self._col.find(
            {"wallet_address": wallet_address.lower(), "is_active": True},
            sort=[("created_at", -1), ("_id", -1)],
        )
        docs = await cursor.to_list(length=None)
        return [_public(d) for d in docs]

    async def get_by_id_for_wallet(self, strategy_id: str, wallet_address: str) -> Optional[Dict]:
        doc = await self._col.find_one(
            {"strategy_id": strategy_id, "wallet_address": wallet_address.lower(), "is_active": True}
        )
        return _public(doc)

    async def delete_by_id_for_wallet(self, strategy_id: str, wallet_address: str) -> Optional[Dict]:
        doc = await self._col.find_one_and_delete(
            {"strategy_id": strategy_id, "wallet_address": wallet_address.lower()}
        )
        return _public(doc)
