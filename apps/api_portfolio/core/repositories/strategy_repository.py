from abc import ABC, abstractmethod
from typing import Dict, List, Optional


class StrategyRepository(ABC):
    """
    Repository interface for user-defined rebalancing strategies.
    Every read and delete is scoped by the owning wallet address.
    """

    @abstractmethod
    async def ensure_indexes(self) -> None:
        """Unique strategy_id plus wallet/active and wallet/created_at lookups."""
        raise NotImplementedError

    @abstractmethod
    async def insert(self, doc: Dict) -> Dict:
        """
        Insert a new strategy document and return it as stored, with
        mongo_id, created_at, created_at_iso and updated_at filled in.
        Raises DuplicateKeyError if strategy_id already exists.
        """
        raise NotImplementedError

    @abstractmethod
    async def list_active_by_wallet(self, wallet_address: str) -> List[Dict]:
        """Active strategies of a wallet, newest first."""
        raise NotImplementedError

    @abstractmethod
    async def get_by_id_for_wallet(self, strategy_id: str, wallet_address: str) -> Optional[Dict]:
        raise NotImplementedError

    @abstractmethod
    async def delete_by_id_for_wallet(self, strategy_id: str, wallet_address: str) -> Optional[Dict]:
        """
        Hard-delete the document matching BOTH keys. Returns the removed
        document, or None when nothing matched.
        """
        raise NotImplementedError
