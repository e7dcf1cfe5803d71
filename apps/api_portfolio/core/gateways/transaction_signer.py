from abc import ABC, abstractmethod
from typing import Optional


class TransactionSigner(ABC):
    """
    Signing capability delivered by the wallet layer. Submits one
    transaction and returns its hash; it does NOT wait for mining.
    """

    @property
    @abstractmethod
    def address(self) -> str:
        raise NotImplementedError

    @abstractmethod
    async def send_transaction(
        self,
        *,
        to: str,
        data: str,
        value: int,
        gas: Optional[int] = None,
    ) -> str:
        raise NotImplementedError
