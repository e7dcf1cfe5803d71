from abc import ABC, abstractmethod
from typing import Any, Dict, List

from ..domain.entities.quote_entity import Quote, TransactionPayload


class QuoteGateway(ABC):
    """
    Port to the external swap/quote/balance API.

    Stateless: every call is independent. Callers own the rate discipline
    (>= ~200ms between calls, batches of 5 with 1s spacing for bulk lookups).

    Failures raise RateLimited / InvalidRequestParameters / NoLiquidity /
    UpstreamError (non-2xx), UpstreamResponseError (bad payload) or
    NetworkError (transport, timeout).
    """

    @abstractmethod
    async def get_quote(self, chain_id: int, src_token: str, dst_token: str, amount: int) -> Quote:
        raise NotImplementedError

    @abstractmethod
    async def check_allowance(self, chain_id: int, token_address: str, owner_address: str) -> int:
        """Allowance granted to the aggregator router, smallest units."""
        raise NotImplementedError

    @abstractmethod
    async def build_approval_transaction(self, chain_id: int, token_address: str, amount: int) -> TransactionPayload:
        raise NotImplementedError

    @abstractmethod
    async def build_swap_transaction(
        self,
        chain_id: int,
        src_token: str,
        dst_token: str,
        amount: int,
        from_address: str,
        slippage_percent: float,
    ) -> TransactionPayload:
        raise NotImplementedError

    @abstractmethod
    async def get_wallet_balances(self, chain_id: int, address: str) -> Dict[str, int]:
        """token address -> raw balance."""
        raise NotImplementedError

    @abstractmethod
    async def get_token_metadata(self, chain_id: int, token_address: str) -> Dict[str, Any]:
        raise NotImplementedError

    @abstractmethod
    async def get_spot_prices_usd(self, chain_id: int, token_addresses: List[str]) -> Dict[str, float]:
        """token address (lower-cased) -> USD price of one whole token."""
        raise NotImplementedError
