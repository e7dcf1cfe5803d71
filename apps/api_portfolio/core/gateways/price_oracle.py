from abc import ABC, abstractmethod


class PriceOracle(ABC):
    """
    Source of the native currency USD price used for display values and
    gas estimates.
    """

    @abstractmethod
    async def get_native_usd_price(self, chain_id: int) -> float:
        raise NotImplementedError
