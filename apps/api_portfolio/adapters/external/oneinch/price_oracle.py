import logging
from typing import Optional

from ....core.domain.chains import NATIVE_TOKEN_ADDRESS
from ....core.domain.exceptions import PortfolioError
from ....core.gateways.price_oracle import PriceOracle
from ....core.gateways.quote_gateway import QuoteGateway


class FixedPriceOracle(PriceOracle):
    """Configured constant price (NATIVE_USD_PRICE)."""

    def __init__(self, native_usd_price: float):
        self._price = float(native_usd_price)

    async def get_native_usd_price(self, chain_id: int) -> float:
        return self._price


class OneInchPriceOracle(PriceOracle):
    """
    Native currency USD price from the aggregator spot price API.
    Falls back to `fallback` when the upstream call fails or has no entry.
    """

    def __init__(
        self,
        gateway: QuoteGateway,
        fallback: PriceOracle,
        logger: Optional[logging.Logger] = None,
    ):
        self._gateway = gateway
        self._fallback = fallback
        self._logger = logger or logging.getLogger(self.__class__.__name__)

    async def get_native_usd_price(self, chain_id: int) -> float:
        try:
            prices = await self._gateway.get_spot_prices_usd(chain_id, [NATIVE_TOKEN_ADDRESS])
            price = prices.get(NATIVE_TOKEN_ADDRESS.lower())
            if price and price > 0:
                return float(price)
            self._logger.warning("No native price for chain %s in %s; using fallback", chain_id, prices)
        except PortfolioError as exc:
            self._logger.warning("Native price lookup failed for chain %s: %s; using fallback", chain_id, exc)
        return await self._fallback.get_native_usd_price(chain_id)
