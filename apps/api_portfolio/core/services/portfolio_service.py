import logging
import time
from typing import Any, Dict, List, Optional

from ..domain.exceptions import ValidationError
from ..domain.chains import is_wallet_address
from ..gateways.quote_gateway import QuoteGateway
from ..utils.batching import BATCH_SIZE, DELAY_BETWEEN_BATCHES_SEC, process_in_batches


class PortfolioService:
    """
    Builds a wallet snapshot: balances -> spot prices -> token metadata.

    Metadata lookups are one request per token, so they go through the
    batch processor (5 in flight, 1s between batches). A token whose
    metadata or price is missing is skipped, never fatal.
    """

    def __init__(
        self,
        gateway: QuoteGateway,
        batch_size: int = BATCH_SIZE,
        batch_delay_sec: float = DELAY_BETWEEN_BATCHES_SEC,
        logger: Optional[logging.Logger] = None,
    ):
        self._gateway = gateway
        self._batch_size = batch_size
        self._batch_delay = batch_delay_sec
        self._logger = logger or logging.getLogger(self.__class__.__name__)

    async def get_portfolio(self, chain_id: int, address: str) -> Dict[str, Any]:
        if not is_wallet_address(address):
            raise ValidationError("Invalid wallet address format")

        balances = await self._gateway.get_wallet_balances(chain_id, address)
        held = [(token, raw) for token, raw in balances.items() if raw > 0]
        self._logger.info(
            "Found %s tokens with non-zero balances out of %s for %s on chain %s",
            len(held), len(balances), address, chain_id,
        )
        if not held:
            return {"totalValueUSD": 0.0, "tokens": [], "lastUpdated": int(time.time() * 1000)}

        addresses = [token for token, _ in held]
        prices = await self._gateway.get_spot_prices_usd(chain_id, addresses)
        metadata = await process_in_batches(
            addresses,
            lambda token: self._gateway.get_token_metadata(chain_id, token),
            batch_size=self._batch_size,
            delay_sec=self._batch_delay,
        )

        tokens: List[Dict[str, Any]] = []
        total_usd = 0.0
        for (token_address, raw), meta in zip(held, metadata):
            price = prices.get(token_address.lower())
            if not meta.ok:
                self._logger.info("Skipped token %s - metadata fetch failed: %s", token_address, meta.error)
                continue
            if not price:
                self._logger.info("Skipped token %s - missing price data", token_address)
                continue

            md = meta.value or {}
            decimals = int(md.get("decimals") or 18)
            balance_units = raw / (10 ** decimals)
            balance_usd = balance_units * price
            total_usd += balance_usd
            tokens.append({
                "token": {
                    "address": token_address,
                    "symbol": md.get("symbol") or "UNKNOWN",
                    "name": md.get("name") or "Unknown Token",
                    "decimals": decimals,
                    "logoURI": md.get("logoURI") or "",
                    "chainId": int(chain_id),
                },
                "balance": str(raw),
                "balanceUSD": balance_usd,
                "percentage": 0.0,
            })

        if total_usd > 0:
            for t in tokens:
                t["percentage"] = t["balanceUSD"] / total_usd * 100

        tokens.sort(key=lambda t: t["balanceUSD"], reverse=True)
        return {"totalValueUSD": total_usd, "tokens": tokens, "lastUpdated": int(time.time() * 1000)}
