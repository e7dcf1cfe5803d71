import logging
from typing import Any, Dict, List, Optional, Tuple, Type, TypeVar

import httpx
from pydantic import BaseModel, ValidationError as PydanticValidationError

from ....core.domain.entities.quote_entity import Quote, TransactionPayload
from ....core.domain.exceptions import (
    InvalidRequestParameters,
    NetworkError,
    NoLiquidity,
    RateLimited,
    UpstreamError,
    UpstreamResponseError,
)
from ....core.gateways.quote_gateway import QuoteGateway
from .oneinch_schemas import (
    AllowanceResponse,
    QuoteResponse,
    SwapResponse,
    TokenMetadataResponse,
    TxResponse,
)

M = TypeVar("M", bound=BaseModel)

SWAP_API = "swap/v6.1"
BALANCE_API = "balance/v1.2"
TOKEN_API = "token/v1.2"
PRICE_API = "price/v1.1"

_LIQUIDITY_MARKERS = ("insufficient liquidity", "no liquidity", "cannot find path", "not enough liquidity")


def classify_error(status: int, body: str) -> UpstreamError:
    """
    Map an upstream non-2xx answer to the error taxonomy.
      429                       -> RateLimited
      400/404/422 + liquidity   -> NoLiquidity
      400/404/422               -> InvalidRequestParameters
      anything else             -> UpstreamError
    """
    if status == 429:
        return RateLimited(status, body)
    if status in (400, 404, 422):
        lowered = (body or "").lower()
        if any(m in lowered for m in _LIQUIDITY_MARKERS):
            return NoLiquidity(status, body)
        return InvalidRequestParameters(status, body)
    return UpstreamError(status, body)


class OneInchHttpClient(QuoteGateway):
    """
    Thin async HTTP wrapper around the 1inch REST APIs (swap, balance,
    token, price).

    All URLs are:
      {base_url}/{api}/{chain_id}/...

    This client does *no* allocation logic and keeps no state between calls.
    """

    def __init__(
        self,
        base_url: str,
        api_key: str = "",
        timeout_sec: float = 15.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self._base_url = base_url.rstrip("/")
        self._api_key = api_key
        self._timeout = timeout_sec
        self._transport = transport
        self._logger = logging.getLogger(self.__class__.__name__)

    @property
    def has_api_key(self) -> bool:
        return bool(self._api_key)

    def _headers(self) -> Dict[str, str]:
        headers = {"Accept": "application/json"}
        if self._api_key:
            headers["Authorization"] = f"Bearer {self._api_key}"
        return headers

    async def _raw_get(self, path: str, params: Optional[Dict[str, Any]] = None) -> httpx.Response:
        url = f"{self._base_url}/{path.lstrip('/')}"
        try:
            async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as client:
                return await client.get(url, params=params, headers=self._headers())
        except httpx.TimeoutException as exc:
            self._logger.warning("timeout GET %s: %s", url, exc)
            raise NetworkError(f"Timeout calling {url}") from exc
        except httpx.TransportError as exc:
            self._logger.warning("transport error GET %s: %s", url, exc)
            raise NetworkError(f"Transport error calling {url}: {exc}") from exc

    async def _get_json(self, path: str, params: Optional[Dict[str, Any]] = None) -> Any:
        r = await self._raw_get(path, params)
        if r.status_code < 200 or r.status_code >= 300:
            self._logger.warning("non-2xx %s: %s %s", path, r.status_code, r.text)
            raise classify_error(r.status_code, r.text)
        try:
            return r.json()
        except ValueError as exc:
            raise UpstreamResponseError(r.status_code, r.text, "Upstream body is not JSON") from exc

    @staticmethod
    def _parse(model: Type[M], payload: Any, path: str) -> M:
        try:
            return model.model_validate(payload)
        except PydanticValidationError as exc:
            raise UpstreamResponseError(
                200, str(payload)[:2000], f"Unexpected payload from {path}: {exc.error_count()} error(s)"
            ) from exc

    # ---------- swap API ----------

    async def get_quote(self, chain_id: int, src_token: str, dst_token: str, amount: int) -> Quote:
        """
        GET /swap/v6.1/{chain}/quote?src&dst&amount
        """
        path = f"{SWAP_API}/{int(chain_id)}/quote"
        payload = await self._get_json(path, {"src": src_token, "dst": dst_token, "amount": str(int(amount))})
        parsed = self._parse(QuoteResponse, payload, path)
        return Quote(dest_amount=parsed.dst_amount, price_impact_percent=parsed.price_impact, raw=payload)

    async def check_allowance(self, chain_id: int, token_address: str, owner_address: str) -> int:
        path = f"{SWAP_API}/{int(chain_id)}/approve/allowance"
        payload = await self._get_json(path, {"tokenAddress": token_address, "walletAddress": owner_address})
        return self._parse(AllowanceResponse, payload, path).allowance

    async def build_approval_transaction(self, chain_id: int, token_address: str, amount: int) -> TransactionPayload:
        path = f"{SWAP_API}/{int(chain_id)}/approve/transaction"
        payload = await self._get_json(path, {"tokenAddress": token_address, "amount": str(int(amount))})
        tx = self._parse(TxResponse, payload, path)
        return TransactionPayload(to=tx.to, data=tx.data, value=tx.value, gas=tx.gas, gas_price=tx.gas_price)

    async def build_swap_transaction(
        self,
        chain_id: int,
        src_token: str,
        dst_token: str,
        amount: int,
        from_address: str,
        slippage_percent: float,
    ) -> TransactionPayload:
        """
        GET /swap/v6.1/{chain}/swap
        params: src, dst, amount, from, slippage, disableEstimate, allowPartialFill
        """
        path = f"{SWAP_API}/{int(chain_id)}/swap"
        params = {
            "src": src_token,
            "dst": dst_token,
            "amount": str(int(amount)),
            "from": from_address.lower(),
            "slippage": f"{slippage_percent:g}",
            "disableEstimate": "false",
            "allowPartialFill": "false",
        }
        payload = await self._get_json(path, params)
        tx = self._parse(SwapResponse, payload, path).tx
        return TransactionPayload(to=tx.to, data=tx.data, value=tx.value, gas=tx.gas, gas_price=tx.gas_price)

    # ---------- balance / token / price APIs ----------

    async def get_wallet_balances(self, chain_id: int, address: str) -> Dict[str, int]:
        path = f"{BALANCE_API}/{int(chain_id)}/balances/{address}"
        payload = await self._get_json(path)
        if not isinstance(payload, dict):
            raise UpstreamResponseError(200, str(payload)[:2000], f"Unexpected payload from {path}")
        out: Dict[str, int] = {}
        for token, raw in payload.items():
            try:
                out[token] = int(str(raw))
            except (TypeError, ValueError) as exc:
                raise UpstreamResponseError(200, str(payload)[:2000], f"Bad balance for {token}") from exc
        return out

    async def get_token_metadata(self, chain_id: int, token_address: str) -> Dict[str, Any]:
        path = f"{TOKEN_API}/{int(chain_id)}/custom/{token_address}"
        payload = await self._get_json(path)
        return self._parse(TokenMetadataResponse, payload, path).model_dump(by_alias=True)

    async def get_spot_prices_usd(self, chain_id: int, token_addresses: List[str]) -> Dict[str, float]:
        if not token_addresses:
            return {}
        path = f"{PRICE_API}/{int(chain_id)}/{','.join(token_addresses)}"
        payload = await self._get_json(path, {"currency": "USD"})
        if not isinstance(payload, dict):
            raise UpstreamResponseError(200, str(payload)[:2000], f"Unexpected payload from {path}")
        out: Dict[str, float] = {}
        for token, price in payload.items():
            try:
                out[token.lower()] = float(price)
            except (TypeError, ValueError) as exc:
                raise UpstreamResponseError(200, str(payload)[:2000], f"Bad price for {token}") from exc
        return out

    # ---------- passthrough ----------

    async def proxy_get(self, path: str, params: Optional[Dict[str, Any]] = None) -> Tuple[int, Any]:
        """
        Forward a GET as-is and hand back (status, json body) without
        classifying errors. Used by the /1inch passthrough route.
        """
        r = await self._raw_get(path, params)
        try:
            body = r.json()
        except ValueError:
            body = {"error": r.text}
        if r.status_code >= 400:
            self._logger.warning("proxy non-2xx %s: %s %s", path, r.status_code, r.text)
        return r.status_code, body
