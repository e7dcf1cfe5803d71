"""Shared fakes and fixtures."""

import itertools
from typing import Dict, List, Optional

import httpx
import pytest
import pytest_asyncio

from apps.api_portfolio.config import Settings
from apps.api_portfolio.core.domain.entities.quote_entity import Quote, TransactionPayload
from apps.api_portfolio.core.domain.exceptions import DuplicateKeyError
from apps.api_portfolio.core.gateways.quote_gateway import QuoteGateway
from apps.api_portfolio.core.gateways.transaction_signer import TransactionSigner
from apps.api_portfolio.core.repositories.strategy_repository import StrategyRepository

USER = "0xAbCdEf0123456789aBcDeF0123456789AbCdEf01"
OTHER_USER = "0x1111111111111111111111111111111111111111"
HARDHAT_ACCOUNT_0 = "0xf39Fd6e51aad88F6F4ce6aB8827279cffFb92266"

UNI = "0x1f9840a85d5af5bf1d1762f925bdaddc4201f984"
USDC = "0xA0b86991c6218b36c1d19D4a2e9eb0ce3606eb48"
LINK = "0x514910771AF9Ca656af840dff83E8264EcF986CA"
WETH = "0xC02aaA39b223FE8D0A0e5C4F27eAD9083C756Cc2"


def token(address: str, symbol: str, decimals: int = 18) -> Dict:
    return {"address": address, "symbol": symbol, "name": symbol, "decimals": decimals, "chainId": 1}


def allocation(address: str, symbol: str, pct: float, decimals: int = 18) -> Dict:
    return {"token": token(address, symbol, decimals), "targetPercentage": pct}


class InMemoryStrategyRepository(StrategyRepository):
    def __init__(self):
        self.docs: List[Dict] = []
        self._seq = itertools.count(1)

    async def ensure_indexes(self) -> None:
        return None

    async def insert(self, doc: Dict) -> Dict:
        if any(d["strategy_id"] == doc["strategy_id"] for d in self.docs):
            raise DuplicateKeyError(f"strategy_id {doc['strategy_id']} already exists")
        n = next(self._seq)
        stored = {**doc, "mongo_id": f"oid{n}", "created_at": 1_700_000_000_000 + n,
                  "created_at_iso": "2023-11-14T22:13:20Z", "updated_at": 1_700_000_000_000 + n}
        self.docs.append(stored)
        return dict(stored)

    async def list_active_by_wallet(self, wallet_address: str) -> List[Dict]:
        rows = [d for d in self.docs if d["wallet_address"] == wallet_address.lower() and d["is_active"]]
        return [dict(d) for d in sorted(rows, key=lambda d: d["created_at"], reverse=True)]

    async def get_by_id_for_wallet(self, strategy_id: str, wallet_address: str) -> Optional[Dict]:
        for d in self.docs:
            if d["strategy_id"] == strategy_id and d["wallet_address"] == wallet_address.lower():
                return dict(d)
        return None

    async def delete_by_id_for_wallet(self, strategy_id: str, wallet_address: str) -> Optional[Dict]:
        doc = await self.get_by_id_for_wallet(strategy_id, wallet_address)
        if doc:
            self.docs = [d for d in self.docs if d["strategy_id"] != strategy_id]
        return doc


class FakeQuoteGateway(QuoteGateway):
    """
    Scriptable gateway. `quotes` maps lower-cased destination address to a
    Quote or an exception instance to raise.
    """

    def __init__(self):
        self.quotes: Dict[str, object] = {}
        self.allowances: Dict[str, int] = {}
        self.swap_errors: Dict[str, Exception] = {}
        self.swap_gas: Optional[int] = 200_000
        self.balances: Dict[str, int] = {}
        self.metadata: Dict[str, object] = {}
        self.prices: Dict[str, float] = {}
        self.calls: List[tuple] = []

    async def get_quote(self, chain_id, src_token, dst_token, amount):
        self.calls.append(("quote", dst_token, amount))
        res = self.quotes.get(dst_token.lower())
        if isinstance(res, Exception):
            raise res
        if res is None:
            return Quote(dest_amount=amount, price_impact_percent=0.0, raw={"dstAmount": str(amount)})
        return res

    async def check_allowance(self, chain_id, token_address, owner_address):
        self.calls.append(("allowance", token_address))
        return self.allowances.get(token_address.lower(), 0)

    async def build_approval_transaction(self, chain_id, token_address, amount):
        self.calls.append(("approve", token_address, amount))
        return TransactionPayload(to=token_address, data="0xapprove", value=0, gas=50_000)

    async def build_swap_transaction(self, chain_id, src_token, dst_token, amount, from_address, slippage_percent):
        self.calls.append(("swap", src_token, dst_token, amount))
        err = self.swap_errors.get(dst_token.lower())
        if err is not None:
            raise err
        return TransactionPayload(to="0xrouter", data="0xswap", value=amount, gas=self.swap_gas)

    async def get_wallet_balances(self, chain_id, address):
        self.calls.append(("balances", address))
        return dict(self.balances)

    async def get_token_metadata(self, chain_id, token_address):
        self.calls.append(("metadata", token_address))
        res = self.metadata.get(token_address.lower())
        if isinstance(res, Exception):
            raise res
        return res or {}

    async def get_spot_prices_usd(self, chain_id, token_addresses):
        self.calls.append(("prices", tuple(token_addresses)))
        return {a.lower(): self.prices[a.lower()] for a in token_addresses if a.lower() in self.prices}


class FakeSigner(TransactionSigner):
    def __init__(self, address: str = USER):
        self._address = address
        self.sent: List[Dict] = []

    @property
    def address(self) -> str:
        return self._address

    async def send_transaction(self, *, to, data, value, gas=None):
        self.sent.append({"to": to, "data": data, "value": value, "gas": gas})
        return f"0xhash{len(self.sent)}"


class FakeOracle:
    def __init__(self, price: float = 2000.0):
        self.price = price

    async def get_native_usd_price(self, chain_id):
        return self.price


@pytest.fixture
def repo():
    return InMemoryStrategyRepository()


@pytest.fixture
def gateway():
    return FakeQuoteGateway()


@pytest.fixture
def signer():
    return FakeSigner()


@pytest.fixture
def settings():
    return Settings(
        MONGODB_URI="mongodb://unused",
        MONGODB_DB_NAME="test_db",
        ONEINCH_API_URL="https://oneinch.test",
        ONEINCH_API_KEY="test-key",
        ONEINCH_TIMEOUT_SEC=1.0,
        RPC_URL_DEFAULT="http://rpc.test",
        PRIVATE_KEY="",
    )


@pytest.fixture
def app(repo, gateway, signer, settings):
    from apps.api_portfolio.core.services.portfolio_service import PortfolioService
    from apps.api_portfolio.core.services.strategy_service import StrategyService
    from apps.api_portfolio.core.usecases.calculate_investment_use_case import CalculateInvestmentUseCase
    from apps.api_portfolio.core.usecases.execute_investment_use_case import ExecuteInvestmentUseCase
    from apps.api_portfolio.main import create_app

    application = create_app(use_lifespan=False)
    application.state.settings = settings
    application.state.strategy_service = StrategyService(repo)
    application.state.portfolio_service = PortfolioService(gateway, batch_delay_sec=0)
    application.state.calculate_investment = CalculateInvestmentUseCase(gateway, FakeOracle(), batch_delay_sec=0)
    application.state.execute_investment = ExecuteInvestmentUseCase(gateway, settle_delay_sec=0, call_spacing_sec=0)
    application.state.signer = signer
    return application


@pytest_asyncio.fixture
async def client(app):
    async with httpx.AsyncClient(base_url="http://test", transport=httpx.ASGITransport(app=app)) as c:
        yield c
