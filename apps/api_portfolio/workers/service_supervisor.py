import logging
from typing import Optional

from motor.motor_asyncio import AsyncIOMotorClient

from ..adapters.external.chain.web3_transaction_signer import Web3TransactionSigner
from ..adapters.external.database.strategy_repository_mongodb import StrategyRepositoryMongoDB
from ..adapters.external.oneinch.oneinch_http_client import OneInchHttpClient
from ..adapters.external.oneinch.price_oracle import FixedPriceOracle, OneInchPriceOracle
from ..config import Settings, get_settings
from ..core.gateways.transaction_signer import TransactionSigner
from ..core.services.portfolio_service import PortfolioService
from ..core.services.strategy_service import StrategyService
from ..core.usecases.calculate_investment_use_case import CalculateInvestmentUseCase
from ..core.usecases.execute_investment_use_case import ExecuteInvestmentUseCase


class ServiceSupervisor:
    """
    High-level supervisor for the api-portfolio process.

    Responsibilities:
    - Connect to Mongo, ensure indexes.
    - Wire the aggregator client, price oracle and optional server signer.
    - Build services / use cases and publish them on `app.state`.
    """

    def __init__(self, settings: Optional[Settings] = None):
        self._logger = logging.getLogger(self.__class__.__name__)
        self._settings = settings or get_settings()
        self._mongo_client: AsyncIOMotorClient | None = None
        self._db = None

        self.oneinch_client: OneInchHttpClient | None = None
        self.signer: TransactionSigner | None = None
        self.strategy_service: StrategyService | None = None
        self.portfolio_service: PortfolioService | None = None
        self.calculate_investment: CalculateInvestmentUseCase | None = None
        self.execute_investment: ExecuteInvestmentUseCase | None = None

    @property
    def db(self):
        """Expose the AsyncIOMotorDatabase instance after start()."""
        return self._db

    @property
    def settings(self) -> Settings:
        return self._settings

    async def start(self):
        """
        Create connections, ensure indexes and wire use cases.
        """
        s = self._settings

        # Mongo
        self._mongo_client = AsyncIOMotorClient(s.MONGODB_URI)
        self._db = self._mongo_client[s.MONGODB_DB_NAME]

        strategy_repo = StrategyRepositoryMongoDB(self._db)
        await strategy_repo.ensure_indexes()

        # aggregator
        self.oneinch_client = OneInchHttpClient(
            base_url=s.ONEINCH_API_URL,
            api_key=s.ONEINCH_API_KEY,
            timeout_sec=s.ONEINCH_TIMEOUT_SEC,
        )
        if not self.oneinch_client.has_api_key:
            self._logger.warning("ONEINCH_API_KEY is not set; upstream calls will likely be rejected")

        oracle = OneInchPriceOracle(self.oneinch_client, fallback=FixedPriceOracle(s.NATIVE_USD_PRICE))

        # server-side signer is optional
        if s.PRIVATE_KEY:
            self.signer = Web3TransactionSigner(s.RPC_URL_DEFAULT, s.PRIVATE_KEY)
            self._logger.info("Server signer loaded for %s", self.signer.address)
        else:
            self._logger.info("No PRIVATE_KEY configured; execution endpoint will answer 'wallet not connected'")

        self.strategy_service = StrategyService(strategy_repo)
        self.portfolio_service = PortfolioService(self.oneinch_client)
        self.calculate_investment = CalculateInvestmentUseCase(
            gateway=self.oneinch_client,
            price_oracle=oracle,
            gas_units_per_swap=s.GAS_UNITS_PER_SWAP,
            gas_price_gwei=s.GAS_PRICE_GWEI,
        )
        self.execute_investment = ExecuteInvestmentUseCase(gateway=self.oneinch_client)

        self._logger.info("api-portfolio wired (db=%s, env=%s)", s.MONGODB_DB_NAME, s.ENV)

    def publish(self, state) -> None:
        """
        Copy wired components onto FastAPI's `app.state` for the deps module.
        """
        state.settings = self._settings
        state.db = self._db
        state.oneinch_client = self.oneinch_client
        state.signer = self.signer
        state.strategy_service = self.strategy_service
        state.portfolio_service = self.portfolio_service
        state.calculate_investment = self.calculate_investment
        state.execute_investment = self.execute_investment

    async def stop(self):
        """
        Gracefully stop resources.
        """
        # close Mongo
        if self._mongo_client:
            self._mongo_client.close()
            self._mongo_client = None
