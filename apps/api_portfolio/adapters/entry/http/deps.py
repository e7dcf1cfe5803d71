from typing import Any, Optional

from fastapi import Request

from ....adapters.external.oneinch.oneinch_http_client import OneInchHttpClient
from ....config import Settings, get_settings
from ....core.gateways.transaction_signer import TransactionSigner
from ....core.services.portfolio_service import PortfolioService
from ....core.services.strategy_service import StrategyService
from ....core.usecases.calculate_investment_use_case import CalculateInvestmentUseCase
from ....core.usecases.execute_investment_use_case import ExecuteInvestmentUseCase


def _state(request: Request, name: str) -> Any:
    value = getattr(request.app.state, name, None)
    if value is None:
        raise RuntimeError(f"{name} is not initialized in app.state")
    return value


def get_strategy_service(request: Request) -> StrategyService:
    """
    Resolve the strategy service wired at startup.
    """
    return _state(request, "strategy_service")


def get_calculate_use_case(request: Request) -> CalculateInvestmentUseCase:
    return _state(request, "calculate_investment")


def get_execute_use_case(request: Request) -> ExecuteInvestmentUseCase:
    return _state(request, "execute_investment")


def get_portfolio_service(request: Request) -> PortfolioService:
    return _state(request, "portfolio_service")


def get_oneinch_client(request: Request) -> OneInchHttpClient:
    return _state(request, "oneinch_client")


def get_signer(request: Request) -> Optional[TransactionSigner]:
    # None when no private key is configured
    return getattr(request.app.state, "signer", None)


def get_app_settings(request: Request) -> Settings:
    return getattr(request.app.state, "settings", None) or get_settings()
