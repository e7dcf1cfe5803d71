from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from ....adapters.external.oneinch.oneinch_http_client import OneInchHttpClient
from ....core.services.portfolio_service import PortfolioService
from .deps import get_oneinch_client, get_portfolio_service

router = APIRouter(tags=["portfolio"])


@router.get("/portfolio/{chain_id}/{address}")
async def get_portfolio(chain_id: int, address: str, svc: PortfolioService = Depends(get_portfolio_service)):
    """
    Wallet snapshot: non-zero balances priced in USD, largest first.
    """
    data = await svc.get_portfolio(chain_id, address)
    return {"success": True, "data": data}


@router.get("/1inch/{path:path}")
async def proxy_oneinch(path: str, request: Request, client: OneInchHttpClient = Depends(get_oneinch_client)):
    """
    Forward a GET to the aggregator with the server-held API key.
    Upstream status and JSON body are passed back untouched.
    """
    if not client.has_api_key:
        return JSONResponse(status_code=500, content={"error": "Server is not configured for 1inch API access."})
    status, body = await client.proxy_get(path, dict(request.query_params))
    return JSONResponse(status_code=status, content=body)
