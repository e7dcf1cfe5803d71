import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from ....core.domain.exceptions import PortfolioError, UpstreamError

_logger = logging.getLogger("api_portfolio.errors")


def _summarize(exc: RequestValidationError) -> str:
    parts = []
    for err in exc.errors():
        loc = ".".join(str(p) for p in err.get("loc", ()) if p != "body")
        parts.append(f"{loc}: {err.get('msg')}" if loc else str(err.get("msg")))
    return ", ".join(parts)


def error_body(exc: PortfolioError) -> dict:
    """
    {success: false, error: <short message>} plus executor context when present.
    """
    body = {"success": False, "error": exc.public_message()}
    if exc.allocation_index is not None:
        body["data"] = {
            "completedTransactionHashes": exc.completed_tx_hashes,
            "failedAllocationIndex": exc.allocation_index,
            "srcToken": exc.src_token,
            "dstToken": exc.dst_token,
        }
    return body


def install_error_handlers(app: FastAPI) -> None:

    @app.exception_handler(PortfolioError)
    async def _portfolio_error(request: Request, exc: PortfolioError):
        if isinstance(exc, UpstreamError):
            _logger.warning("%s %s -> %s (upstream status=%s body=%s)",
                            request.method, request.url.path, type(exc).__name__, exc.status, exc.body)
        elif exc.status_code >= 500:
            _logger.error("%s %s -> %s: %s", request.method, request.url.path, type(exc).__name__, exc)
        else:
            _logger.info("%s %s -> %s: %s", request.method, request.url.path, type(exc).__name__, exc)
        return JSONResponse(status_code=exc.status_code, content=error_body(exc))

    @app.exception_handler(RequestValidationError)
    async def _request_validation_error(request: Request, exc: RequestValidationError):
        return JSONResponse(
            status_code=400,
            content={"success": False, "error": f"Validation error: {_summarize(exc)}"},
        )
