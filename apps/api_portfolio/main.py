import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from .adapters.entry.http.error_handlers import install_error_handlers
from .adapters.entry.http.investment_router import router as investment_router
from .adapters.entry.http.portfolio_router import router as portfolio_router
from .adapters.entry.http.strategy_router import router as strategy_router
from .config import get_settings
from .workers.service_supervisor import ServiceSupervisor


def _setup_logging():
    """
    Configure basic logging from LOG_LEVEL.
    """
    logging.basicConfig(
        level=get_settings().LOG_LEVEL,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Lifespan context for startup/shutdown lifecycle.
    """
    _setup_logging()
    logging.getLogger(__name__).info("Starting api-portfolio (lifespan startup)...")
    supervisor = ServiceSupervisor()
    await supervisor.start()
    supervisor.publish(app.state)

    try:
        yield
    finally:
        logging.getLogger(__name__).info("Shutting down api-portfolio (lifespan shutdown)...")
        await supervisor.stop()


def create_app(use_lifespan: bool = True) -> FastAPI:
    """
    Build the application. Tests pass `use_lifespan=False` and fill
    `app.state` themselves.
    """
    app = FastAPI(title="api-portfolio", version="0.1.0", lifespan=lifespan if use_lifespan else None)

    app.include_router(strategy_router, prefix="/api")
    app.include_router(investment_router, prefix="/api")
    app.include_router(portfolio_router, prefix="/api")
    install_error_handlers(app)

    @app.get("/healthz")
    async def healthz():
        """
        Liveness probe endpoint.
        """
        return {"status": "ok"}

    return app


app = create_app()
