"""
FastAPI Main Application
Wires providers, cache, aggregator and portfolio service into the HTTP layer
"""

from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncGenerator, List
import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.api.routes import cache as cache_routes, health, portfolio, stocks
from app.api.schemas import ErrorResponse
from app.config import settings
from app.core.logging import setup_logging
from app.domain.errors import AggregationInputError, InvalidRequestError
from app.domain.models import Position
from app.domain.services.portfolio_aggregator import PortfolioAggregator
from app.domain.services.position_loader import load_positions
from app.infrastructure.cache.cache_factory import build_cache
from app.infrastructure.market_data.provider_factory import (
    get_fundamentals_provider,
    get_quote_provider,
)
from app.services.portfolio_service import PortfolioService

setup_logging(settings.LOG_LEVEL)
logger = logging.getLogger(__name__)

PROJECT_ROOT = Path(__file__).resolve().parents[1]


def portfolio_config_path() -> Path:
    path = Path(settings.PORTFOLIO_CONFIG_PATH)
    return path if path.is_absolute() else PROJECT_ROOT / path


def configured_positions() -> List[Position]:
    return load_positions(portfolio_config_path())


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator:
    """
    Application lifespan manager
    Handles startup and shutdown of providers and cache
    """
    logger.info("=" * 60)
    logger.info("🚀 Starting Portfolio Dashboard")
    logger.info("=" * 60)

    # 1. Validate configured positions early (requests re-read the file)
    try:
        positions = configured_positions()
        logger.info(f"✅ Portfolio config loaded: {len(positions)} positions")
    except AggregationInputError as e:
        logger.error(f"❌ Portfolio config invalid: {e}")

    # 2. Providers
    quote_provider = get_quote_provider(settings)
    fundamentals_provider = get_fundamentals_provider(settings)

    # 3. Cache (None means uncached)
    cache = await build_cache(settings)

    app.state.portfolio_service = PortfolioService(
        positions_source=configured_positions,
        aggregator=PortfolioAggregator(quote_provider, fundamentals_provider),
        cache=cache,
        config=settings,
    )
    logger.info(f"   ✅ Cache: {type(cache).__name__ if cache else 'disabled'}")
    logger.info(f"   ✅ API Docs: http://{settings.API_HOST}:{settings.API_PORT}/docs")

    yield

    logger.info("🛑 Shutting down Portfolio Dashboard...")
    await fundamentals_provider.close()
    if cache is not None:
        await cache.close()


async def invalid_request_handler(request: Request, exc: InvalidRequestError) -> JSONResponse:
    return JSONResponse(status_code=400, content=ErrorResponse(error=str(exc)).model_dump())


async def aggregation_input_handler(request: Request, exc: AggregationInputError) -> JSONResponse:
    logger.error(f"Portfolio aggregation input error: {exc}")
    return JSONResponse(
        status_code=500,
        content=ErrorResponse(error="Portfolio configuration invalid", detail=str(exc)).model_dump(),
    )


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception(f"Unhandled error on {request.method} {request.url.path}")
    detail = str(exc) if settings.DEBUG else None
    return JSONResponse(
        status_code=500,
        content=ErrorResponse(error="Internal Server Error", detail=detail).model_dump(),
    )


def create_app() -> FastAPI:
    app = FastAPI(
        title="Portfolio Dashboard",
        description="Live portfolio metrics aggregated from Yahoo Finance and Google Finance",
        version="1.0.0",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=[settings.FRONTEND_URL],
        allow_credentials=True,
        allow_methods=["GET", "DELETE"],
        allow_headers=["Content-Type", "Authorization"],
    )

    app.add_exception_handler(InvalidRequestError, invalid_request_handler)
    app.add_exception_handler(AggregationInputError, aggregation_input_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)

    app.include_router(health.router, tags=["Health"])
    app.include_router(portfolio.router, prefix="/api/portfolio", tags=["Portfolio"])
    app.include_router(stocks.router, prefix="/api/stocks", tags=["Stocks"])
    app.include_router(cache_routes.router, prefix="/api/cache", tags=["Cache"])
    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("app.main:app", host=settings.API_HOST, port=settings.API_PORT, reload=settings.DEBUG)
