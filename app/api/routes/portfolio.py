"""
Portfolio API Routes
Holdings with live market values, sector roll-ups and bulk prices
"""

from fastapi import APIRouter, Depends, Query

from app.api.deps import get_portfolio_service
from app.api.schemas import ApiResponse
from app.services.portfolio_service import PortfolioService

router = APIRouter()


@router.get("", response_model=ApiResponse)
async def get_portfolio(service: PortfolioService = Depends(get_portfolio_service)):
    """
    Complete portfolio with per-stock metrics, totals and day highlights
    """
    return ApiResponse(data=await service.get_portfolio_snapshot())


@router.get("/sectors", response_model=ApiResponse)
async def get_sector_summary(service: PortfolioService = Depends(get_portfolio_service)):
    """
    Sector-wise roll-up of the portfolio
    """
    return ApiResponse(data=await service.get_sector_snapshot())


@router.get("/prices", response_model=ApiResponse)
async def get_prices(
    symbols: str = Query(..., description="Comma separated symbols, e.g. TCS.NS,INFY.NS"),
    service: PortfolioService = Depends(get_portfolio_service),
):
    """
    Best-effort live prices; symbols that failed are listed under `missing`
    """
    return ApiResponse(data=await service.get_bulk_prices([symbols]))
