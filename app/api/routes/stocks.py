"""
Stock API Routes - search and single-stock detail.
"""

from fastapi import APIRouter, Depends, Query

from app.api.deps import get_portfolio_service
from app.api.schemas import ApiResponse
from app.services.portfolio_service import PortfolioService

router = APIRouter()


@router.get("/search", response_model=ApiResponse)
async def search_stocks(
    query: str = Query(""),
    service: PortfolioService = Depends(get_portfolio_service),
):
    return ApiResponse(data=await service.search_stocks(query))


@router.get("/{symbol}", response_model=ApiResponse)
async def get_stock_details(symbol: str, service: PortfolioService = Depends(get_portfolio_service)):
    """Merged quote + fundamentals for one symbol."""
    return ApiResponse(data=await service.get_stock_detail(symbol))
