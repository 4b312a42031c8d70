"""
Cache admin routes.
"""

from fastapi import APIRouter, Depends

from app.api.deps import get_portfolio_service
from app.api.schemas import ApiResponse
from app.services.portfolio_service import PortfolioService

router = APIRouter()


@router.get("/stats", response_model=ApiResponse)
async def cache_stats(service: PortfolioService = Depends(get_portfolio_service)):
    return ApiResponse(data=await service.cache_stats())


@router.delete("", response_model=ApiResponse)
async def flush_cache(service: PortfolioService = Depends(get_portfolio_service)):
    await service.flush_cache()
    return ApiResponse(data={"flushed": True})
