from fastapi import HTTPException, Request

from app.services.portfolio_service import PortfolioService


def get_portfolio_service(request: Request) -> PortfolioService:
    service = getattr(request.app.state, "portfolio_service", None)
    if service is None:
        raise HTTPException(status_code=503, detail="Portfolio service not initialized")
    return service
