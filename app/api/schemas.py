"""
Response envelopes shared by the API routes.
"""

from typing import Any, Optional

from pydantic import BaseModel, Field

from app.utils.time import now_ist_iso


class ApiResponse(BaseModel):
    success: bool = True
    data: Any = None
    timestamp: str = Field(default_factory=now_ist_iso)


class ErrorResponse(BaseModel):
    success: bool = False
    error: str
    detail: Optional[str] = None
    timestamp: str = Field(default_factory=now_ist_iso)
