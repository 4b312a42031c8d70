import time

from fastapi import APIRouter

from app.utils.time import now_ist_iso

router = APIRouter()

_STARTED_AT = time.monotonic()


@router.get("/health")
def health():
    return {
        "status": "ok",
        "timestamp": now_ist_iso(),
        "uptime_seconds": round(time.monotonic() - _STARTED_AT, 1),
    }
