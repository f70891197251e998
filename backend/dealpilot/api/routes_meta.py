from fastapi import APIRouter, Depends

from dealpilot.api.deps import get_settings
from dealpilot.core.config import Settings

router = APIRouter(tags=["meta"])


# ✅ Root (GET /)
@router.get("/")
def root():
    return {
        "name": "DealPilot API",
        "status": "ok",
        "docs": "/docs",
        "health": "/health",
        "version": "/version",
    }


# ✅ Health Check (GET /health)
@router.get("/health")
def health():
    return {"ok": True}


# ✅ Version endpoint (GET /version)
@router.get("/version")
def version(settings: Settings = Depends(get_settings)):
    return {"version": settings.APP_VERSION, "build": settings.BUILD_ID}
