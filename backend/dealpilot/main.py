"""
DealPilot API - FastAPI Main Entry

✅ LOCAL:
    cd backend
    cp ../.env.example .env      # fill OPENAI_API_KEY and BROWSERUSE_API_KEY
    python -m uvicorn dealpilot.main:app --reload --host 0.0.0.0 --port 3000

    or, after `pip install -e .`:
    dealpilot

✅ TEST:
    curl -i http://127.0.0.1:3000/health
    curl -i -X POST http://127.0.0.1:3000/api/find-and-buy \
        -H 'Content-Type: application/json' \
        -d '{"query": "Huggies baby diaper size 4"}'
"""

import logging
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

# ✅ Routers
from dealpilot.api.routes_find_and_buy import router as find_and_buy_router
from dealpilot.api.routes_meta import router as meta_router
from dealpilot.core.config import Settings, missing_credentials, settings as default_settings
from dealpilot.core.logs import configure_logging

logger = logging.getLogger(__name__)


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or default_settings
    configure_logging(settings.LOG_LEVEL)

    # Surface missing credentials at startup; requests will still be attempted
    for name in missing_credentials(settings):
        logger.error("Missing %s in .env", name)

    app = FastAPI(
        title="DealPilot API",
        version=settings.APP_VERSION,
        description="Find the best per-unit offer for a product and read its checkout total",
    )

    app.state.settings = settings

    # ✅ CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # ✅ Mount routers
    app.include_router(meta_router)
    app.include_router(find_and_buy_router)

    return app


app = create_app()


def run() -> None:
    """Console entry point: serve `app` on PORT."""
    import uvicorn

    logger.info("DealPilot server running on http://localhost:%s", default_settings.PORT)
    uvicorn.run(app, host="0.0.0.0", port=default_settings.PORT, log_level=default_settings.LOG_LEVEL.lower())
