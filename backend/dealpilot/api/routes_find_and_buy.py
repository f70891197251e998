import logging

import httpx
from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from dealpilot.api.deps import get_http_client, get_settings
from dealpilot.core.browser_use import verify_checkout
from dealpilot.core.completions import propose_offers
from dealpilot.core.config import Settings
from dealpilot.core.errors import DealPilotError, UpstreamDataError
from dealpilot.core.offers import select_best
from dealpilot.schemas.offers import ErrorResponse, FindAndBuyResponse

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["find-and-buy"])

MISSING_QUERY = {"error": "Missing 'query' string"}


async def _read_query(request: Request):
    """
    The body is read by hand so a bad body gets our 400 payload
    instead of FastAPI's 422 validation error.
    """
    try:
        body = await request.json()
    except ValueError:
        return None
    query = body.get("query") if isinstance(body, dict) else None
    if not isinstance(query, str) or not query:
        return None
    return query


@router.post(
    "/find-and-buy",
    response_model=FindAndBuyResponse,
    response_model_exclude_none=True,
    responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}, 502: {"model": ErrorResponse}},
)
async def find_and_buy(
    request: Request,
    settings: Settings = Depends(get_settings),
    client: httpx.AsyncClient = Depends(get_http_client),
):
    """
    body: { "query": "Huggies baby diaper size 4" }
    returns: { query, candidates, best, checkout: { finalPrice, checkoutUrl } }
    """
    query = await _read_query(request)
    if query is None:
        return JSONResponse(status_code=400, content=MISSING_QUERY)

    try:
        logger.info("find-and-buy query=%r", query)

        # 1) Candidate offers from the completion service
        raw = await propose_offers(query, settings, client)
        if not raw:
            raise UpstreamDataError("LLM returned no candidates")

        # 2) Best per-unit offer (pre-verification)
        candidates, best = select_best(raw)
        logger.info(
            "best offer: retailer=%r unitPrice=%.4f of %d candidate(s)",
            best.retailer, best.unitPrice, len(candidates),
        )

        # 3) Browser agent reads the checkout total, stopping before payment
        checkout = await verify_checkout(best, query, settings, client)

        return FindAndBuyResponse(query=query, candidates=candidates, best=best, checkout=checkout)

    except DealPilotError as e:
        logger.warning("find-and-buy failed: %s", e.message)
        return JSONResponse(status_code=e.status_code, content=e.to_payload())

    except Exception:
        logger.exception("find-and-buy crashed")
        return JSONResponse(status_code=500, content={"error": "Server error"})
