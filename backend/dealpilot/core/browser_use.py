import logging
import math
import re
from typing import Any, Dict, Iterable, Optional

import httpx

from dealpilot.core.config import Settings
from dealpilot.core.errors import UpstreamRequestError
from dealpilot.core.json_extract import extract_json_object, loads_or_none, unwrap_first
from dealpilot.schemas.offers import CheckoutResult, ScoredOffer

logger = logging.getLogger(__name__)


def build_checkout_instructions(product_url: Optional[str], query: str) -> str:
    """
    Natural-language task for the browser agent.
    The "do not place order" line is an instruction to the agent only;
    nothing on our side can enforce it.
    """
    return (
        f"Go to: {product_url or ''}\n"
        f"If a size/variant is required, choose the correct variant for: {query}\n"
        "Add 1 item to cart.\n"
        "Navigate to checkout page.\n"
        "Read the final order total (including shipping & taxes, if visible).\n"
        'IMPORTANT: Do NOT click "Place order". Stop before payment.\n'
        "Return a compact JSON report with keys:\n"
        '{ "finalPrice": number, "checkoutUrl": string }\n'
    )


def build_task_payload(instructions: str, s: Settings) -> Dict[str, Any]:
    # Deployments disagree on the field name ("instructions", "task", "prompt")
    payload: Dict[str, Any] = {s.BROWSERUSE_INSTRUCTIONS_FIELD or "instructions": instructions}
    if s.BROWSERUSE_MAX_STEPS > 0:
        payload["maxSteps"] = s.BROWSERUSE_MAX_STEPS
    if s.BROWSERUSE_RETURN_JSON:
        payload["returnJson"] = True
    return payload


def _parse_price_value(price: Any) -> Optional[float]:
    """
    Converts strings like "$599.99", "Total: $1,402.58" to float.
    Numbers pass through; anything else is None.
    """
    if isinstance(price, bool):
        return None
    if isinstance(price, (int, float)):
        value = price
    elif isinstance(price, str):
        m = re.search(r"(\d[\d,]*\.?\d*)", price)
        if not m:
            return None
        value = m.group(1).replace(",", "")
    else:
        return None
    try:
        value = float(value)
    except (ValueError, OverflowError):
        return None
    return value if math.isfinite(value) else None


def _clean_result(obj: Dict[str, Any]) -> Dict[str, Any]:
    out = dict(obj)
    if "finalPrice" in out:
        out["finalPrice"] = _parse_price_value(out["finalPrice"])
    for k in ("checkoutUrl", "raw"):
        if k in out and not isinstance(out[k], str):
            out[k] = None
    return out


def normalize_checkout_reply(body_text: str, result_keys: Iterable[str] = ("result", "data")) -> Dict[str, Any]:
    """
    Try the reply shapes we have seen, in order:
      - direct: { finalPrice, checkoutUrl }
      - nested: { result: {...} } or { data: {...} }
      - a string (whole body, or the nested value) with JSON embedded in text
    Falls back to { raw: <string> } when nothing parses.
    """
    parsed = loads_or_none(body_text)
    value = body_text if parsed is None else unwrap_first(parsed, result_keys)

    if isinstance(value, dict):
        return _clean_result(value)

    if isinstance(value, str):
        embedded = extract_json_object(value)
        if embedded is not None:
            return _clean_result(embedded)
        return {"raw": value}

    # list / number / bool: nothing we can read a total from
    return {"raw": body_text}


async def verify_checkout(
    best: ScoredOffer,
    query: str,
    s: Settings,
    client: httpx.AsyncClient,
) -> CheckoutResult:
    """
    Submit the checkout task for `best` and read back the reported total.

    - Non-2xx status or network failure -> UpstreamRequestError with the body
    - Unreadable reply -> CheckoutResult(raw=...), not an error
    """
    url = s.browseruse_tasks_url
    headers = {
        "Authorization": f"Bearer {s.BROWSERUSE_API_KEY}",
        "Content-Type": "application/json",
    }
    payload = build_task_payload(build_checkout_instructions(best.productUrl, query), s)

    try:
        r = await client.post(url, headers=headers, json=payload, timeout=s.BROWSERUSE_TIMEOUT_SECONDS)
    except httpx.HTTPError as e:
        logger.warning("Browser-use request to %s failed: %s", url, e)
        raise UpstreamRequestError("Browser-use request failed", details=str(e))

    if not r.is_success:
        logger.warning("Browser-use request failed: %s", r.status_code)
        raise UpstreamRequestError("Browser-use request failed", details=r.text, upstream_status=r.status_code)

    checkout = normalize_checkout_reply(r.text, s.browseruse_result_keys)
    if "raw" in checkout and "finalPrice" not in checkout:
        logger.info("Browser-use reply had no JSON report; returning raw text")
    return CheckoutResult.model_validate(checkout)
