import logging
from typing import Any, Dict, List

import httpx

from dealpilot.core.config import Settings
from dealpilot.core.errors import UpstreamRequestError
from dealpilot.core.offers import parse_offer_candidates

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = (
    "You output structured JSON only.\n"
    "Given a product query, return top 3 retailer offers for the US market with:\n"
    "- retailer (string)\n"
    "- productUrl (string, canonical, directly add-to-cart friendly if possible)\n"
    "- packSize (integer, count of units e.g., diapers)\n"
    "- basePrice (number, pre-tax subtotal)\n"
    "Do not include commentary."
)


def build_messages(query: str) -> List[Dict[str, str]]:
    user = (
        f'Product query: "{query}"\n'
        "Return strictly valid JSON array with up to 3 items."
    )
    return [
        {"role": "system", "content": SYSTEM_PROMPT},
        {"role": "user", "content": user},
    ]


def build_payload(query: str, s: Settings) -> Dict[str, Any]:
    return {
        "model": s.OPENAI_MODEL,
        "temperature": s.OPENAI_TEMPERATURE,
        "messages": build_messages(query),
        # JSON mode; the model may then wrap the array in an object
        "response_format": {"type": "json_object"},
    }


def _message_content(data: Any) -> str:
    """
    choices[0].message.content, or "[]" when the envelope is unexpected.
    """
    try:
        content = data["choices"][0]["message"]["content"]
    except (KeyError, IndexError, TypeError):
        return "[]"
    return content if isinstance(content, str) and content else "[]"


async def propose_offers(query: str, s: Settings, client: httpx.AsyncClient) -> List[Any]:
    """
    Ask the completion service for candidate offers.

    - One request, no retries, no streaming
    - Returns the raw (unvalidated) offer records, possibly []
    - Raises UpstreamRequestError when the call itself fails
    """
    url = s.OPENAI_BASE_URL.rstrip("/") + "/chat/completions"
    headers = {"Authorization": f"Bearer {s.OPENAI_API_KEY}"}

    try:
        r = await client.post(
            url,
            headers=headers,
            json=build_payload(query, s),
            timeout=s.OPENAI_TIMEOUT_SECONDS,
        )
    except httpx.HTTPError as e:
        logger.warning("Completion request to %s failed: %s", url, e)
        raise UpstreamRequestError("LLM request failed", details=str(e))

    if r.status_code >= 400:
        logger.warning("Completion request failed: %s", r.status_code)
        raise UpstreamRequestError("LLM request failed", details=r.text[:2000], upstream_status=r.status_code)

    try:
        data = r.json()
    except ValueError:
        data = None

    candidates = parse_offer_candidates(_message_content(data))
    logger.info("Completion returned %d candidate(s)", len(candidates))
    return candidates
