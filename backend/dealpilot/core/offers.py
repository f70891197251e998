from __future__ import annotations

import logging
import math
from typing import Any, Iterable, List, Optional, Tuple

from dealpilot.core.errors import UpstreamDataError
from dealpilot.core.json_extract import loads_or_none, unwrap_list
from dealpilot.schemas.offers import ScoredOffer

logger = logging.getLogger(__name__)

# Wrapper keys the completion service may put the offer array under
OFFER_LIST_KEYS: Tuple[str, ...] = ("items", "results")


def parse_offer_candidates(raw_text: Optional[str]) -> List[Any]:
    """
    Normalize the completion text into a list of offer records.
    Accepts a bare JSON array or an object wrapping one under OFFER_LIST_KEYS.
    Anything else (invalid JSON, scalar, unknown object) yields [].
    """
    parsed = loads_or_none(raw_text)
    candidates = unwrap_list(parsed, OFFER_LIST_KEYS)
    return candidates if candidates is not None else []


def _finite_number(v: Any) -> bool:
    # bool is an int subclass; "24" is text, not a number
    if not isinstance(v, (int, float)) or isinstance(v, bool):
        return False
    try:
        # JSON ints have no size limit; past float range they count as Infinity
        return math.isfinite(float(v))
    except OverflowError:
        return False


def _text(v: Any) -> Optional[str]:
    return v if isinstance(v, str) else None


def is_valid_offer(offer: Any) -> bool:
    if not isinstance(offer, dict):
        return False
    base = offer.get("basePrice")
    pack = offer.get("packSize")
    return _finite_number(base) and _finite_number(pack) and pack > 0


def score_offers(candidates: Iterable[Any]) -> List[ScoredOffer]:
    """
    Drop offers without a usable price/pack size, attach unitPrice,
    and sort cheapest-per-unit first. Python's sort is stable, so ties keep
    the order the completion service returned them in.
    """
    scored: List[ScoredOffer] = []
    for c in candidates:
        if not is_valid_offer(c):
            continue
        data = dict(c)
        data["retailer"] = _text(c.get("retailer"))
        data["productUrl"] = _text(c.get("productUrl"))
        data["unitPrice"] = float(c["basePrice"]) / float(c["packSize"])
        scored.append(ScoredOffer.model_validate(data))

    scored.sort(key=lambda o: o.unitPrice)
    return scored


def select_best(candidates: Iterable[Any]) -> Tuple[List[ScoredOffer], ScoredOffer]:
    """
    Returns (sorted candidates, best). `best` is always the head of the list.
    """
    candidates = list(candidates)
    scored = score_offers(candidates)
    if not scored:
        raise UpstreamDataError("Candidates missing price/packSize")

    dropped = len(candidates) - len(scored)
    if dropped:
        logger.info("Dropped %d candidate(s) without price/packSize", dropped)
    return scored, scored[0]
