from pydantic import BaseModel, ConfigDict
from typing import Optional, List, Union


class RawOffer(BaseModel):
    """One retailer offer as proposed by the completion service."""
    model_config = ConfigDict(extra="allow")

    retailer: Optional[str] = None
    productUrl: Optional[str] = None
    packSize: Union[int, float]          # units per pack, e.g. 124 diapers
    basePrice: Union[int, float]         # pre-tax subtotal


class ScoredOffer(RawOffer):
    unitPrice: float                     # basePrice / packSize, unrounded


class CheckoutResult(BaseModel):
    """
    Best-effort reading of the automation reply.
    `raw` is set instead of the price fields when no JSON could be recovered.
    """
    model_config = ConfigDict(extra="allow")

    finalPrice: Optional[float] = None
    checkoutUrl: Optional[str] = None
    raw: Optional[str] = None


class FindAndBuyResponse(BaseModel):
    query: str
    candidates: List[ScoredOffer]
    best: ScoredOffer
    checkout: CheckoutResult


class ErrorResponse(BaseModel):
    error: str
    details: Optional[str] = None
