"""
Best-effort decoding of upstream replies whose shape is not fixed.

Each helper tries a known shape and returns None when it does not apply,
so callers can chain them: bare value, then wrapped value, then text blob.
"""

import json
import re
from typing import Any, Iterable, List, Optional

_FENCED = re.compile(r"```json\s*(\{.*?\})\s*```", re.DOTALL | re.IGNORECASE)
_OBJECT_SPAN = re.compile(r"\{.*\}", re.DOTALL)


def loads_or_none(text: Optional[str]) -> Any:
    """Strict json.loads; None if the text is empty or not JSON."""
    if not isinstance(text, str) or not text.strip():
        return None
    try:
        return json.loads(text)
    except ValueError:
        return None


def extract_json_object(text: Optional[str]) -> Optional[dict]:
    """
    Recover a JSON object embedded in free text.
    Handles:
    - ```json ... ``` fenced blocks
    - extra text before/after the object
    Returns None when no span parses to an object.
    """
    if not isinstance(text, str):
        return None

    fenced = _FENCED.search(text)
    if fenced:
        obj = loads_or_none(fenced.group(1).strip())
        if isinstance(obj, dict):
            return obj

    # Greedy: first "{" through last "}"
    m = _OBJECT_SPAN.search(text)
    if not m:
        return None
    obj = loads_or_none(m.group(0))
    return obj if isinstance(obj, dict) else None


def unwrap_list(value: Any, keys: Iterable[str]) -> Optional[List[Any]]:
    """
    A bare list wins; otherwise the first list found under one of `keys`.
    """
    if isinstance(value, list):
        return value
    if isinstance(value, dict):
        for k in keys:
            inner = value.get(k)
            if isinstance(inner, list):
                return inner
    return None


def unwrap_first(value: Any, keys: Iterable[str]) -> Any:
    """
    For a dict, the first non-null value under `keys`, else the dict itself.
    """
    if isinstance(value, dict):
        for k in keys:
            inner = value.get(k)
            if inner is not None:
                return inner
    return value
