from typing import Any, Dict, Optional


class DealPilotError(Exception):
    """
    A pipeline failure that maps to a specific HTTP response.
    `message` is user-facing; `details` is optional diagnostic text.
    """

    status_code = 500

    def __init__(self, message: str, details: Optional[str] = None, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.details = details
        if status_code is not None:
            self.status_code = status_code

    def to_payload(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"error": self.message}
        if self.details is not None:
            payload["details"] = self.details
        return payload


class UpstreamDataError(DealPilotError):
    """An upstream answered, but with nothing usable."""

    status_code = 502


class UpstreamRequestError(DealPilotError):
    """An upstream call failed at the network or HTTP status level."""

    status_code = 502

    def __init__(self, message: str, details: Optional[str] = None, upstream_status: Optional[int] = None):
        super().__init__(message, details=details)
        self.upstream_status = upstream_status
