from typing import AsyncIterator

import httpx
from fastapi import Request

from dealpilot.core.config import Settings


def get_settings(request: Request) -> Settings:
    """The Settings the app was created with (see create_app)."""
    return request.app.state.settings


async def get_http_client() -> AsyncIterator[httpx.AsyncClient]:
    """
    One AsyncClient per request; nothing is shared between requests.
    Tests override this with a client on an httpx.MockTransport.
    """
    async with httpx.AsyncClient() as client:
        yield client
