from __future__ import annotations

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware

from app.core.context import clear_context, set_mint_id

MINT_ID_HEADER = "X-Mint-Id"


class MintContextMiddleware(BaseHTTPMiddleware):
    """
    Binds the mint request id to the logging context for one request.

    The id comes from the X-Mint-Id header, else from a /mints/{mint_id}
    path. POST /mint binds its own id once the request row exists.
    """

    async def dispatch(self, request: Request, call_next):
        mint_id = request.headers.get(MINT_ID_HEADER) or _mint_id_from_path(request.url.path)

        try:
            if mint_id:
                set_mint_id(mint_id)
            response = await call_next(request)
            if mint_id:
                response.headers.setdefault(MINT_ID_HEADER, mint_id)
            return response
        finally:
            clear_context()


def _mint_id_from_path(path: str) -> str | None:
    # routing has not run yet, so path params are not available here
    parts = [p for p in path.split("/") if p]
    if "mints" in parts:
        index = parts.index("mints")
        if index + 1 < len(parts):
            return parts[index + 1]
    return None
