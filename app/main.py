from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from api.v1.credits import router as credits_router
from api.v1.mint import router as mint_router
from app.config import get_settings
from app.core.langsmith import configure_langsmith
from app.core.logging import configure_logging
from app.core.middleware import MintContextMiddleware
from chain.chains import UnsupportedChainError, chain_name, list_supported_chains
from chain.client import ChainConfigError
from chain.rpc import Web3RPCError
from credits.reconciliation import CreditsUnavailableError
from db.base import Base
from db.session import engine
from orchestrator.errors import InvalidSessionError, TransportError

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    import db.models  # noqa: F401  registers tables on Base

    Base.metadata.create_all(bind=engine)
    logger.info("Database tables ready")
    yield


def _error(status_code: int, error: str, exc: Exception) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"success": False, "error": error, "message": str(exc)},
    )


def create_app() -> FastAPI:
    configure_logging()
    configure_langsmith()

    app = FastAPI(title="Forge Mint Service", version="0.1.0", lifespan=lifespan)
    app.add_middleware(MintContextMiddleware)

    app.include_router(mint_router, prefix="/v1")
    app.include_router(credits_router, prefix="/v1")

    @app.exception_handler(CreditsUnavailableError)
    async def credits_unavailable_handler(request: Request, exc: CreditsUnavailableError):
        logger.warning("Credits unavailable path=%s: %s", request.url.path, exc)
        return _error(503, "CREDITS_UNAVAILABLE", exc)

    @app.exception_handler(TransportError)
    async def transport_error_handler(request: Request, exc: TransportError):
        logger.error("Transport error path=%s: %s", request.url.path, exc)
        return _error(502, "TRANSPORT_ERROR", exc)

    @app.exception_handler(InvalidSessionError)
    async def invalid_session_handler(request: Request, exc: InvalidSessionError):
        logger.error("Invalid session path=%s: %s", request.url.path, exc)
        return _error(502, "INVALID_SESSION", exc)

    @app.exception_handler(Web3RPCError)
    async def chain_error_handler(request: Request, exc: Web3RPCError):
        logger.error("Chain error path=%s: %s", request.url.path, exc)
        return _error(502, "CHAIN_ERROR", exc)

    @app.exception_handler(ChainConfigError)
    async def chain_config_handler(request: Request, exc: ChainConfigError):
        return _error(503, "NOT_CONFIGURED", exc)

    @app.exception_handler(UnsupportedChainError)
    async def unsupported_chain_handler(request: Request, exc: UnsupportedChainError):
        return _error(503, "NOT_CONFIGURED", exc)

    @app.get("/healthz")
    async def healthz():
        s = get_settings()
        return {
            "ok": True,
            "openai_model": s.OPENAI_MODEL,
            "db_configured": bool(s.DATABASE_URL),
            "openai_configured": bool(s.openai_api_key),
            "pinata_configured": s.pinata_configured,
            "signer_configured": bool(s.private_key),
            "payment_contract_configured": bool(s.forge_payment_address),
            "chain_id": s.chain_id,
            "chain_name": chain_name(s.chain_id),
            "rpc_configured": s.chain_id in list_supported_chains(),
        }

    return app


app = create_app()
