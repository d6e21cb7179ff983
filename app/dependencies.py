from __future__ import annotations

from functools import lru_cache

from app.config import get_settings
from app.services.mint_service import MintServiceDeps
from chain.client import ChainClient
from credits.readers import ChainCreditReader, CreditReader, ProxyCreditReader
from credits.reconciliation import CreditReconciler
from ipfs.pinata import PinataClient
from llm.assistants import ImageGenerator, OpenAIAssistantsBackend
from tools.catalog import build_tool_registry
from tools.registry import ToolRegistry

# Process-level collaborators. Secrets are checked when a collaborator is
# first used, so the app starts without them.


@lru_cache
def get_chain_client() -> ChainClient:
    return ChainClient(get_settings())


@lru_cache
def get_pinata() -> PinataClient:
    return PinataClient(get_settings())


@lru_cache
def get_image_generator() -> ImageGenerator:
    return ImageGenerator(get_settings())


@lru_cache
def get_tool_registry() -> ToolRegistry:
    return build_tool_registry(
        chain=get_chain_client(),
        pinata=get_pinata(),
        images=get_image_generator(),
    )


@lru_cache
def get_agent_backend() -> OpenAIAssistantsBackend:
    return OpenAIAssistantsBackend(tools=get_tool_registry().definitions(), settings=get_settings())


def _fallback_reader(chain: ChainClient) -> CreditReader:
    s = get_settings()
    if s.credits_proxy_url:
        return ProxyCreditReader(s.credits_proxy_url)
    return ChainCreditReader(chain, rpc_url=s.fallback_rpc_url or None, pin_latest_block=True)


@lru_cache
def get_credit_reconciler() -> CreditReconciler:
    s = get_settings()
    chain = get_chain_client()
    return CreditReconciler(
        ChainCreditReader(chain),
        _fallback_reader(chain),
        max_attempts=s.credit_max_attempts,
        backoff_unit_s=s.credit_backoff_unit_s,
        cache_ttl_s=s.credit_cache_ttl_s,
    )


def get_mint_deps() -> MintServiceDeps:
    return MintServiceDeps(
        backend=get_agent_backend(),
        registry=get_tool_registry(),
        reconciler=get_credit_reconciler(),
        poll_interval_s=get_settings().poll_interval_s,
    )
