from __future__ import annotations

import logging
import random
import uuid
from dataclasses import dataclass
from typing import Any, Callable

from sqlalchemy.orm import Session

from api.schemas.mint import CreditSnapshot, MintResponse
from app.core.context import set_agent_run_id, set_mint_id
from app.domain.mint_status import MintStatus
from credits.reconciliation import CreditReconciler, CreditsUnavailableError, CreditState
from db.repos.mint_requests_repo import create_mint_request, update_mint_request
from llm.prompts import build_mint_prompt, select_theme
from orchestrator.backend import AgentBackend
from orchestrator.dispatcher import ToolDispatcher
from orchestrator.errors import TransportError
from orchestrator.response_parser import parse_mint_reply
from orchestrator.run_driver import RunDriver, RunOutcome
from orchestrator.session_manager import AgentSessionManager
from orchestrator.state import AgentRunStatus, DispatchResult, MintState, RunSnapshot
from tools.registry import ToolRegistry
from tools.tool_runner import record_tool_results

logger = logging.getLogger(__name__)

AGENT_FAILED = "AGENT_FAILED"
MINTING_FAILED = "MINTING_FAILED"
USER_NO_CREDITS = "USER_NO_CREDITS"
NO_RESPONSE = "NO_RESPONSE"
TRANSPORT_ERROR = "TRANSPORT_ERROR"
INTERNAL_ERROR = "INTERNAL_ERROR"


@dataclass
class MintServiceDeps:
    backend: AgentBackend
    registry: ToolRegistry
    reconciler: CreditReconciler
    poll_interval_s: float = 1.0
    sleep: Callable[[float], None] | None = None
    rng: random.Random | None = None


@dataclass
class _Outcome:
    success: bool
    message: str
    error: str | None = None
    transaction_hash: str | None = None
    block_number: str | None = None
    image_url: str | None = None
    metadata_hash: str | None = None


# ---------------------------
# Outcome
# ---------------------------

def _from_mint_result(result: dict[str, Any], reply: str) -> _Outcome:
    if not result.get("success", True):
        return _Outcome(success=False, error=MINTING_FAILED, message=str(result.get("error") or reply))
    return _Outcome(
        success=True,
        message=reply,
        transaction_hash=result.get("transactionHash"),
        block_number=str(result["blockNumber"]) if result.get("blockNumber") is not None else None,
        image_url=result.get("imageGatewayUrl") or result.get("originalImageUrl"),
        metadata_hash=result.get("metadataIpfsHash"),
    )


def build_outcome(run: RunOutcome, state: MintState) -> _Outcome:
    """
    Structured mint result first; the reply text is only decoded when the
    run never produced one.
    """
    reply = run.reply.value

    if run.status == AgentRunStatus.FAILED:
        return _Outcome(success=False, error=AGENT_FAILED, message=reply)

    if state.mint_result is not None:
        return _from_mint_result(state.mint_result, reply)

    if state.mint_error is not None:
        return _Outcome(success=False, error=MINTING_FAILED, message=state.mint_error)

    if not run.completed:
        return _Outcome(success=False, error=NO_RESPONSE, message=reply)

    parsed = parse_mint_reply(reply)
    if parsed.failed:
        return _Outcome(success=False, error=parsed.error, message=reply)
    if not parsed.completed:
        return _Outcome(success=False, error=MINTING_FAILED, message=reply)

    return _Outcome(
        success=True,
        message=reply,
        transaction_hash=parsed.transaction_hash,
        block_number=parsed.block_number,
        image_url=parsed.image_url,
        metadata_hash=parsed.metadata_hash,
    )


def _snapshot(state: CreditState) -> CreditSnapshot:
    return CreditSnapshot(canMint=state.can_mint, credits=state.credits, source=state.source.value)


def _refresh_credits(reconciler: CreditReconciler, address: str) -> CreditSnapshot | None:
    try:
        return _snapshot(reconciler.reconcile_after_change(address))
    except CreditsUnavailableError as e:
        # the mint already happened; report it without a credit view
        logger.warning("Post-mint credit refresh failed address=%s: %s", address, e)
        return None


def _mark_failed(db: Session, mint_id: uuid.UUID, exc: Exception) -> None:
    """Move an in-flight mint request to FAILED before the error propagates."""
    db.rollback()
    code = TRANSPORT_ERROR if isinstance(exc, TransportError) else INTERNAL_ERROR
    update_mint_request(
        db,
        mint_id=mint_id,
        to_status=MintStatus.FAILED,
        error_code=code,
        error_message=str(exc) or type(exc).__name__,
    )


# ---------------------------
# Flow
# ---------------------------

def mint_nft(
    db: Session,
    *,
    wallet_address: str,
    theme: str | None,
    rarity: str,
    deps: MintServiceDeps,
) -> MintResponse:
    """
    Run one mint request end to end.

    wallet_address is expected to be checksummed already. Any exception
    after the mint request exists marks it FAILED (TRANSPORT_ERROR or
    INTERNAL_ERROR) and is re-raised.
    """
    credit_state = deps.reconciler.reconcile(wallet_address)
    chosen_theme = select_theme(wallet_address, theme)

    mint = create_mint_request(db, wallet_address=wallet_address, theme=chosen_theme, rarity=rarity)
    set_mint_id(str(mint.id))

    if not credit_state.can_mint:
        logger.info("Mint rejected, no credits address=%s", wallet_address)
        message = "Please purchase minting credits before requesting an NFT."
        update_mint_request(
            db,
            mint_id=mint.id,
            to_status=MintStatus.REJECTED,
            credits=_snapshot(credit_state).model_dump(),
            error_code=USER_NO_CREDITS,
            error_message=message,
        )
        return MintResponse(
            success=False,
            mintId=mint.id,
            walletAddress=wallet_address,
            error=USER_NO_CREDITS,
            message=message,
            credits=_snapshot(credit_state),
        )

    prompt = build_mint_prompt(wallet_address, chosen_theme, rarity, rng=deps.rng)
    sessions = AgentSessionManager(deps.backend)

    try:
        session = sessions.open(prompt)
        run = sessions.start_run(session)
    except Exception as e:
        _mark_failed(db, mint.id, e)
        raise

    set_agent_run_id(run.id)
    update_mint_request(
        db,
        mint_id=mint.id,
        to_status=MintStatus.RUNNING,
        session_id=session.id,
        run_id=run.id,
        run_status=run.status.value,
    )

    def on_batch(snapshot: RunSnapshot, results: list[DispatchResult]) -> None:
        record_tool_results(db, mint_request_id=mint.id, results=results)

    driver_kwargs: dict[str, Any] = {"poll_interval_s": deps.poll_interval_s, "on_batch": on_batch}
    if deps.sleep is not None:
        driver_kwargs["sleep"] = deps.sleep
    driver = RunDriver(deps.backend, ToolDispatcher(deps.registry), **driver_kwargs)

    state = MintState()
    try:
        outcome_run = driver.drive(session, run, state)
        outcome = build_outcome(outcome_run, state)
    except Exception as e:
        _mark_failed(db, mint.id, e)
        raise

    credits: CreditSnapshot | None = None
    if state.mint_result is not None or state.mint_error is not None:
        credits = _refresh_credits(deps.reconciler, wallet_address)

    update_mint_request(
        db,
        mint_id=mint.id,
        to_status=MintStatus.SUCCEEDED if outcome.success else MintStatus.FAILED,
        run_id=outcome_run.run_id,
        run_status=outcome_run.status.value,
        transaction_hash=outcome.transaction_hash,
        block_number=outcome.block_number,
        image_url=outcome.image_url,
        metadata_hash=outcome.metadata_hash,
        reply_text=outcome.message if outcome.success else outcome_run.reply.value,
        credits=credits.model_dump() if credits else None,
        error_code=outcome.error,
        error_message=None if outcome.success else outcome.message,
    )
    logger.info(
        "Mint finished mint_id=%s success=%s error=%s run_status=%s",
        mint.id,
        outcome.success,
        outcome.error,
        outcome_run.status.value,
    )

    return MintResponse(
        success=outcome.success,
        mintId=mint.id,
        walletAddress=wallet_address,
        transactionHash=outcome.transaction_hash,
        blockNumber=outcome.block_number,
        imageUrl=outcome.image_url,
        metadataHash=outcome.metadata_hash,
        error=outcome.error,
        message=outcome.message,
        details={"runId": outcome_run.run_id, "runStatus": outcome_run.status.value},
        credits=credits,
    )
