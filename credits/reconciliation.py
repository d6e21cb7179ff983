from __future__ import annotations

import logging
import time
from enum import Enum
from threading import Lock
from typing import Callable

from pydantic import BaseModel

from credits.readers import CreditReader, CreditReading
from orchestrator.errors import TransportError

logger = logging.getLogger(__name__)


class CreditsUnavailableError(TransportError):
    pass


class CreditSource(str, Enum):
    AUTHORITATIVE = "authoritative"
    FALLBACK = "fallback"


class CreditState(BaseModel):
    can_mint: bool
    credits: int
    source: CreditSource


class Observation(BaseModel):
    value: CreditReading
    source: CreditSource
    timestamp: float


class CreditReconciler:
    """
    Read-only reconciliation of the Payment collaborator's credit state.

    The observed cache is ephemeral: at most one observation per source and
    address, expired after cache_ttl_s, cleared when a state change is
    announced via reconcile_after_change.
    """

    def __init__(
        self,
        primary: CreditReader,
        fallback: CreditReader,
        *,
        max_attempts: int = 3,
        backoff_unit_s: float = 1.0,
        cache_ttl_s: float = 30.0,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.primary = primary
        self.fallback = fallback
        self.max_attempts = max_attempts
        self.backoff_unit_s = backoff_unit_s
        self.cache_ttl_s = cache_ttl_s
        self.sleep = sleep
        self.clock = clock
        self._cache: dict[str, dict[CreditSource, Observation]] = {}
        self._lock = Lock()

    def invalidate(self, address: str) -> None:
        with self._lock:
            self._cache.pop(address.lower(), None)

    def reconcile(self, address: str) -> CreditState:
        reading = self.primary.read(address)
        if reading is not None:
            current = self._observe(address, CreditSource.AUTHORITATIVE, reading)
        else:
            logger.warning("Primary credit read unavailable address=%s, using fallback", address)
            reading = self.fallback.read(address)
            if reading is None:
                raise CreditsUnavailableError(f"No credit read path available for {address}")
            current = self._observe(address, CreditSource.FALLBACK, reading)

        state = self._select(address, current)
        logger.info(
            "Credits reconciled address=%s can_mint=%s credits=%s source=%s",
            address,
            state.can_mint,
            state.credits,
            state.source.value,
            extra={"address": address, "source": state.source.value},
        )
        return state

    def reconcile_after_change(self, address: str) -> CreditState:
        """
        Re-read after a state-changing transaction, retrying with linear
        backoff (attempt * 2 units) until a non-zero credit count is observed.
        """
        self.invalidate(address)
        state: CreditState | None = None
        last_error: CreditsUnavailableError | None = None

        for attempt in range(1, self.max_attempts + 1):
            try:
                state = self.reconcile(address)
            except CreditsUnavailableError as e:
                logger.warning(
                    "Credit refresh attempt %s failed address=%s: %s",
                    attempt,
                    address,
                    e,
                    extra={"address": address, "attempt": attempt},
                )
                last_error = e
                state = None

            if state is not None and state.credits > 0:
                return state

            if attempt < self.max_attempts:
                self.sleep(attempt * 2 * self.backoff_unit_s)

        if state is None:
            raise last_error or CreditsUnavailableError(f"No credit read path available for {address}")
        return state

    def _observe(self, address: str, source: CreditSource, reading: CreditReading) -> Observation:
        obs = Observation(value=reading, source=source, timestamp=self.clock())
        with self._lock:
            self._cache.setdefault(address.lower(), {})[source] = obs
        return obs

    def _select(self, address: str, current: Observation) -> CreditState:
        now = self.clock()
        with self._lock:
            entries = self._cache.get(address.lower(), {})
            fresh = [o for o in entries.values() if o is not current and now - o.timestamp <= self.cache_ttl_s]
        fresh.append(current)

        # newest first; on equal timestamps the authoritative source ranks first
        def rank(o: Observation) -> tuple[float, bool]:
            return (o.timestamp, o.source == CreditSource.AUTHORITATIVE)

        non_zero = [o for o in fresh if o.value.credits > 0]
        winner = max(non_zero or fresh, key=rank)
        return CreditState(can_mint=winner.value.can_mint, credits=winner.value.credits, source=winner.source)
