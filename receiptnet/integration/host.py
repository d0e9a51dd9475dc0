"""
Serialized host for the settlement core.

This is the imperative shell around the functional core:
- decodes calldata (bounds-checked, before any state is read),
- builds the per-call `Env` from the clock, token and config,
- runs `core.step` under a single lock so index allocation and per-pair
  seq_no increments are linearized across threads,
- logs outcomes.

Read-only queries take the same lock and never observe a half-applied call.
"""

from __future__ import annotations

import logging
import threading
from typing import Optional, Tuple

from ..core import engine
from ..core.types import Call, Env, Post, ReceiptSettled, Rejection, StepResult, reject
from ..state.accounts import Account
from ..state.transaction import ChainState
from ..state.withdrawals import PendingWithdrawal
from .calldata import CalldataError, UnknownSelectorError, decode_call
from .collaborators import Clock, CycleClock, InMemoryToken, Token
from .config import ProtocolConfig
from .snapshot import Snapshot, snapshot_from_state

logger = logging.getLogger(__name__)


def make_env(config: ProtocolConfig, clock: Clock, token: Optional[Token]) -> Env:
    return Env(
        now=clock.now(),
        cycle_expiry=clock.current_cycle_expiry(),
        domain=config.domain,
        buffer_period=config.buffer_period,
        token=token,
    )


def apply_calldata(
    state: ChainState,
    calldata: bytes,
    env: Env,
    *,
    max_batch_receipts: Optional[int] = None,
) -> Tuple[Optional[Call], StepResult]:
    """Decode and execute one call. Returns the decoded call (if any) and the result."""
    try:
        call = decode_call(calldata)
    except UnknownSelectorError as exc:
        return None, reject(Rejection.UNKNOWN_SELECTOR, str(exc))
    except CalldataError as exc:
        return None, reject(Rejection.MALFORMED_CALLDATA, str(exc))

    if isinstance(call, Post) and max_batch_receipts is not None and len(call.receipts) > max_batch_receipts:
        return call, reject(
            Rejection.MALFORMED_CALLDATA,
            f"too many receipts: {len(call.receipts)} > {max_batch_receipts}",
        )
    return call, engine.step(state, call, env)


class SettlementHost:
    def __init__(
        self,
        *,
        config: Optional[ProtocolConfig] = None,
        clock: Optional[Clock] = None,
        token: Optional[Token] = None,
        state: Optional[ChainState] = None,
    ) -> None:
        self.config = config or ProtocolConfig()
        self.clock = clock or CycleClock(cycle_length=self.config.cycle_length, genesis_time=self.config.genesis_time)
        self.token = token if token is not None else InMemoryToken()
        self._state = state if state is not None else ChainState()
        self._lock = threading.Lock()

    # -- calls -----------------------------------------------------------

    def submit(self, calldata: bytes) -> StepResult:
        with self._lock:
            try:
                env = make_env(self.config, self.clock, self.token)
            except OverflowError as exc:
                result = reject(Rejection.CLOCK_OUT_OF_RANGE, str(exc))
                self._log_result(None, result)
                return result
            call, result = apply_calldata(
                self._state, calldata, env, max_batch_receipts=self.config.max_batch_receipts
            )
            self._log_result(call, result)
            return result

    def execute(self, call: Call) -> StepResult:
        """Run an already-typed call (skips the wire codec)."""
        with self._lock:
            try:
                env = make_env(self.config, self.clock, self.token)
            except OverflowError as exc:
                result = reject(Rejection.CLOCK_OUT_OF_RANGE, str(exc))
                self._log_result(call, result)
                return result
            result = engine.step(self._state, call, env)
            self._log_result(call, result)
            return result

    def _log_result(self, call: Optional[Call], result: StepResult) -> None:
        name = type(call).__name__ if call is not None else "calldata"
        if not result.accepted:
            rejection = result.rejection.value if result.rejection else "unknown"
            logger.warning("%s rejected: %s%s", name, rejection, f" ({result.detail})" if result.detail else "")
            return
        for effect in result.effects:
            if isinstance(effect, ReceiptSettled) and effect.slashed:
                logger.warning(
                    "user %d short on receipt to %d: paid %d of %d, security deposit slashed",
                    effect.b_index,
                    effect.a_index,
                    effect.amount_paid,
                    effect.amount_requested,
                )
        logger.info("%s accepted (%d effects)", name, len(result.effects))

    # -- base-ledger hooks -----------------------------------------------

    def fund(self, index: int, amount: int) -> None:
        """
        Credit an account balance (stands in for the base ledger's deposit path).

        An `InMemoryToken` reserve grows by the same amount; any other token
        must be funded by its own deposit flow.
        """
        with self._lock:
            self._state.ledger.credit(index, amount)
            self._receive(amount)

    def deposit_security(self, index: int, amount: int) -> None:
        with self._lock:
            self._state.ledger.deposit_security(index, amount)
            self._receive(amount)

    def _receive(self, amount: int) -> None:
        if isinstance(self.token, InMemoryToken):
            self.token.receive(amount)

    # -- read-only surface -----------------------------------------------

    def user_count(self) -> int:
        with self._lock:
            return self._state.registry.count

    def address_of(self, index: int) -> Optional[str]:
        with self._lock:
            return self._state.registry.address_of(index)

    def public_key_of(self, index: int) -> Optional[Tuple[int, int, int, int]]:
        with self._lock:
            return self._state.registry.public_key_of(index)

    def seq_no(self, a_index: int, b_index: int) -> int:
        with self._lock:
            return self._state.records.get(a_index, b_index)

    def pending_withdrawal(self, index: int) -> PendingWithdrawal:
        with self._lock:
            return self._state.withdrawals.get(index)

    def account(self, index: int) -> Account:
        with self._lock:
            return self._state.ledger.get_account(index)

    def security_deposit(self, index: int) -> int:
        with self._lock:
            return self._state.ledger.get_security_deposit(index)

    def snapshot(self) -> Snapshot:
        with self._lock:
            return snapshot_from_state(self._state)
