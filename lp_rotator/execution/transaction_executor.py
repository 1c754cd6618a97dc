"""
Transaction Executor
====================
Signs, submits and confirms one transaction for a mutating step.

Protocol per call:
    1. Fetch a fresh blockhash, build the message, sign.
    2. Send. Rate limit / transport failure: wait, resend the SAME bytes.
       Expired blockhash: check the old signature never landed, then rebuild
       and re-sign against a new blockhash.
       At most MAX_SEND_ATTEMPTS sends in total.
    3. Poll getSignatureStatuses once per second, at most
       CONFIRM_POLL_ATTEMPTS times. An on-chain error raises; running out of
       polls returns an INDETERMINATE receipt instead of raising.

Both loops run through retry_async.
"""

import asyncio
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, List, Optional

from solders.hash import Hash
from solders.message import MessageV0
from solders.transaction import VersionedTransaction

from lp_rotator.config.settings import Settings
from lp_rotator.execution.errors import (
    ErrorCode,
    RpcError,
    TransactionError,
    classify_error,
)
from lp_rotator.shared.infrastructure.rpc_client import SolanaRpcClient
from lp_rotator.shared.system.logging import Logger
from lp_rotator.shared.system.retry import RetryExhausted, RetryPolicy, retry_async


BuildMessage = Callable[[Hash], Awaitable[MessageV0]]

TRANSIENT_CODES = (ErrorCode.RATE_LIMITED, ErrorCode.TIMEOUT, ErrorCode.NETWORK_ERROR)
CONFIRMED_STATES = ("confirmed", "finalized")


# ═══════════════════════════════════════════════════════════════════════════════
# CONFIGURATION / RESULT TYPES
# ═══════════════════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class ExecutorConfig:
    max_send_attempts: int = Settings.MAX_SEND_ATTEMPTS
    rate_limit_backoff_sec: float = Settings.RATE_LIMIT_BACKOFF_S
    confirm_poll_attempts: int = Settings.CONFIRM_POLL_ATTEMPTS
    confirm_poll_interval_sec: float = Settings.CONFIRM_POLL_INTERVAL_S


class TxStatus(Enum):
    CONFIRMED = "CONFIRMED"
    INDETERMINATE = "INDETERMINATE"  # sent, never seen confirmed within the poll window


@dataclass(frozen=True)
class TransactionAttempt:
    """One signed version of the transaction (one blockhash)."""
    signature: str
    blockhash: str
    last_valid_block_height: int
    attempt_number: int


@dataclass
class TransactionReceipt:
    signature: str
    status: TxStatus
    label: str = ""
    attempts: List[TransactionAttempt] = field(default_factory=list)
    sends: int = 0
    polls: int = 0
    slot: Optional[int] = None
    latency_ms: float = 0.0

    @property
    def confirmed(self) -> bool:
        return self.status == TxStatus.CONFIRMED

    def __repr__(self):
        return f"<Receipt {self.label} {self.status.value} {self.signature[:12]}... sends={self.sends} polls={self.polls}>"


class _NotYetConfirmed(Exception):
    pass


class _LandedEarlier(Exception):
    """The previous signature landed while we were about to re-sign."""

    def __init__(self, attempt: TransactionAttempt):
        super().__init__(attempt.signature)
        self.attempt = attempt


# ═══════════════════════════════════════════════════════════════════════════════
# EXECUTOR
# ═══════════════════════════════════════════════════════════════════════════════

class TransactionExecutor:
    """
    Usage:
        executor = TransactionExecutor(rpc)
        receipt = await executor.submit_and_confirm(build_message, wallet, "deposit")
    """

    def __init__(
        self,
        rpc: SolanaRpcClient,
        config: Optional[ExecutorConfig] = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ):
        self.rpc = rpc
        self.config = config or ExecutorConfig()
        self._sleep = sleep

        # Statistics
        self._submissions = 0
        self._confirmations = 0
        self._indeterminate = 0
        self._failures = 0

    async def submit_and_confirm(
        self,
        build_message: BuildMessage,
        wallet,
        label: str = "tx",
    ) -> TransactionReceipt:
        """
        Returns a CONFIRMED or INDETERMINATE receipt.

        Raises TransactionError when the transaction is rejected, fails
        on-chain, or every send attempt failed.
        """
        start = time.time()
        try:
            receipt = await self._submit(build_message, wallet, label)
        except TransactionError:
            self._failures += 1
            raise

        try:
            status = await self._wait_for_confirmation(receipt)
        except TransactionError:
            self._failures += 1
            raise

        receipt.latency_ms = (time.time() - start) * 1000
        if status is None:
            receipt.status = TxStatus.INDETERMINATE
            self._indeterminate += 1
            Logger.warning(
                f"[EXECUTOR] {label} {receipt.signature} not confirmed after "
                f"{receipt.polls} polls; re-check balances before trusting it"
            )
        else:
            receipt.status = TxStatus.CONFIRMED
            receipt.slot = status.get("slot")
            self._confirmations += 1
            Logger.success(f"[EXECUTOR] {label} confirmed {receipt.signature} ({receipt.latency_ms:.0f}ms)")
        return receipt

    # ═══════════════════════════════════════════════════════════════════════════
    # SUBMISSION
    # ═══════════════════════════════════════════════════════════════════════════

    async def _submit(self, build_message: BuildMessage, wallet, label: str) -> TransactionReceipt:
        receipt = TransactionReceipt(signature="", status=TxStatus.INDETERMINATE, label=label)
        state: Dict[str, Any] = {"tx": None, "expired": False}

        async def attempt(n: int) -> str:
            if state["tx"] is None or state["expired"]:
                if state["expired"] and receipt.attempts:
                    await self._check_previous_landed(receipt.attempts[-1])
                state["tx"] = await self._sign(build_message, wallet, n, receipt)
                state["expired"] = False

            tx = state["tx"]
            signature = str(tx.signatures[0])
            receipt.sends += 1
            self._submissions += 1
            try:
                await self.rpc.send_transaction(tx)
            except RpcError as e:
                code = classify_error(e)
                if "already been processed" in str(e).lower():
                    return signature
                if code == ErrorCode.BLOCKHASH_EXPIRED:
                    state["expired"] = True
                Logger.warning(f"[EXECUTOR] {label} send #{n} failed ({code.value}): {e}")
                raise
            Logger.info(f"[EXECUTOR] {label} sent {signature} (attempt {n})")
            return signature

        policy = RetryPolicy(
            max_attempts=self.config.max_send_attempts,
            backoff=self._send_backoff,
            retryable=self._send_retryable,
        )
        try:
            receipt.signature = await retry_async(attempt, policy, sleep=self._sleep)
        except _LandedEarlier as landed:
            receipt.signature = landed.attempt.signature
            Logger.info(f"[EXECUTOR] {label} earlier signature landed, not re-signing")
        except RetryExhausted as e:
            raise TransactionError(
                f"{label}: gave up after {e.attempts} send attempts: {e.last_error}",
                code=classify_error(e.last_error),
            ) from e
        except RpcError as e:
            raise TransactionError(f"{label}: rejected: {e}", code=classify_error(e)) from e
        return receipt

    async def _sign(self, build_message: BuildMessage, wallet, n: int, receipt: TransactionReceipt) -> VersionedTransaction:
        blockhash, last_valid = await self.rpc.get_latest_blockhash()
        message = await build_message(blockhash)
        tx = VersionedTransaction(message, [wallet.keypair])
        receipt.attempts.append(
            TransactionAttempt(
                signature=str(tx.signatures[0]),
                blockhash=str(blockhash),
                last_valid_block_height=last_valid,
                attempt_number=n,
            )
        )
        return tx

    async def _check_previous_landed(self, previous: TransactionAttempt) -> None:
        """Raise _LandedEarlier if the expired attempt actually made it on-chain."""
        try:
            status = await self.rpc.get_signature_status(previous.signature)
        except RpcError as e:
            Logger.debug(f"[EXECUTOR] Duplicate check for {previous.signature[:12]} failed: {e}")
            return
        if status and not status.get("err") and status.get("confirmationStatus") in CONFIRMED_STATES:
            raise _LandedEarlier(previous)

    def _send_retryable(self, exc: BaseException) -> bool:
        if not isinstance(exc, RpcError):
            return False
        code = classify_error(exc)
        return code in TRANSIENT_CODES or code == ErrorCode.BLOCKHASH_EXPIRED

    def _send_backoff(self, attempt: int, exc: BaseException) -> float:
        if classify_error(exc) == ErrorCode.BLOCKHASH_EXPIRED:
            return 0.0
        return self.config.rate_limit_backoff_sec

    # ═══════════════════════════════════════════════════════════════════════════
    # CONFIRMATION
    # ═══════════════════════════════════════════════════════════════════════════

    async def _wait_for_confirmation(self, receipt: TransactionReceipt) -> Optional[Dict[str, Any]]:
        """Status dict once confirmed; None if the poll budget runs out."""

        async def poll(n: int) -> Dict[str, Any]:
            receipt.polls = n
            status = await self.rpc.get_signature_status(receipt.signature)
            if not status:
                raise _NotYetConfirmed()
            if status.get("err"):
                err = status["err"]
                raise TransactionError(
                    f"{receipt.label} failed on-chain: {err}",
                    code=classify_error(str(err)),
                    signature=receipt.signature,
                )
            if status.get("confirmationStatus") in CONFIRMED_STATES:
                return status
            raise _NotYetConfirmed()

        policy = RetryPolicy(
            max_attempts=self.config.confirm_poll_attempts,
            backoff=lambda attempt, exc: self.config.confirm_poll_interval_sec,
            retryable=lambda exc: isinstance(exc, (_NotYetConfirmed, RpcError)),
        )
        try:
            return await retry_async(poll, policy, sleep=self._sleep)
        except RetryExhausted:
            return None

    def get_stats(self) -> dict:
        return {
            "submissions": self._submissions,
            "confirmations": self._confirmations,
            "indeterminate": self._indeterminate,
            "failures": self._failures,
        }
