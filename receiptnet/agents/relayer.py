"""
Receipt collection and batch relay for a payee.

A payee `a` hands out receipt requests to its payers, collects their signed
receipts, and periodically settles them with one `post()` call. The relayer
tracks the next seq_no per payer so receipts line up with the on-chain
records, and splits work into batches no larger than the host accepts.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence

from ..crypto.bls import Signature
from ..integration.calldata import encode_post
from ..integration.config import DEFAULT_DOMAIN
from ..state.canonical import UINT16_MAX, require_uint
from . import receipt_signer

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ReceiptRequest:
    """What payer `b_index` is asked to sign."""

    a_index: int
    b_index: int
    amount: int
    expires_by: int
    seq_no: int


@dataclass(frozen=True)
class SignedReceipt:
    request: ReceiptRequest
    signature: Signature

    @property
    def b_index(self) -> int:
        return self.request.b_index

    @property
    def amount(self) -> int:
        return self.request.amount


def batch_receipts(
    signed_receipts: Sequence[SignedReceipt],
    max_batch_size: int = UINT16_MAX,
) -> List[List[SignedReceipt]]:
    """
    Split receipts into consecutive batches.

    Order is kept so per-payer seq_nos stay contiguous from one batch to the
    next.
    """
    if not isinstance(max_batch_size, int) or isinstance(max_batch_size, bool) or max_batch_size <= 0:
        raise ValueError("max_batch_size must be a positive int")
    items = list(signed_receipts)
    return [items[i : i + max_batch_size] for i in range(0, len(items), max_batch_size)]


def create_post(
    a_index: int,
    secret_key: int,
    signed_receipts: Sequence[SignedReceipt],
    *,
    domain: bytes = DEFAULT_DOMAIN,
) -> bytes:
    """
    Build `post()` calldata for one batch.

    The payee signs the commitment over (b_index, amount, seq_no) for every
    receipt and aggregates it with the payers' receipt signatures.

    Raises:
        ValueError: if the receipts are not all addressed to `a_index` or do
            not share one expiry.
    """
    expiries = {r.request.expires_by for r in signed_receipts}
    if len(expiries) > 1:
        raise ValueError("receipts in one batch must share expires_by")
    for r in signed_receipts:
        if r.request.a_index != a_index:
            raise ValueError(f"receipt for payee {r.request.a_index} in batch for {a_index}")

    entries = [(r.request.b_index, r.request.amount, r.request.seq_no) for r in signed_receipts]
    commitment_sig = receipt_signer.sign_commitment(secret_key, entries, domain)
    aggregate = receipt_signer.aggregate([commitment_sig] + [r.signature for r in signed_receipts])
    return encode_post(a_index, aggregate, [(b, amount) for b, amount, _ in entries])


class ReceiptRelayer:
    """
    Stateful collector for one payee.

    `settled` mirrors records[(a, b)] as last seen on chain; receipts that have
    been requested but not yet posted advance a separate pending counter.
    """

    def __init__(
        self,
        a_index: int,
        keypair: receipt_signer.KeyPair,
        *,
        domain: bytes = DEFAULT_DOMAIN,
        max_batch_receipts: int = UINT16_MAX,
    ) -> None:
        self.a_index = require_uint(a_index, bits=64, name="a_index")
        self.keypair = keypair
        self.domain = domain
        self.max_batch_receipts = max_batch_receipts
        self._settled: Dict[int, int] = {}
        self._issued: Dict[int, int] = {}
        self._queue: List[SignedReceipt] = []
        self._in_flight: Dict[bytes, List[SignedReceipt]] = {}

    def sync_seq_no(self, b_index: int, settled_seq_no: int) -> None:
        """Adopt the on-chain seq_no for payer `b_index`; drops anything queued for it."""
        self._settled[b_index] = settled_seq_no
        self._issued[b_index] = settled_seq_no
        before = len(self._queue)
        self._queue = [r for r in self._queue if r.b_index != b_index]
        if len(self._queue) != before:
            logger.info("dropped %d queued receipts from payer %d after resync", before - len(self._queue), b_index)
        for calldata, batch in list(self._in_flight.items()):
            rest = [r for r in batch if r.b_index != b_index]
            if rest:
                self._in_flight[calldata] = rest
            else:
                del self._in_flight[calldata]

    def settled_seq_no(self, b_index: int) -> int:
        return self._settled.get(b_index, 0)

    def next_seq_no(self, b_index: int) -> int:
        return self._issued.get(b_index, self._settled.get(b_index, 0)) + 1

    def request(self, b_index: int, amount: int, expires_by: int) -> ReceiptRequest:
        req = ReceiptRequest(
            a_index=self.a_index,
            b_index=b_index,
            amount=require_uint(amount, bits=128, name="amount"),
            expires_by=require_uint(expires_by, bits=32, name="expires_by"),
            seq_no=self.next_seq_no(b_index),
        )
        self._issued[b_index] = req.seq_no
        return req

    def accept(self, signed: SignedReceipt, public_key: Optional[Sequence[int]] = None) -> None:
        """
        Queue a signed receipt.

        When `public_key` is given the payer's signature is checked first, so
        a single bad receipt cannot poison the aggregate.
        """
        req = signed.request
        if req.a_index != self.a_index:
            raise ValueError(f"receipt addressed to {req.a_index}, not {self.a_index}")
        if public_key is not None:
            ok = receipt_signer.verify_receipt_signature(
                public_key,
                signed.signature,
                a_index=req.a_index,
                b_index=req.b_index,
                amount=req.amount,
                expires_by=req.expires_by,
                seq_no=req.seq_no,
                domain=self.domain,
            )
            if not ok:
                raise ValueError(f"bad receipt signature from payer {req.b_index}")
        self._queue.append(signed)

    @property
    def pending_count(self) -> int:
        return len(self._queue)

    def drain(self) -> List[bytes]:
        """
        Build `post()` calldata for everything queued and clear the queue.

        Receipts are grouped by expiry first; the caller is expected to
        submit the returned calls in order. Nothing counts as settled until
        the call is passed to `confirm` after an accepted submit; after a
        rejected one, `sync_seq_no` each affected payer from chain state.
        """
        by_expiry: Dict[int, List[SignedReceipt]] = {}
        for r in self._queue:
            by_expiry.setdefault(r.request.expires_by, []).append(r)

        calls: List[bytes] = []
        for expires_by in sorted(by_expiry):
            for batch in batch_receipts(by_expiry[expires_by], self.max_batch_receipts):
                calldata = create_post(self.a_index, self.keypair.secret_key, batch, domain=self.domain)
                self._in_flight[calldata] = list(batch)
                calls.append(calldata)
        logger.info("relayer %d built %d post calls from %d receipts", self.a_index, len(calls), len(self._queue))
        self._queue = []
        return calls

    def confirm(self, calldata: bytes) -> None:
        """Record a drained post as accepted on chain."""
        batch = self._in_flight.pop(bytes(calldata), None)
        if batch is None:
            raise KeyError("calldata was not drained from this relayer")
        for r in batch:
            self._settled[r.b_index] = max(self._settled.get(r.b_index, 0), r.request.seq_no)

    @property
    def in_flight_count(self) -> int:
        return len(self._in_flight)
