"""
Chain state snapshot encoding.

Goals:
- Byte-identical JSON for equal states, so commitments compare across hosts.
- Round-trippable into the `ChainState` tables.
- Explicit versioning.

Integers that may exceed JSON-safe ranges (public-key words, u128 balances)
are encoded as decimal strings.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Mapping

from ..state.accounts import Account, AccountLedger
from ..state.canonical import canonical_json_bytes, tagged_sha256
from ..state.records import RecordTable
from ..state.registry import RegistryEntry, RegistryTable
from ..state.transaction import ChainState
from ..state.withdrawals import PendingWithdrawal, WithdrawalTable


SNAPSHOT_VERSION = 1


def _require_int(value: Any, *, name: str) -> int:
    if isinstance(value, str):
        if not value.isdigit():
            raise ValueError(f"{name} must be a decimal string")
        return int(value)
    if not isinstance(value, int) or isinstance(value, bool):
        raise TypeError(f"{name} must be an int")
    if value < 0:
        raise ValueError(f"{name} must be non-negative")
    return int(value)


@dataclass(frozen=True)
class Snapshot:
    """
    Deterministic, versioned snapshot of `ChainState`.

    `data` never contains its own commitment.
    """

    version: int
    data: Dict[str, Any]

    def canonical_bytes(self) -> bytes:
        return canonical_json_bytes(self.data)

    def commitment_bytes(self) -> bytes:
        return tagged_sha256(f"snapshot:v{self.version}", self.canonical_bytes())

    def commitment_hex(self) -> str:
        return "0x" + self.commitment_bytes().hex()


def snapshot_from_state(state: ChainState, *, version: int = SNAPSHOT_VERSION) -> Snapshot:
    if not isinstance(version, int) or isinstance(version, bool) or version <= 0:
        raise ValueError("version must be a positive int")

    users = [
        {"index": e.index, "address": e.address, "public_key": [str(w) for w in e.public_key]}
        for e in state.registry.get_all().values()
    ]
    users.sort(key=lambda e: e["index"])

    accounts = [
        {"index": i, "balance": str(a.balance), "nonce": a.nonce} for i, a in state.ledger.get_all_accounts().items()
    ]
    accounts.sort(key=lambda e: e["index"])

    deposits = [{"index": i, "amount": str(v)} for i, v in state.ledger.get_all_deposits().items()]
    deposits.sort(key=lambda e: e["index"])

    records = [{"a_index": a, "b_index": b, "seq_no": s} for (a, b), s in state.records.get_all().items()]
    records.sort(key=lambda e: (e["a_index"], e["b_index"]))

    withdrawals = [
        {"index": i, "amount": str(w.amount), "valid_after": w.valid_after}
        for i, w in state.withdrawals.get_all().items()
    ]
    withdrawals.sort(key=lambda e: e["index"])

    data: Dict[str, Any] = {
        "version": int(version),
        "users": users,
        "accounts": accounts,
        "security_deposits": deposits,
        "records": records,
        "pending_withdrawals": withdrawals,
    }
    return Snapshot(version=version, data=data)


def state_from_snapshot(snapshot: Mapping[str, Any]) -> ChainState:
    if not isinstance(snapshot, Mapping):
        raise TypeError("snapshot must be an object")
    version = _require_int(snapshot.get("version"), name="version")
    if version != SNAPSHOT_VERSION:
        raise ValueError(f"unsupported snapshot version: {version}")

    registry = RegistryTable()
    for e in sorted(snapshot.get("users", []), key=lambda e: _require_int(e.get("index"), name="index")):
        key = tuple(_require_int(w, name="public_key") for w in e["public_key"])
        registry.append(
            RegistryEntry(index=_require_int(e["index"], name="index"), address=e["address"], public_key=key)
        )

    ledger = AccountLedger()
    for e in snapshot.get("accounts", []):
        ledger.set_account(
            _require_int(e["index"], name="index"),
            Account(balance=_require_int(e["balance"], name="balance"), nonce=_require_int(e["nonce"], name="nonce")),
        )
    for e in snapshot.get("security_deposits", []):
        ledger.set_security_deposit(_require_int(e["index"], name="index"), _require_int(e["amount"], name="amount"))

    records = RecordTable()
    for e in snapshot.get("records", []):
        records.set(
            _require_int(e["a_index"], name="a_index"),
            _require_int(e["b_index"], name="b_index"),
            _require_int(e["seq_no"], name="seq_no"),
        )

    withdrawals = WithdrawalTable()
    for e in snapshot.get("pending_withdrawals", []):
        withdrawals.set(
            _require_int(e["index"], name="index"),
            PendingWithdrawal(
                amount=_require_int(e["amount"], name="amount"),
                valid_after=_require_int(e["valid_after"], name="valid_after"),
            ),
        )

    return ChainState(registry=registry, ledger=ledger, records=records, withdrawals=withdrawals)
