from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Dict, Optional, Sequence, Tuple

import pytest

from receiptnet.agents.receipt_signer import (
    KeyPair,
    aggregate,
    generate_keypair,
    sign_commitment,
    sign_receipt,
)
from receiptnet.core.types import Env, Post, ReceiptEntry
from receiptnet.integration.collaborators import InMemoryToken
from receiptnet.integration.config import DEFAULT_DOMAIN
from receiptnet.state.registry import RegistryEntry
from receiptnet.state.transaction import ChainState

NOW = 1_000
CYCLE_EXPIRY = 86_400
BUFFER_PERIOD = 86_400


@dataclass(frozen=True)
class User:
    index: int
    address: str
    keypair: KeyPair

    @property
    def sk(self) -> int:
        return self.keypair.secret_key

    @property
    def pk(self) -> Tuple[int, int, int, int]:
        return self.keypair.public_key


@pytest.fixture(scope="session")
def users() -> Dict[int, User]:
    return {
        i: User(
            index=i,
            address="0x" + f"{i:02x}" * 20,
            keypair=generate_keypair(f"receiptnet-test-user-{i:02d}".encode()),
        )
        for i in (1, 2, 3)
    }


@pytest.fixture
def state(users: Dict[int, User]) -> ChainState:
    """Chain state with users 1..3 already registered (no proof check)."""
    st = ChainState()
    for i, u in sorted(users.items()):
        st.registry.append(RegistryEntry(index=i, address=u.address, public_key=u.pk))
    return st


@pytest.fixture
def token() -> InMemoryToken:
    return InMemoryToken(reserve=1_000_000)


@pytest.fixture
def env(token: InMemoryToken) -> Env:
    return Env(now=NOW, cycle_expiry=CYCLE_EXPIRY, domain=DEFAULT_DOMAIN, buffer_period=BUFFER_PERIOD, token=token)


@pytest.fixture
def make_post(users: Dict[int, User]) -> Callable[..., Post]:
    """Build a correctly signed Post for (b_index, amount, seq_no) receipts."""

    def _make(
        a_index: int,
        receipts: Sequence[Tuple[int, int, int]],
        *,
        expires_by: int = CYCLE_EXPIRY,
        domain: bytes = DEFAULT_DOMAIN,
        submitter_sk: Optional[int] = None,
    ) -> Post:
        sigs = [
            sign_receipt(
                users[b].sk,
                a_index=a_index,
                b_index=b,
                amount=amount,
                expires_by=expires_by,
                seq_no=seq,
                domain=domain,
            )
            for b, amount, seq in receipts
        ]
        sk = submitter_sk if submitter_sk is not None else users[a_index].sk
        sigs.append(sign_commitment(sk, list(receipts), domain))
        return Post(
            a_index=a_index,
            signature=aggregate(sigs),
            receipts=tuple(ReceiptEntry(b_index=b, amount=amount) for b, amount, _ in receipts),
        )

    return _make
