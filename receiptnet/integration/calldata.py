"""
Binary calldata codec.

Every call starts with a 4-byte selector (first 4 bytes of keccak256 of the
canonical signature). `post()` uses a packed layout; the other calls use
32-byte big-endian words.

post() layout (offsets from the start of calldata, big-endian):

    0    4   selector
    4    8   a_index
    12   2   count
    14   64  aggregate signature (x, y)
    78+24i   8   receipt[i].b_index
    86+24i   16  receipt[i].amount

Total length is exactly 78 + 24*count. Decoding is bounds-checked and runs
before any state is read.
"""

from __future__ import annotations

from typing import Callable, Dict, Sequence, Tuple

from ..core.types import Call, InitWithdraw, Post, ProcessWithdrawal, ReceiptEntry, Register
from ..state.canonical import (
    UINT16_MAX,
    UINT64_MAX,
    UINT128_MAX,
    address_from_bytes,
    address_to_bytes,
    decode_uint,
    encode_uint,
    keccak256,
)


class CalldataError(ValueError):
    pass


class UnknownSelectorError(CalldataError):
    pass


def selector_for(signature: str) -> bytes:
    return keccak256(signature.encode("ascii"))[:4]


REGISTER_SIGNATURE = "register(address,uint256[4],uint256[2])"
INIT_WITHDRAW_SIGNATURE = "initWithdraw(uint64,uint128,uint256[2])"
PROCESS_WITHDRAWAL_SIGNATURE = "processWithdrawal(uint64)"
POST_SIGNATURE = "post()"

REGISTER_SELECTOR = selector_for(REGISTER_SIGNATURE)
INIT_WITHDRAW_SELECTOR = selector_for(INIT_WITHDRAW_SIGNATURE)
PROCESS_WITHDRAWAL_SELECTOR = selector_for(PROCESS_WITHDRAWAL_SIGNATURE)
POST_SELECTOR = selector_for(POST_SIGNATURE)

SELECTOR_BYTES = 4
WORD_BYTES = 32

POST_HEADER_BYTES = 78
POST_RECEIPT_BYTES = 24
_POST_A_INDEX = 4
_POST_COUNT = 12
_POST_SIGNATURE = 14


def post_calldata_length(count: int) -> int:
    return POST_HEADER_BYTES + POST_RECEIPT_BYTES * count


# -- encoders ------------------------------------------------------------


def _word(value: int, name: str) -> bytes:
    return encode_uint(value, nbytes=WORD_BYTES, name=name)


def _words(values: Sequence[int], n: int, name: str) -> bytes:
    if len(values) != n:
        raise ValueError(f"{name} must have {n} words")
    return b"".join(_word(v, name) for v in values)


def encode_register(address: str, public_key: Sequence[int], proof: Sequence[int]) -> bytes:
    return (
        REGISTER_SELECTOR
        + bytes(12)
        + address_to_bytes(address)
        + _words(public_key, 4, "public_key")
        + _words(proof, 2, "proof")
    )


def encode_init_withdraw(user_index: int, amount: int, signature: Sequence[int]) -> bytes:
    if user_index > UINT64_MAX or amount > UINT128_MAX:
        raise ValueError("user_index must fit u64 and amount u128")
    return INIT_WITHDRAW_SELECTOR + _word(user_index, "user_index") + _word(amount, "amount") + _words(
        signature, 2, "signature"
    )


def encode_process_withdrawal(user_index: int) -> bytes:
    if user_index > UINT64_MAX:
        raise ValueError("user_index must fit u64")
    return PROCESS_WITHDRAWAL_SELECTOR + _word(user_index, "user_index")


def encode_post(a_index: int, signature: Sequence[int], receipts: Sequence[Tuple[int, int]]) -> bytes:
    """Encode a batch; `receipts` are (b_index, amount) pairs in settlement order."""
    if len(receipts) > UINT16_MAX:
        raise ValueError(f"too many receipts: {len(receipts)} > {UINT16_MAX}")
    if len(signature) != 2:
        raise ValueError("signature must have 2 words")
    out = bytearray(POST_SELECTOR)
    out += encode_uint(a_index, nbytes=8, name="a_index")
    out += encode_uint(len(receipts), nbytes=2, name="count")
    out += encode_uint(signature[0], nbytes=32, name="signature")
    out += encode_uint(signature[1], nbytes=32, name="signature")
    for b_index, amount in receipts:
        out += encode_uint(b_index, nbytes=8, name="b_index")
        out += encode_uint(amount, nbytes=16, name="amount")
    return bytes(out)


# -- decoders ------------------------------------------------------------


def _read_words(data: bytes, n: int, *, name: str) -> Tuple[int, ...]:
    expected = SELECTOR_BYTES + n * WORD_BYTES
    if len(data) != expected:
        raise CalldataError(f"{name} calldata must be {expected} bytes, got {len(data)}")
    return tuple(decode_uint(data, SELECTOR_BYTES + i * WORD_BYTES, WORD_BYTES) for i in range(n))


def _bounded(value: int, hi: int, name: str) -> int:
    if value > hi:
        raise CalldataError(f"{name} out of range")
    return value


def decode_register(data: bytes) -> Register:
    words = _read_words(data, 7, name="register")
    address_word = data[SELECTOR_BYTES : SELECTOR_BYTES + WORD_BYTES]
    if any(address_word[:12]):
        raise CalldataError("address word has non-zero high bytes")
    return Register(
        address=address_from_bytes(address_word[12:]),
        public_key=(words[1], words[2], words[3], words[4]),
        proof=(words[5], words[6]),
    )


def decode_init_withdraw(data: bytes) -> InitWithdraw:
    words = _read_words(data, 4, name="initWithdraw")
    return InitWithdraw(
        user_index=_bounded(words[0], UINT64_MAX, "user_index"),
        amount=_bounded(words[1], UINT128_MAX, "amount"),
        signature=(words[2], words[3]),
    )


def decode_process_withdrawal(data: bytes) -> ProcessWithdrawal:
    words = _read_words(data, 1, name="processWithdrawal")
    return ProcessWithdrawal(user_index=_bounded(words[0], UINT64_MAX, "user_index"))


def decode_post(data: bytes) -> Post:
    if len(data) < POST_HEADER_BYTES:
        raise CalldataError(f"post calldata shorter than header ({len(data)} < {POST_HEADER_BYTES})")
    count = decode_uint(data, _POST_COUNT, 2)
    expected = post_calldata_length(count)
    if len(data) != expected:
        raise CalldataError(f"post calldata length {len(data)} does not match count {count} (expected {expected})")

    receipts = []
    for i in range(count):
        base = POST_HEADER_BYTES + POST_RECEIPT_BYTES * i
        receipts.append(ReceiptEntry(b_index=decode_uint(data, base, 8), amount=decode_uint(data, base + 8, 16)))
    return Post(
        a_index=decode_uint(data, _POST_A_INDEX, 8),
        signature=(decode_uint(data, _POST_SIGNATURE, 32), decode_uint(data, _POST_SIGNATURE + 32, 32)),
        receipts=tuple(receipts),
    )


_DECODERS: Dict[bytes, Callable[[bytes], Call]] = {
    REGISTER_SELECTOR: decode_register,
    INIT_WITHDRAW_SELECTOR: decode_init_withdraw,
    PROCESS_WITHDRAWAL_SELECTOR: decode_process_withdrawal,
    POST_SELECTOR: decode_post,
}


def decode_call(data: bytes) -> Call:
    """
    Decode calldata into a typed call.

    Raises:
        UnknownSelectorError: selector names no operation.
        CalldataError: length or field range is inconsistent.
    """
    if not isinstance(data, (bytes, bytearray)):
        raise TypeError("calldata must be bytes")
    data = bytes(data)
    if len(data) < SELECTOR_BYTES:
        raise CalldataError("calldata shorter than selector")
    decoder = _DECODERS.get(data[:SELECTOR_BYTES])
    if decoder is None:
        raise UnknownSelectorError(f"unknown selector 0x{data[:SELECTOR_BYTES].hex()}")
    try:
        return decoder(data)
    except CalldataError:
        raise
    except (ValueError, TypeError) as exc:
        raise CalldataError(str(exc)) from exc
