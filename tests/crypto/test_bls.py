"""Tests for receiptnet/crypto/bls.py: hash-to-curve, sign/verify, malformed inputs."""

from __future__ import annotations

import pytest
from py_ecc.optimized_bn128 import b, is_on_curve

from receiptnet.crypto import bls


DOMAIN = b"receiptnet-test-domain"


def _on_curve(point) -> bool:
    return is_on_curve(bls._g1_from_affine(point), b)


class TestHashToCurve:
    def test_expand_message_length_and_determinism(self) -> None:
        out1 = bls.expand_message_xmd(DOMAIN, b"abc", 96)
        out2 = bls.expand_message_xmd(DOMAIN, b"abc", 96)
        assert len(out1) == 96
        assert out1 == out2
        assert bls.expand_message_xmd(DOMAIN, b"abd", 96) != out1

    def test_expand_message_rejects_bad_domain(self) -> None:
        with pytest.raises(ValueError):
            bls.expand_message_xmd(b"", b"abc")
        with pytest.raises(ValueError):
            bls.expand_message_xmd(b"x" * 256, b"abc")

    @pytest.mark.parametrize("u", [0, 1, 2, 12345, bls.FIELD_MODULUS - 1])
    def test_map_to_point_lands_on_curve(self, u: int) -> None:
        assert _on_curve(bls.map_to_point(u))

    def test_hash_to_point_is_deterministic_and_domain_separated(self) -> None:
        p1 = bls.hash_to_point(DOMAIN, b"message")
        assert p1 == bls.hash_to_point(DOMAIN, b"message")
        assert _on_curve(p1)
        assert p1 != bls.hash_to_point(DOMAIN + b"-other", b"message")
        assert p1 != bls.hash_to_point(DOMAIN, b"message2")


class TestSignVerify:
    def test_single_signature_verifies(self) -> None:
        sk = bls.keygen(b"single-signature-seed")
        pk = bls.public_key_from_secret(sk)
        msg = bls.hash_to_point(DOMAIN, b"hello")
        assert bls.verify_single(bls.sign(sk, msg), pk, msg) == (True, True)

    def test_wrong_message_is_invalid_but_well_formed(self) -> None:
        sk = bls.keygen(b"single-signature-seed")
        pk = bls.public_key_from_secret(sk)
        sig = bls.sign(sk, bls.hash_to_point(DOMAIN, b"hello"))
        other = bls.hash_to_point(DOMAIN, b"goodbye")
        assert bls.verify_single(sig, pk, other) == (False, True)

    def test_aggregate_over_distinct_keys_and_messages(self) -> None:
        sks = [bls.keygen(f"aggregate-seed-{i:04d}".encode()) for i in range(2)]
        pks = [bls.public_key_from_secret(sk) for sk in sks]
        msgs = [bls.hash_to_point(DOMAIN, f"m{i}".encode()) for i in range(2)]
        agg = bls.aggregate_signatures([bls.sign(sk, m) for sk, m in zip(sks, msgs)])

        assert bls.verify_multiple(agg, pks, msgs) == (True, True)
        # Swapping the message/key pairing breaks it.
        assert bls.verify_multiple(agg, pks, list(reversed(msgs))) == (False, True)

    def test_keygen_is_deterministic_with_seed(self) -> None:
        assert bls.keygen(b"0123456789abcdef") == bls.keygen(b"0123456789abcdef")
        assert bls.keygen(b"0123456789abcdef") != bls.keygen(b"0123456789abcdeg")
        with pytest.raises(ValueError):
            bls.keygen(b"short")

    def test_sign_rejects_out_of_range_secret(self) -> None:
        msg = bls.hash_to_point(DOMAIN, b"x")
        with pytest.raises(ValueError):
            bls.sign(0, msg)
        with pytest.raises(ValueError):
            bls.sign(bls.CURVE_ORDER, msg)


class TestMalformedInputs:
    def setup_method(self) -> None:
        self.sk = bls.keygen(b"malformed-input-seed")
        self.pk = bls.public_key_from_secret(self.sk)
        self.msg = bls.hash_to_point(DOMAIN, b"m")
        self.sig = bls.sign(self.sk, self.msg)

    def test_signature_coordinate_out_of_field(self) -> None:
        bad = (self.sig[0] + bls.FIELD_MODULUS, self.sig[1])
        assert bls.verify_single(bad, self.pk, self.msg) == (False, False)

    def test_signature_off_curve(self) -> None:
        assert bls.verify_single((1, 1), self.pk, self.msg) == (False, False)

    def test_zero_public_key(self) -> None:
        assert bls.verify_single(self.sig, (0, 0, 0, 0), self.msg) == (False, False)
        assert not bls.is_valid_public_key((0, 0, 0, 0))

    def test_public_key_off_curve(self) -> None:
        x0, x1, y0, y1 = self.pk
        assert bls.verify_single(self.sig, (x0, x1, y0, (y1 + 1) % bls.FIELD_MODULUS), self.msg) == (False, False)

    def test_length_mismatch_and_empty(self) -> None:
        assert bls.verify_multiple(self.sig, [self.pk], []) == (False, False)
        assert bls.verify_multiple(self.sig, [], []) == (False, False)


class TestByteEncodings:
    def test_signature_bytes(self) -> None:
        sig = bls.sign(bls.keygen(b"byte-encoding-seed"), bls.hash_to_point(DOMAIN, b"m"))
        raw = bls.signature_to_bytes(sig)
        assert len(raw) == bls.G1_POINT_BYTES
        assert bls.signature_from_bytes(raw) == sig

    def test_public_key_bytes_length_checked(self) -> None:
        with pytest.raises(ValueError):
            bls.public_key_from_bytes(b"\x00" * 127)
        pk = bls.public_key_from_secret(bls.keygen(b"byte-encoding-seed"))
        assert bls.public_key_from_bytes(bls.public_key_to_bytes(pk)) == pk
