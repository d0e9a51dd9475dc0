"""Tests for the cycle clock and the in-memory token."""

from __future__ import annotations

import pytest

from receiptnet.integration.collaborators import CycleClock, InMemoryToken, ManualClock


ADDR = "0x" + "ee" * 20


class TestCycleClock:
    def test_expiry_is_next_boundary(self) -> None:
        clock = ManualClock(0, cycle_length=100)
        assert clock.current_cycle_expiry() == 100
        clock.set(99)
        assert clock.current_cycle_expiry() == 100
        clock.set(100)
        assert clock.current_cycle_expiry() == 200

    def test_genesis_offset(self) -> None:
        clock = ManualClock(1_050, cycle_length=100, genesis_time=1_000)
        assert clock.current_cycle_expiry() == 1_100

    def test_time_source_is_truncated(self) -> None:
        clock = CycleClock(cycle_length=10, time_source=lambda: 25.9)
        assert clock.now() == 25
        assert clock.current_cycle_expiry() == 30

    def test_expiry_beyond_u32_raises(self) -> None:
        clock = ManualClock((1 << 32) - 1, cycle_length=10)
        with pytest.raises(OverflowError):
            clock.current_cycle_expiry()

    def test_manual_clock_does_not_go_backwards(self) -> None:
        clock = ManualClock(10)
        with pytest.raises(ValueError):
            clock.set(5)
        with pytest.raises(ValueError):
            clock.advance(-1)


class TestInMemoryToken:
    def test_transfer_draws_from_reserve(self) -> None:
        token = InMemoryToken(reserve=10)
        assert token.transfer(ADDR, 4)
        assert token.reserve == 6
        assert token.balance_of(ADDR.upper().replace("0X", "0x")) == 4

    def test_transfer_beyond_reserve_fails(self) -> None:
        token = InMemoryToken(reserve=3)
        assert not token.transfer(ADDR, 4)
        assert token.reserve == 3
        assert token.balance_of(ADDR) == 0

    def test_receive_grows_reserve(self) -> None:
        token = InMemoryToken()
        token.receive(7)
        assert token.reserve == 7
        with pytest.raises(ValueError):
            token.receive(-1)
