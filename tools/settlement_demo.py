#!/usr/bin/env python3

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from receiptnet.agents import (
    ReceiptRelayer,
    SignedReceipt,
    generate_keypair,
    sign_receipt,
    sign_registration,
    sign_withdrawal,
)
from receiptnet.integration import (
    InMemoryToken,
    ManualClock,
    ProtocolConfig,
    SettlementHost,
    encode_init_withdraw,
    encode_process_withdrawal,
    encode_register,
    load_config,
)

logger = logging.getLogger("settlement_demo")


def _parse_args(argv=None) -> argparse.Namespace:
    p = argparse.ArgumentParser(description="Offline end-to-end run: register, settle receipts, withdraw.")
    p.add_argument("--config", help="YAML protocol config (defaults are used when omitted)")
    p.add_argument("--start-time", type=int, default=1_700_000_000)
    p.add_argument("--funding", type=int, default=100, help="payer balance before settlement")
    p.add_argument("--deposit", type=int, default=25, help="payer security deposit")
    p.add_argument("--amounts", type=int, nargs="+", default=[50, 80], help="receipt amounts, in order")
    p.add_argument("-v", "--verbose", action="store_true")
    return p.parse_args(argv)


def main(argv=None) -> int:
    args = _parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    config = load_config(args.config) if args.config else ProtocolConfig()
    clock = ManualClock(args.start_time, cycle_length=config.cycle_length, genesis_time=config.genesis_time)
    token = InMemoryToken(reserve=10 ** 9)
    host = SettlementHost(config=config, clock=clock, token=token)

    alice = generate_keypair(b"demo-alice-seed-0000")
    bob = generate_keypair(b"demo-bob-seed-00000000")
    alice_addr = "0x" + "a1" * 20
    bob_addr = "0x" + "b0" * 20

    for addr, kp in ((alice_addr, alice), (bob_addr, bob)):
        result = host.submit(encode_register(addr, kp.public_key, sign_registration(kp.secret_key, addr, config.domain)))
        if not result.accepted:
            logger.error("registration of %s failed: %s", addr, result.rejection)
            return 1
    a_index, b_index = 1, 2
    logger.info("registered users: %d", host.user_count())

    host.fund(b_index, args.funding)
    host.deposit_security(b_index, args.deposit)

    relayer = ReceiptRelayer(a_index, alice, domain=config.domain, max_batch_receipts=config.max_batch_receipts)
    relayer.sync_seq_no(b_index, host.seq_no(a_index, b_index))
    expires_by = clock.current_cycle_expiry()
    for amount in args.amounts:
        req = relayer.request(b_index, amount, expires_by)
        sig = sign_receipt(
            bob.secret_key,
            a_index=req.a_index,
            b_index=req.b_index,
            amount=req.amount,
            expires_by=req.expires_by,
            seq_no=req.seq_no,
            domain=config.domain,
        )
        relayer.accept(SignedReceipt(request=req, signature=sig), public_key=bob.public_key)

    for calldata in relayer.drain():
        result = host.submit(calldata)
        if not result.accepted:
            logger.error("post rejected: %s %s", result.rejection, result.detail or "")
            return 1
        relayer.confirm(calldata)

    logger.info(
        "after settlement: a.balance=%d b.balance=%d b.deposit=%d seq_no=%d",
        host.account(a_index).balance,
        host.account(b_index).balance,
        host.security_deposit(b_index),
        host.seq_no(a_index, b_index),
    )

    amount = host.account(a_index).balance
    nonce = host.account(a_index).nonce
    result = host.submit(
        encode_init_withdraw(a_index, amount, sign_withdrawal(alice.secret_key, nonce + 1, amount, config.domain))
    )
    if not result.accepted:
        logger.error("initWithdraw rejected: %s", result.rejection)
        return 1

    early = host.submit(encode_process_withdrawal(a_index))
    logger.info("processWithdrawal before buffer: %s", early.rejection.value if early.rejection else "accepted")

    clock.advance(config.buffer_period)
    result = host.submit(encode_process_withdrawal(a_index))
    if not result.accepted:
        logger.error("processWithdrawal rejected: %s", result.rejection)
        return 1

    logger.info("token balance of %s: %d", alice_addr, token.balance_of(alice_addr))
    logger.info("state commitment: %s", host.snapshot().commitment_hex())
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
