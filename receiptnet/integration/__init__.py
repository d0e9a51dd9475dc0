"""
Host integration layer: wire codec, collaborators, config, snapshots
"""

from .calldata import (
    CalldataError,
    UnknownSelectorError,
    decode_call,
    encode_init_withdraw,
    encode_post,
    encode_process_withdrawal,
    encode_register,
)
from .collaborators import CycleClock, InMemoryToken, ManualClock
from .config import DEFAULT_DOMAIN, ProtocolConfig, config_from_mapping, load_config
from .host import SettlementHost, apply_calldata
from .snapshot import Snapshot, snapshot_from_state, state_from_snapshot

__all__ = [
    "CalldataError",
    "UnknownSelectorError",
    "decode_call",
    "encode_init_withdraw",
    "encode_post",
    "encode_process_withdrawal",
    "encode_register",
    "CycleClock",
    "InMemoryToken",
    "ManualClock",
    "DEFAULT_DOMAIN",
    "ProtocolConfig",
    "config_from_mapping",
    "load_config",
    "SettlementHost",
    "apply_calldata",
    "Snapshot",
    "snapshot_from_state",
    "state_from_snapshot",
]
