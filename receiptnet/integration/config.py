"""
Protocol configuration.

`ProtocolConfig` carries the deployment constants the core reads through
`Env`. It can be built in code or loaded from a YAML mapping:

    domain: "0x…"            # 32-byte hex; defaults to DEFAULT_DOMAIN
    buffer_period: 86400     # seconds, > 0
    cycle_length: 86400      # seconds, > 0
    genesis_time: 0
    max_batch_receipts: 65535
"""

from __future__ import annotations

from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Mapping, Union

import yaml

from ..state.canonical import UINT16_MAX, UINT32_MAX, fixed_hex_to_bytes, keccak256


DEFAULT_DOMAIN: bytes = keccak256(b"receiptnet:bls-settlement:v1")
DEFAULT_BUFFER_PERIOD = 86_400  # 1 day
DEFAULT_CYCLE_LENGTH = 86_400


@dataclass(frozen=True)
class ProtocolConfig:
    # Hash-to-curve domain separation tag shared by every signed message.
    domain: bytes = DEFAULT_DOMAIN
    # Withdrawal challenge period.
    buffer_period: int = DEFAULT_BUFFER_PERIOD
    # Settlement cycle clock (receipts in a batch expire at the cycle boundary).
    cycle_length: int = DEFAULT_CYCLE_LENGTH
    genesis_time: int = 0
    # DoS limit on post() batches; the wire count is u16.
    max_batch_receipts: int = UINT16_MAX

    def __post_init__(self) -> None:
        if not isinstance(self.domain, (bytes, bytearray)) or len(self.domain) != 32:
            raise ValueError("domain must be 32 bytes")
        object.__setattr__(self, "domain", bytes(self.domain))
        for name, lo, hi in (
            ("buffer_period", 1, UINT32_MAX),
            ("cycle_length", 1, UINT32_MAX),
            ("genesis_time", 0, UINT32_MAX),
            ("max_batch_receipts", 0, UINT16_MAX),
        ):
            value = getattr(self, name)
            if not isinstance(value, int) or isinstance(value, bool):
                raise TypeError(f"{name} must be an int")
            if not lo <= value <= hi:
                raise ValueError(f"{name} must be in [{lo}, {hi}], got {value}")


_FIELD_NAMES = frozenset(f.name for f in fields(ProtocolConfig))


def config_from_mapping(raw: Mapping[str, Any]) -> ProtocolConfig:
    if not isinstance(raw, Mapping):
        raise TypeError("config must be a mapping")
    unknown = sorted(set(raw) - _FIELD_NAMES)
    if unknown:
        raise ValueError(f"unknown config keys: {', '.join(unknown)}")
    kwargs = dict(raw)
    if "domain" in kwargs:
        domain = kwargs["domain"]
        if isinstance(domain, str):
            domain = fixed_hex_to_bytes(domain, nbytes=32, name="domain")
        kwargs["domain"] = domain
    return ProtocolConfig(**kwargs)


def load_config(path: Union[str, Path]) -> ProtocolConfig:
    text = Path(path).read_text(encoding="utf-8")
    raw = yaml.safe_load(text)
    if raw is None:
        return ProtocolConfig()
    return config_from_mapping(raw)
