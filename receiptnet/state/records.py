"""
Receipt records for replay protection.

We track, per directed pair (a_index, b_index), the sequence number of the last
receipt that `a` settled against `b`. Records are created lazily at 0 and only ever increase.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Mapping, Tuple

from .registry import UserIndex


PairKey = Tuple[UserIndex, UserIndex]


@dataclass
class RecordTable:
    """Mutable mapping: (a_index, b_index) -> last settled seq_no."""

    _last: Dict[PairKey, int] = field(default_factory=dict)

    def get(self, a_index: UserIndex, b_index: UserIndex) -> int:
        v = self._last.get((a_index, b_index), 0)
        if not isinstance(v, int) or isinstance(v, bool) or v < 0:
            raise ValueError(f"invalid stored seq_no for {(a_index, b_index)!r}: {v!r}")
        return int(v)

    def set(self, a_index: UserIndex, b_index: UserIndex, seq_no: int) -> None:
        if not isinstance(seq_no, int) or isinstance(seq_no, bool) or seq_no < 0:
            raise TypeError("seq_no must be a non-negative int")
        current = self.get(a_index, b_index)
        if seq_no < current:
            raise ValueError(f"seq_no for {(a_index, b_index)!r} must not decrease ({current} -> {seq_no})")
        self._last[(a_index, b_index)] = int(seq_no)

    def get_all(self) -> Mapping[PairKey, int]:
        # Return a shallow copy to avoid accidental mutation during iteration.
        return dict(self._last)
