"""
User registry: index -> (address, BLS public key).

Indices are dense and 1-based; 0 is reserved. Entries are write-once.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Mapping, Optional, Tuple

from .canonical import UINT64_MAX, UINT256_MAX, canonical_address


UserIndex = int
PublicKeyWords = Tuple[int, int, int, int]


@dataclass(frozen=True)
class RegistryEntry:
    index: UserIndex
    address: str
    public_key: PublicKeyWords

    def __post_init__(self) -> None:
        if not isinstance(self.index, int) or isinstance(self.index, bool) or not 0 < self.index <= UINT64_MAX:
            raise ValueError(f"invalid user index: {self.index!r}")
        object.__setattr__(self, "address", canonical_address(self.address))
        key = tuple(self.public_key)
        if len(key) != 4 or not all(
            isinstance(w, int) and not isinstance(w, bool) and 0 <= w <= UINT256_MAX for w in key
        ):
            raise ValueError("public_key must be four uint256 words")
        object.__setattr__(self, "public_key", key)


@dataclass
class RegistryTable:
    """
    Mutable, append-only registry.

    `count` is the number of registered users and also the last allocated index.
    """

    _entries: Dict[UserIndex, RegistryEntry] = field(default_factory=dict)

    @property
    def count(self) -> int:
        return len(self._entries)

    def get(self, index: UserIndex) -> Optional[RegistryEntry]:
        return self._entries.get(index)

    def address_of(self, index: UserIndex) -> Optional[str]:
        entry = self._entries.get(index)
        return entry.address if entry is not None else None

    def public_key_of(self, index: UserIndex) -> Optional[PublicKeyWords]:
        entry = self._entries.get(index)
        return entry.public_key if entry is not None else None

    def append(self, entry: RegistryEntry) -> None:
        if entry.index in self._entries:
            raise ValueError(f"user index {entry.index} already registered")
        if entry.index != self.count + 1:
            raise ValueError(f"user index {entry.index} is not the next index ({self.count + 1})")
        self._entries[entry.index] = entry

    def get_all(self) -> Mapping[UserIndex, RegistryEntry]:
        return dict(self._entries)

    def __repr__(self) -> str:
        return f"RegistryTable({self.count} users)"
