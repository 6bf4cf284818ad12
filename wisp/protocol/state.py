"""
Frame synchronizer state.

SyncState is immutable (frozen dataclass): every transition produces a new
instance, which keeps the synchronizer a pure function of (state, bits).
Bit buffers are ``bytes`` holding one 0/1 value per byte.
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, auto

SEARCH_CAP_BITS = 4096
SEARCH_KEEP_BITS = 2048


class SyncPhase(Enum):
    # Hunting for the sync word
    UNSYNCED = auto()
    # Sync word consumed, collecting header and body
    SYNCED = auto()


@dataclass(frozen=True)
class SyncState:
    phase: SyncPhase = SyncPhase.UNSYNCED

    # Raw bits: the sync search window, and the frame bits in uncoded mode
    buffer: bytes = b""
    # Coded bits after the sync word (FEC mode only)
    coded: bytes = b""

    # Set when the sync word matched through its complement
    inverted: bool = False

    # Header, once decoded
    length: int | None = None
    version: int | None = None

    # Configuration
    fec: bool = False
    max_payload: int = 255
    resolve_polarity: bool = True
    search_cap: int = SEARCH_CAP_BITS
    search_keep: int = SEARCH_KEEP_BITS

    @property
    def synced(self) -> bool:
        return self.phase is SyncPhase.SYNCED

    @property
    def frame_bits(self) -> bytes:
        return self.coded if self.fec else self.buffer
