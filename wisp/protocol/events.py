"""
Events flow outward, from the audio context toward the application.

The demodulator produces lock, bit and diagnostic events; the frame
synchronizer turns bit events into frame outcomes. All events are
immutable so they can be handed across contexts without copying.
"""
from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class Event:
    """Base class for all modem events."""
    pass


# === Demodulator ===

@dataclass(frozen=True)
class Locked(Event):
    """Preamble correlation crossed the lock threshold."""
    score: float
    freq_offset_hz: float | None = None


@dataclass(frozen=True)
class Unlocked(Event):
    """Correlation collapsed; the demodulator stopped emitting bits."""
    score: float


@dataclass(frozen=True)
class Bits(Event):
    """Hard decisions taken while locked, one 0/1 value per byte."""
    bits: bytes


@dataclass(frozen=True)
class PllReport(Event):
    """Periodic carrier-loop diagnostic."""
    freq_offset_hz: float
    gain: float


@dataclass(frozen=True)
class DelayReport(Event):
    """Wall-clock time minus processed audio time."""
    seconds: float


# === Frame synchronizer ===

@dataclass(frozen=True)
class SyncAcquired(Event):
    """Sync word found; ``inverted`` when matched through its complement."""
    inverted: bool = False


@dataclass(frozen=True)
class FrameReceived(Event):
    text: str
    payload: bytes
    version: int


@dataclass(frozen=True)
class CrcError(Event):
    expected: int
    received: int


@dataclass(frozen=True)
class InvalidLength(Event):
    value: int


EVENT_NAMES: dict[type, str] = {
    Locked: "locked",
    Unlocked: "unlocked",
    Bits: "bits",
    PllReport: "pll",
    DelayReport: "delay",
    SyncAcquired: "sync",
    FrameReceived: "frame",
    CrcError: "crcError",
    InvalidLength: "invalidLength",
}


def event_name(event: Event) -> str:
    return EVENT_NAMES.get(type(event), type(event).__name__)
