"""
Frame synchronizer state machine.

This is the resynchronizing link logic, implemented as a pure function:
    step(state, bits) -> (new_state, events)

No I/O, no clock. Every frame outcome (delivered, CRC failure, bad length)
returns the machine to UNSYNCED; bits that follow the frame are kept and
searched again, so back-to-back frames in one batch are all found.
"""
from __future__ import annotations

from dataclasses import replace
from typing import Callable

import numpy as np

from ..codec import frame as framing
from ..codec.bits import BitsLike, as_bits
from .state import SyncState, SyncPhase
from .events import (
    Event,
    SyncAcquired,
    FrameReceived,
    CrcError,
    InvalidLength,
)


StepResult = tuple[SyncState, list[Event]]

_INVERT = bytes.maketrans(b"\x00\x01", b"\x01\x00")


class FrameSync:
    """
    Pure functional frame synchronizer.

    Usage:
        state = SyncState(fec=False)
        state, events = FrameSync.step(state, bits)
        # events: SyncAcquired, FrameReceived, CrcError, InvalidLength
    """

    @staticmethod
    def step(state: SyncState, bits: BitsLike = b"") -> StepResult:
        """Append ``bits`` and run the machine until it needs more input."""
        state = _append(state, _as_bit_bytes(bits))
        events: list[Event] = []

        while True:
            handler = _HANDLERS[state.phase]
            new_state, produced = handler(state)
            events.extend(produced)
            if new_state.phase is state.phase:
                return new_state, events
            state = new_state


# =============================================================================
# Helpers
# =============================================================================

def _as_bit_bytes(bits: BitsLike) -> bytes:
    if isinstance(bits, bytes):
        return bits
    return (as_bits(bits) & 1).astype(np.uint8).tobytes()


def _append(state: SyncState, bits: bytes) -> SyncState:
    if not bits:
        return state
    if state.phase is SyncPhase.UNSYNCED:
        return replace(state, buffer=state.buffer + bits)
    if state.inverted:
        bits = bits.translate(_INVERT)
    if state.fec:
        return replace(state, coded=state.coded + bits)
    return replace(state, buffer=state.buffer + bits)


def _rearm(state: SyncState, rest: bytes) -> SyncState:
    """Back to UNSYNCED, keeping ``rest`` (in received polarity) for the next search."""
    if state.inverted:
        rest = rest.translate(_INVERT)
    return replace(
        state,
        phase=SyncPhase.UNSYNCED,
        buffer=rest,
        coded=b"",
        inverted=False,
        length=None,
        version=None,
    )


def _bit_array(bits: bytes) -> np.ndarray:
    return np.frombuffer(bits, dtype=np.uint8)


# =============================================================================
# Phase handlers
# =============================================================================

def _handle_unsynced(state: SyncState) -> StepResult:
    """Exact search for the sync word (and its complement, if enabled)."""
    buf = state.buffer
    idx = buf.find(framing.SYNC_PATTERN)
    inverted = False
    if state.resolve_polarity:
        inv = buf.find(framing.SYNC_PATTERN_INVERTED)
        if inv >= 0 and (idx < 0 or inv < idx):
            idx, inverted = inv, True

    if idx < 0:
        if len(buf) > state.search_cap:
            return replace(state, buffer=buf[-state.search_keep:]), []
        return state, []

    rest = buf[idx + framing.SYNC_LENGTH:]
    if inverted:
        rest = rest.translate(_INVERT)

    synced = replace(
        state,
        phase=SyncPhase.SYNCED,
        buffer=b"" if state.fec else rest,
        coded=rest if state.fec else b"",
        inverted=inverted,
        length=None,
        version=None,
    )
    return synced, [SyncAcquired(inverted=inverted)]


def _handle_synced(state: SyncState) -> StepResult:
    """Read the header, then wait for the whole body and validate it."""
    bits = state.frame_bits

    if state.length is None:
        need_header = framing.header_bits_needed(state.fec)
        if len(bits) < need_header:
            return state, []
        try:
            length, version = framing.parse_header(_bit_array(bits), state.fec, state.max_payload)
        except framing.InvalidLength as exc:
            return _rearm(state, bits[need_header:]), [InvalidLength(value=exc.value)]
        state = replace(state, length=length, version=version)

    need = framing.body_bits_needed(state.length, state.fec)
    if len(bits) < need:
        return state, []

    rest = bits[need:]
    try:
        frame = framing.parse_body(_bit_array(bits[:need]), state.length, state.fec)
    except framing.CrcMismatch as exc:
        return _rearm(state, rest), [CrcError(expected=exc.expected, received=exc.received)]

    return _rearm(state, rest), [FrameReceived(text=frame.text, payload=frame.payload, version=frame.version)]


_HANDLERS: dict[SyncPhase, Callable[[SyncState], StepResult]] = {
    SyncPhase.UNSYNCED: _handle_unsynced,
    SyncPhase.SYNCED: _handle_synced,
}
