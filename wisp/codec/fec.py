"""
Rate-1/2, constraint-length-7 convolutional code (generators 0x5B / 0x79,
the octal 133/171 pair) and its hard-decision Viterbi decoder.

The encoder register holds the last seven input bits, newest in the LSB.
The decoder state is the low six bits of that register, giving a 64-state
trellis in which every state has exactly two predecessors:

    p_lo = ns >> 1        p_hi = (ns >> 1) | 0x20        input bit = ns & 1
"""
from __future__ import annotations

from dataclasses import dataclass
from itertools import chain

import numpy as np

from .bits import BitArray, BitsLike, as_bits

CC_K = 7
CC_GEN = (0x5B, 0x79)
CC_STATES = 1 << (CC_K - 1)
FLUSH_BITS = CC_K - 1

_HIGH_BIT = CC_STATES >> 1
_UNREACHED = 1 << 30


def _parity(x: int) -> int:
    return bin(x).count("1") & 1


@dataclass(frozen=True)
class Transition:
    next_state: int
    o0: int
    o1: int


def build_trellis(gen: tuple[int, int] = CC_GEN, k: int = CC_K) -> dict[tuple[int, int], Transition]:
    """Transition table ``{(state, bit): Transition}`` for the given code."""
    g0, g1 = gen
    n_states = 1 << (k - 1)
    table: dict[tuple[int, int], Transition] = {}
    for state in range(n_states):
        for bit in (0, 1):
            reg = ((state << 1) | bit) & ((1 << k) - 1)
            table[(state, bit)] = Transition(reg & (n_states - 1), _parity(reg & g0), _parity(reg & g1))
    return table


TRELLIS = build_trellis()

_NEXT_STATE = np.array([[TRELLIS[(s, b)].next_state for b in (0, 1)] for s in range(CC_STATES)], dtype=np.int64)
_OUTPUTS = np.array([[(TRELLIS[(s, b)].o0, TRELLIS[(s, b)].o1) for b in (0, 1)] for s in range(CC_STATES)],
                    dtype=np.uint8)

_NS = np.arange(CC_STATES)
_PRED_LO = _NS >> 1
_PRED_HI = _PRED_LO | _HIGH_BIT
_EXP_LO = _OUTPUTS[_PRED_LO, _NS & 1]
_EXP_HI = _OUTPUTS[_PRED_HI, _NS & 1]

# Branch distances indexed by the received pair (r0 << 1 | r1), shape (4, 64).
_RX_PAIRS = np.array([(0, 0), (0, 1), (1, 0), (1, 1)], dtype=np.uint8)
_DIST_LO = (_EXP_LO[None, :, :] != _RX_PAIRS[:, None, :]).sum(axis=2).astype(np.int64)
_DIST_HI = (_EXP_HI[None, :, :] != _RX_PAIRS[:, None, :]).sum(axis=2).astype(np.int64)


def coded_length(n_info_bits: int, flush: bool = True) -> int:
    return 2 * (n_info_bits + (FLUSH_BITS if flush else 0))


def conv_encode(bits: BitsLike, flush: bool = True) -> BitArray:
    info = as_bits(bits)
    tail = (0,) * FLUSH_BITS if flush else ()
    out = np.empty(coded_length(len(info), flush), dtype=np.uint8)
    state = 0
    for idx, bit in enumerate(chain((int(b) & 1 for b in info), tail)):
        out[2 * idx:2 * idx + 2] = _OUTPUTS[state, bit]
        state = int(_NEXT_STATE[state, bit])
    return out


def viterbi_decode(coded: BitsLike, terminate: bool = False) -> BitArray:
    """
    Decode a hard-bit coded stream; one output bit per received pair.

    The flush bits are part of the output; callers strip the last
    ``FLUSH_BITS``. A trailing odd bit is ignored. Traceback starts at the
    best-metric end state unless ``terminate`` forces state 0.
    """
    rx = as_bits(coded)
    n_pairs = len(rx) // 2
    if n_pairs == 0:
        return np.zeros(0, dtype=np.uint8)

    pairs = rx[:2 * n_pairs].reshape(n_pairs, 2).astype(np.int64)
    codes = (pairs[:, 0] & 1) << 1 | (pairs[:, 1] & 1)

    metric = np.full(CC_STATES, _UNREACHED, dtype=np.int64)
    metric[0] = 0
    take_hi = np.zeros((n_pairs, CC_STATES), dtype=bool)

    for t in range(n_pairs):
        code = codes[t]
        m_lo = metric[_PRED_LO] + _DIST_LO[code]
        m_hi = metric[_PRED_HI] + _DIST_HI[code]
        # ties keep the lower-indexed predecessor
        choose = m_hi < m_lo
        take_hi[t] = choose
        metric = np.where(choose, m_hi, m_lo)

    state = 0 if terminate else int(np.argmin(metric))
    out = np.empty(n_pairs, dtype=np.uint8)
    for t in range(n_pairs - 1, -1, -1):
        out[t] = state & 1
        state = (state >> 1) | (_HIGH_BIT if take_hi[t, state] else 0)
    return out


__all__ = [
    "CC_K",
    "CC_GEN",
    "CC_STATES",
    "FLUSH_BITS",
    "Transition",
    "TRELLIS",
    "build_trellis",
    "coded_length",
    "conv_encode",
    "viterbi_decode",
]
