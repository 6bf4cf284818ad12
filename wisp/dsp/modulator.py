from __future__ import annotations

from typing import Optional
import math

import numpy as np

from ..codec.bits import BitsLike, as_bits
from ..config import LinkConfig
from .filters import symbol_envelope

TWO_PI = 2.0 * math.pi


class BpskModulator:
    """
    Bits -> real BPSK waveform at the carrier.

    bit 0 maps to +1 and bit 1 to -1. Each symbol is shaped with
    half-raised-cosine edges over the first/last 15% of its span, and the
    carrier phase runs continuously across symbols and across calls when
    the caller threads ``phase`` through.
    """

    EDGE_FRACTION: float = 0.15

    def __init__(self, sample_rate_hz: int = 48_000, link: Optional[LinkConfig] = None) -> None:
        self.SR = int(sample_rate_hz)
        self.configure(link or LinkConfig())

    def configure(self, link: LinkConfig) -> None:
        self.carrier_hz = float(link.carrier_hz)
        self.symbol_rate = float(link.symbol_rate)
        self.amplitude = float(link.amplitude)
        self.sps = self.SR / self.symbol_rate
        self.phase_step = TWO_PI * self.carrier_hz / self.SR
        self._envelopes: dict[int, np.ndarray] = {}

    def symbol_bounds(self, n_symbols: int) -> np.ndarray:
        # floor(k * sps) keeps a fractional sps from drifting against the receiver
        return np.floor(np.arange(n_symbols + 1) * self.sps).astype(np.int64)

    def num_samples(self, n_symbols: int) -> int:
        return int(self.symbol_bounds(n_symbols)[-1])

    def modulate(self, bits: BitsLike, phase: float = 0.0) -> tuple[np.ndarray, float]:
        """
        Return ``(samples, end_phase)``.

        ``phase`` is the carrier phase of the sample preceding the first
        output sample; the phase is advanced before each sample is drawn.
        """
        arr = as_bits(bits)
        bounds = self.symbol_bounds(len(arr))
        lengths = np.diff(bounds)
        total = int(bounds[-1])
        if total == 0:
            return np.zeros(0, dtype=np.float32), phase

        signs = np.where(arr == 0, 1.0, -1.0)
        envelope = np.concatenate([self._envelope(int(n)) for n in lengths])
        phases = phase + self.phase_step * np.arange(1, total + 1, dtype=np.float64)
        wave = np.repeat(signs, lengths) * envelope * np.cos(phases) * self.amplitude

        end_phase = math.fmod(phase + self.phase_step * total, TWO_PI)
        return wave.astype(np.float32), end_phase

    def _envelope(self, length: int) -> np.ndarray:
        env = self._envelopes.get(length)
        if env is None:
            env = symbol_envelope(length, self.EDGE_FRACTION)
            self._envelopes[length] = env
        return env
