"""Small filter design helpers shared by the modulator and demodulator."""
from __future__ import annotations

import math

import numpy as np


def one_pole_alpha(cutoff_hz: float, sample_rate_hz: float) -> float:
    """Smoothing factor of an RC low-pass: y += alpha * (x - y)."""
    dt = 1.0 / sample_rate_hz
    rc = 1.0 / (2.0 * math.pi * cutoff_hz)
    return dt / (rc + dt)


def hann_taps(length: int) -> np.ndarray:
    """Raised-cosine (Hann) window normalized to unit sum."""
    length = max(3, int(length))
    n = np.arange(length, dtype=np.float64)
    taps = 0.5 - 0.5 * np.cos(2.0 * math.pi * n / (length - 1))
    total = float(taps.sum())
    return taps / (total if total > 0.0 else 1.0)


def edge_ramp(edge: int) -> np.ndarray:
    """Half raised-cosine rising from 0 toward 1 over ``edge`` samples."""
    edge = max(1, int(edge))
    return 0.5 - 0.5 * np.cos(math.pi * np.arange(edge, dtype=np.float64) / edge)


def symbol_envelope(length: int, edge_fraction: float = 0.15) -> np.ndarray:
    """Per-symbol amplitude envelope with raised-cosine rise and fall."""
    env = np.ones(length, dtype=np.float64)
    if length <= 0:
        return env
    edge = max(1, int(math.floor(length * edge_fraction)))
    edge = min(edge, length // 2) or 1
    ramp = edge_ramp(edge)
    env[:edge] = ramp
    env[length - edge:] = np.minimum(env[length - edge:], ramp[::-1])
    return env
