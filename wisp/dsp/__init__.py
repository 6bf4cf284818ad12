"""Sample-level signal processing: BPSK waveform synthesis and the coherent receiver."""
from .filters import one_pole_alpha, hann_taps, edge_ramp, symbol_envelope
from .modulator import BpskModulator
from .demodulator import BpskDemodulator, DemodState

__all__ = [
    "one_pole_alpha",
    "hann_taps",
    "edge_ramp",
    "symbol_envelope",
    "BpskModulator",
    "BpskDemodulator",
    "DemodState",
]
