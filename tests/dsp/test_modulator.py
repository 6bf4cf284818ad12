"""BPSK modulator tests."""
import math

import numpy as np
import pytest

from wisp.config import LinkConfig
from wisp.dsp.modulator import BpskModulator


class TestModulator:
    def test_length_integer_sps(self):
        mod = BpskModulator(48_000)
        samples, _ = mod.modulate([0, 1] * 5)
        assert samples.dtype == np.float32
        assert len(samples) == 10 * 96

    def test_length_fractional_sps(self):
        mod = BpskModulator(44_100)
        assert mod.sps == pytest.approx(88.2)
        samples, _ = mod.modulate(np.zeros(10, dtype=np.uint8))
        assert len(samples) == 882

    def test_amplitude_bound(self):
        mod = BpskModulator(48_000, LinkConfig(amplitude=0.3))
        samples, _ = mod.modulate([1, 0, 0, 1, 1])
        assert np.max(np.abs(samples)) <= 0.3 + 1e-6
        assert np.max(np.abs(samples)) > 0.25

    def test_bits_are_antipodal(self):
        mod = BpskModulator(48_000)
        zero, _ = mod.modulate([0])
        one, _ = mod.modulate([1])
        assert np.allclose(zero, -one)

    def test_symbol_edges_start_at_zero(self):
        mod = BpskModulator(48_000)
        samples, _ = mod.modulate([0, 1, 0])
        for k in range(3):
            assert samples[k * 96] == 0.0

    def test_phase_continuity_across_calls(self):
        mod = BpskModulator(48_000)
        whole, end_whole = mod.modulate([0, 1, 1, 0, 1, 0], phase=0.4)
        first, mid = mod.modulate([0, 1, 1], phase=0.4)
        second, end = mod.modulate([0, 1, 0], phase=mid)
        assert np.allclose(whole, np.concatenate((first, second)), atol=1e-5)
        assert end == pytest.approx(end_whole)

    def test_end_phase_wraps(self):
        mod = BpskModulator(48_000)
        _, end = mod.modulate(np.zeros(50, dtype=np.uint8))
        assert 0.0 <= end < 2.0 * math.pi

    def test_empty_input(self):
        mod = BpskModulator(48_000)
        samples, end = mod.modulate([], phase=1.25)
        assert samples.size == 0
        assert end == 1.25

    def test_carrier_frequency(self):
        mod = BpskModulator(48_000)
        samples, _ = mod.modulate(np.zeros(100, dtype=np.uint8))
        spectrum = np.abs(np.fft.rfft(samples))
        peak_hz = np.argmax(spectrum) * 48_000 / len(samples)
        assert peak_hz == pytest.approx(18_000, abs=100)
