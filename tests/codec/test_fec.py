"""Convolutional encoder / Viterbi decoder tests."""
import numpy as np
import pytest

from wisp.codec.fec import (
    CC_STATES,
    FLUSH_BITS,
    TRELLIS,
    coded_length,
    conv_encode,
    viterbi_decode,
)


class TestTrellis:
    def test_every_state_has_two_branches(self):
        assert len(TRELLIS) == 2 * CC_STATES

    def test_every_state_has_two_predecessors(self):
        preds = {}
        for (state, _bit), tr in TRELLIS.items():
            preds.setdefault(tr.next_state, set()).add(state)
        assert all(len(p) == 2 for p in preds.values())
        assert len(preds) == CC_STATES

    def test_input_bit_is_low_bit_of_next_state(self):
        for (_state, bit), tr in TRELLIS.items():
            assert tr.next_state & 1 == bit


class TestEncoder:
    def test_length_includes_flush(self):
        assert len(conv_encode(np.zeros(10, dtype=np.uint8))) == coded_length(10) == 2 * (10 + FLUSH_BITS)

    def test_all_zero_input_encodes_to_zeros(self):
        assert not conv_encode(np.zeros(20, dtype=np.uint8)).any()

    def test_impulse_response_weight(self):
        """Free distance of the 133/171 code is 10."""
        assert int(conv_encode([1]).sum()) == 10


class TestViterbi:
    @pytest.mark.parametrize("n", [0, 1, 7, 16, 100, 2048])
    def test_round_trip(self, n, rng):
        bits = rng.integers(0, 2, n, dtype=np.uint8)
        decoded = viterbi_decode(conv_encode(bits), terminate=True)
        assert np.array_equal(decoded[:-FLUSH_BITS] if FLUSH_BITS else decoded, bits)

    def test_round_trip_unterminated(self, rng):
        bits = rng.integers(0, 2, 300, dtype=np.uint8)
        decoded = viterbi_decode(conv_encode(bits))
        assert np.array_equal(decoded[:300], bits)

    def test_corrects_spaced_single_errors(self, rng):
        bits = rng.integers(0, 2, 400, dtype=np.uint8)
        coded = conv_encode(bits)
        for pos in range(5, len(coded), 40):
            coded[pos] ^= 1
        decoded = viterbi_decode(coded, terminate=True)
        assert np.array_equal(decoded[:-FLUSH_BITS], bits)

    def test_empty_and_odd_input(self):
        assert viterbi_decode([]).size == 0
        assert viterbi_decode([1]).size == 0

    def test_trailing_odd_bit_is_ignored(self, rng):
        bits = rng.integers(0, 2, 50, dtype=np.uint8)
        coded = np.concatenate((conv_encode(bits), [1]))
        assert np.array_equal(viterbi_decode(coded, terminate=True)[:-FLUSH_BITS], bits)
