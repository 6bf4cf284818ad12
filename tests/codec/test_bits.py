"""Tests for MSB-first bit packing."""
import numpy as np
import pytest

from wisp.codec.bits import as_bits, bytes_to_bits, bits_to_bytes, word_to_bits, bits_to_word


class TestPacking:
    def test_bytes_to_bits_is_msb_first(self):
        assert bytes_to_bits(b"\xA5").tolist() == [1, 0, 1, 0, 0, 1, 0, 1]

    def test_bits_to_bytes_inverts(self):
        data = bytes(range(256))
        assert bits_to_bytes(bytes_to_bits(data)) == data

    def test_partial_trailing_byte_is_dropped(self):
        bits = [1, 1, 1, 1, 0, 0, 0, 0, 1, 1, 1]
        assert bits_to_bytes(bits) == b"\xF0"

    def test_empty(self):
        assert bits_to_bytes([]) == b""
        assert bytes_to_bits(b"").size == 0


class TestWords:
    def test_word_round_trip(self):
        assert bits_to_word(word_to_bits(0xA5A5A5A5, 32)) == 0xA5A5A5A5

    def test_word_is_msb_first(self):
        assert word_to_bits(0b100, 3).tolist() == [1, 0, 0]

    def test_width_must_be_positive(self):
        with pytest.raises(ValueError):
            word_to_bits(1, 0)


class TestCoercion:
    def test_accepts_bytes_of_bits(self):
        assert as_bits(b"\x00\x01\x01").tolist() == [0, 1, 1]

    def test_accepts_lists_and_arrays(self):
        assert as_bits([1, 0]).dtype == np.uint8
        assert as_bits(np.array([1, 0], dtype=np.int64)).tolist() == [1, 0]
