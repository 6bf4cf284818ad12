"""
Bit/word packing helpers.

Everything is MSB-first: the most significant bit of each byte (or word)
comes first in the bit sequence. Bit sequences are numpy uint8 arrays of
0/1 values.
"""
from __future__ import annotations

from typing import Iterable, Union

import numpy as np
import numpy.typing as npt

BitArray = npt.NDArray[np.uint8]
BitsLike = Union[BitArray, bytes, bytearray, Iterable[int]]


def as_bits(bits: BitsLike) -> BitArray:
    """Coerce a bit sequence (array, bytes of 0/1, list) to a uint8 array."""
    if isinstance(bits, np.ndarray):
        return bits.astype(np.uint8, copy=False)
    if isinstance(bits, (bytes, bytearray)):
        return np.frombuffer(bytes(bits), dtype=np.uint8)
    return np.fromiter((int(b) for b in bits), dtype=np.uint8)


def bytes_to_bits(data: bytes) -> BitArray:
    return np.unpackbits(np.frombuffer(bytes(data), dtype=np.uint8))


def bits_to_bytes(bits: BitsLike) -> bytes:
    # A trailing partial byte is dropped, not padded.
    arr = as_bits(bits)
    usable = len(arr) - (len(arr) % 8)
    return np.packbits(arr[:usable]).tobytes()


def word_to_bits(word: int, width: int) -> BitArray:
    if width <= 0:
        raise ValueError("width must be > 0")
    return np.array([(word >> (width - 1 - i)) & 1 for i in range(width)], dtype=np.uint8)


def bits_to_word(bits: BitsLike) -> int:
    word = 0
    for b in as_bits(bits):
        word = (word << 1) | (int(b) & 1)
    return word


__all__ = [
    "BitArray",
    "BitsLike",
    "as_bits",
    "bytes_to_bits",
    "bits_to_bytes",
    "word_to_bits",
    "bits_to_word",
]
