"""
Link-layer codecs: bit packing, CRC-16, convolutional FEC and the wire frame.

These are pure functions with no I/O; the demodulator and the frame
synchronizer build on them.
"""
from .bits import bytes_to_bits, bits_to_bytes, word_to_bits, bits_to_word
from .crc import crc16
from .fec import conv_encode, viterbi_decode, TRELLIS, FLUSH_BITS
from .frame import (
    Frame,
    FrameError,
    PayloadTooLong,
    InvalidLength,
    CrcMismatch,
    FrameIncomplete,
    SyncNotFound,
    SYNC_WORD,
    encode_frame,
    decode_frame,
)

__all__ = [
    "bytes_to_bits",
    "bits_to_bytes",
    "word_to_bits",
    "bits_to_word",
    "crc16",
    "conv_encode",
    "viterbi_decode",
    "TRELLIS",
    "FLUSH_BITS",
    "Frame",
    "FrameError",
    "PayloadTooLong",
    "InvalidLength",
    "CrcMismatch",
    "FrameIncomplete",
    "SyncNotFound",
    "SYNC_WORD",
    "encode_frame",
    "decode_frame",
]
