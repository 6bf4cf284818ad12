"""
Wire frame codec.

    preamble(N, 1010...) | sync(32, 0xA5A5A5A5)
        | [FEC:] conv( length(8) version(8) payload(len*8) crc16(16) + 6 flush )
        | [plain:]     length(8) version(8) payload(len*8) crc16(16)
        | tail (optional run of 1 bits, outside the frame)

The CRC covers ``length || version || payload``. The sync word is never coded.
"""
from __future__ import annotations

from dataclasses import dataclass

import numpy as np

from .bits import BitArray, BitsLike, as_bits, bits_to_bytes, bits_to_word, bytes_to_bits, word_to_bits
from .crc import crc16
from .fec import FLUSH_BITS, coded_length, conv_encode, viterbi_decode

SYNC_WORD = 0xA5A5A5A5
SYNC_LENGTH = 32
PROTOCOL_VERSION = 1
MAX_PAYLOAD = 255
HEADER_BITS = 16
CRC_BITS = 16
DEFAULT_PREAMBLE_LENGTH = 80


# --------------------------------------------------------------------------- errors

class FrameError(ValueError):
    """Base class for frame encode/decode failures."""


class PayloadTooLong(FrameError):
    def __init__(self, length: int, limit: int = MAX_PAYLOAD) -> None:
        super().__init__(f"payload is {length} bytes, maximum is {limit}")
        self.length = length
        self.limit = limit


class InvalidLength(FrameError):
    def __init__(self, value: int) -> None:
        super().__init__(f"implausible frame length {value}")
        self.value = value


class CrcMismatch(FrameError):
    def __init__(self, expected: int, received: int) -> None:
        super().__init__(f"CRC mismatch: computed 0x{expected:04X}, frame carries 0x{received:04X}")
        self.expected = expected
        self.received = received


class FrameIncomplete(FrameError):
    def __init__(self, needed: int, available: int) -> None:
        super().__init__(f"need {needed} bits, have {available}")
        self.needed = needed
        self.available = available


class SyncNotFound(FrameError):
    pass


# --------------------------------------------------------------------------- frame

@dataclass(frozen=True)
class Frame:
    payload: bytes
    version: int = PROTOCOL_VERSION

    @classmethod
    def from_text(cls, text: str, version: int = PROTOCOL_VERSION) -> "Frame":
        return cls(text.encode("utf-8"), version)

    @property
    def length(self) -> int:
        return len(self.payload)

    @property
    def header(self) -> bytes:
        return bytes([self.length & 0xFF, self.version & 0xFF])

    @property
    def crc(self) -> int:
        return crc16(self.header + self.payload)

    @property
    def text(self) -> str:
        return self.payload.decode("utf-8", errors="replace")

    def to_bytes(self) -> bytes:
        return self.header + self.payload + self.crc.to_bytes(2, "big")


def preamble_bits(length: int = DEFAULT_PREAMBLE_LENGTH) -> BitArray:
    return (1 - (np.arange(max(0, length)) % 2)).astype(np.uint8)


def sync_bits() -> BitArray:
    return word_to_bits(SYNC_WORD, SYNC_LENGTH)


# bytes of 0/1 values, for substring search in bit buffers
SYNC_PATTERN: bytes = sync_bits().tobytes()
SYNC_PATTERN_INVERTED: bytes = (1 - sync_bits()).astype(np.uint8).tobytes()


def header_bits_needed(fec: bool) -> int:
    return coded_length(HEADER_BITS) if fec else HEADER_BITS


def body_bits_needed(length: int, fec: bool) -> int:
    n_info = HEADER_BITS + 8 * length + CRC_BITS
    return coded_length(n_info) if fec else n_info


def max_frame_bits(fec: bool, max_payload: int = MAX_PAYLOAD) -> int:
    return SYNC_LENGTH + body_bits_needed(max_payload, fec)


# --------------------------------------------------------------------------- encode

def body_bits(frame: Frame, fec: bool = False) -> BitArray:
    bits = bytes_to_bits(frame.to_bytes())
    return conv_encode(bits) if fec else bits


def encode_frame(payload: bytes,
                 preamble_length: int = DEFAULT_PREAMBLE_LENGTH,
                 fec: bool = False,
                 version: int = PROTOCOL_VERSION,
                 tail_length: int = 0,
                 max_payload: int = MAX_PAYLOAD) -> BitArray:
    """Full on-air bit sequence for ``payload``; raises PayloadTooLong first."""
    if len(payload) > max_payload:
        raise PayloadTooLong(len(payload), max_payload)
    frame = Frame(bytes(payload), version)
    return np.concatenate((
        preamble_bits(preamble_length),
        sync_bits(),
        body_bits(frame, fec),
        np.ones(max(0, tail_length), dtype=np.uint8),
    ))


# --------------------------------------------------------------------------- decode

def parse_header(bits: BitsLike, fec: bool = False, max_payload: int = MAX_PAYLOAD) -> tuple[int, int]:
    """Read ``(length, version)`` from the bits that follow the sync word."""
    arr = as_bits(bits)
    need = header_bits_needed(fec)
    if len(arr) < need:
        raise FrameIncomplete(need, len(arr))
    info = viterbi_decode(arr[:need])[:HEADER_BITS] if fec else arr[:HEADER_BITS]
    length = bits_to_word(info[:8])
    version = bits_to_word(info[8:HEADER_BITS])
    if length > max_payload:
        raise InvalidLength(length)
    return length, version


def parse_body(bits: BitsLike, length: int, fec: bool = False) -> Frame:
    """Validate and return the frame whose header declared ``length``."""
    arr = as_bits(bits)
    need = body_bits_needed(length, fec)
    if len(arr) < need:
        raise FrameIncomplete(need, len(arr))
    if fec:
        info = viterbi_decode(arr[:need], terminate=True)[:-FLUSH_BITS]
    else:
        info = arr[:need]

    data = bits_to_bytes(info)
    header = data[:2]
    payload = data[2:2 + length]
    received = int.from_bytes(data[2 + length:4 + length], "big")
    expected = crc16(header + payload)
    if expected != received:
        raise CrcMismatch(expected, received)
    return Frame(payload, version=header[1])


def decode_frame(bits: BitsLike, fec: bool = False, max_payload: int = MAX_PAYLOAD) -> Frame:
    """Locate the sync word in a complete capture and decode the frame after it."""
    arr = as_bits(bits)
    idx = arr.tobytes().find(SYNC_PATTERN)
    if idx < 0:
        raise SyncNotFound("sync word not present")
    rest = arr[idx + SYNC_LENGTH:]
    length, _ = parse_header(rest, fec, max_payload)
    return parse_body(rest, length, fec)


__all__ = [
    "SYNC_WORD",
    "SYNC_LENGTH",
    "SYNC_PATTERN",
    "SYNC_PATTERN_INVERTED",
    "PROTOCOL_VERSION",
    "MAX_PAYLOAD",
    "HEADER_BITS",
    "CRC_BITS",
    "DEFAULT_PREAMBLE_LENGTH",
    "FrameError",
    "PayloadTooLong",
    "InvalidLength",
    "CrcMismatch",
    "FrameIncomplete",
    "SyncNotFound",
    "Frame",
    "preamble_bits",
    "sync_bits",
    "header_bits_needed",
    "body_bits_needed",
    "max_frame_bits",
    "body_bits",
    "encode_frame",
    "parse_header",
    "parse_body",
    "decode_frame",
]
