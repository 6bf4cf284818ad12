"""
WispEngine tests.

The engine is exercised against a fake modem so bit-level behavior can be
checked without running audio.
"""
from __future__ import annotations

from typing import List, Optional

import pytest

from wisp.codec.frame import encode_frame
from wisp.config import LinkConfig
from wisp.engine import WispEngine
from wisp.protocol import (
    Bits,
    Configure,
    CrcError,
    Event,
    FrameReceived,
    Locked,
    PllReport,
    Reset,
    SyncAcquired,
    Unlocked,
)


class FakeModem:
    """Minimal IModem stand-in: queued events out, commands recorded."""

    def __init__(self, accept_commands: bool = True):
        self.link = LinkConfig()
        self.events: List[Event] = []
        self.commands = []
        self.sent: List[bytes] = []
        self.accept_commands = accept_commands

    def send_command(self, command) -> bool:
        if not self.accept_commands:
            return False
        self.commands.append(command)
        return True

    def poll_events(self, limit: Optional[int] = None) -> List[Event]:
        n = len(self.events) if limit is None else limit
        out, self.events = self.events[:n], self.events[n:]
        return out

    def tx_enqueue(self, frame: bytes) -> bool:
        self.sent.append(frame)
        return True


def bits_event(payload: bytes, fec: bool = False, flip: Optional[int] = None) -> Bits:
    bits = encode_frame(payload, preamble_length=16, fec=fec)
    if flip is not None:
        bits[flip] ^= 1
    return Bits(bits.tobytes())


@pytest.fixture
def modem():
    return FakeModem()


@pytest.fixture
def engine(modem):
    return WispEngine(modem)


class TestDelivery:
    def test_text_callback(self, modem, engine):
        texts = []
        engine.on_text = texts.append
        modem.events = [Locked(score=0.9), bits_event(b"hello")]
        engine.poll()
        assert texts == ["hello"]
        assert engine.received[0].payload == b"hello"

    def test_frame_split_across_bit_events(self, modem, engine):
        bits = bits_event(b"split").bits
        modem.events = [Bits(bits[:50]), Bits(bits[50:])]
        observed = engine.poll()
        assert [type(e) for e in observed] == [Bits, SyncAcquired, Bits, FrameReceived]

    def test_event_callback_names(self, modem, engine):
        names = []
        engine.on_event = lambda name, event: names.append(name)
        modem.events = [Locked(score=0.9), bits_event(b"x"), PllReport(freq_offset_hz=1.0, gain=2.0)]
        engine.poll()
        assert names == ["locked", "sync", "frame", "pll"]

    def test_crc_error_reported(self, modem, engine):
        modem.events = [bits_event(b"oops", flip=16 + 32 + 20)]
        observed = engine.poll()
        assert any(isinstance(e, CrcError) for e in observed)
        assert not engine.received

    def test_unlock_resets_partial_frame(self, modem, engine):
        bits = bits_event(b"lost").bits
        modem.events = [Bits(bits[:60]), Unlocked(score=0.1)]
        engine.poll()
        assert not engine.synchronizer.synced

    def test_pop_received(self, modem, engine):
        modem.events = [bits_event(b"a"), bits_event(b"b")]
        engine.poll()
        assert [f.text for f in engine.pop_received()] == ["a", "b"]
        assert engine.pop_received() == []

    def test_poll_limit(self, modem, engine):
        modem.events = [Locked(score=0.9), PllReport(freq_offset_hz=0.0, gain=1.0)]
        assert len(engine.poll(1)) == 1
        assert len(engine.poll()) == 1

    def test_pop_received_limit(self, modem, engine):
        modem.events = [bits_event(b"a"), bits_event(b"b"), bits_event(b"c")]
        engine.poll()
        assert [f.text for f in engine.pop_received(2)] == ["a", "b"]
        assert [f.text for f in engine.pop_received(5)] == ["c"]

    def test_received_is_bounded(self, modem, engine):
        total = WispEngine.RECEIVED_LIMIT + 5
        modem.events = [bits_event(str(k).encode()) for k in range(total)]
        engine.poll()
        assert len(engine.received) == WispEngine.RECEIVED_LIMIT
        # oldest frames go first
        assert engine.received[0].text == "5"
        assert engine.received[-1].text == str(total - 1)


class TestCommands:
    def test_configure_forwards_and_updates_synchronizer(self, modem, engine):
        assert engine.execute(Configure(LinkConfig(fec_enabled=True)))
        assert isinstance(modem.commands[-1], Configure)
        assert engine.synchronizer.state.fec is True

        modem.events = [bits_event(b"coded", fec=True)]
        engine.poll()
        assert engine.received[-1].text == "coded"

    def test_reset_forwards(self, modem, engine):
        modem.events = [Bits(bits_event(b"half").bits[:60])]
        engine.poll()
        assert engine.synchronizer.synced
        assert engine.execute(Reset())
        assert not engine.synchronizer.synced
        assert isinstance(modem.commands[-1], Reset)

    def test_full_command_channel(self):
        engine = WispEngine(FakeModem(accept_commands=False))
        assert engine.execute(Reset()) is False

    def test_refused_configure_leaves_synchronizer_alone(self):
        engine = WispEngine(FakeModem(accept_commands=False))
        assert engine.execute(Configure(LinkConfig(fec_enabled=True, max_payload=40))) is False
        assert engine.synchronizer.state.fec is False
        assert engine.synchronizer.state.max_payload == 255

    def test_refused_reset_keeps_partial_frame(self):
        modem = FakeModem(accept_commands=False)
        engine = WispEngine(modem)
        modem.events = [Bits(bits_event(b"half").bits[:60])]
        engine.poll()
        assert engine.execute(Reset()) is False
        assert engine.synchronizer.synced

    def test_unknown_command_not_forwarded(self, modem, engine):
        assert engine.execute("configure") is False
        assert modem.commands == []

    def test_send_text_encodes_utf8(self, modem, engine):
        assert engine.send_text("grüß")
        assert modem.sent == ["grüß".encode("utf-8")]


class TestLogging:
    def test_frame_logged(self, modem):
        lines = []
        engine = WispEngine(modem, logger=lambda level, msg: lines.append((level, msg)))
        modem.events = [bits_event(b"log")]
        engine.poll()
        assert any(level == "info" and "[Engine] Frame received" in str(msg) for level, msg in lines)
