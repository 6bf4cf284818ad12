from __future__ import annotations

from collections import deque
from dataclasses import replace
from typing import Callable, Deque, List, Optional
import math

import numpy as np

from ..channel import Channel
from ..codec.frame import PayloadTooLong, encode_frame
from ..config import LinkConfig
from ..dsp.demodulator import BpskDemodulator
from ..dsp.modulator import BpskModulator
from ..protocol.commands import Command, Configure, Reset
from ..protocol.events import Event
from .imodem import BackpressurePolicy, IModem, Int16Block, ModemConfig, SampleBlock


class BpskModem(IModem):
    """
    Near-ultrasonic coherent BPSK modem.

    TX frames are encoded on enqueue and modulated lazily, one block at a
    time, at the carrier phase of the running TX sample index. RX blocks go
    through the demodulator; its events are pushed to the outbound channel.
    Commands queued with send_command() are applied at the start of the next
    RX block.
    """

    FULL_SCALE: float = 32767.0
    CARRIER_CEILING: float = 0.45     # of the sample rate

    def __init__(self,
                 cfg: Optional[ModemConfig] = None,
                 link: Optional[LinkConfig] = None,
                 logger: Optional[Callable[[str, object], None]] = None) -> None:
        self.log = logger or (lambda level, payload: None)
        self.cfg = ModemConfig() if cfg is None else cfg
        self.SR = int(self.cfg.sample_rate_hz)
        self.BLK = int(self.cfg.block_size)
        if self.BLK <= 0:
            raise ValueError("block_size must be > 0")

        self._events: Channel[Event] = Channel(self.cfg.max_rx_events, self.cfg.backpressure)
        self._commands: Channel[Command] = Channel(self.cfg.max_commands, BackpressurePolicy.DROP_NEWEST)
        self._tx_frames: Deque[np.ndarray] = deque()
        self._tx_wave = np.zeros(0, dtype=np.float32)
        self._tx_index = 0

        self._mod = BpskModulator(self.SR)
        self._demod = BpskDemodulator(self.SR, logger=self.log)
        self.configure(link or LinkConfig())

    # ---------------------------------------------------------------- public
    @property
    def link(self) -> LinkConfig:
        return self._link

    @property
    def tx_pending(self) -> bool:
        return bool(self._tx_frames) or self._tx_wave.size > 0

    @property
    def demodulator(self) -> BpskDemodulator:
        return self._demod

    def configure(self, link: LinkConfig) -> None:
        link = link.clamped()
        ceiling = self.CARRIER_CEILING * self.SR
        if link.carrier_hz > ceiling:
            self.log("warning", f"[Modem] carrier {link.carrier_hz} Hz too close to Nyquist, using {ceiling} Hz")
            link = replace(link, carrier_hz=ceiling)
        self._link = link
        self._mod.configure(link)
        self._demod.configure(link)
        self.reset()
        self.log("info", {
            "event": "cfg",
            "modem": "bpsk",
            "sample_rate_hz": self.SR,
            "block_size": self.BLK,
            "carrier_hz": link.carrier_hz,
            "symbol_rate": link.symbol_rate,
            "sps": round(self._demod.sps, 3),
            "fec": link.fec_enabled,
            "timing_recovery": link.timing_recovery,
        })

    def reset(self) -> None:
        self._tx_frames.clear()
        self._tx_wave = np.zeros(0, dtype=np.float32)
        self._demod.reset()

    def close(self) -> None:
        self.reset()
        self._events.clear()
        self._commands.clear()

    def tx_enqueue(self, frame: bytes) -> bool:
        limit = self._link.max_payload
        if len(frame) > limit:
            raise PayloadTooLong(len(frame), limit)
        if len(self._tx_frames) >= self.cfg.max_tx_frames:
            if self.cfg.backpressure is not BackpressurePolicy.DROP_OLDEST:
                self.log("debug", "[Modem] tx queue full, frame dropped")
                return False
            self._tx_frames.popleft()
        bits = encode_frame(
            bytes(frame),
            preamble_length=self._link.preamble_length,
            fec=self._link.fec_enabled,
            tail_length=self._link.tail_length,
            max_payload=limit,
        )
        self._tx_frames.append(bits)
        return True

    def send_command(self, command: Command) -> bool:
        return self._commands.put(command)

    def poll_events(self, limit: Optional[int] = None) -> List[Event]:
        return self._events.drain(limit)

    def push_tx_block(self, t_ms: int) -> Int16Block:
        out = np.zeros(self.BLK, dtype=np.float32)
        filled = 0
        while filled < self.BLK:
            if self._tx_wave.size == 0:
                if not self._tx_frames:
                    break
                self._tx_wave = self._render(self._tx_frames.popleft(), self._tx_index + filled)
                continue
            n = min(self.BLK - filled, self._tx_wave.size)
            out[filled:filled + n] = self._tx_wave[:n]
            self._tx_wave = self._tx_wave[n:]
            filled += n
        self._tx_index += self.BLK
        return np.clip(np.round(out * self.FULL_SCALE), -32767, 32767).astype(np.int16)

    def pull_rx_block(self, pcm: SampleBlock, t_ms: int) -> None:
        self._apply_commands()
        samples = np.asarray(pcm)
        if samples.dtype.kind in "iu":
            samples = samples.astype(np.float32) / 32768.0
        for event in self._demod.process_block(samples):
            self._events.put(event)

    # ---------------------------------------------------------------- helpers
    def _render(self, bits: np.ndarray, start_index: int) -> np.ndarray:
        # phase of the sample before start_index, so TX stays aligned with the receiver's NCO
        phase = math.fmod(self._mod.phase_step * start_index, 2.0 * math.pi)
        wave, _ = self._mod.modulate(bits, phase)
        return wave

    def _apply_commands(self) -> None:
        for command in self._commands.drain():
            match command:
                case Configure(link=link):
                    self.configure(link)
                case Reset():
                    self.reset()
                case _:
                    self.log("warning", f"[Modem] unknown command {command!r}")
