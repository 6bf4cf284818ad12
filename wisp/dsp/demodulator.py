"""
Coherent BPSK receiver.

Per sample: NCO mix -> one-pole I/Q low-pass -> AGC -> Costas loop ->
matched-filter ring buffer -> fractional symbol clock. At each decision
instant the matched filter is evaluated, a hard decision is taken and the
preamble correlator decides whether the receiver is locked.

While locked, hard bits (after the holdoff) are batched and emitted as a
single ``Bits`` event per processed block.
"""
from __future__ import annotations

from collections import deque
from dataclasses import dataclass, field
from typing import Callable, Deque, Optional
import math
import time

import numpy as np

from ..codec import frame as framing
from ..config import LinkConfig
from ..protocol.events import (
    Event,
    Locked,
    Unlocked,
    Bits,
    PllReport,
    DelayReport,
)
from .filters import hann_taps, one_pole_alpha

TWO_PI = 2.0 * math.pi


def ring_dot(buf: np.ndarray, pos: int, taps_rev: np.ndarray) -> float:
    """Dot product of a ring buffer read oldest-first from ``pos`` with ``taps_rev``."""
    split = len(buf) - pos
    return float(np.dot(buf[pos:], taps_rev[:split]) + np.dot(buf[:pos], taps_rev[split:]))


@dataclass
class DemodState:
    """Mutable receive state; replaced wholesale on reset/configure."""
    phase: float = 0.0
    freq_corr: float = 0.0          # rad/sample
    lp_i: float = 0.0
    lp_q: float = 0.0
    env: float = 1e-3
    mf_buf: np.ndarray = field(default_factory=lambda: np.zeros(0))
    mf_pos: int = 0
    time_acc: float = 0.0
    locked: bool = False
    holdoff: int = 0
    signs: Deque[int] = field(default_factory=deque)
    collapse_run: int = 0
    mid_taken: bool = False
    y_mid: float = 0.0
    y_prev: float = 0.0
    samples: int = 0
    blocks: int = 0
    started_at: Optional[float] = None


class BpskDemodulator:
    AGC_CUTOFF_HZ: float = 20.0
    AGC_FLOOR: float = 1e-4
    ENV_INIT: float = 1e-3
    PLL_ALPHA: float = 2e-4
    PLL_BETA: float = 5e-7
    PLL_ERROR_LIMIT: float = 1.0
    TIMING_STEP_LIMIT: float = 0.05   # fraction of a symbol per decision
    PLL_REPORT_BLOCKS: int = 256
    DELAY_REPORT_BLOCKS: int = 1024

    def __init__(self,
                 sample_rate_hz: int = 48_000,
                 link: Optional[LinkConfig] = None,
                 logger: Optional[Callable[[str, object], None]] = None,
                 clock: Callable[[], float] = time.monotonic) -> None:
        self.log = logger or (lambda level, payload: None)
        self.SR = int(sample_rate_hz)
        self._clock = clock
        self.configure(link or LinkConfig())

    # ---------------------------------------------------------------- public
    def configure(self, link: LinkConfig) -> None:
        self.link = link
        sr = float(self.SR)
        self.sps = sr / link.symbol_rate
        self.phase_step = TWO_PI * link.carrier_hz / sr
        self.max_freq_corr = TWO_PI * link.max_freq_offset_hz / sr
        self.lp_cutoff_hz = max(link.low_pass_floor_hz, link.symbol_rate * link.low_pass_factor)
        self.lp_alpha = one_pole_alpha(self.lp_cutoff_hz, sr)
        self.agc_alpha = one_pole_alpha(self.AGC_CUTOFF_HZ, sr)
        self.taps = hann_taps(int(round(link.mf_span_symbols * self.sps)))
        # ring buffer is read oldest -> newest, so the taps are applied reversed
        self._taps_rev = self.taps[::-1].copy()
        self.reference = [1 if k % 2 == 0 else -1 for k in range(link.preamble_length)]
        self.unlock_threshold = link.lock_threshold / 2.0
        self.collapse_limit = (
            framing.max_frame_bits(link.fec_enabled, link.max_payload)
            + link.tail_length
            + link.preamble_length
        )
        self.reset()

    def reset(self) -> None:
        self.state = DemodState(
            env=self.ENV_INIT,
            mf_buf=np.zeros(len(self.taps)),
            signs=deque(maxlen=self.link.preamble_length),
        )

    @property
    def locked(self) -> bool:
        return self.state.locked

    @property
    def freq_offset_hz(self) -> float:
        return self.state.freq_corr * self.SR / TWO_PI

    @property
    def gain(self) -> float:
        return 1.0 / max(self.AGC_FLOOR, self.state.env)

    def correlation(self) -> Optional[float]:
        """|normalized correlation| of the last decisions with the preamble, or None until the window fills."""
        signs = self.state.signs
        n = len(self.reference)
        if len(signs) < n:
            return None
        acc = 0
        for s, r in zip(signs, self.reference):
            acc += s * r
        return abs(acc) / n

    def process_block(self, samples: np.ndarray) -> list[Event]:
        """Run one block of samples (int16 PCM or floats in [-1, 1]) through the receiver."""
        arr = np.asarray(samples)
        if arr.dtype.kind in "iu":
            arr = arr.astype(np.float64) / 32768.0

        st = self.state
        if st.started_at is None:
            st.started_at = self._clock()

        events: list[Event] = []
        out_bits: list[int] = []

        step = self.phase_step
        lp_a = self.lp_alpha
        agc_a = self.agc_alpha
        agc_floor = self.AGC_FLOOR
        err_lim = self.PLL_ERROR_LIMIT
        alpha = self.PLL_ALPHA
        beta = self.PLL_BETA
        max_corr = self.max_freq_corr
        sps = self.sps
        half = sps / 2.0
        timing = self.link.timing_recovery
        t_gain = self.link.timing_gain * sps
        t_lim = self.TIMING_STEP_LIMIT * sps
        taps_rev = self._taps_rev
        n_taps = len(taps_rev)

        phase = st.phase
        freq_corr = st.freq_corr
        lp_i = st.lp_i
        lp_q = st.lp_q
        env = st.env
        buf = st.mf_buf
        pos = st.mf_pos
        time_acc = st.time_acc
        mid_taken = st.mid_taken
        y_mid = st.y_mid
        y_prev = st.y_prev

        cos = math.cos
        sin = math.sin
        hypot = math.hypot

        for x in arr.tolist():
            phase += step + freq_corr
            if phase >= TWO_PI:
                phase -= TWO_PI
            elif phase < 0.0:
                phase += TWO_PI

            lp_i += lp_a * (x * cos(phase) - lp_i)
            lp_q += lp_a * (-x * sin(phase) - lp_q)

            env += agc_a * (hypot(lp_i, lp_q) - env)
            g = 1.0 / (env if env > agc_floor else agc_floor)
            i_n = lp_i * g
            q_n = lp_q * g

            err = i_n * q_n
            if err > err_lim:
                err = err_lim
            elif err < -err_lim:
                err = -err_lim
            freq_corr += beta * err
            if freq_corr > max_corr:
                freq_corr = max_corr
            elif freq_corr < -max_corr:
                freq_corr = -max_corr
            phase += alpha * err

            buf[pos] = i_n
            pos += 1
            if pos == n_taps:
                pos = 0

            time_acc += 1.0
            if timing and not mid_taken and time_acc >= half:
                y_mid = ring_dot(buf, pos, taps_rev)
                mid_taken = True

            while time_acc >= sps:
                time_acc -= sps
                y = ring_dot(buf, pos, taps_rev)
                if timing:
                    e = y_mid * (y_prev - y)
                    adj = t_gain * e
                    if adj > t_lim:
                        adj = t_lim
                    elif adj < -t_lim:
                        adj = -t_lim
                    time_acc -= adj
                    mid_taken = False
                y_prev = y
                self._decide(y, freq_corr, out_bits, events)

        st.phase = phase
        st.freq_corr = freq_corr
        st.lp_i = lp_i
        st.lp_q = lp_q
        st.env = env
        st.mf_pos = pos
        st.time_acc = time_acc
        st.mid_taken = mid_taken
        st.y_mid = y_mid
        st.y_prev = y_prev
        st.samples += len(arr)
        st.blocks += 1

        if out_bits:
            events.append(Bits(bytes(out_bits)))
        self._reports(events)
        return events

    # ---------------------------------------------------------------- helpers
    def _decide(self, y: float, freq_corr: float, out_bits: list[int], events: list[Event]) -> None:
        st = self.state
        bit = 0 if y >= 0.0 else 1
        st.signs.append(1 if bit == 0 else -1)
        score = self.correlation()

        if not st.locked:
            if score is not None and score > self.link.lock_threshold:
                st.locked = True
                st.holdoff = self.link.holdoff_symbols
                st.collapse_run = 0
                offset = freq_corr * self.SR / TWO_PI
                self.log("info", f"[Demod] locked score={score:.3f} offset={offset:.1f}Hz")
                events.append(Locked(score=score, freq_offset_hz=offset))
            return

        if score is not None and score < self.unlock_threshold:
            st.collapse_run += 1
        else:
            st.collapse_run = 0
        if st.collapse_run > self.collapse_limit:
            st.locked = False
            st.collapse_run = 0
            if out_bits:
                events.append(Bits(bytes(out_bits)))
                out_bits.clear()
            self.log("info", f"[Demod] unlocked score={score:.3f}")
            events.append(Unlocked(score=score))
            return

        if st.holdoff > 0:
            st.holdoff -= 1
            return
        out_bits.append(bit)

    def _reports(self, events: list[Event]) -> None:
        st = self.state
        if st.blocks % self.PLL_REPORT_BLOCKS == 0:
            events.append(PllReport(freq_offset_hz=self.freq_offset_hz, gain=self.gain))
        if st.blocks % self.DELAY_REPORT_BLOCKS == 0 and st.started_at is not None:
            processed = st.samples / float(self.SR)
            delay = (self._clock() - st.started_at) - processed
            events.append(DelayReport(seconds=delay))
            self.log("metric", {"event": "delay", "seconds": round(delay, 4), "blocks": st.blocks})
