from __future__ import annotations
from typing import Protocol, Optional, Union, runtime_checkable
from dataclasses import dataclass
import numpy as np
import numpy.typing as npt

from ..channel import BackpressurePolicy
from ..config import LinkConfig
from ..protocol.events import Event
from ..protocol.commands import Command

Int16Block = npt.NDArray[np.int16]  # Must be C-contiguous, length==block_size
Float32Block = npt.NDArray[np.float32]
SampleBlock = Union[Int16Block, Float32Block]

@dataclass(frozen=True)
class ModemConfig:
    sample_rate_hz: int = 48_000
    block_size: int = 128           # one AudioWorklet render quantum
    max_tx_frames: int = 64
    max_rx_events: int = 256
    max_commands: int = 16
    backpressure: BackpressurePolicy = BackpressurePolicy.DROP_OLDEST
    abi_version: int = 1

@runtime_checkable
class IModem(Protocol):
    """
    Non-blocking modem endpoint that lives in the audio context.
    Audio cadence is driven by the host via push_tx_block()/pull_rx_block().
    Commands flow in through send_command(); events flow out through poll_events().
    """

    # ---- Capability / lifecycle ----
    def configure(self, link: LinkConfig) -> None: ...
    def reset(self) -> None: ...
    def close(self) -> None: ...

    # ---- App frames (bytes) ----
    # Returns True if enqueued, False if dropped due to backpressure.
    def tx_enqueue(self, frame: bytes) -> bool: ...

    # ---- Control channel ----
    def send_command(self, command: Command) -> bool: ...
    # Dequeues up to `limit` events (or all if None).
    def poll_events(self, limit: Optional[int] = None) -> list[Event]: ...

    # ---- AudioBlock API ----
    # Must return a C-contiguous int16 array of length == cfg.block_size.
    def push_tx_block(self, t_ms: int) -> Int16Block: ...
    # Accepts int16 PCM or float32 samples in [-1, 1].
    def pull_rx_block(self, pcm: SampleBlock, t_ms: int) -> None: ...
