"""
wisp link protocol: event/command vocabulary and the frame synchronizer.

The FrameSync.step() function is the core: it takes a synchronizer state
and a batch of hard bits, and returns the new state and frame events.
"""
from .state import SyncState, SyncPhase
from .events import (
    Event,
    Locked,
    Unlocked,
    Bits,
    PllReport,
    DelayReport,
    SyncAcquired,
    FrameReceived,
    CrcError,
    InvalidLength,
    event_name,
)
from .commands import Command, Configure, Reset
from .machine import FrameSync
from .synchronizer import FrameSynchronizer

__all__ = [
    # State
    "SyncState",
    "SyncPhase",
    # Events
    "Event",
    "Locked",
    "Unlocked",
    "Bits",
    "PllReport",
    "DelayReport",
    "SyncAcquired",
    "FrameReceived",
    "CrcError",
    "InvalidLength",
    "event_name",
    # Commands
    "Command",
    "Configure",
    "Reset",
    # Machine
    "FrameSync",
    "FrameSynchronizer",
]
