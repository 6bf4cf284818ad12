from __future__ import annotations

from dataclasses import replace
from typing import Callable, Optional

from ..codec.bits import BitsLike
from ..config import LinkConfig
from .events import Event
from .machine import FrameSync
from .state import SyncState


class FrameSynchronizer:
    """Owns a SyncState for one listening session and steps it with incoming bits."""

    def __init__(self,
                 link: Optional[LinkConfig] = None,
                 logger: Optional[Callable[[str, object], None]] = None) -> None:
        self.log = logger or (lambda level, payload: None)
        self._state = SyncState()
        self.configure(link or LinkConfig())

    @property
    def state(self) -> SyncState:
        return self._state

    @property
    def synced(self) -> bool:
        return self._state.synced

    def configure(self, link: LinkConfig) -> None:
        self._state = SyncState(
            fec=link.fec_enabled,
            max_payload=link.max_payload,
            resolve_polarity=link.resolve_polarity,
        )

    def reset(self) -> None:
        s = self._state
        self._state = replace(SyncState(), fec=s.fec, max_payload=s.max_payload,
                              resolve_polarity=s.resolve_polarity)

    def feed(self, bits: BitsLike) -> list[Event]:
        self._state, events = FrameSync.step(self._state, bits)
        for event in events:
            self.log("debug", f"[Sync] {event}")
        return events
