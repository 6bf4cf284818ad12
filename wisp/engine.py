"""
Wisp Engine - the control context.

The engine sits opposite the modem's audio context:
- Commands (Configure, Reset) are queued to the modem and mirrored on the
  frame synchronizer.
- Modem events are drained, Bits are fed to the synchronizer, and frame
  outcomes are delivered to application callbacks.

The engine never touches samples; the host drives audio through the modem
(or an AudioStack) and calls poll() whenever it wants delivery.
"""
from __future__ import annotations

from collections import deque
from typing import Callable, Deque, Optional

from .config import LinkConfig
from .modems.imodem import IModem
from .protocol import (
    Command,
    Configure,
    Reset,
    Event,
    Bits,
    Locked,
    Unlocked,
    SyncAcquired,
    FrameReceived,
    CrcError,
    InvalidLength,
    PllReport,
    DelayReport,
    FrameSynchronizer,
    event_name,
)


class WispEngine:
    """
    Runs the frame synchronizer over the modem's bit stream.

    Usage:
        engine = WispEngine(modem)
        engine.on_text = lambda text: print(f"Received: {text}")
        engine.on_event = lambda name, event: print(f"Event: {name}")

        engine.send_text("hello")
        ...
        engine.poll()
    """

    RECEIVED_LIMIT = 64

    def __init__(self,
                 modem: IModem,
                 link: Optional[LinkConfig] = None,
                 logger: Callable[[str, object], None] | None = None):
        self._modem = modem
        self._logger = logger or (lambda level, msg: None)
        self._sync = FrameSynchronizer(link or getattr(modem, "link", None), logger=self._logger)

        # oldest frames are dropped once the host stops collecting
        self.received: Deque[FrameReceived] = deque(maxlen=self.RECEIVED_LIMIT)

        # Application callbacks
        self.on_text: Callable[[str], None] | None = None
        self.on_event: Callable[[str, Event], None] | None = None

    # === Properties ===

    @property
    def modem(self) -> IModem:
        return self._modem

    @property
    def synchronizer(self) -> FrameSynchronizer:
        return self._sync

    # === Commands ===

    def execute(self, command: Command) -> bool:
        """Queue ``command`` for the audio context; the synchronizer follows only once it is accepted."""
        if not isinstance(command, (Configure, Reset)):
            self._logger("warn", f"[Engine] Unknown command: {command}")
            return False
        if not self._modem.send_command(command):
            self._logger("warn", "[Engine] Command channel full, command dropped")
            return False

        match command:
            case Configure(link=link):
                self._sync.configure(link.clamped())
                self._logger("info", f"[Engine] Configure fec={link.fec_enabled} rate={link.symbol_rate}")
            case Reset():
                self._sync.reset()
                self._logger("info", "[Engine] Reset")
        return True

    def send_text(self, text: str) -> bool:
        """Queue ``text`` for transmission; raises PayloadTooLong past the link's max_payload UTF-8 bytes."""
        return self._modem.tx_enqueue(text.encode("utf-8"))

    # === Event Draining ===

    def poll(self, limit: Optional[int] = None) -> list[Event]:
        """Drain modem events, run the synchronizer, and return everything observed."""
        observed: list[Event] = []
        for event in self._modem.poll_events(limit):
            observed.append(event)
            self._handle(event, observed)
        return observed

    def pop_received(self, limit: Optional[int] = None) -> list[FrameReceived]:
        """Take up to ``limit`` delivered frames, oldest first."""
        count = len(self.received) if limit is None else min(limit, len(self.received))
        return [self.received.popleft() for _ in range(count)]

    def _handle(self, event: Event, observed: list[Event]) -> None:
        match event:
            case Bits(bits):
                for produced in self._sync.feed(bits):
                    observed.append(produced)
                    self._deliver(produced)
                return

            case Unlocked(score):
                # a partial frame cannot continue across a lock loss
                self._sync.reset()
                self._logger("info", f"[Engine] Unlocked (score={score:.3f})")

            case Locked(score, offset):
                self._logger("info", f"[Engine] Locked (score={score:.3f}, offset={offset})")

            case PllReport() | DelayReport():
                self._logger("metric", {"event": event_name(event), **vars(event)})

            case _:
                self._logger("warn", f"[Engine] Unknown event: {event}")

        self._notify(event)

    def _deliver(self, event: Event) -> None:
        match event:
            case FrameReceived(text, payload, version):
                self.received.append(event)
                self._logger("info", f"[Engine] Frame received ({len(payload)} bytes, v{version})")
                if self.on_text:
                    self.on_text(text)

            case CrcError(expected, received):
                self._logger("warn", f"[Engine] CRC error expected={expected:#06x} received={received:#06x}")

            case InvalidLength(value):
                self._logger("warn", f"[Engine] Invalid length {value}")

            case SyncAcquired(inverted):
                self._logger("debug", f"[Engine] Sync acquired (inverted={inverted})")

        self._notify(event)

    def _notify(self, event: Event) -> None:
        if self.on_event:
            self.on_event(event_name(event), event)
