# wisp/audio.py
from __future__ import annotations
from typing import Optional, Dict, Any, Type, Callable, List
import numpy as np

from .config import LinkConfig, merged_cfg
from .channel import BackpressurePolicy
from .engine import WispEngine
from .modems.imodem import IModem, ModemConfig
from .modems.bpsk import BpskModem
from .protocol import Configure, Reset, Event

# registry
_MODEMS: dict[str, Type[IModem]] = {
    "bpsk": BpskModem,
}

_MODEM_KEYS = {"sample_rate_hz", "block_size", "max_tx_frames", "max_rx_events",
               "max_commands", "backpressure", "abi_version"}


class AudioStack:
    """
    Modem-agnostic facade: block ABI in/out plus text helpers.

    One flat cfg dict (overlaid with JSON from WISP_MODEM_CFG) carries both
    block-ABI keys (sample_rate_hz, block_size, ...) and link keys
    (carrier_hz, fec_enabled, ...).
    """

    def __init__(self,
                 modem: str = "bpsk",
                 modem_cfg: Optional[Dict[str, Any]] = None,
                 logger: Optional[Callable[[str, object], None]] = None):
        self.logger = logger or (lambda lvl, payload: None)
        self.set_modem(modem, modem_cfg or {})

    # ---- modem selection / reconfiguration ----------------------------------
    def set_modem(self, name: str, cfg_dict: Dict[str, Any]) -> None:
        cls = _MODEMS.get(name.lower())
        if not cls:
            raise ValueError(f"Unsupported modem '{name}'. Available: {list(_MODEMS)}")

        cfg = merged_cfg(cfg_dict)
        mc = self._mk_modem_config(cfg)
        link = self._mk_link_config(cfg)
        self.modem: IModem = cls(cfg=mc, link=link, logger=self.logger)  # type: ignore[call-arg]
        self.modem_name = name.lower()
        self.engine = WispEngine(self.modem, link=link, logger=self.logger)
        self._link_cfg: Dict[str, Any] = link.to_dict()

    def reconfigure(self, modem: Optional[str] = None, modem_cfg: Optional[Dict[str, Any]] = None) -> None:
        """Same modem: link keys become a Configure command. Another modem: rebuild."""
        if modem is None or modem.lower() == self.modem_name:
            if modem_cfg:
                # overlay onto the last requested link so earlier settings survive
                link = self._mk_link_config(merged_cfg({**self._link_cfg, **modem_cfg}))
                if self.engine.execute(Configure(link)):
                    self._link_cfg = link.to_dict()
            return
        self.set_modem(modem, modem_cfg or {})

    def reset(self) -> None:
        self.engine.execute(Reset())

    @property
    def link(self) -> LinkConfig:
        return getattr(self.modem, "link", LinkConfig())

    # ---- block ABI ----------------------------------------------------------
    def pull_tx_block(self, t_ms: int) -> np.ndarray:
        return self.modem.push_tx_block(t_ms)

    def push_rx_block(self, pcm: np.ndarray, t_ms: int) -> List[Event]:
        self.modem.pull_rx_block(pcm, t_ms)
        return self.engine.poll()

    # ---- byte API -----------------------------------------------------------
    def tx_enqueue(self, frame: bytes) -> bool:
        return self.modem.tx_enqueue(frame)

    def pop_rx_frames(self, limit: Optional[int] = None) -> List[bytes]:
        return [f.payload for f in self.engine.pop_received(limit)]

    # ---- convenience for text-only tests -----------------------------------
    def queue_text(self, text: str) -> bool:
        return self.engine.send_text(text)

    def pop_received_texts(self, limit: Optional[int] = None) -> list[str]:
        return [p.decode("utf-8", errors="replace") for p in self.pop_rx_frames(limit)]

    # ---- helpers ------------------------------------------------------------
    def _mk_modem_config(self, d: Dict[str, Any]) -> ModemConfig:
        defaults = ModemConfig()
        bp = d.get("backpressure", defaults.backpressure)
        if isinstance(bp, str):
            bp = BackpressurePolicy[bp]
        return ModemConfig(
            sample_rate_hz=int(d.get("sample_rate_hz", defaults.sample_rate_hz)),
            block_size=int(d.get("block_size", defaults.block_size)),
            max_tx_frames=int(d.get("max_tx_frames", defaults.max_tx_frames)),
            max_rx_events=int(d.get("max_rx_events", defaults.max_rx_events)),
            max_commands=int(d.get("max_commands", defaults.max_commands)),
            backpressure=bp,  # type: ignore[arg-type]
            abi_version=int(d.get("abi_version", defaults.abi_version)),
        )

    def _mk_link_config(self, d: Dict[str, Any]) -> LinkConfig:
        return LinkConfig.from_dict({k: v for k, v in d.items() if k not in _MODEM_KEYS})
