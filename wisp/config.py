"""
Link configuration.

LinkConfig enumerates every tunable of the BPSK link with its default and
its allowed range. Values are clamped, never rejected: a configuration
change always yields a usable link and a full state reset.
"""
from __future__ import annotations

from dataclasses import dataclass, fields, replace
from typing import Any, Mapping
import json
import math
import os

ENV_VAR = "WISP_MODEM_CFG"

# field -> (lo, hi)
RANGES: dict[str, tuple[float, float]] = {
    "carrier_hz": (15_000.0, 21_000.0),
    "symbol_rate": (100.0, 1_500.0),
    "preamble_length": (16, 512),
    "lock_threshold": (0.1, 0.95),
    "low_pass_factor": (0.5, 4.0),
    "low_pass_floor_hz": (150.0, 300.0),
    "holdoff_symbols": (0, 64),
    "mf_span_symbols": (1.0, 4.0),
    "max_freq_offset_hz": (50.0, 1_000.0),
    "amplitude": (0.01, 0.9),
    "tail_length": (0, 64),
    "max_payload": (1, 255),
    "timing_gain": (0.0, 0.1),
}


@dataclass(frozen=True)
class LinkConfig:
    carrier_hz: float = 18_000.0
    symbol_rate: float = 500.0
    preamble_length: int = 80
    lock_threshold: float = 0.6
    low_pass_factor: float = 2.2
    low_pass_floor_hz: float = 300.0
    holdoff_symbols: int = 6
    mf_span_symbols: float = 1.5
    max_freq_offset_hz: float = 600.0
    amplitude: float = 0.2
    tail_length: int = 10
    max_payload: int = 255
    fec_enabled: bool = False
    timing_recovery: bool = False
    timing_gain: float = 0.01
    resolve_polarity: bool = True

    def clamped(self) -> "LinkConfig":
        changes: dict[str, Any] = {}
        for name, (lo, hi) in RANGES.items():
            value = getattr(self, name)
            if isinstance(value, float) and not math.isfinite(value):
                value = getattr(LinkConfig, name)
            cast = type(getattr(LinkConfig, name))
            changes[name] = cast(min(hi, max(lo, cast(value))))
        return replace(self, **changes)

    @classmethod
    def from_dict(cls, d: Mapping[str, Any] | None) -> "LinkConfig":
        """Build from a plain dict; unknown keys and unconvertible values are ignored."""
        known = {f.name: f for f in fields(cls)}
        kwargs: dict[str, Any] = {}
        for key, value in (d or {}).items():
            if key not in known or value is None:
                continue
            default = getattr(cls, key)
            try:
                kwargs[key] = _coerce_bool(value) if isinstance(default, bool) else type(default)(value)
            except (TypeError, ValueError, OverflowError):
                # unusable value keeps the default
                continue
        return cls(**kwargs).clamped()

    def to_dict(self) -> dict[str, Any]:
        return {f.name: getattr(self, f.name) for f in fields(self)}


def _coerce_bool(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in {"1", "true", "yes", "on"}
    return bool(value)


def merged_cfg(base: Mapping[str, Any] | None, env_var: str = ENV_VAR) -> dict:
    """Merge a base cfg dict with an optional JSON object from ``env_var``."""
    cfg: dict = dict(base or {})
    env_cfg = os.environ.get(env_var)
    if not env_cfg:
        return cfg
    try:
        parsed = json.loads(env_cfg)
    except json.JSONDecodeError:
        return cfg
    if isinstance(parsed, dict):
        cfg.update(parsed)
    return cfg


__all__ = ["ENV_VAR", "RANGES", "LinkConfig", "merged_cfg"]
