"""
Commands flow inward, from the control context to the audio context.

The modem applies a command between two sample blocks, so a configuration
change never lands halfway through a block.
"""
from __future__ import annotations

from dataclasses import dataclass, field

from ..config import LinkConfig


@dataclass(frozen=True)
class Command:
    """Base class for all modem commands."""
    pass


@dataclass(frozen=True)
class Configure(Command):
    """Replace the link configuration; forces a full state reset."""
    link: LinkConfig = field(default_factory=LinkConfig)


@dataclass(frozen=True)
class Reset(Command):
    """Drop all receive state (lock, partial frame, buffers)."""
    pass
