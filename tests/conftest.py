"""
Pytest configuration for wisp tests.

This file provides fixtures and utilities for testing.
"""
import pytest
import sys
from pathlib import Path

import numpy as np

# Ensure wisp package is importable
sys.path.insert(0, str(Path(__file__).parent.parent))


@pytest.fixture
def rng():
    """Seeded generator so random payloads are reproducible."""
    return np.random.default_rng(20240611)


@pytest.fixture
def loopback():
    """
    Run one payload from a TX modem into an RX modem + engine.

    Idle blocks go through first so the preamble correlator starts from a
    full window, as it would on a live link.
    """
    from wisp.config import LinkConfig
    from wisp.engine import WispEngine
    from wisp.modems.bpsk import BpskModem

    def _run(payload, link=None, tx_link=None, channel=None, idle_blocks=80, max_blocks=800):
        link = link or LinkConfig()
        tx = BpskModem(link=tx_link or link)
        rx = BpskModem(link=link)
        engine = WispEngine(rx)
        channel = channel or (lambda blk: blk)
        events = []

        t = 0
        for _ in range(idle_blocks):
            rx.pull_rx_block(channel(tx.push_tx_block(t)), t)
            events.extend(engine.poll())
            t += 1

        assert tx.tx_enqueue(payload)
        for _ in range(max_blocks):
            rx.pull_rx_block(channel(tx.push_tx_block(t)), t)
            events.extend(engine.poll())
            t += 1
            if engine.received:
                break
        return engine, rx, events

    return _run
