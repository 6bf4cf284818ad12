"""
Encode text to a WAV file, or decode the frames carried by one.

    python tools/wav_modem.py encode out.wav "hello world" [--fec]
    python tools/wav_modem.py decode in.wav [--fec]

Link settings can also come from WISP_MODEM_CFG (JSON object).
"""
import argparse
import json
import logging
import sys
from pathlib import Path

import numpy as np
from scipy.io import wavfile

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from wisp import AudioStack, stdlib_logger  # noqa: E402

LEAD_IN_S = 0.25
LEAD_OUT_S = 0.25


def build_stack(args) -> AudioStack:
    cfg = {"sample_rate_hz": args.rate, "block_size": args.block, "fec_enabled": args.fec}
    if args.cfg:
        cfg.update(json.loads(args.cfg))
    return AudioStack("bpsk", cfg, logger=stdlib_logger())


def encode(args) -> int:
    stack = build_stack(args)
    blk = stack.modem.cfg.block_size
    sr = stack.modem.cfg.sample_rate_hz
    for text in args.text:
        stack.queue_text(text)

    blocks = []
    t_ms = 0
    lead_in = int(LEAD_IN_S * sr / blk) + 1
    for _ in range(lead_in):
        blocks.append(np.zeros(blk, dtype=np.int16))
    while stack.modem.tx_pending:
        blocks.append(stack.pull_tx_block(t_ms))
        t_ms += int(1000 * blk / sr)
    for _ in range(int(LEAD_OUT_S * sr / blk) + 1):
        blocks.append(np.zeros(blk, dtype=np.int16))

    audio = np.concatenate(blocks)
    wavfile.write(str(args.wav), sr, audio)
    print(f"wrote {len(audio)} samples ({len(audio) / sr:.2f}s) to {args.wav}")
    return 0


def decode(args) -> int:
    sr, audio = wavfile.read(str(args.wav))
    if audio.ndim > 1:
        audio = audio[:, 0]
    if audio.dtype == np.int16:
        samples = audio.astype(np.float32) / 32768.0
    elif audio.dtype.kind == "f":
        samples = audio.astype(np.float32)
    else:
        samples = audio.astype(np.float32) / float(np.iinfo(audio.dtype).max)

    args.rate = int(sr)
    stack = build_stack(args)
    blk = stack.modem.cfg.block_size

    texts = []
    pad = (-len(samples)) % blk
    samples = np.concatenate((samples, np.zeros(pad, dtype=np.float32)))
    for k in range(0, len(samples), blk):
        stack.push_rx_block(samples[k:k + blk], int(1000 * k / sr))
        texts.extend(stack.pop_received_texts())

    for text in texts:
        print(text)
    return 0 if texts else 1


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Near-ultrasonic BPSK text modem over WAV files")
    parser.add_argument("-v", "--verbose", action="store_true")
    sub = parser.add_subparsers(dest="cmd", required=True)

    for name in ("encode", "decode"):
        p = sub.add_parser(name)
        p.add_argument("wav", type=Path)
        if name == "encode":
            p.add_argument("text", nargs="+")
            p.add_argument("--rate", type=int, default=48_000)
        p.add_argument("--block", type=int, default=128)
        p.add_argument("--fec", action="store_true")
        p.add_argument("--cfg", help="JSON object of link settings")

    args = parser.parse_args(argv)
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING,
                        format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    return encode(args) if args.cmd == "encode" else decode(args)


if __name__ == "__main__":
    sys.exit(main())
