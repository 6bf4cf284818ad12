from .audio import AudioStack
from .config import LinkConfig
from .engine import WispEngine
from .modems.bpsk import BpskModem
from .modems.imodem import ModemConfig
from .log import stdlib_logger

__all__ = [
    "AudioStack",
    "LinkConfig",
    "WispEngine",
    "BpskModem",
    "ModemConfig",
    "stdlib_logger",
]

__version__ = "0.1.0"
