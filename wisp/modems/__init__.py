from .imodem import BackpressurePolicy, IModem, ModemConfig
from .bpsk import BpskModem

__all__ = [
    "BackpressurePolicy",
    "IModem",
    "ModemConfig",
    "BpskModem",
]
