"""
kvtap - Traffic inspector core for key-value cache protocols.

Decides which decoded protocol messages to show, renders them as readable
text with optional regex highlighting, echoes raw bytes in raw mode, and
tells the caller when a bounded capture session should stop.
"""

__version__ = "0.1.0"
__author__ = "kvtap Contributors"
__email__ = "contributors@kvtap.example.com"

from . import models
from .endpoint_filter import matches
from .formatter import describe_connection, describe_header
from .message_printer import MessagePrinter
from .pattern_matcher import find_all
from .session import SessionState

__all__ = [
    "models",
    "MessagePrinter",
    "SessionState",
    "matches",
    "describe_connection",
    "describe_header",
    "find_all",
    "__version__",
]
