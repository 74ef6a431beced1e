"""
Data models for the kvtap message printer.

This module contains the core data structures used throughout the application
for representing endpoints, decoded protocol events, filter settings and
session outcomes.
"""

import ipaddress
from dataclasses import dataclass, field
from enum import Enum
from typing import List, NamedTuple, Optional, Sequence, Union


IPAddress = Union[ipaddress.IPv4Address, ipaddress.IPv6Address]
Buffer = Union[bytes, bytearray, memoryview]

UNKNOWN = "unknown"

# Prefix a display layer reserves in front of a local socket path
UNIX_SOCKET_PREFIX = "U:"
DEFAULT_ADDRESS_MAX_WIDTH = 40


class ConfigurationError(ValueError):
    """Raised when the printer is configured in a way it cannot honor."""


class SessionSignal(Enum):
    """Outcome of counting one printed message."""
    CONTINUE = "continue"
    WINDOW_CLOSED = "window_closed"
    STOP = "stop"


def is_known(name: Optional[str]) -> bool:
    """Check if an operation, result or protocol name carries information."""
    return bool(name) and name != UNKNOWN


@dataclass(frozen=True)
class Endpoint:
    """
    One side of a captured connection.

    An endpoint is either empty, an IP address with a port, or a local
    (unix socket) path. The port is only meaningful for IP endpoints.
    """
    ip: Optional[IPAddress] = None
    path: Optional[str] = None
    port: int = 0

    @classmethod
    def from_ip(cls, host: Union[str, IPAddress], port: int = 0) -> "Endpoint":
        """Build an IP endpoint, raising ValueError for a malformed address or port."""
        if not 0 <= port <= 65535:
            raise ValueError(f"port out of range: {port}")
        return cls(ip=ipaddress.ip_address(host), port=port)

    @classmethod
    def from_path(cls, path: str) -> "Endpoint":
        """Build a local socket endpoint."""
        return cls(path=path)

    @classmethod
    def parse(cls, text: Optional[str]) -> "Endpoint":
        """
        Parse the textual endpoint forms used by decoded event streams.

        Accepted forms are "" (empty), "host:port", "[v6addr]:port", a bare
        IP address, and "unix:/some/path".

        Raises:
            ValueError: If the text is not one of the accepted forms
        """
        if not text:
            return cls()
        if text.startswith("unix:"):
            path = text[len("unix:"):]
            return cls.from_path(path) if path else cls()
        if text.startswith("["):
            host, sep, port = text[1:].partition("]:")
            if not sep:
                return cls.from_ip(text.strip("[]"))
            return cls.from_ip(host, int(port))
        if text.count(":") == 1:
            host, _, port = text.partition(":")
            return cls.from_ip(host, int(port))
        return cls.from_ip(text)

    @property
    def is_empty(self) -> bool:
        return self.ip is None and self.path is None

    @property
    def is_local(self) -> bool:
        return self.path is not None

    def __str__(self) -> str:
        if self.ip is not None:
            if self.ip.version == 6:
                return f"[{self.ip}]:{self.port}"
            return f"{self.ip}:{self.port}"
        return self.path or ""


@dataclass(frozen=True)
class FilterCriteria:
    """
    Display-time endpoint filter settings.

    A host of None and a port of 0 mean "unset"; with both unset every
    endpoint pair passes.
    """
    host: Optional[IPAddress] = None
    port: int = 0

    @classmethod
    def from_options(cls, host: Optional[str] = None, port: int = 0) -> "FilterCriteria":
        """
        Build criteria from user supplied values.

        Raises:
            ConfigurationError: If the host is not an IP address or the port
                is out of range
        """
        expected_ip = None
        if host:
            try:
                expected_ip = ipaddress.ip_address(host)
            except ValueError as e:
                raise ConfigurationError(f"Invalid host address: {host!r}") from e
        if not 0 <= port <= 65535:
            raise ConfigurationError(f"Invalid port: {port}")
        return cls(host=expected_ip, port=port)

    @property
    def is_unset(self) -> bool:
        return self.host is None and self.port == 0


class MatchSpan(NamedTuple):
    """One occurrence of a search pattern: zero-based offset and length."""
    offset: int
    length: int

    @property
    def end(self) -> int:
        return self.offset + self.length


@dataclass
class MessageHeader:
    """Operation, result and key of one protocol message."""
    operation: Optional[str] = UNKNOWN
    result: Optional[str] = UNKNOWN
    key: Union[str, bytes] = b""

    def describe(self) -> str:
        from .formatter import describe_header
        return describe_header(self.operation, self.result, self.key)


@dataclass
class ConnectionDescriptor:
    """Endpoint pair and protocol of one protocol message."""
    from_: Endpoint = field(default_factory=Endpoint)
    to: Endpoint = field(default_factory=Endpoint)
    protocol: Optional[str] = UNKNOWN

    def describe(self, max_width: int = DEFAULT_ADDRESS_MAX_WIDTH) -> str:
        from .formatter import describe_connection
        return describe_connection(self.from_, self.to, self.protocol, max_width)


@dataclass
class DecodedEvent:
    """
    A protocol message as handed over by the decoding layer.

    The raw segments, when present, are the exact wire bytes of the message.
    """
    from_: Endpoint = field(default_factory=Endpoint)
    to: Endpoint = field(default_factory=Endpoint)
    protocol: Optional[str] = UNKNOWN
    operation: Optional[str] = UNKNOWN
    result: Optional[str] = UNKNOWN
    key: Union[str, bytes] = b""
    value: Optional[Union[str, bytes]] = None
    raw: Optional[Sequence[Buffer]] = None

    @property
    def connection(self) -> ConnectionDescriptor:
        return ConnectionDescriptor(self.from_, self.to, self.protocol)

    @property
    def header(self) -> MessageHeader:
        return MessageHeader(self.operation, self.result, self.key)

    @property
    def value_size(self) -> int:
        if self.value is None:
            return 0
        if isinstance(self.value, str):
            return len(self.value.encode("utf-8"))
        return len(self.value)


@dataclass
class PrinterOptions:
    """
    Display and session settings of a message printer.

    Counts and sizes of 0 mean "unset"/"unbounded".
    """
    max_messages: int = 0
    num_after_match: int = 0
    disable_color: bool = False
    raw: bool = False
    quiet: bool = False
    pattern: Optional[str] = None
    ignore_case: bool = False
    invert_match: bool = False
    value_min_size: int = 0
    value_max_size: int = 0
    address_max_width: int = DEFAULT_ADDRESS_MAX_WIDTH

    def validate(self) -> None:
        """
        Reject settings the printer cannot honor.

        Raises:
            ConfigurationError: On negative counts or sizes, an inverted size
                range, or an address width too narrow for the socket prefix
        """
        errors: List[str] = []
        if self.max_messages < 0:
            errors.append(f"max_messages must be >= 0, got {self.max_messages}")
        if self.num_after_match < 0:
            errors.append(f"num_after_match must be >= 0, got {self.num_after_match}")
        if self.value_min_size < 0 or self.value_max_size < 0:
            errors.append("value size bounds must be >= 0")
        elif self.value_max_size and self.value_min_size > self.value_max_size:
            errors.append(
                f"value_min_size ({self.value_min_size}) exceeds "
                f"value_max_size ({self.value_max_size})"
            )
        if self.address_max_width <= len(UNIX_SOCKET_PREFIX) + 1:
            errors.append(f"address_max_width too small: {self.address_max_width}")
        if errors:
            raise ConfigurationError("; ".join(errors))


# Styles used by the formatted output path
STYLES = {
    "connection": "bold white",
    "header": "yellow",
    "value": "white",
    "match": "bold black on yellow",
}
