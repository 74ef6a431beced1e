"""
Text rendering of connections and message headers.

All functions here are pure: unknown or empty fields are left out of the
output and never raise.
"""

from typing import List, Optional, Union

from .models import (DEFAULT_ADDRESS_MAX_WIDTH, UNIX_SOCKET_PREFIX, Endpoint,
                     is_known)

ELLIPSIS = "..."


def backslashify(data: Union[str, bytes]) -> str:
    """
    Escape control and non-ASCII bytes as \\xNN for safe terminal display.

    Printable ASCII passes through untouched. A str is UTF-8 encoded first.
    """
    if isinstance(data, str):
        data = data.encode("utf-8")
    out = []
    for byte in data:
        if byte < 0x20 or byte >= 0x7f:
            out.append(f"\\x{byte:02x}")
        else:
            out.append(chr(byte))
    return "".join(out)


def describe_address(endpoint: Endpoint, max_width: int = DEFAULT_ADDRESS_MAX_WIDTH) -> str:
    """
    Render an endpoint for display.

    Local socket paths that would not fit in max_width (once the socket
    prefix and a terminator are reserved) are cut and suffixed with "...".
    """
    description = str(endpoint)
    if endpoint.is_local:
        limit = max_width - len(UNIX_SOCKET_PREFIX) - 1
        if len(description) >= limit:
            return description[:limit] + ELLIPSIS
    return description


def describe_connection(
    from_: Endpoint,
    to: Endpoint,
    protocol: Optional[str],
    max_width: int = DEFAULT_ADDRESS_MAX_WIDTH
) -> str:
    """
    Render "<from> -> <to> (<protocol>)", leaving out what is unknown.

    Args:
        from_: Source endpoint
        to: Destination endpoint
        protocol: Protocol name, None or "unknown" if not known
        max_width: Display width available for one local socket path

    Returns:
        The connection line, or "" when both endpoints are empty
    """
    if from_.is_empty and to.is_empty:
        return ""

    addresses = [
        describe_address(endpoint, max_width)
        for endpoint in (from_, to)
        if not endpoint.is_empty
    ]
    out = " -> ".join(addresses)
    if is_known(protocol):
        out += f" ({protocol})"
    return out


def describe_header(
    operation: Optional[str],
    result: Optional[str],
    key: Union[str, bytes, None]
) -> str:
    """
    Render "<operation> <result> <key>", leaving out what is unknown or empty.

    The key is escaped with backslashify.
    """
    parts: List[str] = []
    if is_known(operation):
        parts.append(operation)
    if is_known(result):
        parts.append(result)
    if key:
        parts.append(backslashify(key))
    return " ".join(parts)
