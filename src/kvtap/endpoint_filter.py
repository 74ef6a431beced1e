"""
Endpoint filtering for decoded messages.

Address and port filtering here is a display-time decision made after the
message has been decoded.
"""

from typing import Optional

from .models import Endpoint, FilterCriteria, IPAddress


def normalize_ip(ip: IPAddress) -> IPAddress:
    """Map an IPv4-mapped IPv6 address (::ffff:a.b.c.d) to plain IPv4."""
    return getattr(ip, "ipv4_mapped", None) or ip


def match_ip_address(expected_ip: IPAddress, endpoint: Endpoint) -> bool:
    """Check if a non-empty endpoint carries the expected IP address."""
    if endpoint.is_empty or endpoint.ip is None:
        return False
    return normalize_ip(endpoint.ip) == normalize_ip(expected_ip)


def match_port(expected_port: int, endpoint: Endpoint) -> bool:
    """Check if a non-empty endpoint carries the expected port."""
    return not endpoint.is_empty and endpoint.port == expected_port


def matches(from_: Endpoint, to: Endpoint, criteria: Optional[FilterCriteria]) -> bool:
    """
    Decide whether an endpoint pair satisfies the filter criteria.

    Each configured criterion must be met by at least one side of the pair;
    unset criteria never disqualify.

    Args:
        from_: Source endpoint
        to: Destination endpoint
        criteria: Expected host and port, None meaning no filtering

    Returns:
        True if the pair passes every configured criterion
    """
    if criteria is None:
        return True
    if (criteria.host is not None
            and not match_ip_address(criteria.host, from_)
            and not match_ip_address(criteria.host, to)):
        return False
    if (criteria.port != 0
            and not match_port(criteria.port, from_)
            and not match_port(criteria.port, to)):
        return False
    return True
