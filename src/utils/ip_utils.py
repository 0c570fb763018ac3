"""IP address utilities for whitelist zone queries."""

import ipaddress
import re


# Four leading numeric labels, e.g. "4.3.2.1.list.dnswl.org"
_IP_PREFIX_RE = re.compile(r"(?:\d+\.){4}(.*)")


def is_valid_ipv4(ip: str) -> bool:
    """Validate if string is a valid IPv4 address.

    Args:
        ip: IP address string to validate.

    Returns:
        bool: True if valid IPv4, False otherwise.

    Examples:
        >>> is_valid_ipv4("203.0.113.45")
        True
        >>> is_valid_ipv4("256.0.0.1")
        False
        >>> is_valid_ipv4("::1")
        False
    """
    try:
        addr = ipaddress.ip_address(ip)
        return isinstance(addr, ipaddress.IPv4Address)
    except ValueError:
        return False


def reverse_ip(ip: str) -> str:
    """Convert IPv4 address to reversed-octet form for zone queries.

    Whitelist zones are queried the same way as DNSBLs. For example:
    203.0.113.45 becomes 45.113.0.203

    Args:
        ip: IPv4 address in dotted-quad format.

    Returns:
        str: Reversed IP address.

    Raises:
        ValueError: If IP is not a valid IPv4 address.

    Examples:
        >>> reverse_ip("203.0.113.45")
        '45.113.0.203'
    """
    if not is_valid_ipv4(ip):
        raise ValueError(f"Invalid IPv4 address: {ip}")

    octets = ip.split(".")
    return ".".join(reversed(octets))


def build_query_name(ip: str, zone: str) -> str:
    """Build the query name for one whitelist zone.

    Args:
        ip: IPv4 address to check.
        zone: Whitelist zone domain (e.g., "list.dnswl.org").

    Returns:
        str: Query name (e.g., "45.113.0.203.list.dnswl.org").

    Raises:
        ValueError: If IP is invalid or zone is empty.

    Examples:
        >>> build_query_name("1.2.3.4", "a.example")
        '4.3.2.1.a.example'
    """
    if not zone:
        raise ValueError("Whitelist zone cannot be empty")

    return f"{reverse_ip(ip)}.{zone}"


def strip_ip_prefix(name: str) -> str:
    """Strip a leading dotted-quad from a record name.

    Used to turn "4.3.2.1.list.dnswl.org" into the zone label
    "list.dnswl.org". Names without such a prefix are returned verbatim.

    Examples:
        >>> strip_ip_prefix("4.3.2.1.list.dnswl.org")
        'list.dnswl.org'
        >>> strip_ip_prefix("list.dnswl.org")
        'list.dnswl.org'
    """
    match = _IP_PREFIX_RE.match(name)
    if match:
        return match.group(1)
    return name
