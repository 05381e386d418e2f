"""Address utility functions for consistent address handling across the provider.

This module centralizes the conversions between the representations the
kernel uses (little-endian hex, colon-separated MAC text) and the ones the
MIB tables use (dotted-decimal strings, raw octet strings, instance
sub-identifiers).
"""

import ipaddress
from typing import Optional, Tuple

from linux_mib.errors import FormatError

ZERO_MAC = bytes(6)


def hex_to_ipv4(hex_str: str) -> str:
    """Convert a reversed-byte-order hex IPv4 address to dotted-decimal.

    The kernel writes addresses in /proc/net/route, /proc/net/tcp and
    /proc/net/udp in host (little-endian) byte order.

    Args:
        hex_str: Up to 8 hex digits, left-padded with zeros if shorter

    Returns:
        Dotted-decimal IPv4 address string

    Examples:
        >>> hex_to_ipv4("0101A8C0")
        '192.168.1.1'
        >>> hex_to_ipv4("0100007F")
        '127.0.0.1'
    """
    hex_str = hex_str.strip().zfill(8)
    if len(hex_str) != 8:
        raise FormatError(f"Not a hex IPv4 address: {hex_str!r}")
    try:
        octets = [int(hex_str[i : i + 2], 16) for i in range(0, 8, 2)]
    except ValueError as e:
        raise FormatError(f"Not a hex IPv4 address: {hex_str!r}") from e
    octets.reverse()
    return ".".join(str(octet) for octet in octets)


def hex_to_endpoint(hex_str: str) -> Tuple[str, int]:
    """Convert a kernel "ADDR:PORT" hex pair to (dotted-decimal, port).

    The address half is byte-reversed; the port half is plain big-endian hex.

    Examples:
        >>> hex_to_endpoint("0100007F:0277")
        ('127.0.0.1', 631)
    """
    addr, sep, port = hex_str.partition(":")
    if not sep:
        raise FormatError(f"Not a hex ADDR:PORT pair: {hex_str!r}")
    try:
        port_number = int(port, 16)
    except ValueError as e:
        raise FormatError(f"Not a hex port: {port!r}") from e
    return hex_to_ipv4(addr), port_number


def mac_to_bytes(mac: Optional[str]) -> bytes:
    """Convert "aa:bb:cc:dd:ee:ff" to 6 raw octets, zero-filled if absent.

    Anything that is not a 6-octet hardware address (tunnels, serial
    lines, an empty sysfs file) yields six zero octets.
    """
    if not mac:
        return ZERO_MAC
    parts = mac.strip().replace("-", ":").split(":")
    if len(parts) != 6:
        return ZERO_MAC
    try:
        return bytes(int(part, 16) for part in parts)
    except ValueError:
        return ZERO_MAC


def ipv4_to_subids(address: str) -> Tuple[int, ...]:
    """Return the four octets of an IPv4 address as OID sub-identifiers."""
    return tuple(ipaddress.IPv4Address(address).packed)


def ipv6_to_bytes(address: str) -> bytes:
    """Return the 16 octets of an IPv6 address, ignoring any %scope suffix."""
    return ipaddress.IPv6Address(strip_scope(address)).packed


def strip_scope(address: str) -> str:
    """Strip a "%eth0" zone suffix from an IPv6 address."""
    return address.split("%", 1)[0]


def prefix_length(netmask: Optional[str]) -> int:
    """Count the network bits of an IPv4 or IPv6 netmask.

    Examples:
        >>> prefix_length("255.255.255.0")
        24
        >>> prefix_length("ffff:ffff:ffff:ffff::")
        64
    """
    if not netmask:
        return 0
    return bin(int(ipaddress.ip_address(netmask))).count("1")


def broadcast_bit(address: str, netmask: str) -> int:
    """Least-significant bit of the broadcast address for address/netmask.

    This is the value RFC1213 defines for ipAdEntBcastAddr: 1 when the
    all-ones broadcast convention is in use on the subnet.
    """
    network = ipaddress.IPv4Network(f"{address}/{netmask}", strict=False)
    return int(network.broadcast_address) & 1
