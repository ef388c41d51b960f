"""
Normalized IPv4/IPv6 address values

Every address is stored as a 128-bit integer. IPv4 addresses are mapped into
the IPv6 space (::ffff:a.b.c.d) so both families compare on one scale.
"""
import ipaddress
from functools import total_ordering

IPV4_MAPPED_PREFIX = 0xffff << 32
IPV4_PREFIX_OFFSET = 96
MAX_PREFIX_LENGTH = 128


class InvalidAddress(ValueError):
    """Raised when a string is not a valid IPv4 or IPv6 address"""


@total_ordering
class AddressValue:
    """Immutable, comparable 128-bit address"""

    __slots__ = ('_value', '_version')

    def __init__(self, value: int, version: int = 6):
        if not 0 <= value < (1 << MAX_PREFIX_LENGTH):
            raise InvalidAddress(f"Address value out of range: {value}")
        object.__setattr__(self, '_value', value)
        object.__setattr__(self, '_version', version)

    def __setattr__(self, name, value):
        raise AttributeError("AddressValue is immutable")

    @property
    def value(self) -> int:
        return self._value

    @property
    def version(self) -> int:
        """Address family as written (display only)"""
        return self._version

    def __eq__(self, other):
        if not isinstance(other, AddressValue):
            return NotImplemented
        return self._value == other._value

    def __lt__(self, other):
        if not isinstance(other, AddressValue):
            return NotImplemented
        return self._value < other._value

    def __hash__(self):
        return hash(self._value)

    def __str__(self):
        if self._version == 4:
            return str(ipaddress.IPv4Address(self._value & 0xffffffff))
        return str(ipaddress.IPv6Address(self._value))

    def __repr__(self):
        return f"AddressValue('{self}')"


def normalize_ipv4(ip_str: str) -> str:
    """Remove leading zeros from IPv4 address octets"""
    parts = ip_str.split('.')
    if len(parts) != 4:
        raise InvalidAddress(f"Invalid IPv4 address: {ip_str!r}")

    cleaned_parts = []
    for part in parts:
        if not (part.isascii() and part.isdigit()):
            raise InvalidAddress(f"Invalid IPv4 address: {ip_str!r}")
        digits = part.lstrip('0') or '0'
        if len(digits) > 3:
            raise InvalidAddress(f"Invalid IPv4 octet in {ip_str[:50]!r}")
        cleaned_parts.append(digits)

    return '.'.join(cleaned_parts)


def parse_address(text: str) -> AddressValue:
    """
    Parse an IPv4 or IPv6 address string

    Args:
        text: Dotted-decimal IPv4 or colon-separated IPv6 address

    Returns:
        AddressValue holding the (mapped) 128-bit address

    Raises:
        InvalidAddress: if the text is not an address
    """
    if not isinstance(text, str):
        raise InvalidAddress(f"Address must be a string, got {type(text).__name__}")

    ip_str = text.strip()
    try:
        if ':' in ip_str:
            return AddressValue(int(ipaddress.IPv6Address(ip_str)), 6)
        ip = ipaddress.IPv4Address(normalize_ipv4(ip_str))
    except ipaddress.AddressValueError as e:
        raise InvalidAddress(f"Invalid address {text!r}: {e}") from e

    return AddressValue(IPV4_MAPPED_PREFIX | int(ip), 4)


def compare_addresses(x: AddressValue, y: AddressValue) -> int:
    """Return -1, 0 or 1 as x is below, equal to or above y"""
    if x.value < y.value:
        return -1
    if x.value > y.value:
        return 1
    return 0
