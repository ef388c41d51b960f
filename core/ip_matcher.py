"""
IP range matching for organization attribution
"""
import logging
from typing import Dict, List, NamedTuple, Tuple, Union
from core.address import (
    AddressValue, InvalidAddress, IPV4_PREFIX_OFFSET, MAX_PREFIX_LENGTH, parse_address
)

ALL_BITS = (1 << MAX_PREFIX_LENGTH) - 1


class InvalidRangeDescriptor(ValueError):
    """Raised when a configured range cannot be understood"""


class CidrRange(NamedTuple):
    """Subnet given as a base address and a 128-bit prefix length"""
    base: AddressValue
    prefix_length: int

    def __str__(self):
        if self.base.version == 4:
            return f"{self.base}/{self.prefix_length - IPV4_PREFIX_OFFSET}"
        return f"{self.base}/{self.prefix_length}"


class ExplicitRange(NamedTuple):
    """Inclusive low/high address pair"""
    low: AddressValue
    high: AddressValue

    def __str__(self):
        return f"{self.low} - {self.high}"


RangeDescriptor = Union[CidrRange, ExplicitRange]


def prefix_mask(prefix_length: int) -> int:
    """Mask keeping the top prefix_length bits of a 128-bit address"""
    return ALL_BITS ^ ((1 << (MAX_PREFIX_LENGTH - prefix_length)) - 1)


def address_in_range(addr: AddressValue, block: RangeDescriptor) -> bool:
    """Check if an address falls inside a CIDR block or explicit range"""
    if isinstance(block, CidrRange):
        mask = prefix_mask(block.prefix_length)
        return (addr.value & mask) == (block.base.value & mask)
    return block.low <= addr <= block.high


def parse_cidr(entry: str) -> CidrRange:
    """
    Parse a CIDR block or a plain address (single host)

    IPv4 prefix lengths are shifted by 96 to address the mapped form.
    """
    address_part, sep, prefix_part = entry.partition('/')
    try:
        base = parse_address(address_part)
    except InvalidAddress as e:
        raise InvalidRangeDescriptor(f"Invalid range {entry!r}: {e}") from e

    max_prefix = 32 if base.version == 4 else MAX_PREFIX_LENGTH
    if not sep:
        prefix_length = max_prefix
    else:
        prefix_part = prefix_part.strip()
        if not (prefix_part.isascii() and prefix_part.isdigit()) \
                or len(prefix_part) > 3 or int(prefix_part) > max_prefix:
            raise InvalidRangeDescriptor(
                f"Invalid prefix length in {entry!r}: must be 0-{max_prefix}")
        prefix_length = int(prefix_part)

    if base.version == 4:
        prefix_length += IPV4_PREFIX_OFFSET
    return CidrRange(base, prefix_length)


def parse_explicit(low_str: str, high_str: str) -> ExplicitRange:
    """Parse a [low, high] pair of address strings"""
    try:
        low = parse_address(low_str)
        high = parse_address(high_str)
    except InvalidAddress as e:
        raise InvalidRangeDescriptor(f"Invalid range [{low_str!r}, {high_str!r}]: {e}") from e

    if low > high:
        raise InvalidRangeDescriptor(f"Range start {low} is above range end {high}")
    return ExplicitRange(low, high)


def parse_range(entry) -> RangeDescriptor:
    """
    Build a range descriptor from a configuration entry

    Args:
        entry: Either a [low, high] list of address strings, or a string
               holding a CIDR block or a single address

    Raises:
        InvalidRangeDescriptor: if the entry is malformed
    """
    if isinstance(entry, str):
        return parse_cidr(entry)
    if isinstance(entry, (list, tuple)) and len(entry) == 2 \
            and all(isinstance(part, str) for part in entry):
        return parse_explicit(entry[0], entry[1])
    raise InvalidRangeDescriptor(f"Unrecognized range entry: {entry!r}")


def is_flat_pair(entries) -> bool:
    """True for ["low", "high"] written directly as an organization's value"""
    return (
        isinstance(entries, (list, tuple))
        and len(entries) == 2
        and all(isinstance(e, str) and '/' not in e for e in entries)
    )


class AttributionTable:
    """Named collections of address ranges, one per organization"""

    def __init__(self, ranges: Dict[str, Tuple[RangeDescriptor, ...]]):
        self._ranges = {name: tuple(blocks) for name, blocks in ranges.items()}

    @classmethod
    def from_config(cls, mapping: Dict) -> "AttributionTable":
        """
        Build a table from the configured {organization: ranges} mapping

        Each organization maps to a list of range entries, or to a single
        entry: a string, or a bare ["low", "high"] pair.

        Raises:
            InvalidRangeDescriptor: on the first malformed entry
        """
        if not isinstance(mapping, dict):
            raise InvalidRangeDescriptor(
                f"Ranges must map organization names to ranges, got {type(mapping).__name__}")

        ranges = {}
        for name, entries in mapping.items():
            if isinstance(entries, str) or is_flat_pair(entries):
                entries = [entries]
            elif not isinstance(entries, (list, tuple)):
                raise InvalidRangeDescriptor(f"Ranges for {name} must be a list, got {entries!r}")

            blocks = []
            for entry in entries:
                try:
                    blocks.append(parse_range(entry))
                except InvalidRangeDescriptor as e:
                    raise InvalidRangeDescriptor(f"{name}: {e}") from e
            ranges[name] = tuple(blocks)

        total = sum(len(blocks) for blocks in ranges.values())
        logging.debug(f"Loaded {total} ranges for {len(ranges)} organizations")
        return cls(ranges)

    @property
    def organizations(self) -> List[str]:
        return list(self._ranges)

    def ranges_for(self, name: str) -> Tuple[RangeDescriptor, ...]:
        return self._ranges.get(name, ())

    def __len__(self):
        return len(self._ranges)

    def attribute(self, addr: AddressValue) -> List[str]:
        """Return every organization with a range containing addr, in table order"""
        return [
            name for name, blocks in self._ranges.items()
            if any(address_in_range(addr, block) for block in blocks)
        ]
