"""
Reversible byte <-> printable symbol mapping used by byte-level BPE.

Every byte value gets a single printable codepoint so that vocabulary and
merge files never contain raw control characters or whitespace. Printable
Latin-1 bytes keep their own codepoint; the remaining 68 bytes are shifted
to ``256 + n`` in byte order.
"""

from typing import Final

from .bimap import BiMap
from .types import Symbol

# bytes that render fine as themselves: '!'..'~', '¡'..'¬', '®'..'ÿ'
PRINTABLE_RANGES: Final[tuple[range, ...]] = (
    range(ord("!"), ord("~") + 1),
    range(ord("¡"), ord("¬") + 1),
    range(ord("®"), ord("ÿ") + 1),
)


def _build_byte_table() -> dict[int, Symbol]:
    """Build the 256-entry byte -> symbol table."""
    printable = [b for r in PRINTABLE_RANGES for b in r]
    kept = set(printable)
    table = {b: chr(b) for b in printable}
    n = 0
    for b in range(256):
        if b not in kept:
            table[b] = chr(256 + n)
            n += 1
    return table


class ByteMap:
    """
    Fixed bijection between the 256 byte values and 256 printable symbols.

    Built once; both directions are total over their 256-element domains.
    """

    def __init__(self) -> None:
        self._map: BiMap[int, Symbol] = BiMap(_build_byte_table())

    def encode(self, byte: int) -> Symbol:
        """Return the symbol for one byte value."""
        return self._map[byte]

    def decode(self, symbol: Symbol) -> int:
        """Return the byte value for one symbol."""
        return self._map.inverse(symbol)

    def is_symbol(self, text: str) -> bool:
        """Return ``True`` if ``text`` is exactly one symbol of this map."""
        return self._map.has_value(text)

    def encode_bytes(self, data: bytes) -> list[Symbol]:
        """Map each byte of ``data`` to its symbol."""
        return [self._map[b] for b in data]

    def __len__(self) -> int:
        return len(self._map)


BYTE_MAP: Final[ByteMap] = ByteMap()
