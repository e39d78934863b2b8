"""
Utilities for turning byte-mapped token strings into displayable strings.
"""

import unicodedata

from .byte_map import BYTE_MAP, ByteMap


def _escape_ctrl_chars(s: str) -> str:
    """Replace all Unicode control characters with their escape sequences."""
    cleaned = []
    for c in s:
        # control category codes vary: Cc, Cf, Cn etc.
        # so check via first character
        if unicodedata.category(c)[0] != "C":
            cleaned.append(c)
        else:
            cleaned.append(f"\\u{ord(c):04x}")
    return "".join(cleaned)


def render_bytes(b: bytes) -> str:
    """
    Decode bytes as UTF-8 and escape control characters.

    Invalid UTF-8 sequences are replaced with the Unicode replacement character.
    """
    return _escape_ctrl_chars(b.decode("utf-8", errors="replace"))


def render_token(token: str, byte_map: ByteMap = BYTE_MAP) -> str:
    """Render a byte-mapped token string as readable text for log output."""
    raw = bytearray()
    for c in token:
        if byte_map.is_symbol(c):
            raw.append(byte_map.decode(c))
        else:
            raw.extend(c.encode("utf-8"))
    return render_bytes(bytes(raw))
