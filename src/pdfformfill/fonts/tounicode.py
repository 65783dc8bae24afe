# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.

"""ToUnicode CMap generation for embedded fonts."""

import logging

logger = logging.getLogger(__name__)

# Unicode values that must not appear as ToUnicode targets
INVALID_UNICODE_VALUES = frozenset({0x0000, 0xFEFF, 0xFFFE})

_SURROGATE_RANGE = range(0xD800, 0xE000)

_CMAP_HEADER = [
    "/CIDInit /ProcSet findresource begin",
    "12 dict begin",
    "begincmap",
    "/CIDSystemInfo <<",
    "  /Registry (Adobe)",
    "  /Ordering (UCS)",
    "  /Supplement 0",
    ">> def",
    "/CMapName /Adobe-Identity-UCS def",
    "/CMapType 2 def",
]

_CMAP_FOOTER = [
    "endcmap",
    "CMapName currentdict /CMap defineresource pop",
    "end",
    "end",
]


def _is_invalid_unicode(val: int) -> bool:
    return val in INVALID_UNICODE_VALUES or val in _SURROGATE_RANGE


def _unicode_hex(unicode_val: int) -> str:
    """Formats a code point as UTF-16BE hex, using a surrogate pair above U+FFFF."""
    if unicode_val <= 0xFFFF:
        return f"{unicode_val:04X}"
    high = 0xD800 + ((unicode_val - 0x10000) >> 10)
    low = 0xDC00 + ((unicode_val - 0x10000) & 0x3FF)
    return f"{high:04X}{low:04X}"


def generate_tounicode_cmap(
    code_to_unicode: dict[int, int],
    *,
    code_bytes: int = 1,
) -> bytes:
    """Generates ToUnicode CMap data.

    Args:
        code_to_unicode: Mapping from character codes to Unicode.
        code_bytes: Width of a character code, 1 for simple fonts and
            2 for Identity-H composite fonts.

    Returns:
        CMap data as bytes.
    """
    digits = code_bytes * 2
    dropped = {c for c, u in code_to_unicode.items() if _is_invalid_unicode(u)}
    if dropped:
        logger.debug("Dropping %d invalid ToUnicode targets", len(dropped))

    lines = list(_CMAP_HEADER)
    lines.extend(
        [
            "1 begincodespacerange",
            f"<{'0' * digits}> <{'F' * digits}>",
            "endcodespacerange",
        ]
    )

    # Group entries into chunks (max 100 per block)
    sorted_codes = sorted(c for c in code_to_unicode if c not in dropped)
    chunk_size = 100

    for i in range(0, len(sorted_codes), chunk_size):
        chunk = sorted_codes[i : i + chunk_size]
        lines.append(f"{len(chunk)} beginbfchar")
        for code in chunk:
            lines.append(
                f"<{code:0{digits}X}> <{_unicode_hex(code_to_unicode[code])}>"
            )
        lines.append("endbfchar")

    lines.extend(_CMAP_FOOTER)
    return "\n".join(lines).encode("ascii")
