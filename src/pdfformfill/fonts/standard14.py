# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.

"""Metrics for the Latin Standard-14 fonts.

Glyph widths are indexed by WinAnsiEncoding character code and given in
1/1000 of the font size (Adobe Font Metrics).  Symbol and ZapfDingbats are
not supported because they do not use WinAnsiEncoding.
"""

from dataclasses import dataclass

# ---------------------------------------------------------------------------
# WinAnsiEncoding <-> Unicode mapping (positions 128-159 differ from Latin-1)
# ---------------------------------------------------------------------------

WIN_ANSI_TO_UNICODE: dict[int, int] = {
    128: 0x20AC,
    130: 0x201A,
    131: 0x0192,
    132: 0x201E,
    133: 0x2026,
    134: 0x2020,
    135: 0x2021,
    136: 0x02C6,
    137: 0x2030,
    138: 0x0160,
    139: 0x2039,
    140: 0x0152,
    142: 0x017D,
    145: 0x2018,
    146: 0x2019,
    147: 0x201C,
    148: 0x201D,
    149: 0x2022,
    150: 0x2013,
    151: 0x2014,
    152: 0x02DC,
    153: 0x2122,
    154: 0x0161,
    155: 0x203A,
    156: 0x0153,
    158: 0x017E,
    159: 0x0178,
}

_UNICODE_TO_WIN_ANSI: dict[int, int] = {v: k for k, v in WIN_ANSI_TO_UNICODE.items()}

# Codes 127-159 without a WinAnsi glyph
_UNDEFINED_CODES = frozenset({127, 129, 141, 143, 144, 157})


def winansi_to_unicode(code: int) -> int:
    """Map a WinAnsiEncoding byte to a Unicode code point."""
    return WIN_ANSI_TO_UNICODE.get(code, code)


def unicode_to_winansi(cp: int) -> int | None:
    """Map a Unicode code point to a WinAnsiEncoding byte (None if unmappable)."""
    if 32 <= cp < 127 or 160 <= cp <= 255:
        return cp
    return _UNICODE_TO_WIN_ANSI.get(cp)


def _pack(widths: tuple[int, ...]) -> dict[int, int]:
    """Turns a width row for codes 32..255 into a code -> width dict.

    Zero entries mark codes without a glyph and are left out.
    """
    return {code: w for code, w in enumerate(widths, start=32) if w}


# ===================================================================
# Width tables (WinAnsiEncoding char code 32..255 -> width)
# ===================================================================

_HELVETICA = _pack(
    (
        278, 278, 355, 556, 556, 889, 667, 191, 333, 333, 389, 584, 278, 333,
        278, 278, 556, 556, 556, 556, 556, 556, 556, 556, 556, 556, 278, 278,
        584, 584, 584, 556, 1015, 667, 667, 722, 722, 611, 556, 778, 722, 278,
        500, 667, 556, 833, 722, 778, 667, 778, 722, 667, 611, 722, 667, 944,
        667, 667, 611, 278, 278, 278, 469, 556, 333, 556, 556, 500, 556, 556,
        278, 556, 556, 222, 222, 500, 222, 833, 556, 556, 556, 556, 333, 500,
        278, 556, 500, 722, 500, 500, 500, 334, 260, 334, 584, 0, 556, 0,
        222, 556, 333, 1000, 556, 556, 333, 1000, 667, 333, 1000, 0, 611, 0,
        0, 222, 222, 333, 333, 350, 556, 1000, 333, 1000, 500, 333, 944, 0,
        500, 667, 278, 333, 556, 556, 556, 556, 260, 556, 333, 737, 370, 556,
        584, 333, 737, 333, 400, 584, 333, 333, 333, 556, 537, 278, 333, 333,
        365, 556, 834, 834, 834, 611, 667, 667, 667, 667, 667, 667, 1000, 722,
        611, 611, 611, 611, 278, 278, 278, 278, 722, 722, 778, 778, 778, 778,
        778, 584, 778, 722, 722, 722, 722, 667, 667, 611, 556, 556, 556, 556,
        556, 556, 889, 500, 556, 556, 556, 556, 278, 278, 278, 278, 556, 556,
        556, 556, 556, 556, 556, 584, 611, 556, 556, 556, 556, 500, 556, 500,
    )
)

_HELVETICA_BOLD = _pack(
    (
        278, 333, 474, 556, 556, 889, 722, 238, 333, 333, 389, 584, 278, 333,
        278, 278, 556, 556, 556, 556, 556, 556, 556, 556, 556, 556, 333, 333,
        584, 584, 584, 611, 975, 722, 722, 722, 722, 667, 611, 778, 722, 278,
        556, 722, 611, 833, 722, 778, 667, 778, 722, 667, 611, 722, 667, 944,
        667, 667, 611, 333, 278, 333, 584, 556, 333, 556, 611, 556, 611, 556,
        333, 611, 611, 278, 278, 556, 278, 889, 611, 611, 611, 611, 389, 556,
        333, 611, 556, 778, 556, 556, 500, 389, 280, 389, 584, 0, 556, 0,
        278, 556, 500, 1000, 556, 556, 333, 1000, 667, 333, 1000, 0, 611, 0,
        0, 278, 278, 500, 500, 350, 556, 1000, 333, 1000, 556, 333, 944, 0,
        500, 667, 278, 333, 556, 556, 556, 556, 280, 556, 333, 737, 370, 556,
        584, 333, 737, 333, 400, 584, 333, 333, 333, 611, 556, 278, 333, 333,
        365, 556, 834, 834, 834, 611, 722, 722, 722, 722, 722, 722, 1000, 722,
        667, 667, 667, 667, 278, 278, 278, 278, 722, 722, 778, 778, 778, 778,
        778, 584, 778, 722, 722, 722, 722, 667, 667, 611, 556, 556, 556, 556,
        556, 556, 889, 556, 556, 556, 556, 556, 278, 278, 278, 278, 611, 611,
        611, 611, 611, 611, 611, 584, 611, 611, 611, 611, 611, 556, 611, 556,
    )
)

_TIMES_ROMAN = _pack(
    (
        250, 333, 408, 500, 500, 833, 778, 180, 333, 333, 500, 564, 250, 333,
        250, 278, 500, 500, 500, 500, 500, 500, 500, 500, 500, 500, 278, 278,
        564, 564, 564, 444, 921, 722, 667, 667, 722, 611, 556, 722, 722, 333,
        389, 722, 611, 889, 722, 722, 556, 722, 667, 556, 611, 722, 722, 944,
        722, 722, 611, 333, 278, 333, 469, 500, 333, 444, 500, 444, 500, 444,
        333, 500, 500, 278, 278, 500, 278, 778, 500, 500, 500, 500, 333, 389,
        278, 500, 500, 722, 500, 500, 444, 480, 200, 480, 541, 0, 500, 0,
        333, 500, 444, 1000, 500, 500, 333, 1000, 556, 333, 889, 0, 611, 0,
        0, 333, 333, 444, 444, 350, 500, 1000, 333, 980, 389, 333, 722, 0,
        444, 722, 250, 333, 500, 500, 500, 500, 200, 500, 333, 760, 276, 500,
        564, 333, 760, 333, 400, 564, 300, 300, 333, 500, 453, 250, 333, 300,
        310, 500, 750, 750, 750, 444, 722, 722, 722, 722, 722, 722, 889, 667,
        611, 611, 611, 611, 333, 333, 333, 333, 722, 722, 722, 722, 722, 722,
        722, 564, 722, 722, 722, 722, 722, 722, 556, 500, 444, 444, 444, 444,
        444, 444, 667, 444, 444, 444, 444, 444, 278, 278, 278, 278, 500, 500,
        500, 500, 500, 500, 500, 564, 500, 500, 500, 500, 500, 500, 500, 500,
    )
)

_TIMES_BOLD = _pack(
    (
        250, 333, 555, 500, 500, 1000, 833, 278, 333, 333, 500, 570, 250, 333,
        250, 278, 500, 500, 500, 500, 500, 500, 500, 500, 500, 500, 333, 333,
        570, 570, 570, 500, 930, 722, 667, 722, 722, 667, 611, 778, 778, 389,
        500, 778, 667, 944, 722, 778, 611, 778, 722, 556, 667, 722, 722, 1000,
        722, 722, 667, 333, 278, 333, 581, 500, 333, 500, 556, 444, 556, 444,
        333, 500, 556, 278, 333, 556, 278, 833, 556, 500, 556, 556, 444, 389,
        333, 556, 500, 722, 500, 500, 444, 394, 220, 394, 520, 0, 500, 0,
        333, 500, 500, 1000, 500, 500, 333, 1000, 556, 333, 1000, 0, 667, 0,
        0, 333, 333, 500, 500, 350, 500, 1000, 333, 1000, 389, 333, 722, 0,
        444, 722, 250, 333, 500, 500, 500, 500, 220, 500, 333, 747, 300, 500,
        570, 333, 747, 333, 400, 570, 300, 300, 333, 556, 540, 250, 333, 300,
        330, 500, 750, 750, 750, 500, 722, 722, 722, 722, 722, 722, 1000, 722,
        667, 667, 667, 667, 389, 389, 389, 389, 722, 722, 778, 778, 778, 778,
        778, 570, 778, 722, 722, 722, 722, 722, 611, 556, 500, 500, 500, 500,
        500, 500, 722, 444, 444, 444, 444, 444, 278, 278, 278, 278, 500, 556,
        500, 500, 500, 500, 500, 570, 500, 556, 556, 556, 556, 500, 556, 500,
    )
)

_TIMES_ITALIC = _pack(
    (
        250, 333, 420, 500, 500, 833, 778, 214, 333, 333, 500, 675, 250, 333,
        250, 278, 500, 500, 500, 500, 500, 500, 500, 500, 500, 500, 333, 333,
        675, 675, 675, 500, 920, 611, 611, 667, 722, 611, 611, 722, 722, 333,
        444, 667, 556, 833, 667, 722, 611, 722, 611, 500, 556, 722, 611, 833,
        611, 556, 556, 389, 278, 389, 422, 500, 333, 500, 500, 444, 500, 444,
        278, 500, 500, 278, 278, 444, 278, 722, 500, 500, 500, 500, 389, 389,
        278, 500, 444, 667, 444, 444, 389, 400, 275, 400, 541, 0, 500, 0,
        333, 500, 556, 889, 500, 500, 333, 1000, 500, 333, 944, 0, 556, 0,
        0, 333, 333, 556, 556, 350, 500, 889, 333, 980, 389, 333, 722, 0,
        389, 556, 250, 389, 500, 500, 500, 500, 275, 500, 333, 760, 276, 500,
        675, 333, 760, 333, 400, 675, 300, 300, 333, 500, 523, 250, 333, 300,
        310, 500, 750, 750, 750, 500, 611, 611, 611, 611, 611, 611, 889, 667,
        611, 611, 611, 611, 333, 333, 333, 333, 722, 667, 722, 722, 722, 722,
        722, 675, 722, 722, 722, 722, 722, 556, 611, 500, 500, 500, 500, 500,
        500, 500, 667, 444, 444, 444, 444, 444, 278, 278, 278, 278, 500, 500,
        500, 500, 500, 500, 500, 675, 500, 500, 500, 500, 500, 444, 500, 444,
    )
)

_TIMES_BOLD_ITALIC = _pack(
    (
        250, 389, 555, 500, 500, 833, 778, 278, 333, 333, 500, 570, 250, 333,
        250, 278, 500, 500, 500, 500, 500, 500, 500, 500, 500, 500, 333, 333,
        570, 570, 570, 500, 832, 667, 667, 667, 722, 667, 667, 722, 778, 389,
        500, 667, 611, 889, 722, 722, 611, 722, 667, 556, 611, 722, 667, 889,
        667, 611, 611, 333, 278, 333, 570, 500, 333, 500, 500, 444, 500, 444,
        333, 500, 556, 278, 278, 500, 278, 778, 556, 500, 556, 500, 389, 389,
        278, 556, 444, 667, 500, 444, 389, 348, 220, 348, 570, 0, 500, 0,
        333, 500, 500, 1000, 500, 500, 333, 1000, 556, 333, 944, 0, 611, 0,
        0, 333, 333, 500, 500, 350, 500, 1000, 333, 1000, 389, 333, 722, 0,
        389, 611, 250, 389, 500, 500, 500, 500, 220, 500, 333, 747, 266, 500,
        606, 333, 747, 333, 400, 570, 300, 300, 333, 576, 500, 250, 333, 300,
        300, 500, 750, 750, 750, 500, 667, 667, 667, 667, 667, 667, 944, 667,
        667, 667, 667, 667, 389, 389, 389, 389, 722, 722, 722, 722, 722, 722,
        722, 570, 722, 722, 722, 722, 722, 611, 611, 500, 500, 500, 500, 500,
        500, 500, 722, 444, 444, 444, 444, 444, 278, 278, 278, 278, 500, 556,
        500, 500, 500, 500, 500, 570, 500, 556, 556, 556, 556, 444, 500, 444,
    )
)


_COURIER = {
    code: 600 for code in range(32, 256) if code not in _UNDEFINED_CODES
}


@dataclass(frozen=True)
class Standard14Metrics:
    """Font-wide metrics of a Standard-14 font.

    Attributes:
        base_font: PostScript name used as /BaseFont.
        widths: WinAnsi code -> advance width.
        ascent: Ascender in 1/1000 units.
        descent: Descender in 1/1000 units (negative).
        cap_height: Cap height in 1/1000 units.
        bbox: Font bounding box (llx, lly, urx, ury).
        default_width: Width used for codes without an entry.
    """

    base_font: str
    widths: dict[int, int]
    ascent: int
    descent: int
    cap_height: int
    bbox: tuple[int, int, int, int]
    default_width: int


_METRICS: dict[str, Standard14Metrics] = {
    m.base_font: m
    for m in (
        Standard14Metrics(
            "Helvetica", _HELVETICA, 718, -207, 718, (-166, -225, 1000, 931), 278
        ),
        Standard14Metrics(
            "Helvetica-Bold",
            _HELVETICA_BOLD,
            718,
            -207,
            718,
            (-170, -228, 1003, 962),
            278,
        ),
        Standard14Metrics(
            "Helvetica-Oblique",
            _HELVETICA,
            718,
            -207,
            718,
            (-170, -225, 1116, 931),
            278,
        ),
        Standard14Metrics(
            "Helvetica-BoldOblique",
            _HELVETICA_BOLD,
            718,
            -207,
            718,
            (-174, -228, 1114, 962),
            278,
        ),
        Standard14Metrics(
            "Times-Roman", _TIMES_ROMAN, 683, -217, 662, (-168, -218, 1000, 898), 250
        ),
        Standard14Metrics(
            "Times-Bold", _TIMES_BOLD, 683, -217, 676, (-168, -218, 1000, 935), 250
        ),
        Standard14Metrics(
            "Times-Italic", _TIMES_ITALIC, 683, -217, 653, (-169, -217, 1010, 883), 250
        ),
        Standard14Metrics(
            "Times-BoldItalic",
            _TIMES_BOLD_ITALIC,
            683,
            -217,
            669,
            (-200, -218, 996, 921),
            250,
        ),
        Standard14Metrics(
            "Courier", _COURIER, 629, -157, 562, (-23, -250, 715, 805), 600
        ),
        Standard14Metrics(
            "Courier-Bold", _COURIER, 629, -157, 562, (-113, -250, 749, 801), 600
        ),
        Standard14Metrics(
            "Courier-Oblique", _COURIER, 629, -157, 562, (-27, -250, 849, 805), 600
        ),
        Standard14Metrics(
            "Courier-BoldOblique",
            _COURIER,
            629,
            -157,
            562,
            (-57, -250, 869, 801),
            600,
        ),
    )
}

# Resource names commonly used for the Standard-14 fonts in /DR
STANDARD14_ALIASES: dict[str, str] = {
    "Helv": "Helvetica",
    "HeBo": "Helvetica-Bold",
    "HeOb": "Helvetica-Oblique",
    "HeBO": "Helvetica-BoldOblique",
    "TiRo": "Times-Roman",
    "TiBo": "Times-Bold",
    "TiIt": "Times-Italic",
    "TiBI": "Times-BoldItalic",
    "Cour": "Courier",
    "CoBo": "Courier-Bold",
    "CoOb": "Courier-Oblique",
    "CoBO": "Courier-BoldOblique",
}

_RESOURCE_NAMES: dict[str, str] = {v: k for k, v in STANDARD14_ALIASES.items()}

# Informal names accepted on the command line
_COMMON_NAMES: dict[str, str] = {
    "Arial": "Helvetica",
    "Times": "Times-Roman",
    "TimesNewRoman": "Times-Roman",
    "CourierNew": "Courier",
}


def canonical_name(name: str) -> str | None:
    """Returns the canonical Standard-14 name for ``name``, or None.

    Accepts canonical names, /DR aliases such as ``Helv`` and a few
    informal names such as ``Arial``.  Matching ignores case, spaces and
    a leading slash.
    """
    key = name.lstrip("/").replace(" ", "")
    if key in _METRICS:
        return key
    if key in STANDARD14_ALIASES:
        return STANDARD14_ALIASES[key]
    lowered = key.lower()
    for table in (_METRICS, STANDARD14_ALIASES, _COMMON_NAMES):
        for candidate in table:
            if candidate.lower() == lowered:
                if table is _METRICS:
                    return candidate
                return table[candidate]
    return None


def get_metrics(name: str) -> Standard14Metrics | None:
    """Returns metrics for a Standard-14 font name or alias."""
    canonical = canonical_name(name)
    if canonical is None:
        return None
    return _METRICS[canonical]


def resource_name_for(base_font: str) -> str:
    """Returns the conventional /DR resource name for a Standard-14 font."""
    return _RESOURCE_NAMES[base_font]
