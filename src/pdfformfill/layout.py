# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.

"""Text layout for field appearances.

Splits a value into glyph runs (the field's font, with fallback font
runs for characters it lacks), measures them, picks an automatic font
size and wraps multiline text.  All widths are in points.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from .exceptions import UnsupportedGlyphError
from .fonts.registry import EmbeddedFont, char_width, has_glyph, show_text_operator
from .utils import format_number as _n

logger = logging.getLogger(__name__)

MIN_FONT_SIZE = 4.0
MAX_FONT_SIZE = 96.0
# Size used for empty values and listboxes when no size is fixed
DEFAULT_FONT_SIZE = 12.0
LINE_SPACING = 1.2


@dataclass
class TextRun:
    """A piece of text drawn with a single font."""

    font: EmbeddedFont
    text: str


@dataclass
class GlyphSubstitution:
    """A character drawn with the fallback font instead of the field font."""

    char: str
    font_name: str
    fallback_name: str


@dataclass
class RunBuilder:
    """Splits text into runs for a field font plus its fallback.

    With ``substitute`` set, a character missing from ``font`` is drawn
    with ``fallback``; otherwise, or when the fallback lacks it as well,
    UnsupportedGlyphError is raised.  Decisions are cached per character
    so each substitution is logged once.

    Attributes:
        font: The field's resolved font.
        fallback: The document-wide fallback font.
        substitute: Whether fallback glyphs may be used.
        substitutions: Substitutions made so far.
    """

    font: EmbeddedFont
    fallback: EmbeddedFont
    substitute: bool = True
    substitutions: list[GlyphSubstitution] = field(default_factory=list)
    _choice: dict[str, EmbeddedFont] = field(
        default_factory=dict, init=False, repr=False
    )

    def font_for_char(self, ch: str) -> EmbeddedFont:
        cached = self._choice.get(ch)
        if cached is not None:
            return cached

        if has_glyph(self.font, ch):
            chosen = self.font
        elif (
            self.substitute
            and self.fallback is not self.font
            and has_glyph(self.fallback, ch)
        ):
            chosen = self.fallback
            self.substitutions.append(
                GlyphSubstitution(ch, self.font.base_font, self.fallback.base_font)
            )
            logger.warning(
                "Font %s has no glyph for %r (U+%04X); using %s",
                self.font.base_font,
                ch,
                ord(ch),
                self.fallback.base_font,
            )
        else:
            tried = self.font.base_font
            if self.substitute and self.fallback is not self.font:
                tried += f" or fallback {self.fallback.base_font}"
            raise UnsupportedGlyphError(
                f"No glyph for {ch!r} (U+{ord(ch):04X}) in {tried}",
                char=ch,
                font_name=self.font.base_font,
            )

        self._choice[ch] = chosen
        return chosen

    def runs(self, text: str) -> list[TextRun]:
        """Splits ``text`` into maximal runs sharing one font."""
        result: list[TextRun] = []
        for ch in text:
            font = self.font_for_char(ch)
            if result and result[-1].font is font:
                result[-1].text += ch
            else:
                result.append(TextRun(font, ch))
        return result

    def width(self, text: str, font_size: float) -> float:
        """Width of ``text`` in points, accounting for fallback runs."""
        units = sum(char_width(self.font_for_char(ch), ch) for ch in text)
        return units * font_size / 1000.0

    def show_operators(self, text: str, font_size: float) -> list[str]:
        """Content stream operators showing ``text`` at the current position.

        Each run selects its font with ``Tf`` before its ``Tj``.
        """
        ops = []
        for run in self.runs(text):
            ops.append(f"/{run.font.resource_name} {_n(font_size)} Tf")
            ops.append(show_text_operator(run.font, run.text))
        return ops

    @property
    def fonts_used(self) -> list[EmbeddedFont]:
        fonts = [self.font]
        if any(f is self.fallback for f in self._choice.values()):
            fonts.append(self.fallback)
        return fonts


def line_height_factor(font: EmbeddedFont) -> float:
    """Line height per point of font size."""
    return (font.ascent - font.descent) / 1000.0 * LINE_SPACING


def compute_auto_font_size(
    text: str,
    builder: RunBuilder,
    field_width: float,
    field_height: float,
    multiline: bool = False,
) -> float:
    """Computes the font size for an auto-sized (size 0) field.

    Args:
        text: The text to fit.
        builder: Run builder used to measure text.
        field_width: Available width in points (inside margins).
        field_height: Available height in points (inside margins).
        multiline: If True, consider word-wrapping.

    Returns:
        Font size in points, between MIN_FONT_SIZE and the available
        height (capped at MAX_FONT_SIZE).
    """
    if not text:
        return min(DEFAULT_FONT_SIZE, max(MIN_FONT_SIZE, field_height - 4))

    if field_width <= 0 or field_height <= 0:
        return MIN_FONT_SIZE

    max_size = min(field_height, MAX_FONT_SIZE)
    ascent = builder.font.ascent
    descent = builder.font.descent

    if not multiline:
        # Glyph box (ascent to descent) must fit the height
        box_factor = (ascent - descent) / 1000.0
        lo, hi = MIN_FONT_SIZE, max(MIN_FONT_SIZE, max_size)
        for _ in range(20):  # ~20 iterations gives sub-0.01pt precision
            mid = (lo + hi) / 2.0
            if (
                builder.width(text, mid) <= field_width
                and mid * box_factor <= field_height
            ):
                lo = mid
            else:
                hi = mid
        return max(MIN_FONT_SIZE, lo)

    # Multiline: try decreasing sizes until wrapped text fits
    factor = line_height_factor(builder.font)
    size = max_size
    while size >= MIN_FONT_SIZE:
        lines = wrap_text(text, builder, size, field_width)
        if len(lines) * size * factor <= field_height:
            return size
        size -= max(0.5, size * 0.1)

    return MIN_FONT_SIZE


def wrap_text(
    text: str,
    builder: RunBuilder,
    font_size: float,
    max_width: float,
) -> list[str]:
    """Word-wraps text to fit within max_width at the given font size.

    Handles explicit line breaks (\\r, \\n, \\r\\n).  Words wider than a
    line are broken between characters.
    """
    if max_width <= 0:
        return text.splitlines() or [""]

    paragraphs = text.replace("\r\n", "\n").replace("\r", "\n").split("\n")
    result: list[str] = []

    for para in paragraphs:
        if not para:
            result.append("")
            continue

        current_line = ""
        for word in para.split(" "):
            candidate = word if not current_line else current_line + " " + word
            if builder.width(candidate, font_size) <= max_width:
                current_line = candidate
                continue

            if current_line:
                result.append(current_line)

            if builder.width(word, font_size) <= max_width:
                current_line = word
                continue

            # Character-level wrapping
            current_line = ""
            for ch in word:
                test = current_line + ch
                if builder.width(test, font_size) > max_width and current_line:
                    result.append(current_line)
                    current_line = ch
                else:
                    current_line = test

        if current_line:
            result.append(current_line)

    return result or [""]


def horizontal_offset(alignment: int, available: float, width: float) -> float:
    """Offset of a line inside ``available`` for /Q alignment 0, 1 or 2."""
    if alignment == 1:
        return max(0.0, (available - width) / 2.0)
    if alignment == 2:
        return max(0.0, available - width)
    return 0.0


def baseline_y(
    field_height: float, font_size: float, font: EmbeddedFont, margin: float
) -> float:
    """Baseline for text vertically centered in the field.

    Uses the font's ascent and descent; never below ``margin``.
    """
    asc_pt = font.ascent * font_size / 1000.0
    desc_pt = abs(font.descent) * font_size / 1000.0
    return max(margin, (field_height - asc_pt - desc_pt) / 2.0 + desc_pt)
