# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.

"""Font metrics extraction from TrueType programs."""

from dataclasses import dataclass
from typing import TYPE_CHECKING

from .standard14 import winansi_to_unicode

if TYPE_CHECKING:
    from fontTools.ttLib import TTFont


@dataclass(frozen=True)
class OutlineMetrics:
    """Font-wide metrics scaled to 1000 units per em.

    Attributes:
        bbox: FontBBox as (xMin, yMin, xMax, yMax).
        ascent: Typographic ascender.
        descent: Typographic descender (negative).
        cap_height: Cap height.
        stem_v: Estimated vertical stem width.
        italic_angle: Italic angle from the post table.
        flags: PDF font descriptor flags.
    """

    bbox: tuple[int, int, int, int]
    ascent: int
    descent: int
    cap_height: int
    stem_v: int
    italic_angle: float
    flags: int


class FontMetricsExtractor:
    """Extracts PDF font metrics from TTFont objects.

    Stateless; all values are returned in glyph space units of
    1/1000 em as PDF expects.
    """

    def _compute_font_flags(self, tt_font: "TTFont") -> int:
        """Computes PDF font flags from TrueType font data.

        PDF Font Flags (ISO 32000):
        - Bit 1 (1): FixedPitch
        - Bit 2 (2): Serif
        - Bit 4 (8): Script
        - Bit 6 (32): Nonsymbolic
        - Bit 7 (64): Italic

        Args:
            tt_font: fonttools TTFont object.

        Returns:
            Integer with combined font flags.
        """
        flags = 32  # Nonsymbolic: text is encoded as WinAnsi or Unicode

        if "post" in tt_font and getattr(tt_font["post"], "isFixedPitch", 0):
            flags |= 1

        os2 = tt_font.get("OS/2")
        if os2 is not None:
            family_class = getattr(os2, "sFamilyClass", 0) >> 8
            if 1 <= family_class <= 7:
                flags |= 2
            if family_class == 10:
                flags |= 8
            if getattr(os2, "fsSelection", 0) & 0x0001:
                flags |= 64

        if "post" in tt_font and getattr(tt_font["post"], "italicAngle", 0) != 0:
            flags |= 64

        return flags

    def extract_metrics(self, tt_font: "TTFont") -> OutlineMetrics:
        """Extracts font descriptor metrics.

        Uses the OS/2 typographic values when present and falls back
        to the hhea table otherwise.

        Args:
            tt_font: fonttools TTFont object.

        Returns:
            OutlineMetrics for the font.
        """
        head = tt_font["head"]
        scale = 1000.0 / head.unitsPerEm

        bbox = (
            int(head.xMin * scale),
            int(head.yMin * scale),
            int(head.xMax * scale),
            int(head.yMax * scale),
        )

        os2 = tt_font.get("OS/2")
        if os2 is not None and (os2.sTypoAscender or os2.sTypoDescender):
            ascent = int(os2.sTypoAscender * scale)
            descent = int(os2.sTypoDescender * scale)
        else:
            hhea = tt_font["hhea"]
            ascent = int(hhea.ascent * scale)
            descent = int(hhea.descent * scale)

        cap_height = ascent
        weight = 400
        if os2 is not None:
            raw_cap_height = getattr(os2, "sCapHeight", 0)
            if raw_cap_height:
                cap_height = int(raw_cap_height * scale)
            weight = getattr(os2, "usWeightClass", 400)
        # Estimate StemV from usWeightClass: 10 + 220 * (weight/1000)^2
        stem_v = int(10 + 220 * (weight / 1000) ** 2)

        italic_angle = 0.0
        if "post" in tt_font:
            italic_angle = float(tt_font["post"].italicAngle)

        return OutlineMetrics(
            bbox=bbox,
            ascent=ascent,
            descent=descent,
            cap_height=cap_height,
            stem_v=stem_v,
            italic_angle=italic_angle,
            flags=self._compute_font_flags(tt_font),
        )

    def glyph_widths(self, tt_font: "TTFont") -> list[int]:
        """Returns the advance width of every glyph, indexed by GID."""
        hmtx = tt_font["hmtx"]
        scale = 1000.0 / tt_font["head"].unitsPerEm
        notdef_width = hmtx.metrics.get(".notdef", (500, 0))[0]
        return [
            round(hmtx.metrics.get(name, (notdef_width, 0))[0] * scale)
            for name in tt_font.getGlyphOrder()
        ]

    def unicode_to_gid(self, tt_font: "TTFont") -> dict[int, int]:
        """Returns the font's Unicode -> GID mapping."""
        try:
            cmap = tt_font.getBestCmap()
        except KeyError:
            cmap = None
        if cmap is None:
            cmap = self._get_any_cmap(tt_font) or {}
        name_to_gid = {name: gid for gid, name in enumerate(tt_font.getGlyphOrder())}
        return {
            cp: name_to_gid[name] for cp, name in cmap.items() if name in name_to_gid
        }

    @staticmethod
    def _get_any_cmap(tt_font: "TTFont") -> dict[int, str] | None:
        """Gets a cmap dict from any available subtable.

        Used as fallback when getBestCmap() returns None, which happens
        for symbol fonts (platform 3, encoding 0) and Mac-only fonts.
        """
        if "cmap" not in tt_font:
            return None
        for subtable in tt_font["cmap"].tables:
            if subtable.cmap:
                return subtable.cmap
        return None

    def winansi_widths(
        self, widths: list[int], cmap: dict[int, int]
    ) -> dict[int, int]:
        """Computes /Widths entries for WinAnsi codes 32..255.

        Args:
            widths: Glyph widths indexed by GID.
            cmap: Unicode -> GID mapping.

        Returns:
            Dictionary mapping char code to width; codes whose character
            the font lacks map to the .notdef width.
        """
        result: dict[int, int] = {}
        for code in range(32, 256):
            gid = cmap.get(winansi_to_unicode(code), 0)
            result[code] = widths[gid] if gid < len(widths) else widths[0]
        return result

    def build_cidfont_w_array(self, widths: dict[int, int]) -> list:
        """Creates a /W array for the given CID -> width entries.

        Uses both PDF formats: ``cid [w1 w2 ...]`` for consecutive CIDs
        with mixed widths and ``cid_first cid_last w`` for runs of four
        or more equal widths.

        Args:
            widths: Mapping from CID (= GID) to width.

        Returns:
            List in sparse format for the /W array.
        """
        entries = sorted(widths.items())
        w_array: list = []
        i = 0
        while i < len(entries):
            # Find the full run of consecutive CIDs
            j = i + 1
            while j < len(entries) and entries[j][0] == entries[i][0] + (j - i):
                j += 1
            run = entries[i:j]

            k = 0
            while k < len(run):
                w = run[k][1]
                m = k + 1
                while m < len(run) and run[m][1] == w:
                    m += 1

                if m - k >= 4:
                    w_array.extend([run[k][0], run[m - 1][0], w])
                    k = m
                    continue

                # Individual widths until the next equal-width run of four
                end = m
                while end < len(run):
                    w2 = run[end][1]
                    lookahead = end + 1
                    while lookahead < len(run) and run[lookahead][1] == w2:
                        lookahead += 1
                    if lookahead - end >= 4:
                        break
                    end = lookahead
                w_array.append(run[k][0])
                w_array.append([run[n][1] for n in range(k, end)])
                k = end

            i = j

        return w_array
