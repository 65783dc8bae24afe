# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.

"""Subsetting of fonts embedded for field appearances.

Only fonts registered through a FontRegistry are subset.  fontTools
runs with retain_gids=True, so glyph IDs stay stable: content streams,
/W arrays and the Identity CIDToGIDMap need no rewriting.
"""

import logging
import random
import string
from dataclasses import dataclass, field
from io import BytesIO

from fontTools.subset import Options, Subsetter
from fontTools.ttLib import TTFont
from pikepdf import Name, Pdf, Stream

from ..style import FontKind
from ..utils import resolve_indirect as _resolve
from .glyph_usage import collect_font_usage
from .metrics import FontMetricsExtractor
from .registry import EmbeddedFont
from .standard14 import winansi_to_unicode

logger = logging.getLogger(__name__)

# OS/2 fsType embedding permission bits
FSTYPE_RESTRICTED_LICENSE = 0x0002
FSTYPE_NO_SUBSETTING = 0x0100


def _generate_subset_tag() -> str:
    """Generates a random 6-letter uppercase subset tag like "ABCDEF"."""
    return "".join(random.choices(string.ascii_uppercase, k=6))


@dataclass
class SubsettingResult:
    """Result of font subsetting.

    Attributes:
        fonts_subsetted: Base font names that were subset.
        fonts_skipped: Base font names that were skipped (with reason).
        warnings: Warnings raised while subsetting.
        bytes_saved: Total reduction of embedded font program size.
    """

    fonts_subsetted: list[str] = field(default_factory=list)
    fonts_skipped: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    bytes_saved: int = 0


class FontSubsetter:
    """Subsets the outline fonts a registry embedded.

    Standard-14 fonts have no program and are ignored.  A font whose
    fsType forbids subsetting is left whole.
    """

    def __init__(self, pdf: Pdf) -> None:
        self.pdf = pdf
        self._metrics = FontMetricsExtractor()

    def subset_fonts(self, fonts: list[EmbeddedFont]) -> SubsettingResult:
        """Subsets each embedded font to the glyphs the document shows.

        Args:
            fonts: Fonts from FontRegistry.fonts.

        Returns:
            SubsettingResult with subsetting status.
        """
        result = SubsettingResult()
        outline_fonts = [
            f for f in fonts if f.kind is not FontKind.STANDARD and f.subset_tag is None
        ]
        if not outline_fonts:
            return result

        usage = collect_font_usage(self.pdf)
        for font in outline_fonts:
            try:
                self._subset_font(font, usage.get(font.font_dict.objgen, set()), result)
            except Exception as e:
                warning = f"Could not subset font '{font.base_font}': {e}"
                result.warnings.append(warning)
                logger.warning(warning)
        return result

    def _subset_font(
        self, font: EmbeddedFont, used_codes: set[int], result: SubsettingResult
    ) -> None:
        descriptor, cid_font = _descriptor_of(font)
        font_file = descriptor.get("/FontFile2") if descriptor is not None else None
        if font_file is None:
            result.fonts_skipped.append(f"{font.base_font} (no FontFile2)")
            return
        font_data = _resolve(font_file).read_bytes()

        if not _check_subsetting_allowed(font_data, font.base_font, result):
            return

        subset_data = self._subset_font_data(font, font_data, used_codes)
        tag = _generate_subset_tag()
        subset_name = Name(f"/{tag}+{font.base_font}")

        new_file = Stream(self.pdf, subset_data)
        new_file[Name.Length1] = len(subset_data)
        descriptor[Name.FontFile2] = self.pdf.make_indirect(new_file)
        descriptor[Name.FontName] = subset_name
        font.font_dict[Name.BaseFont] = subset_name
        if cid_font is not None:
            cid_font[Name.BaseFont] = subset_name

        font.subset_tag = tag
        result.fonts_subsetted.append(font.base_font)
        result.bytes_saved += max(0, len(font_data) - len(subset_data))
        logger.debug(
            "Subset %s: %d -> %d bytes",
            font.base_font,
            len(font_data),
            len(subset_data),
        )

    def _subset_font_data(
        self, font: EmbeddedFont, font_data: bytes, used_codes: set[int]
    ) -> bytes:
        """Runs fontTools over the program, keeping the used glyphs."""
        tt_font = TTFont(BytesIO(font_data))
        try:
            glyph_order = tt_font.getGlyphOrder()
            if font.kind is FontKind.COMPOSITE:
                gids = set(used_codes) | font.used_gids
            else:
                cmap = self._metrics.unicode_to_gid(tt_font)
                gids = {cmap.get(winansi_to_unicode(code), 0) for code in used_codes}
                gids |= font.used_gids

            glyph_names = {
                glyph_order[gid] for gid in gids if 0 <= gid < len(glyph_order)
            }
            # Always keep .notdef
            glyph_names.add(glyph_order[0])

            options = Options()
            options.retain_gids = True
            options.notdef_outline = True
            options.name_legacy = True
            options.name_IDs = ["*"]
            options.name_languages = ["*"]

            subsetter = Subsetter(options=options)
            subsetter.populate(glyphs=glyph_names)
            subsetter.subset(tt_font)

            output = BytesIO()
            tt_font.save(output)
            return output.getvalue()
        finally:
            tt_font.close()


def _descriptor_of(font: EmbeddedFont):
    """Returns (FontDescriptor, CIDFont or None) of a registered font."""
    if font.kind is FontKind.COMPOSITE:
        cid_font = _resolve(font.font_dict.DescendantFonts[0])
        descriptor = cid_font.get("/FontDescriptor")
        return (_resolve(descriptor) if descriptor is not None else None), cid_font
    descriptor = font.font_dict.get("/FontDescriptor")
    return (_resolve(descriptor) if descriptor is not None else None), None


def _check_subsetting_allowed(
    font_data: bytes,
    font_name: str,
    result: SubsettingResult,
) -> bool:
    """Checks the OS/2 fsType field for the No Subsetting bit.

    Args:
        font_data: Raw font bytes.
        font_name: Font name for logging and result tracking.
        result: Result accumulator to add warnings/skipped entries to.

    Returns:
        True if subsetting is allowed, False if it should be skipped.
    """
    tt_font = TTFont(BytesIO(font_data), lazy=True)
    try:
        os2 = tt_font.get("OS/2")
        fstype = os2.fsType if os2 is not None else 0
    finally:
        tt_font.close()

    if fstype & FSTYPE_RESTRICTED_LICENSE:
        msg = f"Font '{font_name}': Restricted License embedding (fsType bit 1)"
        result.warnings.append(msg)
        logger.warning(msg)

    if fstype & FSTYPE_NO_SUBSETTING:
        result.fonts_skipped.append(f"{font_name} (fsType: no subsetting allowed)")
        return False

    return True
