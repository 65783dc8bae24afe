# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.

"""Tests for subsetting embedded field fonts."""

import re
from io import BytesIO

from conftest import LATIN_CHARS, add_field, make_font_data, new_form_pdf
from fontTools.ttLib import TTFont

from pdfformfill.filler import fill_form
from pdfformfill.fonts.registry import FontRegistry
from pdfformfill.fonts.subsetter import (
    FSTYPE_NO_SUBSETTING,
    FSTYPE_RESTRICTED_LICENSE,
    FontSubsetter,
)
from pdfformfill.style import AppearanceStyle, FontSpec

_TAGGED = re.compile(r"^/[A-Z]{6}\+")


def _gid(ch: str) -> int:
    return LATIN_CHARS.index(ch) + 1


def _contours(font_data: bytes, gid: int) -> int:
    """Contour count of a glyph; 0 when the subset dropped the glyph slot."""
    tt = TTFont(BytesIO(font_data))
    try:
        order = tt.getGlyphOrder()
        if gid >= len(order):
            return 0
        return tt["glyf"][order[gid]].numberOfContours
    finally:
        tt.close()


def _filled_with(pdf, spec, text="AB"):
    add_field(pdf, "f")
    registry = FontRegistry(pdf)
    fill_form(pdf, {"f": text}, AppearanceStyle(fallback=spec), registry)
    return registry


class TestFontSubsetter:
    """Tests for FontSubsetter.subset_fonts."""

    def test_simple_font_keeps_used_glyphs(self, latin_font):
        pdf = new_form_pdf()
        with _filled_with(pdf, FontSpec.outline(latin_font)) as registry:
            (font,) = registry.fonts
            result = FontSubsetter(pdf).subset_fonts(registry.fonts)

        assert result.fonts_subsetted == ["TestSans-Regular"]
        assert result.bytes_saved > 0
        assert _TAGGED.match(str(font.font_dict.BaseFont))
        assert str(font.font_dict.BaseFont).endswith("+TestSans-Regular")
        descriptor = font.font_dict.FontDescriptor
        assert descriptor.FontName == font.font_dict.BaseFont

        data = descriptor.FontFile2.read_bytes()
        assert int(descriptor.FontFile2.Length1) == len(data)
        assert _contours(data, _gid("A")) > 0
        assert _contours(data, _gid("B")) > 0
        assert _contours(data, _gid("Z")) == 0

    def test_composite_font_tags_descendant(self, cjk_font):
        pdf = new_form_pdf()
        spec = FontSpec.outline(cjk_font, composite=True)
        with _filled_with(pdf, spec, text="東京") as registry:
            (font,) = registry.fonts
            FontSubsetter(pdf).subset_fonts(registry.fonts)

        cid_font = font.font_dict.DescendantFonts[0]
        assert _TAGGED.match(str(font.font_dict.BaseFont))
        assert cid_font.BaseFont == font.font_dict.BaseFont
        data = cid_font.FontDescriptor.FontFile2.read_bytes()
        east = len(LATIN_CHARS) + 4
        assert _contours(data, east) > 0
        assert _contours(data, east - 1) == 0
        # glyph IDs are retained
        assert int(cid_font.W[0]) == east

    def test_no_subsetting_bit_skips_font(self, tmp_path):
        path = tmp_path / "locked.ttf"
        path.write_bytes(make_font_data(fs_type=FSTYPE_NO_SUBSETTING))
        pdf = new_form_pdf()
        with _filled_with(pdf, FontSpec.outline(path)) as registry:
            (font,) = registry.fonts
            result = FontSubsetter(pdf).subset_fonts(registry.fonts)

        assert result.fonts_subsetted == []
        assert len(result.fonts_skipped) == 1
        assert str(font.font_dict.BaseFont) == "/TestSans-Regular"
        assert font.subset_tag is None

    def test_restricted_license_warns(self, tmp_path, caplog):
        path = tmp_path / "restricted.ttf"
        path.write_bytes(make_font_data(fs_type=FSTYPE_RESTRICTED_LICENSE))
        pdf = new_form_pdf()
        with _filled_with(pdf, FontSpec.outline(path)) as registry:
            result = FontSubsetter(pdf).subset_fonts(registry.fonts)

        assert result.fonts_subsetted == ["TestSans-Regular"]
        assert len(result.warnings) == 1
        assert "Restricted License" in caplog.text

    def test_standard_fonts_are_ignored(self):
        pdf = new_form_pdf()
        with _filled_with(pdf, FontSpec.standard("Helvetica")) as registry:
            result = FontSubsetter(pdf).subset_fonts(registry.fonts)
        assert result.fonts_subsetted == []
        assert result.fonts_skipped == []

    def test_font_is_subset_once(self, latin_font):
        pdf = new_form_pdf()
        with _filled_with(pdf, FontSpec.outline(latin_font)) as registry:
            (font,) = registry.fonts
            FontSubsetter(pdf).subset_fonts(registry.fonts)
            tag = font.subset_tag
            again = FontSubsetter(pdf).subset_fonts(registry.fonts)

        assert tag is not None
        assert again.fonts_subsetted == []
        assert font.subset_tag == tag

    def test_fallback_glyphs_do_not_touch_field_font(self, upper_font):
        pdf = new_form_pdf()
        add_field(pdf, "f")
        style = AppearanceStyle(
            fallback=FontSpec.standard("Helvetica"),
            field_fallbacks={"f": FontSpec.outline(upper_font)},
        )
        with FontRegistry(pdf) as registry:
            fill_form(pdf, {"f": "A-1"}, style, registry)
            result = FontSubsetter(pdf).subset_fonts(registry.fonts)
        assert result.fonts_subsetted == ["TestUpper-Regular"]
