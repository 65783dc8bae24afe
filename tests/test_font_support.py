# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.

"""Tests for Standard-14 metrics, ToUnicode CMaps and code extraction."""

import pytest
from pikepdf import Dictionary, Name

from pdfformfill.fonts.glyph_usage import extract_char_codes, is_composite_font
from pdfformfill.fonts.standard14 import (
    canonical_name,
    get_metrics,
    resource_name_for,
    unicode_to_winansi,
    winansi_to_unicode,
)
from pdfformfill.fonts.tounicode import generate_tounicode_cmap


class TestStandard14:
    """Tests for the Standard-14 tables."""

    @pytest.mark.parametrize(
        "name, expected",
        [
            ("Helvetica", "Helvetica"),
            ("/Helv", "Helvetica"),
            ("helvetica-bold", "Helvetica-Bold"),
            ("Arial", "Helvetica"),
            ("Times New Roman", "Times-Roman"),
            ("Cour", "Courier"),
            ("Symbol", None),
            ("Wingdings", None),
        ],
    )
    def test_canonical_name(self, name, expected):
        assert canonical_name(name) == expected

    def test_metrics(self):
        metrics = get_metrics("Helv")
        assert metrics.base_font == "Helvetica"
        assert metrics.widths[ord("A")] == 667
        assert metrics.ascent == 718
        assert get_metrics("Courier").widths[ord("i")] == 600
        assert get_metrics("Unknown") is None

    def test_resource_names(self):
        assert resource_name_for("Helvetica") == "Helv"
        assert resource_name_for("Times-Roman") == "TiRo"

    def test_winansi_mapping(self):
        assert unicode_to_winansi(ord("A")) == 0x41
        assert unicode_to_winansi(ord("é")) == 0xE9
        assert unicode_to_winansi(0x20AC) == 0x80
        assert unicode_to_winansi(0x6771) is None
        assert winansi_to_unicode(0x80) == 0x20AC
        assert winansi_to_unicode(0x41) == 0x41


class TestToUnicode:
    """Tests for generate_tounicode_cmap."""

    def test_simple_font_codes(self):
        cmap = generate_tounicode_cmap({0x41: 0x41, 0x80: 0x20AC}).decode()
        assert "<00> <FF>" in cmap
        assert "2 beginbfchar" in cmap
        assert "<41> <0041>" in cmap
        assert "<80> <20AC>" in cmap

    def test_two_byte_codes(self):
        cmap = generate_tounicode_cmap({99: 0x6771}, code_bytes=2).decode()
        assert "<0000> <FFFF>" in cmap
        assert "<0063> <6771>" in cmap

    def test_supplementary_plane_uses_surrogates(self):
        cmap = generate_tounicode_cmap({5: 0x1F600}, code_bytes=2).decode()
        assert "<0005> <D83DDE00>" in cmap

    def test_invalid_targets_are_dropped(self):
        cmap = generate_tounicode_cmap({1: 0xFEFF, 2: 0xD800, 3: 0x41}).decode()
        assert "1 beginbfchar" in cmap
        assert "<03> <0041>" in cmap

    def test_chunks_of_one_hundred(self):
        mapping = {code: 0x4E00 + code for code in range(150)}
        cmap = generate_tounicode_cmap(mapping, code_bytes=2).decode()
        assert "100 beginbfchar" in cmap
        assert "50 beginbfchar" in cmap


class TestCharCodes:
    """Tests for extract_char_codes and is_composite_font."""

    def test_simple_codes(self):
        assert extract_char_codes(b"ABA", is_cid=False) == {0x41, 0x42}

    def test_cid_codes(self):
        assert extract_char_codes(b"\x00\x63\x00\x64", is_cid=True) == {99, 100}

    def test_odd_cid_string_drops_trailing_byte(self, caplog):
        assert extract_char_codes(b"\x00\x63\x01", is_cid=True) == {99}
        assert "Odd-length" in caplog.text

    def test_is_composite_font(self):
        assert is_composite_font(Dictionary(Subtype=Name.Type0))
        assert not is_composite_font(Dictionary(Subtype=Name.TrueType))
        assert not is_composite_font(Dictionary())
