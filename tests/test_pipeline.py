# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.

"""Tests for the end-to-end fill pipeline."""

from io import BytesIO

import pytest
from conftest import (
    LATIN_CHARS,
    add_field,
    add_parent_field,
    add_radio_group,
    new_form_pdf,
    new_pdf,
    open_pdf,
    page_content,
    write_json,
)
from fontTools.ttLib import TTFont

from pdfformfill.config import build_style
from pdfformfill.exceptions import (
    InputNotFoundError,
    MalformedInputError,
    WriteError,
)
from pdfformfill.pipeline import fill_pdf
from pdfformfill.style import default_style


@pytest.fixture
def form_file(tmp_path):
    """Form on disk with fields email4, name1 and address5.city."""
    pdf = new_form_pdf()
    add_field(pdf, "email4")
    add_field(pdf, "name1", rect=(100, 650, 300, 670))
    parent = add_parent_field(pdf, "address5")
    add_field(pdf, "city", rect=(100, 600, 300, 620), parent=parent)
    path = tmp_path / "form.pdf"
    pdf.save(path)
    return path


@pytest.fixture
def values_file(tmp_path):
    return write_json(
        tmp_path / "values.json",
        {"email4": "a@b.com", "name1": "Alice", "address5": {"city": "東京"}},
    )


def test_fill_and_flatten(form_file, values_file, tmp_path, cjk_font, latin_font):
    font_map = write_json(
        tmp_path / "fonts.json",
        {"email4": str(latin_font), "address5[city]": f"cid:{cjk_font}"},
    )
    output = tmp_path / "out.pdf"

    report = fill_pdf(form_file, values_file, output, build_style(font_map=font_map))

    assert report.fields_filled == 3
    assert report.widgets_flattened == 3
    assert sorted(report.fonts_subsetted) == ["TestCJK-Regular", "TestSans-Regular"]
    assert report.unknown_fields == []
    assert report.processing_time >= 0

    result = open_pdf(output)
    assert "/AcroForm" not in result.Root
    assert "/Annots" not in result.pages[0].obj
    xobjects = result.pages[0].obj.Resources.XObject
    drawn = b"\n".join(xobjects[k].read_bytes() for k in xobjects.keys())
    assert b"(Alice) Tj" in drawn
    assert b"(a@b.com) Tj" in drawn
    east = len(LATIN_CHARS) + 4
    assert f"<{east:04X}{east + 1:04X}> Tj".encode() in drawn
    assert b" Do Q" in page_content(result)


def test_no_flatten_keeps_form(form_file, tmp_path):
    output = tmp_path / "out.pdf"
    values = write_json(tmp_path / "v.json", {"name1": "Alice", "extra": "x"})

    report = fill_pdf(form_file, values, output, default_style(), flatten=False)

    assert report.widgets_flattened == 0
    assert report.unknown_fields == ["extra"]
    result = open_pdf(output)
    fields = {str(f.T): f for f in result.Root.AcroForm.Fields}
    assert str(fields["name1"].V) == "Alice"
    assert "/AP" in fields["name1"]
    assert "/NeedAppearances" not in result.Root.AcroForm


def test_no_flatten_keeps_whole_fonts(form_file, tmp_path, latin_font):
    values = write_json(tmp_path / "v.json", {"name1": "Alice"})
    output = tmp_path / "out.pdf"
    style = build_style(font_fallback=str(latin_font))

    report = fill_pdf(form_file, values, output, style, flatten=False)

    assert report.fonts_subsetted == []
    font = open_pdf(output).Root.AcroForm.DR.Font["/TT_TestSans-Regular"]
    assert str(font.BaseFont) == "/TestSans-Regular"
    tt = TTFont(BytesIO(font.FontDescriptor.FontFile2.read_bytes()))
    try:
        assert len(tt.getGlyphOrder()) == len(LATIN_CHARS) + 1
    finally:
        tt.close()


def test_substitutions_reported(form_file, tmp_path, upper_font):
    values = write_json(tmp_path / "v.json", {"name1": "Ab"})
    font_map = write_json(tmp_path / "fonts.json", {"name1": str(upper_font)})
    report = fill_pdf(
        form_file, values, tmp_path / "out.pdf", build_style(font_map=font_map)
    )
    assert any("'b' drawn with Helvetica" in w for w in report.warnings)


def test_document_without_form(tmp_path, values_file):
    pdf = new_pdf()
    pdf.add_blank_page()
    source = tmp_path / "plain.pdf"
    pdf.save(source)

    report = fill_pdf(source, values_file, tmp_path / "out.pdf", default_style())

    assert report.fields_filled == 0
    assert "Document has no interactive form" in report.warnings
    assert len(report.unknown_fields) == 3


class TestErrors:
    """Tests for error handling."""

    def test_missing_input(self, tmp_path, values_file):
        with pytest.raises(InputNotFoundError):
            fill_pdf(
                tmp_path / "none.pdf", values_file, tmp_path / "o.pdf", default_style()
            )

    def test_missing_values(self, form_file, tmp_path):
        with pytest.raises(InputNotFoundError):
            fill_pdf(
                form_file, tmp_path / "none.json", tmp_path / "o.pdf", default_style()
            )

    def test_not_a_pdf(self, tmp_path, values_file):
        source = tmp_path / "bad.pdf"
        source.write_bytes(b"this is not a pdf")
        with pytest.raises(MalformedInputError):
            fill_pdf(source, values_file, tmp_path / "o.pdf", default_style())

    def test_output_exists(self, form_file, values_file, tmp_path):
        output = tmp_path / "o.pdf"
        output.write_bytes(b"")
        with pytest.raises(WriteError):
            fill_pdf(form_file, values_file, output, default_style())

    def test_overwrite(self, form_file, tmp_path):
        values = write_json(tmp_path / "v.json", {"name1": "x"})
        output = tmp_path / "o.pdf"
        output.write_bytes(b"")
        fill_pdf(form_file, values, output, default_style(), overwrite=True)
        assert output.read_bytes().startswith(b"%PDF-")

    def test_output_is_input(self, form_file, values_file):
        with pytest.raises(WriteError):
            fill_pdf(form_file, values_file, form_file, default_style(), overwrite=True)

    def test_invalid_radio_value(self, tmp_path):
        pdf = new_form_pdf()
        add_radio_group(pdf, "color", ["Red", "Blue"])
        source = tmp_path / "radio.pdf"
        pdf.save(source)
        values = write_json(tmp_path / "v.json", {"color": "Green"})
        output = tmp_path / "o.pdf"

        with pytest.raises(MalformedInputError):
            fill_pdf(source, values, output, default_style())
        assert not output.exists()
