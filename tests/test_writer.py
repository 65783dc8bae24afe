# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.

"""Tests for writing filled documents."""

from io import BytesIO

import pytest
from conftest import add_field, new_form_pdf, open_pdf

from pdfformfill.exceptions import WriteError
from pdfformfill.filler import fill_form
from pdfformfill.fonts.registry import FontRegistry
from pdfformfill.style import AppearanceStyle, FontSpec
from pdfformfill.writer import write_document


@pytest.fixture
def filled(latin_font):
    """(pdf, registry) with one field drawn in an embedded TrueType font."""
    pdf = new_form_pdf()
    add_field(pdf, "f")
    with FontRegistry(pdf) as registry:
        style = AppearanceStyle(fallback=FontSpec.outline(latin_font))
        fill_form(pdf, {"f": "Hello"}, style, registry)
        yield pdf, registry


def test_writes_and_subsets(filled, tmp_path):
    pdf, registry = filled
    output = tmp_path / "out" / "filled.pdf"
    result = write_document(pdf, output, registry)

    assert output.is_file()
    assert result.fonts_subsetted == ["TestSans-Regular"]
    reopened = open_pdf(output)
    font = reopened.Root.AcroForm.DR.Font["/TT_TestSans-Regular"]
    assert str(font.BaseFont).endswith("+TestSans-Regular")
    assert str(reopened.Root.AcroForm.Fields[0].V) == "Hello"


def test_subsetting_disabled(filled, tmp_path):
    pdf, registry = filled
    output = tmp_path / "filled.pdf"
    result = write_document(pdf, output, registry, subset_fonts=False)
    assert result.fonts_subsetted == []
    font = open_pdf(output).Root.AcroForm.DR.Font["/TT_TestSans-Regular"]
    assert str(font.BaseFont) == "/TestSans-Regular"


def test_without_registry_nothing_is_subset(filled):
    pdf, _ = filled
    result = write_document(pdf, BytesIO())
    assert result.fonts_subsetted == []


def test_stream_sink(filled):
    pdf, registry = filled
    buffer = BytesIO()
    write_document(pdf, buffer, registry)
    assert buffer.getvalue().startswith(b"%PDF-")


def test_deterministic_output(tmp_path):
    outputs = []
    for i in range(2):
        pdf = new_form_pdf()
        add_field(pdf, "f")
        fill_form(pdf, {"f": "same"}, AppearanceStyle(FontSpec.standard("Helvetica")))
        path = tmp_path / f"{i}.pdf"
        write_document(pdf, path)
        outputs.append(path.read_bytes())
    assert outputs[0] == outputs[1]


def test_unwritable_path(filled, tmp_path):
    pdf, _ = filled
    with pytest.raises(WriteError):
        write_document(pdf, tmp_path)
