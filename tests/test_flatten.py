# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.

"""Tests for form flattening."""

from conftest import (
    add_field,
    new_form_pdf,
    new_pdf,
    normal_appearance,
    page_content,
    save_and_reopen,
)
from pikepdf import Array, Dictionary, Name, String

from pdfformfill.field_data import export_field_values
from pdfformfill.filler import fill_form
from pdfformfill.flatten import flatten_form
from pdfformfill.style import default_style


def _xobjects(pdf, page_index=0):
    resources = pdf.pages[page_index].obj.Resources
    return [resources.XObject[key] for key in resources.XObject.keys()]


def _box_appearance(pdf, w, h, matrix=None):
    stream = pdf.make_stream(b"0 g 0 0 1 1 re f")
    stream[Name.Type] = Name.XObject
    stream[Name.Subtype] = Name.Form
    stream[Name.BBox] = Array([0, 0, w, h])
    if matrix is not None:
        stream[Name.Matrix] = Array(matrix)
    return stream


class TestFlattenForm:
    """Tests for flatten_form."""

    def test_filled_form_becomes_static(self, form_pdf):
        fill_form(form_pdf, {"name1": "Alice", "agree": True}, default_style())
        result = flatten_form(form_pdf, default_style())

        assert result.form_removed
        assert "/AcroForm" not in form_pdf.Root
        assert "/Annots" not in form_pdf.pages[0].obj
        assert result.widgets_flattened == 6
        assert export_field_values(form_pdf) == []

    def test_flattened_text_survives_save(self, form_pdf):
        fill_form(form_pdf, {"name1": "Alice"}, default_style())
        flatten_form(form_pdf, default_style())
        reopened = save_and_reopen(form_pdf)

        drawn = [xobj.read_bytes() for xobj in _xobjects(reopened)]
        assert any(b"(Alice) Tj" in content for content in drawn)
        assert "/AcroForm" not in reopened.Root

    def test_widget_placed_at_rect(self):
        pdf = new_form_pdf()
        add_field(
            pdf,
            "a",
            rect=(100, 700, 300, 720),
            AP=Dictionary(N=_box_appearance(pdf, 200, 20)),
        )
        flatten_form(pdf)
        assert b"q 1 0 0 1 100 700 cm /Fx" in page_content(pdf)

    def test_appearance_scaled_to_rect(self):
        pdf = new_form_pdf()
        add_field(
            pdf,
            "a",
            rect=(50, 60, 250, 80),
            AP=Dictionary(N=_box_appearance(pdf, 100, 10)),
        )
        flatten_form(pdf)
        assert b"q 2 0 0 2 50 60 cm" in page_content(pdf)

    def test_rotated_appearance(self):
        pdf = new_form_pdf()
        rotated = _box_appearance(pdf, 200, 20, matrix=[0, 1, -1, 0, 20, 0])
        add_field(pdf, "a", rect=(100, 100, 120, 300), AP=Dictionary(N=rotated))
        flatten_form(pdf)
        assert b"q 1 0 0 1 100 100 cm" in page_content(pdf)

    def test_existing_content_is_isolated(self, form_pdf):
        page = form_pdf.pages[0]
        page.obj.Contents = form_pdf.make_stream(b"2 0 0 2 0 0 cm")
        fill_form(form_pdf, {"name1": "Alice"}, default_style())
        flatten_form(form_pdf, default_style())

        content = page_content(form_pdf)
        assert content.lstrip().startswith(b"q")
        assert content.index(b"2 0 0 2 0 0 cm") < content.index(b"Q")
        assert content.rindex(b"Q") > content.index(b" Do ")

    def test_checkbox_draws_current_state(self, form_pdf):
        agree = form_pdf.Root.AcroForm.Fields[2]
        on_stream = normal_appearance(agree).Yes
        off_stream = normal_appearance(agree).Off
        fill_form(form_pdf, {"agree": True}, default_style())
        flatten_form(form_pdf)

        drawn = {xobj.objgen for xobj in _xobjects(form_pdf)}
        assert on_stream.objgen in drawn
        assert off_stream.objgen not in drawn

    def test_widget_without_appearance_is_dropped(self, form_pdf):
        result = flatten_form(form_pdf)
        # name1 and comments have no appearance and no style was given
        assert result.widgets_flattened == 4
        assert result.annotations_removed == 2

    def test_style_generates_missing_appearances(self, form_pdf):
        result = flatten_form(form_pdf, default_style())
        assert result.widgets_flattened == 6
        assert result.annotations_removed == 0

    def test_hidden_widget_removed(self):
        pdf = new_form_pdf()
        add_field(pdf, "secret", V=String("x"), F=6)
        result = flatten_form(pdf, default_style())
        assert result.widgets_flattened == 0
        assert result.annotations_removed == 1
        assert b" Do " not in page_content(pdf)

    def test_field_without_page_is_dropped_with_form(self):
        pdf = new_form_pdf()
        orphan = pdf.make_indirect(
            Dictionary(
                FT=Name.Tx,
                T=String("orphan"),
                Rect=Array([0, 0, 10, 10]),
                Subtype=Name.Widget,
            )
        )
        pdf.Root.AcroForm.Fields.append(orphan)
        result = flatten_form(pdf)
        assert result.form_removed
        assert "/AcroForm" not in pdf.Root
        assert export_field_values(pdf) == []

    def test_no_acroform(self):
        pdf = new_pdf()
        pdf.add_blank_page()
        result = flatten_form(pdf)
        assert not result.form_removed
        assert result.widgets_flattened == 0

    def test_inherited_resources_are_copied(self, form_pdf):
        page = form_pdf.pages[0]
        font = form_pdf.Root.AcroForm.DR.Font.Helv
        if "/Resources" in page.obj:
            del page.obj["/Resources"]
        form_pdf.Root.Pages.Resources = Dictionary(Font=Dictionary(F1=font))

        flatten_form(form_pdf, default_style())

        resources = page.obj.Resources
        assert "/F1" in resources.Font
        assert "/XObject" in resources
        assert "/XObject" not in form_pdf.Root.Pages.Resources


class TestOtherAnnotations:
    """Tests for non-widget annotations."""

    def _add_note(self, pdf, subtype=Name.Square):
        note = pdf.make_indirect(
            Dictionary(
                Type=Name.Annot,
                Subtype=subtype,
                Rect=Array([10, 10, 30, 30]),
                F=4,
                AP=Dictionary(N=_box_appearance(pdf, 20, 20)),
            )
        )
        pdf.pages[0].obj.Annots = Array([note])
        return note

    def test_kept_by_default(self):
        pdf = new_form_pdf()
        note = self._add_note(pdf)
        result = flatten_form(pdf)
        annots = pdf.pages[0].obj.Annots
        assert len(annots) == 1
        assert annots[0].objgen == note.objgen
        assert result.annotations_flattened == 0

    def test_flattened_with_all_annotations(self):
        pdf = new_form_pdf()
        self._add_note(pdf)
        result = flatten_form(pdf, all_annotations=True)
        assert result.annotations_flattened == 1
        assert "/Annots" not in pdf.pages[0].obj
        assert b"q 1 0 0 1 10 10 cm" in page_content(pdf)

    def test_popup_dropped(self):
        pdf = new_form_pdf()
        self._add_note(pdf, subtype=Name.Popup)
        result = flatten_form(pdf, all_annotations=True)
        assert result.annotations_removed == 1
        assert result.annotations_flattened == 0
