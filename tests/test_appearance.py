# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.

"""Tests for widget appearance helpers."""

import pytest
from conftest import new_pdf
from pikepdf import Array, Dictionary, Name

from pdfformfill.appearance import (
    AppearanceRequest,
    build_border_background,
    build_widget_appearance,
    get_border_width,
    get_on_state_name,
    get_rect_dimensions,
    get_rotation,
    make_da_string,
    parse_da_string,
)
from pdfformfill.form import FieldType


def _widget(**entries) -> Dictionary:
    entries.setdefault("Rect", Array([0, 0, 100, 20]))
    return Dictionary(Type=Name.Annot, Subtype=Name.Widget, **entries)


class TestDefaultAppearance:
    """Tests for /DA parsing and building."""

    def test_parse_full(self):
        assert parse_da_string("/Helv 10 Tf 0 0 1 rg") == ("Helv", 10.0, "0 0 1 rg")

    def test_parse_auto_size(self):
        assert parse_da_string("/F1 0 Tf 0 g") == ("F1", 0.0, "0 g")

    @pytest.mark.parametrize("da", [None, "", "   "])
    def test_parse_empty(self, da):
        assert parse_da_string(da) == (None, 12.0, "")

    def test_parse_without_font(self):
        assert parse_da_string("0 g") == (None, 12.0, "0 g")

    def test_make(self):
        assert make_da_string("Helv", 9.5, "0 g") == "/Helv 9.5 Tf 0 g"
        assert make_da_string("Cour", 12.0, "") == "/Cour 12 Tf"


class TestGeometry:
    """Tests for rect, border and rotation helpers."""

    def test_rect_dimensions(self):
        assert get_rect_dimensions(_widget(Rect=Array([10, 40, 110, 20]))) == (
            100.0,
            20.0,
        )
        assert get_rect_dimensions(Dictionary()) == (0.0, 0.0)

    def test_border_width(self):
        assert get_border_width(_widget()) == 1.0
        assert get_border_width(_widget(BS=Dictionary(W=3))) == 3.0
        assert get_border_width(_widget(Border=Array([0, 0, 2]))) == 2.0

    @pytest.mark.parametrize("angle, expected", [(90, 90), (-90, 270), (45, 0)])
    def test_rotation(self, angle, expected):
        assert get_rotation(_widget(MK=Dictionary(R=angle))) == expected

    def test_background_and_border(self):
        widget = _widget(
            MK=Dictionary(BG=Array([1]), BC=Array([1, 0, 0])),
            BS=Dictionary(W=2, S=Name.S),
        )
        parts = build_border_background(100, 20, widget)
        assert parts == [
            "1 g",
            "0 0 100 20 re f",
            "2 w",
            "1 0 0 RG",
            "1 1 98 18 re S",
        ]

    def test_no_border_color_draws_no_border(self):
        assert build_border_background(100, 20, _widget()) == []

    def test_dashed_border(self):
        widget = _widget(MK=Dictionary(BC=Array([0])), BS=Dictionary(S=Name.D))
        parts = build_border_background(100, 20, widget)
        assert "[3] 0 d" in parts
        assert parts[-1] == "[] 0 d"


class TestButtons:
    """Tests for checkbox and radio appearances."""

    def test_on_state_from_existing_appearance(self):
        widget = _widget(
            AP=Dictionary(N=Dictionary(Off=Dictionary(), Choice2=Dictionary()))
        )
        assert get_on_state_name(widget) == "Choice2"

    def test_on_state_from_as(self):
        assert get_on_state_name(_widget(AS=Name("/On"))) == "On"

    def test_on_state_default(self):
        assert get_on_state_name(_widget(AS=Name.Off)) == "Yes"

    def test_checkbox_has_both_states(self):
        pdf = new_pdf()
        widget = _widget(Rect=Array([0, 0, 12, 12]))
        normal = build_widget_appearance(
            pdf, widget, AppearanceRequest(FieldType.CHECKBOX, on_state="Agree")
        )
        assert set(normal.keys()) == {"/Agree", "/Off"}
        assert b"re f" not in normal.Off.read_bytes()
        assert [float(v) for v in normal.Agree.BBox] == [0, 0, 12, 12]

    def test_radio_on_state_draws_dot(self):
        pdf = new_pdf()
        widget = _widget(Rect=Array([0, 0, 12, 12]))
        normal = build_widget_appearance(
            pdf, widget, AppearanceRequest(FieldType.RADIO, on_state="A")
        )
        on = normal.A.read_bytes()
        off = normal.Off.read_bytes()
        assert len(on) > len(off)
        assert b" f" in on
