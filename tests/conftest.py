# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.

"""Pytest fixtures for the pdfformfill test suite."""

import json
import logging
from io import BytesIO
from pathlib import Path

import pikepdf
import pytest
from fontTools.fontBuilder import FontBuilder
from fontTools.pens.ttGlyphPen import TTGlyphPen
from pikepdf import Array, Dictionary, Name, Pdf, String

# -- Global PDF tracker --

_tracked_pdfs: list[Pdf] = []


@pytest.fixture(autouse=True)
def _auto_close_pdfs():
    """Close all tracked PDF objects after each test."""
    yield
    for pdf in reversed(_tracked_pdfs):
        try:
            pdf.close()
        except Exception:
            pass
    _tracked_pdfs.clear()


@pytest.fixture(autouse=True)
def _reset_package_logger():
    """Undo setup_logging() calls made by CLI tests."""
    package_logger = logging.getLogger("pdfformfill")
    level = package_logger.level
    handlers = list(package_logger.handlers)
    yield
    package_logger.setLevel(level)
    package_logger.handlers[:] = handlers


def new_pdf(**kwargs) -> Pdf:
    """Create a tracked Pdf (auto-closed after test)."""
    pdf = Pdf.new(**kwargs)
    _tracked_pdfs.append(pdf)
    return pdf


def open_pdf(source, **kwargs) -> Pdf:
    """Open a tracked Pdf (auto-closed after test)."""
    pdf = Pdf.open(source, **kwargs)
    _tracked_pdfs.append(pdf)
    return pdf


def save_and_reopen(pdf: Pdf) -> Pdf:
    """Saves to memory and reopens (tracked)."""
    buffer = BytesIO()
    pdf.save(buffer)
    buffer.seek(0)
    return open_pdf(buffer)


# -- Synthetic fonts --

LATIN_CHARS = "".join(chr(cp) for cp in range(0x20, 0x7F))
CJK_CHARS = "日本語東京都"


def make_font_data(
    chars: str = LATIN_CHARS,
    *,
    family: str = "TestSans",
    advance: int = 500,
    fs_type: int = 0,
) -> bytes:
    """Creates a TrueType font with a box glyph for every character.

    Glyph order is ".notdef" followed by one glyph per character in the
    order given, so the glyph ID of ``chars[i]`` is ``i + 1``.

    Args:
        chars: Characters the font maps.
        family: Family name; the PostScript name is ``<family>-Regular``.
        advance: Advance width of every glyph (units per em is 1000).
        fs_type: OS/2 fsType embedding bits.

    Returns:
        Serialized font bytes.
    """
    glyph_names = [".notdef"] + [f"uni{ord(ch):04X}" for ch in chars]

    fb = FontBuilder(1000, isTTF=True)
    fb.setupGlyphOrder(glyph_names)
    fb.setupCharacterMap({ord(ch): f"uni{ord(ch):04X}" for ch in chars})

    glyphs = {}
    for name in glyph_names:
        pen = TTGlyphPen(None)
        if name != "uni0020":
            pen.moveTo((50, 0))
            pen.lineTo((50, 700))
            pen.lineTo((advance - 50, 700))
            pen.lineTo((advance - 50, 0))
            pen.closePath()
        glyphs[name] = pen.glyph()
    fb.setupGlyf(glyphs)

    fb.setupHorizontalMetrics({name: (advance, 50) for name in glyph_names})
    fb.setupHorizontalHeader(ascent=800, descent=-200)
    fb.setupNameTable(
        {"familyName": family, "styleName": "Regular", "psName": f"{family}-Regular"}
    )
    fb.setupOS2(
        sTypoAscender=800,
        sTypoDescender=-200,
        usWinAscent=800,
        usWinDescent=200,
        sCapHeight=700,
        fsType=fs_type,
    )
    fb.setupPost()
    fb.setupHead(unitsPerEm=1000)

    tt = fb.font
    buf = BytesIO()
    tt.save(buf)
    tt.close()
    return buf.getvalue()


@pytest.fixture
def latin_font(tmp_path: Path) -> Path:
    """Font file covering printable ASCII."""
    path = tmp_path / "TestSans.ttf"
    path.write_bytes(make_font_data())
    return path


@pytest.fixture
def cjk_font(tmp_path: Path) -> Path:
    """Font file covering printable ASCII and a few CJK characters."""
    path = tmp_path / "TestCJK.ttf"
    path.write_bytes(make_font_data(LATIN_CHARS + CJK_CHARS, family="TestCJK"))
    return path


@pytest.fixture
def upper_font(tmp_path: Path) -> Path:
    """Font file with only space and the capital letters A-Z."""
    path = tmp_path / "TestUpper.ttf"
    chars = " ABCDEFGHIJKLMNOPQRSTUVWXYZ"
    path.write_bytes(make_font_data(chars, family="TestUpper", advance=600))
    return path


# -- Synthetic forms --


def new_form_pdf(pages: int = 1) -> Pdf:
    """Creates a tracked PDF with empty pages and an empty AcroForm.

    The form's /DR holds a Helvetica entry under /Helv, as most form
    producers write it.
    """
    pdf = new_pdf()
    for _ in range(pages):
        pdf.add_blank_page(page_size=(612, 792))
    helv = pdf.make_indirect(
        Dictionary(
            Type=Name.Font,
            Subtype=Name.Type1,
            BaseFont=Name.Helvetica,
            Encoding=Name.WinAnsiEncoding,
        )
    )
    pdf.Root.AcroForm = pdf.make_indirect(
        Dictionary(
            Fields=Array(),
            DR=Dictionary(Font=Dictionary(Helv=helv)),
            DA=String("/Helv 0 Tf 0 g"),
        )
    )
    return pdf


def _attach_widget(pdf: Pdf, widget: Dictionary, page_index: int) -> Dictionary:
    page = pdf.pages[page_index]
    widget[Name.P] = page.obj
    if "/Annots" not in page.obj:
        page.obj[Name.Annots] = Array()
    page.obj.Annots.append(widget)
    return widget


def add_field(
    pdf: Pdf,
    name: str,
    field_type: str = "/Tx",
    rect=(100, 700, 300, 720),
    *,
    page_index: int = 0,
    parent: Dictionary | None = None,
    **entries,
) -> Dictionary:
    """Adds a terminal field merged with its single widget.

    Args:
        pdf: Form document from new_form_pdf().
        name: Partial field name (/T).
        field_type: /FT value.
        rect: Widget rectangle.
        page_index: Page the widget is placed on.
        parent: Parent field; the new field is added to its /Kids
            instead of the AcroForm /Fields.
        **entries: Extra dictionary entries, e.g. ``V=String("x")``.

    Returns:
        The indirect field/widget dictionary.
    """
    entries.setdefault("F", 4)
    field = pdf.make_indirect(
        Dictionary(
            Type=Name.Annot,
            Subtype=Name.Widget,
            FT=Name(field_type),
            T=String(name),
            Rect=Array(list(rect)),
            **entries,
        )
    )
    if parent is not None:
        field[Name.Parent] = parent
        parent.Kids.append(field)
    else:
        pdf.Root.AcroForm.Fields.append(field)
    return _attach_widget(pdf, field, page_index)


def add_parent_field(pdf: Pdf, name: str, **entries) -> Dictionary:
    """Adds a non-terminal field with an empty /Kids array."""
    field = pdf.make_indirect(Dictionary(T=String(name), Kids=Array(), **entries))
    pdf.Root.AcroForm.Fields.append(field)
    return field


def state_appearance(pdf: Pdf, on_state: str, w: float = 12, h: float = 12):
    """Builds a minimal /N state dictionary for a checkbox or radio widget."""
    def form(content: bytes):
        stream = pdf.make_stream(content)
        stream[Name.Type] = Name.XObject
        stream[Name.Subtype] = Name.Form
        stream[Name.BBox] = Array([0, 0, w, h])
        return stream

    return Dictionary(
        {
            "/" + on_state: form(b"0 g 2 2 8 8 re f"),
            "/Off": form(b""),
        }
    )


def add_radio_group(
    pdf: Pdf,
    name: str,
    states: list[str],
    *,
    with_appearances: bool = True,
    **entries,
) -> Dictionary:
    """Adds a radio button field with one widget per state."""
    field = pdf.make_indirect(
        Dictionary(
            FT=Name.Btn,
            T=String(name),
            Ff=1 << 15,
            Kids=Array(),
            V=Name.Off,
            **entries,
        )
    )
    pdf.Root.AcroForm.Fields.append(field)
    for i, state in enumerate(states):
        widget = pdf.make_indirect(
            Dictionary(
                Type=Name.Annot,
                Subtype=Name.Widget,
                Rect=Array([100 + 20 * i, 600, 112 + 20 * i, 612]),
                F=4,
                Parent=field,
                AS=Name.Off,
            )
        )
        if with_appearances:
            widget[Name.AP] = Dictionary(N=state_appearance(pdf, state))
        field.Kids.append(widget)
        _attach_widget(pdf, widget, 0)
    return field


def write_json(path: Path, data) -> Path:
    path.write_text(json.dumps(data, ensure_ascii=False), encoding="utf-8")
    return path


def page_content(pdf: Pdf, page_index: int = 0) -> bytes:
    """Returns the page's content streams concatenated."""
    page = pdf.pages[page_index]
    contents = page.obj.get("/Contents")
    if contents is None:
        return b""
    if isinstance(contents, pikepdf.Array):
        return b"\n".join(c.read_bytes() for c in contents)
    return contents.read_bytes()


def normal_appearance(widget: Dictionary) -> pikepdf.Object:
    """Returns the widget's /AP /N entry."""
    return widget.AP.N


@pytest.fixture
def form_pdf() -> Pdf:
    """Form with a text field, a multiline field, a checkbox and a radio group."""
    pdf = new_form_pdf()
    add_field(pdf, "name1", DA=String("/Helv 0 Tf 0 g"))
    add_field(
        pdf,
        "comments",
        rect=(100, 500, 400, 580),
        Ff=1 << 12,
        DA=String("/Helv 10 Tf 0 g"),
    )
    add_field(
        pdf,
        "agree",
        "/Btn",
        rect=(100, 650, 112, 662),
        V=Name.Off,
        AS=Name.Off,
        AP=Dictionary(N=state_appearance(pdf, "Yes")),
    )
    add_radio_group(pdf, "color", ["Red", "Green", "Blue"])
    return pdf
