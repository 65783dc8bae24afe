# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.

"""Widget appearance stream generation.

Builds the /AP /N Form XObject of a widget from its field's value.
Text is laid out with the field's resolved font (see layout.RunBuilder);
checkbox and radio states are vector paths and need no font.
"""

import logging
import math
import re
from dataclasses import dataclass, field

from pikepdf import Array, Dictionary, Name, Pdf, Stream

from .form import FF_COMB, FF_COMBO, FF_MULTILINE, FF_PASSWORD, FieldType
from .layout import (
    DEFAULT_FONT_SIZE,
    RunBuilder,
    baseline_y,
    compute_auto_font_size,
    horizontal_offset,
    line_height_factor,
    wrap_text,
)
from .utils import format_number as _n
from .utils import resolve_indirect as _resolve

logger = logging.getLogger(__name__)

# Minimum checkbox/radio box when the rect is degenerate
_MIN_BUTTON_SIZE = 12

# Listbox selection highlight
_HIGHLIGHT_OPS = "0 0 0.6 rg"

# C0 controls and DEL have no glyphs; multiline text keeps its line breaks
_CONTROL_RE = re.compile(r"\r\n|[\x00-\x1f\x7f]")
_INLINE_CONTROL_RE = re.compile(r"[\x00-\x09\x0b\x0c\x0e-\x1f\x7f]")


@dataclass
class AppearanceRequest:
    """Everything needed to draw one widget.

    Attributes:
        field_type: Kind of the owning field.
        flags: Field flags (/Ff).
        text: Display text (value, combo selection or pushbutton caption).
        builder: Run builder for the field's font; None for buttons
            drawn without text.
        font_size: Fixed size in points, 0 for auto-size.
        color_ops: Text color operators from /DA.
        alignment: Quadding (/Q): 0 left, 1 center, 2 right.
        max_len: /MaxLen of comb fields.
        options: Listbox display strings.
        selected: Indices of selected listbox options.
        top_index: First visible listbox option (/TI).
        on_state: On-state name for checkboxes and radio buttons.
    """

    field_type: FieldType
    flags: int = 0
    text: str = ""
    builder: RunBuilder | None = None
    font_size: float = 0.0
    color_ops: str = ""
    alignment: int = 0
    max_len: int | None = None
    options: list[str] = field(default_factory=list)
    selected: set[int] = field(default_factory=set)
    top_index: int = 0
    on_state: str = "Yes"


def build_widget_appearance(pdf: Pdf, annot: Dictionary, request: AppearanceRequest):
    """Creates the normal appearance for a widget annotation.

    Args:
        pdf: Opened pikepdf PDF object.
        annot: Widget annotation dictionary.
        request: What to draw.

    Returns:
        A pikepdf Stream, or for checkboxes and radio buttons a
        Dictionary mapping state names to Streams, suitable for /AP /N.

    Raises:
        UnsupportedGlyphError: If the text needs a glyph that neither the
            field font nor the fallback font has.
    """
    ft = request.field_type
    if ft is FieldType.TEXT:
        if request.flags & FF_COMB and request.max_len:
            return _build_comb_appearance(pdf, annot, request)
        if request.flags & FF_MULTILINE:
            return _build_multiline_appearance(pdf, annot, request)
        return _build_single_line_appearance(pdf, annot, request)
    if ft is FieldType.CHOICE:
        if request.flags & FF_COMBO:
            return _build_single_line_appearance(pdf, annot, request)
        return _build_listbox_appearance(pdf, annot, request)
    if ft is FieldType.CHECKBOX:
        return _build_checkbox_appearance(pdf, annot, request.on_state)
    if ft is FieldType.RADIO:
        return _build_radio_appearance(pdf, annot, request.on_state)
    if ft is FieldType.PUSHBUTTON:
        return _build_pushbutton_appearance(pdf, annot, request)
    return _build_border_only_appearance(pdf, annot)


# ---------------------------------------------------------------------------
# Default appearance (/DA) strings
# ---------------------------------------------------------------------------

_DA_FONT_RE = re.compile(r"/(\S+)\s+([\d.]+)\s+Tf")


def parse_da_string(da) -> tuple[str | None, float, str]:
    """Parses a /DA (Default Appearance) string.

    Args:
        da: The DA string value, or None.

    Returns:
        Tuple of (font_name, font_size, color_ops).  font_size is 0.0
        for auto-size and 12.0 when the string has no Tf operator.
    """
    if da is None or not str(da).strip():
        return None, DEFAULT_FONT_SIZE, ""

    da_str = str(da)
    font_name = None
    font_size = DEFAULT_FONT_SIZE

    m = _DA_FONT_RE.search(da_str)
    if m:
        font_name = m.group(1)
        try:
            font_size = float(m.group(2))
        except ValueError:
            font_size = DEFAULT_FONT_SIZE

    color_ops = _DA_FONT_RE.sub("", da_str).strip()
    return font_name, font_size, color_ops


def make_da_string(resource_name: str, font_size: float, color_ops: str) -> str:
    """Builds a /DA string selecting ``resource_name``."""
    da = f"/{resource_name} {_n(font_size)} Tf"
    return f"{da} {color_ops}" if color_ops else da


# ---------------------------------------------------------------------------
# Color helpers
# ---------------------------------------------------------------------------


def _color_array_to_ops(arr, stroke=False):
    """Converts a /MK color array to content stream color operators.

    Args:
        arr: pikepdf Array of 1 (gray), 3 (RGB) or 4 (CMYK) components.
        stroke: If True, use stroke operators (G/RG/K); otherwise fill.

    Returns:
        Color operator string, e.g. "0.5 g", or "" for other arrays.
    """
    if arr is None:
        return ""
    try:
        components = [float(c) for c in arr]
    except (TypeError, ValueError):
        return ""

    operators = {1: "g", 3: "rg", 4: "k"}
    op = operators.get(len(components))
    if op is None:
        return ""
    if stroke:
        op = op.upper()
    return " ".join(_n(c) for c in components) + f" {op}"


def _get_mk(annot):
    mk = annot.get("/MK")
    return _resolve(mk) if mk is not None else None


# ---------------------------------------------------------------------------
# Rect / BBox helpers
# ---------------------------------------------------------------------------


def get_rect_dimensions(annot) -> tuple[float, float]:
    """Extracts width and height from annotation /Rect.

    Returns:
        Tuple of (width, height) as floats. Defaults to (0, 0).
    """
    rect = annot.get("/Rect")
    if rect is None or len(rect) != 4:
        return 0.0, 0.0
    x1, y1, x2, y2 = (float(v) for v in rect)
    return abs(x2 - x1), abs(y2 - y1)


def make_form_stream(pdf, w, h, content, resources=None, matrix=None) -> Stream:
    """Creates a Form XObject stream with the given content.

    Args:
        pdf: pikepdf Pdf object.
        w: BBox width.
        h: BBox height.
        content: Content stream bytes.
        resources: Optional resources dictionary.
        matrix: Optional transformation matrix as a 6-element list.

    Returns:
        pikepdf Stream configured as a Form XObject.
    """
    stream = pdf.make_stream(content)
    stream[Name.Type] = Name.XObject
    stream[Name.Subtype] = Name.Form
    stream[Name.BBox] = Array([0, 0, w, h])
    stream[Name.Resources] = resources if resources is not None else Dictionary()
    if matrix is not None:
        stream[Name.Matrix] = Array(matrix)
    return stream


def _make_empty_stream(pdf, annot):
    w, h = get_rect_dimensions(annot)
    return make_form_stream(pdf, w, h, b"")


def _font_resources(builder: RunBuilder) -> Dictionary:
    """Resources naming every font the builder's runs used."""
    fonts = Dictionary()
    for font in builder.fonts_used:
        fonts[Name("/" + font.resource_name)] = font.font_dict
    return Dictionary(Font=fonts)


# ---------------------------------------------------------------------------
# Border & background
# ---------------------------------------------------------------------------


def get_border_width(annot) -> float:
    """Gets border width from /BS /W, then /Border; defaults to 1."""
    bs = annot.get("/BS")
    if bs is not None:
        bw = _resolve(bs).get("/W")
        if bw is not None:
            return float(bw)

    border = annot.get("/Border")
    if border is not None and len(border) >= 3:
        return float(border[2])

    return 1.0


def _get_border_style(annot) -> str:
    """Gets border style from /BS /S.

    Returns:
        One of "S" (solid), "D" (dashed), "B" (beveled),
        "I" (inset), "U" (underline).  Default is "S".
    """
    bs = annot.get("/BS")
    if bs is not None:
        s = _resolve(bs).get("/S")
        if s is not None:
            style = str(s).lstrip("/")
            if style in ("S", "D", "B", "I", "U"):
                return style
    return "S"


def _bevel_parts(w, h, bw, top_left_gray, bottom_right_gray):
    """3D edge fills for beveled and inset borders."""
    return [
        f"{top_left_gray} g",
        f"0 0 m {_n(w)} 0 l {_n(w - bw)} {_n(bw)} l "
        f"{_n(bw)} {_n(bw)} l {_n(bw)} {_n(h - bw)} l 0 {_n(h)} l f",
        f"{bottom_right_gray} g",
        f"{_n(w)} {_n(h)} m {_n(w)} 0 l {_n(w - bw)} {_n(bw)} l "
        f"{_n(w - bw)} {_n(h - bw)} l {_n(bw)} {_n(h - bw)} l 0 {_n(h)} l f",
    ]


def build_border_background(w, h, annot) -> list[str]:
    """Content stream lines for a widget's background and border.

    Follows /MK /BG and /BC for colors and /BS for width and style.
    Without /MK /BC nothing is stroked.
    """
    parts = []
    mk = _get_mk(annot)

    if mk is not None:
        bg_ops = _color_array_to_ops(mk.get("/BG"))
        if bg_ops:
            parts.append(bg_ops)
            parts.append(f"0 0 {_n(w)} {_n(h)} re f")

    bw = get_border_width(annot)
    bc_ops = _color_array_to_ops(mk.get("/BC"), stroke=True) if mk is not None else ""
    if bw <= 0 or not bc_ops:
        return parts

    style = _get_border_style(annot)
    hw = bw / 2.0
    if style == "B":
        parts.extend(_bevel_parts(w, h, bw, 1, 0.5))
    elif style == "I":
        parts.extend(_bevel_parts(w, h, bw, 0.5, 0.75))
    elif style == "U":
        parts.extend([f"{_n(bw)} w", bc_ops, f"0 {_n(hw)} m {_n(w)} {_n(hw)} l S"])
        return parts
    elif style == "D":
        parts.extend([f"{_n(bw)} w", "[3] 0 d"])

    if style != "D":
        parts.append(f"{_n(bw)} w")
    parts.append(bc_ops)
    parts.append(f"{_n(hw)} {_n(hw)} {_n(w - bw)} {_n(h - bw)} re S")
    if style == "D":
        parts.append("[] 0 d")
    return parts


# ---------------------------------------------------------------------------
# Rotation
# ---------------------------------------------------------------------------


def get_rotation(annot) -> int:
    """Gets widget rotation from /MK /R (0, 90, 180 or 270)."""
    mk = _get_mk(annot)
    if mk is not None:
        r = mk.get("/R")
        if r is not None:
            angle = int(r) % 360
            if angle in (0, 90, 180, 270):
                return angle
    return 0


def _rotation_matrix(angle, w, h):
    """Computes the /Matrix for a rotated Form XObject.

    Args:
        angle: Rotation angle (0, 90, 180, 270).
        w: Widget width.
        h: Widget height.

    Returns:
        6-element list for the /Matrix entry, or None for 0.
    """
    if angle == 90:
        return [0, 1, -1, 0, w, 0]
    if angle == 180:
        return [-1, 0, 0, -1, w, h]
    if angle == 270:
        return [0, -1, 1, 0, 0, h]
    return None


def _layout_box(annot) -> tuple[float, float, int]:
    """Returns (layout width, layout height, rotation) of a widget.

    Text is laid out in the rotated frame, so 90 and 270 degree
    widgets swap width and height.
    """
    w, h = get_rect_dimensions(annot)
    rotation = get_rotation(annot)
    if rotation in (90, 270):
        return h, w, rotation
    return w, h, rotation


def _finish(pdf, annot, parts, resources, layout_w, layout_h, rotation):
    content = "\n".join(parts).encode("latin-1")
    matrix = _rotation_matrix(rotation, *get_rect_dimensions(annot))
    return make_form_stream(pdf, layout_w, layout_h, content, resources, matrix)


# ---------------------------------------------------------------------------
# Text builders
# ---------------------------------------------------------------------------


def _text_margin(annot) -> float:
    return max(get_border_width(annot) + 1, 2)


def _build_border_only_appearance(pdf, annot):
    """Border and background without text (signatures, unknown types)."""
    layout_w, layout_h, rotation = _layout_box(annot)
    if layout_w <= 0 or layout_h <= 0:
        return _make_empty_stream(pdf, annot)
    parts = build_border_background(layout_w, layout_h, annot)
    return _finish(pdf, annot, parts, None, layout_w, layout_h, rotation)


def _build_single_line_appearance(pdf, annot, request: AppearanceRequest):
    """Single-line text fields and combo boxes.

    Auto-size shrinks the text to the field; fixed-size text that
    overflows is clipped to the area inside the border.
    """
    layout_w, layout_h, rotation = _layout_box(annot)
    if layout_w <= 0 or layout_h <= 0:
        return _make_empty_stream(pdf, annot)

    builder = request.builder
    text = _single_line(request.text)
    if request.flags & FF_PASSWORD:
        text = "*" * len(text)

    margin = _text_margin(annot)
    avail_w = layout_w - 2 * margin
    avail_h = layout_h - 2 * margin

    font_size = request.font_size
    if font_size == 0:
        font_size = compute_auto_font_size(text, builder, avail_w, avail_h)

    text_width = builder.width(text, font_size)
    tx = margin + horizontal_offset(request.alignment, avail_w, text_width)
    ty = baseline_y(layout_h, font_size, builder.font, margin)

    parts = build_border_background(layout_w, layout_h, annot)
    parts.append("/Tx BMC")
    parts.append("q")
    parts.append(f"{_n(margin)} {_n(margin)} {_n(avail_w)} {_n(avail_h)} re W n")
    parts.append("BT")
    parts.append(request.color_ops or "0 g")
    parts.append(f"{_n(tx)} {_n(ty)} Td")
    parts.extend(builder.show_operators(text, font_size))
    parts.append("ET")
    parts.append("Q")
    parts.append("EMC")

    return _finish(
        pdf, annot, parts, _font_resources(builder), layout_w, layout_h, rotation
    )


def _single_line(text: str) -> str:
    return _CONTROL_RE.sub(" ", text)


def _build_multiline_appearance(pdf, annot, request: AppearanceRequest):
    """Multiline text fields, wrapped on words and then on characters."""
    layout_w, layout_h, rotation = _layout_box(annot)
    if layout_w <= 0 or layout_h <= 0:
        return _make_empty_stream(pdf, annot)

    builder = request.builder
    text = _INLINE_CONTROL_RE.sub(" ", request.text)
    margin = _text_margin(annot)
    avail_w = layout_w - 2 * margin
    avail_h = layout_h - 2 * margin

    font_size = request.font_size
    if font_size == 0:
        font_size = compute_auto_font_size(
            text, builder, avail_w, avail_h, multiline=True
        )

    leading = font_size * line_height_factor(builder.font)
    lines = wrap_text(text, builder, font_size, avail_w)
    top_y = layout_h - margin - builder.font.ascent * font_size / 1000.0

    parts = build_border_background(layout_w, layout_h, annot)
    parts.append("/Tx BMC")
    parts.append("q")
    parts.append(f"{_n(margin)} {_n(margin)} {_n(avail_w)} {_n(avail_h)} re W n")
    parts.append("BT")
    parts.append(request.color_ops or "0 g")

    prev_x = 0.0
    for i, line in enumerate(lines):
        lx = margin + horizontal_offset(
            request.alignment, avail_w, builder.width(line, font_size)
        )
        if i == 0:
            parts.append(f"{_n(lx)} {_n(top_y)} Td")
        else:
            # Td is relative to the start of the previous line
            parts.append(f"{_n(lx - prev_x)} {_n(-leading)} Td")
        prev_x = lx
        if line:
            parts.extend(builder.show_operators(line, font_size))

    parts.append("ET")
    parts.append("Q")
    parts.append("EMC")

    return _finish(
        pdf, annot, parts, _font_resources(builder), layout_w, layout_h, rotation
    )


def _build_comb_appearance(pdf, annot, request: AppearanceRequest):
    """Comb fields: one character centered in each of /MaxLen cells."""
    layout_w, layout_h, rotation = _layout_box(annot)
    if layout_w <= 0 or layout_h <= 0:
        return _make_empty_stream(pdf, annot)

    builder = request.builder
    max_len = max(1, request.max_len or 1)
    text = _single_line(request.text)[:max_len]
    cell_width = layout_w / max_len
    border_width = get_border_width(annot)
    margin = _text_margin(annot)

    font_size = request.font_size
    if font_size == 0:
        widest = max(text, key=lambda ch: builder.width(ch, 1.0)) if text else ""
        font_size = compute_auto_font_size(
            widest, builder, cell_width - 2, layout_h - 2 * margin
        )

    parts = build_border_background(layout_w, layout_h, annot)

    # Cell dividers
    mk = _get_mk(annot)
    bc_ops = _color_array_to_ops(mk.get("/BC"), stroke=True) if mk is not None else ""
    if border_width > 0 and bc_ops:
        parts.append(bc_ops)
        parts.append(f"{_n(border_width)} w")
        for i in range(1, max_len):
            x = i * cell_width
            parts.append(f"{_n(x)} 0 m {_n(x)} {_n(layout_h)} l S")

    ty = baseline_y(layout_h, font_size, builder.font, margin)

    parts.append("/Tx BMC")
    parts.append("BT")
    parts.append(request.color_ops or "0 g")
    prev_x = 0.0
    for i, ch in enumerate(text):
        x = i * cell_width + (cell_width - builder.width(ch, font_size)) / 2.0
        if i == 0:
            parts.append(f"{_n(x)} {_n(ty)} Td")
        else:
            parts.append(f"{_n(x - prev_x)} 0 Td")
        parts.extend(builder.show_operators(ch, font_size))
        prev_x = x
    parts.append("ET")
    parts.append("EMC")

    return _finish(
        pdf, annot, parts, _font_resources(builder), layout_w, layout_h, rotation
    )


def _build_listbox_appearance(pdf, annot, request: AppearanceRequest):
    """List boxes: visible options with the selected rows highlighted."""
    layout_w, layout_h, rotation = _layout_box(annot)
    if layout_w <= 0 or layout_h <= 0:
        return _make_empty_stream(pdf, annot)

    builder = request.builder
    font_size = request.font_size or DEFAULT_FONT_SIZE
    leading = font_size * line_height_factor(builder.font)
    margin = _text_margin(annot)
    avail_w = layout_w - 2 * margin
    avail_h = layout_h - 2 * margin

    options = request.options
    top_index = max(0, min(request.top_index, max(0, len(options) - 1)))
    visible = options[top_index : top_index + max(1, int(avail_h / leading))]

    parts = build_border_background(layout_w, layout_h, annot)
    parts.append("/Tx BMC")
    parts.append("q")
    parts.append(f"{_n(margin)} {_n(margin)} {_n(avail_w)} {_n(avail_h)} re W n")

    for i, _option in enumerate(visible):
        if top_index + i in request.selected:
            row_y = layout_h - margin - (i + 1) * leading
            parts.append(_HIGHLIGHT_OPS)
            parts.append(f"{_n(margin)} {_n(row_y)} {_n(avail_w)} {_n(leading)} re f")

    color_ops = request.color_ops or "0 g"
    parts.append("BT")
    first_y = layout_h - margin - builder.font.ascent * font_size / 1000.0
    parts.append(f"{_n(margin + 1)} {_n(first_y)} Td")
    for i, option in enumerate(visible):
        if i > 0:
            parts.append(f"0 {_n(-leading)} Td")
        # White text on the highlight
        parts.append("1 g" if top_index + i in request.selected else color_ops)
        if option:
            parts.extend(builder.show_operators(_single_line(option), font_size))
    parts.append("ET")
    parts.append("Q")
    parts.append("EMC")

    return _finish(
        pdf, annot, parts, _font_resources(builder), layout_w, layout_h, rotation
    )


def _build_pushbutton_appearance(pdf, annot, request: AppearanceRequest):
    """Pushbuttons: border and background with the centered /MK /CA caption."""
    layout_w, layout_h, rotation = _layout_box(annot)
    if layout_w <= 0 or layout_h <= 0:
        return _make_empty_stream(pdf, annot)

    parts = build_border_background(layout_w, layout_h, annot)
    builder = request.builder
    caption = _single_line(request.text)
    if not caption or builder is None:
        return _finish(pdf, annot, parts, None, layout_w, layout_h, rotation)

    margin = _text_margin(annot)
    font_size = request.font_size
    if font_size == 0:
        font_size = compute_auto_font_size(
            caption, builder, layout_w - 2 * margin, layout_h - 2 * margin
        )

    tx = (layout_w - builder.width(caption, font_size)) / 2.0
    ty = baseline_y(layout_h, font_size, builder.font, margin)
    parts.append("BT")
    parts.append(request.color_ops or "0 g")
    parts.append(f"{_n(tx)} {_n(ty)} Td")
    parts.extend(builder.show_operators(caption, font_size))
    parts.append("ET")

    return _finish(
        pdf, annot, parts, _font_resources(builder), layout_w, layout_h, rotation
    )


# ---------------------------------------------------------------------------
# Checkboxes and radio buttons
# ---------------------------------------------------------------------------

# Bezier control point factor for circle approximation
_KAPPA = 4.0 * (math.sqrt(2) - 1) / 3.0


def _circle_path(cx, cy, r):
    """PDF path operators (m, c) for a circle, without painting operator."""
    k = _KAPPA * r
    return "\n".join(
        [
            f"{_n(cx + r)} {_n(cy)} m",
            f"{_n(cx + r)} {_n(cy + k)} {_n(cx + k)} {_n(cy + r)} "
            f"{_n(cx)} {_n(cy + r)} c",
            f"{_n(cx - k)} {_n(cy + r)} {_n(cx - r)} {_n(cy + k)} "
            f"{_n(cx - r)} {_n(cy)} c",
            f"{_n(cx - r)} {_n(cy - k)} {_n(cx - k)} {_n(cy - r)} "
            f"{_n(cx)} {_n(cy - r)} c",
            f"{_n(cx + k)} {_n(cy - r)} {_n(cx + r)} {_n(cy - k)} "
            f"{_n(cx + r)} {_n(cy)} c",
        ]
    )


def _button_box(annot):
    w, h = get_rect_dimensions(annot)
    if w <= 0 or h <= 0:
        w = max(w, _MIN_BUTTON_SIZE)
        h = max(h, _MIN_BUTTON_SIZE)
    mk = _get_mk(annot)
    bc_ops = _color_array_to_ops(mk.get("/BC"), stroke=True) if mk is not None else ""
    bg_ops = _color_array_to_ops(mk.get("/BG")) if mk is not None else ""
    return w, h, bc_ops or "0 G", bg_ops


def _state_dict(pdf, w, h, off_parts, on_parts, on_state):
    result = Dictionary()
    result[Name("/Off")] = make_form_stream(
        pdf, w, h, "\n".join(off_parts).encode("latin-1")
    )
    result[Name("/" + on_state)] = make_form_stream(
        pdf, w, h, "\n".join(on_parts).encode("latin-1")
    )
    return result


def _build_checkbox_appearance(pdf, annot, on_state):
    """Off state: empty box.  On state: box with a check mark."""
    w, h, bc_ops, bg_ops = _button_box(annot)
    bw = get_border_width(annot)
    hw = bw / 2.0

    box = []
    if bg_ops:
        box.extend([bg_ops, f"0 0 {_n(w)} {_n(h)} re f"])
    box.extend(
        [
            f"{_n(bw)} w",
            bc_ops,
            f"{_n(hw)} {_n(hw)} {_n(w - bw)} {_n(h - bw)} re S",
        ]
    )

    inset = max(bw + 1, 3)
    check = [
        "0 G",
        f"{_n(max(1, bw))} w",
        f"{_n(inset)} {_n(h * 0.5)} m "
        f"{_n(w * 0.4)} {_n(inset)} l "
        f"{_n(w - inset)} {_n(h - inset)} l S",
    ]
    return _state_dict(pdf, w, h, box, box + check, on_state)


def _build_radio_appearance(pdf, annot, on_state):
    """Off state: empty circle.  On state: circle with a filled dot."""
    w, h, bc_ops, bg_ops = _button_box(annot)
    bw = get_border_width(annot)

    cx, cy = w / 2.0, h / 2.0
    r = min(cx, cy) - bw
    if r < 1:
        r = min(cx, cy)
    if r < 0.5:
        return _build_checkbox_appearance(pdf, annot, on_state)

    ring = _circle_path(cx, cy, r)
    circle = []
    if bg_ops:
        circle.extend([bg_ops, ring + " f"])
    circle.extend([f"{_n(bw)} w", bc_ops, ring + " S"])

    dot = ["0 g", _circle_path(cx, cy, r * 0.4) + " f"]
    return _state_dict(pdf, w, h, circle, circle + dot, on_state)


def get_on_state_name(annot) -> str:
    """Determines the "on" state name of a checkbox or radio widget.

    Looks at existing /AP /N keys (any key other than "Off"),
    then falls back to /AS, then defaults to "Yes".
    """
    ap = annot.get("/AP")
    if ap is not None:
        normal = _resolve(ap).get("/N")
        if normal is not None:
            normal = _resolve(normal)
            if isinstance(normal, Dictionary):
                for key in normal.keys():
                    if str(key) != "/Off":
                        return str(key)[1:]

    as_val = annot.get("/AS")
    if as_val is not None and str(as_val) != "/Off":
        return str(as_val)[1:]

    return "Yes"
