# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.

"""Form flattening.

Draws each widget's normal appearance into its page's content and
removes the widgets and the AcroForm, leaving a static document.
"""

import logging
from dataclasses import dataclass

from pikepdf import Array, Dictionary, Name, Page, Pdf, Stream

from .filler import FormFiller
from .fonts.registry import FontRegistry
from .form import ANNOT_HIDDEN
from .style import AppearanceStyle
from .utils import format_number
from .utils import resolve_indirect as _resolve

logger = logging.getLogger(__name__)

_XOBJECT_PREFIX = "Fx"


@dataclass
class FlattenResult:
    """Result of flattening a document.

    Attributes:
        widgets_flattened: Widgets drawn into page content.
        annotations_flattened: Non-widget annotations drawn into page
            content (with ``all_annotations``).
        annotations_removed: Annotations removed without drawing
            (hidden, without appearance, or popups).
        form_removed: Whether an /AcroForm was removed.
    """

    widgets_flattened: int = 0
    annotations_flattened: int = 0
    annotations_removed: int = 0
    form_removed: bool = False


def flatten_form(
    pdf: Pdf,
    style: AppearanceStyle | None = None,
    registry: FontRegistry | None = None,
    *,
    all_annotations: bool = False,
) -> FlattenResult:
    """Bakes widget appearances into page content and removes the form.

    Args:
        pdf: Opened pikepdf PDF object; modified in place.
        style: If given, widgets without an appearance get one generated
            with this style before flattening.
        registry: Font registry used for those appearances.
        all_annotations: Also flatten non-widget annotations that have a
            normal appearance.  Popups are dropped.

    Returns:
        FlattenResult with counts.
    """
    result = FlattenResult()

    if style is not None and pdf.Root.get("/AcroForm") is not None:
        with FormFiller(pdf, style, registry) as filler:
            generated = filler.ensure_appearances()
        if generated.appearances_generated:
            logger.debug(
                "Generated %d missing appearances before flattening",
                generated.appearances_generated,
            )

    for page in pdf.pages:
        _flatten_page(pdf, page, all_annotations, result)

    if "/AcroForm" in pdf.Root:
        del pdf.Root["/AcroForm"]
        result.form_removed = True

    logger.info(
        "Flattened %d widgets and %d annotations",
        result.widgets_flattened,
        result.annotations_flattened,
    )
    return result


def _flatten_page(
    pdf: Pdf, page: Page, all_annotations: bool, result: FlattenResult
) -> None:
    annots = page.obj.get("/Annots")
    if annots is None:
        return

    keep = []
    draws: list[str] = []
    for annot in _resolve(annots):
        annot = _resolve(annot)
        subtype = str(annot.get("/Subtype", ""))
        is_widget = subtype == "/Widget"

        if not is_widget and not all_annotations:
            keep.append(annot)
            continue
        if subtype == "/Popup" or _is_hidden(annot):
            result.annotations_removed += 1
            continue

        appearance = _normal_appearance(annot)
        ops = None
        if appearance is not None:
            ops = _draw_operators(page, annot, appearance)
        if ops is None:
            result.annotations_removed += 1
            continue

        draws.append(ops)
        if is_widget:
            result.widgets_flattened += 1
        else:
            result.annotations_flattened += 1

    if draws:
        _append_content(pdf, page, "\n".join(draws))

    if keep:
        page.obj[Name.Annots] = Array(keep)
    else:
        del page.obj["/Annots"]


def _is_hidden(annot: Dictionary) -> bool:
    flags = annot.get("/F")
    return flags is not None and bool(int(flags) & ANNOT_HIDDEN)


def _normal_appearance(annot: Dictionary) -> Stream | None:
    """Selects the /AP /N stream; state dictionaries are indexed by /AS."""
    ap = annot.get("/AP")
    if ap is None:
        return None
    normal = _resolve(ap).get("/N")
    if normal is None:
        return None
    normal = _resolve(normal)
    if isinstance(normal, Stream):
        return normal
    if not isinstance(normal, Dictionary):
        return None

    state = annot.get("/AS")
    key = str(state) if state is not None else "/Off"
    entry = normal.get(key)
    if entry is None:
        return None
    entry = _resolve(entry)
    return entry if isinstance(entry, Stream) else None


def _draw_operators(page: Page, annot: Dictionary, appearance: Stream) -> str | None:
    """Registers the appearance on the page and returns the drawing operators.

    Maps the appearance BBox, transformed by its /Matrix, onto the
    annotation /Rect.

    Returns:
        Content stream operators, or None if the geometry is degenerate.
    """
    rect = annot.get("/Rect")
    bbox = appearance.get("/BBox")
    if rect is None or bbox is None or len(rect) != 4 or len(bbox) != 4:
        return None

    rx1, ry1, rx2, ry2 = (float(v) for v in rect)
    rx1, rx2 = min(rx1, rx2), max(rx1, rx2)
    ry1, ry2 = min(ry1, ry2), max(ry1, ry2)

    matrix = appearance.get("/Matrix")
    m = [float(v) for v in matrix] if matrix is not None and len(matrix) == 6 else None
    bx1, by1, bx2, by2 = _transformed_bbox([float(v) for v in bbox], m)

    bw, bh = bx2 - bx1, by2 - by1
    if bw <= 0 or bh <= 0:
        return None

    sx = (rx2 - rx1) / bw
    sy = (ry2 - ry1) / bh
    tx = rx1 - bx1 * sx
    ty = ry1 - by1 * sy

    if appearance.get("/Subtype") is None:
        appearance[Name.Type] = Name.XObject
        appearance[Name.Subtype] = Name.Form

    _ensure_own_resources(page)
    name = page.add_resource(appearance, Name.XObject, prefix=_XOBJECT_PREFIX)
    cm = " ".join(format_number(v, 6) for v in (sx, 0, 0, sy, tx, ty))
    return f"q {cm} cm {name} Do Q"


def _transformed_bbox(bbox: list[float], matrix: list[float] | None):
    x1, y1, x2, y2 = bbox
    if matrix is None:
        return min(x1, x2), min(y1, y2), max(x1, x2), max(y1, y2)
    a, b, c, d, e, f = matrix
    xs, ys = [], []
    for x, y in ((x1, y1), (x1, y2), (x2, y1), (x2, y2)):
        xs.append(a * x + c * y + e)
        ys.append(b * x + d * y + f)
    return min(xs), min(ys), max(xs), max(ys)


def _ensure_own_resources(page: Page) -> None:
    """Copies inherited /Resources onto the page before adding to them."""
    if "/Resources" in page.obj:
        return
    node = page.obj.get("/Parent")
    while node is not None:
        node = _resolve(node)
        inherited = node.get("/Resources")
        if inherited is not None:
            inherited = _resolve(inherited)
            page.obj[Name.Resources] = Dictionary(
                {key: inherited[key] for key in inherited.keys()}
            )
            return
        node = node.get("/Parent")
    page.obj[Name.Resources] = Dictionary()


def _append_content(pdf: Pdf, page: Page, operators: str) -> None:
    """Wraps existing content in q/Q and appends ``operators``."""
    drawing = pdf.make_stream(f"\nQ\n{operators}\n".encode("latin-1"))
    if page.obj.get("/Contents") is None:
        page.obj[Name.Contents] = pdf.make_stream(b"q")
        page.contents_add(drawing)
        return
    page.contents_add(pdf.make_stream(b"q\n"), prepend=True)
    page.contents_add(drawing)
