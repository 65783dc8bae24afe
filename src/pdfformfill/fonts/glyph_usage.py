# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.

"""Character code usage collection from PDF content streams.

Walks page content, Form XObjects, Tiling Patterns and annotation
appearance streams and records which character codes are shown with
each font.  Subsetting and the composite font /W rebuild both rely on
it: a glyph survives only if some content stream still shows it.
"""

import logging
from collections.abc import Iterator

import pikepdf

from ..utils import resolve_indirect as _resolve

logger = logging.getLogger(__name__)

_TJ = pikepdf.Operator("TJ")
_TF = pikepdf.Operator("Tf")
_QUOTE = pikepdf.Operator("'")
_DOUBLE_QUOTE = pikepdf.Operator('"')
_TEXT_OPERATORS = frozenset({pikepdf.Operator("Tj"), _TJ, _QUOTE, _DOUBLE_QUOTE})

FontUsage = dict[tuple[int, int], set[int]]


def is_composite_font(font_obj: pikepdf.Object) -> bool:
    """Returns True for Type0 fonts, whose codes are two bytes wide."""
    subtype = font_obj.get("/Subtype")
    return subtype is not None and str(subtype) == "/Type0"


def extract_char_codes(raw: bytes, is_cid: bool) -> set[int]:
    """Splits the bytes of a shown string into character codes.

    Identity-H codes are big-endian byte pairs; simple font codes are
    single bytes.
    """
    if not is_cid:
        return set(raw)
    if len(raw) % 2:
        logger.warning(
            "Odd-length CID string (%d bytes); trailing byte dropped", len(raw)
        )
    return {(raw[i] << 8) | raw[i + 1] for i in range(0, len(raw) - 1, 2)}


def _first_visit(obj: pikepdf.Object, visited: set[tuple[int, int]]) -> bool:
    objgen = obj.objgen
    if objgen == (0, 0):
        return True
    if objgen in visited:
        return False
    visited.add(objgen)
    return True


def _iter_form_streams(
    stream: pikepdf.Object, visited: set[tuple[int, int]]
) -> Iterator[tuple[pikepdf.Object, pikepdf.Object]]:
    """Yields a Form XObject (or AP stream) and everything nested in it."""
    if not isinstance(stream, pikepdf.Stream) or not _first_visit(stream, visited):
        return
    resources = stream.get("/Resources")
    if resources is None:
        return
    resources = _resolve(resources)
    yield stream, resources
    yield from _iter_nested_streams(resources, visited)


def _iter_nested_streams(
    resources: pikepdf.Object, visited: set[tuple[int, int]]
) -> Iterator[tuple[pikepdf.Object, pikepdf.Object]]:
    """Yields (stream, resources) from nested Form XObjects and Tiling Patterns."""
    xobjects = resources.get("/XObject")
    if xobjects is not None:
        xobjects = _resolve(xobjects)
        for key in list(xobjects.keys()):
            xobj = _resolve(xobjects[key])
            subtype = xobj.get("/Subtype")
            if subtype is not None and str(subtype) == "/Form":
                yield from _iter_form_streams(xobj, visited)

    patterns = resources.get("/Pattern")
    if patterns is not None:
        patterns = _resolve(patterns)
        for key in list(patterns.keys()):
            pattern = _resolve(patterns[key])
            pattern_type = pattern.get("/PatternType")
            if pattern_type is not None and int(pattern_type) == 1:
                yield from _iter_form_streams(pattern, visited)


def _iter_appearance_streams(
    annot: pikepdf.Object, visited: set[tuple[int, int]]
) -> Iterator[tuple[pikepdf.Object, pikepdf.Object]]:
    ap = annot.get("/AP")
    if ap is None:
        return
    ap = _resolve(ap)
    for ap_key in ("/N", "/R", "/D"):
        entry = ap.get(ap_key)
        if entry is None:
            continue
        entry = _resolve(entry)
        if isinstance(entry, pikepdf.Stream):
            yield from _iter_form_streams(entry, visited)
        elif isinstance(entry, pikepdf.Dictionary):
            # Button state dictionary
            for state in list(entry.keys()):
                yield from _iter_form_streams(_resolve(entry[state]), visited)


def iter_content_streams(
    page: pikepdf.Page,
) -> Iterator[tuple[pikepdf.Object, pikepdf.Object]]:
    """Yields (content_stream_owner, resources) for everything drawn on a page.

    Args:
        page: A pikepdf Page object.

    Yields:
        Tuples of (stream_owner, resources_dict).
    """
    visited: set[tuple[int, int]] = set()

    resources = page.obj.get("/Resources")
    if resources is not None:
        resources = _resolve(resources)
        yield page.obj, resources
        yield from _iter_nested_streams(resources, visited)

    annots = page.obj.get("/Annots")
    if annots is None:
        return
    for annot in _resolve(annots):
        yield from _iter_appearance_streams(_resolve(annot), visited)


def _resolve_font_object(
    font_name: str, resources: pikepdf.Object
) -> pikepdf.Object | None:
    """Resolves a Tf operand (e.g. "/F1") through a Resources dictionary."""
    fonts = resources.get("/Font")
    if fonts is None:
        return None
    font_ref = _resolve(fonts).get(font_name)
    if font_ref is None:
        return None
    return _resolve(font_ref)


def _shown_strings(operands, operator) -> Iterator[pikepdf.String]:
    if operator == _TJ:
        if operands and isinstance(operands[0], pikepdf.Array):
            for item in operands[0]:
                if isinstance(item, pikepdf.String):
                    yield item
    elif operator == _DOUBLE_QUOTE:
        # aw ac string "
        if len(operands) >= 3:
            yield operands[2]
    elif operands:
        yield operands[0]


def _process_content_stream(
    stream_owner: pikepdf.Object,
    resources: pikepdf.Object,
    usage: FontUsage,
) -> None:
    """Parses one content stream and records character codes per font."""
    try:
        instructions = pikepdf.parse_content_stream(stream_owner)
    except pikepdf.PdfError:
        logger.debug("Skipping unparseable content stream", exc_info=True)
        return

    current_font: pikepdf.Object | None = None
    is_cid = False

    for operands, operator in instructions:
        if operator == _TF:
            current_font = None
            if operands:
                current_font = _resolve_font_object(str(operands[0]), resources)
            is_cid = current_font is not None and is_composite_font(current_font)
        elif operator in _TEXT_OPERATORS and current_font is not None:
            objgen = current_font.objgen
            if objgen == (0, 0):
                continue
            for string in _shown_strings(operands, operator):
                codes = extract_char_codes(bytes(string), is_cid)
                if codes:
                    usage.setdefault(objgen, set()).update(codes)


def collect_font_usage(pdf: pikepdf.Pdf) -> FontUsage:
    """Collects character codes used with each font across the entire PDF.

    Args:
        pdf: Opened pikepdf PDF object.

    Returns:
        Dictionary mapping font objgen (object_number, generation)
        to the set of character codes used with that font.
        Only indirect fonts are included.
    """
    usage: FontUsage = {}
    for page in pdf.pages:
        for stream_owner, resources in iter_content_streams(page):
            _process_content_stream(stream_owner, resources, usage)
    return usage
