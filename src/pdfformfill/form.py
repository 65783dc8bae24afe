# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.

"""Interactive form model.

The AcroForm field tree is cyclic (fields point at their widgets and
widgets back at their parent field), so it is indexed into flat tables
addressed by integer handles.  Lookup tables replace back-references:
name -> field handle, field handle -> widget handles and widget handle
-> page index.
"""

import logging
from collections.abc import Iterator
from dataclasses import dataclass, field
from enum import Enum

from pikepdf import Dictionary, Pdf

from .utils import resolve_indirect as _resolve

logger = logging.getLogger(__name__)

# Field flags (/Ff)
FF_MULTILINE = 1 << 12
FF_PASSWORD = 1 << 13
FF_RADIO = 1 << 15
FF_PUSHBUTTON = 1 << 16
FF_COMBO = 1 << 17
FF_COMB = 1 << 24

# Annotation flags (/F)
ANNOT_HIDDEN = 1 << 1


class FieldType(Enum):
    """Kind of a terminal form field."""

    TEXT = "text"
    CHOICE = "choice"
    CHECKBOX = "checkbox"
    RADIO = "radio"
    PUSHBUTTON = "pushbutton"
    SIGNATURE = "signature"
    UNKNOWN = "unknown"

    @property
    def is_textual(self) -> bool:
        return self in (FieldType.TEXT, FieldType.CHOICE)


@dataclass
class FieldRecord:
    """A terminal field.

    Attributes:
        handle: Index in FormModel.fields.
        name: Fully qualified name (partial names joined by ".").
        obj: The field dictionary.
        field_type: Kind of field.
        flags: Inherited /Ff value.
        widget_handles: Handles of the field's widgets.
    """

    handle: int
    name: str
    obj: Dictionary
    field_type: FieldType
    flags: int
    widget_handles: list[int] = field(default_factory=list)


@dataclass
class WidgetRecord:
    """A widget annotation of a terminal field.

    Attributes:
        handle: Index in FormModel.widgets.
        field_handle: Handle of the owning field.
        obj: The widget annotation dictionary (may be the field itself).
        page_index: Page whose /Annots lists the widget, or None.
    """

    handle: int
    field_handle: int
    obj: Dictionary
    page_index: int | None


def get_inheritable(node, key: str, acroform=None):
    """Retrieves an inheritable attribute from a field hierarchy.

    Walks the /Parent chain, then falls back to AcroForm defaults.

    Args:
        node: Field or widget dictionary.
        key: The key to look up (e.g. "/FT", "/DA", "/Q").
        acroform: The document's /AcroForm dictionary (optional).

    Returns:
        The value if found, otherwise None.
    """
    visited: set[tuple[int, int]] = set()
    current = node
    while current is not None:
        objgen = current.objgen
        if objgen != (0, 0):
            if objgen in visited:
                break
            visited.add(objgen)

        val = current.get(key)
        if val is not None:
            return val

        parent = current.get("/Parent")
        current = _resolve(parent) if parent is not None else None

    if acroform is not None:
        return acroform.get(key)
    return None


def _classify(ft, flags: int) -> FieldType:
    ft_str = str(ft) if ft is not None else None
    if ft_str == "/Tx":
        return FieldType.TEXT
    if ft_str == "/Ch":
        return FieldType.CHOICE
    if ft_str == "/Sig":
        return FieldType.SIGNATURE
    if ft_str == "/Btn":
        if flags & FF_PUSHBUTTON:
            return FieldType.PUSHBUTTON
        if flags & FF_RADIO:
            return FieldType.RADIO
        return FieldType.CHECKBOX
    return FieldType.UNKNOWN


class FormModel:
    """Flat index over a document's AcroForm fields and widgets."""

    def __init__(self, pdf: Pdf, acroform: Dictionary | None) -> None:
        self.pdf = pdf
        self.acroform = acroform
        self.fields: list[FieldRecord] = []
        self.widgets: list[WidgetRecord] = []
        self._by_name: dict[str, int] = {}
        self._page_of_annot: dict[tuple[int, int], int] = {}

    @classmethod
    def from_pdf(cls, pdf: Pdf) -> "FormModel":
        """Indexes the fields of ``pdf``.

        Documents without an /AcroForm yield an empty model.
        """
        acroform = pdf.Root.get("/AcroForm")
        model = cls(pdf, _resolve(acroform) if acroform is not None else None)
        if model.acroform is None:
            return model

        for index, page in enumerate(pdf.pages):
            annots = page.obj.get("/Annots")
            if annots is None:
                continue
            for annot in _resolve(annots):
                objgen = annot.objgen
                if objgen != (0, 0):
                    model._page_of_annot.setdefault(objgen, index)

        fields = model.acroform.get("/Fields")
        if fields is not None:
            visited: set[tuple[int, int]] = set()
            for node in _resolve(fields):
                model._walk(_resolve(node), "", visited)

        logger.debug(
            "Form has %d fields with %d widgets", len(model.fields), len(model.widgets)
        )
        return model

    def _walk(self, node: Dictionary, parent_name: str, visited: set) -> None:
        objgen = node.objgen
        if objgen != (0, 0):
            if objgen in visited:
                logger.warning("Cycle in field tree at object %s", objgen)
                return
            visited.add(objgen)

        partial = node.get("/T")
        name = parent_name
        if partial is not None:
            name = f"{parent_name}.{partial}" if parent_name else str(partial)

        kids = node.get("/Kids")
        kids = [_resolve(kid) for kid in kids] if kids is not None else []
        child_fields = [kid for kid in kids if kid.get("/T") is not None]
        widget_kids = [kid for kid in kids if kid.get("/T") is None]

        for child in child_fields:
            self._walk(child, name, visited)

        if child_fields and not widget_kids:
            return

        if not widget_kids:
            # Field and widget merged into one dictionary
            widget_kids = [node] if node.get("/Rect") is not None else []

        ff = get_inheritable(node, "/Ff", self.acroform)
        flags = int(ff) if ff is not None else 0
        ft = get_inheritable(node, "/FT", self.acroform)

        record = FieldRecord(
            handle=len(self.fields),
            name=name,
            obj=node,
            field_type=_classify(ft, flags),
            flags=flags,
        )
        if name in self._by_name:
            logger.warning("Duplicate field name '%s'", name)
        else:
            self._by_name[name] = record.handle
        self.fields.append(record)

        for widget in widget_kids:
            widget_record = WidgetRecord(
                handle=len(self.widgets),
                field_handle=record.handle,
                obj=widget,
                page_index=self._page_of_annot.get(widget.objgen),
            )
            self.widgets.append(widget_record)
            record.widget_handles.append(widget_record.handle)

    # -- lookups -------------------------------------------------------------

    def __len__(self) -> int:
        return len(self.fields)

    def __iter__(self) -> Iterator[FieldRecord]:
        return iter(self.fields)

    def names(self) -> list[str]:
        return [record.name for record in self.fields]

    def field_by_name(self, name: str) -> FieldRecord | None:
        handle = self._by_name.get(name)
        return self.fields[handle] if handle is not None else None

    def widgets_of(self, record: FieldRecord) -> list[WidgetRecord]:
        return [self.widgets[h] for h in record.widget_handles]

    def field_of(self, widget: WidgetRecord) -> FieldRecord:
        return self.fields[widget.field_handle]

    def widgets_on_page(self, page_index: int) -> list[WidgetRecord]:
        return [w for w in self.widgets if w.page_index == page_index]

    def inheritable(self, node, key: str):
        """Looks up ``key`` on ``node``, its ancestors, then the AcroForm."""
        return get_inheritable(node, key, self.acroform)


def bracket_name(full_name: str) -> str:
    """Converts a dotted full name to bracket notation.

    ``address5.city`` becomes ``address5[city]``; names without dots are
    returned unchanged.
    """
    head, *rest = full_name.split(".")
    return head + "".join(f"[{part}]" for part in rest)
