# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.

"""Field filling and appearance regeneration.

Writes values from a FieldValueMap into the form's fields and rebuilds
the widget appearances with each field's resolved font.
"""

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field

from pikepdf import Array, Dictionary, Name, Pdf, String

from .appearance import (
    AppearanceRequest,
    build_widget_appearance,
    get_on_state_name,
    make_da_string,
    parse_da_string,
)
from .exceptions import MalformedInputError
from .field_data import FieldValue
from .fonts.registry import FontRegistry
from .form import (
    FF_COMBO,
    FieldRecord,
    FieldType,
    FormModel,
    WidgetRecord,
    bracket_name,
)
from .layout import GlyphSubstitution, RunBuilder
from .style import AppearanceStyle
from .utils import resolve_indirect as _resolve

logger = logging.getLogger(__name__)

_ON_WORDS = frozenset({"yes", "on", "1", "true"})
_OFF_WORDS = frozenset({"off", "no", "0", "false", ""})


@dataclass
class FillResult:
    """Outcome of filling one document.

    Attributes:
        fields_filled: Full names of the fields that received a value.
        appearances_generated: Widgets whose /AP was (re)built.
        appearances_skipped: Widgets whose existing /AP was kept.
        unknown_fields: Value names that matched no field.
        warnings: Non-fatal problems, e.g. values for pushbuttons.
        substitutions: Characters drawn with the fallback font.
    """

    fields_filled: list[str] = field(default_factory=list)
    appearances_generated: int = 0
    appearances_skipped: int = 0
    unknown_fields: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    substitutions: list[GlyphSubstitution] = field(default_factory=list)


class FormFiller:
    """Fills one document's form with a shared font registry.

    Example:
        >>> with FormFiller(pdf, default_style()) as filler:
        ...     result = filler.fill({"name1": "Alice"})
    """

    def __init__(
        self,
        pdf: Pdf,
        style: AppearanceStyle,
        registry: FontRegistry | None = None,
    ) -> None:
        """Initializes the FormFiller.

        Args:
            pdf: Opened pikepdf PDF object; modified in place.
            style: Font and regeneration options.
            registry: Font registry to embed fonts with.  A private one
                is created (and closed with the filler) when omitted.
        """
        self.pdf = pdf
        self.style = style
        self._owns_registry = registry is None
        self.registry = registry if registry is not None else FontRegistry(pdf)
        self.model = FormModel.from_pdf(pdf)

    def fill(self, values: Mapping[str, FieldValue]) -> FillResult:
        """Sets field values and regenerates the affected appearances.

        Args:
            values: Values keyed by full field name.  Dotted names also
                match their bracket form (``a.b`` and ``a[b]``).

        Returns:
            FillResult describing what changed.

        Raises:
            MalformedInputError: If a radio value names no button state.
            FontLoadError: If a field's font cannot be loaded.
            UnsupportedGlyphError: If a value has a character no usable
                font can draw.
        """
        result = FillResult()
        used_keys: set[str] = set()

        for record in self.model:
            key = _value_key(record.name, values)
            filled = False
            if key is not None:
                used_keys.add(key)
                filled = self._set_value(record, values[key], result)
                if filled:
                    result.fields_filled.append(record.name)
            elif not self.style.force_replace:
                continue

            for widget in self.model.widgets_of(record):
                if self._keep_appearance(record, widget, filled):
                    result.appearances_skipped += 1
                    continue
                self._generate(record, widget, result)

        for key in values:
            if key not in used_keys:
                logger.warning("No field named '%s' in the form", key)
                result.unknown_fields.append(key)

        self._finish()
        logger.info(
            "Filled %d fields, generated %d appearances",
            len(result.fields_filled),
            result.appearances_generated,
        )
        return result

    def ensure_appearances(self) -> FillResult:
        """Generates appearances for widgets that have none.

        Values are left as they are; existing appearances are kept.
        """
        result = FillResult()
        for record in self.model:
            for widget in self.model.widgets_of(record):
                if _has_normal_appearance(widget.obj):
                    continue
                self._generate(record, widget, result)
        if result.appearances_generated:
            self._finish()
        return result

    def close(self) -> None:
        if self._owns_registry:
            self.registry.close()

    def __enter__(self) -> "FormFiller":
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()

    # -- values --------------------------------------------------------------

    def _set_value(self, record: FieldRecord, value: FieldValue, result) -> bool:
        """Writes ``value`` into the field.  Returns False if not fillable."""
        ft = record.field_type
        obj = record.obj

        if ft is FieldType.TEXT:
            obj[Name.V] = String(_text_value(value))
            if "/RV" in obj:
                del obj["/RV"]
        elif ft is FieldType.CHOICE:
            if isinstance(value, list):
                obj[Name.V] = Array([String(item) for item in value])
            else:
                obj[Name.V] = String(_text_value(value))
            self._set_choice_indices(record, value)
        elif ft in (FieldType.CHECKBOX, FieldType.RADIO):
            self._set_button_state(record, value)
        else:
            message = f"Field '{record.name}' ({ft.value}) cannot be filled"
            logger.warning(message)
            result.warnings.append(message)
            return False

        logger.debug("Set %s field '%s'", ft.value, record.name)
        return True

    def _set_choice_indices(self, record: FieldRecord, value: FieldValue) -> None:
        selected = value if isinstance(value, list) else [_text_value(value)]
        exports = [export for export, _ in self._choice_options(record)]
        indices = sorted(i for i, export in enumerate(exports) if export in selected)
        if indices and not record.flags & FF_COMBO:
            record.obj[Name.I] = Array(indices)
        elif "/I" in record.obj:
            del record.obj["/I"]

    def _set_button_state(self, record: FieldRecord, value: FieldValue) -> None:
        widgets = self.model.widgets_of(record)
        states = [get_on_state_name(w.obj) for w in widgets]
        opt = self.model.inheritable(record.obj, "/Opt")
        exports = [str(_resolve(item)) for item in opt] if opt is not None else []

        text = _text_value(value)
        chosen = None
        on_for = [False] * len(states)
        if text in states:
            chosen = text
            # Widgets sharing a state name turn on together
            on_for = [state == chosen for state in states]
        elif text in exports and exports.index(text) < len(states):
            index = exports.index(text)
            chosen = states[index]
            on_for[index] = True

        if record.field_type is FieldType.RADIO:
            if chosen is None and not _is_off(value):
                raise MalformedInputError(
                    f"'{text}' is not a state of radio field '{record.name}' "
                    f"(states: {', '.join(states) or 'none'})"
                )
        else:
            if chosen is None and _is_on(value) and states:
                chosen = states[0]
                on_for = [True] * len(states)

        record.obj[Name.V] = Name("/" + chosen) if chosen else Name.Off
        for widget, state, on in zip(widgets, states, on_for):
            widget.obj[Name.AS] = Name("/" + state) if on else Name.Off

    # -- appearances ---------------------------------------------------------

    def _keep_appearance(
        self, record: FieldRecord, widget: WidgetRecord, filled: bool
    ) -> bool:
        style = self.style
        if style.force_replace or not style.only_if_missing:
            return False
        if not _has_normal_appearance(widget.obj):
            return False
        if filled and style.regenerate_text_fields and record.field_type.is_textual:
            return False
        return True

    def _generate(
        self, record: FieldRecord, widget: WidgetRecord, result: FillResult
    ) -> None:
        request = self._request_for(record, widget)
        appearance = build_widget_appearance(self.pdf, widget.obj, request)
        widget.obj[Name.AP] = Dictionary(N=appearance)
        result.appearances_generated += 1
        if request.builder is not None:
            result.substitutions.extend(request.builder.substitutions)
        logger.debug("Generated appearance for '%s'", record.name)

    def _request_for(self, record: FieldRecord, widget: WidgetRecord):
        ft = record.field_type
        request = AppearanceRequest(field_type=ft, flags=record.flags)

        if ft in (FieldType.CHECKBOX, FieldType.RADIO):
            request.on_state = get_on_state_name(widget.obj)
            return request
        if ft is FieldType.SIGNATURE or ft is FieldType.UNKNOWN:
            return request

        spec = self._font_spec(record)
        font = self.registry.resolve(spec)
        fallback = self.registry.resolve(self.style.fallback)
        request.builder = RunBuilder(
            font, fallback, substitute=self.style.substitute_missing_glyphs
        )
        request.font_size = spec.size

        da = widget.obj.get("/DA")
        if da is None:
            da = self.model.inheritable(record.obj, "/DA")
        _, _, request.color_ops = parse_da_string(da)

        q = self.model.inheritable(widget.obj, "/Q")
        request.alignment = int(q) if q is not None else 0

        if ft is FieldType.PUSHBUTTON:
            mk = widget.obj.get("/MK")
            caption = _resolve(mk).get("/CA") if mk is not None else None
            request.text = str(caption) if caption is not None else ""
        else:
            request.text = self._display_text(record)
            max_len = self.model.inheritable(record.obj, "/MaxLen")
            request.max_len = int(max_len) if max_len is not None else None
            if ft is FieldType.CHOICE and not record.flags & FF_COMBO:
                self._fill_listbox(record, request)

        new_da = make_da_string(font.resource_name, spec.size, request.color_ops)
        record.obj[Name.DA] = String(new_da)
        if widget.obj is not record.obj and "/DA" in widget.obj:
            widget.obj[Name.DA] = String(new_da)
        return request

    def _font_spec(self, record: FieldRecord):
        overrides = self.style.field_fallbacks
        if record.name not in overrides and bracket_name(record.name) in overrides:
            return overrides[bracket_name(record.name)]
        return self.style.font_for(record.name)

    def _display_text(self, record: FieldRecord) -> str:
        value = self.model.inheritable(record.obj, "/V")
        if value is None:
            return ""
        value = _resolve(value)
        if isinstance(value, Array):
            value = value[0] if len(value) else ""
        text = str(value)[1:] if isinstance(value, Name) else str(value)
        if record.field_type is FieldType.CHOICE:
            # Combo boxes show the display string of the export value
            for export, display in self._choice_options(record):
                if export == text:
                    return display
        return text

    def _fill_listbox(self, record: FieldRecord, request: AppearanceRequest) -> None:
        options = self._choice_options(record)
        request.options = [display for _, display in options]

        value = self.model.inheritable(record.obj, "/V")
        value = _resolve(value) if value is not None else None
        if isinstance(value, Array):
            selected = {str(item) for item in value}
        elif value is not None:
            selected = {str(value)}
        else:
            selected = set()
        request.selected = {
            i for i, (export, _) in enumerate(options) if export in selected
        }

        ti = record.obj.get("/TI")
        if ti is not None:
            request.top_index = int(ti)
        elif request.selected:
            request.top_index = min(request.selected)

    def _choice_options(self, record: FieldRecord) -> list[tuple[str, str]]:
        """Returns (export value, display string) pairs from /Opt."""
        opt = self.model.inheritable(record.obj, "/Opt")
        if opt is None:
            return []
        options = []
        for item in _resolve(opt):
            item = _resolve(item)
            if isinstance(item, Array) and len(item) >= 2:
                options.append((str(item[0]), str(item[1])))
            else:
                options.append((str(item), str(item)))
        return options

    def _finish(self) -> None:
        self.registry.finalize()
        acroform = self.model.acroform
        if acroform is not None and "/NeedAppearances" in acroform:
            del acroform["/NeedAppearances"]


def fill_form(
    pdf: Pdf,
    values: Mapping[str, FieldValue],
    style: AppearanceStyle,
    registry: FontRegistry | None = None,
) -> FillResult:
    """Fills ``pdf``'s form fields and regenerates their appearances.

    Args:
        pdf: Opened pikepdf PDF object; modified in place.
        values: Values keyed by full field name.
        style: Font and regeneration options.
        registry: Optional shared font registry.

    Returns:
        FillResult describing what changed.
    """
    with FormFiller(pdf, style, registry) as filler:
        return filler.fill(values)


def _value_key(name: str, values: Mapping[str, FieldValue]) -> str | None:
    if name in values:
        return name
    bracketed = bracket_name(name)
    if bracketed != name and bracketed in values:
        return bracketed
    return None


def _has_normal_appearance(annot: Dictionary) -> bool:
    ap = annot.get("/AP")
    return ap is not None and _resolve(ap).get("/N") is not None


def _text_value(value: FieldValue) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, list):
        return ", ".join(value)
    return str(value)


def _is_on(value: FieldValue) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return value != 0
    return isinstance(value, str) and value.strip().lower() in _ON_WORDS


def _is_off(value: FieldValue) -> bool:
    if value is None or value is False:
        return True
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return value == 0
    return isinstance(value, str) and value.strip().lower() in _OFF_WORDS
