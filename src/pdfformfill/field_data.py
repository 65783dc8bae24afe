# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.

"""Field data loading and export.

Field data is JSON in one of three shapes:

- a flat object: ``{"name1": "Alice", "agree": true}``
- a nested object, whose keys are joined in bracket notation:
  ``{"address5": {"city": "Tokyo"}}`` gives ``address5[city]``
- a list of records: ``[{"name": "name1", "value": "Alice"}, ...]``,
  the format written by :func:`export_field_values`
"""

import json
import logging
from collections.abc import Mapping
from pathlib import Path
from types import MappingProxyType
from typing import IO, Any

from pikepdf import Array, Dictionary, Name, Pdf

from .exceptions import InputNotFoundError, MalformedInputError
from .form import FieldType, FormModel
from .utils import resolve_indirect as _resolve

logger = logging.getLogger(__name__)

FieldValue = str | int | float | bool | None | list[str]
FieldValueMap = Mapping[str, FieldValue]

_SCALAR_TYPES = (str, int, float, bool, type(None))


def load_field_values(source: Path | str | IO[str]) -> FieldValueMap:
    """Loads field values from a JSON file or text stream.

    Args:
        source: Path to a UTF-8 JSON file, or an open text stream.

    Returns:
        Read-only mapping from full field name to value.

    Raises:
        InputNotFoundError: If the file does not exist.
        MalformedInputError: If the JSON is invalid or not one of the
            accepted shapes.
    """
    if isinstance(source, (str, Path)):
        path = Path(source)
        label = str(path)
        try:
            text = path.read_text(encoding="utf-8")
        except FileNotFoundError as e:
            raise InputNotFoundError(f"Field data file not found: {path}") from e
        except UnicodeDecodeError as e:
            raise MalformedInputError(f"Field data is not UTF-8 text: {path}") from e
        except OSError as e:
            raise InputNotFoundError(f"Could not read field data '{path}': {e}") from e
    else:
        label = getattr(source, "name", "<stream>")
        text = source.read()

    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise MalformedInputError(f"Invalid JSON in {label}: {e}") from e

    values: dict[str, FieldValue] = {}
    if isinstance(data, dict):
        _flatten_object(data, "", values)
    elif isinstance(data, list):
        _load_records(data, values)
    else:
        raise MalformedInputError(
            f"Field data in {label} must be a JSON object or list, "
            f"got {type(data).__name__}"
        )

    logger.debug("Loaded %d field values from %s", len(values), label)
    return MappingProxyType(values)


def _join_key(prefix: str, key: str) -> str:
    return f"{prefix}[{key}]" if prefix else key


def _flatten_object(obj: dict, prefix: str, out: dict[str, FieldValue]) -> None:
    for key, value in obj.items():
        name = _join_key(prefix, key)
        if isinstance(value, dict):
            _flatten_object(value, name, out)
        else:
            out[name] = _check_value(name, value)


def _check_value(name: str, value: Any) -> FieldValue:
    if isinstance(value, _SCALAR_TYPES):
        return value
    if isinstance(value, list) and all(isinstance(item, str) for item in value):
        return list(value)
    raise MalformedInputError(
        f"Value of field '{name}' must be a scalar or a list of strings"
    )


def _load_records(records: list, out: dict[str, FieldValue]) -> None:
    for index, record in enumerate(records):
        if not isinstance(record, dict) or not isinstance(record.get("name"), str):
            raise MalformedInputError(f"Record {index} has no string 'name'")
        name = record["name"]
        out[name] = _check_value(name, record.get("value"))


# ---------------------------------------------------------------------------
# Export
# ---------------------------------------------------------------------------


def _pdf_value(value) -> FieldValue:
    if value is None:
        return None
    value = _resolve(value)
    if isinstance(value, Array):
        return [_pdf_value(item) for item in value]
    if isinstance(value, Name):
        return str(value)[1:]
    return str(value)


def _options(model: FormModel, record) -> list[str]:
    if record.field_type is FieldType.CHOICE:
        opt = model.inheritable(record.obj, "/Opt")
        if opt is None:
            return []
        options = []
        for item in opt:
            item = _resolve(item)
            # [export_value, display_value] pairs export the first
            options.append(str(item[0]) if isinstance(item, Array) else str(item))
        return options

    if record.field_type in (FieldType.CHECKBOX, FieldType.RADIO):
        states: list[str] = []
        for widget in model.widgets_of(record):
            ap = widget.obj.get("/AP")
            normal = _resolve(ap).get("/N") if ap is not None else None
            normal = _resolve(normal)
            if not isinstance(normal, Dictionary):
                continue
            for key in normal.keys():
                state = str(key).lstrip("/")
                if state != "Off" and state not in states:
                    states.append(state)
        return states

    return []


def export_field_values(pdf: Pdf) -> list[dict[str, Any]]:
    """Lists the form's fields with their current values.

    The result can be dumped as JSON and loaded again with
    :func:`load_field_values`.

    Args:
        pdf: Opened pikepdf PDF object.

    Returns:
        One ``{"name", "type", "value", "options"}`` record per field.
    """
    model = FormModel.from_pdf(pdf)
    return [
        {
            "name": record.name,
            "type": record.field_type.value,
            "value": _pdf_value(model.inheritable(record.obj, "/V")),
            "options": _options(model, record),
        }
        for record in model
    ]
