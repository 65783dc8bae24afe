# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.

"""pdfformfill - Fill PDF forms with per-field fonts and flatten them."""

from importlib.metadata import PackageNotFoundError, version

from .exceptions import (
    FontLoadError,
    FormFillError,
    InputNotFoundError,
    MalformedInputError,
    UnsupportedGlyphError,
    WriteError,
)
from .field_data import export_field_values, load_field_values
from .filler import FillResult, FormFiller, fill_form
from .flatten import FlattenResult, flatten_form
from .fonts import FontRegistry
from .pipeline import FillReport, fill_pdf
from .style import AppearanceStyle, FontKind, FontSpec, default_style
from .writer import WriteResult, write_document

try:
    __version__ = version("pdfformfill")
except PackageNotFoundError:
    __version__ = "unknown"

__all__ = [
    "__version__",
    "fill_pdf",
    "fill_form",
    "flatten_form",
    "write_document",
    "load_field_values",
    "export_field_values",
    "FormFiller",
    "FontRegistry",
    "FontSpec",
    "FontKind",
    "AppearanceStyle",
    "default_style",
    "FillResult",
    "FlattenResult",
    "WriteResult",
    "FillReport",
    "FormFillError",
    "InputNotFoundError",
    "MalformedInputError",
    "FontLoadError",
    "UnsupportedGlyphError",
    "WriteError",
]
