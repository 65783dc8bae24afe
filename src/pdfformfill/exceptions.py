# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.

"""Custom exceptions for pdfformfill."""


class FormFillError(Exception):
    """Base exception for all pdfformfill errors."""


class InputNotFoundError(FormFillError):
    """An input file (PDF, field data, font map) does not exist."""


class MalformedInputError(FormFillError):
    """Field data or document structure is not well-formed."""


class FontLoadError(FormFillError):
    """A font program cannot be located, parsed, or embedded."""


class UnsupportedGlyphError(FormFillError):
    """A character has no glyph in the resolved font or its fallback."""

    def __init__(self, message: str, char: str = "", font_name: str = "") -> None:
        super().__init__(message)
        self.char = char
        self.font_name = font_name


class WriteError(FormFillError):
    """The output document could not be written."""
