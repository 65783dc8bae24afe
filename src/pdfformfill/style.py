# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.

"""Font selection and appearance options for form filling."""

from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from types import MappingProxyType

from .exceptions import FontLoadError

DEFAULT_FALLBACK_FONT = "Helvetica"

# Suffixes that mark a font spec string as a file path
FONT_FILE_SUFFIXES = frozenset({".ttf", ".otf", ".ttc"})

_COMPOSITE_PREFIX = "cid:"


class FontKind(Enum):
    """How a font is represented in the output document."""

    STANDARD = "standard"  # builtin Standard-14, not embedded
    SIMPLE = "simple"  # embedded TrueType, 1-byte WinAnsi codes
    COMPOSITE = "composite"  # embedded Type0/CIDFontType2, 2-byte GIDs


@dataclass(frozen=True)
class FontSpec:
    """Identifies the font used to render a field.

    Attributes:
        kind: Font representation.
        name: Logical name.  For STANDARD fonts this is the canonical
            Standard-14 name; for outline fonts it defaults to the file stem.
        path: Font file for SIMPLE and COMPOSITE fonts.
        font_index: Member index inside a TrueType Collection.
        size: Fixed point size, 0 means auto-size to the widget.
    """

    kind: FontKind
    name: str
    path: Path | None = None
    font_index: int = 0
    size: float = 0.0

    def __post_init__(self) -> None:
        if self.size < 0:
            raise ValueError(f"Font size must not be negative: {self.size}")
        if self.is_embedded and self.path is None:
            raise ValueError(f"{self.kind.value} font '{self.name}' needs a path")

    @classmethod
    def standard(cls, name: str, size: float = 0.0) -> "FontSpec":
        """Creates a spec for a Standard-14 font.

        Raises:
            FontLoadError: If ``name`` is not a supported Standard-14 font.
        """
        from .fonts.standard14 import canonical_name

        canonical = canonical_name(name)
        if canonical is None:
            raise FontLoadError(f"Unknown standard font: '{name}'")
        return cls(FontKind.STANDARD, canonical, size=size)

    @classmethod
    def outline(
        cls,
        path: Path | str,
        *,
        composite: bool = False,
        size: float = 0.0,
        font_index: int = 0,
        name: str | None = None,
    ) -> "FontSpec":
        """Creates a spec for a TrueType/OpenType font file."""
        font_path = Path(path)
        return cls(
            FontKind.COMPOSITE if composite else FontKind.SIMPLE,
            name or font_path.stem,
            path=font_path,
            font_index=font_index,
            size=size,
        )

    @classmethod
    def parse(cls, text: str, base_dir: Path | None = None) -> "FontSpec":
        """Parses a font spec string.

        Accepted forms are a Standard-14 name (``Helvetica-Oblique``), a
        font file (``./font.ttf``), or a composite font file
        (``cid:./font.ttf``).  Collections take a ``#index`` suffix on
        the path, and any form may end with ``@size``.

        Args:
            text: The spec string.
            base_dir: Directory that relative font paths are resolved
                against.  Defaults to the working directory.

        Returns:
            Parsed FontSpec.

        Raises:
            FontLoadError: If the string names an unknown standard font or
                has an invalid size or index.
        """
        spec = text.strip()
        if not spec:
            raise FontLoadError("Empty font spec")

        size = 0.0
        head, sep, tail = spec.rpartition("@")
        if sep and _is_number(tail):
            size = float(tail)
            if size < 0:
                raise FontLoadError(f"Invalid font size in '{text}'")
            spec = head

        composite = spec.lower().startswith(_COMPOSITE_PREFIX)
        if composite:
            spec = spec[len(_COMPOSITE_PREFIX) :]

        font_index = 0
        head, sep, tail = spec.rpartition("#")
        if sep and tail.isdigit():
            font_index = int(tail)
            spec = head

        if composite or _looks_like_path(spec):
            path = Path(spec).expanduser()
            if base_dir is not None and not path.is_absolute():
                path = base_dir / path
            return cls.outline(
                path, composite=composite, size=size, font_index=font_index
            )

        return cls.standard(spec, size=size)

    @property
    def is_embedded(self) -> bool:
        return self.kind is not FontKind.STANDARD

    @property
    def cache_key(self) -> tuple:
        """Identity of the font program, independent of size."""
        path = str(self.path.resolve()) if self.path is not None else ""
        return (self.kind, path, self.font_index, self.name)

    def __str__(self) -> str:
        if self.kind is FontKind.STANDARD:
            text = self.name
        else:
            prefix = _COMPOSITE_PREFIX if self.kind is FontKind.COMPOSITE else ""
            text = f"{prefix}{self.path}"
            if self.font_index:
                text += f"#{self.font_index}"
        if self.size:
            text += f"@{self.size:g}"
        return text


def _is_number(text: str) -> bool:
    try:
        float(text)
    except ValueError:
        return False
    return True


def _looks_like_path(spec: str) -> bool:
    return (
        Path(spec).suffix.lower() in FONT_FILE_SUFFIXES
        or "/" in spec
        or "\\" in spec
    )


@dataclass(frozen=True)
class AppearanceStyle:
    """Controls how field appearances are (re)generated.

    Attributes:
        fallback: Font for every field without an entry in
            ``field_fallbacks``.
        field_fallbacks: Per-field font overrides keyed by the field's
            full name.
        only_if_missing: Keep a widget's existing appearance instead of
            regenerating it.
        force_replace: Regenerate every appearance, including fields that
            received no new value and widgets that already have one.
        regenerate_text_fields: With ``only_if_missing``, still regenerate
            text and choice fields whose value was just set.
        substitute_missing_glyphs: Draw characters missing from a field's
            font with the fallback font.  When False a missing glyph is
            an error.
    """

    fallback: FontSpec
    field_fallbacks: Mapping[str, FontSpec] = field(default_factory=dict)
    only_if_missing: bool = True
    force_replace: bool = False
    regenerate_text_fields: bool = True
    substitute_missing_glyphs: bool = True

    def __post_init__(self) -> None:
        object.__setattr__(
            self, "field_fallbacks", MappingProxyType(dict(self.field_fallbacks))
        )

    def font_for(self, field_name: str) -> FontSpec:
        """Returns the font for a field, given its full name."""
        return self.field_fallbacks.get(field_name, self.fallback)


def default_style() -> AppearanceStyle:
    """Returns a style that renders every field in Helvetica."""
    return AppearanceStyle(fallback=FontSpec.standard(DEFAULT_FALLBACK_FONT))
