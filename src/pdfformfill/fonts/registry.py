# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.

"""Font resolution and embedding for field appearances.

A FontSpec is turned into an EmbeddedFont: the PDF font dictionary
registered in the form's default resources plus the metrics and
character mapping needed to lay text out in it.  EmbeddedFont is a
tagged variant over FontKind; the module-level functions below
dispatch on the tag instead of subclassing.
"""

import logging
import re
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

import pikepdf
from pikepdf import Array, Dictionary, Name, Pdf, Stream

from ..exceptions import FontLoadError, UnsupportedGlyphError
from ..style import FontKind, FontSpec
from ..utils import resolve_indirect as _resolve
from . import standard14
from .glyph_usage import collect_font_usage
from .loader import FontLoader
from .metrics import FontMetricsExtractor, OutlineMetrics
from .tounicode import generate_tounicode_cmap

if TYPE_CHECKING:
    from fontTools.ttLib import TTFont

logger = logging.getLogger(__name__)

_FIRST_CHAR = 32
_LAST_CHAR = 255

_UNSAFE_NAME_CHARS = re.compile(r"[^A-Za-z0-9_.-]")


@dataclass
class EmbeddedFont:
    """A font registered in the document, ready for text layout.

    Attributes:
        kind: Variant tag.
        resource_name: Key under /DR /Font and in appearance /Resources.
        base_font: /BaseFont value (without subset tag).
        font_dict: Indirect PDF font dictionary.
        widths: Character code -> advance width.  Codes are WinAnsi bytes
            for STANDARD and SIMPLE fonts and glyph IDs for COMPOSITE.
        ascent: Ascender in 1/1000 em.
        descent: Descender in 1/1000 em (negative).
        default_width: Width for codes without an entry.
        cmap: Unicode -> glyph ID (outline fonts only).
        used_gids: Glyph IDs shown so far (outline fonts only).
        font_data: Raw font program (outline fonts only).
        subset_tag: Six-letter tag once the program has been subset.
    """

    kind: FontKind
    resource_name: str
    base_font: str
    font_dict: Dictionary
    widths: dict[int, int]
    ascent: int
    descent: int
    default_width: int
    cmap: dict[int, int] = field(default_factory=dict)
    used_gids: set[int] = field(default_factory=set)
    font_data: bytes | None = None
    subset_tag: str | None = None

    @property
    def code_bytes(self) -> int:
        return 2 if self.kind is FontKind.COMPOSITE else 1


@dataclass
class _OutlineProgram:
    """A loaded outline font with the values embedding needs."""

    data: bytes
    base_font: str
    metrics: OutlineMetrics
    glyph_widths: list[int]
    cmap: dict[int, int]

    @property
    def notdef_width(self) -> int:
        return self.glyph_widths[0] if self.glyph_widths else 1000


# ---------------------------------------------------------------------------
# Variant dispatch
# ---------------------------------------------------------------------------


def char_code(font: EmbeddedFont, ch: str) -> int | None:
    """Returns the character code that shows ``ch``, or None if absent."""
    cp = ord(ch)
    if font.kind is FontKind.COMPOSITE:
        return font.cmap.get(cp) or None

    code = standard14.unicode_to_winansi(cp)
    if code is None:
        return None
    if font.kind is FontKind.STANDARD:
        return code if code in font.widths else None
    return code if font.cmap.get(cp) else None


def has_glyph(font: EmbeddedFont, ch: str) -> bool:
    return char_code(font, ch) is not None


def char_width(font: EmbeddedFont, ch: str) -> int:
    """Advance width of ``ch`` in 1/1000 em (default width if absent)."""
    code = char_code(font, ch)
    if code is None:
        return font.default_width
    return font.widths.get(code, font.default_width)


def glyphs_for(font: EmbeddedFont, text: str) -> list[int]:
    """Glyph IDs for ``text``.

    Standard-14 fonts have no glyph IDs in the document, so their
    WinAnsi codes are returned instead.

    Raises:
        UnsupportedGlyphError: If a character is absent from the font.
    """
    codes = _codes_for(font, text)
    if font.kind is FontKind.SIMPLE:
        return [font.cmap[ord(ch)] for ch in text]
    return codes


def _codes_for(font: EmbeddedFont, text: str) -> list[int]:
    codes = []
    for ch in text:
        code = char_code(font, ch)
        if code is None:
            raise UnsupportedGlyphError(
                f"Font '{font.base_font}' has no glyph for {ch!r} (U+{ord(ch):04X})",
                char=ch,
                font_name=font.base_font,
            )
        codes.append(code)
    return codes


def encode_text(font: EmbeddedFont, text: str) -> bytes:
    """Encodes ``text`` as the byte string shown with this font."""
    codes = _codes_for(font, text)
    return b"".join(code.to_bytes(font.code_bytes, "big") for code in codes)


def show_text_operator(font: EmbeddedFont, text: str) -> str:
    """Builds the ``Tj`` operator for ``text`` and records glyph usage.

    Simple fonts use a literal string, composite fonts a hex string of
    two-byte glyph IDs.
    """
    raw = encode_text(font, text)
    if font.kind is not FontKind.STANDARD:
        font.used_gids.update(glyphs_for(font, text))

    if font.kind is FontKind.COMPOSITE:
        return f"<{raw.hex().upper()}> Tj"

    escaped = (
        raw.replace(b"\\", b"\\\\").replace(b"(", b"\\(").replace(b")", b"\\)")
    )
    return f"({escaped.decode('latin-1')}) Tj"


# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------


class FontRegistry:
    """Resolves FontSpecs to fonts embedded in one document.

    Resolution is idempotent: each font program is embedded at most once
    per registry, and an existing compatible entry in the form's default
    resources (/AcroForm /DR /Font) is reused instead of adding a copy.
    """

    def __init__(self, pdf: Pdf, loader: FontLoader | None = None) -> None:
        """Initializes the FontRegistry.

        Args:
            pdf: Document that fonts are registered in.
            loader: Font file loader.  A private one is created (and
                closed with the registry) when omitted.
        """
        self._pdf = pdf
        self._owns_loader = loader is None
        self._loader = loader if loader is not None else FontLoader()
        self._metrics = FontMetricsExtractor()
        self._fonts: dict[tuple, EmbeddedFont] = {}

    @property
    def pdf(self) -> Pdf:
        return self._pdf

    @property
    def fonts(self) -> list[EmbeddedFont]:
        """Resolved fonts in resolution order."""
        return list(self._fonts.values())

    def resolve(self, spec: FontSpec) -> EmbeddedFont:
        """Returns the embedded font for ``spec``, embedding it on first use.

        Args:
            spec: Font to resolve.  Its size is ignored.

        Returns:
            The EmbeddedFont registered for this font program.

        Raises:
            FontLoadError: If the font cannot be loaded or is unknown.
        """
        key = spec.cache_key
        font = self._fonts.get(key)
        if font is not None:
            return font

        if spec.kind is FontKind.STANDARD:
            font = self._embed_standard(spec)
        elif spec.kind is FontKind.SIMPLE:
            font = self._embed_simple(spec)
        else:
            font = self._embed_composite(spec)

        self._fonts[key] = font
        logger.debug(
            "Registered %s font %s as /%s",
            spec.kind.value,
            font.base_font,
            font.resource_name,
        )
        return font

    # -- default resources ---------------------------------------------------

    def _default_font_resources(self) -> Dictionary | None:
        """Returns /AcroForm /DR /Font, creating /DR or /Font if needed."""
        acroform = self._pdf.Root.get("/AcroForm")
        if acroform is None:
            return None
        acroform = _resolve(acroform)
        dr = acroform.get("/DR")
        if dr is None:
            dr = Dictionary()
            acroform[Name.DR] = dr
        dr = _resolve(dr)
        fonts = dr.get("/Font")
        if fonts is None:
            fonts = Dictionary()
            dr[Name.Font] = fonts
        return _resolve(fonts)

    def _register(
        self,
        preferred_name: str,
        is_compatible,
        build,
    ) -> tuple[str, Dictionary, bool]:
        """Finds or creates the /DR entry for a font.

        Tries ``preferred_name``, then ``preferred_name_1``, ``_2`` and so
        on.  The first free name gets a newly built font; an occupied name
        whose font passes ``is_compatible`` is reused.

        Returns:
            Tuple of (resource name, indirect font dictionary, reused).
        """
        resources = self._default_font_resources()
        taken = {font.resource_name for font in self._fonts.values()}
        suffix = 0
        while True:
            name = preferred_name if suffix == 0 else f"{preferred_name}_{suffix}"
            suffix += 1
            if name in taken:
                continue
            existing = resources.get("/" + name) if resources is not None else None
            if existing is None:
                font_dict = self._pdf.make_indirect(build())
                if resources is not None:
                    resources[Name("/" + name)] = font_dict
                return name, font_dict, False
            if is_compatible(_resolve(existing)):
                if existing.objgen == (0, 0):
                    existing = self._pdf.make_indirect(existing)
                    resources[Name("/" + name)] = existing
                return name, existing, True

    # -- STANDARD ------------------------------------------------------------

    def _embed_standard(self, spec: FontSpec) -> EmbeddedFont:
        metrics = standard14.get_metrics(spec.name)
        if metrics is None:
            raise FontLoadError(f"Unknown standard font: '{spec.name}'")

        def is_compatible(font_obj) -> bool:
            return (
                _name_equals(font_obj.get("/Subtype"), "/Type1")
                and _name_equals(font_obj.get("/BaseFont"), "/" + metrics.base_font)
                and _name_equals(font_obj.get("/Encoding"), "/WinAnsiEncoding")
            )

        def build() -> Dictionary:
            return Dictionary(
                Type=Name.Font,
                Subtype=Name.Type1,
                BaseFont=Name("/" + metrics.base_font),
                Encoding=Name.WinAnsiEncoding,
            )

        name, font_dict, _ = self._register(
            standard14.resource_name_for(metrics.base_font), is_compatible, build
        )
        return EmbeddedFont(
            kind=FontKind.STANDARD,
            resource_name=name,
            base_font=metrics.base_font,
            font_dict=font_dict,
            widths=metrics.widths,
            ascent=metrics.ascent,
            descent=metrics.descent,
            default_width=metrics.default_width,
        )

    # -- outline helpers -----------------------------------------------------

    def _load_outline(self, spec: FontSpec) -> _OutlineProgram:
        font_data, tt_font = self._loader.load(spec.path, spec.font_index)
        try:
            program = _OutlineProgram(
                data=font_data,
                base_font=_postscript_name(tt_font, spec),
                metrics=self._metrics.extract_metrics(tt_font),
                glyph_widths=self._metrics.glyph_widths(tt_font),
                cmap=self._metrics.unicode_to_gid(tt_font),
            )
        except (KeyError, AttributeError) as e:
            raise FontLoadError(f"Could not read metrics of '{spec.path}': {e}") from e
        if not program.cmap:
            raise FontLoadError(f"Font '{spec.path}' has no usable cmap")
        return program

    def _font_file_stream(self, font_data: bytes) -> Stream:
        font_file = Stream(self._pdf, font_data)
        font_file[Name.Length1] = len(font_data)
        return font_file

    def _font_descriptor(self, program: _OutlineProgram) -> Dictionary:
        metrics = program.metrics
        return Dictionary(
            Type=Name.FontDescriptor,
            FontName=Name("/" + program.base_font),
            Flags=metrics.flags,
            FontBBox=Array(list(metrics.bbox)),
            ItalicAngle=metrics.italic_angle,
            Ascent=metrics.ascent,
            Descent=metrics.descent,
            CapHeight=metrics.cap_height,
            StemV=metrics.stem_v,
            FontFile2=self._pdf.make_indirect(self._font_file_stream(program.data)),
        )

    # -- SIMPLE --------------------------------------------------------------

    def _embed_simple(self, spec: FontSpec) -> EmbeddedFont:
        program = self._load_outline(spec)
        base_font = program.base_font
        code_widths = self._metrics.winansi_widths(program.glyph_widths, program.cmap)

        def is_compatible(font_obj) -> bool:
            descriptor = font_obj.get("/FontDescriptor")
            return (
                _name_equals(font_obj.get("/Subtype"), "/TrueType")
                and _name_equals(font_obj.get("/BaseFont"), "/" + base_font)
                and _name_equals(font_obj.get("/Encoding"), "/WinAnsiEncoding")
                and descriptor is not None
                and _resolve(descriptor).get("/FontFile2") is not None
            )

        def build() -> Dictionary:
            to_unicode = {}
            for code in range(_FIRST_CHAR, _LAST_CHAR + 1):
                cp = standard14.winansi_to_unicode(code)
                if program.cmap.get(cp):
                    to_unicode[code] = cp
            return Dictionary(
                Type=Name.Font,
                Subtype=Name.TrueType,
                BaseFont=Name("/" + base_font),
                FirstChar=_FIRST_CHAR,
                LastChar=_LAST_CHAR,
                Widths=Array(
                    [code_widths[c] for c in range(_FIRST_CHAR, _LAST_CHAR + 1)]
                ),
                Encoding=Name.WinAnsiEncoding,
                FontDescriptor=self._pdf.make_indirect(
                    self._font_descriptor(program)
                ),
                ToUnicode=self._pdf.make_indirect(
                    Stream(self._pdf, generate_tounicode_cmap(to_unicode))
                ),
            )

        name, font_dict, reused = self._register(
            f"TT_{base_font}", is_compatible, build
        )
        if reused:
            logger.debug("Reusing existing /%s for %s", name, base_font)
        return EmbeddedFont(
            kind=FontKind.SIMPLE,
            resource_name=name,
            base_font=base_font,
            font_dict=font_dict,
            widths=code_widths,
            ascent=program.metrics.ascent,
            descent=program.metrics.descent,
            default_width=program.notdef_width,
            cmap=program.cmap,
            font_data=program.data,
        )

    # -- COMPOSITE -----------------------------------------------------------

    def _embed_composite(self, spec: FontSpec) -> EmbeddedFont:
        program = self._load_outline(spec)
        base_font = program.base_font

        def is_compatible(font_obj) -> bool:
            if not (
                _name_equals(font_obj.get("/Subtype"), "/Type0")
                and _name_equals(font_obj.get("/BaseFont"), "/" + base_font)
                and _name_equals(font_obj.get("/Encoding"), "/Identity-H")
            ):
                return False
            descendants = font_obj.get("/DescendantFonts")
            if descendants is None or len(descendants) != 1:
                return False
            cid_font = _resolve(descendants[0])
            return _name_equals(cid_font.get("/CIDToGIDMap"), "/Identity")

        def build() -> Dictionary:
            # /W and /ToUnicode are filled in by finalize()
            cid_font = Dictionary(
                Type=Name.Font,
                Subtype=Name.CIDFontType2,
                BaseFont=Name("/" + base_font),
                CIDSystemInfo=Dictionary(
                    Registry=pikepdf.String("Adobe"),
                    Ordering=pikepdf.String("Identity"),
                    Supplement=0,
                ),
                FontDescriptor=self._pdf.make_indirect(
                    self._font_descriptor(program)
                ),
                DW=program.notdef_width,
                W=Array([]),
                CIDToGIDMap=Name.Identity,
            )
            return Dictionary(
                Type=Name.Font,
                Subtype=Name.Type0,
                BaseFont=Name("/" + base_font),
                Encoding=Name("/Identity-H"),
                DescendantFonts=Array([self._pdf.make_indirect(cid_font)]),
            )

        name, font_dict, reused = self._register(
            f"CID_{base_font}", is_compatible, build
        )
        if reused:
            logger.debug("Reusing existing /%s for %s", name, base_font)
        return EmbeddedFont(
            kind=FontKind.COMPOSITE,
            resource_name=name,
            base_font=base_font,
            font_dict=font_dict,
            widths=dict(enumerate(program.glyph_widths)),
            ascent=program.metrics.ascent,
            descent=program.metrics.descent,
            default_width=program.notdef_width,
            cmap=program.cmap,
            font_data=program.data,
        )

    # -- finalize / close ----------------------------------------------------

    def finalize(self) -> None:
        """Rebuilds /W and /ToUnicode of composite fonts.

        Covers every glyph shown with the font anywhere in the document,
        not just the glyphs this registry drew.
        """
        composites = [f for f in self._fonts.values() if f.kind is FontKind.COMPOSITE]
        if not composites:
            return

        usage = collect_font_usage(self._pdf)
        for font in composites:
            font.used_gids.update(usage.get(font.font_dict.objgen, set()))
            gids = sorted(font.used_gids)

            widths = {gid: font.widths.get(gid, font.default_width) for gid in gids}
            w_array = self._metrics.build_cidfont_w_array(widths)
            cid_font = _resolve(font.font_dict.DescendantFonts[0])
            cid_font[Name.W] = Array(
                [Array(item) if isinstance(item, list) else item for item in w_array]
            )

            gid_to_unicode: dict[int, int] = {}
            used = set(gids)
            for cp, gid in sorted(font.cmap.items()):
                if gid in used and gid not in gid_to_unicode:
                    gid_to_unicode[gid] = cp
            font.font_dict[Name.ToUnicode] = self._pdf.make_indirect(
                Stream(
                    self._pdf, generate_tounicode_cmap(gid_to_unicode, code_bytes=2)
                )
            )
            logger.debug(
                "Finalized %s: %d glyphs in /W", font.base_font, len(gids)
            )

    def close(self) -> None:
        """Releases loaded font files."""
        if self._owns_loader:
            self._loader.close()

    def __enter__(self) -> "FontRegistry":
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()


def _name_equals(value, expected: str) -> bool:
    return value is not None and str(value) == expected


def _postscript_name(tt_font: "TTFont", spec: FontSpec) -> str:
    """Returns a PDF-safe PostScript name for an outline font."""
    name = None
    if "name" in tt_font:
        name = tt_font["name"].getDebugName(6)
    if not name:
        name = spec.name
    return _UNSAFE_NAME_CHARS.sub("", name) or "Font"
