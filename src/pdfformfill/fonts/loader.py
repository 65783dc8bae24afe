# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.

"""Font file loading."""

import logging
from io import BytesIO
from pathlib import Path

from fontTools.ttLib import TTCollection, TTFont

from ..exceptions import FontLoadError

logger = logging.getLogger(__name__)

# Tables needed for metrics, character mapping and embedding
REQUIRED_TABLES = ("head", "hhea", "hmtx", "maxp", "cmap", "glyf", "loca")


class FontLoader:
    """Loads and caches outline font files.

    Fonts are keyed by resolved path and collection index.  TrueType
    Collections are split so that the cached bytes are a standalone
    font program suitable for /FontFile2.
    """

    def __init__(self) -> None:
        self._font_cache: dict[tuple[str, int], tuple[bytes, TTFont]] = {}

    def load(self, path: Path | str, font_index: int = 0) -> tuple[bytes, TTFont]:
        """Loads a TrueType/OpenType font or a member of a collection.

        Args:
            path: Path to a .ttf, .otf or .ttc file.
            font_index: Index of the font inside a collection.

        Returns:
            Tuple of (font data as bytes, TTFont object).

        Raises:
            FontLoadError: If the file is missing, unparseable, or lacks
                the tables needed to embed it.
        """
        font_path = Path(path)
        cache_key = (str(font_path.resolve()), font_index)
        if cache_key in self._font_cache:
            return self._font_cache[cache_key]

        try:
            font_data = font_path.read_bytes()
        except FileNotFoundError as e:
            raise FontLoadError(f"Font file not found: {font_path}") from e
        except OSError as e:
            raise FontLoadError(f"Could not read font file '{font_path}': {e}") from e

        try:
            if font_data[:4] == b"ttcf":
                font_data = self._extract_from_collection(font_data, font_index)
            elif font_index != 0:
                raise FontLoadError(
                    f"Font index {font_index} given but '{font_path}' "
                    "is not a font collection"
                )
            tt_font = TTFont(BytesIO(font_data))
        except FontLoadError:
            raise
        except Exception as e:
            raise FontLoadError(f"Could not parse font '{font_path}': {e}") from e

        missing = [tag for tag in REQUIRED_TABLES if tag not in tt_font]
        if missing:
            has_cff = "CFF " in tt_font
            tt_font.close()
            if "glyf" in missing and has_cff:
                raise FontLoadError(
                    f"Font '{font_path}' has CFF outlines; "
                    "only TrueType outlines can be embedded"
                )
            raise FontLoadError(
                f"Font '{font_path}' is missing required tables: {', '.join(missing)}"
            )

        logger.debug(
            "Loaded font %s (index %d, %d glyphs)",
            font_path.name,
            font_index,
            len(tt_font.getGlyphOrder()),
        )
        self._font_cache[cache_key] = (font_data, tt_font)
        return font_data, tt_font

    @staticmethod
    def _extract_from_collection(font_data: bytes, font_index: int) -> bytes:
        """Serializes one member of a TrueType Collection as a standalone font."""
        ttc = TTCollection(BytesIO(font_data))
        try:
            if not 0 <= font_index < len(ttc.fonts):
                raise FontLoadError(
                    f"Font index {font_index} out of range "
                    f"(collection has {len(ttc.fonts)} fonts)"
                )
            buf = BytesIO()
            ttc.fonts[font_index].save(buf)
            return buf.getvalue()
        finally:
            ttc.close()

    def close(self) -> None:
        """Close all cached TTFont objects to release file handles."""
        for _data, tt_font in self._font_cache.values():
            try:
                tt_font.close()
            except Exception:
                pass
        self._font_cache.clear()

    def __enter__(self) -> "FontLoader":
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()
