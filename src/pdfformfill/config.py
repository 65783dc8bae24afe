# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.

"""Builds an AppearanceStyle from command-line settings."""

import json
import logging
from pathlib import Path

from .exceptions import FontLoadError, InputNotFoundError, MalformedInputError
from .style import DEFAULT_FALLBACK_FONT, AppearanceStyle, FontSpec

logger = logging.getLogger(__name__)


def load_font_map(path: Path | str) -> dict[str, FontSpec]:
    """Loads per-field font overrides from a JSON file.

    Each entry maps a full field name to either a font spec string (as
    accepted by FontSpec.parse) or an object with the keys ``path``,
    ``composite``, ``size``, ``index`` and ``name``.  Relative font
    paths are resolved against the map file's directory.

    Args:
        path: JSON file.

    Returns:
        Field name -> FontSpec.

    Raises:
        InputNotFoundError: If the file does not exist.
        MalformedInputError: If the file is not a valid font map.
        FontLoadError: If an entry names an unknown standard font.
    """
    path = Path(path)
    try:
        with open(path, encoding="utf-8") as f:
            data = json.load(f)
    except FileNotFoundError as e:
        raise InputNotFoundError(f"Font map not found: {path}") from e
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise MalformedInputError(f"Invalid JSON in font map {path}: {e}") from e

    if not isinstance(data, dict):
        raise MalformedInputError(f"Font map {path} must be a JSON object")

    base_dir = path.parent
    font_map = {}
    for field_name, entry in data.items():
        if isinstance(entry, str):
            font_map[field_name] = FontSpec.parse(entry, base_dir)
        elif isinstance(entry, dict):
            font_map[field_name] = _spec_from_object(field_name, entry, base_dir)
        else:
            raise MalformedInputError(
                f"Font map entry for '{field_name}' must be a string or object"
            )

    logger.debug("Loaded %d font overrides from %s", len(font_map), path)
    return font_map


def _spec_from_object(field_name: str, entry: dict, base_dir: Path) -> FontSpec:
    font_path = entry.get("path")
    if not isinstance(font_path, str) or not font_path:
        raise MalformedInputError(f"Font map entry for '{field_name}' has no path")

    size = entry.get("size", 0)
    index = entry.get("index", 0)
    if (
        isinstance(size, bool)
        or not isinstance(size, (int, float))
        or size < 0
        or isinstance(index, bool)
        or not isinstance(index, int)
        or index < 0
    ):
        raise MalformedInputError(
            f"Font map entry for '{field_name}' has an invalid size or index"
        )

    resolved = Path(font_path).expanduser()
    if not resolved.is_absolute():
        resolved = base_dir / resolved
    return FontSpec.outline(
        resolved,
        composite=bool(entry.get("composite", False)),
        size=float(size),
        font_index=index,
        name=entry.get("name"),
    )


def build_style(
    font_fallback: str = DEFAULT_FALLBACK_FONT,
    font_map: Path | str | None = None,
    *,
    only_if_missing: bool = True,
    force_replace: bool = False,
    regenerate_text_fields: bool = True,
    strict_glyphs: bool = False,
) -> AppearanceStyle:
    """Creates the AppearanceStyle for a run.

    Args:
        font_fallback: Spec string of the document-wide fallback font.
        font_map: Optional JSON file of per-field overrides.
        only_if_missing: Keep existing widget appearances.
        force_replace: Regenerate every appearance.
        regenerate_text_fields: Regenerate filled text and choice fields
            even with ``only_if_missing``.
        strict_glyphs: Fail on characters missing from a field's font
            instead of drawing them with the fallback.

    Raises:
        FontLoadError: If the fallback names an unknown standard font.
        InputNotFoundError: If the font map does not exist.
        MalformedInputError: If the font map is invalid.
    """
    try:
        fallback = FontSpec.parse(font_fallback)
    except FontLoadError as e:
        raise FontLoadError(f"Invalid fallback font: {e}") from e

    field_fallbacks = load_font_map(font_map) if font_map is not None else {}
    return AppearanceStyle(
        fallback=fallback,
        field_fallbacks=field_fallbacks,
        only_if_missing=only_if_missing,
        force_replace=force_replace,
        regenerate_text_fields=regenerate_text_fields,
        substitute_missing_glyphs=not strict_glyphs,
    )
