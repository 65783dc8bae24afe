# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.

"""Document serialization."""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import BinaryIO

import pikepdf

from .exceptions import WriteError
from .fonts.registry import FontRegistry
from .fonts.subsetter import FontSubsetter

logger = logging.getLogger(__name__)


@dataclass
class WriteResult:
    """Result of writing a document.

    Attributes:
        fonts_subsetted: Base names of the fonts that were subset.
        bytes_saved: Reduction of embedded font data by subsetting.
        warnings: Non-fatal problems, e.g. fonts that could not be subset.
    """

    fonts_subsetted: list[str] = field(default_factory=list)
    bytes_saved: int = 0
    warnings: list[str] = field(default_factory=list)


def write_document(
    pdf: pikepdf.Pdf,
    sink: Path | str | BinaryIO,
    registry: FontRegistry | None = None,
    *,
    subset_fonts: bool = True,
) -> WriteResult:
    """Optionally subsets registered fonts, then saves the document.

    Args:
        pdf: Document to write.
        sink: Output path or writable binary stream.
        registry: Registry whose embedded fonts are subset.  Without one
            no font is subset.
        subset_fonts: Whether to subset the registered fonts.

    Returns:
        WriteResult describing subsetting.

    Raises:
        WriteError: If the document cannot be written.
    """
    result = WriteResult()

    if subset_fonts and registry is not None:
        subset_result = FontSubsetter(pdf).subset_fonts(registry.fonts)
        result.fonts_subsetted = subset_result.fonts_subsetted
        result.bytes_saved = subset_result.bytes_saved
        result.warnings.extend(subset_result.warnings)
        if subset_result.fonts_subsetted:
            logger.info(
                "Subset %d fonts (%d bytes saved)",
                len(subset_result.fonts_subsetted),
                subset_result.bytes_saved,
            )

    if isinstance(sink, (str, Path)):
        sink = Path(sink)
        logger.debug("Saving PDF: %s", sink)
        try:
            sink.parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise WriteError(f"Cannot create output directory: {e}") from e

    try:
        pdf.save(sink, linearize=False, deterministic_id=True)
    except (pikepdf.PdfError, OSError, ValueError) as e:
        raise WriteError(f"Could not write PDF: {e}") from e

    return result
