# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.

"""End-to-end fill pipeline for one document.

load field data -> open PDF -> fill -> flatten -> write
"""

import logging
import time
from dataclasses import dataclass, field
from pathlib import Path

import pikepdf

from .exceptions import InputNotFoundError, MalformedInputError, WriteError
from .field_data import load_field_values
from .filler import FormFiller
from .flatten import flatten_form
from .fonts.registry import FontRegistry
from .style import AppearanceStyle
from .writer import write_document

logger = logging.getLogger(__name__)


@dataclass
class FillReport:
    """Result of filling one document.

    Attributes:
        input_path: Path to the input PDF.
        output_path: Path to the written PDF.
        fields_filled: Number of fields that received a value.
        appearances_generated: Number of widget appearances built.
        widgets_flattened: Number of widgets drawn into page content.
        fonts_subsetted: Base names of the subset fonts.
        unknown_fields: Value names that matched no field.
        warnings: Non-fatal problems.
        processing_time: Processing time in seconds.
    """

    input_path: Path
    output_path: Path
    fields_filled: int = 0
    appearances_generated: int = 0
    widgets_flattened: int = 0
    fonts_subsetted: list[str] = field(default_factory=list)
    unknown_fields: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    processing_time: float = 0.0


def fill_pdf(
    input_path: Path | str,
    fields_path: Path | str,
    output_path: Path | str,
    style: AppearanceStyle,
    *,
    subset_fonts: bool = True,
    flatten: bool = True,
    all_annotations: bool = False,
    overwrite: bool = False,
) -> FillReport:
    """Fills a PDF form from a JSON file and writes the result.

    Args:
        input_path: PDF with an interactive form.
        fields_path: JSON field data.
        output_path: Where to write the result.
        style: Font and regeneration options.
        subset_fonts: Subset the fonts embedded for appearances.  Only
            applies when flattening.
        flatten: Bake appearances into page content and drop the form.
        all_annotations: When flattening, also flatten non-widget
            annotations.
        overwrite: Replace an existing output file.

    Returns:
        FillReport with counts and timing.

    Raises:
        InputNotFoundError: If the PDF or JSON file does not exist.
        MalformedInputError: If either input cannot be parsed.
        FontLoadError: If a configured font cannot be loaded.
        UnsupportedGlyphError: If a value cannot be drawn.
        WriteError: If the output cannot be written.
    """
    input_path = Path(input_path)
    output_path = Path(output_path)
    start_time = time.perf_counter()

    logger.info("Filling %s -> %s", input_path, output_path)

    if not input_path.is_file():
        raise InputNotFoundError(f"Input PDF not found: {input_path}")
    if output_path.resolve() == input_path.resolve():
        raise WriteError(f"Output path is the input file: {output_path}")
    if output_path.exists() and not overwrite:
        raise WriteError(f"Output file already exists: {output_path}")

    values = load_field_values(fields_path)
    report = FillReport(input_path=input_path, output_path=output_path)

    try:
        pdf = pikepdf.open(input_path)
    except pikepdf.PasswordError as e:
        raise MalformedInputError(f"PDF is encrypted: {input_path}") from e
    except pikepdf.PdfError as e:
        raise MalformedInputError(f"Cannot parse PDF {input_path}: {e}") from e

    with pdf, FontRegistry(pdf) as registry:
        if pdf.Root.get("/AcroForm") is None:
            report.warnings.append("Document has no interactive form")
            logger.warning("%s has no AcroForm", input_path)

        try:
            with FormFiller(pdf, style, registry) as filler:
                fill_result = filler.fill(values)
            if flatten:
                flatten_result = flatten_form(
                    pdf, style, registry, all_annotations=all_annotations
                )
                report.widgets_flattened = flatten_result.widgets_flattened
        except pikepdf.PdfError as e:
            raise MalformedInputError(f"Malformed PDF structure: {e}") from e

        report.fields_filled = len(fill_result.fields_filled)
        report.appearances_generated = fill_result.appearances_generated
        report.unknown_fields = fill_result.unknown_fields
        report.warnings.extend(fill_result.warnings)
        report.warnings.extend(
            f"'{s.char}' drawn with {s.fallback_name} (missing from {s.font_name})"
            for s in fill_result.substitutions
        )

        # Fonts still listed in a live /DR stay whole
        write_result = write_document(
            pdf, output_path, registry, subset_fonts=subset_fonts and flatten
        )
        report.fonts_subsetted = write_result.fonts_subsetted
        report.warnings.extend(write_result.warnings)

    report.processing_time = time.perf_counter() - start_time
    logger.info(
        "Fill successful: %s (%.2f seconds)", output_path, report.processing_time
    )
    return report
