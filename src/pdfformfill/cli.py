# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.

"""Click-based CLI for pdfformfill.

This module provides the command-line interface for filling and
flattening PDF forms.
"""

# Standard Library
import json
import logging
import sys
from pathlib import Path

# Third Party
import click
import pikepdf
from colorama import Fore, Style, init

# Local
from . import __version__
from .config import build_style
from .exceptions import FormFillError, InputNotFoundError, MalformedInputError
from .field_data import export_field_values
from .pipeline import FillReport, fill_pdf
from .style import DEFAULT_FALLBACK_FONT
from .utils import setup_logging

EXIT_SUCCESS = 0
EXIT_ERROR = 1

logger = logging.getLogger(__name__)


def print_success(msg: str) -> None:
    """Prints a success message in green."""
    click.echo(f"{Fore.GREEN}✓{Style.RESET_ALL} {msg}")


def print_error(msg: str) -> None:
    """Prints an error message in red to stderr."""
    click.echo(f"{Fore.RED}✗ Error:{Style.RESET_ALL} {msg}", err=True)


def print_warning(msg: str) -> None:
    """Prints a warning in yellow."""
    click.echo(f"{Fore.YELLOW}⚠{Style.RESET_ALL} {msg}")


def _print_report(report: FillReport, quiet: bool) -> None:
    if quiet:
        return
    print_success(
        f"Filled: {report.input_path.name} -> {report.output_path.name} "
        f"({report.fields_filled} fields, {report.processing_time:.2f}s)"
    )
    for name in report.unknown_fields:
        print_warning(f"No field named '{name}'")
    for warning in report.warnings:
        print_warning(warning)


def _list_fields(input_path: Path) -> None:
    if not input_path.is_file():
        raise InputNotFoundError(f"Input PDF not found: {input_path}")
    try:
        pdf = pikepdf.open(input_path)
    except pikepdf.PdfError as e:
        raise MalformedInputError(f"Cannot parse PDF {input_path}: {e}") from e
    with pdf:
        records = export_field_values(pdf)
    click.echo(json.dumps(records, indent=2, ensure_ascii=False))


@click.command()
@click.option(
    "-i",
    "--input",
    "input_path",
    required=True,
    type=click.Path(dir_okay=False, path_type=Path),
    help="PDF with an interactive form",
)
@click.option(
    "-d",
    "--fields",
    "fields_path",
    type=click.Path(dir_okay=False, path_type=Path),
    help="JSON field data",
)
@click.option(
    "-o",
    "--output",
    "output_path",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Output PDF",
)
@click.option(
    "--font-fallback",
    default=DEFAULT_FALLBACK_FONT,
    show_default=True,
    help="Font for fields without an override: a standard font name, "
    "a font file, or cid:<font file>, optionally with @size",
)
@click.option(
    "--font-map",
    type=click.Path(dir_okay=False, path_type=Path),
    help="JSON file of per-field font overrides",
)
@click.option(
    "--only-if-missing/--always-regenerate",
    default=True,
    help="Keep existing widget appearances (default: keep)",
)
@click.option(
    "--force-replace",
    is_flag=True,
    help="Regenerate every appearance, including unfilled fields",
)
@click.option(
    "--regenerate-text-fields/--keep-text-appearances",
    default=True,
    help="Regenerate filled text and choice fields even when keeping "
    "existing appearances (default: regenerate)",
)
@click.option(
    "--strict-glyphs",
    is_flag=True,
    help="Fail on characters missing from a field's font",
)
@click.option("--no-flatten", is_flag=True, help="Keep the form interactive")
@click.option(
    "--all-annotations",
    is_flag=True,
    help="Also flatten non-widget annotations",
)
@click.option("--no-subset", is_flag=True, help="Embed whole font programs")
@click.option(
    "--list-fields",
    is_flag=True,
    help="Print the form's fields as JSON and exit",
)
@click.option(
    "-f",
    "--force",
    is_flag=True,
    help="Overwrite existing files",
)
@click.option(
    "-q",
    "--quiet",
    is_flag=True,
    help="Only output errors",
)
@click.option(
    "--verbose",
    is_flag=True,
    help="Detailed output",
)
@click.version_option(version=__version__)
def main(
    input_path: Path,
    fields_path: Path | None,
    output_path: Path | None,
    font_fallback: str,
    font_map: Path | None,
    only_if_missing: bool,
    force_replace: bool,
    regenerate_text_fields: bool,
    strict_glyphs: bool,
    no_flatten: bool,
    all_annotations: bool,
    no_subset: bool,
    list_fields: bool,
    force: bool,
    quiet: bool,
    verbose: bool,
) -> None:
    """Fills a PDF form from JSON data and flattens it.

    Each field is drawn with its font from --font-map, or with
    --font-fallback when it has none.
    """
    # Initialize colorama for Windows compatibility
    init()

    setup_logging(verbose=verbose, quiet=quiet)

    try:
        if list_fields:
            _list_fields(input_path)
            sys.exit(EXIT_SUCCESS)

        if fields_path is None or output_path is None:
            print_error("--fields and --output are required unless --list-fields")
            sys.exit(EXIT_ERROR)

        style = build_style(
            font_fallback,
            font_map,
            only_if_missing=only_if_missing,
            force_replace=force_replace,
            regenerate_text_fields=regenerate_text_fields,
            strict_glyphs=strict_glyphs,
        )

        if not quiet:
            click.echo(f"Filling {input_path.name}...")

        report = fill_pdf(
            input_path,
            fields_path,
            output_path,
            style,
            subset_fonts=not no_subset,
            flatten=not no_flatten,
            all_annotations=all_annotations,
            overwrite=force,
        )
        _print_report(report, quiet)
        exit_code = EXIT_SUCCESS

    except FormFillError as e:
        print_error(str(e))
        exit_code = EXIT_ERROR
    except Exception as e:
        logger.exception("Unexpected error")
        print_error(f"Unexpected error: {e}")
        exit_code = EXIT_ERROR

    sys.exit(exit_code)
