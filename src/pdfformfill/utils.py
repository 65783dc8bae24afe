# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.

"""Utility functions for form filling."""

import logging
import sys
from typing import Any

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def setup_logging(verbose: bool = False, quiet: bool = False) -> logging.Logger:
    """Configures logging for pdfformfill.

    Args:
        verbose: If True, DEBUG level is used.
        quiet: If True, only ERROR and higher are output.
            Takes precedence over verbose.

    Returns:
        Configured logger for pdfformfill.
    """
    if quiet:
        level = logging.ERROR
    elif verbose:
        level = logging.DEBUG
    else:
        level = logging.INFO

    package_logger = logging.getLogger("pdfformfill")
    package_logger.setLevel(level)

    # Remove existing handlers to avoid duplicates
    package_logger.handlers.clear()

    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    package_logger.addHandler(handler)

    logger.debug("Logging configured with level: %s", logging.getLevelName(level))
    return package_logger


def resolve_indirect(obj: Any) -> Any:
    """Resolves a pikepdf indirect reference to its direct object.

    Args:
        obj: A pikepdf object, possibly an indirect reference.

    Returns:
        The resolved object, or ``obj`` unchanged if it is already direct.
    """
    if obj is None:
        return None
    try:
        return obj.get_object()
    except (AttributeError, ValueError, TypeError):
        return obj


def format_number(value: float, precision: int = 4) -> str:
    """Formats a number for a content stream.

    PDF content streams have no exponent notation, so values are
    written in fixed point with trailing zeros removed.
    """
    text = f"{value:.{precision}f}".rstrip("0").rstrip(".")
    return "0" if text in ("", "-0") else text
