# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.

"""Font resolution, embedding and subsetting for field appearances."""

from ..exceptions import FontLoadError, UnsupportedGlyphError
from .loader import FontLoader
from .metrics import FontMetricsExtractor
from .registry import EmbeddedFont, FontRegistry
from .subsetter import FontSubsetter, SubsettingResult

__all__ = [
    # Exceptions
    "FontLoadError",
    "UnsupportedGlyphError",
    # Loading
    "FontLoader",
    "FontMetricsExtractor",
    # Registry
    "EmbeddedFont",
    "FontRegistry",
    # Subsetting
    "FontSubsetter",
    "SubsettingResult",
]
