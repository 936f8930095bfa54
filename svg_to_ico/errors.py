"""
Exceptions raised by the SVG to ICO conversion pipeline.

Every failure is reported as a subclass of ConversionError so callers can
catch one type and still tell the kinds apart through the ``kind`` attribute.
"""


class ConversionError(Exception):
    """Base class for all conversion failures."""

    kind = "conversion"


class IoError(ConversionError):
    """Reading the SVG or writing the ICO file failed."""

    kind = "io"

    def __init__(self, message, os_error=None):
        super().__init__(message)
        self.os_error = os_error


class ParseError(ConversionError):
    """The SVG content could not be parsed or has no usable size."""

    kind = "parse"


class RasterizeError(ConversionError):
    """A pixel buffer could not be allocated or rendered."""

    kind = "rasterize"
