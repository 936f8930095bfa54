"""
Vector scenes and the renderers that paint them into pixel buffers.

Parsing and scan conversion are delegated to cairosvg. The rest of the
package only depends on the two small interfaces defined here, so tests can
swap in a fake renderer that paints deterministic patterns.
"""

import logging
from io import BytesIO
from pathlib import Path

import cairocffi
from cairosvg.helpers import node_format, size
from cairosvg.parser import Tree
from cairosvg.surface import PNGSurface
from PIL import Image

from svg_to_ico.errors import IoError, ParseError, RasterizeError

logger = logging.getLogger(__name__)


class _SizingContext:
    """
    The attributes of a root cairosvg surface that length resolution reads.

    Sizing the root element against this gives the same width and height the
    surface computes before drawing, so a scene's reported size and the
    rendered pixel grid agree.
    """

    def __init__(self, dpi):
        self.dpi = dpi
        self.context_width = None
        self.context_height = None
        self.font_size = size(self, "12pt")


class VectorScene:
    """A parsed, resolution-independent image with an intrinsic size in pixels."""

    def width(self) -> float:
        raise NotImplementedError

    def height(self) -> float:
        raise NotImplementedError


class SvgScene(VectorScene):
    """An SVG document parsed by cairosvg, sized at a given DPI."""

    def __init__(self, data: bytes, dpi: float, width: float, height: float):
        self.data = data
        self.dpi = dpi
        self._width = width
        self._height = height

    def width(self) -> float:
        return self._width

    def height(self) -> float:
        return self._height

    def __repr__(self):
        return f"SvgScene({self._width}x{self._height} @ {self.dpi} dpi)"

    @classmethod
    def from_bytes(cls, data: bytes, dpi: float = 96.0) -> "SvgScene":
        """
        Parse SVG source and resolve its intrinsic size.

        Lengths are resolved by cairosvg: the root ``width`` and ``height``
        win, and a missing, zero or percentage length falls back to the
        matching ``viewBox`` dimension.

        Raises:
            ParseError: The content is not an SVG document or has no
                positive intrinsic size.
        """
        if dpi <= 0:
            raise ValueError(f"DPI must be positive, got {dpi}")
        try:
            tree = Tree(bytestring=data)
        except Exception as e:
            raise ParseError(f"Could not parse SVG: {e}") from e

        if tree.tag != "svg":
            raise ParseError(f"Root element is <{tree.tag}>, expected <svg>")

        try:
            width, height, _ = node_format(_SizingContext(dpi), tree)
        except (ValueError, IndexError) as e:
            raise ParseError(f"Invalid SVG size attributes: {e}") from e

        if not width or not height or width <= 0 or height <= 0:
            raise ParseError("SVG has no positive width and height")

        logger.debug(f"Parsed SVG with intrinsic size {width}x{height} at {dpi} dpi")
        return cls(data, dpi, width, height)

    @classmethod
    def from_file(cls, path, dpi: float = 96.0) -> "SvgScene":
        """Read and parse an SVG file. Raises IoError if it cannot be read."""
        path = Path(path)
        try:
            data = path.read_bytes()
        except OSError as e:
            raise IoError(f"Could not read {path}: {e}", e) from e
        return cls.from_bytes(data, dpi)


class Renderer:
    """
    Paints a scene into an existing RGBA buffer.

    Implementations fill every pixel of ``buffer`` (a Pillow ``RGBA`` image)
    using ``scale`` pixels per scene unit on both axes, anchored at the
    top-left corner. Unpainted pixels stay fully transparent and the buffer
    is never resized.
    """

    def render(self, scene, buffer, scale):
        raise NotImplementedError


def render_png(scene, width, height, scale):
    """
    Render an SvgScene to PNG bytes on a width x height canvas.

    The drawing is scaled by ``scale`` from the top-left corner whatever the
    canvas size; cairosvg would otherwise truncate the canvas to
    ``int(size * scale)`` or, given an output size, refit the drawing to it.
    """
    class CanvasSurface(PNGSurface):
        def _create_surface(self, *_):
            surface = cairocffi.ImageSurface(cairocffi.FORMAT_ARGB32, width, height)
            return surface, width, height

    return CanvasSurface.convert(bytestring=scene.data, dpi=scene.dpi, scale=scale)


class CairoRenderer(Renderer):
    """Renders SvgScene objects with cairosvg."""

    def render(self, scene, buffer, scale):
        try:
            png_data = render_png(scene, buffer.width, buffer.height, scale)
            rendered = Image.open(BytesIO(png_data)).convert("RGBA")
        except Exception as e:
            raise RasterizeError(
                f"Rendering at {buffer.width}x{buffer.height} failed: {e}"
            ) from e

        if rendered.size != buffer.size:
            raise RasterizeError(
                f"Renderer produced {rendered.size[0]}x{rendered.size[1]}, "
                f"expected {buffer.width}x{buffer.height}"
            )
        buffer.paste(rendered, (0, 0))
