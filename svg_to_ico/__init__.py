"""Simple SVG to ICO conversion."""

from svg_to_ico.converter import DEFAULT_DPI, DEFAULT_SIZES, scene_to_ico, svg_to_ico
from svg_to_ico.errors import ConversionError, IoError, ParseError, RasterizeError
from svg_to_ico.ico_encoder import encode, write
from svg_to_ico.rasterizer import RasterImage, rasterize, rasterize_all
from svg_to_ico.scene import CairoRenderer, Renderer, SvgScene, VectorScene

__version__ = "0.1.0"
