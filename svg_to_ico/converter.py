import logging

from svg_to_ico import ico_encoder
from svg_to_ico.rasterizer import rasterize_all
from svg_to_ico.scene import SvgScene

logger = logging.getLogger(__name__)

DEFAULT_DPI = 96.0
DEFAULT_SIZES = [16, 20, 24, 30, 32, 36, 40, 48, 60, 64, 72, 80, 96, 128, 256]


def scene_to_ico(scene, ico_path, ico_entry_sizes, renderer=None, max_workers=None):
    """
    Rasterize an already parsed scene and write the ICO file.

    Every size is rendered and encoded before the output path is touched, so
    a failure leaves any existing file as it was.

    Args:
        scene (VectorScene): Parsed vector image.
        ico_path (str | Path): Output file; missing parent directories are created.
        ico_entry_sizes (list[int]): Entry heights in pixels, in output order.
        renderer (Renderer, optional): Defaults to a CairoRenderer.
        max_workers (int, optional): Threads used for rasterization.

    Returns:
        Path: The written file.
    """
    sizes = list(ico_entry_sizes)
    if not sizes:
        raise ValueError("At least one icon size is required")

    logger.info(f"Rasterizing {scene!r} at sizes {sizes}")
    images = rasterize_all(scene, sizes, renderer=renderer, max_workers=max_workers)
    data = ico_encoder.encode(images)
    return ico_encoder.write(ico_path, data)


def svg_to_ico(svg_path, svg_dpi, ico_path, ico_entry_sizes, renderer=None, max_workers=None):
    """
    Create an ICO file from an SVG file.

    SVG dimensions are interpreted as pixels at ``svg_dpi``. Each entry size is
    the height in pixels of one image in the ICO file; widths follow the SVG's
    aspect ratio.

    Example:
        svg_to_ico("examples/example.svg", 96.0, "examples/example.ico", [32, 64])

    Raises:
        IoError: The SVG could not be read or the ICO could not be written.
        ParseError: The SVG could not be parsed.
        RasterizeError: An image could not be rendered.
    """
    scene = SvgScene.from_file(svg_path, svg_dpi)
    return scene_to_ico(scene, ico_path, ico_entry_sizes, renderer=renderer, max_workers=max_workers)
