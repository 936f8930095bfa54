import logging
import math
from concurrent.futures import ThreadPoolExecutor

from PIL import Image

from svg_to_ico.errors import RasterizeError
from svg_to_ico.scene import CairoRenderer

logger = logging.getLogger(__name__)

# Largest side of a cairo image surface.
MAX_DIMENSION = 32767
MAX_TARGET_HEIGHT = 0xFFFF


class RasterImage:
    """
    An RGBA pixel buffer with its dimensions.

    Pixels are row-major, top to bottom, one straight-alpha RGBA quadruplet
    per pixel, so ``len(pixels) == width * height * 4`` always holds.
    """

    def __init__(self, width: int, height: int, pixels: bytes):
        if width < 0 or height < 0:
            raise ValueError(f"Invalid image size {width}x{height}")
        pixels = bytes(pixels)
        expected = width * height * 4
        if len(pixels) != expected:
            raise ValueError(
                f"A {width}x{height} RGBA image needs {expected} bytes, got {len(pixels)}"
            )
        self.width = width
        self.height = height
        self.pixels = pixels

    def __repr__(self):
        return f"RasterImage({self.width}x{self.height})"

    def pixel(self, x: int, y: int) -> tuple:
        """Return the (r, g, b, a) quadruplet at column x, row y."""
        start = (y * self.width + x) * 4
        return tuple(self.pixels[start:start + 4])

    def to_pil(self) -> Image.Image:
        return Image.frombytes("RGBA", (self.width, self.height), self.pixels)


def target_width(scene_width: float, scene_height: float, target_height: int) -> int:
    """
    Width matching target_height with the scene's aspect ratio.

    Rounds half up, so a 3x2 scene at height 3 is 5 pixels wide (4.5 rounded).
    """
    return int(math.floor(scene_width * target_height / scene_height + 0.5))


def _allocate(width, height):
    if width <= 0 or height <= 0:
        raise RasterizeError(f"Cannot allocate a {width}x{height} pixel buffer")
    if width > MAX_DIMENSION or height > MAX_DIMENSION:
        raise RasterizeError(
            f"Cannot allocate a {width}x{height} pixel buffer, "
            f"the largest side is {MAX_DIMENSION}"
        )
    try:
        return Image.new("RGBA", (width, height), (0, 0, 0, 0))
    except (MemoryError, ValueError) as e:
        raise RasterizeError(f"Cannot allocate a {width}x{height} pixel buffer: {e}") from e


def rasterize(scene, target_height: int, renderer=None) -> RasterImage:
    """
    Render a scene at the given height in pixels.

    The same scale factor is applied to both axes, so the width follows from
    the scene's aspect ratio (see target_width).

    Args:
        scene (VectorScene): The parsed scene. It is only read.
        target_height (int): Output height in pixels, 0 to 65535.
        renderer (Renderer, optional): Defaults to a CairoRenderer.

    Returns:
        RasterImage: An image exactly target_height pixels tall.

    Raises:
        RasterizeError: The buffer could not be allocated or rendered.
    """
    if isinstance(target_height, bool) or not isinstance(target_height, int):
        raise ValueError(f"Target height must be an integer, got {target_height!r}")
    if not 0 <= target_height <= MAX_TARGET_HEIGHT:
        raise ValueError(f"Target height must be between 0 and {MAX_TARGET_HEIGHT}, got {target_height}")

    if renderer is None:
        renderer = CairoRenderer()

    scale = target_height / scene.height()
    width = target_width(scene.width(), scene.height(), target_height)

    buffer = _allocate(width, target_height)
    renderer.render(scene, buffer, scale)

    if buffer.size != (width, target_height) or buffer.mode != "RGBA":
        raise RasterizeError(
            f"Renderer changed the {width}x{target_height} RGBA buffer "
            f"to {buffer.size[0]}x{buffer.size[1]} {buffer.mode}"
        )

    logger.debug(f"Rasterized {scene!r} to {width}x{target_height} (scale {scale:.4f})")
    return RasterImage(width, target_height, buffer.tobytes())


def rasterize_all(scene, sizes, renderer=None, max_workers=None) -> list:
    """
    Rasterize a scene once per size.

    Results follow the order of ``sizes``, duplicates included. Each size is
    rendered independently, so with ``max_workers`` greater than one the work
    runs on a thread pool; the first failure in size order is raised.
    """
    sizes = list(sizes)
    if renderer is None:
        renderer = CairoRenderer()

    if not max_workers or max_workers <= 1 or len(sizes) <= 1:
        return [rasterize(scene, size, renderer) for size in sizes]

    logger.debug(f"Rasterizing {len(sizes)} sizes on {max_workers} threads")
    with ThreadPoolExecutor(max_workers=max_workers) as executor:
        return list(executor.map(lambda size: rasterize(scene, size, renderer), sizes))
