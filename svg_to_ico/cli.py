import argparse
import logging
import sys

from svg_to_ico import __version__
from svg_to_ico.config import Config
from svg_to_ico.converter import DEFAULT_DPI, DEFAULT_SIZES, svg_to_ico
from svg_to_ico.errors import ConversionError
from svg_to_ico.logger import setup_logging

logger = logging.getLogger(__name__)


def _icon_size(value):
    try:
        size = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid size: {value!r}")
    if not 0 <= size <= 0xFFFF:
        raise argparse.ArgumentTypeError(f"size must be between 0 and 65535, got {size}")
    return size


def _configured_sizes(config, key, default):
    """Sizes from the configuration, checked like values given with -s."""
    try:
        sizes = [_icon_size(size) for size in config.get_sizes(key, default)]
    except argparse.ArgumentTypeError as e:
        raise ValueError(str(e)) from e
    if not sizes:
        raise ValueError("no sizes listed")
    return sizes


def _setting(errors, dest, read, key, default):
    # A bad configured default is only reported if the option is not given.
    try:
        return read(key, default)
    except (ValueError, TypeError) as e:
        errors[dest] = f"invalid {key} setting: {e}"
        return None


def build_parser(config):
    setting_errors = {}
    default_sizes = _setting(setting_errors, "ico_sizes",
                             lambda key, default: _configured_sizes(config, key, default),
                             "ICO_SIZES", DEFAULT_SIZES)
    default_dpi = _setting(setting_errors, "svg_dpi", config.get_float, "SVG_DPI", DEFAULT_DPI)
    default_jobs = _setting(setting_errors, "max_workers", config.get_int, "MAX_WORKERS", 1)

    parser = argparse.ArgumentParser(
        prog="svg-to-ico",
        description="Convert an SVG file into a multi-resolution ICO file.",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("-i", "--input", dest="svg_path", metavar="FILE", required=True,
                        help="Path to the SVG file to convert")
    parser.add_argument("-d", "--dpi", dest="svg_dpi", metavar="DPI", type=float,
                        default=default_dpi,
                        help="DPI to use when interpreting the SVG file (default: %(default)s)")
    parser.add_argument("-o", "--output", dest="ico_path", metavar="FILE", required=True,
                        help="Output path for the ICO file")
    parser.add_argument("-s", "--size", dest="ico_sizes", metavar="SIZE", type=_icon_size,
                        action="append",
                        help="An image size (height in pixels) to include within the ICO file. "
                             f"Repeat for several sizes. If no sizes are specified, the following "
                             f"are used: {default_sizes}.")
    parser.add_argument("-j", "--jobs", dest="max_workers", metavar="N", type=int,
                        default=default_jobs,
                        help="Number of sizes to rasterize in parallel (default: %(default)s)")
    parser.add_argument("--log-dir", default=config.get("LOG_DIR", "logs"),
                        help="Directory for run logs (default: %(default)s)")
    parser.add_argument("--no-log-file", action="store_true",
                        help="Only log to the console")
    parser.add_argument("-v", "--verbose", action="store_true",
                        help="Show debug output on the console")
    parser.set_defaults(default_sizes=default_sizes, setting_errors=setting_errors)
    return parser


def main(argv=None, config_path=None):
    """
    Run the command line. Returns the process exit status.

    Passing ``config_path`` reloads the configuration from that file; without
    it the already loaded configuration (or the default file) is used.
    """
    if config_path is not None:
        Config.reset()
        config = Config(config_path)
    else:
        config = Config()
    parser = build_parser(config)
    args = parser.parse_args(argv)

    for dest, message in args.setting_errors.items():
        if getattr(args, dest) is None:
            parser.error(message)

    if args.svg_dpi <= 0:
        parser.error(f"DPI must be positive, got {args.svg_dpi}")

    level = logging.DEBUG if args.verbose else getattr(
        logging, str(config.get("LOG_LEVEL", "INFO")).upper(), logging.INFO
    )
    setup_logging(None if args.no_log_file else args.log_dir, level=level)

    sizes = args.ico_sizes or args.default_sizes
    try:
        svg_to_ico(args.svg_path, args.svg_dpi, args.ico_path, sizes, max_workers=args.max_workers)
    except ConversionError as e:
        logger.error(f"{e.kind} error: {e}")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
