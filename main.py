import sys

from svg_to_ico.cli import main

if __name__ == '__main__':
    sys.exit(main())
