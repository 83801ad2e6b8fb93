"""Allow ``python -m image_ocr`` to launch Image OCR."""

from __future__ import annotations

import sys


def main() -> None:
    from image_ocr import run

    sys.exit(run(sys.argv[1:]))


if __name__ == "__main__":
    main()
