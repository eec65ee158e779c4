"""Run mimetree with ``python -m mimetree``.

The document is read from stdin::

    python -m mimetree text/html application/xml --no-crawl --no-images < page.html
"""

import sys

from .cli import main

if __name__ == "__main__":
    sys.exit(main())
