"""Allow running the browser with ``python -m project_browser``."""

import sys

from project_browser.cli import main

if __name__ == "__main__":
    sys.exit(main())
