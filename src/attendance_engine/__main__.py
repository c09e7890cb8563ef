"""Entry point for ``python -m attendance_engine``."""

import sys

from attendance_engine.cli import main

if __name__ == "__main__":
    sys.exit(main())
