"""Allow ``python -m src.cli`` execution (same as ``python -m src.cli.resolve``)."""

import sys

from src.cli.resolve import main

sys.exit(main())
