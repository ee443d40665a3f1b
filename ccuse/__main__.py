"""Allow ``python -m ccuse``."""

import sys

from .cli import main

sys.exit(main())
