"""Allow ``python -m treedigest.hasher``."""

import sys

from .cli import main

sys.exit(main())
