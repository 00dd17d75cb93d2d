"""Allow ``python -m bulletin_board``."""

import sys

from .run import main

sys.exit(main())
