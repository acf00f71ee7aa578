"""Allow ``python -m photo_map``."""

import sys

from photo_map.cli import main

sys.exit(main())
