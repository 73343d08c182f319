"""Allow ``python -m appbooster``."""

import sys

from appbooster.pipeline import main

sys.exit(main())
