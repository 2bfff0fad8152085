"""Allow ``python -m claudeye``."""

import sys

from claudeye.cli import main

sys.exit(main())
