#!/usr/bin/env python3
"""claudeye - Run the application.

Usage:
    python run.py serve
    python run.py list --explain
    # Or: claudeye serve

The snapshot API will be available at http://127.0.0.1:5055/api/sessions
"""

import sys

from claudeye.cli import main

if __name__ == "__main__":
    sys.exit(main())
