"""
Module execution entry point.

Allows running with: python -m dxt_signing
"""

import sys
from dxt_signing.cli import main

if __name__ == "__main__":
    sys.exit(main())
