"""
Entry point for running nora as a module: python -m nora
"""

import sys
from .cli import main

if __name__ == "__main__":
    sys.exit(main())
