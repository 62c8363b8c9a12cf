"""
Entry point for running the package as a module: python -m ecofarm
"""

import sys

from ecofarm.cli import main

if __name__ == "__main__":
    sys.exit(main())
