"""
Entry point for running the package as a module.

Usage: python -m ou_mover <input_file> <target_ou> <log_file> <server>
"""

import sys
from .cli import main

if __name__ == "__main__":
    sys.exit(main())
