#!/usr/bin/env python3
"""
winleap entry point for running as a module: python3 -m winleap
"""

import sys
from winleap.cli import main

if __name__ == '__main__':
    sys.exit(main())
