#!/usr/bin/env python3
"""
MEV inspector script wrapper.

Usage:
    python3 run_inspector.py
    python3 run_inspector.py --config configs/inspector.yaml
    python3 run_inspector.py --config configs/inspector.yaml --block 18000000
"""

import sys

from mev_inspector.cli import main

if __name__ == "__main__":
    sys.exit(main())
