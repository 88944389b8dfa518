#!/usr/bin/env python3
"""
DEX grid bot runner.

Usage:
    python3 run_grid.py run
    python3 run_grid.py run --config configs/grid.yaml --dry-run
    python3 run_grid.py approve
"""
import sys

from dex_grid.cli import main

if __name__ == "__main__":
    sys.exit(main())
