#!/usr/bin/env python3
"""
WDBC study - one command to run everything.

Usage:
    python run.py                      # bundled dataset, full analysis
    python run.py --data data.csv      # analyse a CSV export
    python run.py --skip-loocv         # holdout experiment only
"""

import os
import sys

sys.path.insert(0, os.path.dirname(__file__))

from wdbc_study.__main__ import main

if __name__ == "__main__":
    main()
