#!/usr/bin/env python3
"""
Entry point script for running the liquid glass magnifier.

Usage:
    python run_magnifier.py [--image PATH] [--lens X,Y,RADIUS[,ZOOM]] [--export OUT.png]

Examples:
    python run_magnifier.py
    python run_magnifier.py --image photo.jpg
    python run_magnifier.py --image photo.jpg --lens 450,300,60,2 --export magnified.png
"""

import sys
from pathlib import Path

# Add project root to path for imports
project_root = Path(__file__).parent
sys.path.insert(0, str(project_root))

from Magnifier.application import main

if __name__ == '__main__':
    sys.exit(main())
