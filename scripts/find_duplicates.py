#!/usr/bin/env python3
"""
List movies sharing a title and year.

Usage:
    python scripts/find_duplicates.py "Alpha" 1999
"""

import sys
from pathlib import Path

# Add project root to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from movie_ratings.cli import main

if __name__ == "__main__":
    sys.exit(main(["find-duplicates", *sys.argv[1:]]))
