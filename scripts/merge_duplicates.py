#!/usr/bin/env python3
"""
Merge duplicate movies into the record with the lowest movieId.

Usage:
    python scripts/merge_duplicates.py "Alpha" 1999
    python scripts/merge_duplicates.py --all --dry-run
"""

import sys
from pathlib import Path

# Add project root to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from movie_ratings.cli import main

if __name__ == "__main__":
    sys.exit(main(["merge-duplicates", *sys.argv[1:]]))
