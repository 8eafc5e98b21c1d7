#!/usr/bin/env python3
"""
Recompute stored averageRating / ratingCount from the ratings collection.

Usage:
    python scripts/recalculate_ratings.py
    python scripts/recalculate_ratings.py --movie-id 42
    python scripts/recalculate_ratings.py --batch-size 1000
"""

import sys
from pathlib import Path

# Add project root to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from movie_ratings.cli import main

if __name__ == "__main__":
    sys.exit(main(["recalculate", *sys.argv[1:]]))
