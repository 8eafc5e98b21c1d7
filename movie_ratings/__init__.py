"""
Movie Ratings Service

Keeps per-movie rating aggregates consistent with the ratings collection and
merges duplicate movie records without losing ratings.
"""

__version__ = "1.0.0"
