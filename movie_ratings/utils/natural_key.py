"""
Natural key for duplicate detection.

Two movie records denote the same movie when their natural keys are equal.
The key is title plus year rendered MovieLens style, e.g. "Alpha (1999)".
Every place that forms duplicate groups goes through ``natural_key``; store
queries built from a key only narrow the candidates and are always
re-filtered with it.
"""

import re
from typing import Mapping, Optional, Tuple, Union

from movie_ratings.models.movie import Movie

_YEAR_SUFFIX = re.compile(r"^(?P<title>.*?)\s*\((?P<year>\d{4})\)$")


def base_title(title: str, year: Optional[int]) -> str:
    """Title without a trailing "(year)" suffix that matches ``year``."""
    title = (title or "").strip()
    if year is None:
        return title
    match = _YEAR_SUFFIX.match(title)
    if match and int(match.group("year")) == year:
        return match.group("title")
    return title


def make_natural_key(title: str, year: Optional[int]) -> str:
    stripped = base_title(title, year)
    if year is None:
        return stripped
    return f"{stripped} ({year})"


def natural_key(movie: Union[Movie, Mapping]) -> str:
    """Natural key of a movie model or raw movie document."""
    if isinstance(movie, Movie):
        return make_natural_key(movie.title, movie.year)
    return make_natural_key(movie.get("title", ""), movie.get("year"))


def parse_natural_key(key: str) -> Tuple[str, Optional[int]]:
    """
    Split a key into (base title, year). Keys without a year suffix return
    (title, None).
    """
    key = (key or "").strip()
    match = _YEAR_SUFFIX.match(key)
    if match:
        return match.group("title"), int(match.group("year"))
    return key, None


def candidate_title_pattern(key: str) -> str:
    """
    Anchored regex matching every stored title whose record could have
    natural key ``key``.
    """
    title, year = parse_natural_key(key)
    suffix = rf"(\s*\({year}\))?" if year is not None else ""
    return rf"^\s*{re.escape(title)}{suffix}\s*$"
