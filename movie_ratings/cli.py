"""
Operator command line for duplicate merging and aggregate repair.

Usage:
    movie-ratings find-duplicates "Alpha" 1999
    movie-ratings merge-duplicates "Alpha" 1999
    movie-ratings merge-duplicates --all [--dry-run]
    movie-ratings recalculate [--movie-id 42] [--batch-size 500]
"""

import argparse
import asyncio
import json
import sys
from typing import List, Optional

from dotenv import load_dotenv

from movie_ratings.core.config import Config, config as default_config
from movie_ratings.core.errors import ErrorResponse
from movie_ratings.core.logger import logger
from movie_ratings.db.mongodb import MongoStore
from movie_ratings.models.merge import MergeStatus
from movie_ratings.services.deduplication_service import DeduplicationService
from movie_ratings.services.rating_service import RatingService
from movie_ratings.utils.correlation_id import create_correlation_id, set_correlation_id
from movie_ratings.utils.natural_key import make_natural_key
from movie_ratings.utils.retry import with_store_retry

EXIT_OK = 0
EXIT_FAILED = 1
EXIT_USAGE = 2


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="movie-ratings",
        description="Duplicate movie merging and rating aggregate repair",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    find = subparsers.add_parser("find-duplicates", help="List movies sharing a title and year")
    find.add_argument("title")
    find.add_argument("year", type=int)

    merge = subparsers.add_parser("merge-duplicates", help="Merge duplicate movies")
    merge.add_argument("title", nargs="?")
    merge.add_argument("year", nargs="?", type=int)
    merge.add_argument("--all", action="store_true", help="Merge every duplicate group in the catalogue")
    merge.add_argument("--dry-run", action="store_true", help="With --all, only list the groups")

    repair = subparsers.add_parser("recalculate", help="Recompute stored rating aggregates")
    repair.add_argument("--movie-id", type=int, default=None)
    repair.add_argument("--batch-size", type=int, default=None)

    return parser


def _print_json(payload) -> None:
    print(json.dumps(payload, indent=2, default=str))


async def find_duplicates(store: MongoStore, title: str, year: int) -> int:
    service = DeduplicationService.from_store(store)
    key = make_natural_key(title, year)
    print(f'Searching for duplicates of "{key}"...')

    movies = await with_store_retry(lambda: service.find_duplicates(key), "find_duplicates")
    if not movies:
        print("No movies found with that title and year.")
        return EXIT_OK

    print(f"Found {len(movies)} movies:")
    _print_json([movie.model_dump(by_alias=True) for movie in movies])
    return EXIT_OK


async def merge_duplicates(store: MongoStore, title: str, year: int) -> int:
    service = DeduplicationService.from_store(store)
    key = make_natural_key(title, year)
    print(f'Merging duplicates of "{key}"...')

    result = await with_store_retry(lambda: service.merge_group(key), "merge_group")
    _print_json(result.model_dump(mode="json"))
    return EXIT_FAILED if result.status == MergeStatus.ABORTED else EXIT_OK


async def merge_all(store: MongoStore, dry_run: bool) -> int:
    service = DeduplicationService.from_store(store)
    report = await with_store_retry(lambda: service.merge_all(dry_run=dry_run), "merge_all")

    for group in report.groups:
        print(f'{group.natural_key}: {", ".join(str(i) for i in group.movie_ids)}')
    if dry_run:
        print(f"{len(report.groups)} duplicate groups found (dry run, nothing merged).")
        return EXIT_OK

    print(f"Merged: {report.merged}, no-op: {report.no_op}, aborted: {report.aborted}")
    return EXIT_FAILED if report.aborted else EXIT_OK


async def recalculate(store: MongoStore, movie_id: Optional[int], batch_size: Optional[int]) -> int:
    service = RatingService.from_store(store)
    if movie_id is not None:
        aggregate = await with_store_retry(
            lambda: service.recalculate_movie_rating(movie_id), "recalculate_movie_rating"
        )
        _print_json({"movieId": movie_id, **aggregate.model_dump(by_alias=True)})
        return EXIT_OK

    report = await with_store_retry(
        lambda: service.recalculate_all(batch_size=batch_size), "recalculate_all"
    )
    _print_json(report.model_dump())
    return EXIT_FAILED if report.failed else EXIT_OK


async def run(args: argparse.Namespace, settings: Optional[Config] = None, store: Optional[MongoStore] = None) -> int:
    """Execute a parsed command against an open store and return an exit code."""
    set_correlation_id(create_correlation_id())

    owns_store = store is None
    store = store or MongoStore(settings or default_config)
    try:
        if owns_store:
            await store.connect()

        if args.command == "find-duplicates":
            return await find_duplicates(store, args.title, args.year)
        if args.command == "merge-duplicates":
            if args.all:
                return await merge_all(store, args.dry_run)
            return await merge_duplicates(store, args.title, args.year)
        return await recalculate(store, args.movie_id, args.batch_size)
    except ErrorResponse as e:
        logger.error(f"{args.command} failed: {e.message}", metadata={"event": "cli_failed", **e.details})
        print(f"Error: {e.message}", file=sys.stderr)
        return EXIT_FAILED
    finally:
        if owns_store:
            await store.close()


def main(argv: Optional[List[str]] = None) -> int:
    load_dotenv()
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command == "merge-duplicates" and not args.all and (not args.title or args.year is None):
        parser.error("merge-duplicates needs <title> <year> or --all")
    if args.command == "merge-duplicates" and args.dry_run and not args.all:
        parser.error("--dry-run only applies with --all")

    return asyncio.run(run(args))


if __name__ == "__main__":
    sys.exit(main())
