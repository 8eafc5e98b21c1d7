"""Tests for the operator command line"""
import pytest
from unittest.mock import patch
from pymongo.errors import OperationFailure

from movie_ratings.cli import EXIT_FAILED, EXIT_OK, build_parser, main, run


@pytest.fixture
def services(dedup_service, rating_service):
    with patch("movie_ratings.cli.DeduplicationService.from_store", return_value=dedup_service), \
            patch("movie_ratings.cli.RatingService.from_store", return_value=rating_service):
        yield


def parse(*argv):
    return build_parser().parse_args(list(argv))


class TestCommands:

    @pytest.mark.asyncio
    async def test_find_duplicates(self, services, store, alpha_group, capsys):
        code = await run(parse("find-duplicates", "Alpha", "1999"), store=store)

        out = capsys.readouterr().out
        assert code == EXIT_OK
        assert "Found 2 movies" in out
        assert '"movieId": 11' in out

    @pytest.mark.asyncio
    async def test_find_duplicates_none(self, services, store, capsys):
        code = await run(parse("find-duplicates", "Nothing", "2000"), store=store)

        assert code == EXIT_OK
        assert "No movies found" in capsys.readouterr().out

    @pytest.mark.asyncio
    async def test_merge_duplicates(self, services, store, db, alpha_group, capsys):
        code = await run(parse("merge-duplicates", "Alpha", "1999"), store=store)

        out = capsys.readouterr().out
        assert code == EXIT_OK
        assert '"status": "merged"' in out
        assert '"average": 3.67' in out
        assert sorted(db.movies) == [10]

    @pytest.mark.asyncio
    async def test_merge_duplicates_aborted(self, services, store, db, alpha_group):
        db.fail("reassign", OperationFailure("boom", code=2))

        code = await run(parse("merge-duplicates", "Alpha", "1999"), store=store)

        assert code == EXIT_FAILED
        assert sorted(db.movies) == [10, 11]

    @pytest.mark.asyncio
    async def test_merge_all_dry_run(self, services, store, db, alpha_group, capsys):
        code = await run(parse("merge-duplicates", "--all", "--dry-run"), store=store)

        out = capsys.readouterr().out
        assert code == EXIT_OK
        assert "Alpha (1999): 10, 11" in out
        assert "dry run" in out
        assert sorted(db.movies) == [10, 11]

    @pytest.mark.asyncio
    async def test_merge_all(self, services, store, db, alpha_group, capsys):
        code = await run(parse("merge-duplicates", "--all"), store=store)

        assert code == EXIT_OK
        assert "Merged: 1, no-op: 0, aborted: 0" in capsys.readouterr().out

    @pytest.mark.asyncio
    async def test_recalculate_movie(self, services, store, db, movie_e1, capsys):
        db.movies[1]["averageRating"] = 2.0

        code = await run(parse("recalculate", "--movie-id", "1"), store=store)

        assert code == EXIT_OK
        out = capsys.readouterr().out
        assert '"averageRating": 4.0' in out
        assert '"ratingCount": 3' in out

    @pytest.mark.asyncio
    async def test_recalculate_unknown_movie(self, services, store, capsys):
        code = await run(parse("recalculate", "--movie-id", "8"), store=store)

        assert code == EXIT_FAILED
        assert "Movie not found" in capsys.readouterr().err

    @pytest.mark.asyncio
    async def test_recalculate_all(self, services, store, db, movie_e1, capsys):
        code = await run(parse("recalculate", "--batch-size", "5"), store=store)

        assert code == EXIT_OK
        assert '"scanned": 1' in capsys.readouterr().out


class TestUsage:

    def test_merge_needs_title_or_all(self):
        with pytest.raises(SystemExit) as exc_info:
            main(["merge-duplicates"])
        assert exc_info.value.code == 2

    def test_dry_run_needs_all(self):
        with pytest.raises(SystemExit) as exc_info:
            main(["merge-duplicates", "Alpha", "1999", "--dry-run"])
        assert exc_info.value.code == 2

    def test_year_must_be_a_number(self):
        with pytest.raises(SystemExit):
            main(["find-duplicates", "Alpha", "nineteen"])
