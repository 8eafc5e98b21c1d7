"""Tests for rating input validation"""
from decimal import Decimal

import pytest

from movie_ratings.core.errors import InvalidInputError
from movie_ratings.validators.rating_validators import (
    validate_positive_id,
    validate_rating_value,
)


class TestValidateRatingValue:

    @pytest.mark.parametrize("value", [0.5, 1, 2.5, 4.5, 5.0, Decimal("3.5")])
    def test_valid_values(self, value):
        assert validate_rating_value(value) == float(value)

    @pytest.mark.parametrize("value", [0, 0.0, 5.5, -1.0, 10])
    def test_out_of_range(self, value):
        with pytest.raises(InvalidInputError) as exc_info:
            validate_rating_value(value)
        assert exc_info.value.status_code == 400
        assert "between" in exc_info.value.message

    @pytest.mark.parametrize("value", [0.75, 3.3, 4.25])
    def test_off_step(self, value):
        with pytest.raises(InvalidInputError) as exc_info:
            validate_rating_value(value)
        assert "increments" in exc_info.value.message

    @pytest.mark.parametrize("value", [
        None, "4.0", True, float("nan"), float("inf"),
        Decimal("NaN"), Decimal("sNaN"), Decimal("Infinity"), Decimal("-Infinity"),
    ])
    def test_not_a_number(self, value):
        with pytest.raises(InvalidInputError) as exc_info:
            validate_rating_value(value)
        assert exc_info.value.message == "Valid rating is required"


class TestValidatePositiveId:

    def test_valid_id(self):
        assert validate_positive_id(9, "userId") == 9
        assert validate_positive_id(9.0, "userId") == 9

    @pytest.mark.parametrize("value", [0, -3])
    def test_not_positive(self, value):
        with pytest.raises(InvalidInputError) as exc_info:
            validate_positive_id(value, "userId")
        assert exc_info.value.details == {"field": "userId"}

    @pytest.mark.parametrize("value", [None, "7", False, 1.5])
    def test_not_an_integer(self, value):
        with pytest.raises(InvalidInputError):
            validate_positive_id(value, "movieId")
