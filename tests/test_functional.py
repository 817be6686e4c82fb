import pytest

from wallet.functional import Left, Nothing, Right, Some, first_match, partition_results


def test_maybe_get_or_else():
    assert Some(5).get_or_else(0) == 5
    assert Some(5).is_some()

    assert Nothing().get_or_else(0) == 0
    assert not Nothing().is_some()
    assert Some(5) != Nothing()


def test_either_bind():
    def safe_divide(x: int):
        if x == 0:
            return Left("Division by zero")
        return Right(10 // x)

    assert Right(2).bind(safe_divide) == Right(5)

    result_error = Right(0).bind(safe_divide)
    assert result_error.is_left()
    assert result_error.get_error() == "Division by zero"

    assert Left("original error").bind(safe_divide) == Left("original error")


def test_right_has_no_error():
    with pytest.raises(ValueError):
        Right(1).get_error()


def test_first_match():
    assert first_match([1, 2, 3, 4], lambda x: x % 2 == 0) == Some(2)
    assert first_match([], lambda x: True) == Nothing()


def test_partition_results_keeps_order():
    values, errors = partition_results([Right(1), Left("a"), Right(2), Left("b")])

    assert values == [1, 2]
    assert errors == ["a", "b"]
