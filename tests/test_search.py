import pytest

from livechat.search import binary_search, left_bound, left_bound2, right_bound

DUPES = [1, 4, 4, 4, 7, 9, 10]


def test_binary_search_finds_target():
    assert binary_search([1, 4, 7, 9, 10], 9) == 3


def test_left_bound_first_duplicate():
    assert left_bound(DUPES, 4) == 1


def test_left_bound2_first_duplicate():
    assert left_bound2(DUPES, 4) == 1


def test_right_bound_last_duplicate():
    assert right_bound(DUPES, 4) == 3


@pytest.mark.parametrize("func", [binary_search, left_bound, left_bound2, right_bound])
def test_missing_target(func):
    assert func(DUPES, 5) == -1
    assert func(DUPES, 100) == -1
    assert func(DUPES, 0) == -1


@pytest.mark.parametrize("func", [binary_search, left_bound, left_bound2, right_bound])
def test_empty_sequence(func):
    assert func([], 3) == -1


@pytest.mark.parametrize("func", [binary_search, left_bound, left_bound2, right_bound])
def test_result_points_at_target(func):
    for target in DUPES:
        index = func(DUPES, target)
        assert DUPES[index] == target


def test_bounds_enclose_all_duplicates():
    first = left_bound(DUPES, 4)
    last = right_bound(DUPES, 4)
    assert last - first + 1 == DUPES.count(4)