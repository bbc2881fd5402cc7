import pytest

from livechat.linkedlist import (
    ListNode,
    from_values,
    reverse_between,
    reverse_k_group,
    reverse_list,
    reverse_list_n,
    reverse_range,
)

VALUES = [1, 2, 3, 4, 5]


def test_round_trip():
    assert from_values(VALUES).to_list() == VALUES


def test_from_empty_is_none():
    assert from_values([]) is None


def test_iteration_matches_to_list():
    head = from_values(VALUES)
    assert list(head) == head.to_list()


@pytest.mark.parametrize("values", [[7], [1, 2], VALUES])
def test_reverse_list(values):
    assert reverse_list(from_values(values)).to_list() == list(reversed(values))


def test_reverse_list_none():
    assert reverse_list(None) is None


def test_reverse_list_n_prefix():
    assert reverse_list_n(from_values(VALUES), 2).to_list() == [2, 1, 3, 4, 5]


def test_reverse_list_n_whole():
    result = reverse_list_n(from_values(VALUES), len(VALUES))
    assert result.to_list() == list(reversed(VALUES))


def test_reverse_list_n_one_is_identity():
    assert reverse_list_n(from_values(VALUES), 1).to_list() == VALUES


@pytest.mark.parametrize("n", [0, len(VALUES) + 1])
def test_reverse_list_n_bad_length(n):
    with pytest.raises(ValueError):
        reverse_list_n(from_values(VALUES), n)


def test_reverse_between_middle():
    assert reverse_between(from_values(VALUES), 2, 4).to_list() == [1, 4, 3, 2, 5]


def test_reverse_between_whole_equals_reverse():
    result = reverse_between(from_values(VALUES), 1, len(VALUES))
    assert result.to_list() == list(reversed(VALUES))


def test_reverse_between_invalid():
    with pytest.raises(ValueError):
        reverse_between(from_values(VALUES), 3, 2)


def test_reverse_range_prefix_detaches():
    head = from_values(VALUES)
    stop = head.next.next
    result = reverse_range(head, stop)
    assert result.to_list() == [2, 1]
    assert head.next is None


def test_reverse_range_whole():
    assert reverse_range(from_values(VALUES), None).to_list() == list(reversed(VALUES))


def test_reverse_k_group_one_is_identity():
    assert reverse_k_group(from_values(VALUES), 1).to_list() == VALUES


def test_reverse_k_group_full_length_reverses():
    result = reverse_k_group(from_values(VALUES), len(VALUES))
    assert result.to_list() == list(reversed(VALUES))


def test_reverse_k_group_too_large_unchanged():
    assert reverse_k_group(from_values(VALUES), len(VALUES) + 1).to_list() == VALUES


def test_reverse_k_group_keeps_values_and_tail():
    values = list(range(1, 8))
    result = reverse_k_group(from_values(values), 2).to_list()
    assert sorted(result) == values
    assert result[-1] == values[-1]
    assert result[0] == values[1]


def test_reverse_k_group_empty_and_invalid():
    assert reverse_k_group(None, 3) is None
    with pytest.raises(ValueError):
        reverse_k_group(ListNode(1), 0)