"""Binary search helpers over sorted integer sequences."""

from collections.abc import Sequence

__all__ = ["binary_search", "left_bound", "left_bound2", "right_bound"]


def binary_search(nums: Sequence[int], target: int) -> int:
    """Return an index of ``target`` in ``nums``, or -1 when absent."""
    left, right = 0, len(nums) - 1
    while left <= right:
        mid = left + (right - left) // 2
        if nums[mid] == target:
            return mid
        if nums[mid] < target:
            left = mid + 1
        else:
            right = mid - 1
    return -1


def left_bound(nums: Sequence[int], target: int) -> int:
    """Return the first index of ``target`` using a half-open interval, or -1."""
    if not nums:
        return -1
    left, right = 0, len(nums)
    while left < right:
        mid = left + (right - left) // 2
        if nums[mid] < target:
            left = mid + 1
        else:
            right = mid
    if left == len(nums) or nums[left] != target:
        return -1
    return left


def left_bound2(nums: Sequence[int], target: int) -> int:
    """Return the first index of ``target`` using a closed interval, or -1."""
    left, right = 0, len(nums) - 1
    while left <= right:
        mid = left + (right - left) // 2
        if nums[mid] < target:
            left = mid + 1
        else:
            right = mid - 1
    if left >= len(nums) or nums[left] != target:
        return -1
    return left


def right_bound(nums: Sequence[int], target: int) -> int:
    """Return the last index of ``target``, or -1."""
    left, right = 0, len(nums) - 1
    while left <= right:
        mid = left + (right - left) // 2
        if nums[mid] <= target:
            left = mid + 1
        else:
            right = mid - 1
    if right < 0 or nums[right] != target:
        return -1
    return right