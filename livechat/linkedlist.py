"""Singly linked list nodes and reversal operations."""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from dataclasses import dataclass
from typing import Optional

__all__ = [
    "ListNode",
    "from_values",
    "reverse_list",
    "reverse_list_n",
    "reverse_between",
    "reverse_range",
    "reverse_k_group",
]


@dataclass(eq=False)
class ListNode:
    """A node in a singly linked list."""

    val: int
    next: Optional[ListNode] = None

    def __iter__(self) -> Iterator[int]:
        node: Optional[ListNode] = self
        while node is not None:
            yield node.val
            node = node.next

    def to_list(self) -> list[int]:
        """Return the values from this node to the end of the list."""
        return list(self)


def from_values(values: Iterable[int]) -> Optional[ListNode]:
    """Build a linked list holding ``values`` in order."""
    head: Optional[ListNode] = None
    for value in reversed(list(values)):
        head = ListNode(value, head)
    return head


def reverse_list(head: Optional[ListNode]) -> Optional[ListNode]:
    """Reverse the whole list and return its new head."""
    return reverse_range(head, None) if head is not None else None


def reverse_list_n(head: ListNode, n: int) -> ListNode:
    """Reverse the first ``n`` nodes, keeping the rest attached."""
    if n < 1:
        raise ValueError("n must be at least 1")
    prev: Optional[ListNode] = None
    cur: Optional[ListNode] = head
    for _ in range(n):
        if cur is None:
            raise ValueError("n exceeds the length of the list")
        cur.next, prev, cur = prev, cur, cur.next
    head.next = cur
    assert prev is not None
    return prev


def reverse_between(head: ListNode, m: int, n: int) -> ListNode:
    """Reverse the nodes at 1-based positions ``m`` through ``n``."""
    if m < 1 or n < m:
        raise ValueError("positions must satisfy 1 <= m <= n")
    if m == 1:
        return reverse_list_n(head, n)
    before = head
    for _ in range(m - 2):
        if before.next is None:
            raise ValueError("m exceeds the length of the list")
        before = before.next
    if before.next is None:
        raise ValueError("m exceeds the length of the list")
    before.next = reverse_list_n(before.next, n - m + 1)
    return head


def reverse_range(a: Optional[ListNode], b: Optional[ListNode]) -> Optional[ListNode]:
    """Reverse the half-open run ``[a, b)`` and return its new head."""
    prev: Optional[ListNode] = None
    cur = a
    while cur is not b:
        assert cur is not None
        cur.next, prev, cur = prev, cur, cur.next
    return prev


def reverse_k_group(head: Optional[ListNode], k: int) -> Optional[ListNode]:
    """Reverse every full group of ``k`` nodes; a short tail stays as is."""
    if k < 1:
        raise ValueError("k must be at least 1")
    dummy = ListNode(0, head)
    prev_tail = dummy
    start = head
    while True:
        end = start
        for _ in range(k):
            if end is None:
                prev_tail.next = start
                return dummy.next
            end = end.next
        assert start is not None
        prev_tail.next = reverse_range(start, end)
        prev_tail = start
        start = end