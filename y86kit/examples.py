"""Reference versions of the small list and block routines used as exercises."""

from __future__ import annotations

from collections.abc import MutableSequence, Sequence
from dataclasses import dataclass


def _s32(value: int) -> int:
    value &= 0xFFFFFFFF
    return value - (1 << 32) if value & 0x80000000 else value


@dataclass
class ListNode:
    """An element of a singly linked list of integers."""

    val: int
    next: ListNode | None = None


def sum_list(ls: ListNode | None) -> int:
    """Sum the elements of a linked list with 32-bit wraparound."""
    total = 0
    while ls is not None:
        total = _s32(total + ls.val)
        ls = ls.next
    return total


def rsum_list(ls: ListNode | None) -> int:
    """Recursive version of sum_list."""
    if ls is None:
        return 0
    return _s32(ls.val + rsum_list(ls.next))


def copy_block(src: Sequence[int], dest: MutableSequence[int], length: int) -> int:
    """Copy ``length`` words of ``src`` into ``dest``; return their xor checksum."""
    result = 0
    for i in range(max(length, 0)):
        val = src[i]
        dest[i] = val
        result ^= val
    return _s32(result)