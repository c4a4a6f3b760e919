"""Helpers for deterministic ordering."""

from __future__ import annotations

from typing import Callable, Iterable, TypeVar

T = TypeVar("T")


def stable_sorted(items: Iterable[T], key: Callable[[T], object]) -> list[T]:
    # sorted() is guaranteed stable: equal keys keep their input order.
    return sorted(items, key=key)
