from __future__ import annotations

import time
from typing import Callable, Iterator, List, Sequence, TypeVar

T = TypeVar("T")


def chunked(items: Sequence[T], size: int) -> Iterator[List[T]]:
    size = max(1, int(size))
    for start in range(0, len(items), size):
        yield list(items[start:start + size])


def paced_chunks(
    items: Sequence[T],
    size: int,
    delay_seconds: float,
    sleep: Callable[[float], None] = time.sleep,
) -> Iterator[List[T]]:
    """Chunks with a pause between them (not after the last one)."""
    for index, chunk in enumerate(chunked(items, size)):
        if index and delay_seconds > 0:
            sleep(delay_seconds)
        yield chunk
