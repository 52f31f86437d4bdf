"""Temporary identifiers for optimistically created entities."""

from __future__ import annotations

import itertools
import time
from typing import Any, Callable

TEMP_ID_PREFIX = "tmp-"


class TemporaryIdFactory:
    """Issue local ids of the form ``tmp-<millis>-<n>``.

    The counter keeps two ids minted in the same millisecond distinct.
    """

    def __init__(self, clock: Callable[[], float] = time.time) -> None:
        self._clock = clock
        self._counter = itertools.count(1)

    def new(self) -> str:
        millis = int(self._clock() * 1000)
        return f"{TEMP_ID_PREFIX}{millis}-{next(self._counter)}"

    @staticmethod
    def is_temporary(value: Any) -> bool:
        return isinstance(value, str) and value.startswith(TEMP_ID_PREFIX)


__all__ = ["TEMP_ID_PREFIX", "TemporaryIdFactory"]
