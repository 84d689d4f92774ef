"""Dense total ordering for step positions within an observation sequence."""

# purpose: allocate step positions that admit unbounded insertion without renumbering
# status: active

from __future__ import annotations

import functools
import math
from fractions import Fraction
from typing import Union

PositionLike = Union[int, Fraction, str]


@functools.total_ordering
class Location:
    """Ordering key for a step position.

    Concrete forms are the :data:`BEGINNING` and :data:`END` sentinels and
    :class:`Middle`, the only form that may be assigned to a step.
    """

    __slots__ = ()

    _rank = 0

    def _sort_key(self) -> tuple[int, Fraction]:
        return (self._rank, Fraction(0))

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Location):
            return NotImplemented
        return self._sort_key() == other._sort_key()

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, Location):
            return NotImplemented
        return self._sort_key() < other._sort_key()

    def __hash__(self) -> int:
        return hash(self._sort_key())

    @staticmethod
    def parse(text: str) -> "Middle":
        """Decode the canonical text form produced by ``str(Middle)``."""

        return middle(text)


class _Beginning(Location):
    __slots__ = ()
    _rank = 0

    def __repr__(self) -> str:
        return "Location.Beginning"

    def __str__(self) -> str:
        return "beginning"


class _End(Location):
    __slots__ = ()
    _rank = 2

    def __repr__(self) -> str:
        return "Location.End"

    def __str__(self) -> str:
        return "end"


class Middle(Location):
    """Assignable location wrapping a positive rational position."""

    __slots__ = ("position",)
    _rank = 1

    def __init__(self, position: Fraction) -> None:
        if position <= 0:
            raise ValueError(f"location position must be positive, got {position}")
        object.__setattr__(self, "position", position)

    def __setattr__(self, name, value):
        raise AttributeError("Location is immutable")

    def _sort_key(self) -> tuple[int, Fraction]:
        return (self._rank, self.position)

    def __repr__(self) -> str:
        return f"Location.Middle({self})"

    def __str__(self) -> str:
        return str(self.position)


BEGINNING: Location = _Beginning()
END: Location = _End()


def middle(n: PositionLike) -> Middle:
    """Construct an assignable location.

    Raises ``TypeError`` for values that are not integers, fractions or their
    canonical text, and ``ValueError`` for non-positive or malformed values.
    """

    if isinstance(n, bool) or not isinstance(n, (int, Fraction, str)):
        raise TypeError(f"unsupported location position type: {type(n).__name__}")
    if isinstance(n, str):
        try:
            n = Fraction(n.strip())
        except (ValueError, ZeroDivisionError) as exc:
            raise ValueError(f"invalid location position {n!r}") from exc
    return Middle(Fraction(n))


def compare(a: Location, b: Location) -> int:
    """Three-way comparison: negative, zero or positive as ``a`` sorts before, with or after ``b``."""

    if a < b:
        return -1
    if b < a:
        return 1
    return 0


def _lower_bound(loc: Location) -> Fraction:
    return loc.position if isinstance(loc, Middle) else Fraction(0)


def find(count: int, before: Location, after: Location) -> list[Middle]:
    """Return ``count`` strictly increasing locations strictly inside ``(before, after)``.

    Integer positions are used while the gap holds enough of them, spread
    evenly so later insertions keep room on both sides. Once the integers run
    out the positions become rationals. Keys outside the gap are never
    touched, so existing steps keep their locations.
    """

    if count < 0:
        raise ValueError(f"cannot allocate a negative number of locations ({count})")
    if not before < after:
        raise ValueError(f"empty location range: {before!r} is not before {after!r}")
    if count == 0:
        return []

    lo = _lower_bound(before)
    if not isinstance(after, Middle):
        start = math.floor(lo)
        return [Middle(Fraction(start + i)) for i in range(1, count + 1)]

    hi = after.position
    first = math.floor(lo) + 1
    last = math.ceil(hi) - 1
    available = last - first + 1
    if available >= count:
        # floor(i * r) with r >= 1 is strictly increasing and lands in [1, available]
        return [
            Middle(Fraction(first - 1 + (i * (available + 1)) // (count + 1)))
            for i in range(1, count + 1)
        ]

    width = hi - lo
    return [Middle(lo + width * Fraction(i, count + 1)) for i in range(1, count + 1)]
