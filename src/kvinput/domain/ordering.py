"""Fractional order keys for rows.

Rows are sequenced by a rational ``order``. Appends take the next integer
above the current maximum; inserts between two rows take a small fixed
step above the left neighbour, so no other row is renumbered.

INVARIANT: orders are unique and only reassigned by :meth:`OrderIndex.normalize`.
"""

from __future__ import annotations

import math
from bisect import bisect_left, insort
from collections.abc import Iterator
from fractions import Fraction

INSERT_STEP = Fraction(1, 100_000)


class OrderExhaustedError(Exception):
    """No room left for a fractional step between two neighbouring orders."""

    def __init__(self, low: Fraction, high: Fraction) -> None:
        super().__init__(f"No order between {low} and {high}")
        self.low = low
        self.high = high


def order_between(
    low: Fraction,
    high: Fraction | None,
    *,
    step: Fraction = INSERT_STEP,
) -> Fraction:
    """Return an order sorting immediately after *low* and before *high*.

    Raises:
        OrderExhaustedError: The gap ``high - low`` is not wider than *step*.
    """
    if high is not None and high - low <= step:
        raise OrderExhaustedError(low, high)
    return low + step


class OrderIndex:
    """Sorted ``(order, row_id)`` pairs with reverse lookup by row id."""

    def __init__(self) -> None:
        self._pairs: list[tuple[Fraction, int]] = []
        self._orders: dict[int, Fraction] = {}

    def __len__(self) -> int:
        return len(self._pairs)

    def __iter__(self) -> Iterator[int]:
        return (row_id for _, row_id in self._pairs)

    def __contains__(self, row_id: object) -> bool:
        return row_id in self._orders

    def add(self, row_id: int, order: Fraction) -> None:
        if row_id in self._orders:
            msg = f"Row {row_id} is already indexed"
            raise ValueError(msg)
        pos = bisect_left(self._pairs, (order, -1))
        if pos < len(self._pairs) and self._pairs[pos][0] == order:
            msg = f"Order {order} is already taken"
            raise ValueError(msg)
        insort(self._pairs, (order, row_id))
        self._orders[row_id] = order

    def discard(self, row_id: int) -> None:
        order = self._orders.pop(row_id, None)
        if order is None:
            return
        self._pairs.pop(self._position(order, row_id))

    def move(self, row_id: int, order: Fraction) -> None:
        self.discard(row_id)
        self.add(row_id, order)

    def order_of(self, row_id: int) -> Fraction:
        return self._orders[row_id]

    def position(self, row_id: int) -> int:
        return self._position(self._orders[row_id], row_id)

    def first(self) -> int | None:
        return self._pairs[0][1] if self._pairs else None

    def last(self) -> int | None:
        return self._pairs[-1][1] if self._pairs else None

    def max_order(self) -> Fraction | None:
        return self._pairs[-1][0] if self._pairs else None

    def before(self, row_id: int) -> int | None:
        pos = self.position(row_id)
        return self._pairs[pos - 1][1] if pos > 0 else None

    def after(self, row_id: int) -> int | None:
        pos = self.position(row_id)
        return self._pairs[pos + 1][1] if pos + 1 < len(self._pairs) else None

    def next_append_order(self) -> Fraction:
        """Smallest integer strictly above the current maximum (0 when empty)."""
        top = self.max_order()
        if top is None:
            return Fraction(0)
        return Fraction(math.floor(top) + 1)

    def normalize(self, start: int = 0) -> dict[int, Fraction]:
        """Reassign consecutive integer orders, keeping the current sequence.

        Returns the new ``row_id -> order`` mapping.
        """
        renumbered = [(Fraction(start + i), row_id) for i, (_, row_id) in enumerate(self._pairs)]
        self._pairs = renumbered
        self._orders = {row_id: order for order, row_id in renumbered}
        return dict(self._orders)

    def clear(self) -> None:
        self._pairs.clear()
        self._orders.clear()

    def _position(self, order: Fraction, row_id: int) -> int:
        return bisect_left(self._pairs, (order, row_id))
