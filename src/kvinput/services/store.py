"""OrderedStore — owns every row, the sentinel row, and key-domain metadata.

The store is the only holder of mutable :class:`Row` records. Callers get
row ids and read-only views; the editor drives mutations through the
low-level primitives here and re-establishes invariants afterwards.

INVARIANT: While the key cap is not reached there is exactly one sentinel
row and it has the highest order. At the cap there is none.
"""

from __future__ import annotations

import itertools
import logging
from collections.abc import Iterator, Mapping
from fractions import Fraction
from typing import Any

from kvinput.domain.ordering import OrderIndex
from kvinput.domain.rows import Row, RowId, RowState
from kvinput.domain.values import NULL, JsonScalar, Value, coerce
from kvinput.domain.widgets import bound_domain

logger = logging.getLogger(__name__)


class OrderedStore:
    """Arena of rows addressed by stable ids, sequenced by fractional order."""

    def __init__(self, *, use_types: bool = True, allowed_keys: list[str] | None = None) -> None:
        self.use_types = use_types
        self.allowed_keys = allowed_keys
        self.domain: dict[str, list[Value]] = {}
        self._rows: dict[RowId, Row] = {}
        self._index = OrderIndex()
        self._ids = itertools.count()
        self._sentinel_id: RowId | None = None

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def __len__(self) -> int:
        """Number of non-sentinel rows."""
        return len(self._rows) - (1 if self._sentinel_id is not None else 0)

    def __contains__(self, row_id: object) -> bool:
        return row_id in self._rows

    def get(self, row_id: RowId) -> Row:
        """Return the row for *row_id*.

        Raises:
            KeyError: Unknown or removed row.
        """
        try:
            return self._rows[row_id]
        except KeyError:
            msg = f"No row with id {row_id}"
            raise KeyError(msg) from None

    def rows(self) -> Iterator[Row]:
        """All rows in order, sentinel included."""
        return (self._rows[row_id] for row_id in self._index)

    def entries(self) -> Iterator[Row]:
        """Non-sentinel rows in order."""
        return (row for row in self.rows() if not row.is_sentinel)

    @property
    def sentinel(self) -> Row | None:
        if self._sentinel_id is None:
            return None
        return self._rows[self._sentinel_id]

    def position(self, row_id: RowId) -> int:
        return self._index.position(row_id)

    def neighbors(self, row_id: RowId) -> tuple[Row | None, Row | None]:
        """Return the rows immediately before and after *row_id*."""
        prev_id = self._index.before(row_id)
        next_id = self._index.after(row_id)
        return (
            self._rows[prev_id] if prev_id is not None else None,
            self._rows[next_id] if next_id is not None else None,
        )

    def first(self) -> Row | None:
        row_id = self._index.first()
        return self._rows[row_id] if row_id is not None else None

    def last(self) -> Row | None:
        row_id = self._index.last()
        return self._rows[row_id] if row_id is not None else None

    def find(self, key: str) -> Row | None:
        """First non-sentinel row holding *key*."""
        return next((row for row in self.entries() if row.key == key), None)

    def at_capacity(self) -> bool:
        return bool(self.allowed_keys) and len(self) >= len(self.allowed_keys or ())

    def domain_for(self, row: Row) -> list[Value] | None:
        return bound_domain(row, self.domain, use_types=self.use_types)

    def snapshot(self) -> dict[str, JsonScalar]:
        """Key -> value mapping of all non-sentinel rows, in row order.

        A repeated key keeps its first position and the last row's value.
        """
        return {row.key: row.value.to_json() for row in self.entries()}

    # ------------------------------------------------------------------
    # Row primitives
    # ------------------------------------------------------------------

    def create_row(
        self,
        key: str,
        value: Value,
        *,
        order: Fraction | None = None,
        sentinel: bool = False,
    ) -> Row:
        """Add a row at *order* (default: appended after the last row)."""
        if order is None:
            order = self._index.next_append_order()
        row = Row(id=next(self._ids), order=order, key=key, value=value, is_sentinel=sentinel)
        self._index.add(row.id, order)
        self._rows[row.id] = row
        if sentinel:
            self._sentinel_id = row.id
        return row

    def detach(self, row_id: RowId) -> Row:
        """Remove a row from the arena; it ends in the ``removed`` state."""
        row = self.get(row_id)
        self._index.discard(row_id)
        del self._rows[row_id]
        if self._sentinel_id == row_id:
            self._sentinel_id = None
        row.transition(RowState.REMOVED)
        return row

    def promote(self, row: Row) -> None:
        """Turn the sentinel into a normal row."""
        row.is_sentinel = False
        if self._sentinel_id == row.id:
            self._sentinel_id = None

    def settle_sentinel(self) -> Row | None:
        """Restore the sentinel invariant; return a newly appended sentinel.

        Below the key cap a missing sentinel is appended. At the cap an
        empty sentinel is dropped so the rows cannot grow.
        """
        sentinel = self.sentinel
        if self.at_capacity():
            if sentinel is not None and sentinel.is_empty:
                self.detach(sentinel.id)
            return None
        if sentinel is None:
            return self.create_row("", NULL, sentinel=True)
        return None

    def normalize_orders(self) -> None:
        """Reassign consecutive integer orders, keeping the current sequence."""
        for row_id, order in self._index.normalize().items():
            self._rows[row_id].order = order
        logger.debug("Normalized orders of %d rows", len(self._rows))

    def rescan_duplicates(self) -> list[str]:
        """Flag every non-sentinel row whose key appears more than once."""
        counts: dict[str, int] = {}
        for row in self.entries():
            counts[row.key] = counts.get(row.key, 0) + 1
        for row in self.rows():
            row.duplicate = not row.is_sentinel and counts.get(row.key, 0) > 1
        return [key for key, count in counts.items() if count > 1]

    # ------------------------------------------------------------------
    # Bulk operations
    # ------------------------------------------------------------------

    def clear(self) -> None:
        """Drop every non-sentinel row and move the sentinel to order 0."""
        sentinel = self.sentinel
        for row_id in list(self._index):
            if row_id != self._sentinel_id:
                self.detach(row_id)
        if sentinel is not None:
            self._index.move(sentinel.id, Fraction(0))
            sentinel.order = Fraction(0)

    def replace_all(self, data: Any) -> bool:
        """Rebuild all rows from a mapping; reject anything else.

        Values are coerced when type inference is on. A list value declares
        the domain of its key (unless one is known) and leaves the row with
        an unselected choice.
        """
        if not isinstance(data, Mapping):
            logger.debug("replace_all rejected non-mapping %s", type(data).__name__)
            return False

        entries: list[tuple[str, Value]] = []
        for raw_key, raw_value in data.items():
            key = str(raw_key)
            if isinstance(raw_value, (list, tuple)):
                if not self.domain.get(key):
                    self.set_domain(key, list(raw_value))
                entries.append((key, Value.choice(key)))
            else:
                entries.append((key, coerce(raw_value, infer=self.use_types)))

        self.clear()
        stale = self._sentinel_id
        for key, value in entries:
            row = self.create_row(key, value)
            row.transition(RowState.COMMITTED)
        if stale is not None:
            self.detach(stale)
        self.settle_sentinel()
        self.rescan_duplicates()
        return True

    # ------------------------------------------------------------------
    # Metadata
    # ------------------------------------------------------------------

    def set_domain(self, key: str, values: Any) -> bool:
        """Record the fixed value set for *key*; an empty list releases it."""
        if not isinstance(values, (list, tuple)):
            logger.debug("set_domain rejected non-list for %r", key)
            return False
        if not values:
            self.domain.pop(key, None)
            return True
        self.domain[key] = [coerce(item, infer=self.use_types) for item in values]
        return True

    def set_allowed_keys(self, keys: list[str] | None) -> None:
        """Replace the key cap; None or empty lifts it."""
        self.allowed_keys = list(keys) if keys else None
        self.settle_sentinel()

    def domain_snapshot(self) -> dict[str, list[JsonScalar]]:
        return {key: [value.to_json() for value in values] for key, values in self.domain.items()}
