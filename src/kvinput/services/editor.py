"""KVEditor — the mutation protocol and public surface of the editing model.

Raw edits from a rendering layer enter through :meth:`KVEditor.update`,
:meth:`~KVEditor.insert_after`, :meth:`~KVEditor.remove` and
:meth:`~KVEditor.duplicate`. After each edit the editor re-establishes the
row invariants (sentinel growth, empty-row collapse, duplicate flags) and
asks the :class:`CommitScheduler` to notify listeners with a snapshot.

Bad input never raises: it is logged at debug and leaves state unchanged.
Mutating the editor from inside one of its own listeners raises
:class:`ReentrantEditError`.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from fractions import Fraction
from typing import TYPE_CHECKING, Any

from kvinput.domain.ordering import OrderExhaustedError, order_between
from kvinput.domain.rows import Row, RowField, RowId, RowState, RowView
from kvinput.domain.values import JsonScalar, Value, ValueKind, coerce, from_raw, from_typed, to_typed
from kvinput.domain.widgets import WidgetDescriptor, describe_key, describe_value, resolve_choice
from kvinput.services._helpers import parse_debounce, parse_json_object, parse_keys
from kvinput.services.scheduler import DEFAULT_WINDOW_MS, CommitScheduler, TimerLoop
from kvinput.services.store import OrderedStore

if TYPE_CHECKING:
    from kvinput.plugins.event_bus import EventBus

logger = logging.getLogger(__name__)

ChangeListener = Callable[[dict[str, JsonScalar]], None]

TITLE_ATTRIBUTES = ("title", "key-title", "value-title")


class ReentrantEditError(RuntimeError):
    """The editor was mutated from inside one of its own change listeners."""


@dataclass(frozen=True)
class EditOutcome:
    """What an :meth:`KVEditor.update` call did.

    Attributes:
        row_id: The edited row.
        changed: False for rejected or idempotent edits.
        removed: The row collapsed because both fields became empty.
        focus: Row a renderer should focus next (after a removal).
        spawned: Id of a freshly appended sentinel row, if any.
    """

    row_id: RowId
    changed: bool
    removed: bool = False
    focus: RowId | None = None
    spawned: RowId | None = None


class KVEditor:
    """Ordered key/value model with a trailing insertion row.

    Parameters:
        data: Initial mapping; anything else starts empty.
        debounce_ms: Commit debounce window; 0 notifies synchronously.
        use_types: Infer value types from text and bind choice domains.
        meta: Per-key value domains (``{"Color": ["red", "green"]}``).
        keys: Allowed keys, capping the number of rows.
        loop: Timer loop for debounced commits (default: running asyncio loop).
        event_bus: Optional plugin bus receiving editor events.
    """

    def __init__(
        self,
        data: Any = None,
        *,
        debounce_ms: int = DEFAULT_WINDOW_MS,
        use_types: bool = True,
        meta: Mapping[str, Any] | None = None,
        keys: Any = None,
        loop: TimerLoop | None = None,
        event_bus: EventBus | None = None,
    ) -> None:
        self._store = OrderedStore(use_types=use_types, allowed_keys=parse_keys(keys))
        self._scheduler = CommitScheduler(parse_debounce(debounce_ms), loop=loop)
        self._bus = event_bus
        self._listeners: list[ChangeListener] = []
        self._notifying = False
        self.on_change: ChangeListener | None = None
        self.titles: dict[str, str] = dict.fromkeys(TITLE_ATTRIBUTES, "")
        self.warnings: list[str] = []
        self.commits = 0

        if isinstance(meta, Mapping):
            for key, values in meta.items():
                self._store.set_domain(str(key), values)
        self._store.replace_all(data if isinstance(data, Mapping) else {})

    # ------------------------------------------------------------------
    # Data surface
    # ------------------------------------------------------------------

    @property
    def kv(self) -> dict[str, JsonScalar]:
        return self.snapshot()

    @kv.setter
    def kv(self, data: Any) -> None:
        self.replace_all(data)

    @property
    def meta(self) -> dict[str, list[JsonScalar]]:
        return self._store.domain_snapshot()

    @meta.setter
    def meta(self, meta: Any) -> None:
        """Merge per-key domains; None clears them. Rebuilds the rows."""
        self._guard()
        if meta is None:
            self._store.domain.clear()
        elif isinstance(meta, Mapping):
            for key, values in meta.items():
                self._store.set_domain(str(key), values)
        else:
            logger.debug("meta rejected non-mapping %s", type(meta).__name__)
            return
        self._rebuild()

    @property
    def keys(self) -> list[str] | None:
        allowed = self._store.allowed_keys
        return list(allowed) if allowed is not None else None

    @keys.setter
    def keys(self, keys: Any) -> None:
        """Set the allowed keys from a list or a JSON/comma string. Rebuilds."""
        self._guard()
        self._store.allowed_keys = parse_keys(keys)
        self._rebuild()

    @property
    def use_types(self) -> bool:
        return self._store.use_types

    @use_types.setter
    def use_types(self, enabled: bool) -> None:
        self._guard()
        self._store.use_types = bool(enabled)
        for key, values in self._store.domain_snapshot().items():
            self._store.set_domain(key, values)
        self._rebuild()

    @property
    def debounce_ms(self) -> int:
        return self._scheduler.window_ms

    @debounce_ms.setter
    def debounce_ms(self, window: Any) -> None:
        self._scheduler.window_ms = parse_debounce(window)

    def snapshot(self) -> dict[str, JsonScalar]:
        """Independent copy of the current key -> value mapping, in row order."""
        return self._store.snapshot()

    def set_attribute(self, name: str, raw: str | None) -> None:
        """Apply one textual configuration attribute.

        ``debounce``, ``use-types``, ``meta`` and ``keys`` configure the
        model; the title attributes are presentation only. Unknown names
        are ignored.
        """
        if name == "debounce":
            self.debounce_ms = raw
        elif name == "use-types":
            self.use_types = bool(to_typed(raw).to_json())
        elif name == "meta":
            self.meta = parse_json_object(raw)
        elif name == "keys":
            self.keys = raw
        elif name in TITLE_ATTRIBUTES:
            self.titles[name] = raw or ""
        else:
            logger.debug("Ignoring unknown attribute %r", name)

    # ------------------------------------------------------------------
    # Row queries
    # ------------------------------------------------------------------

    def __len__(self) -> int:
        return len(self._store)

    def rows(self) -> list[RowView]:
        """All rows in order, sentinel included."""
        return [row.view(pos) for pos, row in enumerate(self._store.rows())]

    def row(self, row_id: RowId) -> RowView:
        return self._store.get(row_id).view(self._store.position(row_id))

    @property
    def sentinel(self) -> RowId | None:
        sentinel = self._store.sentinel
        return sentinel.id if sentinel is not None else None

    def first(self) -> RowId | None:
        row = self._store.first()
        return row.id if row is not None else None

    def last(self) -> RowId | None:
        row = self._store.last()
        return row.id if row is not None else None

    def neighbors(self, row_id: RowId) -> tuple[RowId | None, RowId | None]:
        prev, nxt = self._store.neighbors(row_id)
        return (prev.id if prev else None, nxt.id if nxt else None)

    def find(self, key: str) -> RowId | None:
        row = self._store.find(key)
        return row.id if row is not None else None

    def duplicates(self) -> list[str]:
        """Keys held by more than one row."""
        return self._store.rescan_duplicates()

    def is_duplicate(self, row_id: RowId) -> bool:
        return self._store.get(row_id).duplicate

    def is_choice_bound(self, row_id: RowId) -> bool:
        return self._store.domain_for(self._store.get(row_id)) is not None

    def descriptors(self, row_id: RowId) -> tuple[WidgetDescriptor, WidgetDescriptor]:
        """Key and value field descriptors for one row."""
        row = self._store.get(row_id)
        return (
            describe_key(row, self._store.allowed_keys),
            describe_value(row, self._store.domain, use_types=self._store.use_types),
        )

    # ------------------------------------------------------------------
    # Mutation protocol
    # ------------------------------------------------------------------

    def update(self, row_id: RowId, field: RowField | str, raw: Any) -> EditOutcome:
        """Store a raw field edit and re-establish the row invariants.

        Raises:
            KeyError: Unknown row id.
            ValueError: Unknown field name.
        """
        self._guard()
        row = self._store.get(row_id)
        target = RowField(field)

        content = self._content_for(row, target, raw)
        if content is None:
            return EditOutcome(row_id=row_id, changed=False)
        current = row.key if target is RowField.KEY else row.value
        if content == current:
            return EditOutcome(row_id=row_id, changed=False)
        # Any empty value in the sentinel is the same empty row to observers.
        if row.is_sentinel and isinstance(content, Value) and isinstance(current, Value):
            if content.is_empty and current.is_empty:
                return EditOutcome(row_id=row_id, changed=False)

        row.transition(RowState.EDITING)
        if target is RowField.KEY:
            assert isinstance(content, str)
            row.key = content
            row.free_text = False
        else:
            assert isinstance(content, Value)
            row.value = content

        spawned: Row | None = None
        focus: RowId | None = None
        removed = False
        if row.is_sentinel:
            if not row.is_empty:
                self._store.promote(row)
                spawned = self._store.settle_sentinel()
        elif row.is_empty:
            focus = self._detach(row)
            removed = True

        if not removed:
            row.transition(RowState.COMMITTED)
        self._store.rescan_duplicates()
        self._schedule_commit()
        return EditOutcome(
            row_id=row_id,
            changed=True,
            removed=removed,
            focus=focus,
            spawned=spawned.id if spawned is not None else None,
        )

    def insert_after(self, row_id: RowId, key: str = "", value: Any = None) -> RowId | None:
        """Insert a row right after *row_id* without renumbering others.

        Inserting after the sentinel places the row just before it. Returns
        the new row id, or None when the key cap is reached or the row
        would be empty.
        """
        self._guard()
        anchor = self._store.get(row_id)
        if self._store.at_capacity():
            logger.debug("insert_after rejected: key cap reached")
            return None
        key_text = _key_text(key)
        if not self._key_allowed(key_text):
            return None
        content = coerce(value, infer=self._store.use_types)
        if key_text == "" and content.is_empty:
            logger.debug("insert_after rejected: empty row")
            return None

        row = self._store.create_row(key_text, content, order=self._order_after(anchor))
        row.transition(RowState.COMMITTED)
        self._store.settle_sentinel()
        self._store.rescan_duplicates()
        self._schedule_commit()
        return row.id

    def duplicate(self, row_id: RowId) -> RowId | None:
        """Copy a row directly below itself; returns the copy's id."""
        row = self._store.get(row_id)
        return self.insert_after(row_id, row.key, row.value)

    def remove(self, row_id: RowId) -> RowId | None:
        """Remove a row. The sentinel cannot be removed.

        Returns the row to focus next: the following row, else the
        previous one, else the sentinel.
        """
        self._guard()
        row = self._store.get(row_id)
        if row.is_sentinel:
            return None
        focus = self._detach(row)
        self._store.rescan_duplicates()
        self._schedule_commit()
        return focus

    def clear(self) -> None:
        """Remove every non-sentinel row."""
        self._guard()
        self._store.clear()
        self._store.settle_sentinel()
        self._store.rescan_duplicates()
        self._schedule_commit()

    def replace_all(self, data: Any) -> bool:
        """Rebuild the rows from a mapping; non-mappings are ignored."""
        self._guard()
        if not self._store.replace_all(data):
            return False
        self._emit("post_replace", {"size": len(self._store)})
        self._schedule_commit()
        return True

    def set_domain(self, key: str, values: Any) -> bool:
        """Record the value domain for *key*; rows with that key become choices."""
        self._guard()
        return self._store.set_domain(key, values)

    def set_allowed_keys(self, keys: list[str] | None) -> None:
        """Replace the key cap without rebuilding; None or [] lifts it."""
        self._guard()
        self._store.set_allowed_keys(keys)

    def unwrap(self, row_id: RowId) -> bool:
        """Force a choice or checkbox value back to free text for this row.

        Lasts until the row's key changes. Returns whether anything changed.
        """
        row = self._store.get(row_id)
        if row.free_text:
            return False
        is_checkbox = self._store.use_types and row.value.kind is ValueKind.BOOL
        if not is_checkbox and self._store.domain_for(row) is None:
            return False
        row.free_text = True
        return True

    # ------------------------------------------------------------------
    # Notification
    # ------------------------------------------------------------------

    def subscribe(self, listener: ChangeListener) -> Callable[[], None]:
        """Register a change listener; returns a function that removes it."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    @property
    def pending(self) -> bool:
        """Whether a debounced commit is waiting."""
        return self._scheduler.pending

    def flush(self) -> bool:
        """Deliver a pending commit immediately."""
        return self._scheduler.flush()

    def cancel(self) -> None:
        """Drop a pending commit without notifying."""
        self._scheduler.cancel()

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _guard(self) -> None:
        if self._notifying:
            msg = "KVEditor cannot be mutated from inside a change listener"
            raise ReentrantEditError(msg)

    def _content_for(self, row: Row, field: RowField, raw: Any) -> str | Value | None:
        """Convert a raw edit to row content, or None to reject it."""
        if field is RowField.KEY:
            text = _key_text(raw)
            return text if self._key_allowed(text) else None

        options = self._store.domain_for(row)
        if options is None:
            return coerce(raw, infer=self._store.use_types)
        choice = resolve_choice(raw, options)
        if choice is None:
            logger.debug("Rejected %r: not in the domain of %r", raw, row.key)
        return choice

    def _key_allowed(self, key: str) -> bool:
        allowed = self._store.allowed_keys
        if allowed and key and key not in allowed:
            logger.debug("Rejected key %r: not in allowed keys", key)
            return False
        return True

    def _order_after(self, anchor: Row) -> Fraction:
        try:
            return order_between(*self._order_bounds(anchor))
        except OrderExhaustedError as exc:
            logger.debug("Order space exhausted (%s); normalizing", exc)
            self._store.normalize_orders()
            return order_between(*self._order_bounds(anchor))

    def _order_bounds(self, anchor: Row) -> tuple[Fraction, Fraction | None]:
        prev, nxt = self._store.neighbors(anchor.id)
        if anchor.is_sentinel:
            low = prev.order if prev is not None else anchor.order - 1
            return low, anchor.order
        return anchor.order, nxt.order if nxt is not None else None

    def _detach(self, row: Row) -> RowId | None:
        prev, nxt = self._store.neighbors(row.id)
        self._store.detach(row.id)
        spawned = self._store.settle_sentinel()
        self._emit("post_remove", {"row_id": row.id, "key": row.key})
        focus = nxt or prev or spawned
        return focus.id if focus is not None else None

    def _rebuild(self) -> None:
        self._store.replace_all(self._store.snapshot())
        self._emit("post_replace", {"size": len(self._store)})
        self._schedule_commit()

    def _schedule_commit(self) -> None:
        self._scheduler.schedule(self._commit)

    def _commit(self) -> None:
        snapshot = self._store.snapshot()
        duplicates = self._store.rescan_duplicates()
        listeners = list(self._listeners)
        if self.on_change is not None:
            listeners.append(self.on_change)

        self._notifying = True
        try:
            for listener in listeners:
                try:
                    listener(dict(snapshot))
                except ReentrantEditError:
                    raise
                except Exception as exc:
                    logger.warning("Change listener failed", exc_info=True)
                    self.warnings.append(f"Change listener failed: {exc}")
        finally:
            self._notifying = False
        self._emit("post_commit", {"snapshot": dict(snapshot), "duplicates": duplicates})
        self.commits += 1

    def _emit(self, hook_name: str, payload: dict[str, Any]) -> None:
        if self._bus is None:
            return
        self._notifying = True
        try:
            self.warnings.extend(self._bus.dispatch(hook_name, payload))
        finally:
            self._notifying = False


def _key_text(raw: Any) -> str:
    """Keys are always strings; None and empty values become ``""``."""
    if raw is None:
        return ""
    if isinstance(raw, str):
        return raw
    return from_typed(from_raw(raw))
