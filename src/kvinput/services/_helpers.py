"""Parsers for configuration text handed to the editor.

Every parser falls back to a safe default instead of raising: an empty
mapping, no domain, no key cap, or a zero debounce window.
"""

from __future__ import annotations

import json
import logging
import re
from collections.abc import Mapping
from typing import Any

logger = logging.getLogger(__name__)

_LEADING_INT_RE = re.compile(r"^\s*([+-]?\d+)")
_KEY_SPLIT_RE = re.compile(r"\s*,\s*")


def parse_json_object(text: str | None) -> dict[str, Any] | None:
    """Parse *text* as a JSON object, or return None.

    Examples:
        >>> parse_json_object('{"a": 1}')
        {'a': 1}
        >>> parse_json_object("[1, 2]") is None
        True
    """
    if not text:
        return None
    try:
        data = json.loads(text)
    except ValueError:
        logger.debug("Ignoring malformed JSON: %.60r", text)
        return None
    if not isinstance(data, Mapping):
        logger.debug("Ignoring non-object JSON: %.60r", text)
        return None
    return dict(data)


def parse_seed(text: str | None) -> dict[str, Any]:
    """Parse initial content; anything but a JSON object yields ``{}``."""
    return parse_json_object(text) or {}


def parse_keys(raw: Any) -> list[str] | None:
    """Normalize an allowed-keys setting.

    Lists are taken as-is. Strings are read as a JSON list, falling back to
    a comma-separated list. Empty input and any other type lift the cap.

    Examples:
        >>> parse_keys("x, y")
        ['x', 'y']
        >>> parse_keys('["x", "y"]')
        ['x', 'y']
        >>> parse_keys(None) is None
        True
    """
    if isinstance(raw, (list, tuple)):
        keys = [str(key) for key in raw]
    elif isinstance(raw, str):
        try:
            decoded = json.loads(raw)
        except ValueError:
            decoded = None
        if isinstance(decoded, list):
            keys = [str(key) for key in decoded]
        else:
            keys = [part for part in _KEY_SPLIT_RE.split(raw.strip()) if part]
    else:
        return None
    return keys or None


def parse_debounce(raw: Any) -> int:
    """Read a debounce window in milliseconds; unparseable input means 0.

    Like an HTML attribute, a leading integer is enough: ``"250ms"`` is 250.
    """
    if isinstance(raw, bool):
        return 0
    if isinstance(raw, int):
        return max(raw, 0)
    match = _LEADING_INT_RE.match(str(raw)) if raw is not None else None
    if match is None:
        logger.debug("Unparseable debounce %r, using 0", raw)
        return 0
    return max(int(match.group(1)), 0)
