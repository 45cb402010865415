# SPDX-License-Identifier: Apache-2.0
"""Startup option bag parsed from (and written back to) the page query string.

Values stay strings. Two truthiness conventions are part of the option
contract and must not be replaced by boolean coercion:

- :func:`is_truthy`: an option is on when present and non-empty, so
  ``stats=false`` still enables stats.
- :func:`is_not_false`: an option is on unless it is literally ``"false"``,
  so a missing ``flyTo`` or ``saveCamera`` means enabled.

Persisted URLs depend on both conventions.
"""

from __future__ import annotations

from typing import Iterable, Mapping, Union
from urllib.parse import quote, unquote

OptionValue = Union[str, list[str]]

# encodeURIComponent leaves these unescaped in addition to alphanumerics and -_.
_URI_COMPONENT_SAFE = "!~*'()"


class OptionBag(dict):
    """Mapping of option name to string value (or list for repeated keys)."""

    def get_str(self, key: str) -> str | None:
        """Return the value for ``key``; the last occurrence for repeated keys."""

        value = self.get(key)
        if isinstance(value, list):
            return value[-1] if value else None
        return value

    def to_query(self) -> str:
        return to_query(self)


def parse_query(query: str) -> OptionBag:
    """Parse ``a=1&b=two%20words`` into an :class:`OptionBag`.

    A leading ``?`` is ignored. ``+`` decodes to a space and a segment without
    ``=`` maps to the empty string. Keys seen more than once collect their
    values into a list in order of appearance.
    """

    bag = OptionBag()
    if query.startswith("?"):
        query = query[1:]
    if not query:
        return bag
    for segment in query.split("&"):
        if not segment:
            continue
        raw_key, sep, raw_value = segment.partition("=")
        key = _decode(raw_key)
        value = _decode(raw_value) if sep else ""
        existing = bag.get(key)
        if existing is None:
            bag[key] = value
        elif isinstance(existing, list):
            existing.append(value)
        else:
            bag[key] = [existing, value]
    return bag


def to_query(options: Mapping[str, OptionValue]) -> str:
    """Serialize ``options`` back into a query string (no leading ``?``)."""

    parts: list[str] = []
    for key, value in options.items():
        name = _encode(key)
        values: Iterable[str] = value if isinstance(value, list) else [value]
        for item in values:
            parts.append(f"{name}={_encode(item)}")
    return "&".join(parts)


def is_truthy(value: str | None) -> bool:
    """Present and non-empty."""

    return value is not None and value != ""


def is_not_false(value: str | None) -> bool:
    """Anything except the literal string ``"false"``."""

    return value != "false"


def _decode(text: str) -> str:
    return unquote(text.replace("+", "%20"))


def _encode(text: str) -> str:
    return quote(str(text), safe=_URI_COMPONENT_SAFE)
