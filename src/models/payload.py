"""
Untrusted payload wrapper.

LLM responses only nominally follow the requested schema. Every read from
such a payload goes through UntrustedPayload so that absence, wrong types
and alternate key names all resolve to a documented default instead of
raising.
"""

import math
from typing import Any, Iterator, List, Optional


def is_truthy(value: Any) -> bool:
    """
    Presence test used by every fallback chain.

    None, False, empty strings, 0 and NaN count as absent. Empty lists
    and empty objects count as present: an enrichment that explicitly
    returns [] replaces the baseline value.
    """
    if value is None or value is False:
        return False
    if isinstance(value, str):
        return value != ""
    if isinstance(value, float):
        return value != 0 and not math.isnan(value)
    if isinstance(value, int):
        return value != 0
    return True


class UntrustedPayload:
    """
    Read-only view over an arbitrary JSON value.

    Navigation never raises: looking up a key on a non-object, or a key
    that is absent, yields an empty payload.
    """

    __slots__ = ("_value",)

    def __init__(self, value: Any = None):
        if isinstance(value, UntrustedPayload):
            value = value.raw
        self._value = value

    @property
    def raw(self) -> Any:
        return self._value

    def __repr__(self) -> str:
        return f"UntrustedPayload({self._value!r})"

    def __bool__(self) -> bool:
        return is_truthy(self._value)

    @property
    def is_object(self) -> bool:
        return isinstance(self._value, dict)

    @property
    def is_list(self) -> bool:
        return isinstance(self._value, list)

    def get(self, key: str) -> "UntrustedPayload":
        """Child value, or an empty payload if absent or not an object."""
        if isinstance(self._value, dict):
            return UntrustedPayload(self._value.get(key))
        return UntrustedPayload(None)

    def path(self, *keys: str) -> "UntrustedPayload":
        """Follow nested keys, e.g. path("variantStats", "byAsin")."""
        node = self
        for key in keys:
            node = node.get(key)
        return node

    def first(self, *keys: str) -> "UntrustedPayload":
        """First child among ``keys`` that is present; empty payload if none."""
        for key in keys:
            child = self.get(key)
            if child:
                return child
        return UntrustedPayload(None)

    def items(self) -> Iterator["UntrustedPayload"]:
        """Elements of a list payload; nothing for any other type."""
        if isinstance(self._value, list):
            for item in self._value:
                yield UntrustedPayload(item)

    def text(self, default: str = "") -> str:
        """Scalar rendered as text; objects and lists yield ``default``."""
        value = self._value
        if isinstance(value, str):
            return value
        if isinstance(value, bool) or value is None:
            return default
        if isinstance(value, (int, float)):
            if isinstance(value, float) and math.isnan(value):
                return default
            return str(value)
        return default

    def text_list(self) -> List[str]:
        """List of scalar items as text, objects and empty strings skipped."""
        return [t for t in (item.text() for item in self.items()) if t]

    def optional_text(self) -> Optional[str]:
        text = self.text()
        return text or None
