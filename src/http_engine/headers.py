"""
Header mapping for http_engine.

Header names are case-insensitive on the wire. ``HeaderMap`` stores
every name lower-cased and merges repeated names the way RFC 7230
allows, joining the values with ``", "`` in arrival order.
"""

from typing import Dict, Iterable, Iterator, Mapping, MutableMapping, Optional, Tuple, Union

HeaderInput = Union[Mapping[str, object], Iterable[Tuple[str, object]]]


class HeaderMap(MutableMapping[str, str]):
    """
    Mapping from lower-cased header name to header value.

    Iteration follows insertion order, which is also the order headers
    are written to the wire.
    """

    def __init__(self, headers: Optional[HeaderInput] = None) -> None:
        self._items: Dict[str, str] = {}
        if headers is not None:
            items = headers.items() if isinstance(headers, Mapping) else headers
            for name, value in items:
                self[name] = value

    def __getitem__(self, name: str) -> str:
        return self._items[name.lower()]

    def __setitem__(self, name: str, value: object) -> None:
        self._items[name.lower()] = str(value)

    def __delitem__(self, name: str) -> None:
        del self._items[name.lower()]

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and name.lower() in self._items

    def __iter__(self) -> Iterator[str]:
        return iter(self._items)

    def __len__(self) -> int:
        return len(self._items)

    def __repr__(self) -> str:
        return f"HeaderMap({self._items!r})"

    def __eq__(self, other: object) -> bool:
        if isinstance(other, HeaderMap):
            return self._items == other._items
        if isinstance(other, Mapping):
            return self._items == HeaderMap(other)._items
        return NotImplemented

    def add(self, name: str, value: str) -> None:
        """Record a header, merging with an earlier value of the same name."""
        key = name.lower()
        if key in self._items:
            self._items[key] = f"{self._items[key]}, {value}"
        else:
            self._items[key] = value
