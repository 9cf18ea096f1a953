from __future__ import annotations

from typing import Iterable, Iterator

class SeenSet:
    """Keys of items the user has already looked at.

    One instance per client session; pass it to ``Stream.unseen``.
    """

    def __init__(self, keys: Iterable[str] = ()):
        self._keys = set(keys)

    def mark(self, key: str) -> None:
        self._keys.add(key)

    def has(self, key: str) -> bool:
        return key in self._keys

    def __contains__(self, key: object) -> bool:
        return key in self._keys

    def __len__(self) -> int:
        return len(self._keys)

    def __iter__(self) -> Iterator[str]:
        return iter(self._keys)
