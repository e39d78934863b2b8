"""
Bijective mapping shared by the byte mapper and the vocabulary.
"""

from collections.abc import Iterable, Iterator, Mapping

from .errors import VocabularyError


class BiMap[K, V](Mapping[K, V]):
    """
    Read-only one-to-one mapping with a constant-time inverse.

    Both directions are built together from the same pairs, so the forward
    and inverse tables cannot drift apart.

    :raises VocabularyError: If two keys map to the same value.
    """

    __slots__ = ("_fwd", "_inv")

    def __init__(self, pairs: Mapping[K, V] | Iterable[tuple[K, V]]) -> None:
        items = pairs.items() if isinstance(pairs, Mapping) else pairs
        fwd: dict[K, V] = {}
        inv: dict[V, K] = {}
        for key, value in items:
            if value in inv and inv[value] != key:
                raise VocabularyError(
                    f"value {value!r} already mapped from {inv[value]!r}",
                    invalid_tok=key if isinstance(key, (int, str)) else None,
                )
            # later duplicates of a key replace the earlier value
            if key in fwd:
                del inv[fwd[key]]
            fwd[key] = value
            inv[value] = key
        self._fwd = fwd
        self._inv = inv

    def __getitem__(self, key: K) -> V:
        return self._fwd[key]

    def __iter__(self) -> Iterator[K]:
        return iter(self._fwd)

    def __len__(self) -> int:
        return len(self._fwd)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({len(self)} entries)"

    def inverse(self, value: V) -> K:
        """Return the key mapped to ``value``; raises ``KeyError`` if absent."""
        return self._inv[value]

    def get_inverse(self, value: V, default: K | None = None) -> K | None:
        """Return the key mapped to ``value`` or ``default``."""
        return self._inv.get(value, default)

    def has_value(self, value: V) -> bool:
        return value in self._inv
