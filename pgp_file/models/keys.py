"""
Key ring models.

Keys themselves are backend objects exposed through the ``RingKey``
protocol; the ring only fixes their order and indexes them by key ID.
"""

from collections.abc import Iterator
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Protocol, runtime_checkable

from pgp_file.exceptions import FormatError
from pgp_file.models.crypto import PublicKeyAlgorithm


class KeyRingKind(StrEnum):
    PUBLIC = "public"
    SECRET = "secret"


@runtime_checkable
class RingKey(Protocol):
    """A public or secret key as parsed from a key ring."""

    @property
    def key_id(self) -> str:
        """16 upper-case hex characters."""
        ...

    @property
    def fingerprint(self) -> str: ...

    @property
    def algorithm(self) -> PublicKeyAlgorithm: ...

    @property
    def is_primary(self) -> bool: ...

    @property
    def is_secret(self) -> bool: ...

    @property
    def is_protected(self) -> bool: ...

    @property
    def can_encrypt(self) -> bool:
        """Fixed at parse time from the algorithm and the key's usage flags."""
        ...

    @property
    def user_ids(self) -> tuple[str, ...]: ...


@runtime_checkable
class UnlockedPrivateKey(Protocol):
    """Decrypted secret key material, valid only inside an unlock scope."""

    @property
    def key_id(self) -> str: ...

    @property
    def algorithm(self) -> PublicKeyAlgorithm: ...


@dataclass(frozen=True)
class KeyGroup:
    """A primary key and its subkeys, in declaration order."""

    primary: RingKey
    subkeys: tuple[RingKey, ...] = ()

    def keys(self) -> Iterator[RingKey]:
        yield self.primary
        yield from self.subkeys


@dataclass(frozen=True)
class KeyRing:
    """
    Ordered, read-only collection of key groups.

    Iteration yields every key in ring order: groups as they appeared in the
    source, and within a group the primary key before its subkeys.

    Raises:
        FormatError: If two keys share a key ID.
    """

    kind: KeyRingKind
    groups: tuple[KeyGroup, ...]
    _index: dict[str, RingKey] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        index: dict[str, RingKey] = {}
        for key in self._iter_keys():
            if key.key_id in index:
                msg = "Duplicate key ID in key ring"
                raise FormatError(msg, key_id=key.key_id)
            index[key.key_id] = key
        object.__setattr__(self, "_index", index)

    def _iter_keys(self) -> Iterator[RingKey]:
        for group in self.groups:
            yield from group.keys()

    def __iter__(self) -> Iterator[RingKey]:
        return self._iter_keys()

    def __len__(self) -> int:
        return len(self._index)

    def __contains__(self, key_id: object) -> bool:
        return isinstance(key_id, str) and key_id.upper() in self._index

    def get(self, key_id: str) -> RingKey | None:
        """Look up a key by exact key ID (case-insensitive hex)."""
        return self._index.get(key_id.upper())

    @property
    def key_ids(self) -> tuple[str, ...]:
        return tuple(self._index)
