"""
Key ring parsing.
"""

from typing import BinaryIO

import structlog

from pgp_file.crypto.pgpy_backend import PgpyBackend
from pgp_file.crypto.protocol import PGPBackend
from pgp_file.exceptions import FormatError
from pgp_file.models.keys import KeyRing, KeyRingKind

logger = structlog.get_logger(__name__)

KeyRingSource = bytes | bytearray | str | BinaryIO


class KeyRingStore:
    """
    Parses public and secret key rings into read-only ``KeyRing`` objects.

    Secret rings are parsed without a passphrase; keys are only unlocked
    later, one at a time, by ``KeyLocator.find_secret_key``.

    Args:
        pgp_backend: Backend used to decode key material. Defaults to PGPy.
    """

    def __init__(self, pgp_backend: PGPBackend | None = None) -> None:
        self._pgp = pgp_backend or PgpyBackend()

    def parse(self, source: KeyRingSource, kind: KeyRingKind) -> KeyRing:
        """
        Parse a key ring.

        Args:
            source: Armored or binary key ring, as bytes, text or a binary stream.
                A stream is read to its end but not closed.
            kind: Whether the ring must hold public or secret keys.

        Returns:
            The key ring, preserving source order.

        Raises:
            FormatError: If the data does not decode into keys, holds keys of
                the other kind, or repeats a key ID.
        """
        groups = self._pgp.load_key_groups(_read_source(source))
        if not groups:
            msg = "Key ring contains no keys"
            raise FormatError(msg, kind=kind.value)

        expect_secret = kind == KeyRingKind.SECRET
        for group in groups:
            for key in group.keys():
                if key.is_secret != expect_secret:
                    msg = f"Expected a {kind.value} key ring"
                    raise FormatError(msg, key_id=key.key_id)

        ring = KeyRing(kind=kind, groups=tuple(groups))
        logger.debug("Key ring loaded", kind=kind.value, groups=len(groups), keys=len(ring))
        return ring

    def parse_public(self, source: KeyRingSource) -> KeyRing:
        return self.parse(source, KeyRingKind.PUBLIC)

    def parse_secret(self, source: KeyRingSource) -> KeyRing:
        return self.parse(source, KeyRingKind.SECRET)


def _read_source(source: KeyRingSource) -> bytes:
    if isinstance(source, str):
        return source.encode("utf-8")
    if isinstance(source, (bytes, bytearray)):
        return bytes(source)
    data = source.read()
    if not isinstance(data, bytes):
        msg = "Key ring stream must be opened in binary mode"
        raise TypeError(msg)
    return data
