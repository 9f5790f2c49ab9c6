"""
Key selection within a key ring.
"""

from collections.abc import Iterator
from contextlib import ExitStack, contextmanager
from dataclasses import dataclass
from enum import StrEnum

import structlog

from pgp_file.core.secure_bytes import SecureBytes
from pgp_file.crypto.pgpy_backend import PgpyBackend
from pgp_file.crypto.protocol import PGPBackend
from pgp_file.exceptions import KeyUnlockError, NoEncryptionKeyError
from pgp_file.models.keys import KeyRing, KeyRingKind, RingKey, UnlockedPrivateKey

logger = structlog.get_logger(__name__)


class ResolutionStatus(StrEnum):
    UNLOCKED = "unlocked"
    NOT_FOUND = "not_found"
    UNLOCK_FAILED = "unlock_failed"


@dataclass(frozen=True)
class KeyResolution:
    """
    Outcome of looking up and unlocking one secret key.

    ``private_key`` is set only when ``status`` is UNLOCKED and stays usable
    only inside the ``find_secret_key`` block that produced it; ``error`` is
    set only when ``status`` is UNLOCK_FAILED.
    """

    status: ResolutionStatus
    key_id: str
    private_key: UnlockedPrivateKey | None = None
    error: KeyUnlockError | None = None

    @property
    def unlocked(self) -> bool:
        return self.status == ResolutionStatus.UNLOCKED


class KeyLocator:
    """
    Finds keys in a ring.

    Both lookups are linear scans in ring order: groups as they appeared in
    the source, primary key before subkeys. The first match wins.

    Args:
        pgp_backend: Backend used to unlock secret keys. Defaults to PGPy.
    """

    def __init__(self, pgp_backend: PGPBackend | None = None) -> None:
        self._pgp = pgp_backend or PgpyBackend()

    @staticmethod
    def find_encryption_key(ring: KeyRing) -> RingKey:
        """
        Return the first encryption-capable key of a ring.

        Args:
            ring: Public (or secret) key ring.

        Returns:
            The first key whose capability marks it valid for encryption.

        Raises:
            NoEncryptionKeyError: If no key in the ring can encrypt.
        """
        for key in ring:
            if key.can_encrypt:
                logger.debug("Encryption key selected", key_id=key.key_id)
                return key
        msg = "No encryption key found in key ring"
        raise NoEncryptionKeyError(msg, key_ids=ring.key_ids)

    @staticmethod
    def encryption_candidates(ring: KeyRing) -> list[RingKey]:
        """Secret keys able to decrypt, in ring order; tried for wildcard key IDs."""
        return [key for key in ring if key.is_secret and key.can_encrypt]

    @contextmanager
    def find_secret_key(
        self, ring: KeyRing, key_id: str, passphrase: SecureBytes
    ) -> Iterator[KeyResolution]:
        """
        Look up a secret key by exact key ID and unlock it.

        An absent ID and a failed unlock are reported as different statuses
        rather than raised, so a caller scanning several session key entries
        can move on to the next one.

        Args:
            ring: Secret key ring.
            key_id: Key ID named by a session key entry.
            passphrase: Passphrase to try.

        Yields:
            The resolution; an unlocked key is scrubbed when the block exits.

        Raises:
            ValueError: If ``ring`` is not a secret key ring.
        """
        if ring.kind != KeyRingKind.SECRET:
            msg = "find_secret_key requires a secret key ring"
            raise ValueError(msg)

        key = ring.get(key_id)
        if key is None or not key.is_secret:
            logger.debug("Secret key not in ring", key_id=key_id)
            yield KeyResolution(status=ResolutionStatus.NOT_FOUND, key_id=key_id)
            return

        with ExitStack() as stack:
            try:
                unlocked = stack.enter_context(self._pgp.unlock_key(key, passphrase))
            except KeyUnlockError as e:
                logger.warning("Secret key did not unlock", key_id=key.key_id)
                yield KeyResolution(
                    status=ResolutionStatus.UNLOCK_FAILED, key_id=key.key_id, error=e
                )
                return
            logger.debug("Secret key unlocked", key_id=key.key_id)
            yield KeyResolution(
                status=ResolutionStatus.UNLOCKED, key_id=key.key_id, private_key=unlocked
            )
