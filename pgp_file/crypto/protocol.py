"""
PGP backend protocol definition.

This defines the interface for public-key operations, allowing different
implementations (pgpy, a custom parser, etc.) to be swapped without changing
the message pipeline.
"""

from contextlib import AbstractContextManager
from typing import Protocol, runtime_checkable

from pgp_file.core.secure_bytes import SecureBytes
from pgp_file.models.crypto import SessionKey
from pgp_file.models.keys import KeyGroup, RingKey, UnlockedPrivateKey
from pgp_file.models.packets import PKESKPacket


@runtime_checkable
class PGPBackend(Protocol):
    """
    Abstract interface for key handling and session key wrapping.

    Symmetric encryption, compression and armor do not go through the
    backend; they are implemented directly in ``pgp_file.crypto``.
    """

    def load_key_groups(self, data: bytes) -> list[KeyGroup]:
        """
        Parse a key ring, armored or binary.

        Args:
            data: Key ring bytes.

        Returns:
            Key groups in source order, each primary key followed by its subkeys.

        Raises:
            FormatError: If the data does not decode into keys.
        """
        ...

    def unlock_key(
        self, key: RingKey, passphrase: SecureBytes
    ) -> AbstractContextManager[UnlockedPrivateKey]:
        """
        Unlock a secret key for the duration of a ``with`` block.

        Args:
            key: Secret key from a ring produced by this backend.
            passphrase: Key passphrase.

        Returns:
            Context manager yielding the unlocked key; key material is
            scrubbed when the block exits.

        Raises:
            KeyUnlockError: If the passphrase is incorrect or the material is corrupt.
        """
        ...

    def wrap_session_key(self, recipient: RingKey, session_key: SessionKey) -> PKESKPacket:
        """
        Encrypt a session key to a recipient's public key.

        Raises:
            UnsupportedAlgorithmError: If the recipient's algorithm cannot be used.
            SessionKeyError: If wrapping fails.
        """
        ...

    def unwrap_session_key(
        self, packet: PKESKPacket, private_key: UnlockedPrivateKey
    ) -> SessionKey:
        """
        Decrypt the session key carried by a PKESK packet.

        Raises:
            UnsupportedAlgorithmError: If the packet's algorithm cannot be used.
            SessionKeyError: If decryption or the checksum fails.
        """
        ...
