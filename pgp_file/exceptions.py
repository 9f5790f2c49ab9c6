"""
pgp_file exception hierarchy.

All exceptions inherit from PgpFileError for easy catching.
"""

from typing import Any


class PgpFileError(Exception):
    """Base exception for all pgp_file errors."""

    def __init__(self, message: str, **context: Any) -> None:
        super().__init__(message)
        self.message = message
        self.context = context

    def __str__(self) -> str:
        if self.context:
            ctx = ", ".join(f"{k}={v!r}" for k, v in self.context.items())
            return f"{self.message} ({ctx})"
        return self.message


class FormatError(PgpFileError):
    """Input does not parse as the OpenPGP structure it claims to be."""


class CryptoError(PgpFileError):
    """Cryptographic operation failed."""


class SessionKeyError(CryptoError):
    """Failed to wrap, unwrap or use a session key."""


class IntegrityError(CryptoError):
    """Data integrity verification failed (quick check or MDC mismatch)."""


class UnsupportedAlgorithmError(CryptoError):
    """Algorithm identifier is known to OpenPGP but not supported here."""

    def __init__(self, message: str, *, algorithm: int | None = None) -> None:
        super().__init__(message, algorithm=algorithm)
        self.algorithm = algorithm


class KeyResolutionError(PgpFileError):
    """A suitable key could not be resolved from a key ring."""


class NoEncryptionKeyError(KeyResolutionError):
    """Public key ring holds no key usable for encryption."""


class KeyUnlockError(KeyResolutionError):
    """Secret key was found but the passphrase did not unlock it."""

    def __init__(self, message: str, *, key_id: str) -> None:
        super().__init__(message, key_id=key_id)
        self.key_id = key_id


class NoMatchingKeyError(KeyResolutionError):
    """No secret key in the ring unlocked any session key entry of the message."""

    def __init__(
        self,
        message: str = "No secret key matches the message",
        *,
        key_ids: tuple[str, ...] = (),
        unlock_failed: tuple[str, ...] = (),
    ) -> None:
        super().__init__(message, key_ids=key_ids, unlock_failed=unlock_failed)
        self.key_ids = key_ids
        self.unlock_failed = unlock_failed


class UnsupportedMessageShapeError(PgpFileError):
    """Message parsed correctly but its content is out of scope (e.g. signed data)."""

    def __init__(self, message: str, *, packet_tag: int | None = None) -> None:
        super().__init__(message, packet_tag=packet_tag)
        self.packet_tag = packet_tag
