"""
Cryptographic domain models.
"""

import os
from dataclasses import dataclass
from enum import IntEnum
from typing import Self

from pgp_file.core.secure_bytes import SecureBytes


class SymmetricAlgorithm(IntEnum):
    """OpenPGP symmetric algorithm identifiers."""

    PLAINTEXT = 0
    IDEA = 1
    TRIPLE_DES = 2
    CAST5 = 3
    BLOWFISH = 4
    AES_128 = 7
    AES_192 = 8
    AES_256 = 9
    TWOFISH = 10
    CAMELLIA_128 = 11
    CAMELLIA_192 = 12
    CAMELLIA_256 = 13

    @property
    def key_size(self) -> int:
        """Get key size in bytes for this algorithm."""
        match self:
            case self.AES_128 | self.CAST5 | self.BLOWFISH | self.IDEA | self.CAMELLIA_128:
                return 16
            case self.AES_192 | self.TRIPLE_DES | self.CAMELLIA_192:
                return 24
            case self.AES_256 | self.TWOFISH | self.CAMELLIA_256:
                return 32
            case _:
                return 0

    @property
    def block_size(self) -> int:
        """Get block size in bytes for this algorithm."""
        match self:
            case self.IDEA | self.CAST5 | self.BLOWFISH | self.TRIPLE_DES:
                return 8
            case (
                self.AES_128
                | self.AES_192
                | self.AES_256
                | self.TWOFISH
                | self.CAMELLIA_128
                | self.CAMELLIA_192
                | self.CAMELLIA_256
            ):
                return 16
            case _:
                return 0

    @property
    def is_supported(self) -> bool:
        """Whether the symmetric layer can encrypt and decrypt with this algorithm."""
        match self:
            case (
                self.AES_128
                | self.AES_192
                | self.AES_256
                | self.CAMELLIA_128
                | self.CAMELLIA_192
                | self.CAMELLIA_256
            ):
                return True
            case _:
                return False


class PublicKeyAlgorithm(IntEnum):
    """OpenPGP public key algorithm identifiers."""

    RSA_ENCRYPT_OR_SIGN = 1
    RSA_ENCRYPT_ONLY = 2
    RSA_SIGN_ONLY = 3
    ELGAMAL_ENCRYPT_ONLY = 16
    DSA = 17
    ECDH = 18
    ECDSA = 19
    ELGAMAL_ENCRYPT_OR_SIGN = 20
    DIFFIE_HELLMAN = 21
    EDDSA = 22
    X25519 = 25
    X448 = 26
    ED25519 = 27
    ED448 = 28

    @property
    def can_encrypt(self) -> bool:
        """Whether keys of this algorithm can receive an encrypted session key."""
        match self:
            case (
                self.RSA_ENCRYPT_OR_SIGN
                | self.RSA_ENCRYPT_ONLY
                | self.ELGAMAL_ENCRYPT_ONLY
                | self.ECDH
                | self.ELGAMAL_ENCRYPT_OR_SIGN
                | self.DIFFIE_HELLMAN
                | self.X25519
                | self.X448
            ):
                return True
            case _:
                return False


class CompressionAlgorithm(IntEnum):
    """OpenPGP compression algorithm identifiers."""

    UNCOMPRESSED = 0
    ZIP = 1
    ZLIB = 2
    BZIP2 = 3


@dataclass(frozen=True, kw_only=True)
class SessionKey:
    """
    Symmetric key that encrypts the body of one message.

    The key bytes live in a ``SecureBytes`` buffer; use the session key as a
    context manager to zero them when the message has been processed.

    Attributes:
        algorithm: The symmetric algorithm used.
        key_data: The raw key bytes.
    """

    algorithm: SymmetricAlgorithm
    key_data: SecureBytes

    def __post_init__(self) -> None:
        """Validate key size matches algorithm."""
        expected = self.algorithm.key_size
        if not expected or (len(self.key_data) == expected):
            return
        msg = f"Key size mismatch: {self.algorithm.name} expects {expected} bytes, got {len(self.key_data)}"
        raise ValueError(msg)

    @classmethod
    def generate(cls, algorithm: SymmetricAlgorithm, *, lock: bool = False) -> Self:
        """Create a fresh random key for ``algorithm``."""
        if not algorithm.key_size:
            msg = f"Cannot generate a key for {algorithm.name}"
            raise ValueError(msg)
        random_bytes = bytearray(os.urandom(algorithm.key_size))
        try:
            return cls(algorithm=algorithm, key_data=SecureBytes(random_bytes, lock=lock))
        finally:
            random_bytes[:] = bytes(len(random_bytes))

    @property
    def block_size(self) -> int:
        """Get the block size for this key's algorithm."""
        return self.algorithm.block_size

    def __enter__(self) -> Self:
        return self

    def __exit__(self, *_: object) -> None:
        self.key_data.clear()
