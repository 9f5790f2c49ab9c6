"""
OpenPGP packet models.

Each packet kind the message pipeline cares about is a small frozen
dataclass; everything else is kept as ``UnknownPacket`` so the decomposer
can name it in an error instead of failing inside the parser.
"""

from dataclasses import dataclass
from enum import IntEnum, StrEnum

from pgp_file.models.crypto import CompressionAlgorithm, PublicKeyAlgorithm


class PacketTag(IntEnum):
    """OpenPGP packet tags."""

    PKESK = 1
    SIGNATURE = 2
    SKESK = 3
    ONE_PASS_SIGNATURE = 4
    SECRET_KEY = 5
    PUBLIC_KEY = 6
    SECRET_SUBKEY = 7
    COMPRESSED_DATA = 8
    SYMMETRICALLY_ENCRYPTED_DATA = 9
    MARKER = 10
    LITERAL_DATA = 11
    TRUST = 12
    USER_ID = 13
    PUBLIC_SUBKEY = 14
    USER_ATTRIBUTE = 17
    SEIPD = 18
    MDC = 19
    AEAD_ENCRYPTED_DATA = 20
    PADDING = 21


class LiteralFormat(StrEnum):
    """Content-type tag of a literal data packet."""

    BINARY = "b"
    TEXT = "t"
    UTF8 = "u"
    MIME = "m"


WILDCARD_KEY_ID = "0000000000000000"
MARKER_BODY = b"PGP"


@dataclass(frozen=True, kw_only=True)
class MarkerPacket:
    """Obsolete marker packet; carries no information."""


@dataclass(frozen=True, kw_only=True)
class PKESKPacket:
    """
    Public-Key Encrypted Session Key packet (version 3).

    Attributes:
        key_id: Recipient key ID as 16 upper-case hex characters; all zeros is a wildcard.
        algorithm: Public key algorithm the session key is wrapped with.
        encrypted_session_key: Algorithm-specific MPIs, undecoded.
    """

    version: int
    key_id: str
    algorithm: PublicKeyAlgorithm | int
    encrypted_session_key: bytes

    @property
    def is_wildcard(self) -> bool:
        return self.key_id == WILDCARD_KEY_ID


@dataclass(frozen=True, kw_only=True)
class SKESKPacket:
    """Symmetric-Key Encrypted Session Key packet, kept opaque (``body`` follows the version octet)."""

    version: int
    body: bytes


@dataclass(frozen=True, kw_only=True)
class EncryptedDataPacket:
    """
    Symmetrically encrypted payload.

    Attributes:
        encrypted_data: Ciphertext following the version octet, if any.
        integrity_protected: True for SEIPD (tag 18), False for legacy tag 9 data.
        version: SEIPD version octet, or None for legacy data.
    """

    encrypted_data: bytes
    integrity_protected: bool
    version: int | None = None


@dataclass(frozen=True, kw_only=True)
class CompressedDataPacket:
    algorithm: CompressionAlgorithm
    compressed_data: bytes


@dataclass(frozen=True, kw_only=True)
class LiteralDataPacket:
    """
    Literal data packet.

    Attributes:
        data_format: Content-type tag.
        filename: Informational file name (at most 255 bytes when encoded).
        timestamp: Informational modification time, seconds since the epoch.
        data: The plaintext.
    """

    data_format: LiteralFormat
    filename: str
    timestamp: int
    data: bytes


@dataclass(frozen=True, kw_only=True)
class OnePassSignaturePacket:
    """One-pass signature header; ``body`` keeps the full packet body."""

    version: int
    signature_type: int
    key_id: str
    body: bytes


@dataclass(frozen=True, kw_only=True)
class SignaturePacket:
    """Signature packet; ``body`` keeps the full packet body, version octet included."""

    version: int
    body: bytes


@dataclass(frozen=True, kw_only=True)
class UnknownPacket:
    tag: int
    body: bytes


MessagePacket = (
    MarkerPacket
    | PKESKPacket
    | SKESKPacket
    | EncryptedDataPacket
    | CompressedDataPacket
    | LiteralDataPacket
    | OnePassSignaturePacket
    | SignaturePacket
    | UnknownPacket
)
