"""
Decrypted message model.
"""

from dataclasses import dataclass
from datetime import datetime
from enum import StrEnum

from pgp_file.models.crypto import CompressionAlgorithm, SymmetricAlgorithm
from pgp_file.models.packets import LiteralFormat


class MessageLayer(StrEnum):
    """Layers of an encrypted file message, outermost first."""

    ARMOR = "armor"
    ENCRYPTED_SESSION_KEYS = "encrypted_session_keys"
    SYMMETRIC_CIPHERTEXT = "symmetric_ciphertext"
    COMPRESSED = "compressed"
    LITERAL_DATA = "literal_data"


@dataclass(frozen=True, kw_only=True)
class DecryptedMessage:
    """
    Result of decrypting a message.

    Only ``data`` is the payload; the remaining fields describe how the
    message was built and never influence the plaintext.

    Attributes:
        data: Literal data content, verbatim.
        filename: File name stored in the literal packet (may be empty).
        modified_at: Modification time stored in the literal packet, or None if zero.
        data_format: Literal content-type tag.
        key_id: ID of the secret key that unwrapped the session key.
        cipher: Symmetric algorithm of the session key.
        compression: Compression algorithm, or None when no compressed layer was present.
        integrity_protected: Whether the payload carried a verified MDC.
        layers: Layers walked, outermost first.
    """

    data: bytes
    filename: str
    modified_at: datetime | None
    data_format: LiteralFormat
    key_id: str
    cipher: SymmetricAlgorithm
    compression: CompressionAlgorithm | None
    integrity_protected: bool
    layers: tuple[MessageLayer, ...]
