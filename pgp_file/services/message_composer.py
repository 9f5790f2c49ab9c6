"""
Outbound message assembly.

Builds ``Armor?(PKESK, Encrypted(Compressed(Literal)))`` for one recipient.
"""

from datetime import datetime

import structlog

from pgp_file.config import PgpFileConfig
from pgp_file.crypto.armor import armor_encode
from pgp_file.crypto.compression import compress
from pgp_file.crypto.packets import serialize_packet
from pgp_file.crypto.pgpy_backend import PgpyBackend
from pgp_file.crypto.protocol import PGPBackend
from pgp_file.crypto.symmetric import encrypt_data
from pgp_file.models.crypto import SessionKey
from pgp_file.models.keys import RingKey
from pgp_file.models.packets import CompressedDataPacket, LiteralDataPacket, LiteralFormat

logger = structlog.get_logger(__name__)

_MAX_TIMESTAMP = 0xFFFFFFFF


class MessageComposer:
    """
    Builds encrypted OpenPGP messages.

    Composition keeps no state between calls; a composer can be shared.

    Args:
        config: Cipher, compression and armor settings. Uses defaults if not provided.
        pgp_backend: Backend that wraps session keys. Defaults to PGPy.
    """

    def __init__(
        self, config: PgpFileConfig | None = None, pgp_backend: PGPBackend | None = None
    ) -> None:
        self._config = config or PgpFileConfig()
        self._pgp = pgp_backend or PgpyBackend()

    def compose(
        self,
        plaintext: bytes,
        recipient: RingKey,
        *,
        armor: bool = False,
        integrity_check: bool = True,
        filename: str = "",
        modified_at: datetime | None = None,
    ) -> bytes:
        """
        Encrypt ``plaintext`` to ``recipient``.

        The plaintext is wrapped in a binary literal data packet, always
        compressed, then encrypted under a fresh session key that is itself
        wrapped to the recipient.

        Args:
            plaintext: Data to encrypt.
            recipient: Encryption-capable public key, usually from
                ``KeyLocator.find_encryption_key``.
            armor: Return ASCII-armored output instead of binary.
            integrity_check: Append a modification detection code (SEIPD);
                when False, legacy symmetrically encrypted data is produced.
            filename: Informational file name stored in the literal packet.
            modified_at: Informational timestamp stored in the literal packet.

        Returns:
            The complete message.

        Raises:
            UnsupportedAlgorithmError: If the recipient's algorithm cannot wrap a session key.
            SessionKeyError: If wrapping the session key fails.
            ValueError: If ``filename`` is longer than 255 bytes once encoded.
        """
        literal = LiteralDataPacket(
            data_format=LiteralFormat.BINARY,
            filename=filename,
            timestamp=_literal_timestamp(modified_at),
            data=bytes(plaintext),
        )
        compressed = CompressedDataPacket(
            algorithm=self._config.compression,
            compressed_data=compress(
                self._config.compression,
                serialize_packet(literal),
                self._config.compression_level,
            ),
        )

        with SessionKey.generate(self._config.cipher, lock=self._config.lock_memory) as session_key:
            pkesk = self._pgp.wrap_session_key(recipient, session_key)
            encrypted = encrypt_data(
                serialize_packet(compressed), session_key, integrity_protected=integrity_check
            )

        message = serialize_packet(pkesk) + serialize_packet(encrypted)
        logger.debug(
            "Message composed",
            key_id=recipient.key_id,
            cipher=self._config.cipher.name,
            compression=self._config.compression.name,
            integrity_check=integrity_check,
            size=len(message),
        )
        if armor:
            return armor_encode(message, self._config.armor_headers)
        return message


def _literal_timestamp(modified_at: datetime | None) -> int:
    if modified_at is None:
        return 0
    return min(max(int(modified_at.timestamp()), 0), _MAX_TIMESTAMP)
