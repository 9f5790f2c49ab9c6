"""
Inbound message disassembly.

Accepted shape, outermost first::

    Armor? ( Marker? ESK+ EncryptedData ( Compressed? ( Literal ) ) )

Anything else is rejected: structural problems as ``FormatError``, signed
or otherwise out-of-scope content as ``UnsupportedMessageShapeError``.
"""

from dataclasses import dataclass
from datetime import UTC, datetime

import structlog

from pgp_file.config import PgpFileConfig
from pgp_file.core.secure_bytes import SecureBytes
from pgp_file.crypto.armor import armor_decode
from pgp_file.crypto.compression import decompress
from pgp_file.crypto.packets import PacketReader, parse_packet
from pgp_file.crypto.pgpy_backend import PgpyBackend
from pgp_file.crypto.protocol import PGPBackend
from pgp_file.crypto.symmetric import decrypt_data
from pgp_file.exceptions import (
    FormatError,
    KeyUnlockError,
    NoMatchingKeyError,
    SessionKeyError,
    UnsupportedAlgorithmError,
    UnsupportedMessageShapeError,
)
from pgp_file.keys.key_locator import KeyLocator, ResolutionStatus
from pgp_file.models.crypto import CompressionAlgorithm, SessionKey
from pgp_file.models.keys import KeyRing, KeyRingKind
from pgp_file.models.message import DecryptedMessage, MessageLayer
from pgp_file.models.packets import (
    CompressedDataPacket,
    EncryptedDataPacket,
    LiteralDataPacket,
    MarkerPacket,
    MessagePacket,
    OnePassSignaturePacket,
    PKESKPacket,
    SignaturePacket,
    SKESKPacket,
)

logger = structlog.get_logger(__name__)

Passphrase = str | bytes | bytearray | SecureBytes


@dataclass(frozen=True)
class _Envelope:
    session_keys: tuple[PKESKPacket | SKESKPacket, ...]
    encrypted: EncryptedDataPacket
    armored: bool


class _PacketCursor:
    """Reads typed packets one at a time, remembering the tag of the last one."""

    def __init__(self, data: bytes) -> None:
        self._reader = PacketReader(data)
        self.tag: int | None = None

    def next(self) -> MessagePacket | None:
        raw = next(self._reader, None)
        if raw is None:
            self.tag = None
            return None
        self.tag = raw.tag
        return parse_packet(raw)

    def expect_end(self, after: str) -> None:
        if self._reader.at_end:
            return
        msg = f"Unexpected data after {after}"
        raise FormatError(msg)


class MessageDecomposer:
    """
    Decrypts messages produced by ``MessageComposer`` or any OpenPGP
    implementation emitting the same shape.

    Args:
        config: Limits applied while decoding. Uses defaults if not provided.
        pgp_backend: Backend that unlocks keys and unwraps session keys. Defaults to PGPy.
        key_locator: Locator used to resolve session key entries; built on
            ``pgp_backend`` if not provided.
    """

    def __init__(
        self,
        config: PgpFileConfig | None = None,
        pgp_backend: PGPBackend | None = None,
        key_locator: KeyLocator | None = None,
    ) -> None:
        self._config = config or PgpFileConfig()
        self._pgp = pgp_backend or PgpyBackend()
        self._locator = key_locator or KeyLocator(self._pgp)

    def decompose(self, message: bytes, secret_ring: KeyRing, passphrase: Passphrase) -> bytes:
        """
        Decrypt ``message`` and return the literal data content.

        See ``decompose_message`` for arguments and errors.
        """
        return self.decompose_message(message, secret_ring, passphrase).data

    def decompose_message(
        self, message: bytes, secret_ring: KeyRing, passphrase: Passphrase
    ) -> DecryptedMessage:
        """
        Decrypt ``message`` layer by layer.

        Args:
            message: Armored or binary OpenPGP message.
            secret_ring: Secret key ring to search for a recipient key.
            passphrase: Passphrase for the secret keys. A private copy is made
                and zeroed before returning; the caller's object is not modified.

        Returns:
            The plaintext with its literal packet metadata.

        Raises:
            FormatError: If the message is not an encrypted message or is malformed.
            NoMatchingKeyError: If no session key entry could be unlocked.
            IntegrityError: If the quick check or the MDC does not verify.
            UnsupportedMessageShapeError: If the payload is signed or is not literal data.
            ValueError: If ``secret_ring`` is not a secret key ring.
        """
        if secret_ring.kind != KeyRingKind.SECRET:
            msg = "Decryption requires a secret key ring"
            raise ValueError(msg)

        envelope = self._read_envelope(bytes(message))
        layers = [MessageLayer.ARMOR] if envelope.armored else []
        layers += [MessageLayer.ENCRYPTED_SESSION_KEYS, MessageLayer.SYMMETRIC_CIPHERTEXT]

        with SecureBytes.from_secret(passphrase, lock=self._config.lock_memory) as owned_passphrase:
            key_id, session_key = self._resolve_session_key(
                envelope.session_keys, secret_ring, owned_passphrase
            )

        cipher = session_key.algorithm
        with session_key:
            inner = decrypt_data(envelope.encrypted, session_key)
        logger.debug(
            "Symmetric layer decrypted",
            cipher=cipher.name,
            integrity_protected=envelope.encrypted.integrity_protected,
        )

        literal, compression = self._read_payload(inner, layers)
        return DecryptedMessage(
            data=literal.data,
            filename=literal.filename,
            modified_at=datetime.fromtimestamp(literal.timestamp, tz=UTC) if literal.timestamp else None,
            data_format=literal.data_format,
            key_id=key_id,
            cipher=cipher,
            compression=compression,
            integrity_protected=envelope.encrypted.integrity_protected,
            layers=tuple(layers),
        )

    def list_recipients(self, message: bytes) -> tuple[str, ...]:
        """
        Return the key IDs named by the message's public-key session key entries.

        Nothing is decrypted. Wildcard entries appear as ``0000000000000000``.

        Raises:
            FormatError: If the message is not an encrypted message.
        """
        envelope = self._read_envelope(bytes(message))
        return tuple(
            entry.key_id for entry in envelope.session_keys if isinstance(entry, PKESKPacket)
        )

    @staticmethod
    def _read_envelope(message: bytes) -> _Envelope:
        data, armored = armor_decode(message)
        cursor = _PacketCursor(data)

        packet = cursor.next()
        if isinstance(packet, MarkerPacket):
            logger.debug("Marker packet skipped")
            packet = cursor.next()
        if packet is None:
            msg = "Message is empty"
            raise FormatError(msg)

        session_keys: list[PKESKPacket | SKESKPacket] = []
        while isinstance(packet, (PKESKPacket, SKESKPacket)):
            session_keys.append(packet)
            packet = cursor.next()
        if not session_keys:
            msg = "Not an encrypted message"
            raise FormatError(msg, packet_tag=cursor.tag)
        if not isinstance(packet, EncryptedDataPacket):
            msg = "Session keys are not followed by encrypted data"
            raise FormatError(msg, packet_tag=cursor.tag)
        cursor.expect_end("encrypted data")

        logger.debug("Session key entries read", count=len(session_keys), armored=armored)
        return _Envelope(session_keys=tuple(session_keys), encrypted=packet, armored=armored)

    def _resolve_session_key(
        self,
        entries: tuple[PKESKPacket | SKESKPacket, ...],
        ring: KeyRing,
        passphrase: SecureBytes,
    ) -> tuple[str, SessionKey]:
        tried: list[str] = []
        unlock_failed: list[str] = []
        last_error: KeyUnlockError | SessionKeyError | UnsupportedAlgorithmError | None = None

        for entry in entries:
            if isinstance(entry, SKESKPacket):
                logger.debug("Passphrase-encrypted session key entry skipped")
                continue
            for key_id in self._candidate_key_ids(entry, ring):
                tried.append(key_id)
                with self._locator.find_secret_key(ring, key_id, passphrase) as resolution:
                    if resolution.error is not None:
                        last_error = resolution.error
                    if resolution.status == ResolutionStatus.UNLOCK_FAILED:
                        unlock_failed.append(key_id)
                    if resolution.private_key is None:
                        continue
                    try:
                        session_key = self._pgp.unwrap_session_key(entry, resolution.private_key)
                    except (SessionKeyError, UnsupportedAlgorithmError) as e:
                        last_error = e
                        logger.debug("Entry did not unwrap with key", key_id=key_id, error=str(e))
                        continue
                logger.debug("Session key unwrapped", key_id=key_id)
                return key_id, session_key

        raise NoMatchingKeyError(
            key_ids=tuple(tried), unlock_failed=tuple(unlock_failed)
        ) from last_error

    def _candidate_key_ids(self, entry: PKESKPacket, ring: KeyRing) -> list[str]:
        if not entry.is_wildcard:
            return [entry.key_id]
        return [
            key.key_id
            for key in self._locator.encryption_candidates(ring)
            if key.algorithm == entry.algorithm
        ]

    def _read_payload(
        self, inner: bytes, layers: list[MessageLayer]
    ) -> tuple[LiteralDataPacket, CompressionAlgorithm | None]:
        cursor = _PacketCursor(inner)
        packet = cursor.next()
        compression = None

        if isinstance(packet, CompressedDataPacket):
            cursor.expect_end("compressed data")
            compression = packet.algorithm
            layers.append(MessageLayer.COMPRESSED)
            cursor = _PacketCursor(
                decompress(
                    packet.algorithm, packet.compressed_data, self._config.max_decompressed_size
                )
            )
            packet = cursor.next()
            logger.debug("Payload decompressed", compression=compression.name)

        match packet:
            case LiteralDataPacket():
                cursor.expect_end("literal data")
                layers.append(MessageLayer.LITERAL_DATA)
                return packet, compression
            case OnePassSignaturePacket() | SignaturePacket():
                msg = "Message is signed, not literal data"
                raise UnsupportedMessageShapeError(msg, packet_tag=cursor.tag)
            case None:
                msg = "Encrypted payload is empty"
                raise FormatError(msg)
            case _:
                msg = "Unknown literal-equivalent object"
                raise UnsupportedMessageShapeError(msg, packet_tag=cursor.tag)
