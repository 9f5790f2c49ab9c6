"""
pgp_file client facade.

This is the main entry point for users of the library. It wires the key ring
store, key locator, composer and decomposer together and adds file-based
helpers with atomic output.
"""

from datetime import UTC, datetime
from pathlib import Path

import structlog

from pgp_file.config import PgpFileConfig
from pgp_file.core.atomic_write import write_atomic
from pgp_file.crypto.pgpy_backend import PgpyBackend
from pgp_file.crypto.protocol import PGPBackend
from pgp_file.keys.key_locator import KeyLocator
from pgp_file.keys.key_ring import KeyRingSource, KeyRingStore
from pgp_file.models.keys import KeyRing, KeyRingKind
from pgp_file.models.message import DecryptedMessage
from pgp_file.services.message_composer import MessageComposer
from pgp_file.services.message_decomposer import MessageDecomposer, Passphrase

logger = structlog.get_logger(__name__)


class PgpFileClient:
    """
    Encrypts and decrypts files for a single recipient.

    Example:
        ```python
        client = PgpFileClient()

        client.encrypt_file("report.pdf", "report.pdf.gpg", "alice.pub.asc", armor=True)
        client.decrypt_file("report.pdf.gpg", "report.pdf", "alice.sec.asc", "passphrase")
        ```

    Args:
        config: Client configuration. Uses defaults if not provided.
        pgp_backend: Backend for key handling. Defaults to PGPy.
    """

    def __init__(
        self, config: PgpFileConfig | None = None, pgp_backend: PGPBackend | None = None
    ) -> None:
        self._config = config or PgpFileConfig()
        self._pgp = pgp_backend or PgpyBackend()
        self._store = KeyRingStore(self._pgp)
        self._locator = KeyLocator(self._pgp)
        self._composer = MessageComposer(self._config, self._pgp)
        self._decomposer = MessageDecomposer(self._config, self._pgp, self._locator)

    @property
    def config(self) -> PgpFileConfig:
        return self._config

    def load_public_key_ring(self, source: KeyRingSource) -> KeyRing:
        """Parse a public key ring from bytes, text or a binary stream."""
        return self._store.parse(source, KeyRingKind.PUBLIC)

    def load_secret_key_ring(self, source: KeyRingSource) -> KeyRing:
        """Parse a secret key ring from bytes, text or a binary stream."""
        return self._store.parse(source, KeyRingKind.SECRET)

    def encrypt(
        self,
        plaintext: bytes,
        public_ring: KeyRing,
        *,
        armor: bool = False,
        integrity_check: bool = True,
        filename: str = "",
        modified_at: datetime | None = None,
    ) -> bytes:
        """
        Encrypt ``plaintext`` to the first encryption-capable key of ``public_ring``.

        Args:
            plaintext: Data to encrypt.
            public_ring: Recipient key ring.
            armor: Return ASCII-armored output.
            integrity_check: Protect the payload with a modification detection code.
            filename: Informational file name stored in the message.
            modified_at: Informational modification time stored in the message.

        Returns:
            The encrypted message.

        Raises:
            NoEncryptionKeyError: If the ring has no encryption-capable key.
        """
        recipient = self._locator.find_encryption_key(public_ring)
        return self._composer.compose(
            plaintext,
            recipient,
            armor=armor,
            integrity_check=integrity_check,
            filename=filename,
            modified_at=modified_at,
        )

    def decrypt(self, message: bytes, secret_ring: KeyRing, passphrase: Passphrase) -> bytes:
        """Decrypt ``message`` and return the plaintext."""
        return self._decomposer.decompose(message, secret_ring, passphrase)

    def decrypt_message(
        self, message: bytes, secret_ring: KeyRing, passphrase: Passphrase
    ) -> DecryptedMessage:
        """Decrypt ``message`` and return the plaintext with its metadata."""
        return self._decomposer.decompose_message(message, secret_ring, passphrase)

    def list_recipients(self, message: bytes) -> tuple[str, ...]:
        """Key IDs the message is encrypted to, without decrypting it."""
        return self._decomposer.list_recipients(message)

    def encrypt_file(
        self,
        input_path: str | Path,
        output_path: str | Path,
        public_key_path: str | Path,
        *,
        armor: bool = False,
        integrity_check: bool = True,
    ) -> None:
        """
        Encrypt a file to the first encryption key of a public key ring file.

        The input file's name and modification time are stored in the
        literal data packet. The output file is replaced atomically; on any
        error it is left untouched.

        Args:
            input_path: File to encrypt.
            output_path: Destination for the encrypted message.
            public_key_path: Public key ring, armored or binary.
            armor: Write ASCII-armored output.
            integrity_check: Protect the payload with a modification detection code.
        """
        source = Path(input_path)
        public_ring = self.load_public_key_ring(Path(public_key_path).read_bytes())
        message = self.encrypt(
            source.read_bytes(),
            public_ring,
            armor=armor,
            integrity_check=integrity_check,
            filename=source.name,
            modified_at=datetime.fromtimestamp(source.stat().st_mtime, tz=UTC),
        )
        write_atomic(Path(output_path), message)
        logger.info("File encrypted", source=str(source), destination=str(output_path))

    def decrypt_file(
        self,
        input_path: str | Path,
        output_path: str | Path,
        secret_key_path: str | Path,
        passphrase: Passphrase,
    ) -> DecryptedMessage:
        """
        Decrypt a message file with a secret key ring file.

        The output file is replaced atomically; on any error, including a
        failed integrity check, it is left untouched.

        Args:
            input_path: Encrypted message, armored or binary.
            output_path: Destination for the plaintext.
            secret_key_path: Secret key ring, armored or binary.
            passphrase: Secret key passphrase.

        Returns:
            The decrypted message, for access to its metadata.
        """
        secret_ring = self.load_secret_key_ring(Path(secret_key_path).read_bytes())
        decrypted = self.decrypt_message(Path(input_path).read_bytes(), secret_ring, passphrase)
        write_atomic(Path(output_path), decrypted.data)
        logger.info("File decrypted", source=str(input_path), destination=str(output_path))
        return decrypted
