"""
OpenPGP file encryption for a single recipient.

Example:
    ```python
    from pgp_file import PgpFileClient

    client = PgpFileClient()

    public_ring = client.load_public_key_ring(open("alice.pub.asc", "rb"))
    message = client.encrypt(b"hello world", public_ring, armor=True)

    secret_ring = client.load_secret_key_ring(open("alice.sec.asc", "rb"))
    assert client.decrypt(message, secret_ring, "passphrase") == b"hello world"
    ```
"""

from pgp_file.client import PgpFileClient
from pgp_file.config import PgpFileConfig
from pgp_file.exceptions import (
    CryptoError,
    FormatError,
    IntegrityError,
    KeyResolutionError,
    KeyUnlockError,
    NoEncryptionKeyError,
    NoMatchingKeyError,
    PgpFileError,
    SessionKeyError,
    UnsupportedAlgorithmError,
    UnsupportedMessageShapeError,
)
from pgp_file.keys.key_locator import KeyLocator, KeyResolution, ResolutionStatus
from pgp_file.keys.key_ring import KeyRingStore
from pgp_file.models.crypto import CompressionAlgorithm, SymmetricAlgorithm
from pgp_file.models.keys import KeyRing, KeyRingKind
from pgp_file.models.message import DecryptedMessage, MessageLayer
from pgp_file.services.message_composer import MessageComposer
from pgp_file.services.message_decomposer import MessageDecomposer

__version__ = "0.1.0"

__all__ = [
    # Main client
    "PgpFileClient",
    "PgpFileConfig",
    # Pipeline
    "KeyRingStore",
    "KeyLocator",
    "KeyResolution",
    "ResolutionStatus",
    "MessageComposer",
    "MessageDecomposer",
    # Models
    "KeyRing",
    "KeyRingKind",
    "DecryptedMessage",
    "MessageLayer",
    "SymmetricAlgorithm",
    "CompressionAlgorithm",
    # Exceptions
    "PgpFileError",
    "FormatError",
    "CryptoError",
    "SessionKeyError",
    "IntegrityError",
    "UnsupportedAlgorithmError",
    "KeyResolutionError",
    "NoEncryptionKeyError",
    "NoMatchingKeyError",
    "KeyUnlockError",
    "UnsupportedMessageShapeError",
]
