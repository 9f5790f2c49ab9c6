"""
Domain models for pgp_file.

These are immutable (frozen) dataclasses and enums describing keys, packets
and decrypted messages.
"""

from pgp_file.models.crypto import (
    CompressionAlgorithm,
    PublicKeyAlgorithm,
    SessionKey,
    SymmetricAlgorithm,
)
from pgp_file.models.keys import (
    KeyGroup,
    KeyRing,
    KeyRingKind,
    RingKey,
    UnlockedPrivateKey,
)
from pgp_file.models.message import DecryptedMessage, MessageLayer
from pgp_file.models.packets import (
    CompressedDataPacket,
    EncryptedDataPacket,
    LiteralDataPacket,
    LiteralFormat,
    MarkerPacket,
    MessagePacket,
    OnePassSignaturePacket,
    PacketTag,
    PKESKPacket,
    SignaturePacket,
    SKESKPacket,
    UnknownPacket,
)

__all__ = [
    # Crypto
    "SymmetricAlgorithm",
    "PublicKeyAlgorithm",
    "CompressionAlgorithm",
    "SessionKey",
    # Keys
    "KeyRingKind",
    "RingKey",
    "UnlockedPrivateKey",
    "KeyGroup",
    "KeyRing",
    # Packets
    "PacketTag",
    "LiteralFormat",
    "MessagePacket",
    "MarkerPacket",
    "PKESKPacket",
    "SKESKPacket",
    "EncryptedDataPacket",
    "CompressedDataPacket",
    "LiteralDataPacket",
    "OnePassSignaturePacket",
    "SignaturePacket",
    "UnknownPacket",
    # Message
    "DecryptedMessage",
    "MessageLayer",
]
