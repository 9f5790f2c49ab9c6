"""
Cryptographic building blocks for pgp_file.

This module provides:
- OpenPGP packet framing and typed packet parsing
- OpenPGP CFB encryption with and without MDC
- Compression codecs and ASCII armor
- The swappable PGP backend (PGPy) for keys and session key wrapping
"""

from pgp_file.crypto.armor import ARMOR_HEADER, armor_decode, armor_encode
from pgp_file.crypto.compression import compress, decompress
from pgp_file.crypto.packets import (
    PacketReader,
    RawPacket,
    encode_packet,
    parse_packet,
    read_packets,
    serialize_packet,
)
from pgp_file.crypto.pgpy_backend import PgpyBackend, PgpyRingKey, PgpyUnlockedKey
from pgp_file.crypto.protocol import PGPBackend
from pgp_file.crypto.symmetric import decrypt_data, encrypt_data

__all__ = [
    "ARMOR_HEADER",
    "armor_encode",
    "armor_decode",
    "compress",
    "decompress",
    "PacketReader",
    "RawPacket",
    "encode_packet",
    "parse_packet",
    "read_packets",
    "serialize_packet",
    "PGPBackend",
    "PgpyBackend",
    "PgpyRingKey",
    "PgpyUnlockedKey",
    "encrypt_data",
    "decrypt_data",
]
