"""
OpenPGP packet framing and typed packet parsing.

``PacketReader`` splits a byte string into ``RawPacket`` records (tag plus
body), handling both header formats and partial body lengths.
``parse_packet`` turns a raw record into one of the typed variants in
``pgp_file.models.packets``; ``serialize_packet`` is its inverse.
"""

from collections.abc import Iterator
from dataclasses import dataclass

from pgp_file.exceptions import FormatError
from pgp_file.models.crypto import CompressionAlgorithm, PublicKeyAlgorithm
from pgp_file.models.packets import (
    MARKER_BODY,
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

_MIN_PKESK_V3_LENGTH = 10
_MIN_LITERAL_LENGTH = 6
_ONE_PASS_V3_LENGTH = 13
_MAX_FILENAME_LENGTH = 255


@dataclass(frozen=True)
class RawPacket:
    tag: int
    body: bytes


class PacketReader:
    """
    Iterate over the packets in an OpenPGP byte string.

    Example:
        for raw in PacketReader(data):
            print(raw.tag, len(raw.body))

    Raises:
        FormatError: On an invalid header or a packet running past the end of data.
    """

    def __init__(self, data: bytes) -> None:
        self._data = memoryview(data)
        self._offset = 0

    def __iter__(self) -> Iterator[RawPacket]:
        return self

    def __next__(self) -> RawPacket:
        if self._offset >= len(self._data):
            raise StopIteration
        return self._read_packet()

    @property
    def at_end(self) -> bool:
        return self._offset >= len(self._data)

    def _read_packet(self) -> RawPacket:
        header = self._take(1)[0]
        if not header & 0x80:
            msg = f"Invalid packet header: 0x{header:02x}"
            raise FormatError(msg, offset=self._offset - 1)
        if header & 0x40:
            tag = header & 0x3F
            body = self._read_new_format_body()
        else:
            tag = (header & 0x3C) >> 2
            body = self._read_old_format_body(header & 0x03)
        return RawPacket(tag=tag, body=body)

    def _read_new_format_body(self) -> bytes:
        chunks: list[bytes] = []
        while True:
            first = self._take(1)[0]
            if first < 192:
                length = first
            elif first < 224:
                length = ((first - 192) << 8) + self._take(1)[0] + 192
            elif first == 255:
                length = int.from_bytes(self._take(4), "big")
            else:
                chunks.append(bytes(self._take(1 << (first & 0x1F))))
                continue
            chunks.append(bytes(self._take(length)))
            return b"".join(chunks)

    def _read_old_format_body(self, length_type: int) -> bytes:
        match length_type:
            case 0:
                length = self._take(1)[0]
            case 1:
                length = int.from_bytes(self._take(2), "big")
            case 2:
                length = int.from_bytes(self._take(4), "big")
            case _:
                length = len(self._data) - self._offset
        return bytes(self._take(length))

    def _take(self, size: int) -> memoryview:
        end = self._offset + size
        if end > len(self._data):
            msg = "Truncated packet"
            raise FormatError(msg, needed=size, available=len(self._data) - self._offset)
        chunk = self._data[self._offset : end]
        self._offset = end
        return chunk


def encode_packet(tag: int, body: bytes) -> bytes:
    """Frame ``body`` with a new-format header using the shortest definite length."""
    length = len(body)
    if length < 192:
        length_bytes = bytes([length])
    elif length < 8384:
        length -= 192
        length_bytes = bytes([(length >> 8) + 192, length & 0xFF])
    else:
        length_bytes = b"\xff" + length.to_bytes(4, "big")
    return bytes([0xC0 | tag]) + length_bytes + body


def read_packets(data: bytes) -> list[MessagePacket]:
    """Parse every packet in ``data``."""
    return [parse_packet(raw) for raw in PacketReader(data)]


def parse_packet(raw: RawPacket) -> MessagePacket:
    """
    Map a raw packet to its typed variant.

    Args:
        raw: Packet record from ``PacketReader``.

    Returns:
        The typed packet; tags outside the message vocabulary become ``UnknownPacket``.

    Raises:
        FormatError: If the body is malformed for its tag or a compressed
            packet names an unknown algorithm.
    """
    body = raw.body
    match raw.tag:
        case PacketTag.MARKER:
            if body != MARKER_BODY:
                msg = "Malformed marker packet"
                raise FormatError(msg)
            return MarkerPacket()
        case PacketTag.PKESK:
            return _parse_pkesk(body)
        case PacketTag.SKESK:
            _require(body, 1, "SKESK")
            return SKESKPacket(version=body[0], body=body[1:])
        case PacketTag.SYMMETRICALLY_ENCRYPTED_DATA:
            return EncryptedDataPacket(encrypted_data=body, integrity_protected=False)
        case PacketTag.SEIPD:
            _require(body, 1, "SEIPD")
            return EncryptedDataPacket(
                encrypted_data=body[1:], integrity_protected=True, version=body[0]
            )
        case PacketTag.COMPRESSED_DATA:
            _require(body, 1, "Compressed data")
            return CompressedDataPacket(
                algorithm=_compression_algorithm(body[0]), compressed_data=body[1:]
            )
        case PacketTag.LITERAL_DATA:
            return _parse_literal(body)
        case PacketTag.ONE_PASS_SIGNATURE:
            _require(body, 2, "One-pass signature")
            key_id = body[4:12].hex().upper() if len(body) >= _ONE_PASS_V3_LENGTH else ""
            return OnePassSignaturePacket(
                version=body[0], signature_type=body[1], key_id=key_id, body=body
            )
        case PacketTag.SIGNATURE:
            _require(body, 1, "Signature")
            return SignaturePacket(version=body[0], body=body)
        case _:
            return UnknownPacket(tag=raw.tag, body=body)


def serialize_packet(packet: MessagePacket) -> bytes:
    """
    Encode a typed packet, header included.

    Raises:
        ValueError: If a literal packet's file name does not fit in 255 bytes.
    """
    match packet:
        case MarkerPacket():
            return encode_packet(PacketTag.MARKER, MARKER_BODY)
        case PKESKPacket():
            body = (
                bytes([packet.version])
                + bytes.fromhex(packet.key_id)
                + bytes([packet.algorithm])
                + packet.encrypted_session_key
            )
            return encode_packet(PacketTag.PKESK, body)
        case SKESKPacket():
            return encode_packet(PacketTag.SKESK, bytes([packet.version]) + packet.body)
        case EncryptedDataPacket(integrity_protected=True):
            version = 1 if packet.version is None else packet.version
            return encode_packet(PacketTag.SEIPD, bytes([version]) + packet.encrypted_data)
        case EncryptedDataPacket():
            return encode_packet(PacketTag.SYMMETRICALLY_ENCRYPTED_DATA, packet.encrypted_data)
        case CompressedDataPacket():
            body = bytes([packet.algorithm]) + packet.compressed_data
            return encode_packet(PacketTag.COMPRESSED_DATA, body)
        case LiteralDataPacket():
            return encode_packet(PacketTag.LITERAL_DATA, _literal_body(packet))
        case OnePassSignaturePacket():
            return encode_packet(PacketTag.ONE_PASS_SIGNATURE, packet.body)
        case SignaturePacket():
            return encode_packet(PacketTag.SIGNATURE, packet.body)
        case UnknownPacket():
            return encode_packet(packet.tag, packet.body)
    msg = f"Cannot serialize {type(packet).__name__}"
    raise TypeError(msg)


def _require(body: bytes, size: int, name: str) -> None:
    if len(body) >= size:
        return
    msg = f"{name} packet too short: {len(body)} bytes"
    raise FormatError(msg)


def _parse_pkesk(body: bytes) -> PKESKPacket:
    _require(body, 1, "PKESK")
    version = body[0]
    if version != 3:
        msg = f"Unsupported PKESK version: {version}"
        raise FormatError(msg)
    _require(body, _MIN_PKESK_V3_LENGTH, "PKESK")
    try:
        algorithm: PublicKeyAlgorithm | int = PublicKeyAlgorithm(body[9])
    except ValueError:
        algorithm = body[9]
    return PKESKPacket(
        version=version,
        key_id=body[1:9].hex().upper(),
        algorithm=algorithm,
        encrypted_session_key=body[10:],
    )


def _compression_algorithm(algorithm_id: int) -> CompressionAlgorithm:
    try:
        return CompressionAlgorithm(algorithm_id)
    except ValueError:
        msg = f"Unknown compression algorithm: {algorithm_id}"
        raise FormatError(msg, algorithm=algorithm_id) from None


def _parse_literal(body: bytes) -> LiteralDataPacket:
    _require(body, _MIN_LITERAL_LENGTH, "Literal data")
    try:
        data_format = LiteralFormat(chr(body[0]))
    except ValueError:
        msg = f"Unknown literal data format: 0x{body[0]:02x}"
        raise FormatError(msg) from None
    name_end = 2 + body[1]
    _require(body, name_end + 4, "Literal data")
    return LiteralDataPacket(
        data_format=data_format,
        filename=body[2:name_end].decode("utf-8", errors="replace"),
        timestamp=int.from_bytes(body[name_end : name_end + 4], "big"),
        data=body[name_end + 4 :],
    )


def _literal_body(packet: LiteralDataPacket) -> bytes:
    name = packet.filename.encode("utf-8")
    if len(name) > _MAX_FILENAME_LENGTH:
        msg = f"Literal file name too long: {len(name)} bytes"
        raise ValueError(msg)
    return (
        packet.data_format.encode("ascii")
        + bytes([len(name)])
        + name
        + packet.timestamp.to_bytes(4, "big")
        + packet.data
    )
