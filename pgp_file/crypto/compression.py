"""
Compression codecs for OpenPGP compressed data packets.

ZIP is raw DEFLATE (no zlib header), ZLIB is RFC 1950 and BZIP2 is bzip2.
Decompression is bounded so a small packet cannot expand without limit.
"""

import bz2
import zlib

from pgp_file.exceptions import FormatError, UnsupportedAlgorithmError
from pgp_file.models.crypto import CompressionAlgorithm

_RAW_DEFLATE_WBITS = -15
_ZLIB_WBITS = 15


def compress(algorithm: CompressionAlgorithm, data: bytes, level: int = 6) -> bytes:
    """
    Compress ``data`` for a compressed data packet body.

    Args:
        algorithm: Compression algorithm.
        data: Serialized inner packets.
        level: Compression level (0-9); a bzip2 level of 0 is raised to 1.

    Returns:
        Compressed bytes, or ``data`` unchanged for UNCOMPRESSED.
    """
    match algorithm:
        case CompressionAlgorithm.UNCOMPRESSED:
            return data
        case CompressionAlgorithm.ZIP | CompressionAlgorithm.ZLIB:
            wbits = _RAW_DEFLATE_WBITS if algorithm == CompressionAlgorithm.ZIP else _ZLIB_WBITS
            compressor = zlib.compressobj(level, zlib.DEFLATED, wbits)
            return compressor.compress(data) + compressor.flush()
        case CompressionAlgorithm.BZIP2:
            return bz2.compress(data, max(level, 1))
    msg = f"Unsupported compression algorithm: {algorithm}"
    raise UnsupportedAlgorithmError(msg, algorithm=int(algorithm))


def decompress(algorithm: CompressionAlgorithm, data: bytes, max_size: int) -> bytes:
    """
    Decompress a compressed data packet body.

    Args:
        algorithm: Compression algorithm from the packet.
        data: Compressed bytes.
        max_size: Largest accepted output in bytes.

    Returns:
        Decompressed bytes.

    Raises:
        FormatError: If the stream is corrupt, truncated or expands past ``max_size``.
        UnsupportedAlgorithmError: If the algorithm is unknown.
    """
    match algorithm:
        case CompressionAlgorithm.UNCOMPRESSED:
            output = data
        case CompressionAlgorithm.ZIP:
            output = _inflate(zlib.decompressobj(_RAW_DEFLATE_WBITS), data, max_size, zlib.error)
        case CompressionAlgorithm.ZLIB:
            output = _inflate(zlib.decompressobj(_ZLIB_WBITS), data, max_size, zlib.error)
        case CompressionAlgorithm.BZIP2:
            output = _inflate(bz2.BZ2Decompressor(), data, max_size, OSError)
        case _:
            msg = f"Unsupported compression algorithm: {algorithm}"
            raise UnsupportedAlgorithmError(msg, algorithm=int(algorithm))
    if len(output) > max_size:
        msg = "Decompressed data exceeds size limit"
        raise FormatError(msg, max_size=max_size)
    return output


def _inflate(
    decompressor: "zlib._Decompress | bz2.BZ2Decompressor",
    data: bytes,
    max_size: int,
    error_type: type[Exception],
) -> bytes:
    try:
        output = decompressor.decompress(data, max_size + 1)
    except error_type as e:
        msg = f"Corrupt compressed data: {e}"
        raise FormatError(msg) from e
    if len(output) > max_size:
        msg = "Decompressed data exceeds size limit"
        raise FormatError(msg, max_size=max_size)
    if not decompressor.eof:
        msg = "Truncated compressed data"
        raise FormatError(msg)
    return output
