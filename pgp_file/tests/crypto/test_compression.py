import bz2
import zlib

import pytest

from pgp_file.crypto.compression import compress, decompress
from pgp_file.exceptions import FormatError
from pgp_file.models.crypto import CompressionAlgorithm

_DATA = b"The quick brown fox jumps over the lazy dog. " * 50


@pytest.mark.parametrize("algorithm", list(CompressionAlgorithm))
def test_decompress_restores_compressed_data(algorithm: CompressionAlgorithm) -> None:
    compressed = compress(algorithm, _DATA)

    assert decompress(algorithm, compressed, max_size=len(_DATA)) == _DATA


def test_zip_is_raw_deflate() -> None:
    compressed = compress(CompressionAlgorithm.ZIP, _DATA)

    assert zlib.decompress(compressed, -15) == _DATA


def test_zlib_has_zlib_header() -> None:
    assert zlib.decompress(compress(CompressionAlgorithm.ZLIB, _DATA)) == _DATA


def test_bzip2_level_zero_is_accepted() -> None:
    assert bz2.decompress(compress(CompressionAlgorithm.BZIP2, _DATA, level=0)) == _DATA


def test_uncompressed_passes_data_through() -> None:
    assert compress(CompressionAlgorithm.UNCOMPRESSED, _DATA) is _DATA


@pytest.mark.parametrize(
    "algorithm",
    [CompressionAlgorithm.ZIP, CompressionAlgorithm.ZLIB, CompressionAlgorithm.BZIP2],
)
def test_decompress_enforces_size_limit(algorithm: CompressionAlgorithm) -> None:
    compressed = compress(algorithm, bytes(100_000))

    with pytest.raises(FormatError, match="exceeds size limit"):
        decompress(algorithm, compressed, max_size=1000)


def test_uncompressed_size_limit() -> None:
    with pytest.raises(FormatError, match="exceeds size limit"):
        decompress(CompressionAlgorithm.UNCOMPRESSED, bytes(10), max_size=5)


def test_decompress_rejects_corrupt_stream() -> None:
    with pytest.raises(FormatError, match="Corrupt compressed data"):
        decompress(CompressionAlgorithm.ZLIB, b"not a zlib stream", max_size=1000)


def test_decompress_rejects_truncated_stream() -> None:
    compressed = compress(CompressionAlgorithm.ZIP, _DATA)

    with pytest.raises(FormatError, match="Truncated compressed data"):
        decompress(CompressionAlgorithm.ZIP, compressed[: len(compressed) // 2], max_size=10_000)
