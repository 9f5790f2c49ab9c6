import pytest

from pgp_file.config import PgpFileConfig
from pgp_file.models.crypto import CompressionAlgorithm, SymmetricAlgorithm


def test_defaults() -> None:
    config = PgpFileConfig()

    assert config.cipher == SymmetricAlgorithm.AES_256
    assert config.compression == CompressionAlgorithm.ZIP
    assert config.compression_level == 6
    assert config.armor_headers == ()
    assert config.lock_memory is False


def test_config_is_frozen() -> None:
    config = PgpFileConfig()

    with pytest.raises(AttributeError):
        config.cipher = SymmetricAlgorithm.AES_128  # type: ignore[misc]


def test_unsupported_cipher_rejected() -> None:
    with pytest.raises(ValueError, match="cipher CAST5 is not supported"):
        PgpFileConfig(cipher=SymmetricAlgorithm.CAST5)


@pytest.mark.parametrize("level", [-1, 10])
def test_compression_level_out_of_range_rejected(level: int) -> None:
    with pytest.raises(ValueError, match="compression_level"):
        PgpFileConfig(compression_level=level)


def test_max_decompressed_size_must_be_positive() -> None:
    with pytest.raises(ValueError, match="max_decompressed_size must be positive"):
        PgpFileConfig(max_decompressed_size=0)


@pytest.mark.parametrize("header", [("", "x"), ("Bad:Key", "x"), ("Comment", "two\nlines")])
def test_invalid_armor_header_rejected(header: tuple[str, str]) -> None:
    with pytest.raises(ValueError, match="invalid armor header"):
        PgpFileConfig(armor_headers=(header,))
