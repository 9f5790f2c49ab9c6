"""
pgp_file configuration.
"""

from dataclasses import dataclass

from pgp_file.models.crypto import CompressionAlgorithm, SymmetricAlgorithm

_MIB = 1024 * 1024


@dataclass(frozen=True, kw_only=True)
class PgpFileConfig:
    """
    Attributes:
        cipher: Symmetric algorithm used for new messages.
        compression: Compression algorithm applied to the literal data packet.
        compression_level: Compression level (0-9) for ZIP, ZLIB and BZIP2.
        armor_headers: Extra ``Key: Value`` lines written into armored output.
        max_decompressed_size: Upper bound in bytes for a decompressed payload.
        lock_memory: Request mlock for buffers holding passphrases and session keys.
    """

    cipher: SymmetricAlgorithm = SymmetricAlgorithm.AES_256
    compression: CompressionAlgorithm = CompressionAlgorithm.ZIP
    compression_level: int = 6
    armor_headers: tuple[tuple[str, str], ...] = ()
    max_decompressed_size: int = 512 * _MIB
    lock_memory: bool = False

    def __post_init__(self) -> None:
        if not self.cipher.is_supported:
            msg = f"cipher {self.cipher.name} is not supported"
            raise ValueError(msg)
        if not 0 <= self.compression_level <= 9:
            msg = "compression_level must be between 0 and 9"
            raise ValueError(msg)
        if self.max_decompressed_size <= 0:
            msg = "max_decompressed_size must be positive"
            raise ValueError(msg)
        for key, value in self.armor_headers:
            if not key or ":" in key or "\n" in key or "\n" in value:
                msg = f"invalid armor header: {key!r}"
                raise ValueError(msg)
