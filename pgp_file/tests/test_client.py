import os
from datetime import UTC, datetime
from pathlib import Path

import pgpy
import pytest

from pgp_file import PgpFileClient, PgpFileConfig
from pgp_file.crypto.armor import ARMOR_HEADER
from pgp_file.exceptions import IntegrityError, NoEncryptionKeyError, NoMatchingKeyError
from pgp_file.models.crypto import CompressionAlgorithm
from pgp_file.models.keys import KeyRing


@pytest.fixture
def client() -> PgpFileClient:
    return PgpFileClient()


@pytest.fixture
def key_files(tmp_path: Path, subkey_key: pgpy.PGPKey) -> tuple[Path, Path]:
    public_path = tmp_path / "bob.pub.asc"
    secret_path = tmp_path / "bob.sec.gpg"
    public_path.write_text(str(subkey_key.pubkey))
    secret_path.write_bytes(bytes(subkey_key))
    return public_path, secret_path


def test_hello_world(client: PgpFileClient, rsa_key: pgpy.PGPKey, passphrase: str) -> None:
    public_ring = client.load_public_key_ring(str(rsa_key.pubkey))
    secret_ring = client.load_secret_key_ring(bytes(rsa_key))

    message = client.encrypt(b"hello world", public_ring, armor=True)

    assert message.startswith(ARMOR_HEADER)
    assert client.decrypt(message, secret_ring, passphrase) == b"hello world"
    assert client.list_recipients(message) == secret_ring.key_ids


def test_encrypt_requires_encryption_key(client: PgpFileClient, signing_key: pgpy.PGPKey) -> None:
    public_ring = client.load_public_key_ring(bytes(signing_key.pubkey))

    with pytest.raises(NoEncryptionKeyError):
        client.encrypt(b"data", public_ring)


def test_decrypt_message_returns_metadata(
    client: PgpFileClient, rsa_public_ring: KeyRing, rsa_secret_ring: KeyRing, passphrase: str
) -> None:
    message = client.encrypt(b"data", rsa_public_ring, filename="data.bin")

    result = client.decrypt_message(message, rsa_secret_ring, passphrase)

    assert result.filename == "data.bin"
    assert result.compression == CompressionAlgorithm.ZIP


def test_config_is_passed_to_pipeline(
    rsa_public_ring: KeyRing, rsa_secret_ring: KeyRing, passphrase: str
) -> None:
    client = PgpFileClient(PgpFileConfig(compression=CompressionAlgorithm.BZIP2))

    message = client.encrypt(b"data", rsa_public_ring)

    result = client.decrypt_message(message, rsa_secret_ring, passphrase)

    assert client.config.compression == CompressionAlgorithm.BZIP2
    assert result.compression == CompressionAlgorithm.BZIP2


def test_encrypt_file_and_decrypt_file(
    client: PgpFileClient, tmp_path: Path, key_files: tuple[Path, Path], passphrase: str
) -> None:
    public_path, secret_path = key_files
    source = tmp_path / "report.txt"
    source.write_bytes(b"quarterly numbers\n" * 100)
    os.utime(source, (1700000000, 1700000000))
    encrypted = tmp_path / "out" / "report.txt.asc"
    restored = tmp_path / "restored.txt"

    client.encrypt_file(source, encrypted, public_path, armor=True)
    result = client.decrypt_file(encrypted, restored, secret_path, passphrase)

    assert encrypted.read_bytes().startswith(ARMOR_HEADER)
    assert restored.read_bytes() == source.read_bytes()
    assert result.filename == "report.txt"
    assert result.modified_at == datetime.fromtimestamp(1700000000, tz=UTC)


def test_decrypt_file_leaves_output_untouched_on_integrity_failure(
    client: PgpFileClient, tmp_path: Path, key_files: tuple[Path, Path], passphrase: str
) -> None:
    public_path, secret_path = key_files
    source = tmp_path / "plain.bin"
    source.write_bytes(b"secret payload")
    encrypted = tmp_path / "plain.bin.gpg"
    client.encrypt_file(source, encrypted, public_path)
    tampered = bytearray(encrypted.read_bytes())
    tampered[-1] ^= 0x01
    encrypted.write_bytes(bytes(tampered))
    output = tmp_path / "output.bin"
    output.write_bytes(b"previous contents")

    with pytest.raises(IntegrityError):
        client.decrypt_file(encrypted, output, secret_path, passphrase)

    assert output.read_bytes() == b"previous contents"
    assert sorted(path.name for path in tmp_path.iterdir()) == [
        "bob.pub.asc",
        "bob.sec.gpg",
        "output.bin",
        "plain.bin",
        "plain.bin.gpg",
    ]


def test_decrypt_file_with_wrong_passphrase_creates_no_output(
    client: PgpFileClient, tmp_path: Path, key_files: tuple[Path, Path]
) -> None:
    public_path, secret_path = key_files
    source = tmp_path / "plain.bin"
    source.write_bytes(b"secret payload")
    encrypted = tmp_path / "plain.bin.gpg"
    client.encrypt_file(source, encrypted, public_path, integrity_check=False)
    output = tmp_path / "output.bin"

    with pytest.raises(NoMatchingKeyError):
        client.decrypt_file(encrypted, output, secret_path, "not the passphrase")

    assert not output.exists()
